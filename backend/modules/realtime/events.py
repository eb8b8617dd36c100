"""Realtime 이벤트 헬퍼.

데이터 채널로 주고받는 JSON 이벤트의 식별자/타임스탬프 보정과
최신순 이벤트 히스토리를 제공합니다.
"""

import uuid
from collections import deque
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

Event = Dict[str, Any]


def display_timestamp(now: Optional[datetime] = None) -> str:
    """로컬 표시용 타임스탬프 (HH:MM:SS)."""
    return (now or datetime.now()).strftime("%H:%M:%S")


def ensure_event_id(event: Event) -> Event:
    """event_id가 없으면 UUID4를 생성해 넣습니다."""
    if not event.get("event_id"):
        event["event_id"] = str(uuid.uuid4())
    return event


def ensure_timestamp(event: Event, timestamp: Optional[str] = None) -> Event:
    """timestamp가 없을 때만 채웁니다."""
    if not event.get("timestamp"):
        event["timestamp"] = timestamp or display_timestamp()
    return event


def user_text_message(text: str) -> Event:
    """사용자 텍스트 메시지 생성 이벤트 (conversation.item.create)."""
    return {
        "type": "conversation.item.create",
        "item": {
            "type": "message",
            "role": "user",
            "content": [
                {
                    "type": "input_text",
                    "text": text,
                },
            ],
        },
    }


def response_create() -> Event:
    """응답 생성 요청 이벤트."""
    return {"type": "response.create"}


class EventHistory:
    """최신 이벤트가 항상 0번에 오는 이벤트 목록.

    asyncio 단일 스레드에서만 접근하며, 각 삽입은 await 없이 한 번에 끝납니다.
    """

    def __init__(self, maxlen: Optional[int] = None):
        self._events: Deque[Event] = deque(maxlen=maxlen)

    def prepend(self, event: Event) -> None:
        self._events.appendleft(event)

    def clear(self) -> None:
        self._events.clear()

    def snapshot(self) -> List[Event]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index: int) -> Event:
        return self._events[index]
