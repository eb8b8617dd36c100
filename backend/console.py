"""Realtime 콘솔 클라이언트.

OpenAI Realtime API와 WebRTC 세션을 열고, 터미널에서 텍스트 메시지를
보내며 수신 이벤트를 출력합니다.

사용법 (backend 디렉토리에서 실행):
    # API 키 저장 및 검증
    uv run python console.py set-key sk-...

    # 저장된 키 검증
    uv run python console.py validate

    # 세션 시작 (저장된 키 사용)
    uv run python console.py run

    # 토큰 릴레이에서 에페메랄 키를 받아 세션 시작
    uv run python console.py run --relay-url http://localhost:3000/token

세션 중 입력:
    일반 텍스트       conversation.item.create + response.create 전송
    /event {json}     임의의 클라이언트 이벤트 전송
    /history          최근 이벤트 목록 출력
    /quit 또는 EOF    세션 종료
"""

import argparse
import asyncio
import json
import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
load_dotenv(Path(__file__).parent / "config" / ".env")

from modules.realtime import (
    CredentialStore,
    RealtimeSession,
    fetch_relay_token,
)

# 입력 대기 중 세션 상태 확인 주기 (초)
INPUT_POLL_INTERVAL = 0.5


def format_event(event: dict) -> str:
    """이벤트 한 줄 요약."""
    summary = event.get("type", "?")
    delta = event.get("delta") or event.get("transcript")
    if isinstance(delta, str) and delta:
        summary += f" {delta!r}"
    return f"[{event.get('timestamp', '--:--:--')}] {summary}"


async def print_events(session: RealtimeSession) -> None:
    async for event in session.events():
        print(f"\033[94m<- {format_event(event)}\033[0m")


def start_stdin_reader() -> asyncio.Queue:
    """데몬 스레드에서 input()으로 읽은 줄을 큐로 넘깁니다.

    EOF면 None을 넣고 끝납니다. 데몬 스레드이므로 종료 시 기다리지 않습니다.
    """
    loop = asyncio.get_running_loop()
    lines: asyncio.Queue = asyncio.Queue()

    def reader():
        while True:
            try:
                line = input()
            except EOFError:
                line = None
            try:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            except RuntimeError:
                # 이벤트 루프가 이미 닫힘
                return
            if line is None:
                return

    threading.Thread(target=reader, name="stdin-reader", daemon=True).start()
    return lines


async def read_lines(session: RealtimeSession, lines: Optional[asyncio.Queue] = None) -> None:
    """입력 줄을 하나씩 세션으로 전송합니다.

    입력을 기다리는 동안에도 세션이 끊기면 바로 반환합니다.
    """
    if lines is None:
        lines = start_stdin_reader()
    while session.is_active:
        try:
            line = await asyncio.wait_for(lines.get(), timeout=INPUT_POLL_INTERVAL)
        except asyncio.TimeoutError:
            continue
        if line is None:
            return
        line = line.strip()
        if not line:
            continue
        if line == "/quit":
            return
        if line == "/history":
            for event in session.get_history()[:20]:
                print(f"   {format_event(event)}")
            continue
        if line.startswith("/event "):
            try:
                message = json.loads(line[len("/event "):])
            except ValueError as e:
                print(f"잘못된 JSON: {e}")
                continue
            if not isinstance(message, dict):
                print("이벤트는 JSON 객체여야 합니다")
                continue
            session.send_event(message)
            continue
        session.send_text_message(line)


async def run_session(args: argparse.Namespace, lines: Optional[asyncio.Queue] = None) -> int:
    store = CredentialStore()
    session = RealtimeSession(store)
    printer = None

    # 어떤 경로로 끝나든 (Ctrl-C 포함) 세션 정리
    try:
        try:
            ephemeral_key = None
            if args.relay_url:
                ephemeral_key = await fetch_relay_token(args.relay_url)
            await session.start(ephemeral_key=ephemeral_key)
        except Exception as e:
            print(f"Failed to start session: {e}")
            return 1

        if not await session.wait_until_active(timeout=args.timeout):
            print("Failed to start session: data channel did not open")
            return 1

        print("세션 활성화됨. 메시지를 입력하세요 (/quit 으로 종료).")
        printer = asyncio.create_task(print_events(session))
        await read_lines(session, lines)
        return 0
    finally:
        await session.stop()
        if printer is not None:
            await printer


async def set_key(args: argparse.Namespace) -> int:
    store = CredentialStore()
    store.set_credential(args.key)
    valid = await store.validate()
    print("API key saved and valid." if valid else "API key saved but invalid.")
    return 0 if valid else 1


async def validate_key(args: argparse.Namespace) -> int:
    store = CredentialStore()
    if not store.credential:
        print("Please enter your OpenAI API key")
        return 1
    valid = await store.validate()
    print("API key is valid." if valid else "Invalid API key. Please check and try again.")
    return 0 if valid else 1


async def clear_key(args: argparse.Namespace) -> int:
    CredentialStore().clear()
    print("API key removed.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Realtime console")
    parser.add_argument("--log-level", default="WARNING", help="로그 레벨")
    sub = parser.add_subparsers(dest="command", required=True)

    p_set = sub.add_parser("set-key", help="API 키 저장 및 검증")
    p_set.add_argument("key")
    p_set.set_defaults(handler=set_key)

    sub.add_parser("validate", help="저장된 API 키 검증").set_defaults(handler=validate_key)
    sub.add_parser("clear-key", help="저장된 API 키 삭제").set_defaults(handler=clear_key)

    p_run = sub.add_parser("run", help="세션 시작")
    p_run.add_argument("--relay-url", default=None, help="토큰 릴레이 /token URL")
    p_run.add_argument("--timeout", type=float, default=15.0, help="데이터 채널 open 대기 (초)")
    p_run.set_defaults(handler=run_session)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        return asyncio.run(args.handler(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
