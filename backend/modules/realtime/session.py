"""Realtime 세션 관리 모듈.

이 모듈은 OpenAI Realtime API와의 WebRTC 세션 하나의 생명주기를 관리합니다.
피어 연결 생성, SDP 협상, 이벤트 데이터 채널 연결, 이벤트 송수신, 종료까지
모든 핸들을 RealtimeSession 객체가 단독으로 소유합니다.

WebRTC Flow:
    1. 마이크 입력 트랙 획득
    2. RTCPeerConnection 생성 및 원격 오디오 트랙 핸들러 등록
    3. 로컬 오디오 트랙 추가
    4. "oai-events" 데이터 채널 생성 및 message/open 핸들러 등록
    5. offer 생성 및 local description 설정
    6. provider에 offer SDP 제출 (POST /realtime?model=...)
    7. answer SDP를 remote description으로 설정
    8. 데이터 채널 open 시 ACTIVE 전환

State Machine:
    IDLE -> STARTING -> ACTIVE -> IDLE (stop)
    STARTING -> IDLE (실패 또는 stop)

Examples:
    >>> session = RealtimeSession(CredentialStore())
    >>> await session.start()
    >>> await session.wait_until_active(timeout=10)
    >>> session.send_text_message("hello")
    >>> async for event in session.events():
    ...     print(event["type"])
    >>> await session.stop()

See Also:
    aiortc Documentation: https://aiortc.readthedocs.io/
"""
import asyncio
import json
import logging
from collections import deque
from enum import Enum
from typing import AsyncIterator, Callable, Deque, List, Optional

from aiortc import (
    MediaStreamTrack,
    RTCConfiguration,
    RTCIceServer,
    RTCPeerConnection,
    RTCSessionDescription,
)

from .config import ice_config, provider_config, ICEServerConfig, ProviderConfig
from .credentials import CredentialStore
from .errors import CredentialError
from .events import (
    Event,
    EventHistory,
    display_timestamp,
    ensure_event_id,
    ensure_timestamp,
    response_create,
    user_text_message,
)
from .media import AudioSink, Microphone, create_audio_sink, open_microphone
from .provider import ProviderClient

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"


class _StartAborted(Exception):
    """start() 도중 stop()이 호출됨."""


def create_peer_connection(config: Optional[ICEServerConfig] = None) -> RTCPeerConnection:
    """ICE 서버 설정을 적용한 RTCPeerConnection을 생성합니다.

    Args:
        config (Optional[ICEServerConfig]): STUN/TURN 설정

    Returns:
        RTCPeerConnection: 새 피어 연결
    """
    config = config or ice_config
    ice_servers = []

    if config.STUN_SERVER_URL:
        ice_servers.append(RTCIceServer(urls=[config.STUN_SERVER_URL]))
    for stun_url in config.DEFAULT_STUN_SERVERS:
        ice_servers.append(RTCIceServer(urls=[stun_url]))

    if config.has_turn_server:
        ice_servers.append(RTCIceServer(
            urls=[config.TURN_SERVER_URL],
            username=config.TURN_USERNAME,
            credential=config.TURN_CREDENTIAL
        ))
        logger.info(f"[Realtime] TURN 서버 설정: {config.TURN_SERVER_URL}")

    return RTCPeerConnection(configuration=RTCConfiguration(iceServers=ice_servers))


class RealtimeSession:
    """Realtime API WebRTC 세션 하나를 소유하는 클래스.

    피어 연결, 데이터 채널, 오디오 싱크, 마이크 핸들을 함께 생성하고 함께 해제합니다.
    일부만 해제된 상태는 존재하지 않습니다.

    Attributes:
        credentials (CredentialStore): 사용자 자격증명 저장소
        provider (ProviderClient): SDP 협상용 HTTP 클라이언트
        history (EventHistory): 최신순 이벤트 히스토리 (송신/수신 모두)
        diagnostics (Deque[str]): 전송 실패, 잘못된 수신 메시지 등 진단 기록

    Concurrency:
        - 모든 메서드와 aiortc 이벤트 핸들러는 같은 asyncio 루프에서 실행됨
        - IDLE이 아닐 때 start() 호출은 무시됨 (중복 연결 방지)
        - start() 도중 stop()이 호출되면 start()는 다음 await 이후 정리하고 반환함
    """

    def __init__(
        self,
        credentials: CredentialStore,
        provider: Optional[ProviderClient] = None,
        config: Optional[ProviderConfig] = None,
        microphone_factory: Callable[[], Microphone] = open_microphone,
        sink_factory: Callable[[], AudioSink] = create_audio_sink,
        peer_connection_factory: Callable[[], RTCPeerConnection] = create_peer_connection,
    ):
        self.credentials = credentials
        self.provider = provider or credentials.provider
        self.config = config or provider_config
        self._microphone_factory = microphone_factory
        self._sink_factory = sink_factory
        self._peer_connection_factory = peer_connection_factory

        self._state = SessionState.IDLE
        # start/stop마다 증가, 오래된 start()와 핸들러 식별용
        self._generation = 0

        self._pc: Optional[RTCPeerConnection] = None
        self._channel = None
        self._sink: Optional[AudioSink] = None
        self._microphone: Optional[Microphone] = None

        self._inbound: Optional[asyncio.Queue] = None
        self._opened: Optional[asyncio.Event] = None

        self.history = EventHistory()
        self.diagnostics: Deque[str] = deque(maxlen=100)

    # ------------------------------------------------------------
    # 상태
    # ------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def has_resources(self) -> bool:
        """피어 연결/채널/싱크/마이크 중 하나라도 보유 중인지 여부."""
        return any(h is not None for h in (self._pc, self._channel, self._sink, self._microphone))

    def _record_diagnostic(self, message: str) -> None:
        self.diagnostics.append(f"{display_timestamp()} {message}")

    # ------------------------------------------------------------
    # 시작
    # ------------------------------------------------------------

    async def _resolve_credential(self) -> str:
        credential = self.credentials.credential
        if not credential:
            raise CredentialError("missing")
        if not self.credentials.is_valid:
            valid = await self.credentials.validate(credential)
            if not valid:
                raise CredentialError("invalid")
        return credential

    def _check_aborted(self, generation: int) -> None:
        if generation != self._generation:
            raise _StartAborted()

    async def start(self, ephemeral_key: Optional[str] = None) -> None:
        """세션을 시작합니다.

        자격증명 확인, 마이크 획득, 피어 연결 생성, SDP 협상까지 순서대로 수행합니다.
        ACTIVE 전환은 데이터 채널 open 이벤트에서 일어납니다.

        Args:
            ephemeral_key (Optional[str]): 토큰 릴레이에서 받은 에페메랄 키.
                지정하면 저장된 자격증명과 검증을 건너뜀

        Raises:
            CredentialError: 자격증명이 없거나 무효
            MediaAcquisitionError: 마이크를 열 수 없음
            HandshakeError: SDP 협상 실패

        Note:
            - 실패 시 모든 핸들을 해제하고 IDLE로 돌아간 뒤 예외를 다시 발생시킴
            - IDLE이 아닐 때 호출하면 아무 작업도 하지 않음
        """
        if self._state is not SessionState.IDLE:
            logger.warning(f"[Realtime] start 무시: 현재 상태={self._state.value}")
            return

        self._generation += 1
        generation = self._generation
        self._state = SessionState.STARTING
        self._opened = asyncio.Event()
        self._inbound = asyncio.Queue()
        logger.info("[Realtime] 세션 시작 중...")

        try:
            credential = ephemeral_key or await self._resolve_credential()
            self._check_aborted(generation)

            # 1. 마이크
            self._microphone = self._microphone_factory()

            # 2. 피어 연결 + 원격 오디오 싱크
            self._sink = self._sink_factory()
            pc = self._peer_connection_factory()
            self._pc = pc
            self._register_peer_handlers(pc, generation)

            # 3. 로컬 오디오 트랙
            pc.addTrack(self._microphone.track)

            # 4. 이벤트 데이터 채널
            channel = pc.createDataChannel(self.config.DATA_CHANNEL_NAME)
            self._channel = channel
            self._register_channel_handlers(channel, generation)

            # 5. offer
            offer = await pc.createOffer()
            self._check_aborted(generation)
            await pc.setLocalDescription(offer)
            self._check_aborted(generation)

            # 6. provider SDP 협상
            answer_sdp = await self.provider.negotiate(credential, pc.localDescription.sdp)
            self._check_aborted(generation)

            # 7. answer
            await pc.setRemoteDescription(RTCSessionDescription(sdp=answer_sdp, type="answer"))
            self._check_aborted(generation)

            # 8. 원격 오디오 재생 시작, open 이벤트 대기
            await self._sink.start()
            self._check_aborted(generation)
            logger.info("[Realtime] SDP 협상 완료, 데이터 채널 open 대기")

        except _StartAborted:
            logger.info("[Realtime] start 도중 stop 호출됨, 시작 중단")
        except asyncio.CancelledError:
            if generation == self._generation:
                logger.info("[Realtime] start 태스크 취소됨, 세션 정리")
                await self.stop()
            raise
        except Exception as e:
            if generation != self._generation:
                logger.info(f"[Realtime] stop 이후 발생한 시작 오류 무시: {type(e).__name__}: {e}")
                return
            logger.error(f"[Realtime] 세션 시작 실패: {type(e).__name__}: {e}")
            await self.stop()
            raise

    def _register_peer_handlers(self, pc: RTCPeerConnection, generation: int) -> None:
        @pc.on("track")
        def on_track(track: MediaStreamTrack):
            """원격 오디오 트랙을 싱크에 연결."""
            if generation != self._generation or self._sink is None:
                return
            if track.kind == "audio":
                self._sink.add_track(track)

        @pc.on("connectionstatechange")
        async def on_connection_state_change():
            logger.info(f"[Realtime] 연결 상태: {pc.connectionState}")
            if pc.connectionState == "failed" and generation == self._generation:
                self._record_diagnostic("peer connection failed")
                await self.stop()

    def _register_channel_handlers(self, channel, generation: int) -> None:
        @channel.on("open")
        def on_open():
            if generation != self._generation or self._state is not SessionState.STARTING:
                return
            self.history.clear()
            self._state = SessionState.ACTIVE
            if self._opened is not None:
                self._opened.set()
            logger.info("[Realtime] 데이터 채널 open, 세션 활성화")

        @channel.on("message")
        def on_message(data):
            if generation != self._generation:
                return
            self._handle_incoming(data)

        @channel.on("close")
        def on_close():
            logger.info("[Realtime] 데이터 채널 닫힘")

    async def wait_until_active(self, timeout: Optional[float] = None) -> bool:
        """데이터 채널이 열릴 때까지 대기합니다.

        Returns:
            bool: ACTIVE가 되면 True, 타임아웃 또는 stop이면 False
        """
        opened = self._opened
        if opened is None:
            return self.is_active
        try:
            await asyncio.wait_for(opened.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return self.is_active

    # ------------------------------------------------------------
    # 종료
    # ------------------------------------------------------------

    async def stop(self) -> None:
        """세션을 종료하고 모든 핸들을 해제합니다.

        Cleanup Steps:
            1. 데이터 채널 닫기
            2. 모든 sender 트랙 중지
            3. 피어 연결 닫기
            4. 마이크, 오디오 싱크 정리
            5. 수신 이벤트 구독 종료

        Note:
            - 이미 IDLE이면 아무 작업도 하지 않음
            - 개별 단계 오류는 로그만 남기고 계속 진행, 항상 IDLE로 끝남
        """
        self._generation += 1
        channel, pc = self._channel, self._pc
        sink, microphone = self._sink, self._microphone
        inbound, opened = self._inbound, self._opened

        was_state = self._state
        self._state = SessionState.IDLE
        self._channel = None
        self._pc = None
        self._sink = None
        self._microphone = None
        self._inbound = None
        self._opened = None

        if was_state is SessionState.IDLE and pc is None and channel is None:
            return

        if channel is not None:
            try:
                channel.close()
            except Exception as e:
                logger.warning(f"[Realtime] 데이터 채널 닫기 오류: {e}")

        if pc is not None:
            for sender in pc.getSenders():
                if sender.track:
                    try:
                        sender.track.stop()
                    except Exception as e:
                        logger.warning(f"[Realtime] sender 트랙 중지 오류: {e}")
            try:
                await pc.close()
            except Exception as e:
                logger.warning(f"[Realtime] 피어 연결 닫기 오류: {e}")

        if microphone is not None:
            try:
                microphone.stop()
            except Exception as e:
                logger.warning(f"[Realtime] 마이크 정리 오류: {e}")

        if sink is not None:
            try:
                await sink.stop()
            except Exception as e:
                logger.warning(f"[Realtime] 오디오 싱크 정리 오류: {e}")

        if inbound is not None:
            inbound.put_nowait(None)
        if opened is not None:
            opened.set()

        logger.info(f"[Realtime] 세션 종료 (이전 상태: {was_state.value})")

    # ------------------------------------------------------------
    # 이벤트 송수신
    # ------------------------------------------------------------

    def send_event(self, message: Event) -> bool:
        """데이터 채널로 클라이언트 이벤트를 전송합니다.

        event_id가 없으면 생성하고, timestamp 없이 전송한 뒤
        표시용 timestamp를 붙여 히스토리 맨 앞에 기록합니다.

        Args:
            message (Event): 전송할 이벤트

        Returns:
            bool: 전송했으면 True, 채널이 없거나 열려있지 않으면 False
        """
        channel = self._channel
        if channel is None or channel.readyState != "open":
            channel_state = f"Channel state: {channel.readyState}" if channel is not None else "No channel"
            logger.error(
                f"[Realtime] 메시지 전송 실패 - 데이터 채널 없음 또는 닫힘 ({channel_state}): {message}"
            )
            self._record_diagnostic(f"send dropped ({channel_state}): {message.get('type')}")
            return False

        timestamp = display_timestamp()
        event = ensure_event_id(dict(message))

        # provider는 timestamp 필드를 받지 않음
        payload = {k: v for k, v in event.items() if k != "timestamp"}
        channel.send(json.dumps(payload))

        ensure_timestamp(event, timestamp)
        self.history.prepend(event)
        return True

    def send_text_message(self, text: str) -> bool:
        """사용자 텍스트 메시지와 응답 생성 요청을 연달아 전송합니다."""
        sent = self.send_event(user_text_message(text))
        requested = self.send_event(response_create())
        return sent and requested

    def _handle_incoming(self, data) -> None:
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        try:
            event = json.loads(data)
        except ValueError as e:
            logger.error(f"[Realtime] 잘못된 수신 메시지 무시: {e}: {data[:200]!r}")
            self._record_diagnostic(f"malformed inbound message dropped: {e}")
            return
        if not isinstance(event, dict):
            logger.error(f"[Realtime] 객체가 아닌 수신 메시지 무시: {data[:200]!r}")
            self._record_diagnostic("non-object inbound message dropped")
            return

        ensure_timestamp(event)
        ensure_event_id(event)
        self.history.prepend(event)
        if self._inbound is not None:
            self._inbound.put_nowait(event)

    async def events(self) -> AsyncIterator[Event]:
        """현재 세션의 수신 이벤트를 순서대로 내보냅니다.

        세션이 종료되면 반복이 끝납니다. 종료된 반복은 재시작할 수 없으며
        다음 세션은 새로 events()를 호출해야 합니다.
        """
        queue = self._inbound
        if queue is None:
            return
        while True:
            event = await queue.get()
            if event is None:
                return
            yield event

    def get_history(self) -> List[Event]:
        """히스토리 스냅샷 (최신순)."""
        return self.history.snapshot()
