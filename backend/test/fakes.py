"""Realtime 세션 테스트용 가짜 WebRTC/provider 객체.

aiortc의 RTCPeerConnection, RTCDataChannel, MediaStreamTrack과 같은 인터페이스를
흉내내어 실제 네트워크/오디오 장치 없이 세션 생명주기를 검증합니다.
"""

import asyncio
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

from modules.realtime import CredentialStore, RealtimeSession


class FakeEmitter:
    """pyee 스타일 on()/emit()."""

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event: str):
        def decorator(fn):
            self._handlers.setdefault(event, []).append(fn)
            return fn
        return decorator

    def emit(self, event: str, *args):
        results = [fn(*args) for fn in self._handlers.get(event, [])]
        return [r for r in results if asyncio.iscoroutine(r)]


class FakeTrack(FakeEmitter):
    def __init__(self, kind: str = "audio"):
        super().__init__()
        self.kind = kind
        self.readyState = "live"
        self.stop_calls = 0

    def stop(self):
        self.stop_calls += 1
        self.readyState = "ended"


class FakeDataChannel(FakeEmitter):
    def __init__(self, label: str):
        super().__init__()
        self.label = label
        self.readyState = "connecting"
        self.sent: List[str] = []

    def send(self, data: str):
        if self.readyState != "open":
            raise ConnectionError("channel not open")
        self.sent.append(data)

    def close(self):
        self.readyState = "closed"
        self.emit("close")

    # 테스트 헬퍼
    def open(self):
        self.readyState = "open"
        self.emit("open")

    def receive(self, data):
        self.emit("message", data)


class FakePeerConnection(FakeEmitter):
    def __init__(self):
        super().__init__()
        self.senders: List[SimpleNamespace] = []
        self.channels: List[FakeDataChannel] = []
        self.localDescription = None
        self.remoteDescription = None
        self.connectionState = "new"
        self.closed = False

    def addTrack(self, track):
        sender = SimpleNamespace(track=track)
        self.senders.append(sender)
        return sender

    def getSenders(self):
        return list(self.senders)

    def createDataChannel(self, label: str):
        channel = FakeDataChannel(label)
        self.channels.append(channel)
        return channel

    async def createOffer(self):
        return SimpleNamespace(sdp="v=0 offer", type="offer")

    async def setLocalDescription(self, description):
        self.localDescription = description

    async def setRemoteDescription(self, description):
        self.remoteDescription = description

    async def close(self):
        self.closed = True
        self.connectionState = "closed"


class FakeMicrophone:
    def __init__(self):
        self.track = FakeTrack("audio")
        self.stopped = False

    def stop(self):
        self.stopped = True
        if self.track.readyState != "ended":
            self.track.stop()


class FakeSink:
    def __init__(self):
        self.tracks: List[FakeTrack] = []
        self.started = False
        self.stopped = False

    def add_track(self, track):
        self.tracks.append(track)

    async def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True


class FakeProvider:
    """ProviderClient 대체. probe/negotiate 결과를 테스트에서 지정."""

    def __init__(self, probe_result: bool = True, answer: str = "v=0 answer"):
        self.probe_result = probe_result
        self.probe_error: Optional[BaseException] = None
        self.answer = answer
        self.negotiate_error: Optional[BaseException] = None
        self.negotiate_gate: Optional[asyncio.Event] = None
        self.negotiate_started = asyncio.Event()
        self.probe_calls: List[str] = []
        self.negotiate_calls: List[tuple] = []

    async def probe_credential(self, credential: str) -> bool:
        self.probe_calls.append(credential)
        if self.probe_error is not None:
            raise self.probe_error
        return self.probe_result

    async def negotiate(self, credential: str, offer_sdp: str) -> str:
        self.negotiate_calls.append((credential, offer_sdp))
        self.negotiate_started.set()
        if self.negotiate_gate is not None:
            await self.negotiate_gate.wait()
        if self.negotiate_error is not None:
            raise self.negotiate_error
        return self.answer


class Harness:
    """세션과 가짜 의존성 묶음."""

    def __init__(self, tmp_path, credential: Optional[str] = "sk-test"):
        self.provider = FakeProvider()
        self.store = CredentialStore(provider=self.provider, path=tmp_path / "credentials.json")
        if credential:
            self.store.set_credential(credential)
        self.microphones: List[FakeMicrophone] = []
        self.sinks: List[FakeSink] = []
        self.pcs: List[FakePeerConnection] = []
        self.microphone_error: Optional[BaseException] = None
        self.session = RealtimeSession(
            self.store,
            provider=self.provider,
            microphone_factory=self._microphone,
            sink_factory=self._sink,
            peer_connection_factory=self._pc,
        )

    def _microphone(self):
        if self.microphone_error is not None:
            raise self.microphone_error
        mic = FakeMicrophone()
        self.microphones.append(mic)
        return mic

    def _sink(self):
        sink = FakeSink()
        self.sinks.append(sink)
        return sink

    def _pc(self):
        pc = FakePeerConnection()
        self.pcs.append(pc)
        return pc

    @property
    def pc(self) -> FakePeerConnection:
        return self.pcs[-1]

    @property
    def channel(self) -> FakeDataChannel:
        return self.pc.channels[-1]

    async def start_active(self):
        await self.session.start()
        self.channel.open()
