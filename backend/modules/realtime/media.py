"""오디오 입출력 모듈.

마이크 입력 트랙 획득과 원격(모델) 오디오 출력 싱크를 제공합니다.
aiortc.contrib.media의 MediaPlayer/MediaRecorder/MediaBlackhole을 감쌉니다.
"""

import logging
from typing import Optional

from aiortc import MediaStreamTrack
from aiortc.contrib.media import MediaBlackhole, MediaPlayer, MediaRecorder

from .config import media_config, MediaConfig
from .errors import MediaAcquisitionError

logger = logging.getLogger(__name__)


class Microphone:
    """마이크 입력 핸들.

    Attributes:
        player (MediaPlayer): ffmpeg 장치 입력
        track (MediaStreamTrack): 로컬 오디오 트랙
    """

    def __init__(self, player: MediaPlayer):
        self.player = player
        self.track: MediaStreamTrack = player.audio

    def stop(self) -> None:
        """오디오 트랙을 중지합니다 (장치 해제)."""
        if self.track is not None and self.track.readyState != "ended":
            self.track.stop()


def open_microphone(config: Optional[MediaConfig] = None) -> Microphone:
    """설정된 장치에서 마이크 입력을 엽니다.

    Args:
        config (Optional[MediaConfig]): 장치/포맷 설정

    Returns:
        Microphone: 오디오 트랙을 가진 마이크 핸들

    Raises:
        MediaAcquisitionError: 장치를 열 수 없거나 오디오 트랙이 없는 경우
    """
    config = config or media_config
    logger.info(f"[Media] 마이크 열기: {config.MIC_FORMAT}:{config.MIC_DEVICE}")
    try:
        player = MediaPlayer(config.MIC_DEVICE, format=config.MIC_FORMAT)
    except Exception as e:
        raise MediaAcquisitionError(f"Microphone unavailable: {e}") from e

    if player.audio is None:
        raise MediaAcquisitionError("Microphone unavailable: device has no audio stream")
    return Microphone(player)


class AudioSink:
    """원격 오디오 트랙 재생(기록) 싱크.

    AUDIO_SINK가 설정되면 파일로 기록하고, 아니면 프레임을 소비만 합니다.
    프레임을 소비하지 않으면 aiortc 수신 버퍼가 계속 쌓이므로 항상 싱크가 필요합니다.
    """

    def __init__(self, target: Optional[str] = None):
        self.target = target
        self._sink = MediaRecorder(target) if target else MediaBlackhole()
        self._started = False

    def add_track(self, track: MediaStreamTrack) -> None:
        """원격 오디오 트랙을 싱크에 연결합니다."""
        logger.info(f"[Media] 원격 {track.kind} 트랙 연결 -> {self.target or 'blackhole'}")
        self._sink.addTrack(track)

    async def start(self) -> None:
        if not self._started:
            await self._sink.start()
            self._started = True

    async def stop(self) -> None:
        if self._started:
            self._started = False
            await self._sink.stop()


def create_audio_sink(config: Optional[MediaConfig] = None) -> AudioSink:
    config = config or media_config
    try:
        return AudioSink(config.AUDIO_SINK)
    except Exception as e:
        raise MediaAcquisitionError(f"Audio output unavailable: {e}") from e
