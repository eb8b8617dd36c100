"""마이크/오디오 싱크 래퍼 테스트.

aiortc MediaPlayer/MediaRecorder를 대체해 장치 없이 오류 변환을 검증합니다.
"""

from types import SimpleNamespace

import pytest

from modules.realtime import MediaAcquisitionError
from modules.realtime import media
from modules.realtime.config import MediaConfig
from fakes import FakeTrack


MIC = MediaConfig(MIC_DEVICE="default", MIC_FORMAT="pulse", AUDIO_SINK=None)


def test_open_microphone_wraps_player_error(monkeypatch):
    def broken_player(device, format=None):
        raise OSError("Permission denied")

    monkeypatch.setattr(media, "MediaPlayer", broken_player)

    with pytest.raises(MediaAcquisitionError) as exc_info:
        media.open_microphone(MIC)

    assert "Permission denied" in str(exc_info.value)


def test_open_microphone_requires_audio_stream(monkeypatch):
    monkeypatch.setattr(media, "MediaPlayer", lambda device, format=None: SimpleNamespace(audio=None))

    with pytest.raises(MediaAcquisitionError):
        media.open_microphone(MIC)


def test_open_microphone_returns_track(monkeypatch):
    track = FakeTrack("audio")
    monkeypatch.setattr(media, "MediaPlayer", lambda device, format=None: SimpleNamespace(audio=track))

    microphone = media.open_microphone(MIC)
    microphone.stop()
    microphone.stop()

    assert microphone.track is track
    assert track.stop_calls == 1


def test_create_audio_sink_wraps_recorder_error(monkeypatch):
    def broken_recorder(target):
        raise OSError("No such file or directory")

    monkeypatch.setattr(media, "MediaRecorder", broken_recorder)
    config = MediaConfig(MIC_DEVICE="default", MIC_FORMAT="pulse", AUDIO_SINK="/missing/out.wav")

    with pytest.raises(MediaAcquisitionError):
        media.create_audio_sink(config)


def test_create_audio_sink_without_target_uses_blackhole():
    sink = media.create_audio_sink(MIC)

    assert sink.target is None
    assert isinstance(sink._sink, media.MediaBlackhole)
