"""Microphone recorder with an injected input stream."""

import io
import sys
import threading
import types

import numpy as np
import pytest
import soundfile as sf

from touchbase.errors import PermissionDenied, UnsupportedEnvironment, ValidationError
from touchbase.playht.config import MAX_AUDIO_BYTES
from touchbase.playht.service import validate_audio
from touchbase.recording import VoiceRecorder, open_input_stream


class FakeStream:
    def __init__(self, callback, **kwargs):
        self.callback = callback
        self.kwargs = kwargs
        self.stopped = False
        self.closed = False

    def feed(self, frames: int, value: int = 1000) -> None:
        self.callback(np.full((frames, 1), value, dtype=np.int16), frames, None, None)

    def stop(self):
        self.stopped = True

    def close(self):
        self.closed = True


class FakeStreamFactory:
    def __init__(self):
        self.streams: list[FakeStream] = []

    def __call__(self, callback, **kwargs) -> FakeStream:
        stream = FakeStream(callback, **kwargs)
        self.streams.append(stream)
        return stream


@pytest.fixture
def factory():
    return FakeStreamFactory()


def test_records_wav_and_releases_stream(factory):
    recorder = VoiceRecorder(max_duration=30, sample_rate=16000, stream_factory=factory)

    recorder.start()
    assert recorder.is_recording
    stream = factory.streams[0]
    assert stream.kwargs == {"samplerate": 16000, "channels": 1, "dtype": "int16"}

    stream.feed(160)
    stream.feed(240)
    blob = recorder.stop()

    assert not recorder.is_recording
    assert stream.stopped and stream.closed
    assert blob.content_type == "audio/wav"
    assert blob.data.startswith(b"RIFF")

    audio, rate = sf.read(io.BytesIO(blob.data), dtype="int16")
    assert rate == 16000
    assert len(audio) == 400


def test_stop_is_idempotent(factory):
    recorder = VoiceRecorder(stream_factory=factory)
    recorder.start()
    first = recorder.stop()

    assert recorder.stop() is first


def test_stop_without_audio_yields_empty_sample(factory):
    recorder = VoiceRecorder(stream_factory=factory)
    recorder.start()
    blob = recorder.stop()

    assert blob.size == 0
    with pytest.raises(ValidationError, match="Audio file is empty"):
        validate_audio(blob, MAX_AUDIO_BYTES)


def test_stop_before_start_is_an_error(factory):
    with pytest.raises(RuntimeError):
        VoiceRecorder(stream_factory=factory).stop()


def test_auto_stops_at_max_duration(factory):
    stopped = threading.Event()
    blobs = []

    def on_auto_stop(blob):
        blobs.append(blob)
        stopped.set()

    recorder = VoiceRecorder(max_duration=0.05, stream_factory=factory, on_auto_stop=on_auto_stop)
    recorder.start()
    factory.streams[0].feed(100)

    assert stopped.wait(timeout=2)
    assert not recorder.is_recording
    assert factory.streams[0].closed
    assert blobs[0] is recorder.blob


def test_re_record_replaces_previous_sample(factory):
    recorder = VoiceRecorder(stream_factory=factory)
    recorder.start()
    factory.streams[0].feed(100)
    recorder.stop()

    recorder.start()
    assert recorder.blob is None
    factory.streams[1].feed(50)
    second = recorder.stop()

    audio, _ = sf.read(io.BytesIO(second.data), dtype="int16")
    assert len(audio) == 50


def test_context_manager_releases_on_exit(factory):
    with VoiceRecorder(stream_factory=factory) as recorder:
        recorder.start()

    assert not recorder.is_recording
    assert factory.streams[0].closed
    assert recorder.blob is None


def test_seconds_remaining_counts_down(factory):
    now = [100.0]
    recorder = VoiceRecorder(max_duration=30, stream_factory=factory, clock=lambda: now[0])

    assert recorder.seconds_remaining == 30
    recorder.start()
    now[0] = 112.5
    assert recorder.seconds_remaining == 17.5
    now[0] = 200.0
    assert recorder.seconds_remaining == 0
    recorder.close()


def test_permission_denied_leaves_nothing_open():
    def refuse(**kwargs):
        raise PermissionDenied("Microphone access denied or unavailable.")

    recorder = VoiceRecorder(stream_factory=refuse)

    with pytest.raises(PermissionDenied):
        recorder.start()
    assert not recorder.is_recording


def test_open_input_stream_without_backend(monkeypatch):
    monkeypatch.setitem(sys.modules, "sounddevice", None)

    with pytest.raises(UnsupportedEnvironment):
        open_input_stream(samplerate=16000, channels=1, dtype="int16", callback=None)


def test_open_input_stream_device_refused(monkeypatch):
    fake_sd = types.ModuleType("sounddevice")

    class PortAudioError(Exception):
        pass

    def input_stream(**kwargs):
        raise PortAudioError("Error querying device -1")

    fake_sd.PortAudioError = PortAudioError
    fake_sd.InputStream = input_stream
    monkeypatch.setitem(sys.modules, "sounddevice", fake_sd)

    with pytest.raises(PermissionDenied):
        open_input_stream(samplerate=16000, channels=1, dtype="int16", callback=None)
