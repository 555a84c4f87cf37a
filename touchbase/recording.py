"""
Voice sample capture from the local microphone.

The recorder owns the input stream for as long as it is recording and
releases it on stop, on error, and on close. Recording stops on its own
once ``max_duration`` seconds have elapsed.
"""

import io
import threading
import time
from typing import Any, Callable

import numpy as np
import soundfile as sf
import structlog

from touchbase.errors import PermissionDenied, UnsupportedEnvironment
from touchbase.models import AudioBlob

logger = structlog.get_logger()

DEFAULT_MAX_DURATION_SECONDS = 30
DEFAULT_SAMPLE_RATE = 22050  # Hz
DEFAULT_CHANNELS = 1
DTYPE = "int16"

StreamFactory = Callable[..., Any]


def open_input_stream(**kwargs: Any) -> Any:
    """Open and start a sounddevice input stream."""
    try:
        import sounddevice as sd
    except (ImportError, OSError) as e:
        raise UnsupportedEnvironment(
            "Audio recording is not supported on this machine.",
            details=str(e),
        ) from e

    try:
        stream = sd.InputStream(**kwargs)
        stream.start()
    except (sd.PortAudioError, ValueError) as e:
        raise PermissionDenied(
            "Microphone access denied or unavailable.",
            details=str(e),
        ) from e
    return stream


def encode_wav(frames: list[np.ndarray], sample_rate: int) -> bytes:
    """Encode captured frames as 16-bit WAV; no samples encodes to no bytes."""
    if not frames:
        return b""
    audio = np.concatenate(frames)
    if len(audio) == 0:
        return b""

    buffer = io.BytesIO()
    sf.write(buffer, audio, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


class VoiceRecorder:
    """
    Bounded-duration microphone recorder.

    Holds at most one finished recording in ``blob``; starting again
    discards it.
    """

    def __init__(
        self,
        max_duration: float = DEFAULT_MAX_DURATION_SECONDS,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = DEFAULT_CHANNELS,
        stream_factory: StreamFactory = open_input_stream,
        on_auto_stop: Callable[[AudioBlob], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_duration = max_duration
        self.sample_rate = sample_rate
        self.channels = channels
        self.stream_factory = stream_factory
        self.on_auto_stop = on_auto_stop
        self.clock = clock

        self.blob: AudioBlob | None = None
        self._stream: Any = None
        self._frames: list[np.ndarray] = []
        self._timer: threading.Timer | None = None
        self._started_at: float | None = None
        self._lock = threading.Lock()
        self._stop_lock = threading.RLock()

    def __enter__(self) -> "VoiceRecorder":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @property
    def seconds_remaining(self) -> float:
        if self._started_at is None:
            return float(self.max_duration)
        elapsed = self.clock() - self._started_at
        return max(0.0, self.max_duration - elapsed)

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug("Input stream status", status=str(status))
        with self._lock:
            if self._stream is not None:
                self._frames.append(indata.copy())

    def start(self) -> None:
        """
        Acquire the microphone and begin recording.

        Raises:
            UnsupportedEnvironment: If no capture backend is installed
            PermissionDenied: If the input device is unavailable or refused
        """
        if self.is_recording:
            self._release()
        self.blob = None

        with self._lock:
            self._frames = []

        stream = self.stream_factory(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype=DTYPE,
            callback=self._callback,
        )

        with self._lock:
            self._stream = stream
        self._started_at = self.clock()

        self._timer = threading.Timer(self.max_duration, self._auto_stop)
        self._timer.daemon = True
        self._timer.start()

        logger.info("Recording started", max_duration=self.max_duration)

    def stop(self) -> AudioBlob:
        """Stop recording, release the microphone and return the sample."""
        with self._stop_lock:
            if not self.is_recording:
                if self.blob is None:
                    raise RuntimeError("Recorder was never started")
                return self.blob

            with self._lock:
                frames = self._frames
                self._frames = []
            self._release()

            self.blob = AudioBlob(
                data=encode_wav(frames, self.sample_rate),
                content_type="audio/wav",
                filename="recording.wav",
            )
        logger.info("Recording stopped", size=self.blob.size)
        return self.blob

    def discard(self) -> None:
        self.blob = None

    def close(self) -> None:
        """Release the microphone without keeping what was captured."""
        if self.is_recording:
            self._release()
            with self._lock:
                self._frames = []

    def _auto_stop(self) -> None:
        with self._stop_lock:
            if not self.is_recording:
                return
            logger.info("Recording reached maximum duration")
            blob = self.stop()
        if self.on_auto_stop:
            self.on_auto_stop(blob)

    def _release(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        with self._lock:
            stream, self._stream = self._stream, None
        self._started_at = None

        if stream is not None:
            try:
                stream.stop()
            finally:
                stream.close()
