"""
Voice-activity detection over wav audio.

A simple energy detector: frames louder than a dBFS threshold count as
speech. A speech segment ends after ``pause_ms`` of consecutive quiet frames
and is discarded when it holds fewer than ``min_speech_frames`` speech
frames, so clicks and short noises are ignored.
"""

import io
import wave
from dataclasses import dataclass

import numpy as np

from .errors import InvalidAudioError

DEFAULT_FRAME_MS = 30
DEFAULT_THRESHOLD_DB = -40.0
DEFAULT_PAUSE_MS = 1000
DEFAULT_MIN_SPEECH_FRAMES = 3

_DTYPES = {1: np.uint8, 2: np.int16, 4: np.int32}


@dataclass(frozen=True)
class SpeechSegment:
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


def read_wav(data: bytes) -> tuple[np.ndarray, int]:
    """Decode PCM wav bytes into mono float32 samples in [-1, 1]."""
    try:
        with wave.open(io.BytesIO(data), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            rate = wav.getframerate()
            frames = wav.readframes(wav.getnframes())
    except (wave.Error, EOFError) as e:
        raise InvalidAudioError(f"Unreadable wav data: {e}") from e

    if width not in _DTYPES:
        raise InvalidAudioError(f"Unsupported sample width: {width * 8} bits")

    if channels < 1:
        raise InvalidAudioError("Wav data declares no channels")

    # truncated recordings can end mid-frame
    frame_size = width * channels
    frames = frames[: len(frames) - len(frames) % frame_size]
    raw = np.frombuffer(frames, dtype=_DTYPES[width])
    if width == 1:
        samples = (raw.astype(np.float32) - 128.0) / 128.0
    else:
        samples = raw.astype(np.float32) / float(2 ** (8 * width - 1))

    if channels > 1:
        samples = samples.reshape(-1, channels).mean(axis=1)
    return samples.astype(np.float32), rate


def _frame_levels(samples: np.ndarray, frame_len: int) -> np.ndarray:
    count = len(samples) // frame_len
    if count == 0:
        return np.empty(0, dtype=np.float32)
    frames = samples[: count * frame_len].reshape(count, frame_len)
    rms = np.sqrt(np.mean(np.square(frames, dtype=np.float64), axis=1))
    return 20 * np.log10(np.maximum(rms, 1e-10))


def detect_speech(
    samples: np.ndarray,
    sample_rate: int,
    frame_ms: int = DEFAULT_FRAME_MS,
    threshold_db: float = DEFAULT_THRESHOLD_DB,
    pause_ms: int = DEFAULT_PAUSE_MS,
    min_speech_frames: int = DEFAULT_MIN_SPEECH_FRAMES,
) -> list[SpeechSegment]:
    """Return the speech segments found in ``samples`` (times in seconds)."""
    frame_len = max(1, int(sample_rate * frame_ms / 1000))
    levels = _frame_levels(samples, frame_len)
    pause_frames = max(1, pause_ms // frame_ms)
    frame_s = frame_len / sample_rate

    segments: list[SpeechSegment] = []
    start: int | None = None
    last_speech = 0
    speech_frames = 0

    def close() -> None:
        if start is not None and speech_frames >= min_speech_frames:
            segments.append(
                SpeechSegment(start=start * frame_s, end=(last_speech + 1) * frame_s)
            )

    for index, level in enumerate(levels):
        if level > threshold_db:
            if start is None:
                start = index
                speech_frames = 0
            last_speech = index
            speech_frames += 1
        elif start is not None and index - last_speech >= pause_frames:
            close()
            start = None

    close()
    return segments


def contains_speech(wav_bytes: bytes, **options) -> bool:
    samples, rate = read_wav(wav_bytes)
    return bool(detect_speech(samples, rate, **options))
