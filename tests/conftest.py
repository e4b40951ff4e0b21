"""
Shared fixtures: a scripted stand-in for the AI provider and wav builders.
"""

import io
import wave

import numpy as np
import pytest

from wellness_bot.errors import ProviderError


def _kind(schema: dict) -> str:
    properties = schema["properties"]
    if "chatResponse" in properties:
        return "chat"
    if "copingStrategies" in properties:
        return "strategies"
    if "transcription" in properties:
        return "voice"
    return "mood"


class FakeProvider:
    """Answers each flow with a canned JSON object and records the calls."""

    def __init__(self) -> None:
        self.answers = {
            "chat": {"chatResponse": "I'm here for you."},
            "strategies": {
                "copingStrategies": ["Take three slow breaths.", "Text a friend."]
            },
            "voice": {
                "mood": "anxious",
                "confidence": 0.8,
                "transcription": "I'm worried about tomorrow.",
            },
            "mood": {"mood": "calm", "intensity": 4, "factors": "Talked it through."},
        }
        self.failures: set[str] = set()
        self.calls: list[dict] = []

    async def generate(self, prompt, response_schema, media=None, safety_settings=None):
        kind = _kind(response_schema)
        self.calls.append(
            {
                "kind": kind,
                "prompt": prompt,
                "media": media,
                "safety_settings": safety_settings,
            }
        )
        if kind in self.failures:
            raise ProviderError(f"{kind} unavailable", status_code=503)
        return self.answers[kind]

    def prompts(self, kind: str) -> list[str]:
        return [call["prompt"] for call in self.calls if call["kind"] == kind]


DAY = 24 * 60 * 60


class FakeClock:
    """Settable replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_wav(samples: np.ndarray, sample_rate: int = 16000, channels: int = 1) -> bytes:
    """Encode float samples in [-1, 1] as 16-bit PCM wav."""
    pcm = (np.clip(samples, -1, 1) * 32767).astype("<i2")
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm.tobytes())
    return buffer.getvalue()


def tone(seconds: float, sample_rate: int = 16000, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(int(seconds * sample_rate)) / sample_rate
    return (amplitude * np.sin(2 * np.pi * 220 * t)).astype(np.float32)


def silence(seconds: float, sample_rate: int = 16000) -> np.ndarray:
    return np.zeros(int(seconds * sample_rate), dtype=np.float32)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()
