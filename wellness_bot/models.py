"""
Shared data models for the Wellness Bot service.

This module defines the core domain models used across multiple layers
of the application (AI flows, session store, CLI, API).
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]


class Message(BaseModel):
    """A single chat message in the session transcript."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Role = Field(..., description="Who sent the message")
    content: str = Field(..., description="The message text")
    timestamp: datetime = Field(default_factory=datetime.now)


class MoodEntry(BaseModel):
    """A manually logged mood level."""

    date: str = Field(..., description="ISO calendar date of the entry")
    mood: int = Field(..., ge=0, le=10, description="Mood level from 0 to 10")


class Mood(BaseModel):
    """Represents an assessed mood state."""

    value: str = Field(..., description="The current mood value")
    timestamp: float | None = Field(
        None, description="Unix timestamp when mood was set"
    )
    intensity: int | None = Field(None, ge=1, le=10)
    confidence: float | None = Field(None, ge=0, le=1)
    factors: str | None = None


class InitialMoodAssessment(BaseModel):
    """Mood and transcription derived from a single voice recording."""

    mood: str = Field(..., description="Single-word mood descriptor")
    confidence: float = Field(..., ge=0, le=1)
    transcription: str = ""

    @classmethod
    def unknown(cls) -> "InitialMoodAssessment":
        return cls(mood="unknown", confidence=0, transcription="")


class MoodAssessment(BaseModel):
    """Mood assessed from the whole conversation."""

    mood: str
    intensity: int = Field(..., ge=1, le=10)
    factors: str


class SpeechHint(BaseModel):
    """Parameters a client passes to its speech synthesis API."""

    text: str
    rate: float = 1.0
    pitch: float = 1.3
    volume: float = 1.0
