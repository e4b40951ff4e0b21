"""
Exception hierarchy for the Wellness Bot service.
"""


class WellnessBotError(Exception):
    """Base class for errors raised by this package."""


class ProviderError(WellnessBotError):
    """The generative-AI provider could not produce a usable answer."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidAudioError(WellnessBotError):
    """Audio input was malformed (bad data URI, unsupported wav)."""


class AudioConversionError(WellnessBotError):
    """Transcoding through ffmpeg failed."""
