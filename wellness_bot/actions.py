"""
Server actions invoked for each chat turn.

Actions format the transcript for the prompts and run the AI flows through
the retry wrapper.
"""

from collections.abc import Iterable

from . import flows
from .config import Settings
from .models import InitialMoodAssessment, Message, MoodAssessment
from .personas import Persona, get_persona
from .provider import GeminiProvider
from .retry import run_with_retry

PLACEHOLDER_TRANSCRIPTION = "User expressed feelings through voice."


class VoiceMood(InitialMoodAssessment):
    """Initial mood assessment plus the text used for the transcript."""

    text: str


def format_history(messages: Iterable[Message]) -> str:
    """Render messages as ``role: content`` lines."""
    return "\n".join(f"{m.role}: {m.content}" for m in messages)


class Actions:
    """Retrying entry points into the AI flows for one persona."""

    def __init__(
        self,
        provider: GeminiProvider,
        persona: Persona,
        retries: int = 3,
        delay: float = 1.0,
    ) -> None:
        self.provider = provider
        self.persona = persona
        self.retries = retries
        self.delay = delay

    @classmethod
    def from_settings(cls, provider: GeminiProvider, settings: Settings) -> "Actions":
        return cls(
            provider,
            get_persona(settings.persona),
            retries=settings.retry_attempts,
            delay=settings.retry_delay,
        )

    async def _retry(self, fn):
        return await run_with_retry(fn, retries=self.retries, delay=self.delay)

    async def get_ai_response(self, history: list[Message], current_mood: str) -> str:
        conversation = format_history(history)
        return await self._retry(
            lambda: flows.generate_chat_response(
                self.provider, self.persona, conversation, current_mood
            )
        )

    async def get_coping_strategies(
        self, history: list[Message], current_mood: str
    ) -> list[str]:
        conversation = format_history(history)
        return await self._retry(
            lambda: flows.generate_coping_strategies(
                self.provider, self.persona, conversation, current_mood
            )
        )

    async def get_initial_mood(self, voice_input: str) -> VoiceMood:
        assessment = await self._retry(
            lambda: flows.assess_initial_mood(self.provider, voice_input)
        )
        text = assessment.transcription.strip() or PLACEHOLDER_TRANSCRIPTION
        return VoiceMood(**assessment.model_dump(), text=text)

    async def get_contextual_mood(self, history: list[Message]) -> MoodAssessment:
        conversation = format_history(history)
        return await self._retry(
            lambda: flows.assess_mood(self.provider, self.persona, conversation)
        )


def format_strategies(strategies: list[str]) -> str:
    lines = "\n".join(f"{i}. {s}" for i, s in enumerate(strategies, start=1))
    return f"Here are a few ideas that might help:\n\n{lines}"
