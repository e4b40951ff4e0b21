"""
AI flows for the Wellness Bot service.

Each flow renders a prompt, asks the provider for a JSON answer following a
response schema and validates the answer with the matching pydantic model.

- assess_initial_mood: mood, confidence and transcription from a voice input
- assess_mood: mood, intensity and contributing factors from the conversation
- generate_chat_response: the persona's reply to the conversation
- generate_coping_strategies: a list of coping strategies for the user
- convert_audio_to_wav: webm to wav data URI conversion (see ``audio``)
"""

import logging
import re

from pydantic import ValidationError

from .audio import convert_audio_to_wav, parse_data_uri
from .errors import InvalidAudioError, ProviderError
from .models import InitialMoodAssessment, MoodAssessment
from .personas import Persona
from .provider import VOICE_SAFETY_SETTINGS, GeminiProvider

__all__ = [
    "assess_initial_mood",
    "assess_mood",
    "convert_audio_to_wav",
    "generate_chat_response",
    "generate_coping_strategies",
]

logger = logging.getLogger(__name__)

# "1. ", "2) " and similar prefixes the model adds to list items
_LIST_MARKER = re.compile(r"^\s*\d+[.)]\s*")

INITIAL_MOOD_PROMPT = """Analyze the user's voice input and determine their mood and transcribe the audio.

Respond with the mood, a confidence level (0-1), and a transcription of the audio. Mood should be a simple, single-word descriptor.
Confidence should reflect how sure you are of the mood assessment, given the input."""

INITIAL_MOOD_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "mood": {
            "type": "STRING",
            "description": "The assessed mood of the user (e.g., happy, sad, angry).",
        },
        "confidence": {
            "type": "NUMBER",
            "description": "Confidence of the mood assessment between 0 and 1.",
        },
        "transcription": {
            "type": "STRING",
            "description": "A transcription of the user's voice input.",
        },
    },
    "required": ["mood", "confidence", "transcription"],
}

MOOD_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "mood": {"type": "STRING", "description": "The assessed emotional state."},
        "intensity": {
            "type": "INTEGER",
            "description": "Intensity of the emotional state from 1 to 10.",
        },
        "factors": {
            "type": "STRING",
            "description": "Key factors contributing to the user's state.",
        },
    },
    "required": ["mood", "intensity", "factors"],
}

CHAT_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {"chatResponse": {"type": "STRING"}},
    "required": ["chatResponse"],
}

COPING_STRATEGIES_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "copingStrategies": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["copingStrategies"],
}


async def assess_initial_mood(
    provider: GeminiProvider, voice_input: str
) -> InitialMoodAssessment:
    """
    Assess the user's mood and transcribe a recorded voice input.

    Invalid input and provider failures are logged and reported as the
    ``unknown`` assessment instead of raising.
    """
    try:
        payload = parse_data_uri(voice_input)
    except InvalidAudioError:
        logger.error("Initial mood assessment: invalid voice input data URI")
        return InitialMoodAssessment.unknown()

    try:
        answer = await provider.generate(
            INITIAL_MOOD_PROMPT,
            INITIAL_MOOD_SCHEMA,
            media=(payload.mime_type, payload.base64),
            safety_settings=VOICE_SAFETY_SETTINGS,
        )
        return InitialMoodAssessment.model_validate(answer)
    except (ProviderError, ValidationError) as e:
        logger.error("Error during initial mood assessment: %s", e)
        return InitialMoodAssessment.unknown()


async def assess_mood(
    provider: GeminiProvider, persona: Persona, conversation_history: str
) -> MoodAssessment:
    """Assess the user's state from the conversation so far."""
    answer = await provider.generate(
        persona.render_mood(conversation_history), MOOD_SCHEMA
    )
    return _validate(MoodAssessment, answer)


async def generate_chat_response(
    provider: GeminiProvider,
    persona: Persona,
    conversation_history: str,
    current_mood: str,
) -> str:
    answer = await provider.generate(
        persona.render_chat(conversation_history, current_mood), CHAT_RESPONSE_SCHEMA
    )
    response = answer.get("chatResponse")
    if not isinstance(response, str) or not response.strip():
        raise ProviderError("AI provider returned an empty chat response")
    return response.strip()


async def generate_coping_strategies(
    provider: GeminiProvider,
    persona: Persona,
    conversation_history: str,
    current_mood: str,
) -> list[str]:
    answer = await provider.generate(
        persona.render_strategies(conversation_history, current_mood),
        COPING_STRATEGIES_SCHEMA,
    )
    strategies = answer.get("copingStrategies")
    if not isinstance(strategies, list):
        raise ProviderError("AI provider returned no coping strategies")
    cleaned = (_LIST_MARKER.sub("", str(s)).strip() for s in strategies)
    return [s for s in cleaned if s]


def _validate(model, answer):
    try:
        return model.model_validate(answer)
    except ValidationError as e:
        raise ProviderError(f"AI provider answer did not match schema: {e}") from e
