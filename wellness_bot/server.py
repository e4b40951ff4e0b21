"""
FastAPI server for the Wellness Bot service.

This module implements the HTTP API used by the voice client: chat turns
(voice or text), coping strategies, mood assessment, logging and streaming,
the dashboard and audio conversion. Replies carry a speech hint the client
hands to its own speech synthesis.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from .actions import Actions, format_strategies
from .audio import EMPTY_WAV_DATA_URI, convert_audio_to_wav, parse_data_uri
from .config import Settings
from .dashboard import Dashboard, build_dashboard
from .errors import InvalidAudioError, ProviderError
from .models import Message, Mood, MoodEntry, SpeechHint
from .provider import GeminiProvider
from .safety import SAFETY_NOTICE, needs_safety_alert
from .store import SessionStore
from .vad import contains_speech

logger = logging.getLogger(__name__)

VOICE_PLACEHOLDER = "[Voice Input]"
CHAT_ERROR_REPLY = "Sorry, I had trouble understanding that. Could you try again?"
STRATEGIES_ERROR_REPLY = (
    "I'm having trouble coming up with strategies right now. Let's talk more first."
)
NO_SPEECH_REPLY = "I didn't quite catch that. Could you say it again?"

AudioConverter = Callable[[str], Awaitable[str]]


# API Request/Response Schemas
class VoiceTurn(BaseModel):
    """Payload for a recorded voice turn."""

    audio: str = Field(
        ..., description="Recording as a base64 data URI (data:audio/webm;base64,...)"
    )


class TextTurn(BaseModel):
    """Payload for a typed chat turn."""

    text: str = Field(..., min_length=1, description="The user's message")


class ChatTurnResponse(BaseModel):
    """Response model for chat turns."""

    transcription: str | None = None
    mood: Mood
    reply: str
    speech: SpeechHint
    safety_alert: bool = False
    safety_notice: dict[str, str] | None = None


class StrategiesResponse(BaseModel):
    strategies: list[str]
    reply: str
    speech: SpeechHint


class PersonaResponse(BaseModel):
    key: str
    name: str
    greeting: SpeechHint


class MoodUpdate(BaseModel):
    """Payload for mood update requests."""

    mood: str = Field(..., description="The new mood value to set")


class MoodResponse(BaseModel):
    """Response model for mood endpoints."""

    mood: Mood | None = Field(..., description="The current mood state")


class MoodLogRequest(BaseModel):
    mood: int = Field(5, ge=0, le=10, description="Mood level from 0 to 10")


class MoodLogResponse(BaseModel):
    entry: MoodEntry
    message: str


class AudioConversion(BaseModel):
    wav_data_uri: str


def create_app(
    session_store: SessionStore,
    actions: Actions | None = None,
    settings: Settings | None = None,
    convert_audio: AudioConverter | None = None,
) -> FastAPI:
    """
    Create a FastAPI application around a session store.

    Args:
        session_store: The SessionStore instance to use for the application
        actions: AI actions to use; built from ``settings`` when omitted
        settings: Service settings; read from the environment when omitted
        convert_audio: Data URI to wav data URI converter (ffmpeg by default)

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings.from_env()

    owned_provider: GeminiProvider | None = None
    if actions is None:
        owned_provider = GeminiProvider.from_settings(settings)
        actions = Actions.from_settings(owned_provider, settings)

    if convert_audio is None:
        convert_audio = partial(convert_audio_to_wav, ffmpeg=settings.ffmpeg_binary)

    persona = actions.persona

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        logger.info("Serving persona %s with model %s", persona.name, settings.model)
        yield
        if owned_provider is not None:
            await owned_provider.aclose()

    app = FastAPI(
        title="Wellness Bot",
        description="Voice-first wellness chatbot backed by a hosted AI provider",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def _reply(content: str) -> SpeechHint:
        await session_store.add_message("assistant", content)
        return SpeechHint(text=content)

    async def _chat_reply(mood: str) -> SpeechHint:
        history = await session_store.messages()
        try:
            reply = await actions.get_ai_response(history, mood)
        except ProviderError as e:
            logger.error("Chat response failed: %s", e)
            reply = CHAT_ERROR_REPLY
        return await _reply(reply)

    def _has_speech(wav_data_uri: str) -> bool:
        try:
            return contains_speech(parse_data_uri(wav_data_uri).data)
        except InvalidAudioError as e:
            logger.warning("Skipping speech detection: %s", e)
            return True

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "wellness-bot"}

    @app.get("/persona")
    async def get_persona() -> PersonaResponse:
        """The active persona and its spoken greeting."""
        return PersonaResponse(
            key=persona.key, name=persona.name, greeting=SpeechHint(text=persona.greeting)
        )

    # MARK: - Chat

    @app.post("/chat/voice")
    async def chat_voice(turn: VoiceTurn) -> ChatTurnResponse:
        """
        Handle a recorded voice turn.

        The recording is converted to wav, checked for speech, assessed for
        mood and transcribed, and answered in the persona's voice.
        """
        voice_input = turn.audio
        wav_data_uri = await convert_audio(turn.audio)
        if wav_data_uri != EMPTY_WAV_DATA_URI:
            if settings.speech_detection and not _has_speech(wav_data_uri):
                current = await session_store.read()
                return ChatTurnResponse(
                    mood=current,
                    reply=NO_SPEECH_REPLY,
                    speech=SpeechHint(text=NO_SPEECH_REPLY),
                )
            voice_input = wav_data_uri

        voice = await actions.get_initial_mood(voice_input)
        await session_store.add_message("user", voice.transcription or VOICE_PLACEHOLDER)
        alert = needs_safety_alert(voice.text)

        mood = await session_store.update(voice.mood, confidence=voice.confidence)
        speech = await _chat_reply(voice.mood)

        return ChatTurnResponse(
            transcription=voice.transcription,
            mood=mood,
            reply=speech.text,
            speech=speech,
            safety_alert=alert,
            safety_notice=SAFETY_NOTICE if alert else None,
        )

    @app.post("/chat/text")
    async def chat_text(turn: TextTurn) -> ChatTurnResponse:
        """Handle a typed chat turn."""
        await session_store.add_message("user", turn.text)
        alert = needs_safety_alert(turn.text)

        history = await session_store.messages()
        try:
            assessment = await actions.get_contextual_mood(history)
            mood = await session_store.update(
                assessment.mood,
                intensity=assessment.intensity,
                factors=assessment.factors,
            )
        except ProviderError as e:
            logger.error("Contextual mood assessment failed: %s", e)
            mood = await session_store.read()

        speech = await _chat_reply(mood.value)
        return ChatTurnResponse(
            mood=mood,
            reply=speech.text,
            speech=speech,
            safety_alert=alert,
            safety_notice=SAFETY_NOTICE if alert else None,
        )

    @app.post("/chat/strategies")
    async def chat_strategies() -> StrategiesResponse:
        """Generate coping strategies for the conversation so far."""
        history = await session_store.messages()
        current = await session_store.read()
        try:
            strategies = await actions.get_coping_strategies(history, current.value)
        except ProviderError as e:
            logger.error("Coping strategies failed: %s", e)
            speech = await _reply(STRATEGIES_ERROR_REPLY)
            return StrategiesResponse(strategies=[], reply=speech.text, speech=speech)

        await session_store.record_strategies(len(strategies))
        speech = await _reply(format_strategies(strategies))
        return StrategiesResponse(strategies=strategies, reply=speech.text, speech=speech)

    @app.get("/chat/messages")
    async def chat_messages() -> list[Message]:
        return await session_store.messages()

    # MARK: - Mood

    @app.get("/mood")
    async def get_mood() -> MoodResponse:
        """Get the current mood state (defaults to "neutral")."""
        current_mood = await session_store.read()
        return MoodResponse(mood=current_mood)

    @app.put("/mood")
    async def update_mood(mood_update: MoodUpdate) -> MoodResponse:
        """Set the current mood and notify all subscribers."""
        updated_mood = await session_store.update(mood_value=mood_update.mood)
        return MoodResponse(mood=updated_mood)

    @app.post("/mood/assess")
    async def assess_mood() -> MoodResponse:
        """Re-assess the mood from the whole conversation."""
        history = await session_store.messages()
        try:
            assessment = await actions.get_contextual_mood(history)
        except ProviderError as e:
            raise HTTPException(status_code=502, detail=f"Mood assessment failed: {e}")
        updated_mood = await session_store.update(
            assessment.mood, intensity=assessment.intensity, factors=assessment.factors
        )
        return MoodResponse(mood=updated_mood)

    @app.post("/mood/log")
    async def log_mood(request: MoodLogRequest) -> MoodLogResponse:
        entry = await session_store.log_mood(request.mood)
        return MoodLogResponse(
            entry=entry, message=f"Your mood level of {entry.mood} has been saved."
        )

    @app.get("/mood/log")
    async def get_mood_log() -> list[MoodEntry]:
        return await session_store.mood_log()

    @app.get("/mood/stream")
    async def stream_mood() -> StreamingResponse:
        """
        Stream mood updates via Server-Sent Events.

        The current mood is sent immediately upon connection, followed by
        every later update.
        """

        async def event_generator() -> AsyncGenerator[str, None]:
            """Generate SSE events for mood updates."""
            try:
                async with session_store.stream() as mood_stream:
                    async for mood in mood_stream:
                        data = json.dumps(mood.model_dump())
                        yield f"data: {data}\n\n"
            except asyncio.CancelledError:
                # Client disconnected
                pass
            except Exception as e:
                error_data = json.dumps({"error": str(e)})
                yield f"event: error\ndata: {error_data}\n\n"

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
            },
        )

    # MARK: - Dashboard & audio

    @app.get("/dashboard")
    async def dashboard() -> Dashboard:
        return await build_dashboard(session_store)

    @app.post("/audio/wav")
    async def audio_wav(turn: VoiceTurn) -> AudioConversion:
        """Convert a recorded data URI to a wav data URI."""
        return AudioConversion(wav_data_uri=await convert_audio(turn.audio))

    return app


def get_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the default application from environment settings.

    Used as a uvicorn app factory so importing this module reads no
    configuration.
    """
    return create_app(SessionStore(), settings=settings or Settings.from_env())


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        partial(get_app, settings),
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
