"""
Audio helpers: data URIs and webm to wav transcoding.

Browsers record ``audio/webm`` which the AI provider does not accept, so
recordings are piped through ``ffmpeg`` into 16 kHz mono PCM wav first.
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass

from .errors import AudioConversionError, InvalidAudioError

logger = logging.getLogger(__name__)

EMPTY_WAV_DATA_URI = "data:audio/wav;base64,"

WAV_SAMPLE_RATE = 16000


@dataclass(frozen=True)
class AudioPayload:
    mime_type: str
    data: bytes

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


def parse_data_uri(uri: str) -> AudioPayload:
    """
    Decode a ``data:<mime>;base64,<payload>`` URI.

    Raises:
        InvalidAudioError: If the URI is malformed or the payload is empty
    """
    if not uri or not uri.startswith("data:"):
        raise InvalidAudioError("Invalid data URI format.")

    header, sep, payload = uri[len("data:") :].partition(",")
    if not sep or not payload:
        raise InvalidAudioError("Invalid data URI format.")

    params = header.split(";")
    if "base64" not in params[1:]:
        raise InvalidAudioError("Data URI is not base64 encoded.")

    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise InvalidAudioError(f"Invalid base64 payload: {e}") from e

    mime_type = params[0] or "application/octet-stream"
    return AudioPayload(mime_type=mime_type, data=data)


def to_data_uri(mime_type: str, data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


# MIME subtypes whose ffmpeg demuxer name differs.
_FFMPEG_FORMATS = {"mpeg": "mp3", "x-wav": "wav", "wave": "wav", "x-m4a": "mp4"}


def _input_format(mime_type: str) -> str:
    # "audio/webm;codecs=opus" -> "webm"
    subtype = mime_type.split("/", 1)[-1].split(";", 1)[0] or "webm"
    return _FFMPEG_FORMATS.get(subtype, subtype)


async def convert_to_wav(
    data: bytes, input_format: str = "webm", ffmpeg: str = "ffmpeg"
) -> bytes:
    """
    Transcode audio bytes to 16 kHz mono 16-bit wav with ffmpeg.

    Raises:
        AudioConversionError: If ffmpeg is missing, fails or outputs nothing
    """
    args = [
        ffmpeg,
        "-hide_banner",
        "-loglevel",
        "error",
        "-f",
        input_format,
        "-i",
        "pipe:0",
        "-ar",
        str(WAV_SAMPLE_RATE),
        "-ac",
        "1",
        "-acodec",
        "pcm_s16le",
        "-f",
        "wav",
        "pipe:1",
    ]
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise AudioConversionError(f"Could not start ffmpeg: {e}") from e

    stdout, stderr = await process.communicate(data)
    if process.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise AudioConversionError(
            f"An error occurred during ffmpeg processing: {message or process.returncode}"
        )
    if not stdout:
        raise AudioConversionError("ffmpeg produced no output")
    return stdout


async def convert_audio_to_wav(voice_input: str, ffmpeg: str = "ffmpeg") -> str:
    """
    Convert a recorded audio data URI into a wav data URI.

    Never raises: on any failure the error is logged and an empty wav data
    URI is returned so the calling flow keeps working.
    """
    try:
        payload = parse_data_uri(voice_input)
        wav = await convert_to_wav(
            payload.data, input_format=_input_format(payload.mime_type), ffmpeg=ffmpeg
        )
    except (InvalidAudioError, AudioConversionError) as e:
        logger.error("Error converting audio to WAV: %s", e)
        return EMPTY_WAV_DATA_URI
    return to_data_uri("audio/wav", wav)
