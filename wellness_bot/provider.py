"""
Client for the hosted generative-AI provider.

Only the ``generateContent`` endpoint of the Gemini REST API is used. Every
call asks for a JSON answer constrained by a response schema, which the
flows then validate with their pydantic models.
"""

import json
import logging
from types import TracebackType
from typing import Any

import httpx

from .config import Settings
from .errors import ProviderError

logger = logging.getLogger(__name__)

# Safety thresholds used for voice-driven requests.
VOICE_SAFETY_SETTINGS: list[dict[str, str]] = [
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_ONLY_HIGH"},
    {
        "category": "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "threshold": "BLOCK_MEDIUM_AND_ABOVE",
    },
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


class GeminiProvider:
    """
    Async wrapper around the Gemini ``generateContent`` endpoint.

    The provider owns its ``httpx.AsyncClient`` unless one is injected, in
    which case the caller is responsible for closing it.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "GeminiProvider":
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            client=client,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    async def __aenter__(self) -> "GeminiProvider":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def generate(
        self,
        prompt: str,
        response_schema: dict[str, Any],
        media: tuple[str, str] | None = None,
        safety_settings: list[dict[str, str]] | None = None,
    ) -> dict[str, Any]:
        """
        Run a prompt and return the decoded JSON answer.

        Args:
            prompt: The rendered prompt text
            response_schema: Schema the JSON answer must follow
            media: Optional ``(mime_type, base64_data)`` inline attachment
            safety_settings: Optional per-request safety thresholds

        Returns:
            The JSON object produced by the model

        Raises:
            ProviderError: If the request fails or the answer is unusable
        """
        if not self.api_key:
            raise ProviderError("No API key configured for the AI provider")

        parts: list[dict[str, Any]] = [{"text": prompt}]
        if media is not None:
            mime_type, data = media
            parts.append({"inline_data": {"mime_type": mime_type, "data": data}})

        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }
        if safety_settings:
            body["safetySettings"] = safety_settings

        try:
            response = await self._client.post(
                self.endpoint,
                json=body,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Request to AI provider failed: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(
                f"AI provider returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(f"AI provider returned a non-JSON body: {e}") from e

        text = _candidate_text(payload)
        try:
            result = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProviderError(f"AI provider returned invalid JSON: {e}") from e

        if not isinstance(result, dict):
            raise ProviderError("AI provider returned a non-object JSON answer")

        logger.debug("Provider answer for %s: %s", self.model, result)
        return result


def _candidate_text(payload: Any) -> str:
    """Extract the text of the first candidate of a generateContent reply."""
    if not isinstance(payload, dict):
        raise ProviderError("AI provider returned a malformed reply")

    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        feedback = payload.get("promptFeedback") or {}
        reason = "no candidates"
        if isinstance(feedback, dict):
            reason = feedback.get("blockReason") or reason
        raise ProviderError(f"AI provider returned no answer ({reason})")

    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise ProviderError("AI provider returned a malformed candidate")

    content = candidate.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        parts = []
    text = "".join(
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )
    if not text.strip():
        reason = candidate.get("finishReason") or "empty answer"
        raise ProviderError(f"AI provider returned no text ({reason})")
    return text
