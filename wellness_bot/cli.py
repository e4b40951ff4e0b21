"""
Command-line interface tools for the Wellness Bot service.
"""

import asyncio
import json
import mimetypes
from collections.abc import Coroutine
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx
import typer
from httpx_sse import ServerSentEvent, aconnect_sse

from .audio import to_data_uri
from .models import Mood

DEFAULT_BASE_URL = "http://localhost:8000"

# Voice turns wait on several provider calls with retries.
CHAT_TIMEOUT = 120.0

app = typer.Typer(help="Wellness Bot CLI tools")

BaseUrlOption = typer.Option(
    DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Wellness Bot service"
)


# MARK: - Commands


@app.command()
def chat(
    audio_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Recorded voice turn (webm, wav, ...)"
    ),
    base_url: str = BaseUrlOption,
) -> None:
    """Send a recorded voice turn and print the reply."""
    mime_type = mimetypes.guess_type(audio_file.name)[0] or "audio/webm"
    data_uri = to_data_uri(mime_type, audio_file.read_bytes())

    async def _chat() -> None:
        async with httpx.AsyncClient(timeout=CHAT_TIMEOUT) as client:
            response = await client.post(f"{base_url}/chat/voice", json={"audio": data_uri})
            response.raise_for_status()
            _print_turn(response.json())

    _run_with_error_handling(_chat(), base_url)


@app.command()
def say(
    text: str = typer.Argument(..., help="The message to send"),
    base_url: str = BaseUrlOption,
) -> None:
    """Send a typed message and print the reply."""

    async def _say() -> None:
        async with httpx.AsyncClient(timeout=CHAT_TIMEOUT) as client:
            response = await client.post(f"{base_url}/chat/text", json={"text": text})
            response.raise_for_status()
            _print_turn(response.json())

    _run_with_error_handling(_say(), base_url)


@app.command()
def strategies(base_url: str = BaseUrlOption) -> None:
    """Ask for coping strategies for the current conversation."""

    async def _strategies() -> None:
        async with httpx.AsyncClient(timeout=CHAT_TIMEOUT) as client:
            response = await client.post(f"{base_url}/chat/strategies")
            response.raise_for_status()
            print(response.json()["reply"])

    _run_with_error_handling(_strategies(), base_url)


@app.command()
def set_mood(
    mood: str = typer.Argument(..., help="The mood value to set"),
    base_url: str = BaseUrlOption,
) -> None:
    """Set the current mood on the Wellness Bot service."""

    async def _set_mood() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.put(f"{base_url}/mood", json={"mood": mood})
            response.raise_for_status()
            result = response.json()
            print(f"Mood set to: {result['mood']['value']}")

    _run_with_error_handling(_set_mood(), base_url)


@app.command()
def get_mood(
    base_url: str = BaseUrlOption,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Get the current mood from the Wellness Bot service."""

    async def _get_mood() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/mood")
            response.raise_for_status()
            result = response.json()

            if json_output:
                print(json.dumps(result, indent=2))
                return

            mood_data = result["mood"]
            if mood_data is None:
                print("No mood set")
            else:
                print(_format_mood(Mood.model_validate(mood_data)))

    _run_with_error_handling(_get_mood(), base_url)


@app.command()
def log_mood(
    mood: int = typer.Argument(..., min=0, max=10, help="Mood level from 0 to 10"),
    base_url: str = BaseUrlOption,
) -> None:
    """Log how you are feeling right now."""

    async def _log_mood() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(f"{base_url}/mood/log", json={"mood": mood})
            response.raise_for_status()
            print(response.json()["message"])

    _run_with_error_handling(_log_mood(), base_url)


@app.command()
def dashboard(base_url: str = BaseUrlOption) -> None:
    """Print the weekly mood chart and rewards."""

    async def _dashboard() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/dashboard")
            response.raise_for_status()
            result = response.json()

        print("Mood this week:")
        if not result["mood_chart"]:
            print("  (nothing logged)")
        for point in result["mood_chart"]:
            bar = "#" * round(point["mood"])
            print(f"  {point['date']:<4}{bar} {point['mood']}")

        print("Rewards:")
        for reward in result["rewards"]:
            state = "Unlocked" if reward["unlocked"] else "Locked"
            print(f"  [{state}] {reward['title']} - {reward['description']}")

    _run_with_error_handling(_dashboard(), base_url)


@app.command()
def stream(base_url: str = BaseUrlOption) -> None:
    """Stream mood updates in real-time."""

    async def _stream() -> None:
        print(f"Streaming from {base_url}/mood/stream... (Ctrl+C to stop)")

        async with httpx.AsyncClient(timeout=None) as client:
            async with aconnect_sse(
                client, "GET", f"{base_url}/mood/stream"
            ) as event_source:
                async for sse in event_source.aiter_sse():
                    _handle_sse_event(sse)

    _run_with_error_handling(_stream(), base_url)


# MARK: - Private Helpers


def _print_turn(result: dict[str, Any]) -> None:
    if result.get("transcription"):
        print(f"You: {result['transcription']}")
    print(f"Mood: {result['mood']['value']}")
    print(result["reply"])
    if result.get("safety_alert"):
        notice = result["safety_notice"]
        print()
        print(f"!! {notice['title']}")
        print(notice["description"])
        print(notice["hotline_label"])


def _format_mood(mood: Mood) -> str:
    """Format mood with optional timestamp."""
    if not mood.timestamp:
        return mood.value

    dt = datetime.fromtimestamp(mood.timestamp)
    timestamp = dt.strftime("%H:%M:%S")
    return f"{timestamp} > {mood.value}"


def _handle_sse_event(sse: ServerSentEvent) -> None:
    """Handle a single SSE event."""
    try:
        if sse.event == "error":
            error_data = json.loads(sse.data)
            print(f"Server error: {error_data.get('error', 'Unknown error')}")
            return

        raw_data = json.loads(sse.data)

        if "error" in raw_data:
            print(f"Server error: {raw_data['error']}")
            return

        mood = Mood.model_validate(raw_data)
        print(_format_mood(mood))

    except json.JSONDecodeError as e:
        print(f"Warning: Could not parse SSE data: {sse.data} - {e}")
    except Exception as e:
        print(f"Warning: Error processing mood data: {e}")


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Error: HTTP {e.response.status_code}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


def main() -> None:
    """Entry point for the wellness-bot CLI."""
    app()


if __name__ == "__main__":
    main()
