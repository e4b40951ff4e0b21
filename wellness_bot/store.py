"""
Session storage implementation for the Wellness Bot service.

This module provides an in-memory session store holding the chat transcript,
the assessed mood (with real-time streaming to multiple subscribers) and the
manually logged mood entries. State lives only as long as the process.
"""

import asyncio
import time
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime

from .models import Message, Mood, MoodEntry, Role


class SessionStore:
    """
    In-memory session storage with real-time mood streaming.

    Mood subscribers are woken through an ``asyncio.Condition`` and an update
    counter instead of per-subscriber queues. All operations are safe to call
    concurrently from coroutines on the same event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._current_mood = Mood(value="neutral", timestamp=clock())
        self._mood_history: list[Mood] = []
        self._messages: list[Message] = []
        self._mood_log: list[MoodEntry] = []
        self._strategies_delivered = 0
        self._condition = asyncio.Condition()
        self._update_counter = 0  # Simple counter to detect updates

    def today(self) -> date:
        return date.fromtimestamp(self._clock())

    # MARK: - Mood

    async def update(
        self,
        mood_value: str,
        intensity: int | None = None,
        confidence: float | None = None,
        factors: str | None = None,
    ) -> Mood:
        """
        Update the current mood and notify all subscribers.

        Returns:
            The updated Mood object with timestamp
        """
        async with self._condition:
            new_mood = Mood(
                value=mood_value,
                timestamp=self._clock(),
                intensity=intensity,
                confidence=confidence,
                factors=factors,
            )
            self._current_mood = new_mood
            self._mood_history.append(new_mood)
            self._update_counter += 1

            self._condition.notify_all()

            return new_mood

    async def read(self) -> Mood:
        """Get the current mood state (defaults to "neutral")."""
        async with self._condition:
            return self._current_mood

    async def mood_history(self) -> list[Mood]:
        """All mood updates of the session, oldest first."""
        async with self._condition:
            return list(self._mood_history)

    @asynccontextmanager
    async def stream(self) -> AsyncGenerator[AsyncGenerator[Mood, None], None]:
        """
        Stream mood updates to a subscriber.

        This context manager yields an async generator that produces the
        current Mood first and then every later update.
        """

        async def mood_generator() -> AsyncGenerator[Mood, None]:
            async with self._condition:
                last_seen_counter = self._update_counter
                yield self._current_mood

            try:
                while True:
                    async with self._condition:
                        await self._condition.wait_for(
                            lambda: self._update_counter > last_seen_counter
                        )

                        last_seen_counter = self._update_counter
                        yield self._current_mood

            except (asyncio.CancelledError, GeneratorExit):
                # Client disconnected or generator closed
                return

        yield mood_generator()

    # MARK: - Transcript

    async def add_message(self, role: Role, content: str) -> Message:
        async with self._condition:
            message = Message(
                role=role,
                content=content,
                timestamp=datetime.fromtimestamp(self._clock()),
            )
            self._messages.append(message)
            return message

    async def messages(self) -> list[Message]:
        async with self._condition:
            return list(self._messages)

    # MARK: - Mood log

    async def log_mood(self, mood: int) -> MoodEntry:
        """
        Log a mood level for today.

        Raises:
            ValueError: If ``mood`` is outside 0..10
        """
        if not 0 <= mood <= 10:
            raise ValueError("mood must be between 0 and 10")
        async with self._condition:
            entry = MoodEntry(date=self.today().isoformat(), mood=mood)
            self._mood_log.append(entry)
            return entry

    async def mood_log(self) -> list[MoodEntry]:
        async with self._condition:
            return list(self._mood_log)

    # MARK: - Strategies

    async def record_strategies(self, count: int) -> int:
        async with self._condition:
            self._strategies_delivered += count
            return self._strategies_delivered

    async def strategies_delivered(self) -> int:
        async with self._condition:
            return self._strategies_delivered
