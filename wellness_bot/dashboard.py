"""
Dashboard data: weekly mood chart, conversation summary and rewards.
"""

from collections import defaultdict
from datetime import date, timedelta

from pydantic import BaseModel

from .models import Message, Mood, MoodEntry
from .store import SessionStore

CALM_MOODS = {"calm", "relaxed", "peaceful", "serene", "content"}

CHART_DAYS = 7


class ChartPoint(BaseModel):
    date: str
    mood: float


class ConversationSummary(BaseModel):
    date: str
    summary: str
    transcript: list[Message]


class Reward(BaseModel):
    title: str
    description: str
    icon: str
    unlocked: bool


class Dashboard(BaseModel):
    mood_chart: list[ChartPoint]
    conversations: list[ConversationSummary]
    rewards: list[Reward]


def mood_chart(entries: list[MoodEntry], today: date) -> list[ChartPoint]:
    """Average logged moods per day over the last week, oldest first."""
    by_day: dict[date, list[int]] = defaultdict(list)
    for entry in entries:
        by_day[date.fromisoformat(entry.date)].append(entry.mood)

    points = []
    for offset in range(CHART_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        moods = by_day.get(day)
        if moods:
            points.append(
                ChartPoint(date=day.strftime("%a"), mood=round(sum(moods) / len(moods), 1))
            )
    return points


def longest_streak(days: set[date]) -> int:
    """Length of the longest run of consecutive calendar days."""
    best = 0
    for day in days:
        if day - timedelta(days=1) in days:
            continue
        length = 1
        while day + timedelta(days=length) in days:
            length += 1
        best = max(best, length)
    return best


def summarize(messages: list[Message], current: Mood) -> str:
    if current.factors:
        return current.factors
    user_turns = sum(1 for m in messages if m.role == "user")
    return f"Talked for {user_turns} turn(s) while feeling {current.value}."


def rewards(
    messages: list[Message],
    entries: list[MoodEntry],
    history: list[Mood],
    strategies: int,
) -> list[Reward]:
    logged_days = {date.fromisoformat(e.date) for e in entries}
    calm_days = {
        date.fromtimestamp(m.timestamp)
        for m in history
        if m.timestamp is not None and m.value.lower() in CALM_MOODS
    }
    replies = sum(1 for m in messages if m.role == "assistant")

    return [
        Reward(
            title="First Session",
            description="Completed your first session.",
            icon="check-circle",
            unlocked=any(m.role == "user" for m in messages),
        ),
        Reward(
            title="3-Day Streak",
            description="Logged your mood 3 days in a row.",
            icon="zap",
            unlocked=longest_streak(logged_days) >= 3,
        ),
        Reward(
            title="Mood Master",
            description="Logged your mood for a full week.",
            icon="star",
            unlocked=longest_streak(logged_days) >= 7,
        ),
        Reward(
            title="Explorer",
            description="Used 5 different coping strategies.",
            icon="check-circle",
            unlocked=strategies >= 5,
        ),
        Reward(
            title="Consistent",
            description="Completed 10 conversations.",
            icon="zap",
            unlocked=replies >= 10,
        ),
        Reward(
            title="Zen Master",
            description="Achieved a calm state for 3 days in a row.",
            icon="star",
            unlocked=longest_streak(calm_days) >= 3,
        ),
    ]


async def build_dashboard(store: SessionStore) -> Dashboard:
    messages = await store.messages()
    entries = await store.mood_log()
    history = await store.mood_history()
    current = await store.read()
    strategies = await store.strategies_delivered()
    today = store.today()

    conversations = []
    if messages:
        conversations.append(
            ConversationSummary(
                date=messages[0].timestamp.date().isoformat(),
                summary=summarize(messages, current),
                transcript=messages,
            )
        )

    return Dashboard(
        mood_chart=mood_chart(entries, today),
        conversations=conversations,
        rewards=rewards(messages, entries, history, strategies),
    )
