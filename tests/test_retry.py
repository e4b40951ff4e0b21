"""
Tests for the provider retry wrapper.
"""

import pytest

from wellness_bot import retry
from wellness_bot.errors import ProviderError
from wellness_bot.retry import run_with_retry


@pytest.fixture
def sleeps(monkeypatch):
    """Record requested sleeps instead of waiting."""
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)

    monkeypatch.setattr(retry.asyncio, "sleep", fake_sleep)
    return recorded


def flaky(failures: int, result="ok", exc=ProviderError):
    calls = {"count": 0}

    async def fn():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise exc(f"failure {calls['count']}")
        return result

    fn.calls = calls
    return fn


async def test_returns_first_success_without_sleeping(sleeps):
    fn = flaky(0)
    assert await run_with_retry(fn) == "ok"
    assert fn.calls["count"] == 1
    assert sleeps == []


async def test_retries_with_growing_delay(sleeps):
    fn = flaky(2)
    assert await run_with_retry(fn, retries=3, delay=1.0) == "ok"
    assert fn.calls["count"] == 3
    assert sleeps == [1.0, 2.0]


async def test_reraises_last_error_after_all_attempts(sleeps):
    fn = flaky(5)
    with pytest.raises(ProviderError, match="failure 3"):
        await run_with_retry(fn, retries=3, delay=0.5)
    assert fn.calls["count"] == 3
    assert sleeps == [0.5, 1.0]


async def test_errors_outside_retry_on_are_not_retried(sleeps):
    fn = flaky(1, exc=KeyError)
    with pytest.raises(KeyError):
        await run_with_retry(fn, retry_on=(ProviderError,))
    assert fn.calls["count"] == 1
    assert sleeps == []


async def test_rejects_zero_retries():
    with pytest.raises(ValueError):
        await run_with_retry(flaky(0), retries=0)
