"""Tests for the background cleanup scheduler."""

import asyncio
from unittest.mock import MagicMock

import pytest

from quota_gate.adapters.rate_limit.cleanup import CleanupScheduler
from quota_gate.core.errors import ConfigurationError


@pytest.mark.asyncio
async def test_runs_cleanup_periodically() -> None:
    limiter = MagicMock()
    scheduler = CleanupScheduler(limiter, interval_seconds=0.01)

    await scheduler.start()
    await asyncio.sleep(0.1)
    await scheduler.shutdown()

    assert limiter.cleanup.call_count >= 2


@pytest.mark.asyncio
async def test_shutdown_stops_the_task() -> None:
    limiter = MagicMock()
    scheduler = CleanupScheduler(limiter, interval_seconds=0.01)

    await scheduler.start()
    assert scheduler.running is True
    await scheduler.shutdown()
    assert scheduler.running is False

    calls = limiter.cleanup.call_count
    await asyncio.sleep(0.05)
    assert limiter.cleanup.call_count == calls


@pytest.mark.asyncio
async def test_start_is_idempotent_and_shutdown_safe_without_start() -> None:
    scheduler = CleanupScheduler(MagicMock(), interval_seconds=60)

    await scheduler.shutdown()

    await scheduler.start()
    first_task = scheduler._task
    await scheduler.start()
    assert scheduler._task is first_task
    await scheduler.shutdown()


@pytest.mark.asyncio
async def test_failing_sweep_does_not_stop_the_loop() -> None:
    limiter = MagicMock()
    calls = []

    def flaky_cleanup() -> int:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        return 0

    limiter.cleanup.side_effect = flaky_cleanup
    scheduler = CleanupScheduler(limiter, interval_seconds=0.01)

    await scheduler.start()
    await asyncio.sleep(0.1)
    assert scheduler.running is True
    await scheduler.shutdown()

    assert limiter.cleanup.call_count >= 2


@pytest.mark.parametrize("interval", [0, -1, True, "600", None])
def test_invalid_interval_rejected(interval) -> None:
    with pytest.raises(ConfigurationError):
        CleanupScheduler(MagicMock(), interval_seconds=interval)
