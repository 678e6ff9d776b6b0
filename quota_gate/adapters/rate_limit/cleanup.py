"""Background sweep of expired rate limit windows.

Correctness never depends on the sweep (expired windows are replaced lazily
on access); it only bounds memory held for one-off guest addresses.
"""

from __future__ import annotations

import asyncio
import logging

from quota_gate.adapters.rate_limit.base import AbstractRateLimiter
from quota_gate.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_INTERVAL_SECONDS = 10 * 60


class CleanupScheduler:
    """Runs ``limiter.cleanup()`` on a fixed interval in an asyncio task.

    Usage:
        scheduler = CleanupScheduler(limiter, interval_seconds=600)
        await scheduler.start()
        ...
        await scheduler.shutdown()
    """

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        *,
        interval_seconds: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
    ) -> None:
        if (
            isinstance(interval_seconds, bool)
            or not isinstance(interval_seconds, (int, float))
            or interval_seconds <= 0
        ):
            raise ConfigurationError(
                code="invalid_cleanup_interval",
                message="cleanup interval must be a positive number of seconds",
            )
        self._limiter = limiter
        self._interval = float(interval_seconds)
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the sweep task if it is not already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="rate-limit-cleanup")
        logger.info("rate_limit.cleanup_started", extra={"interval_s": self._interval})

    async def shutdown(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("rate_limit.cleanup_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._limiter.cleanup()
            except Exception:
                logger.exception("rate_limit.cleanup_failed")
