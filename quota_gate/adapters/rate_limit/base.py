"""Rate limiter interfaces and value types.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

GUEST_TIER = "guest"


@dataclass(frozen=True)
class Identity:
    """Resolved caller identity.

    Attributes:
        tier: Tier name used to select the quota (e.g. guest, free, premium).
        id: User identifier; None for guests or when unknown.
    """

    tier: str = GUEST_TIER
    id: int | str | None = None

    @property
    def is_guest(self) -> bool:
        return (self.tier or GUEST_TIER).lower() == GUEST_TIER


@dataclass(frozen=True)
class WindowState:
    """Requests admitted for one tracking key in its current window."""

    count: int
    window_start: float


@dataclass(frozen=True)
class StatusResult:
    """Read-only view of a caller's quota.

    Attributes:
        remaining: Requests still available in the current window.
        limit: Max requests per window for the caller's tier (0 = always deny).
        window_reset_at: UNIX time (seconds) when the window ends.
        tier: Tier the caller was evaluated under.
    """

    remaining: int
    limit: int
    window_reset_at: float
    tier: str


@dataclass(frozen=True)
class AdmissionResult(StatusResult):
    """Outcome of a check-and-consume call.

    Attributes:
        admitted: Whether the request may proceed to the protected action.
    """

    admitted: bool = False


def compute_effective_state(
    stored: WindowState | None, now: float, window_seconds: float
) -> WindowState:
    """Project the stored state onto ``now``.

    A missing or fully elapsed window is replaced by a fresh, empty window
    starting at ``now``. Never mutates or persists anything.

    Args:
        stored: State currently held for the key, if any.
        now: Current UNIX time in seconds.
        window_seconds: Fixed window size.

    Returns:
        The state that is in effect at ``now``.
    """

    if stored is None or now - stored.window_start >= window_seconds:
        return WindowState(count=0, window_start=now)
    return stored


class AbstractRateLimiter(ABC):
    """Interface for tiered rate limiters."""

    @property
    @abstractmethod
    def window_seconds(self) -> float:
        """Fixed window size shared by all tiers."""
        raise NotImplementedError

    @property
    @abstractmethod
    def tier_limits(self) -> dict[str, int]:
        """Copy of the configured tier limit table."""
        raise NotImplementedError

    @abstractmethod
    def derive_key(self, identity: Identity | None, origin_address: str) -> str:
        """Tracking key the caller is counted under."""
        raise NotImplementedError

    @abstractmethod
    def check_and_consume(
        self, identity: Identity | None, origin_address: str
    ) -> AdmissionResult:
        """Evaluate admission and consume one unit when admitted."""
        raise NotImplementedError

    @abstractmethod
    def peek_status(self, identity: Identity | None, origin_address: str) -> StatusResult:
        """Return the caller's quota without consuming it."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, identity: Identity | None, origin_address: str) -> None:
        """Forget everything tracked for the caller."""
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> int:
        """Drop expired windows; return how many were removed."""
        raise NotImplementedError

    @abstractmethod
    def debug_snapshot(self) -> dict[str, dict[str, Any]]:
        """Dump tracked windows for operational inspection."""
        raise NotImplementedError
