"""In-memory tiered fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every key has its own lock, the store lock only guards the
  key -> slot dictionary.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping

from quota_gate.adapters.rate_limit.base import (
    GUEST_TIER,
    AbstractRateLimiter,
    AdmissionResult,
    Identity,
    StatusResult,
    WindowState,
    compute_effective_state,
)
from quota_gate.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIER_LIMITS: dict[str, int] = {"guest": 3, "free": 10, "premium": 50}
DEFAULT_WINDOW_SECONDS = 60 * 60


@dataclass
class _Slot:
    lock: threading.Lock = field(default_factory=threading.Lock)
    state: WindowState | None = None
    # Set once the slot is dropped from the store; holders must re-fetch.
    removed: bool = False


def _coerce_limit(tier: str, value: Any) -> int:
    """Validate one configured tier limit.

    Raises:
        ConfigurationError: If the value is not a non-negative integer.
    """
    if isinstance(value, bool):
        raise ConfigurationError(
            code="invalid_tier_limit",
            message=f"Limit for tier '{tier}' must be an integer, got a boolean",
            details={"tier": tier},
        )
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ConfigurationError(
                code="invalid_tier_limit",
                message=f"Limit for tier '{tier}' is not numeric: {value!r}",
                details={"tier": tier},
            ) from None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise ConfigurationError(
            code="invalid_tier_limit",
            message=f"Limit for tier '{tier}' must be an integer, got {type(value).__name__}",
            details={"tier": tier},
        )
    if value < 0:
        raise ConfigurationError(
            code="invalid_tier_limit",
            message=f"Limit for tier '{tier}' must be >= 0",
            details={"tier": tier, "actual_value": value},
        )
    return value


class InMemoryTieredRateLimiter(AbstractRateLimiter):
    """Fixed-window limiter with a quota per caller tier.

    Authenticated callers are tracked by user id, guests by origin address.
    A window starts on the first request for a key and is discarded once
    ``window_seconds`` have elapsed; the next request opens a fresh one.

    Important:
        This limiter is per-process only. Each Uvicorn/Gunicorn worker will
        enforce its own independent limits.
    """

    def __init__(
        self,
        *,
        tier_limits: Mapping[str, Any] | None = None,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            tier_limits: Requests allowed per window, by tier name. Must
                contain ``guest``, which is also the fallback tier.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ConfigurationError: If the limit table or window size is invalid.
        """
        raw_limits = DEFAULT_TIER_LIMITS if tier_limits is None else tier_limits
        if not raw_limits:
            raise ConfigurationError(
                code="invalid_tier_limits",
                message="At least one tier limit must be configured",
            )
        limits = {str(tier).lower(): _coerce_limit(tier, value) for tier, value in raw_limits.items()}
        if GUEST_TIER not in limits:
            raise ConfigurationError(
                code="missing_guest_tier",
                message="Tier limits must define the 'guest' tier",
                details={"hint": "Set RATE_LIMIT_GUEST_LIMIT"},
            )
        if isinstance(window_seconds, bool) or not isinstance(window_seconds, (int, float)) or window_seconds <= 0:
            raise ConfigurationError(
                code="invalid_window_size",
                message="window_seconds must be a positive number",
            )

        self._limits: Mapping[str, int] = dict(limits)
        self._window_seconds = float(window_seconds)
        self._clock = clock
        self._store_lock = threading.Lock()
        self._slots: dict[str, _Slot] = {}

    @property
    def tier_limits(self) -> dict[str, int]:
        return dict(self._limits)

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def derive_key(self, identity: Identity | None, origin_address: str) -> str:
        """Build the tracking key for a caller.

        Identified non-guest callers are keyed by user id; everyone else,
        including a non-guest identity without an id, by origin address.
        """
        if identity is not None and not identity.is_guest and identity.id not in (None, ""):
            return f"user:{identity.id}"
        return f"ip:{origin_address}"

    def tier_limit(self, identity: Identity | None) -> int:
        """Return the quota for the caller's tier, falling back to guest."""
        tier = self._tier_name(identity).lower()
        return self._limits.get(tier, self._limits[GUEST_TIER])

    def check_and_consume(
        self, identity: Identity | None, origin_address: str
    ) -> AdmissionResult:
        """Evaluate admission and consume one unit when admitted.

        The read-evaluate-increment sequence runs under the key's lock, so two
        callers racing for the last slot of a window get exactly one admission.

        Returns:
            AdmissionResult with the decision and quota metadata.
        """
        key = self.derive_key(identity, origin_address)
        limit = self.tier_limit(identity)
        tier = self._tier_name(identity)

        while True:
            slot = self._get_or_create_slot(key)
            with slot.lock:
                if slot.removed:
                    continue

                now = self._clock()
                state = compute_effective_state(slot.state, now, self._window_seconds)
                remaining = max(0, limit - state.count)
                admitted = state.count < limit
                if admitted:
                    state = replace(state, count=state.count + 1)
                    remaining -= 1
                slot.state = state

                return AdmissionResult(
                    admitted=admitted,
                    remaining=remaining,
                    limit=limit,
                    window_reset_at=state.window_start + self._window_seconds,
                    tier=tier,
                )

    def peek_status(self, identity: Identity | None, origin_address: str) -> StatusResult:
        """Return the caller's quota without consuming or storing anything.

        An elapsed window is reported as a fresh one anchored at the current
        time, exactly as the next check_and_consume would open it.
        """
        key = self.derive_key(identity, origin_address)
        limit = self.tier_limit(identity)

        with self._store_lock:
            slot = self._slots.get(key)

        stored: WindowState | None = None
        if slot is not None:
            with slot.lock:
                stored = None if slot.removed else slot.state

        state = compute_effective_state(stored, self._clock(), self._window_seconds)
        return StatusResult(
            remaining=max(0, limit - state.count),
            limit=limit,
            window_reset_at=state.window_start + self._window_seconds,
            tier=self._tier_name(identity),
        )

    def reset(self, identity: Identity | None, origin_address: str) -> None:
        """Delete the caller's window as if it had never been observed."""
        key = self.derive_key(identity, origin_address)

        with self._store_lock:
            slot = self._slots.get(key)
        if slot is None:
            return

        with slot.lock:
            self._drop_slot_locked(key, slot)

    def cleanup(self) -> int:
        """Remove every key whose window has fully elapsed.

        Keys are snapshotted first so the store lock is never held while
        waiting on a key lock.

        Returns:
            Number of keys removed.
        """
        with self._store_lock:
            snapshot = list(self._slots.items())

        removed = 0
        for key, slot in snapshot:
            with slot.lock:
                if slot.removed:
                    continue
                state = slot.state
                if state is None or self._clock() - state.window_start >= self._window_seconds:
                    self._drop_slot_locked(key, slot)
                    removed += 1

        if removed:
            logger.info(
                "rate_limit.cleanup",
                extra={"removed": removed, "tracked": len(self._slots)},
            )
        return removed

    def debug_snapshot(self) -> dict[str, dict[str, Any]]:
        """Dump every tracked window with its time left, in seconds."""
        with self._store_lock:
            snapshot = list(self._slots.items())

        now = self._clock()
        data: dict[str, dict[str, Any]] = {}
        for key, slot in snapshot:
            state = slot.state
            if state is None or slot.removed:
                continue
            data[key] = {
                "count": state.count,
                "window_start": state.window_start,
                "time_remaining": max(0.0, state.window_start + self._window_seconds - now),
            }
        return data

    def _tier_name(self, identity: Identity | None) -> str:
        if identity is None:
            return GUEST_TIER
        return identity.tier or GUEST_TIER

    def _get_or_create_slot(self, key: str) -> _Slot:
        with self._store_lock:
            slot = self._slots.get(key)
            if slot is None:
                slot = _Slot()
                self._slots[key] = slot
            return slot

    def _drop_slot_locked(self, key: str, slot: _Slot) -> None:
        """Remove ``slot`` from the store. Caller holds ``slot.lock``."""
        with self._store_lock:
            if self._slots.get(key) is slot:
                del self._slots[key]
        slot.removed = True
