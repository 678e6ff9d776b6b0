"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory limiter and later migrate to a shared store without changing the
API layer.
"""

from quota_gate.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AdmissionResult,
    Identity,
    StatusResult,
    WindowState,
    compute_effective_state,
)
from quota_gate.adapters.rate_limit.cleanup import CleanupScheduler
from quota_gate.adapters.rate_limit.in_memory import InMemoryTieredRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "AdmissionResult",
    "CleanupScheduler",
    "Identity",
    "InMemoryTieredRateLimiter",
    "StatusResult",
    "WindowState",
    "compute_effective_state",
]
