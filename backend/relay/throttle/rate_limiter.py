"""Fixed-window request limiter keyed by client and route.

Each (client, route) pair gets a counter and a reset time. The first request
after the reset time opens a fresh window. State is process-local and lost
on restart; it is only touched from the event loop, so no lock is taken.
"""
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from relay.config import RateLimitSettings

logger = logging.getLogger(__name__)


@dataclass
class RateLimitState:
    """Counter for one client within the current window."""
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Quota for the window.
        remaining: Requests left in the window after this one.
        retry_after: Seconds until the window resets.
    """
    allowed: bool
    limit: int
    remaining: int
    retry_after: float


class RateLimiter:
    """Per-client quota of ``requests`` per ``window_seconds``.

    Attributes:
        settings: Default quota plus per-route overrides.
    """

    def __init__(self, settings: Optional[RateLimitSettings] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.settings = settings or RateLimitSettings()
        self._clock = clock
        self._state: Dict[Tuple[str, str], RateLimitState] = {}

    def check(self, client_id: str, route: str = "") -> RateLimitDecision:
        """Count a request and decide whether it is allowed."""
        limit = self.settings.limit_for(route)
        now = self._clock()
        key = (client_id, route)

        state = self._state.get(key)
        if state is None or now >= state.reset_at:
            state = RateLimitState(count=0, reset_at=now + limit.window_seconds)
            self._state[key] = state

        retry_after = max(0.0, state.reset_at - now)
        if state.count >= limit.requests:
            logger.warning(f"Rate limit exceeded for client={client_id} route={route}")
            return RateLimitDecision(False, limit.requests, 0, retry_after)

        state.count += 1
        return RateLimitDecision(True, limit.requests, limit.requests - state.count, retry_after)

    def retry_after_header(self, decision: RateLimitDecision) -> str:
        return str(max(1, math.ceil(decision.retry_after)))

    def prune(self) -> int:
        """Drop windows that have already expired. Returns the number removed."""
        now = self._clock()
        expired = [key for key, state in self._state.items() if now >= state.reset_at]
        for key in expired:
            del self._state[key]
        return len(expired)

    def reset(self) -> None:
        self._state.clear()

    def __len__(self) -> int:
        return len(self._state)
