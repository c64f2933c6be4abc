"""Background eviction of expired throttle state.

The rate limiter and the response cache only drop expired keys when the
same key is touched again, so clients that never come back would stay in
memory forever. One sweep task per application evicts them periodically.
"""
import asyncio
import logging
from typing import Optional, Tuple

from .cache import ResponseCache
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class StateSweeper:
    """Periodically prunes a RateLimiter and a ResponseCache.

    Attributes:
        rate_limiter: Limiter whose expired windows are dropped.
        response_cache: Cache whose expired entries are dropped.
        interval_seconds: Pause between sweeps.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        response_cache: ResponseCache,
        interval_seconds: float = 60.0,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.response_cache = response_cache
        self.interval_seconds = interval_seconds
        self._sweep_task: Optional[asyncio.Task] = None  # type: ignore[type-arg]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def start(self) -> None:
        """Start the background sweep task."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info("Throttle sweep task started (interval=%ss)", self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the sweep task."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        logger.info("Throttle sweep task stopped")

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.sweep_once()

    def sweep_once(self) -> Tuple[int, int]:
        """Evict expired windows and entries. Returns (windows, entries) removed."""
        windows = self.rate_limiter.prune()
        entries = self.response_cache.purge_expired()
        if windows or entries:
            logger.info(
                "Throttle sweep: evicted %d rate-limit windows, %d cache entries",
                windows,
                entries,
            )
        return windows, entries
