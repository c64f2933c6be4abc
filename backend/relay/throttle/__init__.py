"""Request throttling and response caching state."""
from .cache import ResponseCache, make_cache_key
from .rate_limiter import RateLimitDecision, RateLimiter
from .sweeper import StateSweeper

__all__ = ["RateLimitDecision", "RateLimiter", "ResponseCache", "StateSweeper", "make_cache_key"]
