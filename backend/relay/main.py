"""Thread Relay Backend Application.

This is the main entry point for the Thread Relay backend service.
Thread Relay sits between a browser extension and LLM providers: it
summarizes social-media threads and drafts short replies, with per-client
rate limiting and response caching in front of the providers.

Modules:
    - threads: summarize/reply/clear-cache endpoints
    - ai_provider: providers, fallback chains, response parsing, heuristics
    - throttle: rate limiter, response cache and their expiry sweep
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from relay.ai_provider import FallbackOrchestrator, build_orchestrator
from relay.body_limit import BodySizeLimitMiddleware
from relay.config import RelayConfig, get_config
from relay.errors import register_error_handlers
from relay.threads.router import router as threads_router
from relay.throttle import RateLimiter, ResponseCache, StateSweeper

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Silence verbose third-party loggers.
# httpx/httpcore/urllib3 log every connection; the Google and Hugging Face
# SDKs log request plumbing that is not useful when debugging the relay.
for _noisy in (
    "urllib3",
    "urllib3.connectionpool",
    "httpx",
    "httpcore",
    "google",
    "grpc",
    "huggingface_hub",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config: RelayConfig = app.state.config

    # Apply configured log level to root logger so that
    # `logging.level: "debug"` in relay.settings.yaml activates DEBUG output.
    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    configured = [p["provider"] for p in app.state.orchestrator.describe() if p["configured"]]
    if configured:
        logger.info(f"Providers available: {', '.join(configured)}")
    else:
        logger.warning("No LLM provider configured; all answers will come from heuristics")

    await app.state.sweeper.start()

    yield  # Application runs here

    # Shutdown
    await app.state.sweeper.stop()
    app.state.response_cache.clear()
    app.state.rate_limiter.reset()
    logger.info("Application shutdown complete")


def create_app(
    config: Optional[RelayConfig] = None,
    orchestrator: Optional[FallbackOrchestrator] = None,
) -> FastAPI:
    """Build the FastAPI application and its per-instance state.

    Args:
        config: Configuration to use. Defaults to the process-wide config.
        orchestrator: Pre-built orchestrator (tests pass fakes here).

    Returns:
        FastAPI: The application, with ``config``, ``orchestrator``,
        ``rate_limiter``, ``response_cache`` and ``sweeper`` on
        ``app.state``.
    """
    config = config or get_config()

    app = FastAPI(
        title="Thread Relay API",
        description="Summaries and reply drafts for social-media threads",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.started_at = time.monotonic()
    app.state.orchestrator = orchestrator or build_orchestrator(config)
    app.state.rate_limiter = RateLimiter(config.rate_limit)
    app.state.response_cache = ResponseCache(config.cache)
    app.state.sweeper = StateSweeper(
        app.state.rate_limiter,
        app.state.response_cache,
        interval_seconds=config.sweep.interval_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=config.server.max_body_bytes)

    register_error_handlers(app)
    app.include_router(threads_router)

    @app.get("/health")
    async def health(request: Request) -> dict:
        """Liveness check.

        Returns:
            dict: Status, timestamp, uptime in seconds and provider status.
        """
        return {
            "status": "OK",
            "timestamp": _now_iso(),
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "providers": request.app.state.orchestrator.describe(),
        }

    @app.get("/cache-info")
    async def cache_info(request: Request) -> dict:
        """Informational view of the response cache."""
        cache: ResponseCache = request.app.state.response_cache
        cache.purge_expired()
        return {
            "status": "Cache info endpoint available",
            "timestamp": _now_iso(),
            "enabled": cache.enabled,
            "entries": len(cache),
            "ttlSeconds": cache.settings.ttl_seconds,
        }

    return app


def run() -> None:
    """Serve the application with uvicorn using the configured host/port."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        "relay.main:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run()
