"""Thread summarize/reply API router.

Endpoints:
    POST /api/summarize   - Summarize a thread into key points and quotes
    POST /api/reply       - Draft a short reply to a thread
    POST /api/clear-cache - Flush the response cache (test utility)

Summaries and replies never fail because a provider did: the orchestrator
falls back to local heuristics. Only bad input (400), an exhausted rate
limit (429) or an unexpected internal error (500) reach the caller.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from relay.ai_provider import FallbackOrchestrator, SummaryResult, ThreadContent
from relay.config import RelayConfig
from relay.errors import InternalRelayError, RateLimitedError, ThreadValidationError
from relay.throttle import RateLimiter, ResponseCache, make_cache_key

from .schemas import (
    ClearCacheResponse,
    ReplyRequest,
    ReplyResponse,
    SummarizeRequest,
    SummarizeResponse,
    ThreadContentInput,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["threads"])


# =============================================================================
# Dependencies
# =============================================================================


def get_orchestrator(request: Request) -> FallbackOrchestrator:
    return request.app.state.orchestrator


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.response_cache


def get_relay_config(request: Request) -> RelayConfig:
    return request.app.state.config


def client_id_for(request: Request, header: str) -> str:
    """Client key: explicit header first, then the peer address."""
    client_id = request.headers.get(header)
    if client_id:
        return client_id
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


async def enforce_rate_limit(request: Request) -> None:
    limiter: RateLimiter = request.app.state.rate_limiter
    if not limiter.settings.enabled:
        return
    decision = limiter.check(client_id_for(request, limiter.settings.client_header), request.url.path)
    if not decision.allowed:
        raise RateLimitedError(retry_after=limiter.retry_after_header(decision))


# =============================================================================
# Validation
# =============================================================================


def thread_from_input(thread: Optional[ThreadContentInput], max_chars: int) -> ThreadContent:
    """Validate the threadContent field and convert it to the domain type.

    Raises:
        ThreadValidationError: Missing, empty or oversized text.
    """
    text = thread.text if thread is not None else None
    if not text or not text.strip():
        raise ThreadValidationError("Thread content is required")
    if len(text) > max_chars:
        raise ThreadValidationError(f"Thread content exceeds {max_chars} characters")
    metadata = dict(thread.model_extra or {})
    return ThreadContent(text=text, metadata=metadata)


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_rate_limit)],
)
async def summarize_thread(
    body: SummarizeRequest,
    request: Request,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
    cache: ResponseCache = Depends(get_cache),
    config: RelayConfig = Depends(get_relay_config),
) -> dict:
    """Summarize a thread into three key points and two quotes.

    Returns:
        dict: ``{"success": true, "summary": {...}}``, with ``fromCache``
        when replayed from the cache.
    """
    thread = thread_from_input(body.threadContent, config.summary.max_text_chars)
    logger.info(f"Received summarize request ({len(thread.text)} chars)")

    cache_key = make_cache_key(request.url.path, body.model_dump(mode="json", exclude_none=True))
    cached = cache.get(cache_key)
    if cached is not None:
        logger.info("Serving summary from cache")
        cached["fromCache"] = True
        return cached

    try:
        outcome = await orchestrator.run_summary(thread)
    except Exception as e:
        logger.exception("Summarization error")
        raise InternalRelayError("Failed to summarize thread") from e

    logger.info(f"Summary generated by {outcome.source}")
    payload = {"success": True, "summary": outcome.value.to_dict()}
    if not outcome.degraded:
        cache.set(cache_key, payload)
    return payload


@router.post(
    "/reply",
    response_model=ReplyResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_rate_limit)],
)
async def reply_to_thread(
    body: ReplyRequest,
    request: Request,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
    cache: ResponseCache = Depends(get_cache),
    config: RelayConfig = Depends(get_relay_config),
) -> dict:
    """Draft a one-to-two sentence reply using the thread and its summary.

    Returns:
        dict: ``{"success": true, "reply": "..."}``.
    """
    if body.threadContent is None or body.summary is None:
        raise ThreadValidationError("Thread content and summary are required")
    if not isinstance(body.summary.keyPoints, list):
        raise ThreadValidationError("summary.keyPoints must be a list")

    thread = thread_from_input(body.threadContent, config.summary.max_text_chars)
    summary = SummaryResult.from_dict(body.summary.model_dump())
    logger.info(f"Received reply request ({len(thread.text)} chars)")

    cache_key = make_cache_key(request.url.path, body.model_dump(mode="json", exclude_none=True))
    cached = cache.get(cache_key)
    if cached is not None:
        logger.info("Serving reply from cache")
        cached["fromCache"] = True
        return cached

    try:
        outcome = await orchestrator.run_reply(thread, summary)
    except Exception as e:
        logger.exception("Reply generation error")
        raise InternalRelayError("Failed to generate reply") from e

    logger.info(f"Reply generated by {outcome.source}")
    payload = {"success": True, "reply": outcome.value}
    if not outcome.degraded:
        cache.set(cache_key, payload)
    return payload


@router.post("/clear-cache", response_model=ClearCacheResponse)
async def clear_cache(cache: ResponseCache = Depends(get_cache)) -> ClearCacheResponse:
    """Flush every cached response. Intended for tests and manual debugging."""
    return ClearCacheResponse(success=True, cleared=cache.clear())
