"""AI provider module for thread summaries and replies.

One LLMProvider interface with two implementations (GeminiProvider and
HuggingFaceProvider), a ProviderAdapter that adds timeout and retry, and a
FallbackOrchestrator that walks configured chains of provider/model
attempts before falling back to local heuristics.

Usage:
    from relay.ai_provider import ThreadContent, build_orchestrator
    from relay.config import get_config

    orchestrator = build_orchestrator(get_config())
    summary = await orchestrator.summarize(ThreadContent(text="..."))
"""
from .adapter import ProviderAdapter
from .base import (
    Capability,
    GenerationParameters,
    LLMProvider,
    ProviderCallSpec,
    SummaryResult,
    ThreadContent,
)
from .errors import (
    ProviderError,
    ProviderOtherError,
    ProviderQuotaError,
    ProviderTimeoutError,
    ProviderTransientError,
)
from .gemini_provider import GeminiProvider
from .heuristics import ThreadHeuristics
from .huggingface_provider import HuggingFaceProvider
from .orchestrator import ChainOutcome, FallbackOrchestrator
from .parser import convert_completion_summary, extract_reply, parse_summary
from .registry import build_orchestrator

__all__ = [
    "Capability",
    "ChainOutcome",
    "FallbackOrchestrator",
    "GeminiProvider",
    "GenerationParameters",
    "HuggingFaceProvider",
    "LLMProvider",
    "ProviderAdapter",
    "ProviderCallSpec",
    "ProviderError",
    "ProviderOtherError",
    "ProviderQuotaError",
    "ProviderTimeoutError",
    "ProviderTransientError",
    "SummaryResult",
    "ThreadContent",
    "ThreadHeuristics",
    "build_orchestrator",
    "convert_completion_summary",
    "extract_reply",
    "parse_summary",
]
