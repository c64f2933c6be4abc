"""LLMProvider abstract interface and shared domain types.

This module defines the abstract base class every provider implements and
the small value types that flow between the adapter, the orchestrator and
the parsers.

Usage:
    from relay.ai_provider import GeminiProvider, GenerationParameters

    provider = GeminiProvider(api_key="...")
    text = provider.generate("Summarize ...", "gemini-1.5-flash", GenerationParameters())
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional

from .errors import ProviderError

Sentiment = Literal["positive", "negative", "neutral"]


class Capability(str, Enum):
    """How a model treats the prompt it is given."""
    INSTRUCT = "instruct"      # follows the structured prompt
    COMPLETION = "completion"  # continues the text, output is loosely shaped


@dataclass(frozen=True)
class ThreadContent:
    """Raw text of a social-media thread.

    Attributes:
        text: The thread text as captured by the client.
        metadata: Anything else the client attached. Not used by the core.
    """
    text: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SummaryResult:
    """Structured summary of a thread.

    Attributes:
        key_points: Up to three short statements, never empty.
        quotes: Up to two notable statements, never empty.
        sentiment: positive, negative or neutral.
        word_count: Words counted by whichever path produced the result.
        time_to_read: Estimated reading time in minutes.
    """
    key_points: List[str]
    quotes: List[str]
    sentiment: Sentiment = "neutral"
    word_count: int = 0
    time_to_read: int = 1

    def to_dict(self) -> dict:
        """Convert to the camelCase shape the extension renders."""
        return {
            "keyPoints": list(self.key_points),
            "quotes": list(self.quotes),
            "sentiment": self.sentiment,
            "wordCount": self.word_count,
            "timeToRead": self.time_to_read,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SummaryResult":
        """Build from a client-supplied camelCase summary, tolerating gaps."""
        sentiment = data.get("sentiment")
        return cls(
            key_points=[str(p) for p in data.get("keyPoints") or []],
            quotes=[str(q) for q in data.get("quotes") or []],
            sentiment=sentiment if sentiment in ("positive", "negative") else "neutral",
            word_count=int(data.get("wordCount") or 0),
            time_to_read=int(data.get("timeToRead") or 0),
        )


@dataclass(frozen=True)
class GenerationParameters:
    """Sampling parameters for one model call. ``None`` means provider default."""
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    do_sample: Optional[bool] = None
    repetition_penalty: Optional[float] = None


PromptBuilder = Callable[[ThreadContent, Optional[SummaryResult]], str]


@dataclass(frozen=True)
class ProviderCallSpec:
    """One attempt in a fallback chain.

    Attributes:
        provider_id: Key of the provider in the registry ("gemini", "huggingface").
        model_id: Model name passed to the provider.
        capability: Whether the model follows instructions or just continues text.
        prompt_builder: Renders the prompt for this attempt.
        parameters: Sampling parameters.
        timeout_seconds: Wall-clock budget for a single call.
    """
    provider_id: str
    model_id: str
    capability: Capability
    prompt_builder: PromptBuilder
    parameters: GenerationParameters = GenerationParameters()
    timeout_seconds: float = 30.0

    @property
    def label(self) -> str:
        return f"{self.provider_id}/{self.model_id}"


class LLMProvider(ABC):
    """Abstract base class for LLM provider implementations.

    Providers are synchronous; the adapter runs ``generate`` on a worker
    thread and enforces the timeout. Every failure leaving ``generate`` is
    one of the typed :class:`ProviderError` subclasses.
    """

    provider_id: str = ""

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the provider has the credentials it needs."""

    @abstractmethod
    def generate(self, prompt: str, model: str, parameters: GenerationParameters) -> str:
        """Run one generation and return the raw text.

        Args:
            prompt: Complete prompt text.
            model: Model identifier understood by the provider.
            parameters: Sampling parameters.

        Returns:
            str: Generated text, untrimmed.

        Raises:
            ProviderError: Translated provider or transport failure.
        """

    def describe(self) -> Dict[str, Any]:
        """Small status dict for the health endpoint."""
        return {"provider": self.provider_id, "configured": self.is_configured()}


def http_status_of(error: BaseException) -> Optional[int]:
    """Pull an HTTP status out of an SDK exception, if it carries one."""
    code = getattr(error, "code", None)
    if isinstance(code, int):
        return int(code)
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return int(status)
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return int(status)
    return None


__all__ = [
    "Capability",
    "GenerationParameters",
    "LLMProvider",
    "PromptBuilder",
    "ProviderCallSpec",
    "ProviderError",
    "Sentiment",
    "SummaryResult",
    "ThreadContent",
    "http_status_of",
]
