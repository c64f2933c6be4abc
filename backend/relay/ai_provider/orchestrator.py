"""Fallback orchestrator for thread summaries and replies.

Walks an ordered chain of ProviderCallSpecs until one produces text. Every
provider-level failure moves on to the next spec; when the chain runs out the
local heuristics answer instead, so neither operation raises provider errors.

Usage:
    orchestrator = FallbackOrchestrator(providers, summary_chain, reply_chain)
    summary = await orchestrator.summarize(ThreadContent(text="..."))
    reply = await orchestrator.reply(ThreadContent(text="..."), summary)
"""
import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from relay.config import ParserSettings, RetrySettings

from .adapter import ProviderAdapter
from .base import LLMProvider, ProviderCallSpec, SummaryResult, ThreadContent
from .errors import ProviderError
from .heuristics import ThreadHeuristics
from .parser import extract_reply, summary_from_output

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ChainOutcome(Generic[T]):
    """Result of walking a chain.

    Attributes:
        value: The summary or reply.
        spec: The spec that produced it, or None when the heuristics did.
        attempts: Number of specs actually called.
    """
    value: T
    spec: Optional[ProviderCallSpec] = None
    attempts: int = 0

    @property
    def degraded(self) -> bool:
        return self.spec is None

    @property
    def source(self) -> str:
        return self.spec.label if self.spec else "heuristic"


class FallbackOrchestrator:
    """Sequences provider calls across a declarative chain.

    Attributes:
        providers: Configured providers keyed by provider_id.
        summary_chain: Specs tried, in order, for summaries.
        reply_chain: Specs tried, in order, for replies.
        heuristics: Local fallback when a chain is exhausted.
    """

    def __init__(
        self,
        providers: Mapping[str, LLMProvider],
        summary_chain: Sequence[ProviderCallSpec],
        reply_chain: Sequence[ProviderCallSpec],
        *,
        retry: Optional[RetrySettings] = None,
        limits: Optional[ParserSettings] = None,
        heuristics: Optional[ThreadHeuristics] = None,
        reply_max_chars: int = 120,
    ) -> None:
        self.providers = dict(providers)
        self.summary_chain: List[ProviderCallSpec] = list(summary_chain)
        self.reply_chain: List[ProviderCallSpec] = list(reply_chain)
        self.retry = retry or RetrySettings()
        self.limits = limits or ParserSettings()
        self.heuristics = heuristics or ThreadHeuristics(limits=self.limits)
        self.reply_max_chars = reply_max_chars

    def _adapter_for(self, spec: ProviderCallSpec) -> Optional[ProviderAdapter]:
        provider = self.providers.get(spec.provider_id)
        if provider is None or not provider.is_configured():
            return None
        return ProviderAdapter(
            provider,
            spec.model_id,
            max_attempts=self.retry.max_attempts,
            backoff_base_seconds=self.retry.backoff_base_seconds,
        )

    async def _run_chain(
        self,
        task: str,
        chain: Sequence[ProviderCallSpec],
        thread: ThreadContent,
        summary: Optional[SummaryResult],
        convert: Callable[[str, ProviderCallSpec], T],
    ) -> Tuple[Optional[ChainOutcome[T]], int]:
        """Walk the chain. Returns the winning outcome (or None) and the number of specs called."""
        attempts = 0
        for position, spec in enumerate(chain, start=1):
            adapter = self._adapter_for(spec)
            if adapter is None:
                logger.info(f"[{task}] skipping {spec.label}: provider not configured")
                continue

            attempts += 1
            logger.info(f"[{task}] trying {spec.label} ({position}/{len(chain)})")
            prompt = spec.prompt_builder(thread, summary)
            try:
                raw = await adapter.call(prompt, spec.parameters, spec.timeout_seconds)
            except ProviderError as e:
                has_next = position < len(chain)
                logger.warning(
                    f"[{task}] {spec.label} failed with {e.kind} error: {e.message}"
                    + ("; trying next provider" if has_next else "; chain exhausted")
                )
                continue

            logger.info(f"[{task}] {spec.label} succeeded ({len(raw)} chars)")
            return ChainOutcome(convert(raw, spec), spec, attempts), attempts

        return None, attempts

    async def run_summary(self, thread: ThreadContent) -> ChainOutcome[SummaryResult]:
        """Summarize through the chain, reporting which spec answered."""
        outcome, attempts = await self._run_chain(
            "summarize",
            self.summary_chain,
            thread,
            None,
            lambda raw, spec: summary_from_output(raw, spec.capability, self.limits),
        )
        if outcome is not None:
            return outcome

        logger.warning("[summarize] all providers failed, using heuristic summary")
        return ChainOutcome(self.heuristics.derive_summary(thread), None, attempts)

    async def run_reply(self, thread: ThreadContent, summary: SummaryResult) -> ChainOutcome[str]:
        """Draft a reply through the chain, reporting which spec answered."""
        outcome, attempts = await self._run_chain(
            "reply",
            self.reply_chain,
            thread,
            summary,
            lambda raw, spec: extract_reply(raw, spec.capability, self.reply_max_chars),
        )
        if outcome is not None:
            return outcome

        logger.warning("[reply] all providers failed, using canned reply")
        return ChainOutcome(self.heuristics.derive_reply(thread), None, attempts)

    async def summarize(self, thread: ThreadContent) -> SummaryResult:
        return (await self.run_summary(thread)).value

    async def reply(self, thread: ThreadContent, summary: SummaryResult) -> str:
        return (await self.run_reply(thread, summary)).value

    def describe(self) -> List[dict]:
        """Provider status for the health endpoint."""
        return [provider.describe() for provider in self.providers.values()]
