"""Build providers and fallback chains from configuration.

Usage:
    from relay.ai_provider.registry import build_orchestrator
    from relay.config import get_config

    orchestrator = build_orchestrator(get_config())
"""
import logging
from typing import Dict, List, Sequence

from relay.config import ProviderCallConfig, RelayConfig

from .base import Capability, GenerationParameters, LLMProvider, ProviderCallSpec
from .gemini_provider import GeminiProvider
from .heuristics import ThreadHeuristics
from .huggingface_provider import HuggingFaceProvider
from .orchestrator import FallbackOrchestrator
from .prompts import get_prompt_builder

logger = logging.getLogger(__name__)


def build_providers(config: RelayConfig) -> Dict[str, LLMProvider]:
    """Create one provider per supported service, configured or not.

    Unconfigured providers stay in the map so the health endpoint can
    report them; the orchestrator skips them.
    """
    providers: Dict[str, LLMProvider] = {
        GeminiProvider.provider_id: GeminiProvider(api_key=config.secrets.gemini.api_key),
        HuggingFaceProvider.provider_id: HuggingFaceProvider(api_key=config.secrets.huggingface.api_key),
    }
    for provider_id, provider in providers.items():
        if provider.is_configured():
            logger.info(f"Provider {provider_id} configured")
        else:
            logger.warning(f"Provider {provider_id} has no API key; it will be skipped")
    return providers


def build_spec(task: str, entry: ProviderCallConfig) -> ProviderCallSpec:
    return ProviderCallSpec(
        provider_id=entry.provider,
        model_id=entry.model,
        capability=Capability(entry.capability),
        prompt_builder=get_prompt_builder(task, entry.prompt),
        parameters=GenerationParameters(
            max_tokens=entry.max_tokens,
            temperature=entry.temperature,
            top_p=entry.top_p,
            do_sample=entry.do_sample,
            repetition_penalty=entry.repetition_penalty,
        ),
        timeout_seconds=entry.timeout_seconds,
    )


def build_chain(task: str, entries: Sequence[ProviderCallConfig]) -> List[ProviderCallSpec]:
    chain = [build_spec(task, entry) for entry in entries]
    logger.info(f"{task} chain: {' -> '.join(spec.label for spec in chain) or '(empty)'}")
    return chain


def build_orchestrator(config: RelayConfig) -> FallbackOrchestrator:
    """Wire providers, chains and heuristics from one config object."""
    return FallbackOrchestrator(
        build_providers(config),
        build_chain("summarize", config.providers.summarize),
        build_chain("reply", config.providers.reply),
        retry=config.retry,
        limits=config.parser,
        heuristics=ThreadHeuristics(config.heuristics, config.parser),
        reply_max_chars=config.reply.max_chars,
    )
