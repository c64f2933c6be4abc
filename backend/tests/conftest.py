"""Shared test fixtures and configuration for backend tests."""
import random
import time

import pytest
from fastapi.testclient import TestClient

from relay.ai_provider import (
    Capability,
    FallbackOrchestrator,
    GenerationParameters,
    LLMProvider,
    ProviderCallSpec,
    ProviderOtherError,
    ThreadHeuristics,
)
from relay.ai_provider.prompts import get_prompt_builder
from relay.config import RelayConfig, RetrySettings
from relay.main import create_app


WELL_FORMED_SUMMARY = """Key Points:
1. The team shipped the new onboarding flow this week
2. Activation rates rose by twelve percent after launch
3. Support tickets about sign-up dropped noticeably

Quotes:
Quote 1: "This is the smoothest release we have had"
Quote 2: "Users finally understand the first screen"

Sentiment: positive
Reading time: 2 minutes"""


class ScriptedProvider(LLMProvider):
    """Provider that replays a script of outputs and exceptions.

    Once the script runs out the last entry repeats, so a one-entry script
    answers every call the same way.
    """

    def __init__(self, provider_id, script, configured=True, delay=0.0):
        self.provider_id = provider_id
        self.script = list(script)
        self.configured = configured
        self.delay = delay
        self.calls = []

    def is_configured(self):
        return self.configured

    def generate(self, prompt, model, parameters):
        self.calls.append((prompt, model, parameters))
        if self.delay:
            time.sleep(self.delay)
        entry = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(entry, BaseException):
            raise entry
        return entry


def make_spec(provider_id, model_id="test-model", capability=Capability.INSTRUCT, task="summarize", timeout=5.0):
    style = "detailed" if capability == Capability.INSTRUCT else "compact"
    return ProviderCallSpec(
        provider_id=provider_id,
        model_id=model_id,
        capability=capability,
        prompt_builder=get_prompt_builder(task, style),
        parameters=GenerationParameters(max_tokens=64),
        timeout_seconds=timeout,
    )


@pytest.fixture
def scripted_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


@pytest.fixture
def spec_factory():
    """Factory for ProviderCallSpec instances with test defaults."""
    return make_spec


@pytest.fixture
def relay_config():
    """Config with retries that never sleep and a roomy rate limit."""
    config = RelayConfig()
    config.retry = RetrySettings(max_attempts=3, backoff_base_seconds=0.0)
    config.rate_limit.requests = 100
    return config


@pytest.fixture
def seeded_heuristics(relay_config):
    return ThreadHeuristics(relay_config.heuristics, relay_config.parser, rng=random.Random(7))


@pytest.fixture
def working_orchestrator(relay_config, seeded_heuristics):
    """Orchestrator whose only provider answers every call."""
    provider = ScriptedProvider("primary", [WELL_FORMED_SUMMARY])
    return FallbackOrchestrator(
        {"primary": provider},
        [make_spec("primary")],
        [make_spec("primary", task="reply")],
        retry=relay_config.retry,
        limits=relay_config.parser,
        heuristics=seeded_heuristics,
        reply_max_chars=relay_config.reply.max_chars,
    )


@pytest.fixture
def failing_orchestrator(relay_config, seeded_heuristics):
    """Orchestrator whose only provider always fails."""
    provider = ScriptedProvider("primary", [ProviderOtherError("boom", "primary")])
    return FallbackOrchestrator(
        {"primary": provider},
        [make_spec("primary")],
        [make_spec("primary", task="reply")],
        retry=relay_config.retry,
        limits=relay_config.parser,
        heuristics=seeded_heuristics,
    )


@pytest.fixture
def api_client(relay_config, working_orchestrator):
    """Provide a TestClient for an app wired to a working provider."""
    return TestClient(create_app(relay_config, working_orchestrator))
