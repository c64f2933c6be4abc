"""Thread Relay application configuration.

Loads settings from two YAML files:
  * relay.settings.yaml: non-secret configuration
  * relay.secrets.yaml: provider API keys (never committed)

Environment variables override the files for the values a deployment
usually injects: GEMINI_API_KEY, HUGGINGFACE_API_KEY, GEMINI_MODEL, PORT.
RELAY_SETTINGS / RELAY_SECRETS point at alternative file locations.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("relay.settings.yaml")
SECRETS_FILE  = Path("relay.secrets.yaml")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Secrets models
# ---------------------------------------------------------------------------


class GeminiSecrets(BaseModel):
    api_key: Optional[str] = None


class HuggingFaceSecrets(BaseModel):
    api_key: Optional[str] = None


class Secrets(BaseModel):
    gemini:      GeminiSecrets      = Field(default_factory=GeminiSecrets)
    huggingface: HuggingFaceSecrets = Field(default_factory=HuggingFaceSecrets)


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str       = "0.0.0.0"
    port:            int       = 3000
    reload:          bool      = False
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    max_body_bytes:  int       = Field(default=10 * 1024 * 1024, ge=1)


class LoggingSettings(BaseModel):
    level: str = "info"


class RouteLimit(BaseModel):
    requests:       int   = Field(default=10, ge=1)
    window_seconds: float = Field(default=3600.0, gt=0.0)


class RateLimitSettings(BaseModel):
    """Fixed-window quota per client key; ``routes`` overrides by path."""
    enabled:        bool                  = True
    requests:       int                   = Field(default=10, ge=1)
    window_seconds: float                 = Field(default=3600.0, gt=0.0)
    client_header:  str                   = "x-client-id"
    routes:         Dict[str, RouteLimit] = Field(default_factory=dict)

    def limit_for(self, route: str) -> RouteLimit:
        return self.routes.get(route) or RouteLimit(
            requests=self.requests, window_seconds=self.window_seconds
        )


class CacheSettings(BaseModel):
    enabled:     bool  = True
    ttl_seconds: float = Field(default=1800.0, gt=0.0)


class SweepSettings(BaseModel):
    """How often expired rate-limit windows and cache entries are evicted."""
    interval_seconds: float = Field(default=60.0, gt=0.0)


class SummarySettings(BaseModel):
    max_text_chars: int = Field(default=10_000, ge=1)


class ReplySettings(BaseModel):
    """``max_chars`` of 0 leaves the reply budget to the prompt alone."""
    max_chars: int = Field(default=120, ge=0)


class RetrySettings(BaseModel):
    max_attempts:         int   = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=1.0, ge=0.0)


class ParserSettings(BaseModel):
    """Limits applied when turning model output into a summary."""
    max_points:       int = Field(default=3, ge=1)
    max_quotes:       int = Field(default=2, ge=1)
    point_max_chars:  int = Field(default=100, ge=1)
    quote_max_chars:  int = Field(default=80, ge=1)
    line_min_chars:   int = Field(default=20, ge=0)
    line_max_chars:   int = Field(default=150, ge=1)


class HeuristicSettings(BaseModel):
    """Thresholds for the no-model summary and reply."""
    min_line_chars:         int = Field(default=10, ge=0)
    meaningful_min_chars:   int = Field(default=30, ge=0)
    meaningful_min_words:   int = Field(default=5, ge=0)
    quote_min_chars:        int = Field(default=20, ge=0)
    quote_max_chars:        int = Field(default=100, ge=1)
    chars_per_minute:       int = Field(default=200, ge=1)


class ProviderCallConfig(BaseModel):
    """One attempt in a fallback chain."""
    provider:           Literal["gemini", "huggingface"]
    model:              str
    capability:         Literal["instruct", "completion"] = "instruct"
    prompt:             Literal["detailed", "compact"]    = "detailed"
    max_tokens:         Optional[int]   = Field(default=None, ge=1)
    temperature:        Optional[float] = Field(default=None, ge=0.0)
    top_p:              Optional[float] = Field(default=None, gt=0.0, le=1.0)
    do_sample:          Optional[bool]  = None
    repetition_penalty: Optional[float] = Field(default=None, gt=0.0)
    timeout_seconds:    float           = Field(default=30.0, gt=0.0)


def _default_summarize_chain() -> List[ProviderCallConfig]:
    return [
        ProviderCallConfig(
            provider="gemini", model="gemini-1.5-flash",
            capability="instruct", prompt="detailed", timeout_seconds=30.0,
        ),
        ProviderCallConfig(
            provider="huggingface", model="gpt2",
            capability="completion", prompt="compact",
            max_tokens=150, temperature=0.7, top_p=0.9, do_sample=True,
            timeout_seconds=15.0,
        ),
        ProviderCallConfig(
            provider="huggingface", model="distilgpt2",
            capability="completion", prompt="compact",
            max_tokens=150, temperature=0.7, top_p=0.9, do_sample=True,
            timeout_seconds=15.0,
        ),
    ]


def _default_reply_chain() -> List[ProviderCallConfig]:
    return [
        ProviderCallConfig(
            provider="gemini", model="gemini-1.5-flash",
            capability="instruct", prompt="detailed", timeout_seconds=20.0,
        ),
        ProviderCallConfig(
            provider="huggingface", model="gpt2",
            capability="completion", prompt="compact",
            max_tokens=80, temperature=0.8, top_p=0.9, do_sample=True,
            timeout_seconds=10.0,
        ),
        ProviderCallConfig(
            provider="huggingface", model="distilgpt2",
            capability="completion", prompt="compact",
            max_tokens=80, temperature=0.8, top_p=0.9, do_sample=True,
            timeout_seconds=10.0,
        ),
    ]


class ProviderChains(BaseModel):
    summarize: List[ProviderCallConfig] = Field(default_factory=_default_summarize_chain)
    reply:     List[ProviderCallConfig] = Field(default_factory=_default_reply_chain)


class RelayConfig(BaseModel):
    server:     ServerSettings    = Field(default_factory=ServerSettings)
    logging:    LoggingSettings   = Field(default_factory=LoggingSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cache:      CacheSettings     = Field(default_factory=CacheSettings)
    sweep:      SweepSettings     = Field(default_factory=SweepSettings)
    summary:    SummarySettings   = Field(default_factory=SummarySettings)
    reply:      ReplySettings     = Field(default_factory=ReplySettings)
    retry:      RetrySettings     = Field(default_factory=RetrySettings)
    parser:     ParserSettings    = Field(default_factory=ParserSettings)
    heuristics: HeuristicSettings = Field(default_factory=HeuristicSettings)
    providers:  ProviderChains    = Field(default_factory=ProviderChains)
    secrets:    Secrets           = Field(default_factory=Secrets)

    @field_validator("secrets", mode="before")
    @classmethod
    def _empty_secrets(cls, value: Any) -> Any:
        return value or {}


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


def _apply_env_overrides(config: RelayConfig) -> RelayConfig:
    """Let deployment environment variables win over file values."""
    gemini_key = os.environ.get("GEMINI_API_KEY")
    if gemini_key:
        config.secrets.gemini.api_key = gemini_key

    hf_key = os.environ.get("HUGGINGFACE_API_KEY")
    if hf_key:
        config.secrets.huggingface.api_key = hf_key

    gemini_model = os.environ.get("GEMINI_MODEL")
    if gemini_model:
        for chain in (config.providers.summarize, config.providers.reply):
            for entry in chain:
                if entry.provider == "gemini":
                    entry.model = gemini_model

    port = os.environ.get("PORT")
    if port:
        try:
            config.server.port = int(port)
        except ValueError:
            logger.warning("Ignoring non-numeric PORT=%r", port)

    return config


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(
    settings_path: Optional[Path] = None,
    secrets_path: Optional[Path] = None,
) -> RelayConfig:
    """Load and merge settings + secrets into a single *RelayConfig*."""
    settings_path = Path(settings_path or os.environ.get("RELAY_SETTINGS") or SETTINGS_FILE)
    secrets_path  = Path(secrets_path or os.environ.get("RELAY_SECRETS") or SECRETS_FILE)

    settings_data = _load_yaml(settings_path)
    secrets_data  = _load_yaml(secrets_path)

    # Merge: secrets live under the "secrets" key in RelayConfig
    settings_data["secrets"] = secrets_data

    config = _apply_env_overrides(RelayConfig(**settings_data))
    logger.info(
        "Settings loaded (server=%s:%s, summarize_chain=%d, reply_chain=%d)",
        config.server.host,
        config.server.port,
        len(config.providers.summarize),
        len(config.providers.reply),
    )
    return config


# Global config instance (loaded lazily on first access)
_config: Optional[RelayConfig] = None


def get_config() -> RelayConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[RelayConfig]) -> None:
    """Replace the process-wide configuration (``None`` forces a reload)."""
    global _config
    _config = config
