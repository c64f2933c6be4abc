"""Google Gemini provider implementation.

This module provides an LLMProvider implementation backed by the
``google-generativeai`` SDK.

Usage:
    provider = GeminiProvider(api_key="...")
    text = provider.generate(prompt, "gemini-1.5-flash", GenerationParameters())
"""
import logging
from typing import Any, Dict, Optional

from .base import GenerationParameters, LLMProvider, http_status_of
from .errors import ProviderError, ProviderOtherError, error_for_status

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """LLMProvider implementation using Google's Gemini API.

    Attributes:
        api_key: Gemini API key for authentication.
    """

    provider_id = "gemini"
    DEFAULT_MODEL = "gemini-1.5-flash"

    def __init__(self, api_key: Optional[str]) -> None:
        self.api_key = api_key
        self._genai: Optional[Any] = None
        self._models: Dict[str, Any] = {}

    def _get_sdk(self) -> Any:
        """Import and configure the SDK on first use.

        Raises:
            ImportError: If google-generativeai is not installed.
        """
        if self._genai is None:
            try:
                import google.generativeai as genai
            except ImportError:
                raise ImportError(
                    "google-generativeai package is required for GeminiProvider. "
                    "Install it with: pip install google-generativeai"
                )
            genai.configure(api_key=self.api_key)
            self._genai = genai
        return self._genai

    def _get_model(self, model: str) -> Any:
        if model not in self._models:
            self._models[model] = self._get_sdk().GenerativeModel(model)
        return self._models[model]

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def _generation_config(parameters: GenerationParameters) -> Dict[str, Any]:
        config: Dict[str, Any] = {}
        if parameters.max_tokens is not None:
            config["max_output_tokens"] = parameters.max_tokens
        if parameters.temperature is not None:
            config["temperature"] = parameters.temperature
        if parameters.top_p is not None:
            config["top_p"] = parameters.top_p
        return config

    def generate(self, prompt: str, model: str, parameters: GenerationParameters) -> str:
        """Call ``generate_content`` and return the response text.

        Raises:
            ProviderError: Quota (429), transient (5xx), timeout (408) or other.
        """
        if not self.is_configured():
            raise ProviderOtherError("Gemini API key is not configured", self.provider_id)

        generation_config = self._generation_config(parameters)
        try:
            gen_model = self._get_model(model)
            if generation_config:
                response = gen_model.generate_content(prompt, generation_config=generation_config)
            else:
                response = gen_model.generate_content(prompt)
            text = response.text
        except ProviderError:
            raise
        except Exception as e:
            status = http_status_of(e)
            logger.warning(f"Gemini call failed (model={model}, status={status}): {e}")
            raise error_for_status(status, f"Gemini error: {e}", self.provider_id) from e

        return text or ""
