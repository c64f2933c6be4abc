"""Hugging Face Inference API provider implementation.

This module provides an LLMProvider implementation backed by
``huggingface_hub.InferenceClient``. One client serves every hosted model;
the model is chosen per call.

Usage:
    provider = HuggingFaceProvider(api_key="hf_...")
    text = provider.generate(prompt, "gpt2", GenerationParameters(max_tokens=150))
"""
import logging
from typing import Any, Dict, Optional, Tuple

from .base import GenerationParameters, LLMProvider, http_status_of
from .errors import ProviderError, ProviderOtherError, ProviderTimeoutError, error_for_status

logger = logging.getLogger(__name__)


class HuggingFaceProvider(LLMProvider):
    """LLMProvider implementation using the Hugging Face Inference API.

    Attributes:
        api_key: Hugging Face access token.
    """

    provider_id = "huggingface"

    def __init__(self, api_key: Optional[str]) -> None:
        self.api_key = api_key
        self._client: Optional[Any] = None
        self._timeout_error: Tuple[type, ...] = ()

    def _get_client(self) -> Any:
        """Get or create the inference client.

        Raises:
            ImportError: If huggingface_hub is not installed.
        """
        if self._client is None:
            try:
                from huggingface_hub import InferenceClient, InferenceTimeoutError
            except ImportError:
                raise ImportError(
                    "huggingface_hub package is required for HuggingFaceProvider. "
                    "Install it with: pip install huggingface_hub"
                )
            self._client = InferenceClient(token=self.api_key)
            self._timeout_error = (InferenceTimeoutError,)
        return self._client

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def _generation_kwargs(parameters: GenerationParameters) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        if parameters.max_tokens is not None:
            kwargs["max_new_tokens"] = parameters.max_tokens
        if parameters.temperature is not None:
            kwargs["temperature"] = parameters.temperature
        if parameters.top_p is not None:
            kwargs["top_p"] = parameters.top_p
        if parameters.do_sample is not None:
            kwargs["do_sample"] = parameters.do_sample
        if parameters.repetition_penalty is not None:
            kwargs["repetition_penalty"] = parameters.repetition_penalty
        return kwargs

    def generate(self, prompt: str, model: str, parameters: GenerationParameters) -> str:
        """Call ``text_generation`` and return the generated continuation.

        Raises:
            ProviderError: Quota (429), transient (5xx, model loading),
                timeout, or other.
        """
        if not self.is_configured():
            raise ProviderOtherError("Hugging Face token is not configured", self.provider_id)

        try:
            client = self._get_client()
            output = client.text_generation(prompt, model=model, **self._generation_kwargs(parameters))
        except ProviderError:
            raise
        except Exception as e:
            if self._timeout_error and isinstance(e, self._timeout_error):
                raise ProviderTimeoutError(f"Hugging Face timeout: {e}", self.provider_id) from e
            status = http_status_of(e)
            logger.warning(f"Hugging Face call failed (model={model}, status={status}): {e}")
            raise error_for_status(status, f"Hugging Face error: {e}", self.provider_id) from e

        # details=True returns an object carrying generated_text
        if isinstance(output, str):
            return output
        return getattr(output, "generated_text", "") or ""
