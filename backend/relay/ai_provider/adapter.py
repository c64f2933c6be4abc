"""Provider adapter: one model call with timeout and transient retry.

The provider SDKs are blocking, so the call runs on the default executor and
is raced against ``asyncio.wait_for``. A call that loses the race is not
interrupted; its thread finishes on its own and the result is dropped.
"""
import asyncio
import functools
import logging

from .base import GenerationParameters, LLMProvider
from .errors import ProviderError, ProviderOtherError, ProviderTimeoutError, ProviderTransientError

logger = logging.getLogger(__name__)


class ProviderAdapter:
    """Binds a provider to one model and executes calls against it.

    Attributes:
        provider: The provider doing the work.
        model_id: Model passed on every call.
        max_attempts: Total attempts for transient failures (first call included).
        backoff_base_seconds: Delay before retry ``n`` is ``base * 2**n``.
    """

    def __init__(
        self,
        provider: LLMProvider,
        model_id: str,
        *,
        max_attempts: int = 3,
        backoff_base_seconds: float = 1.0,
    ) -> None:
        self.provider = provider
        self.model_id = model_id
        self.max_attempts = max(1, max_attempts)
        self.backoff_base_seconds = backoff_base_seconds

    @property
    def label(self) -> str:
        return f"{self.provider.provider_id}/{self.model_id}"

    async def _call_once(self, prompt: str, parameters: GenerationParameters, timeout_seconds: float) -> str:
        loop = asyncio.get_running_loop()
        pending = loop.run_in_executor(
            None,
            functools.partial(self.provider.generate, prompt, self.model_id, parameters),
        )
        try:
            return await asyncio.wait_for(pending, timeout=timeout_seconds)
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(
                f"Operation timed out after {timeout_seconds:g}s",
                self.provider.provider_id,
            )

    async def call(self, prompt: str, parameters: GenerationParameters, timeout_seconds: float) -> str:
        """Run the prompt and return the trimmed output text.

        Raises:
            ProviderTransientError: Still overloaded after the last attempt.
            ProviderQuotaError, ProviderTimeoutError, ProviderOtherError: Not retried.
        """
        for attempt in range(self.max_attempts):
            try:
                raw = await self._call_once(prompt, parameters, timeout_seconds)
            except ProviderTransientError as e:
                if attempt + 1 >= self.max_attempts:
                    raise
                delay = self.backoff_base_seconds * (2 ** attempt)
                logger.warning(
                    f"{self.label} transient failure (attempt {attempt + 1}/{self.max_attempts}), "
                    f"retrying in {delay:g}s: {e.message}"
                )
                await asyncio.sleep(delay)
                continue
            except ProviderError:
                raise
            except Exception as e:
                # Provider implementations should not leak raw exceptions
                raise ProviderOtherError(str(e), self.provider.provider_id) from e

            text = (raw or "").strip()
            if not text:
                raise ProviderOtherError("Provider returned empty text", self.provider.provider_id)
            return text

        # max_attempts >= 1, so the loop always returns or raises
        raise ProviderOtherError("No attempts made", self.provider.provider_id)
