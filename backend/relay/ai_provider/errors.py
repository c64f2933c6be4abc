"""Typed provider errors.

Providers translate SDK and transport failures into this closed set at the
boundary, so the adapter and orchestrator decide what to do by type alone.

    ProviderTransientError  overload / server busy   retried locally, then next spec
    ProviderQuotaError      caller quota exhausted   next spec, no local retry
    ProviderTimeoutError    wall-clock budget spent  next spec
    ProviderOtherError      anything else            next spec
"""
from typing import Optional

TRANSIENT_STATUS_CODES = frozenset({500, 502, 503, 504})
QUOTA_STATUS_CODES = frozenset({429})
TIMEOUT_STATUS_CODES = frozenset({408})


class ProviderError(Exception):
    """Base exception for failures of a single provider call."""
    kind = "other"

    def __init__(self, message: str, provider_id: str = "", status_code: Optional[int] = None):
        self.message = message
        self.provider_id = provider_id
        self.status_code = status_code
        super().__init__(message)


class ProviderTransientError(ProviderError):
    """Provider is overloaded or temporarily unavailable."""
    kind = "transient"


class ProviderQuotaError(ProviderError):
    """Caller exceeded its usage allowance on the provider."""
    kind = "quota"


class ProviderTimeoutError(ProviderError):
    """No response arrived within the call's wall-clock budget."""
    kind = "timeout"


class ProviderOtherError(ProviderError):
    """Unclassified provider failure (bad request, auth, empty output...)."""
    kind = "other"


def error_for_status(status: Optional[int], message: str, provider_id: str) -> ProviderError:
    """Map an HTTP status to the matching ProviderError subclass."""
    if status in QUOTA_STATUS_CODES:
        return ProviderQuotaError(message, provider_id, status)
    if status in TRANSIENT_STATUS_CODES:
        return ProviderTransientError(message, provider_id, status)
    if status in TIMEOUT_STATUS_CODES:
        return ProviderTimeoutError(message, provider_id, status)
    return ProviderOtherError(message, provider_id, status)
