"""Classified failures raised by text-generation services."""

from __future__ import annotations

from datetime import datetime
from typing import Optional


class ProviderError(Exception):
    """Base exception for text-generation failures.

    Attributes:
        code: Stable machine-readable failure code.
        retryable: Whether another attempt may succeed.
        retries: Retries performed before the error became terminal.
        status: HTTP-like status reported by the service, when known.
    """

    code = "provider_error"
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        retryable: Optional[bool] = None,
        status: Optional[int] = None,
        retries: int = 0,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = self.default_retryable if retryable is None else retryable
        self.status = status
        self.retries = retries


class ProviderRateLimited(ProviderError):
    """Raised when the service rejects a request for exceeding its rate limit."""

    code = "rate_limited"
    default_retryable = True

    def __init__(
        self,
        message: str,
        *,
        reset_at: Optional[datetime] = None,
        status: Optional[int] = 429,
        retries: int = 0,
    ) -> None:
        super().__init__(message, status=status, retries=retries)
        self.reset_at = reset_at


class ProviderAuthFailure(ProviderError):
    """Raised when credentials are missing or rejected."""

    code = "authentication_failed"


class ProviderNetworkFailure(ProviderError):
    """Raised for timeouts and connection failures."""

    code = "network_error"
    default_retryable = True


class ProviderUnknownFailure(ProviderError):
    """Raised for failures that could not be classified."""

    code = "unknown_error"


__all__ = [
    "ProviderError",
    "ProviderRateLimited",
    "ProviderAuthFailure",
    "ProviderNetworkFailure",
    "ProviderUnknownFailure",
]
