"""Text-generation service contract and adapters."""

from .base import (
    GenerationRequest,
    GenerationResponse,
    GenerativeTextService,
    ProviderCapabilities,
    TokenUsage,
)
from .errors import (
    ProviderAuthFailure,
    ProviderError,
    ProviderNetworkFailure,
    ProviderRateLimited,
    ProviderUnknownFailure,
)

__all__ = [
    "GenerationRequest",
    "GenerationResponse",
    "GenerativeTextService",
    "ProviderCapabilities",
    "TokenUsage",
    "ProviderError",
    "ProviderRateLimited",
    "ProviderAuthFailure",
    "ProviderNetworkFailure",
    "ProviderUnknownFailure",
]
