"""Contract between the naming pipeline and text-generation services."""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class ProviderCapabilities(BaseModel):
    """Static description of what a service supports.

    Attributes:
        name: Provider identifier used in logs.
        supports_vision: Whether image attachments are accepted.
        max_output_tokens: Upper bound on completion length.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    supports_vision: bool = False
    max_output_tokens: int = Field(default=100, ge=1)


class GenerationRequest(BaseModel):
    """A single completion request."""

    model: str
    system_prompt: str
    user_prompt: str
    images: List[bytes] = Field(default_factory=list)
    temperature: float = 0.3
    max_output_tokens: int = 100


class TokenUsage(BaseModel):
    """Token accounting reported by the service."""

    prompt: int = 0
    completion: int = 0
    total: int = 0


class GenerationResponse(BaseModel):
    """Completion text plus usage and finish metadata."""

    text: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    finish_reason: Optional[str] = None
    model: Optional[str] = None


@runtime_checkable
class GenerativeTextService(Protocol):
    """Protocol implemented by text-generation backends."""

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return the static capability descriptor."""

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Return a completion for ``request``.

        Implementations may raise any exception; the invoker classifies it.
        """


__all__ = [
    "ProviderCapabilities",
    "GenerationRequest",
    "TokenUsage",
    "GenerationResponse",
    "GenerativeTextService",
]
