"""Result and statistics models for the naming pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from namewise.providers.errors import ProviderError


class PipelineStage(str, Enum):
    """Stage that produced a result."""

    METADATA = "metadata"
    CHEAP_MODEL = "cheap-model"
    PREMIUM_MODEL = "premium-model"
    BATCH_PATTERN = "batch-pattern"


class NamingFailure(BaseModel):
    """Terminal failure attached to a result.

    Attributes:
        code: Machine-readable failure code, e.g. ``rate_limited``.
        message: Human-readable description.
        retryable: Whether the underlying failure was retryable.
        retries: Retries performed before giving up.
    """

    code: str
    message: str
    retryable: bool = False
    retries: int = 0

    @classmethod
    def from_error(cls, error: ProviderError) -> "NamingFailure":
        return cls(
            code=error.code,
            message=error.message,
            retryable=error.retryable,
            retries=error.retries,
        )


class PipelineResult(BaseModel):
    """Outcome of naming a single file.

    Attributes:
        original: Path of the input file.
        suggested_name: Proposed name without extension.
        confidence: Confidence in ``[0, 1]``.
        stage: Stage that produced the result; ``None`` when the file never
            entered the pipeline.
        tokens_used: Tokens charged to this file.
        cost: Estimated USD cost.
        reasoning: Short explanation of how the name was produced.
        model: Model that generated the name, if any.
        error: Terminal failure, if any.
    """

    original: str
    suggested_name: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    stage: Optional[PipelineStage] = None
    tokens_used: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0.0)
    reasoning: Optional[str] = None
    model: Optional[str] = None
    error: Optional[NamingFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StageCounts(BaseModel):
    """Number of results produced by each stage."""

    metadata: int = 0
    cheap_model: int = 0
    premium_model: int = 0
    batch_pattern: int = 0


class PipelineStats(BaseModel):
    """Aggregate view over a list of results."""

    total: int = 0
    by_stage: StageCounts = Field(default_factory=StageCounts)
    failed: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    average_confidence: float = 0.0


__all__ = [
    "PipelineStage",
    "NamingFailure",
    "PipelineResult",
    "StageCounts",
    "PipelineStats",
]
