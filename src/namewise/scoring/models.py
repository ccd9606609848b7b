"""Confidence score model."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ConfidenceScore(BaseModel):
    """Trust estimate for a suggested name.

    Attributes:
        value: Confidence between 0 and 1.
        reasoning: Short explanation of the evidence used.
        suggested_name: Name without extension, ``None`` when not confident.
    """

    value: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    suggested_name: Optional[str] = None


__all__ = ["ConfidenceScore"]
