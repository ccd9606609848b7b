"""Prompt context and assembled prompt models."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class PromptMode(str, Enum):
    """Verbosity tier of a generated prompt."""

    ULTRA_MINIMAL = "ultra-minimal"
    MINIMAL = "minimal"
    STANDARD = "standard"


class PromptMetadata(BaseModel):
    """Optional file facts included in prompts."""

    filename: Optional[str] = None
    size: Optional[int] = None
    date: Optional[str] = None


class PromptContext(BaseModel):
    """Inputs used to build a naming prompt.

    Attributes:
        file_type: Coarse file type class such as ``image`` or ``pdf``.
        content: Sampled text content, if any.
        pattern: Batch naming pattern to follow.
        metadata: Original name, size, and date hints.
    """

    file_type: str
    content: Optional[str] = None
    pattern: Optional[str] = None
    metadata: PromptMetadata = Field(default_factory=PromptMetadata)


class PromptSpec(BaseModel):
    """System and user text ready to send to a text-generation service."""

    system: str
    user: str
    token_estimate: int = Field(ge=0)
    mode: PromptMode
    images: List[bytes] = Field(default_factory=list)


__all__ = ["PromptMode", "PromptMetadata", "PromptContext", "PromptSpec"]
