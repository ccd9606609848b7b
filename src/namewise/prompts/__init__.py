"""Prompt construction for naming requests."""

from .builder import PromptBuilder, estimate_tokens, format_size
from .models import PromptContext, PromptMetadata, PromptMode, PromptSpec

__all__ = [
    "PromptBuilder",
    "PromptContext",
    "PromptMetadata",
    "PromptMode",
    "PromptSpec",
    "estimate_tokens",
    "format_size",
]
