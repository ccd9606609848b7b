"""Tiered prompt construction with token estimates."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from .models import PromptContext, PromptMode, PromptSpec

ULTRA_MINIMAL_SYSTEM = "Generate filename. snake_case. No extension."
MINIMAL_SYSTEM = (
    "Generate descriptive filename from content. Return only filename, no extension. "
    "Use snake_case format."
)
STANDARD_SYSTEM = (
    "You are a file naming assistant that generates descriptive, organized filenames "
    "based on file content and metadata.\n"
    "\n"
    "Rules:\n"
    "- Return ONLY the filename without extension\n"
    "- Use snake_case format\n"
    "- Be descriptive but concise (max 50 characters)\n"
    "- Include key identifying information\n"
    "- No special characters except underscore"
)
BATCH_SYSTEM = "Apply naming pattern. snake_case. No extension."

LARGE_FILE_BYTES = 10_000_000

_ULTRA_MINIMAL_TEMPLATES = {
    "image": ("Photo", 20),
    "video": ("Video", 20),
    "pdf": ("PDF", 30),
    "document": ("Doc", 30),
}


def estimate_tokens(text: str) -> int:
    """Approximate the token count of ``text`` at four characters per token."""
    return math.ceil(len(text) / 4)


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def format_size(size_bytes: int) -> str:
    """Return a short human-readable size such as ``12KB`` or ``3.4MB``."""
    if size_bytes < 1024:
        return f"{size_bytes}B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.0f}KB"
    if size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f}MB"
    return f"{size_bytes / (1024 * 1024 * 1024):.1f}GB"


class PromptBuilder:
    """Build system/user prompts at one of three verbosity tiers."""

    def build(
        self,
        context: PromptContext,
        mode: PromptMode = PromptMode.MINIMAL,
        *,
        images: Optional[Iterable[bytes]] = None,
    ) -> PromptSpec:
        """Return a prompt for ``context`` in the requested ``mode``.

        Args:
            context: File type, content sample, and metadata hints.
            mode: Prompt verbosity tier.
            images: Optional image attachments carried through unchanged.

        Returns:
            PromptSpec: System and user text with a token estimate.
        """
        mode = PromptMode(mode)
        if mode is PromptMode.ULTRA_MINIMAL:
            system, user = ULTRA_MINIMAL_SYSTEM, self._ultra_minimal_user(context)
        elif mode is PromptMode.STANDARD:
            system, user = STANDARD_SYSTEM, self._standard_user(context)
        else:
            system, user = MINIMAL_SYSTEM, self._minimal_user(context)

        return PromptSpec(
            system=system,
            user=user,
            token_estimate=estimate_tokens(system + user),
            mode=mode,
            images=list(images or []),
        )

    def build_batch_prompt(self, pattern: str, file_info: str) -> PromptSpec:
        """Return a prompt asking the model to apply ``pattern`` to one file."""
        user = f"Pattern: {pattern}\nFile: {file_info}\nName:"
        return PromptSpec(
            system=BATCH_SYSTEM,
            user=user,
            token_estimate=estimate_tokens(BATCH_SYSTEM + user),
            mode=PromptMode.ULTRA_MINIMAL,
        )

    @staticmethod
    def recommended_mode(file_type: str, content_length: int) -> PromptMode:
        """Suggest a tier from file type and content length."""
        if file_type == "document" and content_length < 1000:
            return PromptMode.ULTRA_MINIMAL
        if file_type == "video" or content_length > 5000:
            return PromptMode.STANDARD
        return PromptMode.MINIMAL

    # ------------------------------------------------------------------ #
    # User prompt tiers                                                  #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _ultra_minimal_user(context: PromptContext) -> str:
        if context.pattern:
            return f"Pattern: {context.pattern}. {context.file_type}. Name:"

        label, limit = _ULTRA_MINIMAL_TEMPLATES.get(context.file_type, (context.file_type, 20))
        return f"{label}: {truncate(context.content or '', limit)}. Name:"

    @staticmethod
    def _minimal_user(context: PromptContext) -> str:
        parts = [f"Type: {context.file_type}"]
        if context.content:
            parts.append(f"Content: {truncate(context.content, 100)}")
        if context.metadata.date:
            parts.append(f"Date: {context.metadata.date}")
        if context.metadata.size and context.metadata.size > LARGE_FILE_BYTES:
            parts.append("Size: large")
        parts.append("Suggest filename:")
        return ". ".join(parts)

    @staticmethod
    def _standard_user(context: PromptContext) -> str:
        parts = [f"File Type: {context.file_type}"]
        if context.metadata.filename:
            parts.append(f"Original: {context.metadata.filename}")
        if context.content:
            parts.append(f"Content:\n{truncate(context.content, 500)}")
        if context.metadata.date:
            parts.append(f"Date: {context.metadata.date}")
        if context.metadata.size:
            parts.append(f"Size: {format_size(context.metadata.size)}")
        parts.append("\nSuggest a descriptive filename:")
        return "\n".join(parts)


__all__ = ["PromptBuilder", "estimate_tokens", "format_size", "truncate"]
