"""Content extractors used by the sampler."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from .models import ExtractedContent

TEXT_EXTENSIONS = frozenset(
    {".txt", ".md", ".csv", ".json", ".log", ".xml", ".yaml", ".yml", ".html", ".rst"}
)
THUMBNAIL_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"})
THUMBNAIL_QUALITY = 80


class ContentExtractionError(Exception):
    """Raised when content cannot be extracted from a file."""


class ContentExtractor(Protocol):
    """Protocol implemented by content extraction backends."""

    def extract(
        self, path: Path, format_hint: str, *, text_chars: int, image_size: int
    ) -> ExtractedContent:
        """Return bounded content for ``path``.

        Args:
            path: File to read.
            format_hint: Lower-cased extension including the dot.
            text_chars: Maximum number of characters of text to return.
            image_size: Maximum thumbnail edge in pixels.

        Raises:
            ContentExtractionError: If the format is unsupported or unreadable.
        """


class BasicContentExtractor:
    """Read plain-text documents and render Pillow thumbnails for images."""

    def extract(
        self, path: Path, format_hint: str, *, text_chars: int, image_size: int
    ) -> ExtractedContent:
        if format_hint in TEXT_EXTENSIONS:
            return self._read_text(path, text_chars)
        if format_hint in THUMBNAIL_EXTENSIONS:
            return self._render_thumbnail(path, image_size)
        raise ContentExtractionError(f"No extractor available for '{format_hint or path.name}'")

    @staticmethod
    def _read_text(path: Path, limit: int) -> ExtractedContent:
        try:
            with path.open("r", encoding="utf-8", errors="replace") as fh:
                sample = fh.read(limit)
        except OSError as exc:
            raise ContentExtractionError(f"Unable to read {path}: {exc}") from exc
        return ExtractedContent(text=sample.strip(), method="text-read")

    @staticmethod
    def _render_thumbnail(path: Path, size: int) -> ExtractedContent:
        try:
            with Image.open(path) as img:
                thumb = img.convert("RGB")
                thumb.thumbnail((size, size))
                buffer = io.BytesIO()
                thumb.save(buffer, format="JPEG", quality=THUMBNAIL_QUALITY)
        except (
            OSError,
            UnidentifiedImageError,
            ValueError,
            Image.DecompressionBombError,
        ) as exc:
            raise ContentExtractionError(f"Unable to render thumbnail for {path}: {exc}") from exc
        return ExtractedContent(thumbnail=buffer.getvalue(), method="thumbnail")


__all__ = [
    "ContentExtractionError",
    "ContentExtractor",
    "BasicContentExtractor",
    "TEXT_EXTENSIONS",
    "THUMBNAIL_EXTENSIONS",
]
