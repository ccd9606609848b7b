"""Coarse file type classes derived from extensions."""

from __future__ import annotations

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".heic", ".heif", ".webp"})

_TYPE_MAP = {
    **{ext: "image" for ext in IMAGE_EXTENSIONS},
    ".mp4": "video",
    ".avi": "video",
    ".mov": "video",
    ".mkv": "video",
    ".pdf": "pdf",
    ".txt": "document",
    ".md": "document",
    ".doc": "document",
    ".docx": "document",
    ".xlsx": "spreadsheet",
    ".xls": "spreadsheet",
    ".csv": "spreadsheet",
    ".mp3": "audio",
    ".wav": "audio",
}


def file_type_for(extension: str) -> str:
    """Return the type class for ``extension`` (``other`` when unknown)."""
    return _TYPE_MAP.get(extension.lower(), "other")


def is_image(extension: str) -> bool:
    return extension.lower() in IMAGE_EXTENSIONS


__all__ = ["IMAGE_EXTENSIONS", "file_type_for", "is_image"]
