"""Text normalisation helpers shared by scoring, parsing, and grouping."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Union

_UNSAFE = re.compile(r"[^a-z0-9_-]")
_UNDERSCORES = re.compile(r"_+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[\s\-.]+")
_TRAILING_EXTENSION = re.compile(r"\.[A-Za-z0-9]{1,5}$")
_LABEL_PREFIX = re.compile(r"^(filename|file name|name|file)\s*:\s*", re.IGNORECASE)
_QUOTES = "\"'`"
_RESERVED = re.compile(r'[\x00-\x1f\x7f-\x9f<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")

CASE_FORMATS = ("snake_case", "kebab-case", "camelCase", "PascalCase", "preserve")


def sanitize_name(value: str) -> str:
    """Return ``value`` lower-cased with unsafe characters collapsed to ``_``."""
    normalized = _UNSAFE.sub("_", value.strip().lower())
    return _UNDERSCORES.sub("_", normalized).strip("_")


def to_snake_case(value: str) -> str:
    """Convert camelCase, spaces, dots, and dashes to snake_case."""
    spaced = _CAMEL_BOUNDARY.sub("_", value.strip())
    return sanitize_name(_SEPARATORS.sub("_", spaced))


def clean_model_output(text: str) -> str:
    """Reduce a raw model reply to a bare file name in the model's own casing.

    Only the first non-empty line is used. Quotes, ``Filename:`` labels, path
    separators, and a trailing extension are removed. Case conversion is left
    to :func:`format_name`.
    """
    line = next((part.strip() for part in text.splitlines() if part.strip()), "")
    line = line.strip(_QUOTES).strip()
    line = _LABEL_PREFIX.sub("", line).strip(_QUOTES).strip()
    line = line.replace("/", "_").replace("\\", "_")
    return _TRAILING_EXTENSION.sub("", line).strip()


def split_words(value: str) -> list[str]:
    """Split snake, kebab, camel, or spaced text into lower-case words."""
    return [word for word in to_snake_case(value).split("_") if word]


def apply_case(value: str, case: str) -> str:
    """Rewrite ``value`` in one of :data:`CASE_FORMATS`.

    Raises:
        ValueError: If ``case`` is not a known format.
    """
    if case == "preserve":
        return value
    words = split_words(value)
    if case == "snake_case":
        return "_".join(words)
    if case == "kebab-case":
        return "-".join(words)
    capitalized = [word[:1].upper() + word[1:] for word in words]
    if case == "PascalCase":
        return "".join(capitalized)
    if case == "camelCase":
        return "".join(words[:1] + capitalized[1:])
    raise ValueError(f"Unknown case format '{case}'")


def sanitize_filename(value: str, *, replacement: str = "_", max_length: int = 255) -> str:
    """Replace reserved characters and whitespace, then cap the length.

    Leading and trailing dots and spaces are dropped. A value with nothing
    usable left becomes ``unnamed``.
    """
    cleaned = _RESERVED.sub(replacement, value).strip(" .")
    cleaned = _WHITESPACE.sub(replacement, cleaned)
    cleaned = cleaned[:max_length].rstrip(" ._-" + replacement)
    return cleaned or "unnamed"


def format_name(
    value: str,
    *,
    case: str = "snake_case",
    max_length: int = 100,
    sanitize: bool = True,
    replacement: str = "_",
) -> str:
    """Apply the configured case format, sanitising, and length cap to a name.

    Returns an empty string when ``value`` has no usable characters so callers
    can treat it as a missing name.
    """
    name = apply_case(value.strip(), case)
    if not name:
        return ""
    if sanitize:
        return sanitize_filename(name, replacement=replacement, max_length=max_length)
    return name[:max_length]


def format_date(value: Union[date, datetime]) -> str:
    """Return ``value`` as ``YYYY_MM_DD``."""
    return f"{value.year:04d}_{value.month:02d}_{value.day:02d}"


__all__ = [
    "CASE_FORMATS",
    "apply_case",
    "clean_model_output",
    "format_date",
    "format_name",
    "sanitize_filename",
    "sanitize_name",
    "split_words",
    "to_snake_case",
]
