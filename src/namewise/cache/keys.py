"""Cache key derivation."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping

from namewise.ingestion.models import FileDescriptor


def derive_cache_key(descriptor: FileDescriptor, options: Mapping[str, Any]) -> str:
    """Return a SHA-256 key over file identity and the effective options.

    Args:
        descriptor: File being named; path, size, and mtime identify a version.
        options: Settings that influence the result, serialised with sorted keys.

    Returns:
        str: Hex digest.
    """
    payload = "|".join(
        [
            str(descriptor.path),
            str(descriptor.size_bytes),
            descriptor.modified_at.isoformat(),
            json.dumps(options, sort_keys=True, separators=(",", ":"), default=str),
        ]
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


__all__ = ["derive_cache_key"]
