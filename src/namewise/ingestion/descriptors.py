"""Build file descriptors from the filesystem."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from .extractors import ExifReader
from .models import FileDescriptor
from .types import is_image

_DEFAULT_READER = ExifReader()


def describe_file(path: Path, *, exif_reader: Optional[ExifReader] = None) -> FileDescriptor:
    """Return a descriptor for ``path``.

    Args:
        path: File to describe.
        exif_reader: Reader used for image EXIF; defaults to a shared instance.

    Returns:
        FileDescriptor: Size, timestamps, extension, and EXIF subset.

    Raises:
        OSError: If the file cannot be statted.
    """
    resolved = path.expanduser().resolve()
    stat = resolved.stat()
    extension = resolved.suffix.lower()

    birthtime = getattr(stat, "st_birthtime", None)
    created_at = datetime.fromtimestamp(birthtime) if birthtime else None

    exif = None
    if is_image(extension):
        exif = (exif_reader or _DEFAULT_READER).read(resolved)

    return FileDescriptor(
        path=resolved,
        size_bytes=stat.st_size,
        modified_at=datetime.fromtimestamp(stat.st_mtime),
        created_at=created_at,
        extension=extension,
        exif=exif,
    )


__all__ = ["describe_file"]
