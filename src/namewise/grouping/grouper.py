"""Bucket similar files and reuse one generated name across a group.

Grouping is deliberately coarse: files share a bucket when they have the
same type class, size range, directory, and modification day. The first
file seen in each bucket becomes the representative; once it is named, the
name is turned into a pattern with ``[n]`` or ``[date]`` placeholders that
the siblings fill in without another model call.
"""

from __future__ import annotations

import re
import uuid
from collections import OrderedDict
from datetime import date
from typing import Iterable, List, Optional, Tuple

from namewise.ingestion.models import FileDescriptor
from namewise.ingestion.types import file_type_for
from namewise.text import format_date

from .models import FileGroup, GroupBucket

SEQUENCE_PLACEHOLDER = "[n]"
DATE_PLACEHOLDER = "[date]"

_TRAILING_SEQUENCE = re.compile(r"(\d{3,})$")
_EMBEDDED_DATE = re.compile(r"(\d{4})[-_]?(\d{2})[-_]?(\d{2})")

_MB = 1024 * 1024


def _find_date(name: str) -> Optional[Tuple[re.Match[str], date]]:
    """Return the first run of digits in ``name`` that is a real calendar date."""
    for match in _EMBEDDED_DATE.finditer(name):
        year, month, day = (int(part) for part in match.groups())
        try:
            return match, date(year, month, day)
        except ValueError:
            continue
    return None


BucketKey = Tuple[str, str, str, str]


def size_range_for(size_bytes: int) -> str:
    """Return the size bucket label for ``size_bytes``."""
    if size_bytes < _MB:
        return "small"
    if size_bytes < 10 * _MB:
        return "medium"
    if size_bytes < 100 * _MB:
        return "large"
    return "xlarge"


class BatchGrouper:
    """Group files into buckets and derive reusable naming patterns."""

    def group(self, files: Iterable[FileDescriptor]) -> List[FileGroup]:
        """Bucket ``files`` by type, size range, directory, and day.

        Args:
            files: Descriptors to group.

        Returns:
            List[FileGroup]: Groups in order of first appearance.
        """
        buckets: "OrderedDict[BucketKey, List[FileDescriptor]]" = OrderedDict()
        for descriptor in files:
            buckets.setdefault(self._bucket_key(descriptor), []).append(descriptor)

        groups: List[FileGroup] = []
        for (file_type, size_range, directory, date_range), members in buckets.items():
            groups.append(
                FileGroup(
                    id=f"group_{uuid.uuid4().hex[:12]}",
                    representative=members[0],
                    siblings=members[1:],
                    bucket=GroupBucket(
                        file_type=file_type,
                        size_range=size_range,
                        directory=directory,
                        date_range=date_range,
                        count=len(members),
                    ),
                )
            )
        return groups

    @staticmethod
    def extract_pattern(name: Optional[str]) -> str:
        """Turn a generated name into a pattern with one placeholder.

        ``beach_sunset_001`` becomes ``beach_sunset_[n]`` and
        ``report_2024_01_15`` becomes ``report_[date]``. Names with neither a
        trailing sequence nor a date gain a ``_[n]`` suffix.
        """
        if not name:
            return SEQUENCE_PLACEHOLDER

        sequence = _TRAILING_SEQUENCE.search(name)
        if sequence:
            return name[: sequence.start()] + SEQUENCE_PLACEHOLDER

        found = _find_date(name)
        if found:
            embedded = found[0]
            return name[: embedded.start()] + DATE_PLACEHOLDER + name[embedded.end() :]

        return f"{name}_{SEQUENCE_PLACEHOLDER}"

    @staticmethod
    def apply_pattern(
        pattern: str,
        sibling_index: int,
        original_name: Optional[str] = None,
        today: Optional[date] = None,
    ) -> str:
        """Fill ``pattern`` for the sibling at ``sibling_index``.

        Args:
            pattern: Pattern produced by :meth:`extract_pattern`.
            sibling_index: Zero-based position among the siblings; the
                representative holds ordinal 1, so sibling 0 becomes ``002``.
            original_name: The sibling's own file name, searched for a date.
            today: Fallback date when the sibling's name has none.

        Returns:
            str: The concrete name.
        """
        result = pattern
        if SEQUENCE_PLACEHOLDER in result:
            result = result.replace(SEQUENCE_PLACEHOLDER, f"{sibling_index + 2:03d}", 1)

        if DATE_PLACEHOLDER in result:
            found = _find_date(original_name or "")
            replacement = format_date(found[1] if found else (today or date.today()))
            result = result.replace(DATE_PLACEHOLDER, replacement, 1)

        return result

    @staticmethod
    def _bucket_key(descriptor: FileDescriptor) -> BucketKey:
        return (
            file_type_for(descriptor.extension),
            size_range_for(descriptor.size_bytes),
            str(descriptor.directory),
            descriptor.modified_at.date().isoformat(),
        )


__all__ = [
    "BatchGrouper",
    "DATE_PLACEHOLDER",
    "SEQUENCE_PLACEHOLDER",
    "size_range_for",
]
