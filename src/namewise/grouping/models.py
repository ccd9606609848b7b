"""Models describing groups of similar files."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from namewise.ingestion.models import FileDescriptor


class GroupBucket(BaseModel):
    """Shared characteristics of the files in a group.

    Attributes:
        file_type: Coarse type class, e.g. ``image``.
        size_range: ``small``, ``medium``, ``large``, or ``xlarge``.
        directory: Containing directory.
        date_range: Modification day as ``YYYY-MM-DD``.
        count: Number of files in the group, representative included.
    """

    file_type: str
    size_range: str
    directory: str
    date_range: str
    count: int = Field(ge=1)


class FileGroup(BaseModel):
    """A representative file and the siblings that may reuse its name pattern."""

    id: str
    representative: FileDescriptor
    siblings: List[FileDescriptor] = Field(default_factory=list)
    pattern: Optional[str] = None
    bucket: GroupBucket

    @property
    def members(self) -> List[FileDescriptor]:
        return [self.representative, *self.siblings]


__all__ = ["GroupBucket", "FileGroup"]
