"""Descriptor models for files entering the naming pipeline."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GpsCoordinates(BaseModel):
    """Decimal GPS position read from EXIF."""

    latitude: float
    longitude: float


class ExifData(BaseModel):
    """Subset of EXIF fields relevant to naming.

    Attributes:
        captured_at: Original capture timestamp.
        gps: Capture position when both coordinates are present.
        camera: Make and model joined, lower-cased, with underscores.
        description: Free-text image description.
    """

    captured_at: Optional[datetime] = None
    gps: Optional[GpsCoordinates] = None
    camera: Optional[str] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return not any([self.captured_at, self.gps, self.camera, self.description])


class FileDescriptor(BaseModel):
    """Filesystem facts about a single file, captured once per invocation.

    Attributes:
        path: Absolute path to the file.
        size_bytes: File size in bytes.
        modified_at: Last modification time.
        created_at: Creation time where the platform reports one.
        extension: Lower-cased suffix including the leading dot.
        exif: EXIF subset for images, ``None`` when absent.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    size_bytes: int = Field(ge=0)
    modified_at: datetime
    created_at: Optional[datetime] = None
    extension: str = ""
    exif: Optional[ExifData] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def directory(self) -> Path:
        return self.path.parent


__all__ = ["GpsCoordinates", "ExifData", "FileDescriptor"]
