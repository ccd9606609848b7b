"""File descriptor construction for the naming pipeline."""

from .descriptors import describe_file
from .extractors import ExifReader
from .models import ExifData, FileDescriptor, GpsCoordinates
from .types import file_type_for, is_image

__all__ = [
    "describe_file",
    "ExifReader",
    "ExifData",
    "FileDescriptor",
    "GpsCoordinates",
    "file_type_for",
    "is_image",
]
