"""Batch grouping and naming pattern reuse."""

from .grouper import BatchGrouper, size_range_for
from .models import FileGroup, GroupBucket

__all__ = ["BatchGrouper", "FileGroup", "GroupBucket", "size_range_for"]
