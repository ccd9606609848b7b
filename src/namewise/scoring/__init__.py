"""Metadata-only confidence scoring."""

from .models import ConfidenceScore
from .scorer import MetadataScorer, NamePatterns, detect_patterns

__all__ = ["ConfidenceScore", "MetadataScorer", "NamePatterns", "detect_patterns"]
