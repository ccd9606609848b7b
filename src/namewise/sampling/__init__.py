"""Content sampling boundary."""

from .extractor import BasicContentExtractor, ContentExtractionError, ContentExtractor
from .models import ContentSample, ExtractedContent
from .sampler import IMAGE_TOKEN_ESTIMATE, METADATA_TOKEN_ESTIMATE, ContentSampler

__all__ = [
    "BasicContentExtractor",
    "ContentExtractionError",
    "ContentExtractor",
    "ContentSample",
    "ContentSampler",
    "ExtractedContent",
    "IMAGE_TOKEN_ESTIMATE",
    "METADATA_TOKEN_ESTIMATE",
]
