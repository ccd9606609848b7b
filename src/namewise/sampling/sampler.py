"""Bounded content sampling with a metadata-only fallback."""

from __future__ import annotations

import json
import logging
import math
from typing import Optional

from namewise.ingestion.models import FileDescriptor

from .extractor import BasicContentExtractor, ContentExtractionError, ContentExtractor
from .models import ContentSample

LOGGER = logging.getLogger(__name__)

#: Approximate prompt cost of a low-detail image attachment.
IMAGE_TOKEN_ESTIMATE = 170
METADATA_TOKEN_ESTIMATE = 50


class ContentSampler:
    """Produce a small, token-bounded sample of a file's content.

    Extraction never fails from the caller's point of view: any extractor
    error degrades to a metadata-only sample describing the file.
    """

    def __init__(
        self,
        extractor: Optional[ContentExtractor] = None,
        *,
        text_chars: int = 500,
        image_size: int = 256,
    ) -> None:
        self._extractor = extractor or BasicContentExtractor()
        self.text_chars = text_chars
        self.image_size = image_size

    def sample(self, descriptor: FileDescriptor, *, allow_images: bool = True) -> ContentSample:
        """Return a content sample for ``descriptor``.

        Args:
            descriptor: File to sample.
            allow_images: Whether thumbnails may be returned; callers pass
                ``False`` when the target service cannot read images.

        Returns:
            ContentSample: Text, image, or metadata-only sample.
        """
        try:
            extracted = self._extractor.extract(
                descriptor.path,
                descriptor.extension,
                text_chars=self.text_chars,
                image_size=self.image_size,
            )
        except ContentExtractionError as exc:
            LOGGER.debug("Falling back to metadata sample for %s: %s", descriptor.path, exc)
            return self.metadata_sample(descriptor)
        except Exception:
            LOGGER.warning(
                "Content extractor crashed on %s; using metadata sample",
                descriptor.path,
                exc_info=True,
            )
            return self.metadata_sample(descriptor)

        if extracted.thumbnail is not None and allow_images:
            return ContentSample(
                kind="image",
                payload=extracted.thumbnail,
                token_estimate=IMAGE_TOKEN_ESTIMATE,
                method=extracted.method,
            )
        if extracted.text and extracted.text.strip():
            text = extracted.text[: self.text_chars]
            return ContentSample(
                kind="text",
                payload=text,
                token_estimate=math.ceil(len(text) / 4),
                method=extracted.method,
            )
        return self.metadata_sample(descriptor)

    @staticmethod
    def metadata_sample(descriptor: FileDescriptor) -> ContentSample:
        """Return a JSON summary of the descriptor as a fallback sample."""
        payload = json.dumps(
            {
                "name": descriptor.name,
                "size": descriptor.size_bytes,
                "modified": descriptor.modified_at.isoformat(),
                "extension": descriptor.extension,
            }
        )
        return ContentSample(
            kind="metadata",
            payload=payload,
            token_estimate=METADATA_TOKEN_ESTIMATE,
            method="metadata-only",
        )


__all__ = ["ContentSampler", "IMAGE_TOKEN_ESTIMATE", "METADATA_TOKEN_ESTIMATE"]
