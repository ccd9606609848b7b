"""Content sample models."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

SampleKind = Literal["text", "image", "metadata"]


class ExtractedContent(BaseModel):
    """Raw output of a content extractor.

    Attributes:
        text: Extracted text, truncated by the extractor.
        thumbnail: Encoded JPEG thumbnail bytes for images.
        method: Label describing how the content was obtained.
    """

    text: Optional[str] = None
    thumbnail: Optional[bytes] = None
    method: str


class ContentSample(BaseModel):
    """Bounded content handed to the prompt builder.

    Attributes:
        kind: ``text``, ``image``, or ``metadata``.
        payload: Text for text/metadata samples, JPEG bytes for images.
        token_estimate: Approximate prompt tokens the payload costs.
        method: Extraction method label.
    """

    kind: SampleKind
    payload: Union[bytes, str]
    token_estimate: int = Field(default=0, ge=0)
    method: str

    @property
    def text(self) -> str:
        """Return the payload as text; image samples yield an empty string."""
        return self.payload if isinstance(self.payload, str) else ""

    @property
    def image(self) -> Optional[bytes]:
        return self.payload if isinstance(self.payload, bytes) else None


__all__ = ["SampleKind", "ExtractedContent", "ContentSample"]
