"""Zero-cost naming from filesystem and EXIF metadata.

The scorer never touches the network. It inspects the file name and the
descriptor's EXIF subset, assigns a confidence using a fixed priority of
rules, and synthesises a name when the evidence is good enough. Obvious
cases such as timestamped screenshots or geotagged photos therefore never
reach a paid model.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from namewise.ingestion.models import FileDescriptor
from namewise.text import format_date, sanitize_name

from .models import ConfidenceScore

SCREENSHOT_CONFIDENCE = 0.95
GPS_AND_DATE_CONFIDENCE = 0.90
DATE_AND_DESCRIPTIVE_CONFIDENCE = 0.80
EXIF_DATE_CONFIDENCE = 0.65
DESCRIPTIVE_AND_DATE_CONFIDENCE = 0.60
DESCRIPTIVE_CONFIDENCE = 0.50
INSUFFICIENT_CONFIDENCE = 0.30

#: Scores below this value do not produce a suggested name.
SYNTHESIS_THRESHOLD = 0.5

_DATE = re.compile(r"(\d{4})[-_]?(\d{2})[-_]?(\d{2})")
_EIGHT_DIGITS = re.compile(r"\d{8}")
_SEQUENCE = re.compile(r"\d{3,}")
_LONG_DIGITS = re.compile(r"\d{6,}")
_DIGITS = re.compile(r"\d+")
_DESCRIPTIVE = re.compile(r"[a-z]{4,}", re.IGNORECASE)
_SCREENSHOT = re.compile(r"screenshot|screen.?shot|capture", re.IGNORECASE)
_CAMERA_PREFIX = re.compile(r"IMG_|DSC_|DCIM_", re.IGNORECASE)
_TIME = re.compile(r"(\d{1,2})[._:\-](\d{2})[._:\-](\d{2})(?:[\s_]*([AaPp][Mm]))?")
_COMPACT_TIME = re.compile(r"(?<!\d)(\d{2})(\d{2})(\d{2})(?!\d)")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_TYPE_HINTS = {
    ".jpg": "photo",
    ".jpeg": "photo",
    ".png": "image",
    ".pdf": "doc",
    ".txt": "text",
    ".md": "note",
}

_MAX_DESCRIPTIVE_LENGTH = 30


@dataclass(frozen=True)
class NamePatterns:
    """Signals detected in a file stem."""

    has_sequence_number: bool
    has_date_pattern: bool
    has_descriptive_text: bool
    is_screenshot: bool


def detect_patterns(stem: str) -> NamePatterns:
    """Return the naming signals present in ``stem``."""
    return NamePatterns(
        has_sequence_number=bool(_SEQUENCE.search(stem)),
        has_date_pattern=bool(_DATE.search(stem) or _EIGHT_DIGITS.search(stem)),
        has_descriptive_text=bool(_DESCRIPTIVE.search(_DIGITS.sub("", stem))),
        is_screenshot=bool(_SCREENSHOT.search(stem)),
    )


class MetadataScorer:
    """Score how well a file can be named from metadata alone."""

    def score(self, descriptor: FileDescriptor) -> ConfidenceScore:
        """Return a confidence score and, when confident, a suggested name.

        Args:
            descriptor: File to evaluate.

        Returns:
            ConfidenceScore: Score in ``[0, 1]`` with reasoning.
        """
        patterns = detect_patterns(descriptor.stem)
        confidence = self._confidence(descriptor, patterns)

        if confidence < SYNTHESIS_THRESHOLD:
            return ConfidenceScore(
                value=confidence,
                reasoning="Insufficient metadata for confident naming",
            )

        return ConfidenceScore(
            value=confidence,
            reasoning=self._explain(descriptor, patterns),
            suggested_name=self._synthesize(descriptor, patterns),
        )

    # ------------------------------------------------------------------ #
    # Rules                                                              #
    # ------------------------------------------------------------------ #

    def _confidence(self, descriptor: FileDescriptor, patterns: NamePatterns) -> float:
        exif = descriptor.exif
        has_exif_date = bool(exif and exif.captured_at)

        if patterns.is_screenshot and patterns.has_date_pattern:
            return SCREENSHOT_CONFIDENCE
        if has_exif_date and exif is not None and exif.gps is not None:
            return GPS_AND_DATE_CONFIDENCE
        if has_exif_date and patterns.has_descriptive_text:
            return DATE_AND_DESCRIPTIVE_CONFIDENCE
        if has_exif_date:
            return EXIF_DATE_CONFIDENCE
        if patterns.has_descriptive_text and patterns.has_date_pattern:
            return DESCRIPTIVE_AND_DATE_CONFIDENCE
        if patterns.has_descriptive_text:
            return DESCRIPTIVE_CONFIDENCE
        return INSUFFICIENT_CONFIDENCE

    def _explain(self, descriptor: FileDescriptor, patterns: NamePatterns) -> str:
        reasons: list[str] = []
        exif = descriptor.exif

        if patterns.is_screenshot:
            reasons.append("Screenshot pattern detected")
        if exif is not None and exif.captured_at and exif.gps is not None:
            reasons.append("GPS location and date from EXIF")
        elif exif is not None and exif.captured_at:
            reasons.append("Date from EXIF")
        if patterns.has_descriptive_text:
            reasons.append("Descriptive filename pattern")
        if patterns.has_date_pattern:
            reasons.append("Date pattern in filename")

        return ", ".join(reasons) or "Basic file metadata"

    # ------------------------------------------------------------------ #
    # Name synthesis                                                     #
    # ------------------------------------------------------------------ #

    def _synthesize(self, descriptor: FileDescriptor, patterns: NamePatterns) -> str:
        if patterns.is_screenshot:
            return self._screenshot_name(descriptor)

        stem = descriptor.stem
        parts = [format_date(self._reference_date(descriptor))]

        remainder = _CAMERA_PREFIX.sub("", _LONG_DIGITS.sub("", _DATE.sub("", stem)))
        sequence_match = _SEQUENCE.search(remainder)
        sequence = sequence_match.group(0) if sequence_match else None

        if patterns.has_descriptive_text:
            if sequence:
                remainder = remainder.replace(sequence, "", 1)
            descriptive = _NON_ALNUM.sub("_", remainder.lower()).strip("_")
            descriptive = descriptive[:_MAX_DESCRIPTIVE_LENGTH].strip("_")
            if len(descriptive) >= 3:
                parts.append(descriptive)

        type_hint = _TYPE_HINTS.get(descriptor.extension)
        if type_hint:
            parts.append(type_hint)

        if sequence:
            parts.append(sequence)

        name = "_".join(part for part in parts if part)
        return name or sanitize_name(stem) or "file"

    def _screenshot_name(self, descriptor: FileDescriptor) -> str:
        stem = descriptor.stem
        parts = ["screenshot"]

        date_match = _DATE.search(stem)
        if date_match:
            parts.append("_".join(date_match.groups()))
            remainder = stem[: date_match.start()] + " " + stem[date_match.end() :]
        else:
            parts.append(format_date(self._reference_date(descriptor)))
            remainder = stem

        time_label = _extract_time(remainder)
        if time_label:
            parts.append(time_label)
        return "_".join(parts)

    @staticmethod
    def _reference_date(descriptor: FileDescriptor):
        if descriptor.exif is not None and descriptor.exif.captured_at is not None:
            return descriptor.exif.captured_at
        return descriptor.modified_at


def _extract_time(text: str) -> Optional[str]:
    match = _TIME.search(text)
    if match:
        hour, minute, second, meridiem = match.groups()
        hour_value = int(hour)
        if meridiem and meridiem.lower() == "pm" and hour_value < 12:
            hour_value += 12
        elif meridiem and meridiem.lower() == "am" and hour_value == 12:
            hour_value = 0
        if hour_value > 23 or int(minute) > 59 or int(second) > 59:
            return None
        return f"{hour_value:02d}{minute}{second}"

    compact = _COMPACT_TIME.search(text)
    if compact:
        hour, minute, second = compact.groups()
        if int(hour) <= 23 and int(minute) <= 59 and int(second) <= 59:
            return f"{hour}{minute}{second}"
    return None


__all__ = ["MetadataScorer", "NamePatterns", "detect_patterns", "SYNTHESIS_THRESHOLD"]
