"""EXIF extraction helpers backed by Pillow."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

from PIL import Image, UnidentifiedImageError

from .models import ExifData, GpsCoordinates

LOGGER = logging.getLogger(__name__)

_TAG_DESCRIPTION = 0x010E
_TAG_MAKE = 0x010F
_TAG_MODEL = 0x0110
_TAG_DATETIME = 0x0132
_IFD_EXIF = 0x8769
_IFD_GPS = 0x8825
_TAG_DATETIME_ORIGINAL = 0x9003
_TAG_DATETIME_DIGITIZED = 0x9004

_GPS_LATITUDE_REF = 1
_GPS_LATITUDE = 2
_GPS_LONGITUDE_REF = 3
_GPS_LONGITUDE = 4

_EXIF_DATE_FORMATS = ("%Y:%m:%d %H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y:%m:%d")


class ExifReader:
    """Read the naming-relevant EXIF subset from an image file."""

    def read(self, path: Path) -> Optional[ExifData]:
        """Return EXIF data for ``path`` or ``None`` when unavailable.

        Unreadable or EXIF-less images are treated as having no metadata.
        """
        try:
            with Image.open(path) as img:
                exif = img.getexif()
                if not exif:
                    return None
                base = dict(exif)
                detail = dict(exif.get_ifd(_IFD_EXIF))
                gps = dict(exif.get_ifd(_IFD_GPS))
        except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as exc:
            LOGGER.debug("No EXIF available for %s: %s", path, exc)
            return None

        data = ExifData(
            captured_at=_parse_exif_date(
                detail.get(_TAG_DATETIME_ORIGINAL)
                or detail.get(_TAG_DATETIME_DIGITIZED)
                or base.get(_TAG_DATETIME)
            ),
            gps=_parse_gps(gps),
            camera=_camera_label(base.get(_TAG_MAKE), base.get(_TAG_MODEL)),
            description=_clean_text(base.get(_TAG_DESCRIPTION)),
        )
        return None if data.is_empty() else data


def _parse_exif_date(value: Any) -> Optional[datetime]:
    text = _clean_text(value)
    if not text:
        return None
    for fmt in _EXIF_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_gps(gps: Mapping[int, Any]) -> Optional[GpsCoordinates]:
    latitude = _dms_to_degrees(gps.get(_GPS_LATITUDE), gps.get(_GPS_LATITUDE_REF), "S")
    longitude = _dms_to_degrees(gps.get(_GPS_LONGITUDE), gps.get(_GPS_LONGITUDE_REF), "W")
    if latitude is None or longitude is None:
        return None
    return GpsCoordinates(latitude=latitude, longitude=longitude)


def _dms_to_degrees(value: Any, ref: Any, negative_ref: str) -> Optional[float]:
    if value is None:
        return None
    try:
        degrees, minutes, seconds = (float(part) for part in value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    decimal = degrees + minutes / 60 + seconds / 3600
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    if isinstance(ref, str) and ref.strip().upper() == negative_ref:
        decimal = -decimal
    return decimal


def _camera_label(make: Any, model: Any) -> Optional[str]:
    make_text = _clean_text(make)
    model_text = _clean_text(model)
    if not make_text or not model_text:
        return None
    return "_".join(f"{make_text} {model_text}".split()).lower()


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).strip().strip("\x00").strip()
    return text or None


__all__ = ["ExifReader"]
