"""Tests for file descriptor construction and EXIF reading."""

from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

from namewise.ingestion import ExifReader, describe_file, file_type_for
from namewise.ingestion.extractors import _parse_gps


def _write_jpeg(path: Path, tags: dict[int, str]) -> Path:
    exif = Image.Exif()
    for tag, value in tags.items():
        exif[tag] = value
    Image.new("RGB", (32, 24), color=(200, 120, 40)).save(path, format="JPEG", exif=exif)
    return path


def test_describe_file_reports_size_timestamps_and_extension(tmp_path: Path) -> None:
    target = tmp_path / "Quarterly Report.TXT"
    target.write_text("numbers", encoding="utf-8")

    descriptor = describe_file(target)

    assert descriptor.path == target.resolve()
    assert descriptor.size_bytes == 7
    assert descriptor.extension == ".txt"
    assert descriptor.stem == "Quarterly Report"
    assert descriptor.exif is None
    assert isinstance(descriptor.modified_at, datetime)


def test_describe_file_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        describe_file(tmp_path / "missing.jpg")


def test_describe_file_reads_exif_date_and_camera(tmp_path: Path) -> None:
    image = _write_jpeg(
        tmp_path / "IMG_0042.jpg",
        {0x0132: "2023:07:04 18:20:00", 0x010F: "Canon", 0x0110: "EOS R5"},
    )

    descriptor = describe_file(image)

    assert descriptor.exif is not None
    assert descriptor.exif.captured_at == datetime(2023, 7, 4, 18, 20, 0)
    assert descriptor.exif.camera == "canon_eos_r5"
    assert descriptor.exif.gps is None


def test_exif_reader_returns_none_without_metadata(tmp_path: Path) -> None:
    plain = tmp_path / "plain.png"
    Image.new("RGB", (8, 8)).save(plain, format="PNG")

    assert ExifReader().read(plain) is None


def test_exif_reader_tolerates_corrupt_images(tmp_path: Path) -> None:
    broken = tmp_path / "broken.jpg"
    broken.write_bytes(b"not really a jpeg")

    assert ExifReader().read(broken) is None
    assert describe_file(broken).exif is None


def test_parse_gps_converts_and_signs_coordinates() -> None:
    coordinates = _parse_gps({1: "S", 2: (33.0, 52.0, 12.0), 3: "E", 4: (151.0, 12.0, 36.0)})

    assert coordinates is not None
    assert coordinates.latitude == pytest.approx(-33.87, abs=1e-2)
    assert coordinates.longitude == pytest.approx(151.21, abs=1e-2)


def test_parse_gps_requires_both_coordinates() -> None:
    assert _parse_gps({1: "N", 2: (10.0, 0.0, 0.0)}) is None


@pytest.mark.parametrize(
    ("extension", "expected"),
    [
        (".jpg", "image"),
        (".MOV", "video"),
        (".pdf", "pdf"),
        (".md", "document"),
        (".csv", "spreadsheet"),
        (".wav", "audio"),
        (".bin", "other"),
    ],
)
def test_file_type_for(extension: str, expected: str) -> None:
    assert file_type_for(extension) == expected


def test_exif_reader_skips_images_over_the_pixel_limit(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    panorama = tmp_path / "panorama.png"
    Image.new("RGB", (60, 60)).save(panorama, format="PNG")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

    assert ExifReader().read(panorama) is None
    assert describe_file(panorama).exif is None
