"""Tests for batch grouping and naming patterns."""

from datetime import date, datetime

import pytest
from fakes import make_descriptor

from namewise.grouping import BatchGrouper, size_range_for

MB = 1024 * 1024


@pytest.fixture
def grouper() -> BatchGrouper:
    return BatchGrouper()


def test_extract_and_apply_sequence_pattern(grouper: BatchGrouper) -> None:
    pattern = grouper.extract_pattern("beach_sunset_001")

    assert pattern == "beach_sunset_[n]"
    assert grouper.apply_pattern(pattern, 0, "IMG_002.jpg") == "beach_sunset_002"
    assert grouper.apply_pattern(pattern, 9, "IMG_011.jpg") == "beach_sunset_011"
    assert grouper.apply_pattern(pattern, 998, "IMG_1000.jpg") == "beach_sunset_1000"


@pytest.mark.parametrize("index", [0, 1, 7, 42, 97])
def test_sequence_pattern_keeps_numeral_position(grouper: BatchGrouper, index: int) -> None:
    pattern = grouper.extract_pattern("trip_photo_123")

    name = grouper.apply_pattern(pattern, index, "whatever.jpg")

    assert name.startswith("trip_photo_")
    suffix = name.removeprefix("trip_photo_")
    assert suffix.isdigit()
    assert len(suffix) >= 3
    assert int(suffix) == index + 2


def test_extract_date_pattern(grouper: BatchGrouper) -> None:
    pattern = grouper.extract_pattern("invoice_2024_01_15_acme")

    assert pattern == "invoice_[date]_acme"
    assert grouper.apply_pattern(pattern, 0, "scan-2023-12-01.pdf") == "invoice_2023_12_01_acme"
    assert (
        grouper.apply_pattern(pattern, 0, "scan.pdf", today=date(2025, 2, 3))
        == "invoice_2025_02_03_acme"
    )


@pytest.mark.parametrize(
    ("original", "expected"),
    [
        ("IMG_12345678.jpg", "shot_2024_05_06"),
        ("IMG_2023-02-30.jpg", "shot_2024_05_06"),
        ("IMG_99999999_20221231.jpg", "shot_2022_12_31"),
    ],
)
def test_apply_pattern_ignores_impossible_dates(
    grouper: BatchGrouper, original: str, expected: str
) -> None:
    assert grouper.apply_pattern("shot_[date]", 0, original, today=date(2024, 5, 6)) == expected


def test_extract_pattern_skips_impossible_dates(grouper: BatchGrouper) -> None:
    assert grouper.extract_pattern("scan_1234_56_78") == "scan_1234_56_78_[n]"


def test_extract_pattern_without_placeholders(grouper: BatchGrouper) -> None:
    assert grouper.extract_pattern("meeting_notes") == "meeting_notes_[n]"
    assert grouper.extract_pattern("") == "[n]"
    assert grouper.extract_pattern(None) == "[n]"


def test_group_buckets_by_type_size_directory_and_day(grouper: BatchGrouper) -> None:
    files = [
        make_descriptor("a.jpg"),
        make_descriptor("report.pdf"),
        make_descriptor("b.jpg"),
        make_descriptor("c.jpg", directory="/library/other"),
        make_descriptor("d.jpg", size_bytes=5 * MB),
        make_descriptor("e.jpg", modified_at=datetime(2024, 3, 11, 9, 0)),
        make_descriptor("f.png"),
    ]

    groups = grouper.group(files)

    representatives = [group.representative.name for group in groups]
    assert representatives == ["a.jpg", "report.pdf", "c.jpg", "d.jpg", "e.jpg"]

    first = groups[0]
    assert [sibling.name for sibling in first.siblings] == ["b.jpg", "f.png"]
    assert first.bucket.count == 3
    assert first.bucket.file_type == "image"
    assert first.bucket.size_range == "small"
    assert first.bucket.date_range == "2024-03-10"
    assert first.pattern is None
    assert len({group.id for group in groups}) == len(groups)


def test_group_empty_input(grouper: BatchGrouper) -> None:
    assert grouper.group([]) == []


@pytest.mark.parametrize(
    ("size", "label"),
    [(0, "small"), (MB - 1, "small"), (MB, "medium"), (10 * MB, "large"), (100 * MB, "xlarge")],
)
def test_size_ranges(size: int, label: str) -> None:
    assert size_range_for(size) == label
