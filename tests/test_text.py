"""Tests for name cleanup and formatting helpers."""

import pytest

from namewise.text import apply_case, clean_model_output, format_name, sanitize_filename


@pytest.mark.parametrize(
    ("case", "expected"),
    [
        ("snake_case", "golden_retriever_park"),
        ("kebab-case", "golden-retriever-park"),
        ("camelCase", "goldenRetrieverPark"),
        ("PascalCase", "GoldenRetrieverPark"),
        ("preserve", "Golden_Retriever_Park"),
    ],
)
def test_format_name_applies_case(case: str, expected: str) -> None:
    assert format_name("Golden Retriever Park", case=case) == expected


@pytest.mark.parametrize("case", ["snake_case", "kebab-case", "camelCase", "PascalCase"])
def test_format_name_is_stable_when_reapplied(case: str) -> None:
    once = format_name("Beach sunset 2024-01-15", case=case)

    assert format_name(once, case=case) == once


def test_format_name_truncates_without_trailing_separator() -> None:
    assert format_name("golden retriever park", max_length=7) == "golden"
    assert format_name("golden retriever park", case="kebab-case", max_length=7) == "golden"
    assert len(format_name("x" * 300)) == 100


def test_format_name_without_sanitize_keeps_characters() -> None:
    assert format_name("Q3: Plan", case="preserve", sanitize=False) == "Q3: Plan"
    assert format_name("Q3: Plan", case="preserve") == "Q3__Plan"


def test_format_name_empty_input() -> None:
    assert format_name("   ") == ""
    assert format_name("!!!") == ""


def test_sanitize_filename_replaces_reserved_characters() -> None:
    assert sanitize_filename('a<b>c:"d"|e?*') == "a_b_c__d__e"
    assert sanitize_filename("  .hidden name.  ", replacement="-") == "hidden-name"
    assert sanitize_filename("...") == "unnamed"


def test_apply_case_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        apply_case("name", "SCREAMING")


def test_clean_model_output_keeps_model_casing() -> None:
    reply = 'Filename: "Golden Retriever Park.jpg"\nBecause the photo shows a dog.'

    assert clean_model_output(reply) == "Golden Retriever Park"
    assert clean_model_output("reports/q3 summary.pdf") == "reports_q3 summary"
    assert clean_model_output("\n\n") == ""
