from __future__ import annotations

import pytest

from pan_audit.card_detector import CardMatch
from pan_audit.file_scanner import SkipReason, SkipRecord
from pan_audit.summary import RiskLevel, ScanSummary, risk_bucket, summarize

VISA = "4532015112830366"
AMEX = "378282246310005"


def _matches(path: str, count: int, pan: str = VISA, brand: str = "Visa") -> list[CardMatch]:
    return [CardMatch.from_pan(pan, brand, path, n, pan) for n in range(1, count + 1)]


@pytest.mark.parametrize(
    "count,level",
    [
        (0, None),
        (1, RiskLevel.LOW),
        (3, RiskLevel.LOW),
        (4, RiskLevel.MEDIUM),
        (10, RiskLevel.MEDIUM),
        (11, RiskLevel.HIGH),
        (500, RiskLevel.HIGH),
    ],
)
def test_risk_bucket_boundaries(count, level):
    assert risk_bucket(count) is level


def test_summarize_counts_and_buckets():
    matches = _matches("low.txt", 3) + _matches("mid.txt", 4) + _matches("high.txt", 11, AMEX, "American Express")
    files = ["low.txt", "mid.txt", "high.txt", "clean.txt", "bad.bin"]
    skipped = [SkipRecord("bad.bin", SkipReason.DECODE_FAILED)]

    summary = summarize(files, matches, skipped, directories_scanned=2, total_size_bytes=99)

    assert summary.files_scanned == 5
    assert summary.directories_scanned == 2
    assert summary.total_size_bytes == 99
    assert summary.total_cards_found == 18
    assert summary.card_type_counts == {"Visa": 7, "American Express": 11}
    assert summary.files_with_cards == ["high.txt", "low.txt", "mid.txt"]
    assert summary.files_by_risk == {"high": ["high.txt"], "medium": ["mid.txt"], "low": ["low.txt"]}
    assert summary.skipped_files == ["bad.bin"]
    assert summary.clean_files == 1


def test_buckets_are_disjoint_and_cover_files_with_cards():
    matches = []
    for i, count in enumerate([1, 2, 3, 4, 7, 10, 11, 12]):
        matches += _matches(f"f{i}.txt", count)
    summary = summarize([m.file_path for m in matches], matches, [])

    bucketed = [p for paths in summary.files_by_risk.values() for p in paths]
    assert sorted(bucketed) == summary.files_with_cards
    assert len(set(bucketed)) == len(bucketed)


def test_partially_scanned_file_counts_as_skipped_only():
    matches = _matches("partial.txt", 2)
    skipped = [SkipRecord("partial.txt", SkipReason.DECODE_FAILED, "line 3: invalid start byte")]

    summary = summarize(["partial.txt", "clean.txt"], matches, skipped)

    assert summary.total_cards_found == 2
    assert summary.files_by_risk["low"] == ["partial.txt"]
    assert summary.files_with_cards == []
    assert summary.partially_scanned_files == ["partial.txt"]
    assert summary.skipped_files == ["partial.txt"]
    assert summary.clean_files == 1
    assert summary.clean_files + len(summary.files_with_cards) + len(summary.skipped_files) == summary.files_scanned


def test_incomplete_redactions_are_counted():
    grouped = CardMatch.from_pan(AMEX, "American Express", "a.txt", 1, "3782 822463 10005")
    plain = CardMatch.from_pan(VISA, "Visa", "a.txt", 2, VISA)

    summary = summarize(["a.txt"], [grouped, plain], [])

    assert summary.incomplete_redactions == 1


def test_summary_to_dict_has_every_field():
    summary = summarize(["a.txt"], _matches("a.txt", 1), [], scan_duration_seconds=1.5, started_at="t0")
    data = summary.to_dict()

    assert data["clean_files"] == 0
    assert data["files_with_cards"] == ["a.txt"]
    assert data["files_by_risk"]["low"] == ["a.txt"]
    assert data["scan_duration_seconds"] == 1.5
    assert data["started_at"] == "t0"
    assert set(data) >= {
        "files_scanned", "directories_scanned", "total_size_bytes", "card_type_counts",
        "files_by_risk", "skipped_files", "all_scanned_files", "total_cards_found",
    }


def test_empty_summary_defaults():
    summary = ScanSummary()
    assert summary.clean_files == 0
    assert summary.files_by_risk == {"high": [], "medium": [], "low": []}


def test_partially_scanned_file_keeps_its_risk_bucket():
    matches = _matches("leaky.txt", 11)
    skipped = [SkipRecord("leaky.txt", SkipReason.DECODE_FAILED, "line 12: invalid start byte")]

    summary = summarize(["leaky.txt"], matches, skipped)

    assert summary.files_by_risk == {"high": ["leaky.txt"], "medium": [], "low": []}
    assert summary.files_with_cards == []
    assert summary.clean_files == 0


def test_two_pans_on_one_line_count_as_one_redacted_line():
    line = f"{VISA} {AMEX}"
    matches = [
        CardMatch.from_pan(VISA, "Visa", "a.txt", 1, line),
        CardMatch.from_pan(AMEX, "American Express", "a.txt", 1, line),
        CardMatch.from_pan(VISA, "Visa", "b.txt", 1, "4532 0151 1283 0366 and 3782 822463 10005"),
        CardMatch.from_pan(AMEX, "American Express", "b.txt", 1, "4532 0151 1283 0366 and 3782 822463 10005"),
    ]

    summary = summarize(["a.txt", "b.txt"], matches, [])

    assert summary.incomplete_redactions == 1
