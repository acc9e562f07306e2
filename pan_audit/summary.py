#!/usr/bin/env python3
"""
summary.py - Compliance summary for a completed PAN scan

Aggregates the merged results of a scan into counts, a per-brand histogram,
risk buckets and clean/skip statistics. Runs once, after every file task has
finished.

Risk buckets (by matches per file):
- high:   more than 10
- medium: 4 to 10
- low:    1 to 3

Author: PAN Audit v1.0
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .card_detector import CardMatch
from .file_scanner import SkipRecord
from .masking import DEFAULT_MASK_CHAR, redact_lines


class RiskLevel(Enum):
    """Per-file risk bucket."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def risk_bucket(match_count: int) -> RiskLevel | None:
    """Map a file's match count to its risk bucket (None for zero)."""
    if match_count > 10:
        return RiskLevel.HIGH
    if match_count >= 4:
        return RiskLevel.MEDIUM
    if match_count >= 1:
        return RiskLevel.LOW
    return None


def _empty_risk_map() -> dict[str, list[str]]:
    return {level.value: [] for level in RiskLevel}


@dataclass
class ScanSummary:
    """Aggregate statistics for one scan. Read-only once returned."""
    files_scanned: int = 0
    directories_scanned: int = 0
    total_size_bytes: int = 0
    total_cards_found: int = 0
    card_type_counts: dict[str, int] = field(default_factory=dict)
    files_by_risk: dict[str, list[str]] = field(default_factory=_empty_risk_map)
    files_with_cards: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    partially_scanned_files: list[str] = field(default_factory=list)
    all_scanned_files: list[str] = field(default_factory=list)
    incomplete_redactions: int = 0
    scan_duration_seconds: float = 0.0
    started_at: str = ""

    @property
    def clean_files(self) -> int:
        return self.files_scanned - len(self.files_with_cards) - len(self.skipped_files)

    def to_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "directories_scanned": self.directories_scanned,
            "total_size_bytes": self.total_size_bytes,
            "total_cards_found": self.total_cards_found,
            "card_type_counts": dict(self.card_type_counts),
            "files_by_risk": {k: list(v) for k, v in self.files_by_risk.items()},
            "files_with_cards": list(self.files_with_cards),
            "clean_files": self.clean_files,
            "skipped_files": list(self.skipped_files),
            "partially_scanned_files": list(self.partially_scanned_files),
            "all_scanned_files": list(self.all_scanned_files),
            "incomplete_redactions": self.incomplete_redactions,
            "scan_duration_seconds": self.scan_duration_seconds,
            "started_at": self.started_at,
        }


def summarize(
    scanned_files: Iterable[str],
    matches: Iterable[CardMatch],
    skipped: Iterable[SkipRecord],
    directories_scanned: int = 0,
    total_size_bytes: int = 0,
    scan_duration_seconds: float = 0.0,
    started_at: str = "",
    mask_char: str = DEFAULT_MASK_CHAR,
) -> ScanSummary:
    """
    Build the ScanSummary from merged scan results.

    A skipped file never counts as a file with cards, even when it produced
    matches before failing; those files are listed in partially_scanned_files,
    their matches still count towards the totals and they are still placed in
    the risk bucket for their match count. incomplete_redactions counts the
    matched lines that still show a PAN after every PAN on them was masked.
    """
    all_files = sorted(set(scanned_files))
    matches = list(matches)
    skipped_paths = sorted({record.file_path for record in skipped})

    per_file = Counter(match.file_path for match in matches)
    skipped_set = set(skipped_paths)

    summary = ScanSummary(
        files_scanned=len(all_files),
        directories_scanned=directories_scanned,
        total_size_bytes=total_size_bytes,
        total_cards_found=len(matches),
        card_type_counts=dict(Counter(match.brand for match in matches)),
        skipped_files=skipped_paths,
        all_scanned_files=all_files,
        scan_duration_seconds=scan_duration_seconds,
        started_at=started_at,
    )

    for path in sorted(per_file):
        if path in skipped_set:
            summary.partially_scanned_files.append(path)
        else:
            summary.files_with_cards.append(path)
        level = risk_bucket(per_file[path])
        if level is not None:
            summary.files_by_risk[level.value].append(path)

    summary.incomplete_redactions = sum(
        1 for line in redact_lines(matches, mask_char).values() if not line.fully_redacted
    )
    return summary
