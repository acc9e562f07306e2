"""
Report renderers.

Turn scan matches and the ScanSummary into plain text, JSON or CSV. PANs are
masked unless the caller explicitly asks for full numbers. Lines the masker
could not fully redact are always called out, never silently printed as if
they were safe.
"""

from __future__ import annotations

import csv
import io
import json

from .card_detector import CardMatch
from .masking import DEFAULT_MASK_CHAR, RedactedLine, masked_pan, redact_lines
from .summary import RiskLevel, ScanSummary

FORMATS = ("text", "json", "csv")

CSV_FIELDS = [
    "file_path", "line_number", "brand", "length", "bin", "last_four",
    "pan", "line_content", "fully_redacted",
]

_INCOMPLETE_NOTE = "[!] PAN could not be located in the line; line content NOT redacted"


def _ordered(matches: list[CardMatch]) -> list[CardMatch]:
    return sorted(matches, key=lambda m: m.sort_key)


def _redactions(
    matches: list[CardMatch], mask_char: str, show_full_pan: bool
) -> dict[tuple[str, int], RedactedLine] | None:
    return None if show_full_pan else redact_lines(matches, mask_char)


def _match_record(
    match: CardMatch,
    mask_char: str,
    redactions: dict[tuple[str, int], RedactedLine] | None,
) -> dict:
    if redactions is None:
        return {
            "file_path": match.file_path,
            "line_number": match.line_number,
            "brand": match.brand,
            "length": match.length,
            "bin": match.bin,
            "last_four": match.last_four,
            "pan": match.full_pan,
            "line_content": match.raw_line_content,
            "fully_redacted": False,
        }

    redacted = redactions[match.sort_key]
    return {
        "file_path": match.file_path,
        "line_number": match.line_number,
        "brand": match.brand,
        "length": match.length,
        "bin": match.bin,
        "last_four": match.last_four,
        "pan": masked_pan(match, mask_char),
        "line_content": redacted.text,
        "fully_redacted": redacted.fully_redacted,
    }


def render_text(
    matches: list[CardMatch],
    summary: ScanSummary,
    mask_char: str = DEFAULT_MASK_CHAR,
    show_full_pan: bool = False,
) -> str:
    lines = [f"Found {len(matches)} potential credit card numbers:", ""]
    redactions = _redactions(matches, mask_char, show_full_pan)

    for match in _ordered(matches):
        record = _match_record(match, mask_char, redactions)
        lines.extend([
            f"File: {record['file_path']}",
            f"Line: {record['line_number']}",
            f"Brand: {record['brand']}",
            f"PAN: {record['pan']}",
            f"PAN Length: {record['length']}",
            f"BIN: {record['bin']}",
            f"Last Four: {record['last_four']}",
            f"Line Content: {record['line_content'].strip()}",
        ])
        if not show_full_pan and not record["fully_redacted"]:
            lines.append(_INCOMPLETE_NOTE)
        lines.append("")

    lines.extend([
        "=" * 60,
        "SCAN SUMMARY",
        "=" * 60,
        f"  Files Scanned: {summary.files_scanned}",
        f"  Directories Scanned: {summary.directories_scanned}",
        f"  Total Size (bytes): {summary.total_size_bytes}",
        f"  Cards Found: {summary.total_cards_found}",
        f"  Files With Cards: {len(summary.files_with_cards)}",
        f"  Clean Files: {summary.clean_files}",
        f"  Skipped Files: {len(summary.skipped_files)}",
        f"  Duration: {summary.scan_duration_seconds:.2f}s",
    ])

    if summary.card_type_counts:
        lines.extend(["", "CARD BRANDS:", "-" * 40])
        for brand, count in sorted(summary.card_type_counts.items(), key=lambda kv: (-kv[1], kv[0])):
            lines.append(f"  {brand}: {count}")

    if any(summary.files_by_risk.values()):
        lines.extend(["", "RISK:", "-" * 40])
        for level in RiskLevel:
            for path in summary.files_by_risk.get(level.value, []):
                lines.append(f"  [{level.value.upper()}] {path}")

    if summary.skipped_files:
        lines.extend(["", "SKIPPED FILES:", "-" * 40])
        lines.extend(f"  - {path}" for path in summary.skipped_files)

    if summary.partially_scanned_files:
        lines.extend(["", "PARTIALLY SCANNED (cards found before the file was skipped):", "-" * 40])
        lines.extend(f"  - {path}" for path in summary.partially_scanned_files)

    if summary.incomplete_redactions and not show_full_pan:
        lines.extend([
            "",
            f"WARNING: {summary.incomplete_redactions} line(s) could not be fully redacted "
            "and are shown unmasked above.",
        ])

    lines.append("=" * 60)
    return "\n".join(lines)


def render_json(
    matches: list[CardMatch],
    summary: ScanSummary,
    mask_char: str = DEFAULT_MASK_CHAR,
    show_full_pan: bool = False,
) -> str:
    redactions = _redactions(matches, mask_char, show_full_pan)
    records = [_match_record(m, mask_char, redactions) for m in _ordered(matches)]
    return json.dumps({"summary": summary.to_dict(), "matches": records}, indent=2)


def render_csv(
    matches: list[CardMatch],
    summary: ScanSummary,
    mask_char: str = DEFAULT_MASK_CHAR,
    show_full_pan: bool = False,
) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS)
    writer.writeheader()
    redactions = _redactions(matches, mask_char, show_full_pan)
    for match in _ordered(matches):
        writer.writerow(_match_record(match, mask_char, redactions))
    return buffer.getvalue()


def render(
    matches: list[CardMatch],
    summary: ScanSummary,
    fmt: str = "text",
    mask_char: str = DEFAULT_MASK_CHAR,
    show_full_pan: bool = False,
) -> str:
    if fmt == "json":
        return render_json(matches, summary, mask_char, show_full_pan)
    if fmt == "csv":
        return render_csv(matches, summary, mask_char, show_full_pan)
    return render_text(matches, summary, mask_char, show_full_pan)
