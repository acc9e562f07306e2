"""
masking.py - PAN masking and best-effort line redaction

Masked PANs keep the BIN (first six) and last four digits, the maximum PCI DSS
allows to be displayed. Line redaction only recognises the bare digit string
and the common 4-4-4-4 grouping; anything else is returned unredacted with
``fully_redacted=False`` so callers can flag it.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from .card_detector import BIN_LENGTH, LAST_FOUR_LENGTH, CardMatch

DEFAULT_MASK_CHAR = "X"

_GROUP_SEPARATORS = (" ", "-")


@dataclass(frozen=True)
class RedactedLine:
    """Result of a redaction attempt on a match's raw line."""
    text: str
    fully_redacted: bool


def masked_pan(match: CardMatch, mask_char: str = DEFAULT_MASK_CHAR) -> str:
    """Return the PAN with everything between the BIN and last four masked."""
    if match.length < BIN_LENGTH + LAST_FOUR_LENGTH:
        raise ValueError(f"PAN of length {match.length} is too short to mask")
    hidden = match.length - BIN_LENGTH - LAST_FOUR_LENGTH
    return f"{match.bin}{mask_char * hidden}{match.last_four}"


def _grouped_forms(pan: str) -> list[str]:
    """4-4-4-4 renderings of a 16-digit PAN."""
    if len(pan) != 16:
        return []
    groups = [pan[i:i + 4] for i in range(0, 16, 4)]
    return [sep.join(groups) for sep in _GROUP_SEPARATORS]


def _redact_pan(line: str, match: CardMatch, mask_char: str) -> tuple[str, bool]:
    masked = masked_pan(match, mask_char)

    if match.full_pan in line:
        return line.replace(match.full_pan, masked), True

    for grouped in _grouped_forms(match.full_pan):
        if grouped in line:
            return line.replace(grouped, masked), True

    return line, False


def masked_line(match: CardMatch, mask_char: str = DEFAULT_MASK_CHAR) -> RedactedLine:
    """
    Redact the PAN in the match's raw line.

    Tries the bare digit string first, then space- and dash-grouped 4-4-4-4
    forms. Grouped forms are replaced by the ungrouped masked PAN. Only this
    match's PAN is masked; use redact_lines when a line may hold several.
    """
    text, found = _redact_pan(match.raw_line_content, match, mask_char)
    return RedactedLine(text, found)


def redact_lines(
    matches: Iterable[CardMatch],
    mask_char: str = DEFAULT_MASK_CHAR,
) -> dict[tuple[str, int], RedactedLine]:
    """
    Redact every PAN found on each matched line.

    Matches are grouped by (file path, line number) and all of their PANs are
    masked in the same copy of the line. A line is fully_redacted only when
    every PAN on it was located.
    """
    by_line: dict[tuple[str, int], dict[str, CardMatch]] = defaultdict(dict)
    for match in matches:
        by_line[match.sort_key].setdefault(match.full_pan, match)

    redacted = {}
    for key, line_matches in by_line.items():
        first = next(iter(line_matches.values()))
        text = first.raw_line_content
        complete = True
        # longest first so a shorter PAN never eats into a longer one
        for match in sorted(line_matches.values(), key=lambda m: -m.length):
            text, found = _redact_pan(text, match, mask_char)
            complete = complete and found
        redacted[key] = RedactedLine(text, complete)
    return redacted


def redact_line(match: CardMatch, mask_char: str = DEFAULT_MASK_CHAR) -> str:
    """Convenience function returning only the redacted text."""
    return masked_line(match, mask_char).text
