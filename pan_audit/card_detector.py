#!/usr/bin/env python3
"""
card_detector.py - Payment Card Number Detection Engine

Finds candidate primary account numbers (PANs) in lines of text, validates
them with the Luhn checksum and classifies them by card brand.

Features:
- Permissive candidate extraction (digits with optional space/dash separators)
- Luhn checksum validation (all-zero strings rejected)
- Ordered brand rule table with a catch-all "Unknown" rule
- Immutable match records carrying file, line number and raw line

References:
- Luhn algorithm: https://en.wikipedia.org/wiki/Luhn_algorithm
- ISO/IEC 7812 issuer identification numbers
- PCI DSS 3.4 (display at most first six / last four digits)

Author: PAN Audit v1.0
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Iterator

logger = logging.getLogger(__name__)

MIN_PAN_LENGTH = 13
MAX_PAN_LENGTH = 19
BIN_LENGTH = 6
LAST_FOUR_LENGTH = 4

UNKNOWN_BRAND = "Unknown"


# ─────────────────────────────────────────────────────────────────────────────
# Data Classes
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CardBrandRule:
    """A brand is matched when the prefix matches and the length is accepted."""
    name: str
    prefix_pattern: re.Pattern
    accepted_lengths: frozenset[int]

    def matches(self, number: str) -> bool:
        return (
            len(number) in self.accepted_lengths
            and self.prefix_pattern.match(number) is not None
        )


@dataclass(frozen=True)
class CardMatch:
    """A validated, classified PAN found in a file."""
    brand: str
    full_pan: str
    bin: str
    last_four: str
    length: int
    file_path: str
    line_number: int  # 1-based
    raw_line_content: str

    @classmethod
    def from_pan(cls, pan: str, brand: str, file_path: str, line_number: int, line: str) -> "CardMatch":
        return cls(
            brand=brand,
            full_pan=pan,
            bin=pan[:BIN_LENGTH],
            last_four=pan[-LAST_FOUR_LENGTH:],
            length=len(pan),
            file_path=file_path,
            line_number=line_number,
            raw_line_content=line,
        )

    @property
    def sort_key(self) -> tuple[str, int]:
        return (self.file_path, self.line_number)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CardMatch":
        return cls(
            brand=data["brand"],
            full_pan=data["full_pan"],
            bin=data["bin"],
            last_four=data["last_four"],
            length=data["length"],
            file_path=data["file_path"],
            line_number=data["line_number"],
            raw_line_content=data["raw_line_content"],
        )


# ─────────────────────────────────────────────────────────────────────────────
# Card Brand Rules
# ─────────────────────────────────────────────────────────────────────────────

# Order matters: the first satisfying rule wins and "Unknown" must stay last.
CARD_BRAND_RULES: tuple[CardBrandRule, ...] = (
    CardBrandRule(
        name="Visa",
        prefix_pattern=re.compile(r'^4\d+'),
        accepted_lengths=frozenset({13, 16, 19}),
    ),
    CardBrandRule(
        name="Mastercard",
        prefix_pattern=re.compile(r'^5[1-5]\d+|^2[2-7]\d+'),
        accepted_lengths=frozenset({16}),
    ),
    CardBrandRule(
        name="American Express",
        prefix_pattern=re.compile(r'^3[47]\d+'),
        accepted_lengths=frozenset({15}),
    ),
    CardBrandRule(
        name="Discover",
        prefix_pattern=re.compile(r'^6(?:011|5\d{2}|4[4-9]\d)\d+'),
        accepted_lengths=frozenset({16, 19}),
    ),
    CardBrandRule(
        name="JCB",
        prefix_pattern=re.compile(r'^35\d+'),
        accepted_lengths=frozenset({16, 19}),
    ),
    CardBrandRule(
        name="Diners Club",
        prefix_pattern=re.compile(r'^3(?:0[0-5]|[68]\d)\d+'),
        accepted_lengths=frozenset({14, 16, 19}),
    ),
    CardBrandRule(
        name="UnionPay",
        prefix_pattern=re.compile(r'^62\d+'),
        accepted_lengths=frozenset({16, 19}),
    ),
    CardBrandRule(
        name=UNKNOWN_BRAND,
        prefix_pattern=re.compile(r'^\d+'),
        accepted_lengths=frozenset(range(MIN_PAN_LENGTH, MAX_PAN_LENGTH + 1)),
    ),
)


def check_rule_order(rules: tuple[CardBrandRule, ...] = CARD_BRAND_RULES) -> None:
    """Raise RuntimeError unless the catch-all rule is present exactly once, last."""
    names = [rule.name for rule in rules]
    if not names or names[-1] != UNKNOWN_BRAND or names.count(UNKNOWN_BRAND) != 1:
        raise RuntimeError(
            f"Card brand table must end with a single '{UNKNOWN_BRAND}' rule, got {names}"
        )


check_rule_order()


# ─────────────────────────────────────────────────────────────────────────────
# Validation Functions
# ─────────────────────────────────────────────────────────────────────────────

_SEPARATORS = re.compile(r'[\s-]')

# A digit run of 13-20 characters with optional whitespace/dash separators,
# not touching another digit on either side.
_CANDIDATE_PATTERN = re.compile(r'(?<![0-9])[0-9][0-9\s-]{11,18}[0-9](?![0-9])')


def strip_separators(text: str) -> str:
    return _SEPARATORS.sub('', text)


def luhn_checksum(number: str) -> bool:
    """
    Validate a digit string with the Luhn algorithm.

    Any non-digit character makes the input invalid, as does a zero sum
    (so "0000000000000" is rejected).
    """
    total = 0
    double = False

    for char in reversed(number):
        if char not in '0123456789':
            return False
        value = int(char)
        if double:
            value *= 2
            if value > 9:
                value -= 9
        total += value
        double = not double

    return total > 0 and total % 10 == 0


def identify_card_brand(number: str) -> str | None:
    """Return the name of the first brand rule matching *number*, or None."""
    cleaned = strip_separators(number)

    for rule in CARD_BRAND_RULES:
        if rule.matches(cleaned):
            return rule.name
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Candidate Extraction
# ─────────────────────────────────────────────────────────────────────────────

def extract_candidates(line: str) -> Iterator[str]:
    """Yield separator-free digit candidates found in *line*, left to right."""
    for match in _CANDIDATE_PATTERN.finditer(line):
        yield strip_separators(match.group(0))


def validate_candidate(
    candidate: str,
    file_path: str,
    line_number: int,
    line: str,
) -> CardMatch | None:
    """Turn a candidate into a CardMatch, or None if it is rejected."""
    if not MIN_PAN_LENGTH <= len(candidate) <= MAX_PAN_LENGTH:
        return None
    if not luhn_checksum(candidate):
        return None

    brand = identify_card_brand(candidate)
    if brand is None:
        logger.debug("No brand rule for %d-digit candidate in %s:%d", len(candidate), file_path, line_number)
        return None

    return CardMatch.from_pan(candidate, brand, file_path, line_number, line)


def scan_line(line: str, file_path: str, line_number: int) -> Iterator[CardMatch]:
    """Yield every validated card match on a single line."""
    for candidate in extract_candidates(line):
        match = validate_candidate(candidate, file_path, line_number, line)
        if match is not None:
            yield match


def scan_text(text: str, file_path: str = "<text>") -> list[CardMatch]:
    """Convenience function to scan a block of text line by line."""
    matches: list[CardMatch] = []
    for line_number, line in enumerate(text.splitlines(), 1):
        matches.extend(scan_line(line, file_path, line_number))
    return matches


# ─────────────────────────────────────────────────────────────────────────────
# CLI for testing
# ─────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    # Well-known test PANs, not real cards
    test_text = """
    order 1: 4532015112830366 shipped
    order 2: 5500-0000-0000-0004 pending
    amex 3782 822463 10005, visa 4111 1111 1111 1111
    not a card: 1234567890123456
    """

    for found in scan_text(test_text):
        print(f"[{found.brand}] line {found.line_number}: {found.bin}...{found.last_four} ({found.length} digits)")
