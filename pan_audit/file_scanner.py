#!/usr/bin/env python3
"""
file_scanner.py - Per-file PAN scanning and scan-target enumeration

Reads a file line by line, decodes each line strictly and feeds it through the
card detector. Files that cannot be opened or decoded are reported as skipped
rather than failing the scan.

Features:
- Line-by-line reading with 1-based line numbers
- Strict decoding; the first undecodable line skips the rest of the file
- Partial results before a decode failure are kept
- Recursive directory enumeration with directory counting
- Optional glob exclusions for file and directory names

Author: PAN Audit v1.0
"""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable

from .card_detector import CardMatch, scan_line

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"


class SkipReason(Enum):
    """Why a file could not be scanned."""
    OPEN_FAILED = "open_failed"
    PERMISSION_DENIED = "permission_denied"
    DECODE_FAILED = "decode_failed"


@dataclass(frozen=True)
class SkipRecord:
    """A file that could not be (fully) scanned. No retry is attempted."""
    file_path: str
    reason: SkipReason
    detail: str = ""

    def to_dict(self) -> dict:
        return {
            "file_path": self.file_path,
            "reason": self.reason.value,
            "detail": self.detail,
        }


@dataclass
class FileScanResult:
    """Outcome of scanning one file."""
    file_path: str
    matches: list[CardMatch] = field(default_factory=list)
    skip: SkipRecord | None = None

    @property
    def has_cards(self) -> bool:
        return bool(self.matches)

    @property
    def skipped(self) -> bool:
        return self.skip is not None


@dataclass
class ScanTargets:
    """Files to scan plus the number of directories visited to find them."""
    files: list[Path] = field(default_factory=list)
    directories_scanned: int = 0
    _seen: set[str] = field(default_factory=set, repr=False, compare=False)

    def add(self, path: Path) -> None:
        key = os.path.realpath(path)
        if key not in self._seen:
            self._seen.add(key)
            self.files.append(path)


# ─────────────────────────────────────────────────────────────────────────────
# File Scanner
# ─────────────────────────────────────────────────────────────────────────────

def _strip_line_ending(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def scan_file(path: str | Path, encoding: str = DEFAULT_ENCODING) -> FileScanResult:
    """
    Scan a single file for card numbers.

    Args:
        path: File to scan
        encoding: Text encoding every line must decode as

    Returns:
        FileScanResult with the matches found and a SkipRecord if the file
        could not be opened or decoded
    """
    file_path = str(path)
    result = FileScanResult(file_path=file_path)

    try:
        handle = open(path, "rb")
    except PermissionError as e:
        result.skip = SkipRecord(file_path, SkipReason.PERMISSION_DENIED, str(e))
        logger.warning("Skipping %s: permission denied", file_path)
        return result
    except OSError as e:
        result.skip = SkipRecord(file_path, SkipReason.OPEN_FAILED, str(e))
        logger.warning("Skipping %s: %s", file_path, e)
        return result

    with handle:
        line_number = 0
        try:
            for line_number, raw in enumerate(handle, 1):
                line = _strip_line_ending(raw.decode(encoding))
                result.matches.extend(scan_line(line, file_path, line_number))
        except UnicodeDecodeError as e:
            result.skip = SkipRecord(
                file_path,
                SkipReason.DECODE_FAILED,
                f"line {line_number}: {e.reason}",
            )
            logger.warning(
                "Skipping rest of %s: line %d is not valid %s (%d earlier matches kept)",
                file_path, line_number, encoding, len(result.matches),
            )
        except OSError as e:
            result.skip = SkipRecord(file_path, SkipReason.OPEN_FAILED, str(e))
            logger.warning("Read error in %s after line %d: %s", file_path, line_number, e)

    for match in result.matches:
        logger.debug("Found %s PAN %s...%s at %s:%d",
                     match.brand, match.bin, match.last_four, file_path, match.line_number)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Target Enumeration
# ─────────────────────────────────────────────────────────────────────────────

def matches_any_glob(name: str, patterns: Iterable[str]) -> bool:
    """Check a file or directory name against glob patterns."""
    return any(fnmatch.fnmatch(name, pattern) for pattern in patterns)


def collect_targets(
    inputs: Iterable[str | Path],
    exclude_globs: Iterable[str] = (),
) -> ScanTargets:
    """
    Expand input paths into the list of files to scan.

    Directories are walked recursively (symlinked directories are not
    followed) and every directory visited is counted, including ones that
    cannot be listed. Any other input is a target as-is, even if it does not
    exist, so the scan reports it as skipped. A file reached twice (for
    example as an input and inside an input directory) is scanned once.
    """
    patterns = tuple(exclude_globs)
    targets = ScanTargets()

    def log_walk_error(error: OSError):
        # os.walk does not yield directories it cannot list
        targets.directories_scanned += 1
        logger.warning("Cannot list directory %s: %s", error.filename, error.strerror)

    for input_path in inputs:
        path = Path(input_path)

        if not path.is_dir():
            targets.add(path)
            continue

        for root, dirs, files in os.walk(path, onerror=log_walk_error):
            targets.directories_scanned += 1

            dirs[:] = sorted(d for d in dirs if not matches_any_glob(d, patterns))

            for filename in sorted(files):
                if not matches_any_glob(filename, patterns):
                    targets.add(Path(root) / filename)

    return targets


def target_size(path: str | Path) -> int:
    """Best-effort size in bytes; unreadable metadata counts as zero."""
    try:
        return os.path.getsize(path)
    except OSError:
        return 0
