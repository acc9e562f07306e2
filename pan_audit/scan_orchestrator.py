#!/usr/bin/env python3
"""
scan_orchestrator.py - Concurrent PAN scan over files and directories

Expands the input paths into scan targets, runs one scan task per file on a
thread pool and merges every task's output into a lock-guarded result store.
Summarization starts only after all tasks have finished.

Features:
- One independent task per file, no ordering between tasks
- Atomic insertion into the shared match list, files-with-cards set and
  skipped-files list
- Failures are terminal for the failing file only
- Optional worker cap (default: one worker per file)

Usage:
    matches, summary = scan(["/srv/repo", "dump.csv"])

Author: PAN Audit v1.0
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from .card_detector import CardMatch
from .config import ScanConfig, ScanConfigError
from .file_scanner import (
    FileScanResult,
    SkipReason,
    SkipRecord,
    collect_targets,
    scan_file,
    target_size,
)
from .summary import ScanSummary, summarize

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Shared Result Store
# ─────────────────────────────────────────────────────────────────────────────

class ScanResultStore:
    """
    Thread-safe sink for per-file scan results.

    Every insertion holds the lock only for the append itself; insertions
    from different tasks may interleave in any order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._matches: list[CardMatch] = []
        self._files_with_cards: set[str] = set()
        self._skipped: list[SkipRecord] = []

    def add_match(self, match: CardMatch) -> None:
        with self._lock:
            self._matches.append(match)
            self._files_with_cards.add(match.file_path)

    def add_skip(self, record: SkipRecord) -> None:
        with self._lock:
            self._skipped.append(record)

    def add_result(self, result: FileScanResult) -> None:
        for match in result.matches:
            self.add_match(match)
        if result.skip is not None:
            self.add_skip(result.skip)

    @property
    def matches(self) -> list[CardMatch]:
        with self._lock:
            return list(self._matches)

    @property
    def files_with_cards(self) -> set[str]:
        with self._lock:
            return set(self._files_with_cards)

    @property
    def skipped(self) -> list[SkipRecord]:
        with self._lock:
            return list(self._skipped)

    def sorted_matches(self) -> list[CardMatch]:
        """Matches in (file path, line number) order."""
        return sorted(self.matches, key=lambda m: m.sort_key)


# ─────────────────────────────────────────────────────────────────────────────
# Orchestrator
# ─────────────────────────────────────────────────────────────────────────────

class ScanOrchestrator:
    """
    Runs a full scan and produces matches plus a ScanSummary.

    Usage:
        orchestrator = ScanOrchestrator(ScanConfig(max_workers=8))
        matches, summary = orchestrator.run(["/srv/repo"])
    """

    def __init__(self, config: ScanConfig | None = None):
        self.config = config or ScanConfig()
        self.store = ScanResultStore()

    def _scan_target(self, path: Path) -> None:
        self.store.add_result(scan_file(path, encoding=self.config.encoding))

    def _worker_count(self, target_count: int) -> int:
        if self.config.max_workers is not None:
            return self.config.max_workers
        return max(1, target_count)

    def run(self, inputs: Iterable[str | Path]) -> tuple[list[CardMatch], ScanSummary]:
        """
        Scan every input path. Each call starts from an empty result store.

        Raises:
            ScanConfigError: if no input paths are given
        """
        inputs = list(inputs)
        if not inputs:
            raise ScanConfigError("No input paths given")

        self.store = ScanResultStore()

        started_at = datetime.now(timezone.utc).isoformat()
        start = time.monotonic()

        targets = collect_targets(inputs, self.config.exclude_globs)
        total_size = sum(target_size(path) for path in targets.files)
        logger.info(
            "Scanning %d files in %d directories (%d bytes)",
            len(targets.files), targets.directories_scanned, total_size,
        )

        if targets.files:
            workers = self._worker_count(len(targets.files))
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="pan-scan"
            ) as executor:
                future_to_path = {
                    executor.submit(self._scan_target, path): path
                    for path in targets.files
                }
                for future in concurrent.futures.as_completed(future_to_path):
                    path = future_to_path[future]
                    try:
                        future.result()
                    except Exception as exc:
                        logger.error("Unexpected error scanning %s: %s", path, exc)
                        self.store.add_skip(SkipRecord(str(path), SkipReason.OPEN_FAILED, str(exc)))

        matches = self.store.matches
        summary = summarize(
            scanned_files=(str(path) for path in targets.files),
            matches=matches,
            skipped=self.store.skipped,
            directories_scanned=targets.directories_scanned,
            total_size_bytes=total_size,
            scan_duration_seconds=time.monotonic() - start,
            started_at=started_at,
            mask_char=self.config.mask_char,
        )
        logger.info(
            "Scan complete: %d cards in %d files, %d clean, %d skipped",
            summary.total_cards_found, len(summary.files_with_cards),
            summary.clean_files, len(summary.skipped_files),
        )
        return matches, summary


# ─────────────────────────────────────────────────────────────────────────────
# Convenience Functions
# ─────────────────────────────────────────────────────────────────────────────

def scan(
    inputs: Iterable[str | Path],
    config: ScanConfig | None = None,
) -> tuple[list[CardMatch], ScanSummary]:
    """Scan files and directories for card numbers."""
    return ScanOrchestrator(config).run(inputs)
