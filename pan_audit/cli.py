"""
CLI entry-point for pan-audit.

Usage
-----
    pan-audit -i ./repo
    pan-audit -i src,data/export.csv -o findings.json --format json
    python -m pan_audit -i /srv/logs -w 16 -v

Exit status: 0 when no cards were found, 1 when cards were found,
2 on a configuration error, 3 when the report could not be written.
"""

from __future__ import annotations

import argparse
import logging
import sys

from .config import ScanConfigError, load_config
from .reporting import FORMATS, render
from .scan_orchestrator import scan

EXIT_CLEAN = 0
EXIT_CARDS_FOUND = 1
EXIT_CONFIG_ERROR = 2
EXIT_OUTPUT_ERROR = 3


def _split_inputs(values: list[str]) -> list[str]:
    paths = []
    for value in values:
        paths.extend(p.strip() for p in value.split(",") if p.strip())
    return paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pan-audit",
        description="Scan files for valid payment card numbers using the Luhn algorithm.",
    )
    parser.add_argument(
        "--input", "-i",
        action="append",
        required=True,
        help="Input file or directory paths (comma-separated, may be repeated)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the report to this file instead of stdout",
    )
    parser.add_argument(
        "--format", "-f",
        choices=FORMATS,
        default="text",
        help="Report format (default: text)",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="TOML config file (default: .pan-audit.toml if present)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum concurrent file scans (default: one per file)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Glob for file or directory names to skip (may be repeated)",
    )
    parser.add_argument(
        "--show-full-pan",
        action="store_true",
        default=False,
        help="Print unmasked PANs and raw lines (NOT recommended)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=False,
        help="Log progress to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        # -v only ever makes logging more verbose than the config asks for
        verbose = args.verbose and config.log_level_value > logging.INFO
        config = config.with_overrides(
            max_workers=args.workers,
            exclude_globs=args.exclude,
            log_level="INFO" if verbose else None,
        )
        logging.basicConfig(
            level=config.log_level_value,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        matches, summary = scan(_split_inputs(args.input), config)
    except ScanConfigError as e:
        print(f"pan-audit: error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    report = render(
        matches,
        summary,
        fmt=args.format,
        mask_char=config.mask_char,
        show_full_pan=args.show_full_pan,
    )

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8", newline="") as fh:
                fh.write(report)
        except OSError as e:
            print(f"pan-audit: error: cannot write {args.output}: {e.strerror or e}", file=sys.stderr)
            return EXIT_OUTPUT_ERROR
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(report)

    return EXIT_CARDS_FOUND if matches else EXIT_CLEAN


if __name__ == "__main__":
    sys.exit(main())
