"""
config.py - Scan configuration

Settings come from a TOML file (default ``.pan-audit.toml`` in the working
directory). Keys may be given at top level or under a ``[global]`` table;
top-level keys win. Example::

    [global]
    max_workers = 8
    mask_char = "*"
    exclude_globs = [".git", "*.png"]
"""

from __future__ import annotations

import codecs
import logging
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path

from .file_scanner import DEFAULT_ENCODING
from .masking import DEFAULT_MASK_CHAR

DEFAULT_CONFIG_FILE = ".pan-audit.toml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ScanConfigError(ValueError):
    """Invalid configuration or invocation; the only error that aborts a scan."""


@dataclass(frozen=True)
class ScanConfig:
    """Options for a scan. max_workers=None means one worker per file."""
    max_workers: int | None = None
    mask_char: str = DEFAULT_MASK_CHAR
    encoding: str = DEFAULT_ENCODING
    exclude_globs: tuple[str, ...] = ()
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.max_workers is not None and (
            not isinstance(self.max_workers, int) or self.max_workers < 1
        ):
            raise ScanConfigError(f"max_workers must be a positive integer, got {self.max_workers!r}")
        if not isinstance(self.mask_char, str) or len(self.mask_char) != 1:
            raise ScanConfigError(f"mask_char must be a single character, got {self.mask_char!r}")
        try:
            codecs.lookup(self.encoding)
            newline = "\n".encode(self.encoding)
        except (LookupError, TypeError, UnicodeError):
            raise ScanConfigError(f"Unknown encoding: {self.encoding!r}") from None
        # files are split into lines on raw b"\n" before decoding
        if newline != b"\n":
            raise ScanConfigError(f"Encoding {self.encoding!r} is not ASCII-compatible")
        if str(self.log_level).upper() not in _LOG_LEVELS:
            raise ScanConfigError(f"Unknown log level: {self.log_level!r}")

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_dict(cls, data: dict) -> "ScanConfig":
        """Build a config from parsed TOML, honouring the [global] table."""
        section = data.get("global", {})
        if not isinstance(section, dict):
            raise ScanConfigError("[global] must be a table")

        values = {}
        for f in fields(cls):
            if f.name in data:
                values[f.name] = data[f.name]
            elif f.name in section:
                values[f.name] = section[f.name]

        if "exclude_globs" in values:
            globs = values["exclude_globs"]
            if isinstance(globs, str) or not isinstance(globs, (list, tuple)):
                raise ScanConfigError("exclude_globs must be a list of strings")
            values["exclude_globs"] = tuple(str(g) for g in globs)

        return cls(**values)

    @classmethod
    def from_file(cls, path: str | Path) -> "ScanConfig":
        try:
            data = tomllib.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise ScanConfigError(f"Cannot read config file {path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ScanConfigError(f"Malformed config file {path}: {e}") from e
        return cls.from_dict(data)

    def with_overrides(self, **overrides) -> "ScanConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "exclude_globs" in changes:
            changes["exclude_globs"] = tuple(changes["exclude_globs"])
        return replace(self, **changes)


def load_config(path: str | Path | None = None) -> ScanConfig:
    """
    Load configuration.

    An explicit path must exist. Without one, the default file in the current
    directory is used when present, otherwise built-in defaults.
    """
    if path is not None:
        return ScanConfig.from_file(path)

    default = Path.cwd() / DEFAULT_CONFIG_FILE
    if default.is_file():
        return ScanConfig.from_file(default)
    return ScanConfig()
