from __future__ import annotations

import builtins
import os
from pathlib import Path

import pytest

import pan_audit.file_scanner as file_scanner


@pytest.fixture
def deny_open(monkeypatch):
    """
    Make chosen paths raise PermissionError when the file scanner opens them.

    Works when the tests run as root, where chmod 000 does not stop reads.
    """
    denied: set[str] = set()
    real_open = builtins.open

    def fake_open(path, *args, **kwargs):
        if os.path.normpath(str(path)) in denied:
            raise PermissionError(13, "Permission denied", str(path))
        return real_open(path, *args, **kwargs)

    monkeypatch.setattr(file_scanner, "open", fake_open, raising=False)

    def deny(path: Path) -> Path:
        denied.add(os.path.normpath(str(path)))
        return path

    return deny
