"""
File helpers shared by the test modules.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path


def write(p: Path, text: str) -> Path:
    """Write text, creating parent directories as needed."""
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


def write_bytes(p: Path, data: bytes) -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data)
    return p


def write_executable(p: Path, text: str) -> Path:
    """Shell script with the executable bit set (POSIX only)."""
    write(p, text)
    mode = os.stat(p).st_mode
    os.chmod(p, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return p


__all__ = ["write", "write_bytes", "write_executable"]
