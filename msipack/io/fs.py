from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Iterable, List, Set

from ..errors import PackagingIOError, PatternMatchedNothingError, ValidationError

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    try:
        with path.open(encoding="utf-8", errors="ignore") as f:
            return f.read()
    except OSError as e:
        raise PackagingIOError(f"Failed to read {path}: {e}") from e


def split_expressions(pattern: str) -> List[str]:
    """'a/*.exe, b/**' → ['a/*.exe', 'b/**']"""
    return [e.strip() for e in pattern.split(",") if e.strip()]


def _glob_pattern(expression: str) -> str:
    """
    Normalize one expression into a pattern relative to the base directory.
    A trailing `**` names every file below it.
    """
    expr = expression.replace("\\", "/")
    while expr.startswith("./"):
        expr = expr[2:]
    expr = expr.lstrip("/")
    if expr == "**" or expr.endswith("/**"):
        expr += "/*"
    return expr


def glob_files(base_dir: Path, expression: str) -> Set[str]:
    """
    Regular files under `base_dir` whose whole relative path matches `expression`.
    `*` stays within one path segment, `**` spans any number of them.

    Raises:
        ValidationError: the expression cannot be used as a relative glob
    """
    pattern = _glob_pattern(expression)
    if not pattern:
        return set()
    try:
        return {
            p.relative_to(base_dir).as_posix()
            for p in base_dir.glob(pattern)
            if p.is_file()
        }
    except (ValueError, NotImplementedError) as e:
        raise ValidationError(f"Invalid pattern {expression!r}: {e}") from e


def match_patterns(base_dir: Path, pattern_groups: Iterable[str], fail_on_empty: bool) -> Set[str]:
    """
    Expand include/exclude pattern groups into POSIX paths relative to `base_dir`.

    Each group may hold several comma-joined expressions with `**` and `*` wildcards,
    matched against whole paths. Only regular files are returned.

    Raises:
        PatternMatchedNothingError: fail_on_empty is set and a group matched no file
        PackagingIOError: base_dir is not a directory
        ValidationError: an expression is not a usable relative glob
    """
    if not base_dir.is_dir():
        raise PackagingIOError(f"Base directory not found: {base_dir}")
    out: Set[str] = set()
    for group in pattern_groups:
        group_matches: Set[str] = set()
        for expr in split_expressions(group):
            group_matches |= glob_files(base_dir, expr)
        if fail_on_empty and not group_matches:
            raise PatternMatchedNothingError(group, str(base_dir))
        logger.debug("pattern %r matched %d file(s)", group, len(group_matches))
        out |= group_matches
    return out


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    try:
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(1 << 16), b""):
                h.update(chunk)
    except OSError as e:
        raise PackagingIOError(f"Failed to read {path}: {e}") from e
    return h.hexdigest()


def copy_file(src: Path, dst: Path) -> None:
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
    except OSError as e:
        raise PackagingIOError(f"Failed to copy {src} to {dst}: {e}") from e


def reset_dir(path: Path) -> None:
    """Remove `path` (if present) and create it empty."""
    try:
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PackagingIOError(f"Failed to prepare output directory {path}: {e}") from e


def remove_dir(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise PackagingIOError(f"Failed to remove {path}: {e}") from e


def write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding=encoding)
    except OSError as e:
        raise PackagingIOError(f"Failed to write {path}: {e}") from e


__all__ = [
    "read_text", "split_expressions", "glob_files", "match_patterns",
    "sha256_file", "copy_file", "reset_dir", "remove_dir", "write_text",
]
