"""
Merges discovered files into the manifest's directory tree.

The merge is cumulative: entries already in the tree are never removed,
so repeated runs with a growing include set only add files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

from ..io.fs import match_patterns
from .model import Directory, File, Manifest

logger = logging.getLogger(__name__)


def insert_file(directory: Directory, file: File, segments: Sequence[str]) -> bool:
    """
    Walk (creating as needed) the directory chain named by segments[:-1]
    and put `file` into the terminal directory.

    Directories are matched by name within their parent only.
    Returns False when a file with the same path is already listed there.
    """
    node = directory
    for name in segments[:-1]:
        child = node.find_directory(name)
        if child is None:
            child = Directory(name=name)
            node.directories.append(child)
        node = child

    if node.find_file(file.path) is not None:
        logger.info("    skipping %s already listed", file.path)
        return False
    logger.info("    adding %s", file.path)
    node.files.append(file)
    return True


def add_files(
    manifest: Manifest,
    base_dir: Path,
    includes: Sequence[str],
    excludes: Sequence[str] = (),
) -> List[str]:
    """
    Add every file matched by `includes` and not matched by `excludes` to the tree.

    Paths are stored as `<base_dir>/<match>` so they stay resolvable from the
    current working directory. Matches are processed in sorted order.

    Returns:
        Stored paths of the files that were actually added.

    Raises:
        PatternMatchedNothingError: an include group matched no file
    """
    excluded = match_patterns(base_dir, excludes, fail_on_empty=False)
    included = match_patterns(base_dir, includes, fail_on_empty=True)

    added: List[str] = []
    for rel in sorted(included):
        stored = (base_dir / rel).as_posix()
        if rel in excluded:
            logger.info("    excluding %s", stored)
            continue
        if insert_file(manifest.directory, File(path=stored), rel.split("/")):
            added.append(stored)
    return added


__all__ = ["insert_file", "add_files"]
