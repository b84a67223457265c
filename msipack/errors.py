"""
Base exceptions for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from MsiPackError.

Programming errors and bugs should NOT inherit from MsiPackError:
they will propagate with full tracebacks.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class MsiPackError(Exception):
    """
    Base class for all user-facing errors in msipack.

    These errors indicate problems that the user can fix:
    invalid flags, incomplete manifests, missing files, failing tools.
    """
    pass


class ValidationError(MsiPackError):
    """A required field or flag is missing or malformed."""
    pass


class NotFoundError(MsiPackError):
    """Something the pipeline needs does not exist."""
    pass


class ManifestNotFoundError(NotFoundError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Manifest file not found: {path}")


class TemplatesNotFoundError(NotFoundError):
    def __init__(self, src: str, pattern: str):
        self.src = src
        self.pattern = pattern
        super().__init__(f"No templates {pattern} found in directory {src}")


class PatternMatchedNothingError(NotFoundError):
    def __init__(self, pattern: str, base_dir: str):
        self.pattern = pattern
        self.base_dir = base_dir
        super().__init__(f"Files {pattern!r} do not exist in {base_dir}")


class ArtifactNotFoundError(NotFoundError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Input artifact not found: {path}")


class PackagingIOError(MsiPackError):
    """Read, write or copy failure. The original OSError is kept in __cause__."""
    pass


class ExternalToolError(MsiPackError):
    """An external tool could not be started or exited with a non-zero status."""
    def __init__(self, tool: str, message: str, *, returncode: Optional[int] = None, argv: Sequence[str] = ()):
        self.tool = tool
        self.returncode = returncode
        self.argv: List[str] = list(argv)
        super().__init__(message)


class IncompleteManifestError(MsiPackError):
    def __init__(self, path: str = ""):
        self.path = path
        where = f" {path}" if path else ""
        super().__init__(
            f"Cannot proceed, manifest file{where} is incomplete: it needs GUIDs.\n"
            f"To update your file automatically run:\n"
            f"     msipack set-guid"
        )


__all__ = [
    "MsiPackError",
    "ValidationError",
    "NotFoundError",
    "ManifestNotFoundError",
    "TemplatesNotFoundError",
    "PatternMatchedNothingError",
    "ArtifactNotFoundError",
    "PackagingIOError",
    "ExternalToolError",
    "IncompleteManifestError",
]
