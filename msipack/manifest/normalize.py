from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional

from ..errors import PackagingIOError, ValidationError
from .model import DEFAULT_MSI_VERSION, Manifest

logger = logging.getLogger(__name__)

# optional 'v', then up to three numeric components; anything after is prerelease/metadata
_VERSION_RE = re.compile(r"^\s*[vV]?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def derive_msi_version(user: Optional[str]) -> str:
    """
    Installer-numeric form of a user version: exactly three numeric components.

    '1.2.3-beta' → '1.2.3', 'v2.1' → '2.1.0'. Absent or unparsable input
    gives DEFAULT_MSI_VERSION.
    """
    if not user or not user.strip():
        return DEFAULT_MSI_VERSION
    m = _VERSION_RE.match(user)
    if not m:
        logger.warning("Version %r is not numeric, using %s for the installer", user, DEFAULT_MSI_VERSION)
        return DEFAULT_MSI_VERSION
    parts = [str(int(g)) if g is not None else "0" for g in m.groups()]
    return ".".join(parts)


def normalize(manifest: Manifest) -> None:
    """
    Validate identity fields and derive the canonical version fields.

    Raises:
        ValidationError: the product name is missing
    """
    if not manifest.product.strip():
        raise ValidationError("Manifest field 'product' is required")

    v = manifest.version
    v.msi = derive_msi_version(v.user)
    if not v.display:
        v.display = v.user or v.msi
    logger.debug("version: user=%r display=%r msi=%r", v.user, v.display, v.msi)


def _relative_to(path: str, staging_abs: str) -> str:
    try:
        rel = os.path.relpath(os.path.abspath(path), staging_abs)
    except ValueError as e:
        # e.g. different drives on Windows
        raise PackagingIOError(f"Cannot express {path} relative to {staging_abs}: {e}") from e
    return Path(rel).as_posix()


def rewrite_file_paths(manifest: Manifest, staging_root: Path) -> None:
    """
    Make every file path (and the license path) relative to the staging directory,
    where templates are rendered and the compiler runs.
    Order and identifiers are left untouched.
    """
    staging_abs = os.path.abspath(staging_root)
    for f in manifest.directory.iter_files():
        f.path = _relative_to(f.path, staging_abs)
    if manifest.license:
        manifest.license = _relative_to(manifest.license, staging_abs)


__all__ = ["derive_msi_version", "normalize", "rewrite_file_paths"]
