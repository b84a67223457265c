from __future__ import annotations

import logging
import uuid

from .model import Manifest

logger = logging.getLogger(__name__)


def new_guid() -> str:
    """Fresh identifier in the uppercase registry form WiX expects."""
    return str(uuid.uuid4()).upper()


def needs_identifiers(manifest: Manifest) -> bool:
    """True when the upgrade code or any file identifier is unassigned."""
    if not manifest.upgrade_code:
        return True
    return any(not f.guid for f in manifest.directory.iter_files())


def assign_identifiers(manifest: Manifest, force: bool = False) -> bool:
    """
    Give every identifiable entity an identifier.

    Existing identifiers are kept unless `force` is set: they correlate
    installer components across upgrades and must stay stable between builds.

    Returns:
        True if the manifest was modified.
    """
    changed = False
    if force or not manifest.upgrade_code:
        manifest.upgrade_code = new_guid()
        changed = True
    for f in manifest.directory.iter_files():
        if force or not f.guid:
            f.guid = new_guid()
            changed = True
    if changed:
        logger.debug("identifiers assigned (force=%s)", force)
    return changed


__all__ = ["new_guid", "needs_identifiers", "assign_identifiers"]
