from .guids import assign_identifiers, needs_identifiers
from .model import (
    ChecksumValue,
    ChocoMeta,
    Directory,
    File,
    Manifest,
    PlainValue,
    Property,
    PropertyValue,
    Version,
    VersionValue,
)
from .normalize import derive_msi_version, normalize, rewrite_file_paths
from .store import DEFAULT_MANIFEST, load_manifest, save_manifest
from .tree import add_files, insert_file

__all__ = [
    "Manifest", "Directory", "File", "Property", "PropertyValue", "PlainValue",
    "ChecksumValue", "VersionValue", "Version", "ChocoMeta",
    "DEFAULT_MANIFEST", "load_manifest", "save_manifest",
    "add_files", "insert_file",
    "assign_identifiers", "needs_identifiers",
    "derive_msi_version", "normalize", "rewrite_file_paths",
]
