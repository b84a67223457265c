from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Literal, Optional, Tuple, Union

DEFAULT_MSI_VERSION = "0.0.0"

VersionField = Literal["user", "display", "msi"]


# -------- Property values -------- #

@dataclass(frozen=True)
class PlainValue:
    text: str

    kind = "plain"

    def raw(self) -> str:
        return self.text


@dataclass(frozen=True)
class ChecksumValue:
    # sha256 of this file, computed at render time
    path: str

    kind = "checksum"

    def raw(self) -> str:
        return self.path


@dataclass(frozen=True)
class VersionValue:
    field: VersionField = "msi"

    kind = "version"

    def raw(self) -> str:
        return self.field


PropertyValue = Union[PlainValue, ChecksumValue, VersionValue]

VALUE_KINDS = ("plain", "checksum", "version")


def make_value(kind: str, raw: str) -> PropertyValue:
    """Build a PropertyValue from its persisted (kind, value) pair."""
    if kind == "plain":
        return PlainValue(raw)
    if kind == "checksum":
        return ChecksumValue(raw)
    if kind == "version":
        if raw not in ("user", "display", "msi"):
            raise ValueError(f"version property must reference user, display or msi, got {raw!r}")
        return VersionValue(raw)  # type: ignore[arg-type]
    raise ValueError(f"unknown property kind {kind!r} (expected one of {', '.join(VALUE_KINDS)})")


@dataclass
class Property:
    id: str
    value: PropertyValue


# -------- File tree -------- #

@dataclass
class File:
    path: str                     # POSIX
    guid: str = ""


@dataclass
class Directory:
    name: str = ""
    files: List[File] = field(default_factory=list)
    directories: List["Directory"] = field(default_factory=list)

    def find_file(self, path: str) -> Optional[File]:
        for f in self.files:
            if f.path == path:
                return f
        return None

    def find_directory(self, name: str) -> Optional["Directory"]:
        for d in self.directories:
            if d.name == name:
                return d
        return None

    def walk(self, prefix: Tuple[str, ...] = ()) -> Iterator[Tuple[Tuple[str, ...], "Directory"]]:
        """Depth-first (pre-order) traversal yielding (name chain, directory)."""
        yield prefix, self
        for d in self.directories:
            yield from d.walk(prefix + (d.name,))

    def iter_files(self) -> Iterator[File]:
        for _chain, d in self.walk():
            yield from d.files


# -------- Manifest -------- #

@dataclass
class Version:
    user: str = ""
    display: str = ""
    msi: str = ""


@dataclass
class ChocoMeta:
    id: str = ""
    title: str = ""
    description: str = ""
    authors: str = ""
    owners: str = ""
    project_url: str = ""
    license_url: str = ""
    icon_url: str = ""
    tags: str = ""
    # filled by the choco flow
    build_dir: str = ""
    msi_file: str = ""
    msi_sum: str = ""
    changelog: str = ""


@dataclass
class Manifest:
    product: str = ""
    company: str = ""
    upgrade_code: str = ""
    version: Version = field(default_factory=Version)
    compression: str = ""
    license: str = ""
    properties: List[Property] = field(default_factory=list)
    directory: Directory = field(default_factory=Directory)
    choco: ChocoMeta = field(default_factory=ChocoMeta)

    def add_property(self, prop_id: str, value: PropertyValue) -> None:
        self.properties.append(Property(id=prop_id, value=value))

    def property_map(self) -> dict[str, PropertyValue]:
        """Properties by id; for duplicate ids the last one wins."""
        out: dict[str, PropertyValue] = {}
        for p in self.properties:
            out[p.id] = p.value
        return out


__all__ = [
    "DEFAULT_MSI_VERSION",
    "PlainValue", "ChecksumValue", "VersionValue", "PropertyValue", "VALUE_KINDS", "make_value",
    "Property", "File", "Directory", "Version", "ChocoMeta", "Manifest",
]
