"""
Loading and saving of the persisted manifest.

The manifest is read with ruamel.yaml (JSON is a subset of YAML, so both
`wix.json` and `wix.yaml` load through the same path) and written back
in the format its suffix names. Writes are atomic: temp file + replace.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..errors import ManifestNotFoundError, PackagingIOError, ValidationError
from ..jsonic import dumps as jdumps
from .model import (
    ChocoMeta,
    Directory,
    File,
    Manifest,
    Property,
    Version,
    make_value,
)

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST = "wix.json"

_yaml_load = YAML(typ="safe")

_YAML_DUMP = YAML(typ="rt")
_YAML_DUMP.indent(mapping=2, sequence=4, offset=2)
_YAML_DUMP.width = 1000000

_YAML_SUFFIXES = {".yaml", ".yml"}

# persisted key -> ChocoMeta attribute
_CHOCO_KEYS = {
    "id": "id",
    "title": "title",
    "description": "description",
    "authors": "authors",
    "owners": "owners",
    "project-url": "project_url",
    "license-url": "license_url",
    "icon-url": "icon_url",
    "tags": "tags",
    "build-dir": "build_dir",
    "msi-file": "msi_file",
    "msi-sum": "msi_sum",
    "changelog": "changelog",
}


# -------------------- Raw → typed -------------------- #

def _err(path: str, msg: str) -> ValidationError:
    return ValidationError(f"{path}: {msg}")


def _mapping(val: Any, path: str, allowed: set[str]) -> Dict[str, Any]:
    if val is None:
        return {}
    if not isinstance(val, dict):
        raise _err(path, f"expected mapping, got {type(val).__name__}")
    extras = set(val.keys()) - allowed
    if extras:
        # not part of the model: dropped, so they do not survive a save
        logger.warning("%s: ignoring unknown key(s) %s", path, ", ".join(sorted(map(str, extras))))
    return {k: v for k, v in val.items() if k in allowed}


def _str(raw: Dict[str, Any], key: str, path: str) -> str:
    val = raw.get(key)
    if val is None:
        return ""
    if isinstance(val, bool) or not isinstance(val, (str, int, float)):
        raise _err(f"{path}.{key}", f"expected string, got {type(val).__name__}")
    return str(val)


def _version_str(raw: Dict[str, Any], key: str) -> str:
    val = raw.get(key)
    if val is None:
        return ""
    if not isinstance(val, str):
        raise _err(f"$.version.{key}", f"expected a quoted string, got {type(val).__name__} {val!r}")
    return val


def _list(raw: Dict[str, Any], key: str, path: str) -> List[Any]:
    val = raw.get(key)
    if val is None:
        return []
    if not isinstance(val, list):
        raise _err(f"{path}.{key}", f"expected list, got {type(val).__name__}")
    return val


def _directory_from_raw(val: Any, path: str) -> Directory:
    raw = _mapping(val, path, {"name", "files", "directories"})
    d = Directory(name=_str(raw, "name", path))
    for i, item in enumerate(_list(raw, "files", path)):
        fpath = f"{path}.files[{i}]"
        if isinstance(item, str):
            # shorthand: a bare path
            d.files.append(File(path=item))
            continue
        fraw = _mapping(item, fpath, {"path", "guid"})
        p = _str(fraw, "path", fpath)
        if not p:
            raise _err(fpath, "required field 'path' missing")
        d.files.append(File(path=p, guid=_str(fraw, "guid", fpath)))
    for i, item in enumerate(_list(raw, "directories", path)):
        d.directories.append(_directory_from_raw(item, f"{path}.directories[{i}]"))
    return d


def manifest_from_dict(data: Any) -> Manifest:
    raw = _mapping(data, "$", {
        "product", "company", "upgrade-code", "version", "compression",
        "license", "properties", "directory", "choco",
    })
    vraw = _mapping(raw.get("version"), "$.version", {"user", "display", "msi"})
    craw = _mapping(raw.get("choco"), "$.choco", set(_CHOCO_KEYS))

    properties: List[Property] = []
    for i, item in enumerate(_list(raw, "properties", "$")):
        ppath = f"$.properties[{i}]"
        praw = _mapping(item, ppath, {"id", "value", "kind"})
        pid = _str(praw, "id", ppath)
        if not pid:
            raise _err(ppath, "required field 'id' missing")
        kind = _str(praw, "kind", ppath) or "plain"
        try:
            value = make_value(kind, _str(praw, "value", ppath))
        except ValueError as e:
            raise _err(ppath, str(e)) from e
        properties.append(Property(id=pid, value=value))

    choco = ChocoMeta(**{attr: _str(craw, key, "$.choco") for key, attr in _CHOCO_KEYS.items()})

    return Manifest(
        product=_str(raw, "product", "$"),
        company=_str(raw, "company", "$"),
        upgrade_code=_str(raw, "upgrade-code", "$"),
        version=Version(
            user=_version_str(vraw, "user"),
            display=_version_str(vraw, "display"),
            msi=_version_str(vraw, "msi"),
        ),
        compression=_str(raw, "compression", "$"),
        license=_str(raw, "license", "$"),
        properties=properties,
        directory=_directory_from_raw(raw.get("directory"), "$.directory"),
        choco=choco,
    )


# -------------------- Typed → raw -------------------- #

def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty optional values."""
    return {k: v for k, v in d.items() if v not in ("", None, {}, [])}


def _directory_to_dict(d: Directory) -> Dict[str, Any]:
    return {
        "name": d.name,
        "files": [_compact({"path": f.path, "guid": f.guid}) for f in d.files],
        "directories": [_directory_to_dict(sub) for sub in d.directories],
    }


def manifest_to_dict(m: Manifest) -> Dict[str, Any]:
    props = []
    for p in m.properties:
        item = {"id": p.id, "value": p.value.raw()}
        if p.value.kind != "plain":
            item["kind"] = p.value.kind
        props.append(item)

    return _compact({
        "product": m.product,
        "company": m.company,
        "upgrade-code": m.upgrade_code,
        "version": _compact({"user": m.version.user, "display": m.version.display, "msi": m.version.msi}),
        "compression": m.compression,
        "license": m.license,
        "properties": props,
        "directory": _directory_to_dict(m.directory),
        "choco": _compact({key: getattr(m.choco, attr) for key, attr in _CHOCO_KEYS.items()}),
    })


# -------------------- Public API -------------------- #

def load_manifest(path: Path) -> Manifest:
    """
    Read the manifest at `path`.

    Raises:
        ManifestNotFoundError: the file does not exist
        PackagingIOError: the file cannot be read
        ValidationError: the content is not a valid manifest
    """
    if not path.is_file():
        raise ManifestNotFoundError(str(path))
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PackagingIOError(f"Failed to read manifest {path}: {e}") from e
    try:
        data = _yaml_load.load(text)
    except YAMLError as e:
        raise ValidationError(f"Manifest {path} is not valid JSON/YAML: {e}") from e
    manifest = manifest_from_dict(data or {})
    logger.debug("Loaded manifest %s (product=%r)", path, manifest.product)
    return manifest


def save_manifest(path: Path, manifest: Manifest) -> None:
    """Atomically write the manifest; the suffix selects JSON or YAML."""
    data = manifest_to_dict(manifest)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w", encoding="utf-8") as f:
            if path.suffix.lower() in _YAML_SUFFIXES:
                _YAML_DUMP.dump(data, f)
            else:
                f.write(jdumps(data, indent=2) + "\n")
        tmp.replace(path)
    except OSError as e:
        raise PackagingIOError(f"Failed to write manifest {path}: {e}") from e
    logger.debug("Saved manifest %s", path)


__all__ = ["DEFAULT_MANIFEST", "load_manifest", "save_manifest", "manifest_from_dict", "manifest_to_dict"]
