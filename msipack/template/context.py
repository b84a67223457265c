from __future__ import annotations

from pathlib import Path
from typing import Dict
from xml.sax.saxutils import escape

from ..manifest.model import (
    ChecksumValue,
    Manifest,
    PlainValue,
    PropertyValue,
    VersionValue,
)
from ..io.fs import sha256_file
from .fragments import component_refs_fragment, directories_fragment, properties_fragment

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def resolve_value(value: PropertyValue, manifest: Manifest) -> str:
    """Turn a property value into the text substituted into templates."""
    if isinstance(value, PlainValue):
        return value.text
    if isinstance(value, ChecksumValue):
        return sha256_file(Path(value.path))
    if isinstance(value, VersionValue):
        return getattr(manifest.version, value.field)
    raise TypeError(f"unsupported property value {value!r}")


def resolve_properties(manifest: Manifest) -> Dict[str, str]:
    return {pid: resolve_value(v, manifest) for pid, v in manifest.property_map().items()}


def build_context(manifest: Manifest, *, xml: bool = False) -> Dict[str, str]:
    """
    Placeholder → text mapping for template rendering.

    Scalars are XML-escaped when `xml` is set; the generated `wix:*` fragments
    are markup already and are inserted as is.
    """
    def esc(s: str) -> str:
        return escape(s, _XML_ENTITIES) if xml else s

    v = manifest.version
    c = manifest.choco
    scalars: Dict[str, str] = {
        "product": manifest.product,
        "company": manifest.company,
        "upgrade-code": manifest.upgrade_code,
        "version.user": v.user,
        "version.display": v.display,
        "version.msi": v.msi,
        "compression": manifest.compression,
        "license": manifest.license,
        "choco.id": c.id,
        "choco.title": c.title or manifest.product,
        "choco.description": c.description,
        "choco.authors": c.authors or manifest.company,
        "choco.owners": c.owners or manifest.company,
        "choco.project-url": c.project_url,
        "choco.license-url": c.license_url,
        "choco.icon-url": c.icon_url,
        "choco.tags": c.tags,
        "choco.build-dir": c.build_dir,
        "choco.msi-file": c.msi_file,
        "choco.msi-sum": c.msi_sum,
        "choco.changelog": c.changelog,
    }
    resolved = resolve_properties(manifest)

    ctx: Dict[str, str] = {k: esc(val) for k, val in scalars.items()}
    for pid, val in resolved.items():
        ctx[f"property:{pid}"] = esc(val)
    ctx["wix:directories"] = directories_fragment(manifest)
    ctx["wix:component-refs"] = component_refs_fragment(manifest)
    ctx["wix:properties"] = properties_fragment(resolved)
    return ctx


__all__ = ["resolve_value", "resolve_properties", "build_context"]
