"""
WiX source fragments generated from the manifest.

Templates pull these in through `${wix:directories}`, `${wix:component-refs}`
and `${wix:properties}`; the markup around them stays in the template.
"""

from __future__ import annotations

import hashlib
from typing import List, Mapping, Tuple
from xml.sax.saxutils import quoteattr

from ..manifest.model import Directory, File, Manifest

_INDENT = "  "


def component_id(f: File) -> str:
    return "C_" + f.guid.replace("-", "")


def file_id(f: File) -> str:
    return "F_" + f.guid.replace("-", "")


def directory_id(chain: Tuple[str, ...]) -> str:
    # stable across builds as long as the directory keeps its place in the tree
    digest = hashlib.sha1("/".join(chain).encode("utf-8")).hexdigest()[:16].upper()
    return "D_" + digest


def _component(f: File, depth: int) -> List[str]:
    pad = _INDENT * depth
    return [
        f"{pad}<Component Id={quoteattr(component_id(f))} Guid={quoteattr(f.guid)}>",
        f"{pad}{_INDENT}<File Id={quoteattr(file_id(f))} Source={quoteattr(f.path)} KeyPath=\"yes\" />",
        f"{pad}</Component>",
    ]


def _directory_lines(d: Directory, chain: Tuple[str, ...], depth: int) -> List[str]:
    lines: List[str] = []
    for f in d.files:
        lines.extend(_component(f, depth))
    for sub in d.directories:
        sub_chain = chain + (sub.name,)
        pad = _INDENT * depth
        lines.append(f"{pad}<Directory Id={quoteattr(directory_id(sub_chain))} Name={quoteattr(sub.name)}>")
        lines.extend(_directory_lines(sub, sub_chain, depth + 1))
        lines.append(f"{pad}</Directory>")
    return lines


def directories_fragment(manifest: Manifest) -> str:
    """Components for the root files followed by nested <Directory> elements."""
    return "\n".join(_directory_lines(manifest.directory, (), 0))


def component_refs_fragment(manifest: Manifest) -> str:
    return "\n".join(
        f"<ComponentRef Id={quoteattr(component_id(f))} />"
        for f in manifest.directory.iter_files()
    )


def properties_fragment(resolved: Mapping[str, str]) -> str:
    """<Property> elements for already resolved property values (last definition wins)."""
    return "\n".join(
        f"<Property Id={quoteattr(pid)} Value={quoteattr(value)} />"
        for pid, value in resolved.items()
    )


__all__ = [
    "component_id", "file_id", "directory_id",
    "directories_fragment", "component_refs_fragment", "properties_fragment",
]
