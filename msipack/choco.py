"""
Chocolatey repackaging of an already built MSI.

The MSI is copied into the staging directory next to the rendered package
templates (nuspec + install scripts) and `choco pack` turns them into a nupkg.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ArtifactNotFoundError, ExternalToolError
from .io.fs import copy_file, remove_dir, reset_dir, sha256_file
from .manifest import DEFAULT_MANIFEST, Manifest, load_manifest, normalize
from .proc import capture_shell, run_tool
from .settings import BuildSettings
from .template import find_templates, render_all

logger = logging.getLogger(__name__)

CHOCO = "choco"
CHOCO_TEMPLATE_PATTERN = "**/*"


@dataclass(frozen=True)
class ChocoRequest:
    input: Path
    manifest_path: Path = Path(DEFAULT_MANIFEST)
    version: Optional[str] = None
    changelog_cmd: Optional[str] = None


@dataclass(frozen=True)
class ChocoResult:
    package: Path
    out_dir: Path
    kept: bool


def drop_leading_lines(text: str, count: int) -> str:
    """Drop the first `count` lines, but only when the text has more lines than that."""
    if count <= 0:
        return text
    lines = text.split("\n")
    if len(lines) > count:
        lines = lines[count:]
    return "\n".join(lines)


def changelog_from_command(command: str, skip_lines: int) -> str:
    out = capture_shell(command)
    return drop_leading_lines(out, skip_lines)


def package_id(manifest: Manifest) -> str:
    if manifest.choco.id:
        return manifest.choco.id
    return re.sub(r"\s+", "-", manifest.product.strip()).lower()


def find_choco() -> str:
    path = shutil.which(CHOCO)
    if not path:
        raise ExternalToolError(CHOCO, "choco not found in PATH")
    return path


def run_choco(request: ChocoRequest, settings: BuildSettings) -> ChocoResult:
    """
    load → fresh output dir → version → normalize → templates → metadata
    (checksum, changelog) → copy msi → render → choco pack → copy nupkg → keep or clean.
    """
    manifest = load_manifest(request.manifest_path)

    reset_dir(settings.out_dir)
    out_dir = Path(os.path.abspath(settings.out_dir))

    if request.version is not None:
        manifest.version.user = request.version
    normalize(manifest)

    templates_root = settings.choco_templates_dir
    templates = find_templates(templates_root, CHOCO_TEMPLATE_PATTERN)

    src_msi = Path(request.input)
    if not src_msi.is_file():
        raise ArtifactNotFoundError(str(src_msi))

    meta = manifest.choco
    meta.id = package_id(manifest)
    meta.build_dir = str(out_dir)
    meta.msi_file = src_msi.name
    meta.msi_sum = sha256_file(src_msi)

    if request.changelog_cmd:
        meta.changelog = changelog_from_command(request.changelog_cmd, settings.changelog_skip_lines)

    copy_file(src_msi, out_dir / meta.msi_file)
    render_all(manifest, templates, out_dir, root=templates_root)

    run_tool(CHOCO, [find_choco(), "pack"], cwd=out_dir)

    built = out_dir / f"{meta.id}.{manifest.version.msi}.nupkg"
    target = Path(f"{meta.id}.{manifest.version.user or manifest.version.msi}.nupkg")
    copy_file(built, target)

    if settings.keep:
        logger.info("Build files are available in %s", out_dir)
    else:
        remove_dir(out_dir)

    return ChocoResult(package=target, out_dir=out_dir, kept=settings.keep)


__all__ = [
    "ChocoRequest", "ChocoResult", "CHOCO",
    "drop_leading_lines", "changelog_from_command", "package_id", "find_choco", "run_choco",
]
