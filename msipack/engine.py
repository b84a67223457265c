"""
Build pipelines: templates generation, command script generation and the
all-in-one `make`.

Every step raises on failure and the first error ends the run. Nothing is
rolled back: the output directory is left in place for inspection.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .errors import IncompleteManifestError, ValidationError
from .io.fs import remove_dir, reset_dir, write_text
from .manifest import (
    DEFAULT_MANIFEST,
    Manifest,
    PlainValue,
    assign_identifiers,
    load_manifest,
    needs_identifiers,
    normalize,
    rewrite_file_paths,
)
from .rtf import is_rtf, write_as_rtf
from .settings import BuildSettings
from .template import find_templates, render_all
from .wix import SCRIPT_NAME, CommandScript, generate, run_script, run_script_file

logger = logging.getLogger(__name__)

WIX_TEMPLATE_PATTERN = "*.wxs"


@dataclass(frozen=True)
class BuildRequest:
    manifest_path: Path = Path(DEFAULT_MANIFEST)
    version: Optional[str] = None
    display: Optional[str] = None
    license: Optional[str] = None
    compression: Optional[str] = None
    properties: Sequence[str] = field(default_factory=tuple)   # "Id=Value"
    arch: Optional[str] = None
    msi: Optional[str] = None


@dataclass(frozen=True)
class MakeResult:
    artifact: Path
    out_dir: Path
    kept: bool
    script: CommandScript


# ----------------------------- Steps ----------------------------- #

def parse_properties(items: Sequence[str]) -> List[Tuple[str, str]]:
    """'Id=Value' → ('Id', 'Value'); the value may itself contain '='."""
    out: List[Tuple[str, str]] = []
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValidationError(f"Property definition must be of the form Id=Value, got {item!r}")
        out.append((key.strip(), value))
    return out


def apply_flags(manifest: Manifest, request: BuildRequest) -> None:
    """Flags given on the command line take precedence over the manifest."""
    if request.compression is not None:
        manifest.compression = request.compression
    if request.version is not None:
        manifest.version.user = request.version
    if request.display is not None:
        manifest.version.display = request.display
    if request.license is not None:
        manifest.license = request.license


def add_properties(manifest: Manifest, items: Sequence[str]) -> None:
    for key, value in parse_properties(items):
        manifest.add_property(key, PlainValue(value))


def convert_license(manifest: Manifest, out_dir: Path) -> None:
    """Replace a plain text license by an RTF copy in the output directory."""
    if not manifest.license:
        return
    src = Path(manifest.license)
    if is_rtf(src):
        return
    logger.info("Converting license to RTF")
    target = out_dir / (src.name + ".rtf")
    write_as_rtf(src, target, reencode=True)
    manifest.license = str(target)


def artifact_rel_path(msi: str, out_dir: Path) -> str:
    """Artifact location as seen from the staging directory."""
    msi_abs = os.path.abspath(msi)
    try:
        return os.path.relpath(msi_abs, os.path.abspath(out_dir))
    except ValueError:
        # different drive: keep it absolute
        return msi_abs


def _require_msi(request: BuildRequest) -> str:
    if not request.msi:
        raise ValidationError("--msi parameter must be set")
    return request.msi


def _load_complete(path: Path) -> Manifest:
    manifest = load_manifest(path)
    if needs_identifiers(manifest):
        raise IncompleteManifestError(str(path))
    return manifest


def _prepare(manifest: Manifest, request: BuildRequest, out_dir: Path) -> None:
    apply_flags(manifest, request)
    add_properties(manifest, request.properties)
    normalize(manifest)
    rewrite_file_paths(manifest, out_dir)


def _tool_bin(settings: BuildSettings) -> Optional[str]:
    if settings.tool_bin_dir is None:
        return None
    return os.path.abspath(settings.tool_bin_dir)


# ----------------------------- Pipelines ----------------------------- #

def run_generate_templates(request: BuildRequest, settings: BuildSettings) -> List[Path]:
    """Render the WiX templates into the output directory; returns the rendered files."""
    manifest = _load_complete(request.manifest_path)
    _prepare(manifest, request, settings.out_dir)
    templates = find_templates(settings.templates_dir, WIX_TEMPLATE_PATTERN)
    settings.out_dir.mkdir(parents=True, exist_ok=True)
    return render_all(manifest, templates, settings.out_dir)


def run_gen_wix_cmd(request: BuildRequest, settings: BuildSettings) -> Path:
    """Write the compile/link script for already generated templates; returns its path."""
    msi = _require_msi(request)
    templates = find_templates(settings.templates_dir, WIX_TEMPLATE_PATTERN)
    built = [str(settings.out_dir / t.name) for t in templates]

    manifest = _load_complete(request.manifest_path)
    _prepare(manifest, request, settings.out_dir)

    script = generate(manifest, built, artifact_rel_path(msi, settings.out_dir), request.arch, _tool_bin(settings))
    target = settings.out_dir / SCRIPT_NAME
    write_text(target, script.text())
    return target


def run_wix_cmd(settings: BuildSettings) -> None:
    run_script_file(settings.out_dir)


def run_make(request: BuildRequest, settings: BuildSettings) -> MakeResult:
    """
    All-in-one build:
    load → identifiers → fresh output dir → flags → license → properties → normalize
    → rewrite paths → templates → command script → run → keep or clean.
    """
    msi = _require_msi(request)
    out_dir = settings.out_dir

    manifest = load_manifest(request.manifest_path)
    if assign_identifiers(manifest, force=False):
        logger.warning(
            "Manifest %s lacks GUIDs; temporary ones are used for this build. "
            "Run 'msipack set-guid' to keep them stable across builds.",
            request.manifest_path,
        )

    reset_dir(out_dir)

    apply_flags(manifest, request)
    convert_license(manifest, out_dir)
    add_properties(manifest, request.properties)
    normalize(manifest)
    rewrite_file_paths(manifest, out_dir)

    templates = find_templates(settings.templates_dir, WIX_TEMPLATE_PATTERN)
    built = render_all(manifest, templates, out_dir)

    script = generate(manifest, [str(p) for p in built], artifact_rel_path(msi, out_dir),
                      request.arch, _tool_bin(settings))
    write_text(out_dir / SCRIPT_NAME, script.text())

    run_script(script, out_dir)

    if settings.keep:
        logger.info("Build files are available in %s", out_dir)
    else:
        remove_dir(out_dir)

    return MakeResult(artifact=Path(os.path.abspath(msi)), out_dir=out_dir, kept=settings.keep, script=script)


__all__ = [
    "BuildRequest", "MakeResult", "WIX_TEMPLATE_PATTERN",
    "parse_properties", "apply_flags", "add_properties", "convert_license", "artifact_rel_path",
    "run_generate_templates", "run_gen_wix_cmd", "run_wix_cmd", "run_make",
]
