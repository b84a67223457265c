"""
Build configuration passed explicitly through the pipelines.

Defaults come from the packaged templates and a fresh temp directory;
environment variables override them:

  MSIPACK_TEMPLATES   directory holding the WiX templates (and choco/)
  MSIPACK_WIX_BIN     directory holding candle/light
  MSIPACK_DEBUG       any non-empty value other than 0/false/no/off enables debug logging
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, replace
from importlib import resources
from pathlib import Path
from typing import Mapping, Optional

# templates live under the package: msipack/_templates/ (+ choco/)
_TEMPLATES_PKG = "msipack"
_TEMPLATES_DIR = "_templates"

DEFAULT_CHANGELOG_SKIP_LINES = 2


def _env_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def packaged_templates_dir() -> Path:
    return Path(str(resources.files(_TEMPLATES_PKG) / _TEMPLATES_DIR))


def default_templates_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    override = env.get("MSIPACK_TEMPLATES")
    if override:
        return Path(override)
    return packaged_templates_dir()


def new_out_dir() -> Path:
    return Path(tempfile.mkdtemp(prefix="msipack-"))


@dataclass(frozen=True)
class BuildSettings:
    templates_dir: Path
    out_dir: Path
    tool_bin_dir: Optional[Path] = None
    keep: bool = False
    changelog_skip_lines: int = DEFAULT_CHANGELOG_SKIP_LINES
    choco_templates: Optional[Path] = None

    @property
    def choco_templates_dir(self) -> Path:
        if self.choco_templates is not None:
            return self.choco_templates
        return self.templates_dir / "choco"

    def with_overrides(self, **changes) -> "BuildSettings":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def default_settings(env: Optional[Mapping[str, str]] = None) -> BuildSettings:
    env = os.environ if env is None else env
    bin_dir = env.get("MSIPACK_WIX_BIN")
    return BuildSettings(
        templates_dir=default_templates_dir(env),
        out_dir=Path(tempfile.gettempdir()) / "msipack-build",
        tool_bin_dir=Path(bin_dir) if bin_dir else None,
    )


def debug_enabled(env: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if env is None else env
    return _env_flag(env.get("MSIPACK_DEBUG"))


__all__ = [
    "BuildSettings", "DEFAULT_CHANGELOG_SKIP_LINES",
    "packaged_templates_dir", "default_templates_dir", "default_settings",
    "new_out_dir", "debug_enabled",
]
