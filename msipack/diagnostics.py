from __future__ import annotations

import os
import re
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from .proc import probe
from .settings import BuildSettings
from .version import tool_version

_VERSION_RE = re.compile(r"\s([0-9]+)[.]([0-9]+)[.]([0-9]+)")

WIX_MIN = (3, 10, 0)
CHOCO_MIN = (0, 10, 0)

_MARKS = {"ok": "ok", "warn": "??", "error": "!!"}


class Severity(str, Enum):
    ok = "ok"
    warn = "warn"
    error = "error"


class DiagCheck(BaseModel):
    name: str
    level: Severity
    details: str = ""
    version: Optional[str] = None

    def line(self) -> str:
        return f"{_MARKS[self.level.value]}\t{self.details}"


class DiagReport(BaseModel):
    tool_version: str
    checks: List[DiagCheck] = Field(default_factory=list)

    def text(self) -> str:
        return "".join(c.line() + "\n" for c in self.checks)


def parse_tool_version(output: str) -> Optional[Tuple[int, int, int]]:
    """First 'x.y.z' preceded by whitespace in the tool output."""
    m = _VERSION_RE.search(" " + output)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2)), int(m.group(3))


def _fmt(v: Tuple[int, int, int]) -> str:
    return ".".join(str(x) for x in v)


def check_tool(name: str, argv: List[str], minimum: Tuple[int, int, int]) -> DiagCheck:
    """
    Run `argv` and grade the reported version against `minimum` (strictly greater).
    Never raises: problems become warn/error checks.
    """
    out, err = probe(argv)
    if not out.strip():
        return DiagCheck(name=name, level=Severity.error, details=f"{name} not found: {err or 'no output'}")
    version = parse_tool_version(out)
    if version is None:
        return DiagCheck(name=name, level=Severity.warn, details=f"{name} probably not found")
    found = _fmt(version)
    if not version > minimum:
        return DiagCheck(
            name=name, level=Severity.error, version=found,
            details=f"{name} found {found} but >{_fmt(minimum)} is required",
        )
    return DiagCheck(name=name, level=Severity.ok, version=found, details=f"{name} found {found}")


def run_check_env(settings: BuildSettings) -> DiagReport:
    """Report on the WiX and Chocolatey binaries. Advisory only."""
    bin_dir = str(settings.tool_bin_dir) if settings.tool_bin_dir else ""
    checks = [
        check_tool(tool, [os.path.join(bin_dir, tool) if bin_dir else tool, "-h"], WIX_MIN)
        for tool in ("light", "candle")
    ]
    checks.append(check_tool("chocolatey", ["choco", "-v"], CHOCO_MIN))
    return DiagReport(tool_version=tool_version(), checks=checks)


__all__ = ["Severity", "DiagCheck", "DiagReport", "parse_tool_version", "check_tool", "run_check_env"]
