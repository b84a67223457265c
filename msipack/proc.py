"""
Spawning of external tools.

Tools run synchronously with inherited stdout/stderr unless their output
is captured explicitly. There is no timeout: a hung tool blocks the caller.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .errors import ExternalToolError

logger = logging.getLogger(__name__)


def _cmdline(argv: Sequence[str]) -> str:
    return " ".join(argv)


def run_tool(tool: str, argv: Sequence[str], *, cwd: Optional[Path] = None) -> None:
    """
    Run `argv` in `cwd`, passing its output through.

    Raises:
        ExternalToolError: the binary cannot be started or exits non-zero
    """
    logger.debug("[run] %s (cwd=%s)", _cmdline(argv), cwd or ".")
    try:
        proc = subprocess.run(list(argv), cwd=str(cwd) if cwd else None)
    except OSError as e:
        raise ExternalToolError(tool, f"Failed to start {tool}: {e}", argv=argv) from e
    if proc.returncode != 0:
        raise ExternalToolError(
            tool,
            f"{tool} failed with exit status {proc.returncode}: {_cmdline(argv)}",
            returncode=proc.returncode,
            argv=argv,
        )


def capture_shell(command: str, *, cwd: Optional[Path] = None) -> str:
    """
    Run a shell command line and return its stdout; stderr is inherited.

    Raises:
        ExternalToolError: the command cannot be started or exits non-zero
    """
    logger.debug("[run] %s", command)
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=str(cwd) if cwd else None,
            stdout=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise ExternalToolError(command, f"Failed to execute command {command!r}: {e}") from e
    if proc.returncode != 0:
        raise ExternalToolError(
            command,
            f"Failed to execute command {command!r}: exit status {proc.returncode}",
            returncode=proc.returncode,
            argv=[command],
        )
    return proc.stdout or ""


def probe(argv: Sequence[str]) -> tuple[str, str]:
    """
    Best-effort run for diagnostics: returns (combined output, error text).
    Never raises; the output is empty when the tool could not be run.
    """
    try:
        proc = subprocess.run(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        return "", str(e)
    err = "" if proc.returncode == 0 else f"exit status {proc.returncode}"
    return proc.stdout or "", err


__all__ = ["run_tool", "capture_shell", "probe"]
