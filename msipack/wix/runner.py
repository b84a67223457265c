from __future__ import annotations

import logging
import shlex
from pathlib import Path, PurePath
from typing import List

from ..errors import NotFoundError, ValidationError
from ..io.fs import read_text
from ..proc import run_tool
from .command import CommandScript, SCRIPT_NAME

logger = logging.getLogger(__name__)


def run_script(script: CommandScript, cwd: Path) -> None:
    """Run every invocation in order inside `cwd`; the first failure stops the run."""
    for inv in script.invocations:
        logger.info("%s", inv.line())
        run_tool(inv.tool, inv.argv(), cwd=cwd)


def _unquote(token: str) -> str:
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        token = token[1:-1].replace('""', '"')
    return token.replace("%%", "%")


def parse_script_line(line: str) -> List[str]:
    """Split a script line written by CommandScript.text() back into argv."""
    try:
        return [_unquote(t) for t in shlex.split(line, posix=False)]
    except ValueError as e:
        raise ValidationError(f"Malformed command line {line!r}: {e}") from e


def run_script_file(out_dir: Path, name: str = SCRIPT_NAME) -> None:
    """
    Run a previously generated script from `out_dir`, one line per command.

    Raises:
        NotFoundError: the script does not exist
    """
    path = out_dir / name
    if not path.is_file():
        raise NotFoundError(f"Command script not found: {path} (run gen-wix-cmd first)")
    for raw in read_text(path).splitlines():
        line = raw.strip()
        if not line or line.startswith("::") or line.upper().startswith("REM "):
            continue
        argv = parse_script_line(line)
        logger.info("%s", line)
        run_tool(PurePath(argv[0]).stem, argv, cwd=out_dir)


__all__ = ["run_script", "run_script_file", "parse_script_line"]
