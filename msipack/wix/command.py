from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import List, Optional, Sequence

from ..errors import IncompleteManifestError
from ..manifest.guids import needs_identifiers
from ..manifest.model import Manifest

COMPILER = "candle"
LINKER = "light"

COMPILE_EXTENSIONS = ("WixUtilExtension",)
LINK_EXTENSIONS = ("WixUIExtension", "WixUtilExtension")
LINK_FLAGS = ("-sacl", "-spdb")

SCRIPT_NAME = "build.bat"

_NEEDS_QUOTES = re.compile(r'[\s&|<>^()"]')


def quote_arg(arg: str) -> str:
    """
    Write an argument for a batch line: `%` is doubled so cmd.exe does not expand it,
    and the result is double-quoted when it holds spaces or shell metacharacters.
    """
    arg = arg.replace("%", "%%")
    if arg and not _NEEDS_QUOTES.search(arg):
        return arg
    return '"' + arg.replace('"', '""') + '"'


@dataclass(frozen=True)
class Invocation:
    tool: str                     # "candle" | "light" | ...
    executable: str               # as written in the script: bare name or <bin>/<tool>
    args: List[str] = field(default_factory=list)

    def argv(self) -> List[str]:
        return [self.executable, *self.args]

    def line(self) -> str:
        return " ".join(quote_arg(a) for a in self.argv())


@dataclass(frozen=True)
class CommandScript:
    invocations: List[Invocation]

    def text(self) -> str:
        return "".join(inv.line() + "\n" for inv in self.invocations)


def _executable(tool: str, tool_bin_dir: Optional[str]) -> str:
    if not tool_bin_dir:
        return tool
    return os.path.join(tool_bin_dir, tool)


def object_name(template: str) -> str:
    """'product.wxs' → 'product.wixobj'"""
    return PurePath(template).stem + ".wixobj"


def generate(
    manifest: Manifest,
    template_paths: Sequence[str],
    artifact_rel_path: str,
    arch: Optional[str] = None,
    tool_bin_dir: Optional[str] = None,
) -> CommandScript:
    """
    Build the compile/link sequence run in the staging directory.

    One compile step per template in the given order, then one link step over
    all compiled objects producing `artifact_rel_path`. Templates are referred to
    by base name since they live in the staging directory. `arch` is handed to
    the compiler untouched.

    Raises:
        IncompleteManifestError: the manifest still lacks identifiers
    """
    if needs_identifiers(manifest):
        raise IncompleteManifestError()

    compiler = _executable(COMPILER, tool_bin_dir)
    linker = _executable(LINKER, tool_bin_dir)

    invocations: List[Invocation] = []
    objects: List[str] = []
    for tpl in template_paths:
        name = PurePath(tpl).name
        obj = object_name(name)
        args: List[str] = []
        for ext in COMPILE_EXTENSIONS:
            args += ["-ext", ext]
        if arch:
            args += ["-arch", arch]
        args += [name, "-out", obj]
        invocations.append(Invocation(COMPILER, compiler, args))
        objects.append(obj)

    link_args: List[str] = []
    for ext in LINK_EXTENSIONS:
        link_args += ["-ext", ext]
    link_args += [*LINK_FLAGS, "-out", artifact_rel_path, *objects]
    invocations.append(Invocation(LINKER, linker, link_args))

    return CommandScript(invocations)


__all__ = [
    "COMPILER", "LINKER", "SCRIPT_NAME",
    "Invocation", "CommandScript", "quote_arg", "object_name", "generate",
]
