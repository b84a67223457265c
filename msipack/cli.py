from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .choco import ChocoRequest, run_choco
from .diagnostics import run_check_env
from .engine import BuildRequest, run_gen_wix_cmd, run_generate_templates, run_make, run_wix_cmd
from .errors import MsiPackError, ValidationError
from .jsonic import dumps as jdumps
from .manifest import DEFAULT_MANIFEST, add_files, assign_identifiers, load_manifest, save_manifest
from .rtf import write_as_rtf, write_as_windows1252
from .settings import BuildSettings, debug_enabled, default_settings, new_out_dir
from .version import tool_version

_LOG_FORMAT = "[%(levelname)s] %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """One stderr handler on the package logger; repeated calls only adjust the level."""
    log = logging.getLogger("msipack")
    level = logging.DEBUG if (verbose or debug_enabled()) else logging.INFO
    log.setLevel(level)
    if not log.handlers:
        h = logging.StreamHandler(sys.stderr)
        h.setFormatter(logging.Formatter(_LOG_FORMAT))
        log.addHandler(h)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="msipack",
        description="Easy MSI packaging: WiX manifest, templates and build",
        add_help=True,
    )
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_path(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("-p", "--path", default=DEFAULT_MANIFEST, help="path to the wix manifest file")

    def add_src_out(sp: argparse.ArgumentParser, src_help: str = "directory path to the wix templates files") -> None:
        sp.add_argument("-s", "--src", help=src_help)
        sp.add_argument("-o", "--out", help="directory path to the generated files (default: a fresh temp dir)")

    def add_version_flags(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--version", dest="product_version", help="the version of your program")
        sp.add_argument("--display", help="the display version of your program")
        sp.add_argument("-l", "--license", help="path to the license file")
        sp.add_argument("-c", "--compression", help="compression level passed to the templates")
        sp.add_argument("-pr", "--property", action="append", default=[], metavar="ID=VALUE",
                        help="a property to set defined as Id=Value (repeatable)")

    def add_build_flags(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("-b", "--bin", help="path to the wix binaries (if not in PATH)")
        sp.add_argument("-a", "--arch", help="a target architecture passed to the compiler (e.g. x64, x86)")
        sp.add_argument("-m", "--msi", help="path to write resulting msi file to")

    sp = sub.add_parser("check-env", help="provide a report about your environment setup")
    sp.add_argument("--json", action="store_true", help="print the report as JSON")

    sp = sub.add_parser("add-files", help="adds files to your wix manifest")
    add_path(sp)
    sp.add_argument("--dir", required=True, help="base directory from which to include files")
    sp.add_argument("-i", "--includes", action="append", required=True,
                    help="comma separated list of files to include, * and ** are permitted (repeatable)")
    sp.add_argument("-e", "--excludes", action="append", default=[],
                    help="comma separated list of files to exclude, * and ** are permitted (repeatable)")
    sp.add_argument("-t", "--test", action="store_true",
                    help="test mode: does not modify the manifest, fails if it is not up to date")

    sp = sub.add_parser("set-guid", help="sets appropriate guids in your wix manifest")
    add_path(sp)
    sp.add_argument("-f", "--force", action="store_true", help="force update the guids")

    sp = sub.add_parser("generate-templates", help="generate wix templates")
    add_path(sp)
    add_src_out(sp)
    add_version_flags(sp)

    sp = sub.add_parser("to-windows", help="write Windows1252 encoded file")
    sp.add_argument("-s", "--src", help="path to an UTF-8 encoded file")
    sp.add_argument("-o", "--out", help="path to the ANSI generated file")

    sp = sub.add_parser("to-rtf", help="write RTF formatted file")
    sp.add_argument("-s", "--src", help="path to a text file")
    sp.add_argument("-o", "--out", help="path to the RTF generated file")
    sp.add_argument("-e", "--reencode", action="store_true", help="also re-encode UTF-8 to Windows1252 charset")

    sp = sub.add_parser("gen-wix-cmd", help="generate a batch file of wix commands to run")
    add_path(sp)
    add_src_out(sp)
    add_version_flags(sp)
    add_build_flags(sp)

    sp = sub.add_parser("run-wix-cmd", help="run the batch file of wix commands")
    sp.add_argument("-o", "--out", help="directory path to the generated wix cmd file")

    sp = sub.add_parser("make", help="all-in-one command to make MSI files")
    add_path(sp)
    add_src_out(sp)
    add_version_flags(sp)
    add_build_flags(sp)
    sp.add_argument("-k", "--keep", action="store_true", help="keep output directory containing build files")

    sp = sub.add_parser("choco", help="generate a chocolatey package of your msi file")
    add_path(sp)
    add_src_out(sp, src_help="directory path to the chocolatey templates files")
    sp.add_argument("--version", dest="product_version", help="the version of your program")
    sp.add_argument("-i", "--input", help="path to the msi file to package into the chocolatey package")
    sp.add_argument("-c", "--changelog-cmd", help="a command to generate the content of the changelog")
    sp.add_argument("--changelog-skip-lines", type=int,
                    help="leading lines dropped from the changelog command output (default: 2)")
    sp.add_argument("-k", "--keep", action="store_true", help="keep output directory containing build files")

    return p


# ---------------------------- Helpers ---------------------------- #

def _settings(ns: argparse.Namespace, *, fresh_out: bool = True, src_is_wix: bool = True) -> BuildSettings:
    base = default_settings()
    out = getattr(ns, "out", None)
    src = getattr(ns, "src", None) if src_is_wix else None
    return base.with_overrides(
        templates_dir=Path(src) if src else None,
        out_dir=Path(out) if out else (new_out_dir() if fresh_out else None),
        tool_bin_dir=Path(ns.bin) if getattr(ns, "bin", None) else None,
        keep=bool(getattr(ns, "keep", False)),
    )


def _request(ns: argparse.Namespace) -> BuildRequest:
    return BuildRequest(
        manifest_path=Path(ns.path),
        version=getattr(ns, "product_version", None),
        display=getattr(ns, "display", None),
        license=getattr(ns, "license", None),
        compression=getattr(ns, "compression", None),
        properties=tuple(getattr(ns, "property", None) or ()),
        arch=getattr(ns, "arch", None),
        msi=getattr(ns, "msi", None),
    )


def _require(value: Optional[str], flag: str) -> str:
    if not value:
        raise ValidationError(f"{flag} argument is required")
    return value


def _out(text: str) -> None:
    sys.stdout.write(text.rstrip("\n") + "\n")


# ---------------------------- Commands ---------------------------- #

def _cmd_check_env(ns: argparse.Namespace) -> int:
    report = run_check_env(_settings(ns, fresh_out=False))
    if ns.json:
        _out(jdumps(report.model_dump(mode="json")))
    else:
        sys.stdout.write(report.text())
    return 0


def _cmd_add_files(ns: argparse.Namespace) -> int:
    base_dir = Path(ns.dir)
    path = Path(ns.path)
    manifest = load_manifest(path)
    added = add_files(manifest, base_dir, ns.includes, ns.excludes)
    if ns.test:
        if added:
            sys.stderr.write("file list not up to date\n")
            return 1
        _out("The file list is up to date")
        return 0
    save_manifest(path, manifest)
    _out("The file is saved on disk")
    return 0


def _cmd_set_guid(ns: argparse.Namespace) -> int:
    path = Path(ns.path)
    manifest = load_manifest(path)
    if assign_identifiers(manifest, force=ns.force):
        _out("The manifest was updated")
    else:
        _out("The manifest was not updated")
    save_manifest(path, manifest)
    _out("The file is saved on disk")
    return 0


def _cmd_generate_templates(ns: argparse.Namespace) -> int:
    outputs = run_generate_templates(_request(ns), _settings(ns))
    _out(f"Generated {len(outputs)} templates")
    for dst in outputs:
        _out(f"- {dst}")
    return 0


def _cmd_to_windows(ns: argparse.Namespace) -> int:
    write_as_windows1252(Path(_require(ns.src, "--src")), Path(_require(ns.out, "--out")))
    return 0


def _cmd_to_rtf(ns: argparse.Namespace) -> int:
    write_as_rtf(Path(_require(ns.src, "--src")), Path(_require(ns.out, "--out")), reencode=ns.reencode)
    return 0


def _cmd_gen_wix_cmd(ns: argparse.Namespace) -> int:
    target = run_gen_wix_cmd(_request(ns), _settings(ns))
    _out(f"Command script written to {target}")
    return 0


def _cmd_run_wix_cmd(ns: argparse.Namespace) -> int:
    _require(ns.out, "--out")
    run_wix_cmd(_settings(ns))
    return 0


def _cmd_make(ns: argparse.Namespace) -> int:
    run_make(_request(ns), _settings(ns))
    _out("All Done!!")
    return 0


def _cmd_choco(ns: argparse.Namespace) -> int:
    # --src names the chocolatey templates directory itself
    settings = _settings(ns, src_is_wix=False).with_overrides(
        choco_templates=Path(ns.src) if ns.src else None,
        changelog_skip_lines=ns.changelog_skip_lines,
    )
    request = ChocoRequest(
        input=Path(_require(ns.input, "--input")),
        manifest_path=Path(ns.path),
        version=ns.product_version,
        changelog_cmd=ns.changelog_cmd,
    )
    result = run_choco(request, settings)
    _out(f"Package copied to {result.package}")
    _out("All Done!!")
    return 0


_COMMANDS = {
    "check-env": _cmd_check_env,
    "add-files": _cmd_add_files,
    "set-guid": _cmd_set_guid,
    "generate-templates": _cmd_generate_templates,
    "to-windows": _cmd_to_windows,
    "to-rtf": _cmd_to_rtf,
    "gen-wix-cmd": _cmd_gen_wix_cmd,
    "run-wix-cmd": _cmd_run_wix_cmd,
    "make": _cmd_make,
    "choco": _cmd_choco,
}


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    setup_logging(bool(getattr(ns, "verbose", False)))

    try:
        return _COMMANDS[ns.cmd](ns)
    except MsiPackError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
