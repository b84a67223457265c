"""
License text helpers: Windows-1252 re-encoding and plain text → RTF.

The WiX license dialog only displays RTF, so `make` converts plain text
licenses on the fly.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from .errors import NotFoundError, PackagingIOError
from .io.fs import read_text

RTF_MAGIC = b"{\\rtf"

_RTF_HEADER = (
    "{\\rtf1\\ansi\\ansicpg1252\\deff0\\nouicompat"
    "{\\fonttbl{\\f0\\fnil\\fcharset0 Courier New;}}\n"
    "\\viewkind4\\uc1\\pard\\f0\\fs16 "
)


def _require(src: Path) -> None:
    if not src.is_file():
        raise NotFoundError(f"File not found: {src}")


def is_rtf(path: Path) -> bool:
    _require(path)
    try:
        with path.open("rb") as f:
            head = f.read(len(RTF_MAGIC) + 3)
    except OSError as e:
        raise PackagingIOError(f"Failed to read {path}: {e}") from e
    return head.lstrip(b"\xef\xbb\xbf").startswith(RTF_MAGIC)


def _escape_char(ch: str, reencode: bool) -> str:
    if ch in "\\{}":
        return "\\" + ch
    code = ord(ch)
    if code < 128:
        return ch
    if reencode:
        try:
            return "\\'%02x" % ch.encode("cp1252")[0]
        except UnicodeEncodeError:
            pass
    # signed 16-bit form, '?' as the fallback for readers without unicode support
    if code > 0xFFFF:
        return "?"
    if code > 32767:
        code -= 65536
    return f"\\u{code}?"


def text_to_rtf(text: str, reencode: bool = False) -> str:
    text = text.lstrip("\ufeff")
    lines: List[str] = []
    for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        lines.append("".join(_escape_char(ch, reencode) for ch in line.replace("\t", "    ")))
    body = "\\par\n".join(lines)
    return _RTF_HEADER + body + "\\par\n}\n"


def write_as_rtf(src: Path, out: Path, reencode: bool = False) -> None:
    """Write the UTF-8 text file `src` as an RTF document at `out`."""
    _require(src)
    rtf = text_to_rtf(read_text(src), reencode=reencode)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        # RTF is 7-bit: every non-ASCII character is escaped above
        out.write_text(rtf, encoding="ascii")
    except OSError as e:
        raise PackagingIOError(f"Failed to write {out}: {e}") from e


def write_as_windows1252(src: Path, out: Path) -> None:
    """Re-encode a UTF-8 text file to Windows-1252; unmappable characters become '?'."""
    _require(src)
    text = read_text(src).lstrip("\ufeff")
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(text.encode("cp1252", errors="replace"))
    except OSError as e:
        raise PackagingIOError(f"Failed to write {out}: {e}") from e


__all__ = ["is_rtf", "text_to_rtf", "write_as_rtf", "write_as_windows1252"]
