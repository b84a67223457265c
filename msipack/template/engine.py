from __future__ import annotations

import logging
from pathlib import Path
from string import Template as _BaseTemplate
from typing import List, Mapping, Optional, Set

from ..errors import PackagingIOError, TemplatesNotFoundError, ValidationError
from ..io.fs import read_text, write_text
from ..manifest.model import Manifest
from .context import build_context

logger = logging.getLogger(__name__)

# outputs whose scalar placeholders must be XML-escaped
XML_SUFFIXES = {".wxs", ".wxi", ".wxl", ".nuspec", ".xml"}


class MsiTemplate(_BaseTemplate):
    """
    Only braced placeholders are recognized: `${version.msi}`, `${property:Foo}`,
    `${wix:directories}`. A bare `$name` is left untouched so PowerShell and batch
    templates keep their own variables; `$$` yields a literal `$`.
    """
    pattern = r"""
    \$(?:
      (?P<escaped>\$) |
      \{(?P<braced>[A-Za-z0-9_.:-]+)\} |
      (?P<named>(?!)) |
      (?P<invalid>(?!))
    )
    """


def collect_placeholders(template: MsiTemplate) -> Set[str]:
    """Identifiers referenced by the template."""
    ph: Set[str] = set()
    for _esc, braced, _named, _invalid in template.pattern.findall(template.template):
        if braced:
            ph.add(braced)
    return ph


def find_templates(src: Path, pattern: str) -> List[Path]:
    """
    Regular files in `src` matching a glob, sorted by name.

    Raises:
        TemplatesNotFoundError: nothing matched
    """
    if not src.is_dir():
        raise TemplatesNotFoundError(str(src), pattern)
    found = sorted(p for p in src.glob(pattern) if p.is_file())
    if not found:
        raise TemplatesNotFoundError(str(src), pattern)
    return found


def render_text(text: str, context: Mapping[str, str], *, source: str = "<template>") -> str:
    tpl = MsiTemplate(text)
    unknown = sorted(collect_placeholders(tpl) - set(context))
    if unknown:
        raise ValidationError(f"Unknown placeholder(s) in {source}: {', '.join(unknown)}")
    return tpl.substitute(context)


def render_template(manifest: Manifest, src: Path, dst: Path) -> None:
    """Render one template file into `dst` using the manifest's values."""
    context = build_context(manifest, xml=src.suffix.lower() in XML_SUFFIXES)
    rendered = render_text(read_text(src), context, source=str(src))
    write_text(dst, rendered)
    logger.debug("rendered %s -> %s", src, dst)


def render_all(
    manifest: Manifest,
    templates: List[Path],
    out_dir: Path,
    root: Optional[Path] = None,
) -> List[Path]:
    """
    Render each template into `out_dir`; returns the outputs in order.
    With `root`, the layout below it is kept (choco/tools/x.ps1 -> out/tools/x.ps1),
    otherwise each output takes the template's base name.
    """
    outputs: List[Path] = []
    for tpl in templates:
        dst = out_dir / (tpl.relative_to(root) if root is not None else Path(tpl.name))
        if dst.resolve() == tpl.resolve():
            raise PackagingIOError(f"Template {tpl} would be overwritten by its own output")
        render_template(manifest, tpl, dst)
        outputs.append(dst)
    return outputs


__all__ = [
    "MsiTemplate", "XML_SUFFIXES", "collect_placeholders",
    "find_templates", "render_text", "render_template", "render_all",
]
