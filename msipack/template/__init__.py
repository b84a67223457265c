"""
Template rendering for WiX sources and Chocolatey package files.

Templates are plain text with `${name}` placeholders filled from the manifest.
"""

from __future__ import annotations

from .context import build_context, resolve_properties, resolve_value
from .engine import MsiTemplate, find_templates, render_all, render_template, render_text

__all__ = [
    "MsiTemplate",
    "build_context",
    "resolve_properties",
    "resolve_value",
    "find_templates",
    "render_all",
    "render_template",
    "render_text",
]
