from __future__ import annotations

import json
from typing import Any


def dumps(obj: Any, *, indent: int | None = None) -> str:
    """
    Minimal JSON dumper for CLI answers and manifest files.
    ensure_ascii=False; the caller decides about the trailing newline.
    """
    return json.dumps(obj, ensure_ascii=False, indent=indent)
