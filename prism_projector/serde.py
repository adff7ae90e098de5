"""
Payload boundary around the projector:
• message → JSON text / UTF-8 bytes, exactly what a transport would send
• response text / bytes → generic JSON (never routed through the projector)
"""

from __future__ import annotations

import json
from typing import Any, Optional

from prism_projector.projector import Projector
from prism_projector.settings import ProjectionSettings


def dumps(
    message: Any,
    *,
    indent: Optional[int] = None,
    settings: Optional[ProjectionSettings] = None,
) -> str:
    """message → JSON text (key order = field declaration order)"""
    doc = Projector(settings=settings).project(message)
    separators = None if indent is not None else (",", ":")
    return json.dumps(doc, indent=indent, separators=separators, ensure_ascii=False, allow_nan=False)


def dumps_bytes(message: Any, *, settings: Optional[ProjectionSettings] = None) -> bytes:
    """message → UTF-8 JSON request body"""
    return dumps(message, settings=settings).encode("utf-8")


def loads(raw: bytes | bytearray | str) -> Any:
    """response body → plain JSON value; invalid UTF-8 or JSON raises ValueError"""
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8")
    return json.loads(raw)
