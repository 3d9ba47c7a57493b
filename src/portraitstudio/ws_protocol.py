from __future__ import annotations

import json
from typing import Any, Iterable

from .styles import StylePreset


def dumps(msg: dict[str, Any]) -> str:
    return json.dumps(msg, separators=(",", ":"), ensure_ascii=False)


def status(phase: str, detail: str = "") -> dict[str, Any]:
    return {"type": "status", "phase": phase, "detail": detail}


def error(message: str, detail: str = "") -> dict[str, Any]:
    return {"type": "error", "message": message, "detail": detail}


def state(snapshot: dict[str, Any]) -> dict[str, Any]:
    return {"type": "state", **snapshot}


def styles(items: Iterable[StylePreset], default_id: str) -> dict[str, Any]:
    return {"type": "styles", "items": [s.summary() for s in items], "default": default_id}
