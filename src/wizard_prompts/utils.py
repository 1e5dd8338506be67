"""Utility helpers."""

from __future__ import annotations

import json
from typing import Any

MISSING = object()


def get_nested_value(obj: Any, path: str) -> Any:
    """Walks a dotted path through nested dicts and lists.

    Returns ``MISSING`` when any segment cannot be resolved. Numeric segments
    index into lists, so ``items.0.name`` works.
    """
    current = obj
    for key in path.split("."):
        if isinstance(current, dict):
            if key not in current:
                return MISSING
            current = current[key]
        elif isinstance(current, (list, tuple)) and key.isdigit():
            index = int(key)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def set_nested_value(obj: dict, path: str, value: Any) -> None:
    keys = path.split(".")
    last_key = keys.pop()
    target = obj
    for key in keys:
        if not isinstance(target.get(key), dict):
            target[key] = {}
        target = target[key]
    target[last_key] = value


def json_dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
