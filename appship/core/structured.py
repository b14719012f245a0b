"""Typed access to the JSON records appship reads (``.apphost``, API replies)."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TypeGuard, cast

StrDict = dict[str, object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    if not isinstance(obj, dict):
        return False
    keys = cast(dict[object, object], obj).keys()
    return all(isinstance(k, str) for k in keys)


def as_str_dict(obj: object) -> StrDict | None:
    return obj if is_str_dict(obj) else None


def loads_object(text: str) -> StrDict | None:
    """Parse text as a JSON object; None for invalid JSON or any other JSON type."""
    try:
        return as_str_dict(json.loads(text))
    except json.JSONDecodeError:
        return None


def get_str(record: Mapping[str, object], key: str) -> str | None:
    """Read a non-empty string field, stripped.

    Integer values are accepted and converted, since numeric ids are
    sometimes written unquoted. Booleans, floats and containers are not.
    """
    value = record.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        return None
    return value.strip() or None
