"""Content comparison used by every diff gate.

Values are compared by their serialized JSON form. Callables that expose a
declarative policy (``to_policy()``) compare by that policy; any other
callable serializes to a shared marker, so two different plain functions
compare equal. That mirrors whole-value serialization equality and is a
known tradeoff, not a guarantee of semantic equality.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterable, Mapping

from pydantic import BaseModel

CALLABLE_MARKER = "<callable>"


def _default(value: Any) -> Any:
    to_policy = getattr(value, "to_policy", None)
    if callable(to_policy):
        return {"__policy__": type(value).__name__, "value": to_policy()}
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if callable(value):
        return CALLABLE_MARKER
    return str(value)


def serialize_for_compare(value: Any) -> str:
    """Serialize ``value`` into a canonical string for equality checks."""
    return json.dumps(value, sort_keys=True, default=_default, separators=(",", ":"))


def serialized_equal(left: Any, right: Any) -> bool:
    """Return True when both values serialize identically."""
    if left is right:
        return True
    return serialize_for_compare(left) == serialize_for_compare(right)


def changed_keys(
    current: Mapping[str, Any],
    incoming: Mapping[str, Any],
    keys: Iterable[str] | None = None,
) -> list[str]:
    """Return keys of ``incoming`` whose value differs from ``current``.

    A key missing from ``current`` counts as changed unless the incoming
    value is None.
    """
    result: list[str] = []
    for key in incoming.keys() if keys is None else keys:
        if key not in incoming:
            continue
        new_value = incoming[key]
        if key not in current:
            if new_value is not None:
                result.append(key)
            continue
        if not serialized_equal(current[key], new_value):
            result.append(key)
    return result
