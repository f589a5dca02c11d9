"""Environment variable lookup and parsing for GP_* settings."""

from __future__ import annotations

import os
from typing import Mapping

ENV_PREFIX = "GP_"

_TRUTHY = {"1", "true", "yes", "on"}


def env_value(name: str, environ: Mapping[str, str] | None = None) -> str | None:
    """Return the raw value of ``GP_<NAME>`` or None when unset/blank."""
    source = os.environ if environ is None else environ
    raw = source.get(f"{ENV_PREFIX}{name.upper()}")
    if raw is None or not raw.strip():
        return None
    return raw


def parse_bool_env(value: str | None) -> bool | None:
    """Parse "1", "true", "yes", "on" (any case) as True; None stays None."""
    if value is None:
        return None
    return value.strip().lower() in _TRUTHY


def parse_int_env(value: str | None) -> int | None:
    """Parse an integer, returning None when missing or malformed."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return None


def parse_ms_env(value: str | None, *, minimum: int = 0) -> int | None:
    """Parse a millisecond duration, clamping to ``minimum``.

    Accepts a bare integer ("150") or an "ms" suffixed value ("150ms").
    """
    if value is None:
        return None
    text = value.strip().lower()
    if text.endswith("ms"):
        text = text[:-2].strip()
    parsed = parse_int_env(text)
    if parsed is None:
        return None
    return max(minimum, parsed)
