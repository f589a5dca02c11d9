"""Checks applied to a column edit before it is accepted."""

from __future__ import annotations

import json
import re

from gp_common.errors import ColumnSettingsValidationError
from gp_conversion.models import ColumnSettings

FONT_SIZE_RE = re.compile(r"^\d+(\.\d+)?(px|em|rem|%)$")


def _font_size_ok(value: str) -> bool:
    return value in ("", "default") or bool(FONT_SIZE_RE.match(value))


def validate_column_settings(settings: ColumnSettings) -> list[str]:
    """Return human-readable problems; an empty list means the entry is valid."""
    errors: list[str] = []
    if not settings.column_id:
        errors.append("Column ID is required")
    for name in ("header", "cell"):
        section = getattr(settings, name)
        if not _font_size_ok(section.font_size):
            errors.append(f"Invalid {name} font size: {section.font_size!r}")
        if section.border_width < 0:
            errors.append(f"{name.capitalize()} border width cannot be negative")
    if settings.formatter.decimals < 0:
        errors.append("Decimal places cannot be negative")
    editor = settings.editor
    if editor.value_source == "json" and editor.json_values.strip():
        try:
            json.loads(editor.json_values)
        except ValueError:
            errors.append("Select values are not valid JSON")
    if editor.max_length < 0:
        errors.append("Maximum length cannot be negative")
    filt = settings.filter
    if filt.min_valid_year and filt.max_valid_year and filt.min_valid_year > filt.max_valid_year:
        errors.append("Minimum valid year is after maximum valid year")
    if filt.debounce_ms < 0:
        errors.append("Filter debounce cannot be negative")
    return errors


def ensure_valid(settings: ColumnSettings) -> ColumnSettings:
    """Raise ``ColumnSettingsValidationError`` when the entry has problems."""
    errors = validate_column_settings(settings)
    if errors:
        raise ColumnSettingsValidationError(
            f"Invalid settings for column {settings.column_id!r}: {'; '.join(errors)}",
            errors=errors,
            column_id=settings.column_id,
        )
    return settings
