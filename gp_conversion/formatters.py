"""Value formatter DSL.

A ``FormatterSettings`` policy is turned into a ``ValueFormatter`` callable
at conversion time. The callable keeps its policy, so it can be compared,
introspected and persisted declaratively.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping

from gp_conversion.models import FormatterSettings

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_DATE_TOKENS = re.compile(r"YYYY|YY|MMM|MM|DD|HH|mm|ss")


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        result = Decimal(int(value))
    elif isinstance(value, (int, float)):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return result if result.is_finite() else None


def format_fixed(value: Decimal, decimals: int, thousands: bool) -> str:
    """Fixed-point rendering, rounding half away from zero on the exact value."""
    places = max(0, decimals)
    quantized = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    if thousands:
        return f"{quantized:,.{places}f}"
    return f"{quantized:.{places}f}"


def _to_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Numbers are epoch milliseconds.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return None


def format_date(moment: datetime, pattern: str) -> str:
    """Substitute ``YYYY/YY/MMM/MM/DD/HH/mm/ss`` tokens in ``pattern``."""
    replacements = {
        "YYYY": f"{moment.year:04d}",
        "YY": f"{moment.year:04d}"[-2:],
        "MMM": MONTH_ABBREVIATIONS[moment.month - 1],
        "MM": f"{moment.month:02d}",
        "DD": f"{moment.day:02d}",
        "HH": f"{moment.hour:02d}",
        "mm": f"{moment.minute:02d}",
        "ss": f"{moment.second:02d}",
    }
    return _DATE_TOKENS.sub(lambda match: replacements[match.group(0)], pattern)


def _format_typed(value: Any, settings: FormatterSettings) -> str:
    kind = settings.type
    if kind in ("number", "currency", "percentage"):
        number = _to_decimal(value)
        if number is None:
            return str(value)
        if kind == "number":
            return format_fixed(number, settings.decimals, settings.use_thousands_separator)
        if kind == "currency":
            body = format_fixed(number, settings.decimals, settings.use_thousands_separator)
            return f"{settings.currency}{body}"
        if settings.multiply_by_100:
            number = number * 100
        return f"{format_fixed(number, settings.decimals, False)}%"
    if kind == "date":
        moment = _to_datetime(value)
        if moment is None:
            return str(value)
        return format_date(moment, settings.date_format or "MM/DD/YYYY")
    if kind == "boolean":
        return "Yes" if value else "No"
    return str(value)


def format_value(value: Any, settings: FormatterSettings) -> str:
    """Render ``value`` according to ``settings``; prefix/suffix apply last."""
    if value is None:
        return ""
    formatted = _format_typed(value, settings)
    return f"{settings.prefix}{formatted}{settings.suffix}"


class ValueFormatter:
    """Grid ``valueFormatter`` callable built from a formatter policy."""

    __slots__ = ("settings",)

    def __init__(self, settings: FormatterSettings) -> None:
        self.settings = settings

    def __call__(self, params: Any) -> str:
        if isinstance(params, Mapping):
            return format_value(params.get("value"), self.settings)
        return format_value(params, self.settings)

    def to_policy(self) -> dict[str, Any]:
        return self.settings.to_wire()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueFormatter):
            return NotImplemented
        return self.to_policy() == other.to_policy()

    def __hash__(self) -> int:
        return hash(tuple(sorted((k, repr(v)) for k, v in self.to_policy().items())))

    def __repr__(self) -> str:
        return f"ValueFormatter(type={self.settings.type!r})"


_TYPE_PRESETS: dict[str, dict[str, Any]] = {
    "number": {"type": "number", "decimals": 2, "use1000Separator": True},
    "currency": {"type": "currency", "decimals": 2, "use1000Separator": True, "currency": "$"},
    "percentage": {"type": "percentage", "decimals": 1, "multiplyBy100": True},
    "date": {"type": "date", "dateFormat": "MM/DD/YYYY"},
    "boolean": {"type": "boolean"},
}


def default_formatter_for_type(column_type: str | None) -> FormatterSettings:
    """Return the formatter preset for a column data type (text otherwise)."""
    preset = _TYPE_PRESETS.get((column_type or "").strip().lower(), {"type": "text"})
    return FormatterSettings.model_validate(preset)
