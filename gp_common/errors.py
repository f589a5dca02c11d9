"""Shared error taxonomy for grid-profile-engine."""

from __future__ import annotations

from typing import Any, Mapping, Sequence


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return repr(value) if callable(value) else str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {str(key): _normalize_context_value(val) for key, val in context.items()}


class GPError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ConfigurationError(GPError):
    """Invalid configuration: unknown category, bad options, unreadable profile."""


class ColumnSettingsValidationError(GPError):
    """A single per-column edit failed validation; only that edit is aborted."""

    def __init__(
        self,
        message: str,
        *,
        errors: Sequence[str] = (),
        column_id: str | None = None,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        merged: dict[str, Any] = dict(context or {})
        merged["errors"] = list(errors)
        if column_id is not None:
            merged["column_id"] = column_id
        super().__init__(message, context=merged, cause=cause)
        self.errors = list(errors)
        self.column_id = column_id


class NativeWriteError(GPError):
    """A write against the live grid handle raised.

    These are recorded and logged by the controller; they never abort sibling
    writes or later pipeline steps.
    """

    def __init__(
        self,
        option: str,
        cause: Exception,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        merged: dict[str, Any] = dict(context or {})
        merged["option"] = option
        super().__init__(f"Failed to write '{option}': {cause}", context=merged, cause=cause)
        self.option = option


def error_to_payload(error: GPError) -> dict[str, Any]:
    """Convert a GPError to a report/log payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
