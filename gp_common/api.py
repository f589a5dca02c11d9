"""Public API surface for gp_common."""

from gp_common.comparison import changed_keys, serialize_for_compare, serialized_equal
from gp_common.errors import (
    ColumnSettingsValidationError,
    ConfigurationError,
    GPError,
    NativeWriteError,
    error_to_payload,
)
from gp_common.logging import configure_logging

__all__ = [
    "ColumnSettingsValidationError",
    "ConfigurationError",
    "GPError",
    "NativeWriteError",
    "changed_keys",
    "configure_logging",
    "error_to_payload",
    "serialize_for_compare",
    "serialized_equal",
]
