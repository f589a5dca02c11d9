"""Column settings conversion between normalized settings and native configs."""

from gp_conversion.api import (
    ColumnSettings,
    from_native_column_config,
    to_native_column_config,
)

__all__ = ["ColumnSettings", "from_native_column_config", "to_native_column_config"]
