"""Public conversion API surface."""

from gp_conversion.conversion import (
    EDITOR_COMPONENTS,
    FILTER_COMPONENTS,
    SETTINGS_KEYS,
    build_editor_params,
    build_filter_params,
    column_id_of,
    filter_columns,
    from_native_column_config,
    has_column_settings,
    is_column_modified,
    merge_over_base,
    regenerate_column_config,
    stored_column_settings,
    strip_callables,
    to_native_column_config,
    to_persisted_column_config,
)
from gp_conversion.formatters import (
    ValueFormatter,
    default_formatter_for_type,
    format_date,
    format_value,
)
from gp_conversion.models import (
    SECTIONS,
    CellSettings,
    ColumnSettings,
    EditorSettings,
    FilterSettings,
    FormatterSettings,
    HeaderSettings,
    NativeColumnConfig,
    merge_column_settings,
)
from gp_conversion.styles import (
    AlignmentStyle,
    ComputedStyle,
    collapse_default_col_def,
    expand_default_col_def,
)
from gp_conversion.validation import ensure_valid, validate_column_settings

__all__ = [
    "AlignmentStyle",
    "CellSettings",
    "ColumnSettings",
    "ComputedStyle",
    "EDITOR_COMPONENTS",
    "EditorSettings",
    "FILTER_COMPONENTS",
    "FilterSettings",
    "FormatterSettings",
    "HeaderSettings",
    "NativeColumnConfig",
    "SECTIONS",
    "SETTINGS_KEYS",
    "ValueFormatter",
    "build_editor_params",
    "build_filter_params",
    "collapse_default_col_def",
    "column_id_of",
    "default_formatter_for_type",
    "ensure_valid",
    "expand_default_col_def",
    "filter_columns",
    "format_date",
    "format_value",
    "from_native_column_config",
    "has_column_settings",
    "is_column_modified",
    "merge_column_settings",
    "merge_over_base",
    "regenerate_column_config",
    "stored_column_settings",
    "strip_callables",
    "to_native_column_config",
    "to_persisted_column_config",
    "validate_column_settings",
]
