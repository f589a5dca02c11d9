"""Public settings API surface."""

from gp_settings.column_settings import COLUMN_CATEGORY, ColumnSettingsEditor
from gp_settings.defaults import (
    CATEGORIES,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_GRID_OPTIONS,
    DEFAULT_SPACING,
    DEFAULT_TOOLBAR_SETTINGS,
    INITIAL_PROPERTIES,
    INVALID_GRID_OPTIONS,
    MIN_FONT_SIZE,
    NEVER_WRITTEN,
    RUNTIME_GRID_OPTIONS,
    clamp_font_size,
    default_settings,
)
from gp_settings.models import (
    GRID_STATE_KEYS,
    CustomSettings,
    NativeGridStateSnapshot,
    ProfileSettings,
    load_profile,
    save_profile,
)
from gp_settings.store import SettingsStore

__all__ = [
    "CATEGORIES",
    "COLUMN_CATEGORY",
    "ColumnSettingsEditor",
    "CustomSettings",
    "DEFAULT_FONT_FAMILY",
    "DEFAULT_FONT_SIZE",
    "DEFAULT_GRID_OPTIONS",
    "DEFAULT_SPACING",
    "DEFAULT_TOOLBAR_SETTINGS",
    "GRID_STATE_KEYS",
    "INITIAL_PROPERTIES",
    "INVALID_GRID_OPTIONS",
    "MIN_FONT_SIZE",
    "NEVER_WRITTEN",
    "NativeGridStateSnapshot",
    "ProfileSettings",
    "RUNTIME_GRID_OPTIONS",
    "SettingsStore",
    "clamp_font_size",
    "default_settings",
    "load_profile",
    "save_profile",
]
