"""Settings store, defaults and the persisted profile contract."""

from gp_settings.api import ProfileSettings, SettingsStore, load_profile, save_profile

__all__ = ["ProfileSettings", "SettingsStore", "load_profile", "save_profile"]
