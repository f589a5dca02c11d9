"""Categorized settings store with content-diffed writes and per-category listeners."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping

from gp_common.comparison import changed_keys
from gp_common.errors import ConfigurationError
from gp_settings.defaults import CATEGORIES, default_settings
from gp_settings.models import CustomSettings, NativeGridStateSnapshot, ProfileSettings

logger = logging.getLogger(__name__)

SettingsListener = Callable[[Dict[str, Any]], None]
Unsubscribe = Callable[[], None]


class SettingsStore:
    """Holds one option bag per category plus the structural grid snapshot.

    A category bag is merged only when some incoming key serializes
    differently from the stored value; only that category's listeners are
    notified. Listeners receive a copy of the whole bag.
    """

    def __init__(self, initial: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._settings: dict[str, dict[str, Any]] = default_settings()
        self._grid = NativeGridStateSnapshot()
        self._listeners: dict[str, List[SettingsListener]] = {}
        self._disposed = False
        for category, values in (initial or {}).items():
            self._check_category(category)
            self._settings[category].update(copy.deepcopy(dict(values)))

    @staticmethod
    def _check_category(category: str) -> None:
        if category not in CATEGORIES:
            raise ConfigurationError(
                f"Unknown settings category: {category!r}",
                context={"category": category, "known": list(CATEGORIES)},
            )

    def get_settings(self, category: str) -> dict[str, Any]:
        self._check_category(category)
        return dict(self._settings[category])

    @property
    def grid_state(self) -> NativeGridStateSnapshot:
        return self._grid.model_copy(deep=True)

    def get_all_settings(self) -> ProfileSettings:
        return ProfileSettings(
            toolbar=dict(self._settings["toolbar"]),
            grid=self.grid_state,
            custom=CustomSettings(grid_options=dict(self._settings["gridOptions"])),
        )

    def update_settings(self, category: str, partial: Mapping[str, Any]) -> bool:
        """Shallow-merge ``partial`` into ``category`` when something differs.

        Returns True when the bag changed and listeners were notified.
        """
        self._check_category(category)
        current = self._settings[category]
        changed = changed_keys(current, partial)
        if not changed:
            logger.debug("No change for category %s; skipping notify", category)
            return False
        self._settings[category] = {**current, **partial}
        logger.debug("Category %s changed keys: %s", category, changed)
        self._notify(category)
        return True

    def remove_keys(self, category: str, keys: Iterable[str]) -> bool:
        """Drop ``keys`` from ``category``; notifies only when something was removed."""
        self._check_category(category)
        current = self._settings[category]
        present = [key for key in keys if key in current]
        if not present:
            return False
        self._settings[category] = {
            key: value for key, value in current.items() if key not in present
        }
        self._notify(category)
        return True

    def update_all_toolbar_settings(self, settings: Mapping[str, Any]) -> None:
        """Replace the toolbar bag wholesale; listeners are always notified."""
        self._settings["toolbar"] = dict(settings)
        self._notify("toolbar")

    def replace_grid_state(self, snapshot: NativeGridStateSnapshot | Mapping[str, Any]) -> None:
        if isinstance(snapshot, NativeGridStateSnapshot):
            self._grid = snapshot.model_copy(deep=True)
        else:
            self._grid = NativeGridStateSnapshot.model_validate(dict(snapshot))

    def apply_profile_settings(self, profile: ProfileSettings) -> list[str]:
        """Diff-gated merge of toolbar and grid options; grid state is replaced.

        Returns the categories that changed.
        """
        changed: list[str] = []
        if profile.toolbar and self.update_settings("toolbar", profile.toolbar):
            changed.append("toolbar")
        self.replace_grid_state(profile.grid)
        grid_options = profile.custom.grid_options
        if grid_options and self.update_settings("gridOptions", grid_options):
            changed.append("gridOptions")
        return changed

    def reset_to_defaults(self) -> None:
        self._settings = default_settings()
        self._grid = NativeGridStateSnapshot()
        for category in list(self._listeners):
            self._notify(category)

    def subscribe(self, category: str, listener: SettingsListener) -> Unsubscribe:
        self._check_category(category)
        self._listeners.setdefault(category, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(category, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def listener_count(self, category: str) -> int:
        self._check_category(category)
        return len(self._listeners.get(category, []))

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _notify(self, category: str) -> None:
        for listener in list(self._listeners.get(category, [])):
            try:
                listener(dict(self._settings[category]))
            except Exception:
                logger.exception("Settings listener for %s failed", category)
