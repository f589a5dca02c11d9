"""Tests for the categorized settings store."""

from __future__ import annotations

import pytest

from gp_common.errors import ConfigurationError
from gp_settings.defaults import DEFAULT_TOOLBAR_SETTINGS, clamp_font_size
from gp_settings.models import CustomSettings, NativeGridStateSnapshot, ProfileSettings
from gp_settings.store import SettingsStore


pytestmark = pytest.mark.unit_settings


def test_store_starts_from_defaults() -> None:
    store = SettingsStore()
    assert store.get_settings("toolbar") == DEFAULT_TOOLBAR_SETTINGS
    assert store.get_settings("gridOptions")["rowHeight"] == 30
    assert store.get_settings("column") == {}
    assert store.grid_state.is_empty()


def test_unknown_category_raises() -> None:
    store = SettingsStore()
    with pytest.raises(ConfigurationError):
        store.get_settings("colours")
    with pytest.raises(ConfigurationError):
        SettingsStore(initial={"colours": {}})


def test_update_is_diff_gated() -> None:
    store = SettingsStore()
    seen: list[dict] = []
    store.subscribe("toolbar", seen.append)

    assert store.update_settings("toolbar", {"fontSize": 14}) is True
    assert store.update_settings("toolbar", {"fontSize": 14}) is False
    assert len(seen) == 1
    assert seen[0]["fontSize"] == 14
    assert seen[0]["fontFamily"] == DEFAULT_TOOLBAR_SETTINGS["fontFamily"]


def test_only_changed_category_is_notified() -> None:
    store = SettingsStore()
    toolbar: list[dict] = []
    options: list[dict] = []
    store.subscribe("toolbar", toolbar.append)
    store.subscribe("gridOptions", options.append)
    store.update_settings("gridOptions", {"rowHeight": 42})
    assert toolbar == []
    assert len(options) == 1


def test_failing_listener_does_not_block_others() -> None:
    store = SettingsStore()
    seen: list[dict] = []

    def broken(_settings: dict) -> None:
        raise RuntimeError("listener bug")

    store.subscribe("toolbar", broken)
    store.subscribe("toolbar", seen.append)
    store.update_settings("toolbar", {"spacing": 8})
    assert len(seen) == 1


def test_unsubscribe_and_dispose() -> None:
    store = SettingsStore()
    seen: list[dict] = []
    unsubscribe = store.subscribe("toolbar", seen.append)
    assert store.listener_count("toolbar") == 1
    unsubscribe()
    unsubscribe()
    store.update_settings("toolbar", {"spacing": 9})
    assert seen == []
    store.subscribe("gridOptions", seen.append)
    store.dispose()
    assert store.disposed
    assert store.listener_count("gridOptions") == 0


def test_wholesale_toolbar_replace_always_notifies() -> None:
    store = SettingsStore()
    seen: list[dict] = []
    store.subscribe("toolbar", seen.append)
    store.update_all_toolbar_settings(DEFAULT_TOOLBAR_SETTINGS)
    store.update_all_toolbar_settings({"fontSize": 20})
    assert len(seen) == 2
    assert store.get_settings("toolbar") == {"fontSize": 20}


def test_remove_keys() -> None:
    store = SettingsStore(initial={"column": {"a": {}, "b": {}}})
    assert store.remove_keys("column", ["a", "zzz"]) is True
    assert store.remove_keys("column", ["zzz"]) is False
    assert list(store.get_settings("column")) == ["b"]


def test_apply_profile_reports_changed_categories() -> None:
    store = SettingsStore()
    profile = ProfileSettings(
        toolbar={"fontSize": 16},
        grid=NativeGridStateSnapshot(pivot_mode=True),
        custom=CustomSettings(grid_options={"rowHeight": 30}),
    )
    assert store.apply_profile_settings(profile) == ["toolbar"]
    assert store.grid_state.pivot_mode is True


def test_reset_notifies_subscribed_categories() -> None:
    store = SettingsStore()
    store.update_settings("toolbar", {"fontSize": 20})
    seen: list[dict] = []
    store.subscribe("toolbar", seen.append)
    store.reset_to_defaults()
    assert seen == [DEFAULT_TOOLBAR_SETTINGS]


def test_returned_bags_are_copies() -> None:
    store = SettingsStore()
    store.get_settings("toolbar")["fontSize"] = 99
    assert store.get_settings("toolbar")["fontSize"] == DEFAULT_TOOLBAR_SETTINGS["fontSize"]


@pytest.mark.parametrize("raw,expected", [(14, 14), ("13.7", 13), (2, 6), ("big", 12)])
def test_clamp_font_size(raw, expected) -> None:
    assert clamp_font_size(raw) == expected
