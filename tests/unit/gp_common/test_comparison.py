"""Tests for serialized comparison helpers."""

from __future__ import annotations

import pytest

from gp_common.comparison import (
    CALLABLE_MARKER,
    changed_keys,
    serialize_for_compare,
    serialized_equal,
)
from gp_conversion.styles import AlignmentStyle


pytestmark = pytest.mark.unit_common


def test_key_order_does_not_matter() -> None:
    assert serialized_equal({"a": 1, "b": [1, 2]}, {"b": [1, 2], "a": 1})


def test_list_order_matters() -> None:
    assert not serialized_equal([1, 2], [2, 1])


def test_plain_callables_compare_equal() -> None:
    assert serialize_for_compare(lambda: 1) == f'"{CALLABLE_MARKER}"'
    assert serialized_equal({"fn": lambda: 1}, {"fn": lambda: 2})


def test_policy_callables_compare_by_policy() -> None:
    assert serialized_equal(AlignmentStyle("top", "left"), AlignmentStyle("top", "left"))
    assert not serialized_equal(AlignmentStyle("top", "left"), AlignmentStyle("bottom", "left"))


def test_changed_keys_reports_only_differences() -> None:
    current = {"rowHeight": 30, "pagination": False}
    assert changed_keys(current, {"rowHeight": 30, "pagination": True}) == ["pagination"]
    assert changed_keys(current, {"rowHeight": 30}) == []


def test_changed_keys_ignores_new_none_values() -> None:
    assert changed_keys({}, {"missing": None}) == []
    assert changed_keys({}, {"added": 0}) == ["added"]
