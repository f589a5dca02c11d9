"""Extract and apply structural grid state through a capability-checked handle."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from gp_common.comparison import serialized_equal
from gp_common.errors import NativeWriteError
from gp_controller.contracts import Capability, GridHandle
from gp_settings.models import NativeGridStateSnapshot

logger = logging.getLogger(__name__)

WIDTH_KEY = "width"


def _is_list_of(value: Any, kind: type) -> bool:
    return isinstance(value, list) and all(isinstance(item, kind) for item in value)


def _column_ids(state: List[Dict[str, Any]]) -> List[str]:
    return [str(entry.get("colId")) for entry in state]


def column_state_matches(current: List[Dict[str, Any]], incoming: List[Dict[str, Any]]) -> bool:
    """True when ``current`` already leads with ``incoming``'s columns and values.

    Only the keys present in each incoming entry are compared.
    """
    if _column_ids(current[: len(incoming)]) != _column_ids(incoming):
        return False
    for live, wanted in zip(current, incoming):
        projected = {key: live.get(key) for key in wanted}
        if not serialized_equal(projected, wanted):
            return False
    return True


class GridStateProvider:
    """Reads and writes column state, filters, grouping and pivot mode.

    Every sub-state is handled independently: a missing capability, a
    malformed value or a failing call for one never blocks the others.
    """

    def __init__(self, handle: Optional[GridHandle] = None) -> None:
        self._handle = handle

    @property
    def handle(self) -> Optional[GridHandle]:
        return self._handle

    def set_handle(self, handle: Optional[GridHandle]) -> None:
        self._handle = handle

    def _supports(self, capability: Capability) -> bool:
        if self._handle is None:
            return False
        if not self._handle.capabilities.supports(capability):
            logger.debug("Grid handle lacks %s; skipping", capability.value)
            return False
        return True

    def _read(self, capability: Capability, reader: Callable[[], Any]) -> Any:
        if not self._supports(capability):
            return None
        try:
            return reader()
        except Exception:
            logger.warning("Reading %s from grid failed", capability.value, exc_info=True)
            return None

    def extract_grid_state(self) -> NativeGridStateSnapshot:
        """Best-effort snapshot; unreadable sub-states are left as None."""
        handle = self._handle
        if handle is None:
            return NativeGridStateSnapshot()
        data: Dict[str, Any] = {}
        column_state = self._read(Capability.COLUMN_STATE, handle.get_column_state)
        if _is_list_of(column_state, dict):
            data["columnState"] = [dict(entry) for entry in column_state]
        filter_model = self._read(Capability.FILTER_MODEL, handle.get_filter_model)
        if isinstance(filter_model, Mapping):
            data["filterModel"] = dict(filter_model)
        groups = self._read(Capability.ROW_GROUP_COLUMNS, handle.get_row_group_columns)
        if isinstance(groups, list):
            data["rowGroupColumns"] = [str(item) for item in groups]
        group_state = self._read(Capability.COLUMN_GROUP_STATE, handle.get_column_group_state)
        if _is_list_of(group_state, dict):
            data["columnGroupState"] = [dict(entry) for entry in group_state]
        pivot = self._read(Capability.PIVOT_MODE, handle.is_pivot_mode)
        if isinstance(pivot, bool):
            data["pivotMode"] = pivot
        return NativeGridStateSnapshot.model_validate(data)

    def apply_grid_state(
        self,
        snapshot: NativeGridStateSnapshot | Mapping[str, Any],
        errors: Optional[List[NativeWriteError]] = None,
    ) -> List[str]:
        """Apply each present sub-state that differs from the grid's current value.

        Returns the names of the sub-states written. Write failures are
        appended to ``errors`` when given.
        """
        if self._handle is None:
            logger.debug("No grid handle bound; grid state not applied")
            return []
        if isinstance(snapshot, NativeGridStateSnapshot):
            raw: Dict[str, Any] = {**(snapshot.model_extra or {}), **snapshot.to_wire()}
        else:
            raw = dict(snapshot)
        sink: List[NativeWriteError] = [] if errors is None else errors
        written: List[str] = []
        written += self._apply_column_state(raw, sink)
        written += self._apply_simple(
            raw, "filterModel", Capability.FILTER_MODEL, dict,
            self._handle.get_filter_model, self._handle.set_filter_model, sink,
        )
        written += self._apply_simple(
            raw, "rowGroupColumns", Capability.ROW_GROUP_COLUMNS, list,
            self._handle.get_row_group_columns, self._handle.set_row_group_columns, sink,
        )
        written += self._apply_simple(
            raw, "columnGroupState", Capability.COLUMN_GROUP_STATE, list,
            self._handle.get_column_group_state, self._handle.set_column_group_state, sink,
        )
        written += self._apply_simple(
            raw, "pivotMode", Capability.PIVOT_MODE, bool,
            self._handle.is_pivot_mode, self._handle.set_pivot_mode, sink,
        )
        return written

    def _write(
        self, name: str, write: Callable[[], Any], sink: List[NativeWriteError]
    ) -> bool:
        try:
            write()
        except Exception as exc:
            error = NativeWriteError(name, exc)
            logger.error("%s", error, exc_info=True)
            sink.append(error)
            return False
        return True

    def _apply_simple(
        self,
        raw: Mapping[str, Any],
        name: str,
        capability: Capability,
        kind: type,
        getter: Callable[[], Any],
        setter: Callable[[Any], Any],
        sink: List[NativeWriteError],
    ) -> List[str]:
        if raw.get(name) is None:
            return []
        value = raw[name]
        if not isinstance(value, kind):
            logger.warning("Malformed %s in grid state (%s); skipping", name, type(value).__name__)
            return []
        if not self._supports(capability):
            return []
        current = self._read(capability, getter)
        if current is not None and serialized_equal(current, value):
            logger.debug("%s unchanged; skipping", name)
            return []
        return [name] if self._write(name, lambda: setter(value), sink) else []

    def _collect_widths(self, raw: Mapping[str, Any], state: List[Dict[str, Any]]) -> Dict[str, Any]:
        widths: Dict[str, Any] = {
            str(entry["colId"]): entry[WIDTH_KEY]
            for entry in state
            if entry.get("colId") is not None and entry.get(WIDTH_KEY) is not None
        }
        sizing = raw.get("columnSizingState")
        legacy = sizing.get("columnWidths") if isinstance(sizing, Mapping) else None
        if isinstance(legacy, Mapping):
            for key, value in legacy.items():
                widths.pop(str(key), None)
                widths[str(key)] = value
        return widths

    def _apply_column_state(
        self, raw: Mapping[str, Any], sink: List[NativeWriteError]
    ) -> List[str]:
        state = raw.get("columnState")
        if state is None:
            return []
        if not _is_list_of(state, dict) or not all("colId" in entry for entry in state):
            logger.warning("Malformed columnState in grid state; skipping")
            return []
        if not self._supports(Capability.COLUMN_STATE):
            return []
        handle = self._handle
        assert handle is not None
        split_widths = self._supports(Capability.COLUMN_WIDTHS)
        widths = self._collect_widths(raw, state) if split_widths else {}
        incoming = (
            [{k: v for k, v in entry.items() if k != WIDTH_KEY} for entry in state]
            if split_widths
            else [dict(entry) for entry in state]
        )
        written: List[str] = []
        current = self._read(Capability.COLUMN_STATE, handle.get_column_state)
        if _is_list_of(current, dict) and column_state_matches(current, incoming):
            logger.debug("columnState unchanged; skipping")
        elif self._write(
            "columnState", lambda: handle.apply_column_state(incoming, apply_order=True), sink
        ):
            written.append("columnState")
            current = self._read(Capability.COLUMN_STATE, handle.get_column_state)
        if widths:
            live = {
                str(entry.get("colId")): entry.get(WIDTH_KEY)
                for entry in (current if _is_list_of(current, dict) else [])
            }
            changed = [
                {"key": key, "newWidth": width}
                for key, width in widths.items()
                if live.get(key) != width
            ]
            if changed and self._write(
                "columnWidths", lambda: handle.set_column_widths(changed), sink
            ):
                written.append("columnWidths")
        return written
