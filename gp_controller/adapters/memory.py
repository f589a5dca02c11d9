"""In-memory grid handle: a reference adapter for tests and headless use."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from gp_controller.contracts import GridCapabilities
from gp_controller.scheduling import Scheduler

logger = logging.getLogger(__name__)


@dataclass
class WriteRecord:
    """One mutating call made against the grid."""

    method: str
    key: Optional[str] = None
    value: Any = None


@dataclass
class InMemoryGrid:
    """Grid handle that keeps all state in plain Python structures.

    Every mutating call is appended to ``writes``. ``failures`` maps a method
    name or an option key to an exception raised when it is written.
    Next-frame callbacks go to ``frame_scheduler`` when one is given,
    otherwise they queue in ``frames`` until ``run_frames`` is called.
    """

    column_defs: List[Dict[str, Any]] = field(default_factory=list)
    grid_options: Dict[str, Any] = field(default_factory=dict)
    declared: GridCapabilities = field(default_factory=GridCapabilities.full)
    filter_model: Dict[str, Any] = field(default_factory=dict)
    row_group_columns: List[str] = field(default_factory=list)
    column_group_state: List[Dict[str, Any]] = field(default_factory=list)
    pivot_mode: bool = False
    failures: Dict[str, Exception] = field(default_factory=dict)
    writes: List[WriteRecord] = field(default_factory=list)
    frames: List[Callable[[], None]] = field(default_factory=list)
    frame_scheduler: Optional[Scheduler] = None
    header_refreshes: int = 0
    cell_refreshes: int = 0

    def __post_init__(self) -> None:
        self._column_state: List[Dict[str, Any]] = [
            {
                "colId": self._column_id(col_def),
                "width": col_def.get("width", 200),
                "hide": bool(col_def.get("hide", False)),
                "pinned": col_def.get("pinned"),
                "sort": col_def.get("sort"),
                "sortIndex": None,
                "rowGroup": False,
                "pivot": False,
            }
            for col_def in self.column_defs
        ]

    @staticmethod
    def _column_id(col_def: Dict[str, Any]) -> str:
        return str(col_def.get("colId") or col_def.get("field") or "")

    @property
    def capabilities(self) -> GridCapabilities:
        return self.declared

    def _record(self, method: str, key: Optional[str] = None, value: Any = None) -> None:
        failure = self.failures.get(key or "") or self.failures.get(method)
        if failure is not None:
            raise failure
        self.writes.append(WriteRecord(method, key, value))

    def writes_for(self, method: str) -> List[WriteRecord]:
        return [record for record in self.writes if record.method == method]

    # options

    def get_grid_option(self, key: str) -> Any:
        return self.grid_options.get(key)

    def set_grid_option(self, key: str, value: Any) -> None:
        self._record("set_grid_option", key, value)
        self.grid_options[key] = value

    # column definitions

    def get_column_defs(self) -> List[Dict[str, Any]]:
        return [dict(col_def) for col_def in self.column_defs]

    def set_column_defs(self, column_defs: List[Dict[str, Any]]) -> None:
        self._record("set_column_defs", value=column_defs)
        self.column_defs = [dict(col_def) for col_def in column_defs]

    def column_def(self, column_id: str) -> Dict[str, Any]:
        for col_def in self.column_defs:
            if self._column_id(col_def) == column_id:
                return dict(col_def)
        raise KeyError(column_id)

    def effective_column_config(self, column_id: str) -> Dict[str, Any]:
        """Column definition as the grid resolves it: defaults, then the column."""
        default_col_def = self.grid_options.get("defaultColDef") or {}
        return {**default_col_def, **self.column_def(column_id)}

    # column state

    def get_column_state(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._column_state)

    def apply_column_state(self, state: List[Dict[str, Any]], *, apply_order: bool) -> bool:
        self._record("apply_column_state", value=state)
        by_id = {entry["colId"]: entry for entry in self._column_state}
        for incoming in state:
            target = by_id.get(incoming.get("colId"))
            if target is None:
                continue
            target.update(copy.deepcopy(incoming))
        if apply_order:
            ordered_ids = [entry.get("colId") for entry in state if entry.get("colId") in by_id]
            rest = [entry for entry in self._column_state if entry["colId"] not in ordered_ids]
            self._column_state = [by_id[col_id] for col_id in ordered_ids] + rest
        return True

    def set_column_widths(self, widths: List[Dict[str, Any]]) -> None:
        self._record("set_column_widths", value=widths)
        by_id = {entry["colId"]: entry for entry in self._column_state}
        for item in widths:
            target = by_id.get(item.get("key"))
            if target is not None:
                target["width"] = item.get("newWidth")

    # filter / grouping / pivot

    def get_filter_model(self) -> Dict[str, Any]:
        return copy.deepcopy(self.filter_model)

    def set_filter_model(self, model: Optional[Dict[str, Any]]) -> None:
        self._record("set_filter_model", value=model)
        self.filter_model = copy.deepcopy(model or {})

    def get_row_group_columns(self) -> List[str]:
        return list(self.row_group_columns)

    def set_row_group_columns(self, column_ids: List[str]) -> None:
        self._record("set_row_group_columns", value=column_ids)
        self.row_group_columns = list(column_ids)

    def get_column_group_state(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.column_group_state)

    def set_column_group_state(self, state: List[Dict[str, Any]]) -> None:
        self._record("set_column_group_state", value=state)
        self.column_group_state = copy.deepcopy(state)

    def is_pivot_mode(self) -> bool:
        return self.pivot_mode

    def set_pivot_mode(self, enabled: bool) -> None:
        self._record("set_pivot_mode", value=enabled)
        self.pivot_mode = bool(enabled)

    # refresh

    def refresh_header(self) -> None:
        self.header_refreshes += 1

    def refresh_cells(self, *, force: bool = False) -> None:
        self.cell_refreshes += 1

    def next_frame(self, callback: Callable[[], None]) -> None:
        if self.frame_scheduler is not None:
            self.frame_scheduler.call_soon(callback, "frame")
            return
        self.frames.append(callback)

    def run_frames(self) -> int:
        """Run queued frame callbacks, including ones queued while running."""
        ran = 0
        while self.frames:
            callback = self.frames.pop(0)
            callback()
            ran += 1
        return ran
