"""Grid handle contract and the capability descriptor adapters declare up front."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol


class Capability(str, Enum):
    """Operations a grid handle may or may not support at a given moment."""

    GRID_OPTIONS = "grid_options"
    COLUMN_DEFS = "column_defs"
    COLUMN_STATE = "column_state"
    COLUMN_WIDTHS = "column_widths"
    FILTER_MODEL = "filter_model"
    ROW_GROUP_COLUMNS = "row_group_columns"
    COLUMN_GROUP_STATE = "column_group_state"
    PIVOT_MODE = "pivot_mode"
    REFRESH_HEADER = "refresh_header"
    REFRESH_CELLS = "refresh_cells"
    NEXT_FRAME = "next_frame"


@dataclass(frozen=True)
class GridCapabilities:
    """Immutable set of capabilities a handle supports."""

    supported: frozenset[Capability] = frozenset()

    @classmethod
    def full(cls) -> "GridCapabilities":
        return cls(frozenset(Capability))

    @classmethod
    def of(cls, *capabilities: Capability) -> "GridCapabilities":
        return cls(frozenset(capabilities))

    def supports(self, capability: Capability) -> bool:
        return capability in self.supported

    def without(self, *capabilities: Capability) -> "GridCapabilities":
        return GridCapabilities(self.supported - set(capabilities))

    def missing(self, capabilities: Iterable[Capability] | None = None) -> list[Capability]:
        wanted = list(Capability) if capabilities is None else list(capabilities)
        return [cap for cap in wanted if cap not in self.supported]


class GridHandle(Protocol):
    """Imperative surface of a live grid component.

    Call sites check ``capabilities`` before calling a method; a method whose
    capability is not declared may be absent or non-functional.
    """

    @property
    def capabilities(self) -> GridCapabilities: ...

    def get_grid_option(self, key: str) -> Any: ...

    def set_grid_option(self, key: str, value: Any) -> None: ...

    def get_column_defs(self) -> List[Dict[str, Any]]: ...

    def set_column_defs(self, column_defs: List[Dict[str, Any]]) -> None: ...

    def get_column_state(self) -> List[Dict[str, Any]]: ...

    def apply_column_state(self, state: List[Dict[str, Any]], *, apply_order: bool) -> bool: ...

    def set_column_widths(self, widths: List[Dict[str, Any]]) -> None: ...

    def get_filter_model(self) -> Dict[str, Any]: ...

    def set_filter_model(self, model: Optional[Dict[str, Any]]) -> None: ...

    def get_row_group_columns(self) -> List[str]: ...

    def set_row_group_columns(self, column_ids: List[str]) -> None: ...

    def get_column_group_state(self) -> List[Dict[str, Any]]: ...

    def set_column_group_state(self, state: List[Dict[str, Any]]) -> None: ...

    def is_pivot_mode(self) -> bool: ...

    def set_pivot_mode(self, enabled: bool) -> None: ...

    def refresh_header(self) -> None: ...

    def refresh_cells(self, *, force: bool = False) -> None: ...

    def next_frame(self, callback: Callable[[], None]) -> None: ...
