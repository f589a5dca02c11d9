"""Persisted profile contract and its JSON codec."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from gp_common.errors import ConfigurationError
from gp_conversion.api import (
    collapse_default_col_def,
    strip_callables,
    to_persisted_column_config,
)

logger = logging.getLogger(__name__)

GRID_STATE_KEYS: tuple[str, ...] = (
    "columnState",
    "filterModel",
    "rowGroupColumns",
    "columnGroupState",
    "pivotMode",
)


class _ProfileModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class NativeGridStateSnapshot(_ProfileModel):
    """Structural grid state; a sub-state left as None was not captured."""

    column_state: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Ordered column state entries (colId, width, sort, hide...)"
    )
    filter_model: Optional[Dict[str, Any]] = Field(
        default=None, description="Filter model keyed by column id"
    )
    row_group_columns: Optional[List[str]] = Field(
        default=None, description="Ids of the row-grouped columns, in order"
    )
    column_group_state: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Open/closed state of column groups"
    )
    pivot_mode: Optional[bool] = Field(default=None, description="Whether pivot mode is on")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def is_empty(self) -> bool:
        return not self.to_wire()


class CustomSettings(_ProfileModel):
    grid_options: Dict[str, Any] = Field(
        default_factory=dict, description="Custom grid options written at runtime"
    )
    column_defs: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Per-column overrides in native column config shape"
    )


class ProfileSettings(_ProfileModel):
    """The only persisted contract: toolbar, structural grid state, custom options."""

    toolbar: Dict[str, Any] = Field(default_factory=dict, description="Toolbar option bag")
    grid: NativeGridStateSnapshot = Field(default_factory=NativeGridStateSnapshot)
    custom: CustomSettings = Field(default_factory=CustomSettings)

    def to_persisted(self) -> dict[str, Any]:
        """JSON-safe dict; callables are reduced to their declarative form."""
        grid_options = dict(self.custom.grid_options)
        default_col_def = grid_options.get("defaultColDef")
        if isinstance(default_col_def, dict):
            grid_options["defaultColDef"] = collapse_default_col_def(default_col_def)
        custom: dict[str, Any] = {
            **(self.custom.model_extra or {}),
            "gridOptions": strip_callables(grid_options),
        }
        if self.custom.column_defs is not None:
            custom["columnDefs"] = [
                to_persisted_column_config(column) for column in self.custom.column_defs
            ]
        return {
            **(self.model_extra or {}),
            "toolbar": strip_callables(self.toolbar),
            "grid": self.grid.to_wire(),
            "custom": custom,
        }

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_persisted(), indent=indent, sort_keys=True)

    @classmethod
    def from_dict(cls, data: Any) -> "ProfileSettings":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid profile settings", context={"errors": exc.errors()}, cause=exc
            ) from exc

    @classmethod
    def from_json(cls, text: str) -> "ProfileSettings":
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ConfigurationError(f"Profile is not valid JSON: {exc}", cause=exc) from exc
        if not isinstance(data, dict):
            raise ConfigurationError("Profile JSON must be an object")
        return cls.from_dict(data)


def load_profile(path: Path | str) -> ProfileSettings:
    """Read a profile file; unreadable or malformed files raise ConfigurationError."""
    target = Path(path)
    try:
        text = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read profile file {target}", context={"path": str(target)}, cause=exc
        ) from exc
    logger.debug("Loaded profile from %s", target)
    return ProfileSettings.from_json(text)


def save_profile(profile: ProfileSettings, path: Path | str) -> Path:
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(profile.to_json(), encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot write profile file {target}", context={"path": str(target)}, cause=exc
        ) from exc
    logger.debug("Saved profile to %s", target)
    return target
