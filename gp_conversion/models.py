"""Normalized per-column settings models.

Every field carries a default so a freshly created or extracted entry never
has missing values; diffing two entries therefore never misfires on an absent
key. Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

HorizontalAlign = Literal["default", "left", "center", "right"]
VerticalAlign = Literal["default", "top", "middle", "bottom"]
TextStyle = Literal["bold", "italic", "underline"]
BorderStyle = Literal["none", "solid", "dashed", "dotted"]
BorderSides = Literal["all", "top", "right", "bottom", "left"]
FormatterType = Literal[
    "text", "none", "number", "currency", "percentage", "date", "boolean", "link"
]
FilterType = Literal["text", "number", "date", "set", "multi"]
EditorType = Literal["none", "default", "text", "largeText", "number", "select", "date"]
ValueSource = Literal["csv", "json"]
SettingsSection = Literal["header", "cell", "formatter", "filter", "editor"]

SECTIONS: tuple[str, ...] = ("header", "cell", "formatter", "filter", "editor")

NativeColumnConfig = Dict[str, Any]


class _WireModel(BaseModel):
    """Base model: camelCase on the wire, unknown keys preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class _StyleSettings(_WireModel):
    font_family: str = "default"
    font_size: str = "default"
    font_weight: str = "default"
    text_style: List[TextStyle] = Field(default_factory=list)

    text_color: str = ""
    text_color_enabled: bool = False
    background_color: str = ""
    background_enabled: bool = False

    apply_borders: bool = False
    border_style: BorderStyle = "solid"
    border_sides: BorderSides = "all"
    border_width: float = 1
    border_color: str = ""
    border_color_enabled: bool = False

    horizontal_align: HorizontalAlign = "default"
    vertical_align: VerticalAlign = "default"


class HeaderSettings(_StyleSettings):
    header_name: str = ""
    tooltip: str = ""
    header_class: str = ""


class CellSettings(_StyleSettings):
    cell_class: str = ""
    wrap_text: bool = False
    auto_height: bool = False
    cell_renderer: str = ""
    enable_cell_change_flash: bool = False


_LEGACY_FORMATTER_KEYS = {
    "formatterType": "type",
    "decimalPlaces": "decimals",
    "currencySymbol": "currency",
    "thousandsSeparator": "use1000Separator",
}


class FormatterSettings(_WireModel):
    type: FormatterType = "text"
    decimals: int = 2
    use_thousands_separator: bool = Field(default=True, alias="use1000Separator")
    currency: str = "$"
    multiply_by_100: bool = Field(default=False, alias="multiplyBy100")
    date_format: str = "MM/DD/YYYY"
    prefix: str = ""
    suffix: str = ""

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        upgraded = dict(data)
        for legacy, current in _LEGACY_FORMATTER_KEYS.items():
            if legacy in upgraded:
                value = upgraded.pop(legacy)
                upgraded.setdefault(current, value)
        if upgraded.get("type") == "percent":
            upgraded["type"] = "percentage"
        if upgraded.get("type") == "custom":
            upgraded["type"] = "text"
        return upgraded


class FilterSettings(_WireModel):
    filterable: bool = True
    filter_type: FilterType = "text"
    filter: str = ""
    floating_filter: bool = False
    default_option: str = ""
    case_sensitive: bool = False
    allowed_characters: str = ""
    browser_date_picker: bool = True
    min_valid_year: int = 0
    max_valid_year: int = 0
    debounce_ms: int = 0


class EditorSettings(_WireModel):
    editable: bool = False
    editor_type: EditorType = "default"
    cell_editor: str = ""
    single_click_edit: bool = False
    value_source: ValueSource = "csv"
    csv_values: str = ""
    json_values: str = ""
    max_length: int = 0


class ColumnSettings(_WireModel):
    """Editable settings of a single column, keyed by its stable id."""

    column_id: str
    header: HeaderSettings = Field(default_factory=HeaderSettings)
    cell: CellSettings = Field(default_factory=CellSettings)
    formatter: FormatterSettings = Field(default_factory=FormatterSettings)
    filter: FilterSettings = Field(default_factory=FilterSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    last_modified: int = 0
    is_dirty: bool = False

    def sections_equal(self, other: "ColumnSettings") -> bool:
        """Compare the five editable sections, ignoring bookkeeping fields."""
        return all(
            getattr(self, name).to_wire() == getattr(other, name).to_wire()
            for name in SECTIONS
        )


def now_ms() -> int:
    return int(time.time() * 1000)


def to_wire_keys(model_cls: type[BaseModel], data: dict[str, Any]) -> dict[str, Any]:
    """Rename python field names in ``data`` to their wire aliases."""
    fields = model_cls.model_fields
    renamed: dict[str, Any] = {}
    for key, value in data.items():
        info = fields.get(key)
        renamed[(info.alias or key) if info else key] = value
    return renamed


def merge_column_settings(
    existing: ColumnSettings | None,
    column_id: str,
    section: str,
    changes: dict[str, Any],
    *,
    timestamp_ms: int | None = None,
) -> ColumnSettings:
    """Return a new entry with ``changes`` merged into ``section``.

    The result is marked dirty and stamped. Raises pydantic's
    ``ValidationError`` when the merged section does not fit its model.
    """
    if section not in SECTIONS:
        raise ValueError(f"Unknown column settings section: {section!r}")
    base = existing or ColumnSettings(column_id=column_id)
    section_cls = type(getattr(base, section))
    current = getattr(base, section).to_wire()
    current.update(to_wire_keys(section_cls, changes))
    section_model = section_cls.model_validate(current)
    return base.model_copy(
        update={
            section: section_model,
            "is_dirty": True,
            "last_modified": now_ms() if timestamp_ms is None else timestamp_ms,
        }
    )
