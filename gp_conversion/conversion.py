"""Conversion between normalized column settings and native column configs.

``to_native_column_config`` only emits properties that differ from the
defaults, plus ``colId`` and a ``context.columnSettings`` block carrying the
declarative settings. Callables in the output (value formatter, computed
styles) can be stripped for storage and rebuilt from that block.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from gp_conversion.formatters import ValueFormatter
from gp_conversion.models import (
    SECTIONS,
    CellSettings,
    ColumnSettings,
    EditorSettings,
    FilterSettings,
    FormatterSettings,
    HeaderSettings,
    NativeColumnConfig,
    _StyleSettings,
)
from gp_conversion.styles import (
    ComputedStyle,
    extract_static_style,
    generate_classes,
    needs_computed_style,
    parse_classes,
)

logger = logging.getLogger(__name__)

CONTEXT_KEY = "columnSettings"

FILTER_COMPONENTS = {
    "text": "agTextColumnFilter",
    "number": "agNumberColumnFilter",
    "date": "agDateColumnFilter",
    "set": "agSetColumnFilter",
    "multi": "agMultiColumnFilter",
}
FILTER_TYPES = {value: key for key, value in FILTER_COMPONENTS.items()}

DEFAULT_FILTER_OPTION = {"text": "contains", "number": "equals", "date": "equals"}

EDITOR_COMPONENTS = {
    "text": "agTextCellEditor",
    "largeText": "agLargeTextCellEditor",
    "number": "agNumberCellEditor",
    "select": "agSelectCellEditor",
    "date": "agDateCellEditor",
}
EDITOR_TYPES = {value: key for key, value in EDITOR_COMPONENTS.items()}

# Every key to_native_column_config may emit, besides colId and context.
SETTINGS_KEYS = frozenset(
    {
        "headerName",
        "headerTooltip",
        "headerClass",
        "headerStyle",
        "cellClass",
        "cellStyle",
        "wrapText",
        "autoHeight",
        "cellRenderer",
        "enableCellChangeFlash",
        "valueFormatter",
        "filter",
        "floatingFilter",
        "filterParams",
        "editable",
        "cellEditor",
        "singleClickEdit",
        "cellEditorParams",
    }
)


def _is_default(section: Any) -> bool:
    return section.to_wire() == type(section)().to_wire()


def _style_block(settings: _StyleSettings, class_key: str, style_key: str) -> dict[str, Any]:
    block: dict[str, Any] = {}
    classes = generate_classes(settings)
    if classes:
        block[class_key] = " ".join(classes)
    if needs_computed_style(settings):
        block[style_key] = ComputedStyle(settings)
    return block


def _header_block(header: HeaderSettings) -> dict[str, Any]:
    block: dict[str, Any] = {}
    if header.header_name:
        block["headerName"] = header.header_name
    if header.tooltip:
        block["headerTooltip"] = header.tooltip
    block.update(_style_block(header, "headerClass", "headerStyle"))
    return block


def _cell_block(cell: CellSettings) -> dict[str, Any]:
    block = _style_block(cell, "cellClass", "cellStyle")
    if cell.wrap_text:
        block["wrapText"] = True
    if cell.auto_height:
        block["autoHeight"] = True
    if cell.cell_renderer:
        block["cellRenderer"] = cell.cell_renderer
    if cell.enable_cell_change_flash:
        block["enableCellChangeFlash"] = True
    return block


def _formatter_block(formatter: FormatterSettings) -> dict[str, Any]:
    if formatter.type in ("text", "none") and not (formatter.prefix or formatter.suffix):
        return {}
    return {"valueFormatter": ValueFormatter(formatter)}


def build_filter_params(settings: FilterSettings) -> dict[str, Any]:
    """Filter parameter block for the configured filter type."""
    params: dict[str, Any] = {}
    kind = settings.filter_type
    if kind in DEFAULT_FILTER_OPTION:
        params["filterOptions"] = [settings.default_option or DEFAULT_FILTER_OPTION[kind]]
    if kind == "text":
        params["caseSensitive"] = settings.case_sensitive
    elif kind == "number":
        if settings.allowed_characters:
            params["allowedCharPattern"] = settings.allowed_characters
    elif kind == "date":
        params["browserDatePicker"] = settings.browser_date_picker
        if settings.min_valid_year:
            params["minValidYear"] = settings.min_valid_year
        if settings.max_valid_year:
            params["maxValidYear"] = settings.max_valid_year
    if settings.debounce_ms:
        params["debounceMs"] = settings.debounce_ms
    return params


def _filter_block(settings: FilterSettings) -> dict[str, Any]:
    if _is_default(settings):
        return {}
    if not settings.filterable:
        return {"filter": False}
    block: dict[str, Any] = {
        "filter": settings.filter or FILTER_COMPONENTS[settings.filter_type],
    }
    if settings.floating_filter:
        block["floatingFilter"] = True
    params = build_filter_params(settings)
    if params:
        block["filterParams"] = params
    return block


def select_values(settings: EditorSettings) -> list[Any]:
    """Option list for a select editor from its CSV or JSON source."""
    if settings.value_source == "json":
        if not settings.json_values.strip():
            return []
        try:
            parsed = json.loads(settings.json_values)
        except ValueError as exc:
            logger.warning("Ignoring invalid JSON select values: %s", exc)
            return []
        if isinstance(parsed, Mapping):
            parsed = parsed.get("values", [])
        return list(parsed) if isinstance(parsed, (list, tuple)) else []
    return [value.strip() for value in settings.csv_values.split(",") if value.strip()]


def build_editor_params(settings: EditorSettings) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if settings.editor_type == "select":
        values = select_values(settings)
        if values:
            params["values"] = values
    if settings.editor_type in ("text", "largeText") and settings.max_length > 0:
        params["maxLength"] = settings.max_length
    return params


def _editor_block(settings: EditorSettings) -> dict[str, Any]:
    if _is_default(settings):
        return {}
    if settings.editor_type == "none":
        return {"editable": False}
    block: dict[str, Any] = {"editable": settings.editable}
    editor = settings.cell_editor or EDITOR_COMPONENTS.get(settings.editor_type)
    if editor:
        block["cellEditor"] = editor
    if settings.single_click_edit:
        block["singleClickEdit"] = True
    params = build_editor_params(settings)
    if params:
        block["cellEditorParams"] = params
    return block


def declarative_settings(settings: ColumnSettings) -> dict[str, Any]:
    wire = settings.to_wire()
    return {key: wire[key] for key in ("columnId", *SECTIONS)}


def to_native_column_config(settings: ColumnSettings) -> NativeColumnConfig:
    """Expand column settings into a native column config."""
    native: NativeColumnConfig = {"colId": settings.column_id}
    native.update(_header_block(settings.header))
    native.update(_cell_block(settings.cell))
    native.update(_formatter_block(settings.formatter))
    native.update(_filter_block(settings.filter))
    native.update(_editor_block(settings.editor))
    native["context"] = {CONTEXT_KEY: declarative_settings(settings)}
    return native


def _extract_style_fields(
    native: Mapping[str, Any], class_key: str, style_key: str, prefix: str
) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    style = native.get(style_key)
    if isinstance(style, ComputedStyle):
        fields.update(
            style.settings.model_dump(
                include=set(_StyleSettings.model_fields) - {"text_style"}
            )
        )
    elif isinstance(style, Mapping):
        fields.update(extract_static_style(style))
    parsed = parse_classes(native.get(class_key), prefix)
    fields[f"{prefix}_class"] = parsed["base"]
    if parsed["horizontal"] != "default":
        fields["horizontal_align"] = parsed["horizontal"]
    if parsed["vertical"] != "default":
        fields["vertical_align"] = parsed["vertical"]
    fields["text_style"] = parsed["flags"]
    return fields


def _extract_header(native: Mapping[str, Any]) -> HeaderSettings:
    fields = _extract_style_fields(native, "headerClass", "headerStyle", "header")
    fields["header_name"] = str(native.get("headerName") or "")
    fields["tooltip"] = str(native.get("headerTooltip") or "")
    return HeaderSettings.model_validate(fields)


def _extract_cell(native: Mapping[str, Any]) -> CellSettings:
    fields = _extract_style_fields(native, "cellClass", "cellStyle", "cell")
    fields["wrap_text"] = bool(native.get("wrapText", False))
    fields["auto_height"] = bool(native.get("autoHeight", False))
    renderer = native.get("cellRenderer")
    fields["cell_renderer"] = renderer if isinstance(renderer, str) else ""
    fields["enable_cell_change_flash"] = bool(native.get("enableCellChangeFlash", False))
    return CellSettings.model_validate(fields)


def _extract_formatter(native: Mapping[str, Any]) -> FormatterSettings:
    formatter = native.get("valueFormatter")
    if isinstance(formatter, ValueFormatter):
        return formatter.settings.model_copy()
    return FormatterSettings()


def _extract_filter(native: Mapping[str, Any]) -> FilterSettings:
    raw = native.get("filter", True)
    if raw is False:
        return FilterSettings(filterable=False)
    fields: dict[str, Any] = {"filterable": True}
    if isinstance(raw, str) and raw:
        if raw in FILTER_TYPES:
            fields["filter_type"] = FILTER_TYPES[raw]
        else:
            fields["filter"] = raw
    fields["floating_filter"] = bool(native.get("floatingFilter", False))
    params = native.get("filterParams")
    if isinstance(params, Mapping):
        kind = fields.get("filter_type", "text")
        options = params.get("filterOptions")
        if isinstance(options, list) and options and isinstance(options[0], str):
            if options[0] != DEFAULT_FILTER_OPTION.get(kind):
                fields["default_option"] = options[0]
        for key, field in (
            ("caseSensitive", "case_sensitive"),
            ("allowedCharPattern", "allowed_characters"),
            ("browserDatePicker", "browser_date_picker"),
            ("minValidYear", "min_valid_year"),
            ("maxValidYear", "max_valid_year"),
            ("debounceMs", "debounce_ms"),
        ):
            if key in params:
                fields[field] = params[key]
    return FilterSettings.model_validate(fields)


def _extract_editor(native: Mapping[str, Any]) -> EditorSettings:
    fields: dict[str, Any] = {"editable": native.get("editable") is True}
    editor = native.get("cellEditor")
    if isinstance(editor, str) and editor:
        if editor in EDITOR_TYPES:
            fields["editor_type"] = EDITOR_TYPES[editor]
        else:
            fields["cell_editor"] = editor
    fields["single_click_edit"] = bool(native.get("singleClickEdit", False))
    params = native.get("cellEditorParams")
    if isinstance(params, Mapping):
        values = params.get("values")
        if isinstance(values, (list, tuple)) and values:
            if all(isinstance(value, str) for value in values):
                fields["csv_values"] = ", ".join(values)
            else:
                fields["value_source"] = "json"
                fields["json_values"] = json.dumps(list(values))
        if isinstance(params.get("maxLength"), int):
            fields["max_length"] = params["maxLength"]
    return EditorSettings.model_validate(fields)


def stored_column_settings(native: Mapping[str, Any], column_id: str) -> ColumnSettings | None:
    """Settings carried in ``context.columnSettings``, or None when absent or malformed."""
    context = native.get("context")
    if not isinstance(context, Mapping):
        return None
    stored = context.get(CONTEXT_KEY)
    if not isinstance(stored, Mapping):
        return None
    try:
        return ColumnSettings.model_validate({**stored, "columnId": column_id})
    except ValidationError as exc:
        logger.warning(
            "Ignoring malformed stored settings for column %s: %s", column_id, exc
        )
        return None


def from_native_column_config(native: Mapping[str, Any], column_id: str) -> ColumnSettings:
    """Extract fully-defaulted settings from a native column config.

    The ``context.columnSettings`` block wins when present; otherwise each
    section is reconstructed from classes, static styles and parameter
    blocks.
    """
    stored = stored_column_settings(native, column_id)
    if stored is not None:
        return stored
    return ColumnSettings(
        column_id=column_id,
        header=_extract_header(native),
        cell=_extract_cell(native),
        formatter=_extract_formatter(native),
        filter=_extract_filter(native),
        editor=_extract_editor(native),
    )


def strip_callables(value: Any) -> Any:
    """Recursively drop callables from mappings and lists."""
    if isinstance(value, Mapping):
        return {
            key: strip_callables(item)
            for key, item in value.items()
            if not callable(item)
        }
    if isinstance(value, list):
        return [strip_callables(item) for item in value if not callable(item)]
    return value


def to_persisted_column_config(native: Mapping[str, Any]) -> dict[str, Any]:
    """Drop every callable, keeping the declarative context block."""
    return strip_callables(native)


def regenerate_column_config(persisted: Mapping[str, Any]) -> NativeColumnConfig:
    """Rebuild callables of a persisted column config from its context block."""
    column_id = str(persisted.get("colId") or persisted.get("field") or "")
    stored = stored_column_settings(persisted, column_id)
    if stored is None:
        return dict(persisted)
    return {**persisted, **to_native_column_config(stored)}


def column_id_of(native: Mapping[str, Any]) -> str:
    return str(native.get("colId") or native.get("field") or "")


def has_column_settings(native: Mapping[str, Any]) -> bool:
    context = native.get("context")
    return isinstance(context, Mapping) and isinstance(context.get(CONTEXT_KEY), Mapping)


def merge_over_base(base: Mapping[str, Any], native: Mapping[str, Any]) -> NativeColumnConfig:
    """Lay a converted column config over a grid-declared definition.

    When ``native`` carries column settings, it is authoritative for every
    key in ``SETTINGS_KEYS``: a base value it omits is dropped so the
    column falls back to the default. Plain callables the settings cannot
    express (a custom renderer or formatter function) are kept.
    """
    if not has_column_settings(native):
        return {**base, **native}
    kept = {
        key: value
        for key, value in base.items()
        if key not in SETTINGS_KEYS or (callable(value) and not hasattr(value, "to_policy"))
    }
    merged: NativeColumnConfig = {**kept, **native}
    base_context = base.get("context")
    if isinstance(base_context, Mapping):
        merged["context"] = {**base_context, **native["context"]}
    return merged


def is_column_modified(original: Mapping[str, Any], settings: ColumnSettings) -> bool:
    """Return True when ``settings`` differ from what ``original`` encodes."""
    baseline = from_native_column_config(original, settings.column_id)
    return not settings.sections_equal(baseline)


def filter_columns(columns: Iterable[Mapping[str, Any]], term: str) -> list[Mapping[str, Any]]:
    """Columns whose header name, field or id contains ``term`` (case-insensitive)."""
    needle = term.strip().lower()
    if not needle:
        return list(columns)
    return [
        column
        for column in columns
        if any(
            needle in str(column.get(key) or "").lower()
            for key in ("headerName", "field", "colId")
        )
    ]
