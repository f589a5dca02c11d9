"""Class-name and inline-style generation for headers and cells.

Bold/italic/underline and alignment are expressed as class names. Fonts,
colours, borders and per-call alignment cannot be, so they go into a
``ComputedStyle`` callable; the grid evaluates it per cell, which gives it
precedence over default column styling.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from gp_conversion.models import CellSettings, HeaderSettings, _StyleSettings

VERTICAL_TO_FLEX = {"top": "flex-start", "middle": "center", "bottom": "flex-end"}
HORIZONTAL_TO_FLEX = {"left": "flex-start", "center": "center", "right": "flex-end"}
FLEX_TO_VERTICAL = {value: key for key, value in VERTICAL_TO_FLEX.items()}
FLEX_TO_HORIZONTAL = {value: key for key, value in HORIZONTAL_TO_FLEX.items()}

VERTICAL_ALIASES = {
    "top": "top",
    "start": "top",
    "flex-start": "top",
    "middle": "middle",
    "center": "middle",
    "bottom": "bottom",
    "end": "bottom",
    "flex-end": "bottom",
}
HORIZONTAL_ALIASES = {
    "left": "left",
    "start": "left",
    "flex-start": "left",
    "center": "center",
    "right": "right",
    "end": "right",
    "flex-end": "right",
}

TEXT_STYLE_ORDER = ("bold", "italic", "underline")

NUMERIC_COLUMN_TYPE = "numericColumn"

_BORDER_RE = re.compile(r"^\s*(?P<width>\d+(?:\.\d+)?)px\s+(?P<style>\w+)\s+(?P<color>.+?)\s*$")
_KEBAB_RE = re.compile(r"-([a-z])")


def normalize_vertical(value: Any) -> str:
    return VERTICAL_ALIASES.get(str(value or "").strip().lower(), "default")


def normalize_horizontal(value: Any) -> str:
    return HORIZONTAL_ALIASES.get(str(value or "").strip().lower(), "default")


def css_key(name: str) -> str:
    """Convert ``align-items`` style keys to ``alignItems``."""
    return _KEBAB_RE.sub(lambda match: match.group(1).upper(), name)


def normalize_style(style: Mapping[str, Any]) -> dict[str, Any]:
    return {css_key(str(key)): value for key, value in style.items()}


def is_numeric_column(params: Any) -> bool:
    """Return True when the grid call params describe a numeric column."""
    if not isinstance(params, Mapping):
        return False
    col_def = params.get("colDef") or {}
    if not isinstance(col_def, Mapping):
        return False
    col_type = col_def.get("type")
    if isinstance(col_type, str):
        types: Iterable[Any] = [col_type]
    elif isinstance(col_type, (list, tuple)):
        types = col_type
    else:
        types = []
    return NUMERIC_COLUMN_TYPE in types or col_def.get("cellDataType") == "number"


def justify_for(horizontal: str, params: Any) -> str:
    if horizontal in HORIZONTAL_TO_FLEX:
        return HORIZONTAL_TO_FLEX[horizontal]
    return "flex-end" if is_numeric_column(params) else "flex-start"


def _prefix(settings: _StyleSettings) -> str:
    return "header" if isinstance(settings, HeaderSettings) else "cell"


def _base_class(settings: _StyleSettings) -> str:
    if isinstance(settings, HeaderSettings):
        return settings.header_class
    if isinstance(settings, CellSettings):
        return settings.cell_class
    return ""


def generate_classes(settings: _StyleSettings) -> list[str]:
    """Ordered class list: base class, alignment classes, text-style flags."""
    prefix = _prefix(settings)
    classes = [token for token in _base_class(settings).split() if token]
    if settings.horizontal_align != "default":
        classes.append(f"{prefix}-align-{settings.horizontal_align}")
    if settings.vertical_align != "default":
        classes.append(f"{prefix}-valign-{settings.vertical_align}")
    for flag in TEXT_STYLE_ORDER:
        if flag in settings.text_style:
            classes.append(f"{prefix}-style-{flag}")
    return classes


def parse_classes(value: Any, prefix: str) -> dict[str, Any]:
    """Split a native class value back into base class, alignment and flags."""
    if isinstance(value, str):
        tokens = value.split()
    elif isinstance(value, (list, tuple)):
        tokens = [str(token) for item in value for token in str(item).split()]
    else:
        tokens = []
    base: list[str] = []
    horizontal = "default"
    vertical = "default"
    flags: list[str] = []
    for token in tokens:
        if token.startswith(f"{prefix}-align-"):
            horizontal = normalize_horizontal(token[len(prefix) + 7:])
        elif token.startswith(f"{prefix}-valign-"):
            vertical = normalize_vertical(token[len(prefix) + 8:])
        elif token.startswith(f"{prefix}-style-") and token[len(prefix) + 7:] in TEXT_STYLE_ORDER:
            flags.append(token[len(prefix) + 7:])
        else:
            base.append(token)
    return {
        "base": " ".join(base),
        "horizontal": horizontal,
        "vertical": vertical,
        "flags": [flag for flag in TEXT_STYLE_ORDER if flag in flags],
    }


def _border_value(settings: _StyleSettings) -> str:
    color = settings.border_color if settings.border_color_enabled and settings.border_color else "#ccc"
    return f"{settings.border_width:g}px {settings.border_style} {color}"


def static_style(settings: _StyleSettings) -> dict[str, Any]:
    """Style properties that do not depend on the grid call params."""
    style: dict[str, Any] = {}
    if settings.font_family not in ("", "default"):
        style["fontFamily"] = settings.font_family
    if settings.font_size not in ("", "default"):
        style["fontSize"] = settings.font_size
    if settings.font_weight not in ("", "default"):
        style["fontWeight"] = settings.font_weight
    if settings.text_color_enabled and settings.text_color:
        style["color"] = settings.text_color
    if settings.background_enabled and settings.background_color:
        style["backgroundColor"] = settings.background_color
    if settings.apply_borders:
        if settings.border_sides == "all":
            style["border"] = _border_value(settings)
        else:
            style[f"border{settings.border_sides.capitalize()}"] = _border_value(settings)
    if isinstance(settings, CellSettings) and settings.wrap_text:
        style["whiteSpace"] = "normal"
        style["wordBreak"] = "break-word"
    return style


def needs_computed_style(settings: _StyleSettings) -> bool:
    return bool(static_style(settings)) or (
        settings.horizontal_align != "default" or settings.vertical_align != "default"
    )


class ComputedStyle:
    """Per-call ``cellStyle``/``headerStyle`` callable for one column section."""

    __slots__ = ("settings",)

    def __init__(self, settings: _StyleSettings) -> None:
        self.settings = settings

    def __call__(self, params: Any = None) -> dict[str, Any]:
        style: dict[str, Any] = {"display": "flex"}
        vertical = self.settings.vertical_align
        style["alignItems"] = VERTICAL_TO_FLEX.get(vertical, "center")
        style["justifyContent"] = justify_for(self.settings.horizontal_align, params)
        style.update(static_style(self.settings))
        return style

    def to_policy(self) -> dict[str, Any]:
        return {"target": _prefix(self.settings), "settings": self.settings.to_wire()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComputedStyle):
            return NotImplemented
        return self.to_policy() == other.to_policy()

    def __hash__(self) -> int:
        return hash(repr(self.to_policy()))

    def __repr__(self) -> str:
        return f"ComputedStyle(target={_prefix(self.settings)!r})"


def extract_static_style(style: Mapping[str, Any]) -> dict[str, Any]:
    """Map a static native style dict back to style-settings fields."""
    normalized = normalize_style(style)
    fields: dict[str, Any] = {}
    for css, field in (
        ("fontFamily", "font_family"),
        ("fontSize", "font_size"),
        ("fontWeight", "font_weight"),
    ):
        if normalized.get(css):
            fields[field] = str(normalized[css])
    if normalized.get("color"):
        fields["text_color"] = str(normalized["color"])
        fields["text_color_enabled"] = True
    if normalized.get("backgroundColor"):
        fields["background_color"] = str(normalized["backgroundColor"])
        fields["background_enabled"] = True
    for side in ("", "Top", "Right", "Bottom", "Left"):
        raw = normalized.get(f"border{side}")
        if not raw:
            continue
        fields["apply_borders"] = True
        fields["border_sides"] = side.lower() or "all"
        match = _BORDER_RE.match(str(raw))
        if match:
            fields["border_width"] = float(match.group("width"))
            if match.group("style") in ("none", "solid", "dashed", "dotted"):
                fields["border_style"] = match.group("style")
            if match.group("color") != "#ccc":
                fields["border_color"] = match.group("color")
                fields["border_color_enabled"] = True
        break
    if normalized.get("alignItems"):
        fields["vertical_align"] = normalize_vertical(normalized["alignItems"])
    horizontal = normalized.get("justifyContent") or normalized.get("textAlign")
    if horizontal:
        fields["horizontal_align"] = normalize_horizontal(horizontal)
    return fields


class AlignmentStyle:
    """``defaultColDef.cellStyle`` callable built from an alignment pair.

    With no explicit horizontal alignment numeric columns are right-aligned
    and everything else is left-aligned.
    """

    __slots__ = ("vertical", "horizontal")

    def __init__(self, vertical: str = "default", horizontal: str = "default") -> None:
        self.vertical = normalize_vertical(vertical)
        self.horizontal = normalize_horizontal(horizontal)

    def __call__(self, params: Any = None) -> dict[str, Any]:
        style: dict[str, Any] = {"display": "flex"}
        if self.vertical in VERTICAL_TO_FLEX:
            style["alignItems"] = VERTICAL_TO_FLEX[self.vertical]
        style["justifyContent"] = justify_for(self.horizontal, params)
        return style

    def to_policy(self) -> dict[str, str]:
        return {"verticalAlign": self.vertical, "horizontalAlign": self.horizontal}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AlignmentStyle):
            return NotImplemented
        return self.to_policy() == other.to_policy()

    def __hash__(self) -> int:
        return hash((self.vertical, self.horizontal))

    def __repr__(self) -> str:
        return f"AlignmentStyle(vertical={self.vertical!r}, horizontal={self.horizontal!r})"


_ALIGNMENT_KEYS = ("verticalAlign", "horizontalAlign", "_cellAlignItems")


def expand_default_col_def(col_def: Mapping[str, Any]) -> dict[str, Any]:
    """Replace a declarative alignment pair with an ``AlignmentStyle``.

    The alignment keys are removed because they are not native column
    properties. Without any alignment key the definition is returned as a
    plain copy.
    """
    expanded = dict(col_def)
    vertical = expanded.pop("verticalAlign", None)
    horizontal = expanded.pop("horizontalAlign", None)
    stored_align_items = expanded.pop("_cellAlignItems", None)
    if vertical is None and horizontal is None and stored_align_items is None:
        return expanded
    expanded["cellStyle"] = AlignmentStyle(
        vertical=stored_align_items or vertical or "default",
        horizontal=horizontal or "default",
    )
    return expanded


def collapse_default_col_def(col_def: Mapping[str, Any]) -> dict[str, Any]:
    """Inverse of :func:`expand_default_col_def` for storage.

    Any callable ``cellStyle`` is probed with neutral params and reduced to the
    alignment pair it produces; callables are never stored.
    """
    collapsed = dict(col_def)
    style = collapsed.get("cellStyle")
    if isinstance(style, AlignmentStyle):
        collapsed.pop("cellStyle")
        collapsed.update(style.to_policy())
        return collapsed
    if callable(style):
        collapsed.pop("cellStyle")
        try:
            probed = style({"colDef": {"type": None}})
        except Exception:
            return collapsed
        if isinstance(probed, Mapping):
            normalized = normalize_style(probed)
            collapsed["verticalAlign"] = normalize_vertical(normalized.get("alignItems"))
            collapsed["horizontalAlign"] = normalize_horizontal(normalized.get("justifyContent"))
    for key in _ALIGNMENT_KEYS[:2]:
        if key in collapsed:
            collapsed[key] = (
                normalize_vertical(collapsed[key])
                if key == "verticalAlign"
                else normalize_horizontal(collapsed[key])
            )
    return collapsed
