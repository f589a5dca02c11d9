"""Grid option normalization before native writes."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Tuple

from gp_settings.defaults import INITIAL_PROPERTIES, INVALID_GRID_OPTIONS, NEVER_WRITTEN

logger = logging.getLogger(__name__)

ROW_SELECTION_MODES = {"multiple": "multiRow", "single": "singleRow"}

# legacy option -> (rowSelection key, inverted)
_ROW_SELECTION_LEGACY: Dict[str, Tuple[str, bool]] = {
    "rowMultiSelectWithClick": ("enableSelectionWithoutKeys", False),
    "suppressRowClickSelection": ("enableClickSelection", True),
    "suppressRowDeselection": ("enableClickSelection", True),
    "groupSelectsChildren": ("groupSelectsChildren", False),
    "suppressCopyRowsToClipboard": ("copySelectedRows", True),
    "suppressCopySingleCellRanges": ("copySelectedRows", True),
}

_COL_DEF_INVALID_KEYS = ("verticalAlign", "horizontalAlign")


def normalize_row_selection(selection: Any) -> Dict[str, Any]:
    """Coerce legacy string or partial row-selection values to the object form."""
    if isinstance(selection, str):
        return {"mode": ROW_SELECTION_MODES.get(selection, selection)}
    if isinstance(selection, Mapping):
        result = dict(selection)
        mode = result.get("mode")
        if isinstance(mode, str):
            result["mode"] = ROW_SELECTION_MODES.get(mode, mode)
        result.setdefault("mode", "multiRow")
        return result
    return {"mode": "multiRow"}


def normalize_grid_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate legacy options into their current equivalents.

    Keys with a None value are dropped.
    """
    processed: Dict[str, Any] = {}
    for key, value in options.items():
        if value is None:
            continue
        if key in _ROW_SELECTION_LEGACY:
            target, inverted = _ROW_SELECTION_LEGACY[key]
            selection = normalize_row_selection(processed.get("rowSelection"))
            selection[target] = (not value) if inverted else bool(value)
            processed["rowSelection"] = selection
        elif key == "rowSelection":
            selection = normalize_row_selection(value)
            if isinstance(processed.get("rowSelection"), Mapping):
                selection = {**processed["rowSelection"], **selection}
            processed["rowSelection"] = selection
        elif key == "enableRangeSelection":
            current = processed.get("cellSelection")
            processed["cellSelection"] = current if isinstance(current, Mapping) and value else bool(value)
        elif key == "enableRangeHandle":
            current = processed.get("cellSelection")
            base = dict(current) if isinstance(current, Mapping) else {}
            processed["cellSelection"] = {**base, "handle": bool(value)}
        elif key == "groupRemoveSingleChildren":
            processed["groupHideParentOfSingleChild"] = bool(value)
        elif key == "suppressLoadingOverlay":
            processed["loading"] = not value
        else:
            processed[key] = value
    return processed


def sanitize_col_def(col_def: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop declarative-only keys and malformed ``sortingOrder`` from a column def."""
    cleaned = {key: value for key, value in col_def.items() if key not in _COL_DEF_INVALID_KEYS}
    if "sortingOrder" in cleaned and not isinstance(cleaned["sortingOrder"], list):
        cleaned.pop("sortingOrder")
    return cleaned


def skip_reason(key: str, *, runtime_only: bool = True) -> str | None:
    """Why ``key`` must not be written at runtime, or None when it may be."""
    if key in NEVER_WRITTEN:
        return "never written"
    if key in INVALID_GRID_OPTIONS:
        return "invalid"
    if runtime_only and key in INITIAL_PROPERTIES:
        return "initial-only"
    return None


def writable_options(
    options: Mapping[str, Any], *, runtime_only: bool = True
) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """Split options into (writable, skipped-with-reason)."""
    writable: Dict[str, Any] = {}
    skipped: Dict[str, str] = {}
    for key, value in options.items():
        reason = skip_reason(key, runtime_only=runtime_only)
        if reason is None:
            writable[key] = value
        else:
            skipped[key] = reason
    if skipped:
        logger.debug("Skipping grid options: %s", skipped)
    return writable, skipped
