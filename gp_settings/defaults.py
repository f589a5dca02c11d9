"""Built-in defaults for every settings category and grid-option tables."""

from __future__ import annotations

import copy
from typing import Any

DEFAULT_FONT_FAMILY = "monospace"
DEFAULT_FONT_SIZE = 12
DEFAULT_SPACING = 6
MIN_FONT_SIZE = 6

CATEGORIES: tuple[str, ...] = (
    "toolbar",
    "gridOptions",
    "column",
    "filter",
    "theme",
    "export",
    "sort",
    "group",
)

DEFAULT_TOOLBAR_SETTINGS: dict[str, Any] = {
    "fontFamily": DEFAULT_FONT_FAMILY,
    "fontSize": DEFAULT_FONT_SIZE,
    "spacing": DEFAULT_SPACING,
}

DEFAULT_COL_DEF: dict[str, Any] = {
    "sortable": True,
    "resizable": True,
    "filter": True,
    "editable": False,
    "flex": 1,
    "minWidth": 100,
    "enableValue": True,
    "enableRowGroup": True,
    "enablePivot": True,
    "sortingOrder": ["asc", "desc", None],
    "verticalAlign": "middle",
    "horizontalAlign": "default",
}

DEFAULT_GRID_OPTIONS: dict[str, Any] = {
    "rowHeight": 30,
    "headerHeight": 40,
    "rowModelType": "clientSide",
    "defaultColDef": DEFAULT_COL_DEF,
    "rowSelection": {
        "mode": "multiRow",
        "enableSelectionWithoutKeys": False,
        "enableClickSelection": True,
        "copySelectedRows": True,
    },
    "cellSelection": False,
    "multiSortKey": "ctrl",
    "accentedSort": False,
    "enableAdvancedFilter": False,
    "quickFilterText": "",
    "pagination": False,
    "paginationAutoPageSize": False,
    "paginationPageSize": 100,
    "groupDefaultExpanded": 0,
    "groupDisplayType": "groupRows",
    "groupHideOpenParents": False,
    "groupHideParentOfSingleChild": False,
    "editType": "fullRow",
    "readOnlyEdit": False,
    "singleClickEdit": False,
    "rowClass": "",
    "rowClassRules": {},
    "suppressMenuHide": False,
    "suppressMovableColumns": False,
    "suppressColumnMoveAnimation": False,
    "suppressAutoSize": False,
    "autoSizePadding": 4,
    "sideBar": False,
    "statusBar": {"statusPanels": []},
    "rowBuffer": 20,
    "valueCache": False,
    "enableCellTextSelection": True,
    "pivotHeaderHeight": 56,
    "loading": False,
}

# Options that need a grid rebuild; never written through the runtime setter.
INITIAL_PROPERTIES: frozenset[str] = frozenset(
    {
        "rowModelType",
        "cacheQuickFilter",
        "paginationPageSizeSelector",
        "pivotPanelShow",
        "undoRedoCellEditing",
        "undoRedoCellEditingLimit",
        "suppressAutoSize",
        "valueCache",
    }
)

# Removed or misplaced options; dropped before any native write.
INVALID_GRID_OPTIONS: frozenset[str] = frozenset(
    {
        "verticalAlign",
        "horizontalAlign",
        "immutableData",
        "suppressCellSelection",
        "groupIncludeFooter",
        "suppressPropertyNamesCheck",
        "suppressBrowserResizeObserver",
        "debug",
        "stopEditingWhenCellsLoseFocus",
        "sortingOrder",
    }
)

NEVER_WRITTEN: frozenset[str] = frozenset({"theme"})

RUNTIME_GRID_OPTIONS: frozenset[str] = frozenset(
    (set(DEFAULT_GRID_OPTIONS) - INITIAL_PROPERTIES)
    | {
        "columnDefs",
        "rowData",
        "domLayout",
        "animateRows",
        "enableCharts",
        "floatingFiltersHeight",
        "groupHeaderHeight",
        "suppressRowHoverHighlight",
        "tooltipShowDelay",
    }
)


def default_settings() -> dict[str, dict[str, Any]]:
    """Fresh deep copy of every category's defaults."""
    settings: dict[str, dict[str, Any]] = {category: {} for category in CATEGORIES}
    settings["toolbar"] = copy.deepcopy(DEFAULT_TOOLBAR_SETTINGS)
    settings["gridOptions"] = copy.deepcopy(DEFAULT_GRID_OPTIONS)
    return settings


def clamp_font_size(value: Any) -> int:
    """Coerce a toolbar font size to an int no smaller than ``MIN_FONT_SIZE``."""
    try:
        size = int(float(value))
    except (TypeError, ValueError):
        return DEFAULT_FONT_SIZE
    return max(MIN_FONT_SIZE, size)
