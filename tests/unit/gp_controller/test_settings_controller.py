"""Tests for the profile apply pipeline."""

from __future__ import annotations

import pytest

from gp_common.errors import ColumnSettingsValidationError
from gp_controller.adapters import InMemoryGrid
from gp_controller.contracts import Capability, GridCapabilities
from gp_controller.controller import SettingsController
from gp_controller.models.state import PipelineState
from gp_controller.models.types import ApplyStatus
from gp_controller.scheduling import ManualScheduler
from gp_conversion.api import (
    AlignmentStyle,
    ColumnSettings,
    ComputedStyle,
    to_native_column_config,
    to_persisted_column_config,
)
from gp_settings.defaults import DEFAULT_TOOLBAR_SETTINGS
from gp_settings.models import CustomSettings, NativeGridStateSnapshot, ProfileSettings
from gp_settings.store import SettingsStore


pytestmark = pytest.mark.unit_controller

PRICE_BASELINE = {"field": "price", "headerName": "Price", "type": "numericColumn"}


def _price_override() -> dict:
    settings = ColumnSettings.model_validate(
        {
            "columnId": "price",
            "cell": {"horizontalAlign": "center"},
            "formatter": {"type": "currency"},
        }
    )
    return to_persisted_column_config(to_native_column_config(settings))


def _full_profile() -> ProfileSettings:
    return ProfileSettings(
        toolbar={"fontFamily": "serif", "fontSize": 14, "spacing": 6},
        grid=NativeGridStateSnapshot(
            column_state=[{"colId": "price", "width": 150, "sort": "desc"}, {"colId": "name"}],
            filter_model={"name": {"type": "contains", "filter": "a"}},
        ),
        custom=CustomSettings(
            grid_options={
                "rowHeight": 28,
                "defaultColDef": {"flex": 1, "verticalAlign": "top", "horizontalAlign": "left"},
            },
            column_defs=[_price_override()],
        ),
    )


def _options_profile(**options) -> ProfileSettings:
    return ProfileSettings(
        toolbar=dict(DEFAULT_TOOLBAR_SETTINGS),
        custom=CustomSettings(grid_options=options),
    )


def test_apply_writes_in_pipeline_order_and_refreshes_once(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    states: list[PipelineState] = []
    controller.state_machine.register_callback(lambda state, _reason: states.append(state))

    request = controller.apply_profile_settings(_full_profile())
    assert request.status is ApplyStatus.RUNNING
    assert controller.is_applying
    scheduler.run_until_idle()

    assert request.status is ApplyStatus.DONE
    assert not controller.is_applying
    assert [(w.method, w.key) for w in grid.writes] == [
        ("set_grid_option", "defaultColDef"),
        ("set_grid_option", "rowHeight"),
        ("apply_column_state", None),
        ("set_column_widths", None),
        ("set_filter_model", None),
        ("set_column_defs", None),
    ]
    report = request.report
    assert report is not None
    assert report.toolbar_changed
    assert report.options_applied == ["defaultColDef", "rowHeight"]
    assert report.grid_state_applied == ["columnState", "columnWidths", "filterModel"]
    assert report.columns_applied == ["price"]
    assert report.refreshed
    assert (grid.header_refreshes, grid.cell_refreshes) == (1, 1)
    assert states == [
        PipelineState.APPLYING_TOOLBAR,
        PipelineState.APPLYING_DEFAULT_COL_DEF,
        PipelineState.APPLYING_GRID_OPTIONS,
        PipelineState.APPLYING_GRID_STATE,
        PipelineState.APPLYING_COLUMN_DEFS,
        PipelineState.AWAITING_REFRESH,
        PipelineState.IDLE,
    ]


def test_column_styles_take_precedence_over_default_col_def(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    controller.apply_profile_settings(_full_profile())
    scheduler.run_until_idle()

    assert isinstance(grid.grid_options["defaultColDef"]["cellStyle"], AlignmentStyle)
    assert "verticalAlign" not in grid.grid_options["defaultColDef"]
    price = grid.effective_column_config("price")
    assert isinstance(price["cellStyle"], ComputedStyle)
    assert price["valueFormatter"]({"value": 5}) == "$5.00"
    assert isinstance(grid.effective_column_config("name")["cellStyle"], AlignmentStyle)
    assert [entry["colId"] for entry in grid.get_column_state()] == ["price", "name", "created"]
    assert grid.get_column_state()[0]["width"] == 150


def test_applying_same_profile_twice_writes_nothing(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    controller.apply_profile_settings(_full_profile())
    scheduler.run_until_idle()
    writes = len(grid.writes)
    notified: list[dict] = []
    for category in ("toolbar", "gridOptions", "column"):
        controller.store.subscribe(category, notified.append)

    second = controller.apply_profile_settings(_full_profile())
    scheduler.run_until_idle()

    assert second.status is ApplyStatus.DONE
    assert len(grid.writes) == writes
    assert second.report is not None
    assert not second.report.wrote_anything
    assert not second.report.toolbar_changed
    assert not second.report.refreshed
    assert grid.header_refreshes == 1
    assert notified == []


def test_requests_during_pipeline_coalesce_to_latest(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    finished: list[tuple[int, ApplyStatus]] = []

    first = controller.apply_profile_settings(_options_profile(rowHeight=28))
    second = controller.apply_profile_settings(_options_profile(rowHeight=31))
    assert second.status is ApplyStatus.DEFERRED
    third = controller.apply_profile_settings(_options_profile(rowHeight=35))
    for request in (first, second, third):
        request.add_done_callback(lambda r: finished.append((r.request_id, r.status)))

    assert second.status is ApplyStatus.SUPERSEDED
    assert second.done and second.report is None
    assert third.status is ApplyStatus.DEFERRED
    scheduler.run_until_idle()

    assert first.status is ApplyStatus.DONE
    assert third.status is ApplyStatus.DONE
    assert [w.value for w in grid.writes_for("set_grid_option")] == [28, 35]
    assert finished == [
        (second.request_id, ApplyStatus.SUPERSEDED),
        (first.request_id, ApplyStatus.DONE),
        (third.request_id, ApplyStatus.DONE),
    ]


def test_apply_from_done_callback_waits_behind_deferred_request(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    first = controller.apply_profile_settings(_options_profile(rowHeight=28))
    second = controller.apply_profile_settings(_options_profile(rowHeight=31))
    chained: list = []
    first.add_done_callback(
        lambda _: chained.append(controller.apply_profile_settings(_options_profile(rowHeight=35)))
    )

    scheduler.run_until_idle()

    (third,) = chained
    assert second.status is ApplyStatus.DONE
    assert third.status is ApplyStatus.DONE
    assert [w.value for w in grid.writes_for("set_grid_option")] == [28, 31, 35]
    assert not controller.is_applying
    assert controller.state_machine.state is PipelineState.IDLE


def test_apply_from_done_callback_starts_when_nothing_is_pending(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    first = controller.apply_profile_settings(_options_profile(rowHeight=28))
    chained: list = []
    first.add_done_callback(
        lambda _: chained.append(controller.apply_profile_settings(_options_profile(rowHeight=35)))
    )

    scheduler.run_until_idle()

    assert chained[0].status is ApplyStatus.DONE
    assert [w.value for w in grid.writes_for("set_grid_option")] == [28, 35]
    assert not controller.is_applying


def test_failed_write_is_recorded_and_siblings_continue(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    grid.failures["rowHeight"] = RuntimeError("boom")
    request = controller.apply_profile_settings(_options_profile(rowHeight=28, headerHeight=50))
    scheduler.run_until_idle()

    report = request.report
    assert request.status is ApplyStatus.DONE
    assert report is not None and not report.success
    assert [error.option for error in report.errors] == ["rowHeight"]
    assert report.options_applied == ["headerHeight"]
    assert report.refreshed
    assert report.to_dict()["errors"][0]["error_type"] == "NativeWriteError"


def test_skipped_options_are_never_written(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    request = controller.apply_profile_settings(
        _options_profile(theme="dark", rowModelType="infinite", immutableData=True, rowHeight=29)
    )
    scheduler.run_until_idle()
    assert [w.key for w in grid.writes_for("set_grid_option")] == ["rowHeight"]
    assert request.report is not None
    assert request.report.options_applied == ["rowHeight"]


def test_legacy_options_are_translated_before_writing(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    controller.apply_profile_settings(
        _options_profile(rowSelection="single", suppressRowClickSelection=True)
    )
    scheduler.run_until_idle()
    assert grid.grid_options["rowSelection"] == {"mode": "singleRow", "enableClickSelection": False}
    assert "suppressRowClickSelection" not in grid.grid_options


def test_missing_capabilities_are_skipped(scheduler: ManualScheduler) -> None:
    grid = InMemoryGrid(
        column_defs=[{"field": "name"}, {"field": "price"}],
        declared=GridCapabilities.full().without(
            Capability.FILTER_MODEL, Capability.COLUMN_WIDTHS, Capability.NEXT_FRAME
        ),
    )
    controller = SettingsController(SettingsStore(), scheduler=scheduler)
    controller.set_grid_api(grid)
    profile = ProfileSettings(
        toolbar=dict(DEFAULT_TOOLBAR_SETTINGS),
        grid=NativeGridStateSnapshot(
            column_state=[{"colId": "price", "width": 150}],
            filter_model={"price": {"type": "equals", "filter": 1}},
        ),
    )
    request = controller.apply_profile_settings(profile)
    scheduler.run_until_idle()

    assert request.report is not None
    assert request.report.grid_state_applied == ["columnState"]
    assert grid.writes_for("set_filter_model") == []
    first = grid.get_column_state()[0]
    assert (first["colId"], first["width"]) == ("price", 150)
    assert grid.frames == []
    assert request.report.refreshed


def test_unbound_controller_finishes_without_writes(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    request = controller.apply_profile_settings(_full_profile())
    controller.unbind()
    scheduler.run_until_idle()
    assert request.status is ApplyStatus.DONE
    assert grid.writes == []
    assert controller.get_current_toolbar_settings()["fontSize"] == 14


def test_toolbar_edits_are_debounced(
    controller: SettingsController, scheduler: ManualScheduler
) -> None:
    seen: list[dict] = []
    controller.on_toolbar_settings_change(seen.append)

    controller.update_toolbar_settings({"fontSize": 13})
    scheduler.advance(0.04)
    controller.update_toolbar_settings({"fontSize": 15})
    scheduler.advance(0.04)
    controller.update_toolbar_settings({"fontSize": 16})
    scheduler.advance(0.05)
    assert seen == []
    scheduler.advance(0.1)
    assert len(seen) == 1
    assert seen[0]["fontSize"] == 16
    assert controller.get_current_toolbar_settings()["fontSize"] == 16


def test_toolbar_font_size_is_clamped(controller: SettingsController) -> None:
    controller.update_toolbar_settings({"fontSize": 2})
    controller.flush_pending_edits()
    assert controller.get_current_toolbar_settings()["fontSize"] == 6


def test_debounce_channels_are_independent(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    controller.update_grid_options({"rowHeight": 33})
    scheduler.advance(0.05)
    controller.update_toolbar_settings({"spacing": 10})
    scheduler.advance(0.06)
    assert controller.get_current_grid_options()["rowHeight"] == 33
    assert grid.grid_options["rowHeight"] == 33
    scheduler.run_until_idle()
    assert controller.get_current_toolbar_settings()["spacing"] == 10
    assert grid.header_refreshes == 1


def test_grid_option_edits_wait_for_running_pipeline(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    controller.apply_profile_settings(_options_profile(rowHeight=28))
    controller.update_grid_options({"rowHeight": 50})
    controller.flush_pending_edits()
    controller.update_grid_options({"headerHeight": 44})
    controller.flush_pending_edits()
    assert grid.writes == []
    scheduler.run_until_idle()

    assert [w.value for w in grid.writes_for("set_grid_option")] == [28, 50, 44]
    assert controller.get_current_grid_options()["rowHeight"] == 50
    assert grid.grid_options["headerHeight"] == 44


def test_column_edit_is_written_immediately_when_idle(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    settings = controller.update_column_settings("price", "header", {"header_name": "Cost"})
    assert settings.header.header_name == "Cost"
    assert grid.column_def("price")["headerName"] == "Cost"
    assert grid.column_def("price")["type"] == "numericColumn"
    scheduler.run_until_idle()
    assert grid.header_refreshes == 1


def test_invalid_column_edit_changes_nothing(
    controller: SettingsController, grid: InMemoryGrid
) -> None:
    with pytest.raises(ColumnSettingsValidationError):
        controller.update_column_settings("price", "cell", {"font_size": "tiny"})
    assert grid.writes == []
    assert controller.columns.get("price") is None


def test_column_edit_during_pipeline_wins_afterwards(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    controller.apply_profile_settings(_full_profile())
    controller.update_column_settings("price", "header", {"header_name": "Cost"})
    scheduler.run_until_idle()
    assert grid.column_def("price")["headerName"] == "Cost"
    stored = controller.columns.get("price")
    assert stored is not None and stored.header.header_name == "Cost"


def test_column_edit_back_to_default_drops_baseline_value(scheduler: ManualScheduler) -> None:
    grid = InMemoryGrid(
        column_defs=[
            {"field": "price", "cellClass": "cell-style-bold", "editable": True},
        ],
        frame_scheduler=scheduler,
    )
    controller = SettingsController(SettingsStore(), scheduler=scheduler)
    controller.set_grid_api(grid)

    seeded = controller.update_column_settings("price", "header", {"header_name": "Cost"})
    assert seeded.cell.text_style == ["bold"]
    assert grid.column_def("price")["cellClass"] == "cell-style-bold"

    controller.update_column_settings("price", "cell", {"text_style": []})
    controller.update_column_settings("price", "editor", {"editable": False})

    price = grid.column_def("price")
    assert "cellClass" not in price
    assert "editable" not in price
    assert price["headerName"] == "Cost"
    collected = controller.collect_current_settings().custom.column_defs
    assert collected is not None
    assert "cellClass" not in collected[0]


def test_reset_column_restores_baseline(
    controller: SettingsController, grid: InMemoryGrid
) -> None:
    controller.update_column_settings("price", "formatter", {"type": "currency"})
    assert "valueFormatter" in grid.column_def("price")
    assert controller.reset_column_settings("price") == ["price"]
    assert grid.column_def("price") == PRICE_BASELINE
    assert controller.columns.all() == {}


def test_collect_current_settings_round_trips(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    controller.apply_profile_settings(_full_profile())
    scheduler.run_until_idle()
    collected = controller.collect_current_settings()
    persisted = collected.to_persisted()

    assert persisted["toolbar"]["fontFamily"] == "serif"
    assert persisted["grid"]["filterModel"] == {"name": {"type": "contains", "filter": "a"}}
    assert persisted["grid"]["columnState"][0]["colId"] == "price"
    (column,) = persisted["custom"]["columnDefs"]
    assert column["context"]["columnSettings"]["formatter"]["type"] == "currency"
    assert persisted["custom"]["gridOptions"]["defaultColDef"]["verticalAlign"] == "top"

    again = controller.apply_profile_settings(ProfileSettings.from_dict(persisted))
    scheduler.run_until_idle()
    assert again.report is not None
    assert again.report.grid_state_applied == []
    assert again.report.columns_applied == []
    assert "rowHeight" in again.report.options_skipped
    assert "defaultColDef" in again.report.options_skipped


def test_reset_to_defaults(
    controller: SettingsController, grid: InMemoryGrid, scheduler: ManualScheduler
) -> None:
    controller.apply_profile_settings(_full_profile())
    scheduler.run_until_idle()

    request = controller.reset_to_defaults()
    scheduler.run_until_idle()

    assert request.status is ApplyStatus.DONE
    assert controller.get_current_toolbar_settings() == DEFAULT_TOOLBAR_SETTINGS
    assert grid.grid_options["rowHeight"] == 30
    assert grid.column_def("price") == PRICE_BASELINE
    assert controller.columns.all() == {}
