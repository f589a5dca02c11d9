"""Settings controller: the single gate for mutating a live grid handle."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from gp_common.comparison import serialized_equal
from gp_common.errors import NativeWriteError
from gp_common.logging import bind_grid_context
from gp_controller.contracts import Capability, GridHandle
from gp_controller.grid_options import normalize_grid_options, sanitize_col_def, writable_options
from gp_controller.grid_state import GridStateProvider
from gp_controller.models.options import ControllerOptions
from gp_controller.models.state import PipelineState, PipelineStateMachine
from gp_controller.models.types import ApplyReport, ApplyRequest, ApplyStatus
from gp_controller.scheduling import AsyncioScheduler, Debouncer, Scheduler, SingleSlotMailbox
from gp_conversion.api import (
    ColumnSettings,
    column_id_of,
    expand_default_col_def,
    merge_over_base,
    regenerate_column_config,
    stored_column_settings,
    to_native_column_config,
)
from gp_settings.column_settings import ColumnSettingsEditor
from gp_settings.defaults import clamp_font_size
from gp_settings.models import CustomSettings, ProfileSettings
from gp_settings.store import SettingsStore, SettingsListener, Unsubscribe

logger = logging.getLogger(__name__)

_UNREADABLE = object()


class SettingsController:
    """Serializes profile application and diffs every write against the grid.

    At most one apply pipeline runs at a time. A request arriving while one is
    running waits in a single-slot mailbox; a newer request overwrites it and
    the overwritten one is marked superseded. Pipeline steps run as separate
    scheduler callbacks in a fixed order, and the grid is refreshed once at the
    end, only when something was written.
    """

    def __init__(
        self,
        store: SettingsStore,
        *,
        scheduler: Optional[Scheduler] = None,
        options: Optional[ControllerOptions] = None,
        grid_state_provider: Optional[GridStateProvider] = None,
        state_machine: Optional[PipelineStateMachine] = None,
        grid_id: Optional[str] = None,
    ) -> None:
        self.store = store
        self.options = options or ControllerOptions()
        self.state_machine = state_machine or PipelineStateMachine()
        self.grid_id = grid_id
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._grid_state = grid_state_provider or GridStateProvider()
        self._handle: Optional[GridHandle] = None
        self._baseline_columns: Dict[str, Dict[str, Any]] = {}
        self._mailbox: SingleSlotMailbox[ApplyRequest] = SingleSlotMailbox()
        self._in_flight: Optional[ApplyRequest] = None
        self._after_pipeline: Dict[str, Callable[[], None]] = {}
        self._deferred_grid_options: Dict[str, Any] = {}
        self._toolbar_debouncer: Debouncer[Dict[str, Any]] = Debouncer(
            self._scheduler, self.options.debounce_s, self._commit_toolbar, "toolbar"
        )
        self._grid_options_debouncer: Debouncer[Dict[str, Any]] = Debouncer(
            self._scheduler, self.options.debounce_s, self._commit_grid_options, "gridOptions"
        )
        self.columns = ColumnSettingsEditor(store, native_lookup=self._live_column_def)

    # -- binding -------------------------------------------------------------

    @property
    def handle(self) -> Optional[GridHandle]:
        return self._handle

    @property
    def grid_state_provider(self) -> GridStateProvider:
        return self._grid_state

    def set_grid_api(self, handle: GridHandle) -> None:
        """Bind the live grid; its current column defs become the reset baseline."""
        self._handle = handle
        self._grid_state.set_handle(handle)
        if self.grid_id is not None:
            bind_grid_context(self.grid_id)
        missing = handle.capabilities.missing()
        if missing:
            logger.debug("Grid handle bound without: %s", [cap.value for cap in missing])
        self._baseline_columns = {
            column_id_of(col_def): dict(col_def)
            for col_def in self._read_column_defs()
            if column_id_of(col_def)
        }
        logger.info("Grid handle bound (%d columns)", len(self._baseline_columns))

    def unbind(self) -> None:
        """Release the handle; a running pipeline finishes without native writes."""
        self._handle = None
        self._grid_state.set_handle(None)
        self._baseline_columns = {}
        if self.grid_id is not None:
            bind_grid_context(None)
        logger.info("Grid handle unbound")

    def _supports(self, capability: Capability) -> bool:
        if self._handle is None:
            return False
        if not self._handle.capabilities.supports(capability):
            logger.debug("Grid handle lacks %s; skipping", capability.value)
            return False
        return True

    # -- debounced edits ----------------------------------------------------

    def update_toolbar_settings(self, partial: Mapping[str, Any]) -> None:
        self._toolbar_debouncer.submit(dict(partial))

    def update_grid_options(self, partial: Mapping[str, Any]) -> None:
        self._grid_options_debouncer.submit(dict(partial))

    def flush_pending_edits(self) -> None:
        """Commit buffered toolbar and grid-option edits immediately."""
        self._toolbar_debouncer.flush()
        self._grid_options_debouncer.flush()

    def _commit_toolbar(self, partial: Dict[str, Any]) -> None:
        if "fontSize" in partial:
            partial = {**partial, "fontSize": clamp_font_size(partial["fontSize"])}
        self.store.update_settings("toolbar", partial)

    def _commit_grid_options(self, partial: Dict[str, Any]) -> None:
        if self._in_flight is None:
            self._sync_grid_options(partial)
            return
        # Edits made during a pipeline land after it, merged into one commit.
        self._deferred_grid_options.update(partial)
        self._run_or_defer("gridOptions", self._commit_deferred_grid_options)

    def _commit_deferred_grid_options(self) -> None:
        partial, self._deferred_grid_options = self._deferred_grid_options, {}
        self._sync_grid_options(partial)

    def _sync_grid_options(self, partial: Mapping[str, Any]) -> None:
        if not self.store.update_settings("gridOptions", partial):
            return
        report = ApplyReport(request_id=0)
        self._write_grid_options(partial, report)
        self._finish_sync(report)

    # -- listeners / getters ---------------------------------------------------

    def on_toolbar_settings_change(self, listener: SettingsListener) -> Unsubscribe:
        return self.store.subscribe("toolbar", listener)

    def on_grid_options_change(self, listener: SettingsListener) -> Unsubscribe:
        return self.store.subscribe("gridOptions", listener)

    def get_current_toolbar_settings(self) -> Dict[str, Any]:
        return self.store.get_settings("toolbar")

    def get_current_grid_options(self) -> Dict[str, Any]:
        return self.store.get_settings("gridOptions")

    @property
    def is_applying(self) -> bool:
        return self._in_flight is not None

    # -- profile -------------------------------------------------------------

    def collect_current_settings(self) -> ProfileSettings:
        """Snapshot toolbar, live structural state, grid options and column overrides."""
        grid = (
            self._grid_state.extract_grid_state()
            if self._handle is not None
            else self.store.grid_state
        )
        overrides = self.columns.native_overrides()
        return ProfileSettings(
            toolbar=self.store.get_settings("toolbar"),
            grid=grid,
            custom=CustomSettings(
                grid_options=self.store.get_settings("gridOptions"),
                column_defs=overrides or None,
            ),
        )

    def reset_to_defaults(self) -> ApplyRequest:
        """Restore store defaults and re-apply them through the pipeline."""
        self._toolbar_debouncer.cancel()
        self._grid_options_debouncer.cancel()
        self.store.reset_to_defaults()
        profile = self.store.get_all_settings()
        reset_columns = list(self._baseline_columns.values())
        if reset_columns:
            profile.custom.column_defs = reset_columns
        return self.apply_profile_settings(profile)

    def apply_profile_settings(self, profile: ProfileSettings) -> ApplyRequest:
        """Queue ``profile`` for application and return its request handle."""
        request = ApplyRequest(profile=profile)
        if self._in_flight is not None:
            request.status = ApplyStatus.DEFERRED
            displaced = self._mailbox.put(request)
            if displaced is not None:
                logger.info(
                    "Apply request %s superseded by %s", displaced.request_id, request.request_id
                )
                displaced._finish(ApplyStatus.SUPERSEDED)
            logger.debug(
                "Apply request %s deferred behind %s",
                request.request_id,
                self._in_flight.request_id,
            )
            return request
        self._start(request)
        return request

    # -- column edits ----------------------------------------------------------

    def update_column_settings(
        self, column_id: str, section: str, changes: Mapping[str, Any]
    ) -> ColumnSettings:
        """Validate and store one column edit, then push it to the grid.

        Raises ``ColumnSettingsValidationError`` and changes nothing when the
        edit is invalid.
        """
        settings = self.columns.update(column_id, section, changes)
        self._run_or_defer(f"column:{column_id}", lambda: self._push_column(settings))
        return settings

    def reset_column_settings(self, column_id: Optional[str] = None) -> List[str]:
        """Drop column overrides and restore the bound grid's original definitions."""
        removed = self.columns.reset(column_id)
        for key in removed:
            self._run_or_defer(f"column:{key}", lambda key=key: self._restore_column(key))
        return removed

    def _push_column(self, settings: ColumnSettings) -> None:
        self.columns.load([settings])
        self._sync_columns({settings.column_id: to_native_column_config(settings)})

    def _restore_column(self, column_id: str) -> None:
        self.columns.reset(column_id)
        baseline = self._baseline_columns.get(column_id)
        if baseline is not None:
            self._sync_columns({column_id: baseline})

    def _sync_columns(self, overrides: Mapping[str, Mapping[str, Any]]) -> None:
        report = ApplyReport(request_id=0)
        self._write_column_defs(overrides, report)
        self._finish_sync(report)

    def _run_or_defer(self, key: str, action: Callable[[], None]) -> None:
        if self._in_flight is None:
            action()
            return
        # Re-inserting moves the key to the end so the latest edit runs last.
        self._after_pipeline.pop(key, None)
        self._after_pipeline[key] = action

    def _finish_sync(self, report: ApplyReport) -> None:
        if report.wrote_anything:
            self._schedule_refresh(report)

    # -- pipeline --------------------------------------------------------------

    def _start(self, request: ApplyRequest) -> None:
        self._in_flight = request
        request.status = ApplyStatus.RUNNING
        report = ApplyReport(request_id=request.request_id)
        logger.info("Applying profile (request %s)", request.request_id)
        steps: List[tuple[PipelineState, Callable[[ApplyRequest, ApplyReport], None]]] = [
            (PipelineState.APPLYING_TOOLBAR, self._step_toolbar),
            (PipelineState.APPLYING_DEFAULT_COL_DEF, self._step_default_col_def),
            (PipelineState.APPLYING_GRID_OPTIONS, self._step_grid_options),
            (PipelineState.APPLYING_GRID_STATE, self._step_grid_state),
            (PipelineState.APPLYING_COLUMN_DEFS, self._step_column_defs),
        ]
        self._scheduler.call_soon(
            lambda: self._run_steps(request, report, steps), f"apply-{request.request_id}"
        )

    def _run_steps(
        self,
        request: ApplyRequest,
        report: ApplyReport,
        steps: List[tuple[PipelineState, Callable[[ApplyRequest, ApplyReport], None]]],
    ) -> None:
        if not steps:
            self._step_refresh(request, report)
            return
        (state, step), rest = steps[0], steps[1:]
        try:
            self.state_machine.transition(state, f"request {request.request_id}")
            step(request, report)
        except Exception:
            logger.exception("Pipeline step %s failed", state.value)
        self._scheduler.call_soon(
            lambda: self._run_steps(request, report, rest), f"apply-{request.request_id}"
        )

    def _step_toolbar(self, request: ApplyRequest, report: ApplyReport) -> None:
        toolbar = request.profile.toolbar
        if not toolbar:
            logger.warning("Profile has no toolbar settings; keeping current ones")
            return
        if serialized_equal(toolbar, self.store.get_settings("toolbar")):
            return
        self.store.update_all_toolbar_settings(toolbar)
        report.toolbar_changed = True

    def _profile_options(self, request: ApplyRequest) -> Dict[str, Any]:
        return normalize_grid_options(request.profile.custom.grid_options)

    def _step_default_col_def(self, request: ApplyRequest, report: ApplyReport) -> None:
        grid_options = request.profile.custom.grid_options
        if grid_options:
            self.store.update_settings("gridOptions", grid_options)
        default_col_def = self._profile_options(request).get("defaultColDef")
        if isinstance(default_col_def, Mapping):
            self._write_grid_options({"defaultColDef": default_col_def}, report)

    def _step_grid_options(self, request: ApplyRequest, report: ApplyReport) -> None:
        options = self._profile_options(request)
        options.pop("defaultColDef", None)
        self._write_grid_options(options, report)

    def _step_grid_state(self, request: ApplyRequest, report: ApplyReport) -> None:
        grid = request.profile.grid
        self.store.replace_grid_state(grid)
        report.grid_state_applied.extend(self._grid_state.apply_grid_state(grid, report.errors))

    def _step_column_defs(self, request: ApplyRequest, report: ApplyReport) -> None:
        column_defs = request.profile.custom.column_defs
        if not column_defs:
            return
        overrides: Dict[str, Dict[str, Any]] = {}
        for persisted in column_defs:
            native = regenerate_column_config(persisted)
            column_id = column_id_of(native)
            if not column_id:
                logger.warning("Skipping column override without colId or field")
                continue
            overrides[column_id] = native
        stored = (
            stored_column_settings(native, column_id) for column_id, native in overrides.items()
        )
        self.columns.load(entry for entry in stored if entry is not None)
        self._write_column_defs(overrides, report)

    def _step_refresh(self, request: ApplyRequest, report: ApplyReport) -> None:
        self.state_machine.transition(
            PipelineState.AWAITING_REFRESH, f"request {request.request_id}"
        )
        if not report.wrote_anything or self._handle is None:
            self._settle(request, report)
            return
        self._schedule_refresh(report, lambda: self._settle(request, report))

    def _schedule_refresh(
        self, report: ApplyReport, then: Optional[Callable[[], None]] = None
    ) -> None:
        """Refresh on the next frame when the grid offers one, else on the next tick."""

        def refresh() -> None:
            self._refresh(report)
            if then is not None:
                then()

        handle = self._handle
        if handle is not None and self.options.refresh_on_frame and self._supports(
            Capability.NEXT_FRAME
        ):
            try:
                handle.next_frame(refresh)
                return
            except Exception as exc:
                self._record_error("nextFrame", exc, report)
        self._scheduler.call_soon(refresh, "refresh")

    def _settle(self, request: ApplyRequest, report: ApplyReport) -> None:
        self.state_machine.transition(PipelineState.IDLE, f"request {request.request_id} done")
        logger.info(
            "Profile applied (request %s): %d options, %d grid sub-states, %d columns, %d errors",
            request.request_id,
            len(report.options_applied),
            len(report.grid_state_applied),
            len(report.columns_applied),
            len(report.errors),
        )
        followups, self._after_pipeline = self._after_pipeline, {}
        # The next request owns the slot before any callback runs, so an
        # apply made from a callback lands in the mailbox behind it.
        pending = self._mailbox.take()
        self._in_flight = None
        if pending is not None:
            self._start(pending)
        for action in followups.values():
            try:
                action()
            except Exception:
                logger.exception("Deferred grid sync failed")
        request._finish(ApplyStatus.DONE, report)

    # -- native writes ---------------------------------------------------------

    def _record_error(self, name: str, exc: Exception, report: ApplyReport) -> None:
        error = NativeWriteError(name, exc)
        logger.error("%s", error, exc_info=True)
        report.errors.append(error)

    def _write_grid_options(self, options: Mapping[str, Any], report: ApplyReport) -> None:
        normalized = normalize_grid_options(options)
        default_col_def = normalized.get("defaultColDef")
        if isinstance(default_col_def, Mapping):
            normalized["defaultColDef"] = sanitize_col_def(expand_default_col_def(default_col_def))
        writable, _ = writable_options(
            normalized, runtime_only=self.options.runtime_options_only
        )
        if not writable or not self._supports(Capability.GRID_OPTIONS):
            return
        handle = self._handle
        assert handle is not None
        for key, value in writable.items():
            try:
                current = handle.get_grid_option(key)
            except Exception:
                logger.debug("Reading grid option %s failed", key, exc_info=True)
                current = _UNREADABLE
            if current is not _UNREADABLE and serialized_equal(current, value):
                report.options_skipped.append(key)
                continue
            try:
                handle.set_grid_option(key, value)
            except Exception as exc:
                self._record_error(key, exc, report)
                continue
            report.options_applied.append(key)

    def _read_column_defs(self) -> List[Dict[str, Any]]:
        if not self._supports(Capability.COLUMN_DEFS):
            return []
        assert self._handle is not None
        try:
            return [dict(col_def) for col_def in self._handle.get_column_defs() or []]
        except Exception:
            logger.warning("Reading column defs failed", exc_info=True)
            return []

    def _live_column_def(self, column_id: str) -> Optional[Mapping[str, Any]]:
        for col_def in self._read_column_defs():
            if column_id_of(col_def) == column_id:
                return col_def
        return self._baseline_columns.get(column_id)

    def _write_column_defs(
        self, overrides: Mapping[str, Mapping[str, Any]], report: ApplyReport
    ) -> None:
        """Merge overrides over each column's baseline definition and write once."""
        if not overrides or not self._supports(Capability.COLUMN_DEFS):
            return
        handle = self._handle
        assert handle is not None
        current = self._read_column_defs()
        updated: List[Dict[str, Any]] = []
        changed: List[str] = []
        known = set()
        for col_def in current:
            column_id = column_id_of(col_def)
            known.add(column_id)
            override = overrides.get(column_id)
            if override is None:
                updated.append(col_def)
                continue
            base = self._baseline_columns.get(column_id, col_def)
            merged = merge_over_base(base, override)
            if not serialized_equal(col_def, merged):
                changed.append(column_id)
            updated.append(merged)
        for column_id in overrides:
            if column_id not in known:
                logger.warning("Column %s not present in grid; override not applied", column_id)
        if not changed:
            return
        try:
            handle.set_column_defs(updated)
        except Exception as exc:
            self._record_error("columnDefs", exc, report)
            return
        report.columns_applied.extend(changed)

    def _refresh(self, report: ApplyReport) -> None:
        """Refresh header and cells once."""
        handle = self._handle
        if handle is None:
            return
        if self._supports(Capability.REFRESH_HEADER):
            try:
                handle.refresh_header()
            except Exception as exc:
                self._record_error("refreshHeader", exc, report)
        if self._supports(Capability.REFRESH_CELLS):
            try:
                handle.refresh_cells(force=True)
            except Exception as exc:
                self._record_error("refreshCells", exc, report)
        report.refreshed = True
