"""Public controller API surface."""

from gp_controller.adapters.memory import InMemoryGrid, WriteRecord
from gp_controller.contracts import Capability, GridCapabilities, GridHandle
from gp_controller.controller import SettingsController
from gp_controller.grid_options import (
    normalize_grid_options,
    normalize_row_selection,
    sanitize_col_def,
    skip_reason,
    writable_options,
)
from gp_controller.grid_state import GridStateProvider
from gp_controller.models.options import ControllerOptions
from gp_controller.models.state import PipelineState, PipelineStateMachine
from gp_controller.models.types import ApplyReport, ApplyRequest, ApplyStatus
from gp_controller.scheduling import (
    AsyncioScheduler,
    Debouncer,
    ManualScheduler,
    ScheduledTask,
    Scheduler,
    SingleSlotMailbox,
)

__all__ = [
    "ApplyReport",
    "ApplyRequest",
    "ApplyStatus",
    "AsyncioScheduler",
    "Capability",
    "ControllerOptions",
    "Debouncer",
    "GridCapabilities",
    "GridHandle",
    "GridStateProvider",
    "InMemoryGrid",
    "ManualScheduler",
    "PipelineState",
    "PipelineStateMachine",
    "ScheduledTask",
    "Scheduler",
    "SettingsController",
    "SingleSlotMailbox",
    "WriteRecord",
    "normalize_grid_options",
    "normalize_row_selection",
    "sanitize_col_def",
    "skip_reason",
    "writable_options",
]
