"""Apply pipeline state machine primitives."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Step-aware states of a controller's apply pipeline."""

    IDLE = "idle"
    APPLYING_TOOLBAR = "applying_toolbar"
    APPLYING_DEFAULT_COL_DEF = "applying_default_col_def"
    APPLYING_GRID_OPTIONS = "applying_grid_options"
    APPLYING_GRID_STATE = "applying_grid_state"
    APPLYING_COLUMN_DEFS = "applying_column_defs"
    AWAITING_REFRESH = "awaiting_refresh"


PIPELINE_STEPS: tuple[PipelineState, ...] = (
    PipelineState.APPLYING_TOOLBAR,
    PipelineState.APPLYING_DEFAULT_COL_DEF,
    PipelineState.APPLYING_GRID_OPTIONS,
    PipelineState.APPLYING_GRID_STATE,
    PipelineState.APPLYING_COLUMN_DEFS,
    PipelineState.AWAITING_REFRESH,
)


def _build_transitions() -> dict[PipelineState, set[PipelineState]]:
    transitions: dict[PipelineState, set[PipelineState]] = {
        PipelineState.IDLE: {PipelineState.APPLYING_TOOLBAR},
    }
    for index, step in enumerate(PIPELINE_STEPS):
        later = set(PIPELINE_STEPS[index + 1:])
        transitions[step] = later | {PipelineState.IDLE}
    return transitions


# Steps may be skipped but never revisited within one run.
_ALLOWED_TRANSITIONS = _build_transitions()


class PipelineStateMachine:
    """Tracks which step of the apply pipeline is running."""

    def __init__(self) -> None:
        self._state = PipelineState.IDLE
        self._reason: Optional[str] = None
        self._callbacks: list[Callable[[PipelineState, Optional[str]], None]] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def is_idle(self) -> bool:
        return self._state is PipelineState.IDLE

    def register_callback(
        self, callback: Callable[[PipelineState, Optional[str]], None]
    ) -> None:
        """Register a callback invoked on every transition."""
        self._callbacks.append(callback)

    def transition(
        self, new_state: PipelineState, reason: Optional[str] = None
    ) -> PipelineState:
        """Attempt a state transition; raise ValueError if invalid."""
        allowed = _ALLOWED_TRANSITIONS.get(self._state, set())
        if new_state not in allowed:
            raise ValueError(f"Invalid transition {self._state} -> {new_state}")
        self._state = new_state
        self._reason = reason
        for cb in list(self._callbacks):
            try:
                cb(self._state, self._reason)
            except Exception:
                logger.exception("Pipeline state callback failed")
        return self._state

    def reset(self, reason: Optional[str] = None) -> None:
        """Force the machine back to IDLE, e.g. when the handle is unbound."""
        if self._state is not PipelineState.IDLE:
            self.transition(PipelineState.IDLE, reason)

    def snapshot(self) -> tuple[PipelineState, Optional[str]]:
        return self._state, self._reason
