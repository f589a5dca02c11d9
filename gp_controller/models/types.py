"""Shared controller data types."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Any, Callable, Dict, List, Optional

from gp_common.errors import NativeWriteError, error_to_payload
from gp_settings.models import ProfileSettings

logger = logging.getLogger(__name__)

_REQUEST_IDS = count(1)


class ApplyStatus(str, Enum):
    """Lifecycle of one apply request."""

    PENDING = "pending"
    DEFERRED = "deferred"
    RUNNING = "running"
    DONE = "done"
    SUPERSEDED = "superseded"


_FINAL_STATUSES = {ApplyStatus.DONE, ApplyStatus.SUPERSEDED}


@dataclass
class ApplyReport:
    """Bookkeeping of one pipeline execution.

    Only options that were actually written appear in ``options_applied``;
    skipped-because-equal options do not.
    """

    request_id: int
    toolbar_changed: bool = False
    options_applied: List[str] = field(default_factory=list)
    options_skipped: List[str] = field(default_factory=list)
    grid_state_applied: List[str] = field(default_factory=list)
    columns_applied: List[str] = field(default_factory=list)
    errors: List[NativeWriteError] = field(default_factory=list)
    refreshed: bool = False

    @property
    def wrote_anything(self) -> bool:
        return bool(self.options_applied or self.grid_state_applied or self.columns_applied)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "toolbar_changed": self.toolbar_changed,
            "options_applied": list(self.options_applied),
            "options_skipped": list(self.options_skipped),
            "grid_state_applied": list(self.grid_state_applied),
            "columns_applied": list(self.columns_applied),
            "errors": [error_to_payload(error) for error in self.errors],
            "refreshed": self.refreshed,
        }


@dataclass(eq=False)
class ApplyRequest:
    """Handle for one ``apply_profile_settings`` call."""

    profile: ProfileSettings
    request_id: int = field(default_factory=lambda: next(_REQUEST_IDS))
    status: ApplyStatus = ApplyStatus.PENDING
    report: Optional[ApplyReport] = None
    _callbacks: List[Callable[["ApplyRequest"], None]] = field(default_factory=list, repr=False)

    @property
    def done(self) -> bool:
        return self.status in _FINAL_STATUSES

    def add_done_callback(self, callback: Callable[["ApplyRequest"], None]) -> None:
        """Run ``callback`` once the request is done or superseded."""
        if self.done:
            callback(self)
            return
        self._callbacks.append(callback)

    def _finish(self, status: ApplyStatus, report: Optional[ApplyReport] = None) -> None:
        self.status = status
        self.report = report
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("Apply request %s callback failed", self.request_id)
