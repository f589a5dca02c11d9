"""Controller facade: profile application against a live grid handle."""

from gp_controller.api import (
    ControllerOptions,
    GridStateProvider,
    SettingsController,
)

__all__ = ["ControllerOptions", "GridStateProvider", "SettingsController"]
