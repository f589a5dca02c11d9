import pytest
from rich.console import Console
from rich.table import Table
from collections import defaultdict

from gp_controller.adapters import InMemoryGrid
from gp_controller.controller import SettingsController
from gp_controller.models.options import ControllerOptions
from gp_controller.scheduling import ManualScheduler
from gp_settings.store import SettingsStore


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def grid(scheduler: ManualScheduler) -> InMemoryGrid:
    return InMemoryGrid(
        column_defs=[
            {"field": "name", "headerName": "Name"},
            {"field": "price", "headerName": "Price", "type": "numericColumn"},
            {"field": "created", "headerName": "Created"},
        ],
        frame_scheduler=scheduler,
    )


@pytest.fixture
def controller(scheduler: ManualScheduler, grid: InMemoryGrid) -> SettingsController:
    ctrl = SettingsController(
        SettingsStore(), scheduler=scheduler, options=ControllerOptions(debounce_ms=100)
    )
    ctrl.set_grid_api(grid)
    return ctrl


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """
    Custom hook to print statistics by marker at the end of the test session.
    """
    _ = (exitstatus, config)

    # Defined markers in pyproject.toml
    known_markers = {
        "unit_common", "unit_conversion", "unit_settings",
        "unit_controller", "unit_ui", "slow",
    }

    marker_stats = defaultdict(lambda: {"passed": 0, "failed": 0, "skipped": 0, "total": 0, "duration": 0.0})

    for outcome in ["passed", "failed", "skipped"]:
        reports = terminalreporter.stats.get(outcome, [])
        for report in reports:
            # Only count the actual test call, or setup skips
            if report.when == "call" or (report.when == "setup" and report.outcome == "skipped"):
                duration = getattr(report, "duration", 0.0)
                for marker in known_markers:
                    if marker in report.keywords:
                        stats = marker_stats[marker]
                        stats[outcome] += 1
                        stats["total"] += 1
                        stats["duration"] += duration

    if not marker_stats:
        return

    console = Console()
    table = Table(title="Test Statistics by Marker", show_header=True, header_style="bold magenta")
    table.add_column("Marker", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Duration (s)", justify="right", style="blue")
    table.add_column("Avg (s)", justify="right", style="blue")

    for marker in sorted(marker_stats.keys()):
        stats = marker_stats[marker]
        if stats["total"] > 0:
            avg_duration = stats["duration"] / stats["total"]
            table.add_row(
                marker,
                str(stats["total"]),
                str(stats["passed"]),
                str(stats["failed"]),
                str(stats["skipped"]),
                f"{stats['duration']:.2f}",
                f"{avg_duration:.2f}"
            )

    console.print("\n")
    console.print(table)
