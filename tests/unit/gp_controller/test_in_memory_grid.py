import pytest

from gp_controller.adapters import InMemoryGrid, WriteRecord
from gp_controller.contracts import Capability, GridCapabilities


pytestmark = pytest.mark.unit_controller


def test_capabilities_helpers() -> None:
    caps = GridCapabilities.of(Capability.GRID_OPTIONS, Capability.COLUMN_DEFS)
    assert caps.supports(Capability.GRID_OPTIONS)
    assert Capability.PIVOT_MODE in caps.missing()
    assert caps.missing([Capability.GRID_OPTIONS]) == []
    assert not GridCapabilities.full().without(Capability.NEXT_FRAME).supports(Capability.NEXT_FRAME)


def test_writes_are_recorded_and_failures_raised() -> None:
    grid = InMemoryGrid(failures={"headerHeight": ValueError("nope")})
    grid.set_grid_option("rowHeight", 20)
    with pytest.raises(ValueError):
        grid.set_grid_option("headerHeight", 50)
    assert grid.writes == [WriteRecord("set_grid_option", "rowHeight", 20)]
    assert grid.get_grid_option("headerHeight") is None


def test_frames_queue_until_run() -> None:
    grid = InMemoryGrid()
    ran: list[str] = []
    grid.next_frame(lambda: (ran.append("a"), grid.next_frame(lambda: ran.append("b"))))
    assert ran == []
    assert grid.run_frames() == 2
    assert ran == ["a", "b"]


def test_effective_config_layers_column_over_default() -> None:
    grid = InMemoryGrid(
        column_defs=[{"field": "a", "flex": 2}],
        grid_options={"defaultColDef": {"flex": 1, "sortable": True}},
    )
    assert grid.effective_column_config("a") == {"flex": 2, "sortable": True, "field": "a"}
    with pytest.raises(KeyError):
        grid.column_def("missing")
