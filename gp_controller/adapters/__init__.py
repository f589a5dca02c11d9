"""Grid handle adapters."""

from gp_controller.adapters.memory import InMemoryGrid, WriteRecord

__all__ = ["InMemoryGrid", "WriteRecord"]
