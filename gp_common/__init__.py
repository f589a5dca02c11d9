"""Shared helpers for grid-profile-engine."""

from gp_common.api import configure_logging, serialized_equal

__all__ = ["configure_logging", "serialized_equal"]
