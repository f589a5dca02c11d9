"""Public UI API surface."""

from gp_ui.cli import app, main
from gp_ui.presenters import build_profile_tables, render_findings, render_profile

__all__ = ["app", "build_profile_tables", "main", "render_findings", "render_profile"]
