from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import typer
from rich.console import Console

from gp_common.errors import ConfigurationError
from gp_controller.grid_options import normalize_grid_options, skip_reason
from gp_conversion.api import stored_column_settings, validate_column_settings
from gp_settings.defaults import RUNTIME_GRID_OPTIONS
from gp_settings.models import ProfileSettings, load_profile
from gp_ui.presenters import render_findings, render_profile


def check_profile(profile: ProfileSettings) -> Tuple[List[str], List[str]]:
    """Return (errors, warnings) for a loaded profile."""
    errors: List[str] = []
    warnings: List[str] = []
    options = normalize_grid_options(profile.custom.grid_options)
    for key in sorted(options):
        reason = skip_reason(key)
        if reason is not None:
            warnings.append(f"grid option '{key}' skipped ({reason})")
        elif key not in RUNTIME_GRID_OPTIONS:
            warnings.append(f"grid option '{key}' is not a known runtime option")
    for index, col_def in enumerate(profile.custom.column_defs or []):
        column_id = str(col_def.get("colId") or col_def.get("field") or "")
        if not column_id:
            errors.append(f"column override #{index} has neither colId nor field")
            continue
        settings = stored_column_settings(col_def, column_id)
        if settings is None:
            continue
        errors.extend(f"{column_id}: {message}" for message in validate_column_settings(settings))
    return errors, warnings


def create_profile_app(console: Console) -> typer.Typer:
    """Build the profile Typer app."""
    app = typer.Typer(help="Inspect and validate saved profiles.", no_args_is_help=True)

    def _load(path: Path) -> ProfileSettings:
        try:
            return load_profile(path)
        except ConfigurationError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1)

    @app.command("inspect")
    def profile_inspect(
        path: Path = typer.Argument(..., help="Profile JSON file."),
    ) -> None:
        """Show toolbar, grid state and custom options of a profile."""
        render_profile(console, _load(path))

    @app.command("validate")
    def profile_validate(
        path: Path = typer.Argument(..., help="Profile JSON file."),
    ) -> None:
        """Check that a profile can be applied; exits 1 on errors."""
        errors, warnings = check_profile(_load(path))
        if not render_findings(console, errors, warnings):
            raise typer.Exit(1)

    return app
