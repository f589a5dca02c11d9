"""Rich renderers for profiles, validation findings and column configs."""

from __future__ import annotations

import json
from typing import Any, Iterable, List

from rich.console import Console
from rich.table import Table

from gp_settings.models import ProfileSettings


def _short(value: Any, limit: int = 60) -> str:
    text = json.dumps(value, sort_keys=True, default=str)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def build_profile_tables(profile: ProfileSettings) -> List[Table]:
    """One table per profile section."""
    toolbar = Table(title="Toolbar", show_lines=False)
    toolbar.add_column("Setting")
    toolbar.add_column("Value")
    for key, value in sorted(profile.toolbar.items()):
        toolbar.add_row(key, _short(value))

    grid = Table(title="Grid state")
    grid.add_column("Sub-state")
    grid.add_column("Value")
    for key, value in profile.grid.to_wire().items():
        grid.add_row(key, _short(value))

    persisted = profile.to_persisted()["custom"]
    custom = Table(title="Custom grid options")
    custom.add_column("Option")
    custom.add_column("Value")
    for key, value in sorted(persisted["gridOptions"].items()):
        custom.add_row(key, _short(value))

    tables = [toolbar, grid, custom]
    column_defs = persisted.get("columnDefs")
    if column_defs:
        columns = Table(title="Column overrides")
        columns.add_column("Column")
        columns.add_column("Properties")
        for col_def in column_defs:
            keys = sorted(key for key in col_def if key not in ("colId", "context"))
            columns.add_row(str(col_def.get("colId") or col_def.get("field") or "?"), ", ".join(keys))
        tables.append(columns)
    return tables


def render_profile(console: Console, profile: ProfileSettings) -> None:
    for table in build_profile_tables(profile):
        console.print(table)


def render_findings(console: Console, errors: Iterable[str], warnings: Iterable[str]) -> bool:
    """Print validation findings; returns True when there were no errors."""
    errors = list(errors)
    for message in warnings:
        console.print(f"[yellow]warning[/yellow] {message}")
    for message in errors:
        console.print(f"[red]error[/red] {message}")
    if errors:
        console.print(f"[red]Found {len(errors)} problem(s).[/red]")
        return False
    console.print("[green]Profile is valid.[/green]")
    return True
