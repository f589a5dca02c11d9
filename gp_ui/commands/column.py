from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

import typer
from pydantic import ValidationError
from rich.console import Console

from gp_conversion.api import (
    ColumnSettings,
    from_native_column_config,
    to_native_column_config,
    to_persisted_column_config,
    validate_column_settings,
)


def _read_json(console: Console, path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        console.print(f"[red]Cannot read {path}: {exc}[/red]")
        raise typer.Exit(1)


def create_column_app(console: Console) -> typer.Typer:
    """Build the column Typer app."""
    app = typer.Typer(help="Convert column settings to and from native configs.", no_args_is_help=True)

    @app.command("render")
    def column_render(
        path: Path = typer.Argument(..., help="JSON file with one column settings object or a list."),
    ) -> None:
        """Print the persisted native config for column settings."""
        data = _read_json(console, path)
        items = data if isinstance(data, list) else [data]
        rendered: List[Any] = []
        for item in items:
            try:
                settings = ColumnSettings.model_validate(item)
            except ValidationError as exc:
                console.print(f"[red]Invalid column settings: {exc}[/red]")
                raise typer.Exit(1)
            problems = validate_column_settings(settings)
            if problems:
                for message in problems:
                    console.print(f"[red]{settings.column_id}: {message}[/red]")
                raise typer.Exit(1)
            rendered.append(to_persisted_column_config(to_native_column_config(settings)))
        console.print_json(data=rendered if isinstance(data, list) else rendered[0])

    @app.command("extract")
    def column_extract(
        path: Path = typer.Argument(..., help="JSON file with one native column config."),
        column_id: str = typer.Option("", "--column-id", help="Id to use when the config has none."),
    ) -> None:
        """Print the normalized settings encoded by a native column config."""
        data = _read_json(console, path)
        if not isinstance(data, dict):
            console.print("[red]Expected a JSON object.[/red]")
            raise typer.Exit(1)
        resolved = column_id or str(data.get("colId") or data.get("field") or "")
        settings = from_native_column_config(data, resolved)
        console.print_json(data=settings.to_wire())

    return app
