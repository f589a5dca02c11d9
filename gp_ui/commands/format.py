from __future__ import annotations

import json
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from gp_conversion.api import FormatterSettings, format_value


def parse_cli_value(raw: str) -> Any:
    """Interpret VALUE as JSON when possible (numbers, booleans, null)."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def create_format_app(console: Console) -> typer.Typer:
    """Build the format Typer app."""
    app = typer.Typer(help="Preview value formatters.", no_args_is_help=True)

    @app.command("preview")
    def format_preview(
        formatter_type: str = typer.Argument(..., metavar="TYPE", help="number, currency, percentage, date, boolean, link or text."),
        value: str = typer.Argument(..., help="Value to format; parsed as JSON when possible."),
        decimals: Optional[int] = typer.Option(None, "--decimals", help="Fixed decimal places."),
        currency: Optional[str] = typer.Option(None, "--currency", help="Currency symbol prefix."),
        no_separator: bool = typer.Option(False, "--no-separator", help="Disable the thousands separator."),
        multiply: bool = typer.Option(False, "--multiply", help="Multiply percentages by 100."),
        date_format: Optional[str] = typer.Option(None, "--date-format", help="Date pattern, e.g. YYYY-MM-DD."),
        prefix: str = typer.Option("", "--prefix", help="Text placed before the result."),
        suffix: str = typer.Option("", "--suffix", help="Text placed after the result."),
    ) -> None:
        """Format VALUE with a TYPE formatter and print the result."""
        data: dict[str, Any] = {
            "type": formatter_type,
            "use1000Separator": not no_separator,
            "multiplyBy100": multiply,
            "prefix": prefix,
            "suffix": suffix,
        }
        if decimals is not None:
            data["decimals"] = decimals
        if currency is not None:
            data["currency"] = currency
        if date_format is not None:
            data["dateFormat"] = date_format
        try:
            settings = FormatterSettings.model_validate(data)
        except ValidationError as exc:
            console.print(f"[red]Invalid formatter: {exc.errors()[0]['msg']}[/red]")
            raise typer.Exit(1)
        console.print(format_value(parse_cli_value(value), settings), markup=False, highlight=False)

    return app
