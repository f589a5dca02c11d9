"""
Command-line interface for gridprofile.

Inspects and validates saved grid profiles, renders column settings into
native column configs and previews value formatters.
"""

from __future__ import annotations

import typer
from rich.console import Console

from gp_common.logging import configure_logging
from gp_ui.commands.column import create_column_app
from gp_ui.commands.format import create_format_app
from gp_ui.commands.profile import create_profile_app

console = Console()

app = typer.Typer(help="Inspect grid profiles and preview column conversions.", no_args_is_help=True)


@app.callback()
def entry(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit logs as JSON lines."),
) -> None:
    """Global options shared by every command."""
    configure_logging(debug=debug, json=log_json or None, force=True)


app.add_typer(create_profile_app(console), name="profile")
app.add_typer(create_column_app(console), name="column")
app.add_typer(create_format_app(console), name="format")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
