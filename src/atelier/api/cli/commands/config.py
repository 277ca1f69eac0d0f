"""Config commands - inspect effective settings."""

import typer

from atelier.api.cli.context import load_settings, make_console
from atelier.api.cli.output_formatter import OutputFormat

app = typer.Typer(help="Configuration management")


@app.command("show")
def show(
    ctx: typer.Context,
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
):
    """Show effective settings (credentials are redacted)."""
    out = make_console(ctx)
    out.print_data(load_settings(ctx).redacted(), output, title="Atelier Settings")
