"""Atelier CLI entry point."""

import logging
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console

from atelier.api.cli.commands import chat, config, generate, typing_test

app = typer.Typer(
    name="atelier",
    help="Atelier - AI image generation, vision description and chat",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.command("generate")(generate.generate)
app.command("describe")(generate.describe)
app.command("chat")(chat.chat)
app.add_typer(typing_test.app, name="typing", help="Typing speed test and leaderboard")
app.add_typer(config.app, name="config", help="Configuration management")


def configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML settings file"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output"),
):
    """Atelier CLI."""
    configure_logging(debug)
    ctx.obj = {"config_path": config_path, "debug": debug}


@app.command()
def version():
    """Show Atelier version."""
    from atelier import __version__

    console.print(f"[bold magenta]Atelier[/bold magenta] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
