"""Per-invocation state shared by CLI commands."""

import typer

from atelier.api.cli.output_formatter import AtelierConsole
from atelier.config.settings import AtelierSettings, get_settings


def load_settings(ctx: typer.Context) -> AtelierSettings:
    """Settings for this invocation: the --config file if given, else the environment."""
    config_path = (ctx.obj or {}).get("config_path")
    if config_path:
        return AtelierSettings.load_from_file(config_path)
    return get_settings()


def make_console(ctx: typer.Context) -> AtelierConsole:
    return AtelierConsole(debug=(ctx.obj or {}).get("debug", False))
