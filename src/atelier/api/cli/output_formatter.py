"""
Output formatting for the CLI.
"""

from enum import Enum
from typing import Any, Optional

import yaml
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.prompt import Prompt
from rich.rule import Rule
from rich.table import Table

from atelier.core.domain.models import ChatMessage, ChatRole, GeneratedArtifact, Operation
from atelier.infrastructure.persistence.file_leaderboard import LeaderboardEntry


class OutputFormat(Enum):
    """Available output formats."""
    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


class AtelierConsole:
    """Rich rendering of operations, transcripts and leaderboards."""

    def __init__(self, debug: bool = False, console: Optional[Console] = None):
        self.debug = debug
        self.console = console or Console()

    def print_banner(self) -> None:
        self.console.print("[bold magenta]Atelier[/bold magenta] [dim]image · vision · chat[/dim]")

    def print_divider(self) -> None:
        self.console.print(Rule(style="dim"))

    def print_system_message(self, message: str, level: str = "info") -> None:
        styles = {"info": "cyan", "success": "green", "system": "magenta"}
        self.console.print(f"[{styles.get(level, 'white')}]{message}[/]")

    def print_success(self, message: str) -> None:
        self.console.print(f"[bold green]✓[/bold green] {message}")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]! {message}[/yellow]")

    def print_error(self, message: str, exception: Optional[BaseException] = None) -> None:
        self.console.print(f"[bold red]✗[/bold red] {message}")
        if exception is not None and self.debug:
            self.console.print_exception()

    def print_debug(self, message: str) -> None:
        if self.debug:
            self.console.print(f"[dim]{message}[/dim]")

    def prompt(self, label: str = "You") -> str:
        return Prompt.ask(f"[bold cyan]{label}[/bold cyan]", console=self.console)

    def print_message(self, message: ChatMessage) -> None:
        if message.role == ChatRole.USER:
            self.console.print(Panel(message.content, title="You", title_align="left", border_style="cyan"))
        else:
            self.console.print(Panel(message.content, title="Bot", title_align="left", border_style="magenta"))

    def print_failure(self, operation: Operation) -> None:
        """Render a Failed operation's message (detail only in debug mode)."""
        self.print_error(operation.error.message)
        self.print_debug(f"{operation.kind.value} {operation.id}: {operation.error.detail} (attempts: {operation.attempt})")

    def print_artifact(self, artifact: GeneratedArtifact) -> None:
        image = artifact.image_ref
        if image.startswith("data:"):
            image = f"{image[:48]}... ({len(image)} chars)"
        table = Table(show_header=False, box=None)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Prompt", artifact.prompt)
        table.add_row("Image", image)
        table.add_row("Description", artifact.description or "[dim]No description yet.[/dim]")
        self.console.print(Panel(table, title="Generated Image", border_style="magenta"))

    def print_leaderboard(self, entries: list[LeaderboardEntry]) -> None:
        if not entries:
            self.console.print("[dim]No entries yet. Run `atelier typing test --name NAME` to submit one.[/dim]")
            return

        table = Table(title="Leaderboard")
        table.add_column("#", style="bold", justify="right")
        table.add_column("Name", style="white")
        table.add_column("WPM", style="green", justify="right")
        table.add_column("Accuracy", style="yellow", justify="right")
        for rank, entry in enumerate(entries, start=1):
            table.add_row(str(rank), entry.name, str(entry.wpm), f"{entry.accuracy}%")
        self.console.print(table)

    def print_data(self, data: Any, format_type: OutputFormat = OutputFormat.TABLE, title: Optional[str] = None) -> None:
        if format_type == OutputFormat.JSON:
            self.console.print(JSON.from_data(data))
        elif format_type == OutputFormat.YAML:
            self.console.print(yaml.dump(data, default_flow_style=False, indent=2))
        elif isinstance(data, dict):
            table = Table(title=title, show_header=False)
            table.add_column("Property", style="cyan")
            table.add_column("Value", style="white")
            for key, value in data.items():
                table.add_row(key.replace("_", " ").title(), "" if value is None else str(value))
            self.console.print(table)
        else:
            self.console.print(str(data))
