"""
Rich-based user prompts and status output
"""
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from ...core.logging import get_stderr_console
from ...domain.tunnel import Failed


class RichPromptProvider:
    """
    Rich-based prompt provider.

    Writes to stderr so stdout stays free for tunnelled bytes.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stderr_console()

    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        return Prompt.ask(message, password=password, default=default, console=self.console)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def failure(self, outcome: Failed) -> None:
        """Display a failed handshake with its remediation hint"""
        self.error(f"Tunnel failed: [bold]{outcome.reason.value}[/bold]")
        if outcome.status_line:
            self.console.print(f"  Proxy answered: [yellow]{escape(outcome.status_line)}[/yellow]")
        elif outcome.detail:
            self.console.print(f"  Detail: [yellow]{escape(outcome.detail)}[/yellow]")
        self.console.print(f"  [dim]{escape(outcome.hint)}[/dim]")
