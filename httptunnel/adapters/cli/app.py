"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ...core.logging import setup_logging, get_logger
from .tunnel import register_tunnel_commands

logger = get_logger(__name__)

# Create main app
app = typer.Typer(
    name="httptunnel",
    add_completion=False,
    help="Raw TCP tunnels through HTTP CONNECT proxies",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_tunnel_commands(app)


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
):
    """
    httptunnel - raw TCP tunnels through HTTP CONNECT proxies

    Use subcommands to perform different operations:
    - probe: Check that a target is reachable through the proxy
    - connect: Run the CONNECT handshake and show the result
    - pipe: Relay stdin/stdout through the tunnel (ssh ProxyCommand)
    - ssh: Run a command on an SSH server behind the proxy
    """
    setup_logging(level=log_level, log_file=log_file)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
