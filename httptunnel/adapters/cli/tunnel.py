"""
Tunnel CLI commands
"""
import sys
import typer
from pathlib import Path
from typing import Optional, Dict, Any

from rich.markup import escape
from rich.table import Table

from ...client import RemoteClient
from ...core.constants import DEFAULT_SSH_PORT
from ...core.exceptions import ConfigError, ConnectionError, TunnelError
from ...core.logging import get_logger, get_stdout_console
from ...domain.tunnel import TargetAddress, Established, establish_tunnel, probe_reachability
from ...domain.tunnel.models import parse_authority, split_authority
from ..config.loader import ConfigLoader
from ..config.settings import TunnelSettings
from .prompts import RichPromptProvider
from .relay import relay

logger = get_logger(__name__)
stdout_console = get_stdout_console()
prompt_provider = RichPromptProvider()

EXIT_FAILED = 1
EXIT_CONFIG = 2

ProxyOption = typer.Option(None, "--proxy", "-x", help="Proxy as host[:port] (env: PROXY_HOST / PROXY_PORT)")
AuthOption = typer.Option(None, "--auth", "-a", help="Proxy credential as user:pass (env: PROXY_AUTH)")
TimeoutOption = typer.Option(None, "--timeout", "-t", help="Handshake deadline in seconds (default: 30)")
ConfigOption = typer.Option(None, "--config", "-c", help="Configuration file path (TOML)")


def register_tunnel_commands(app: typer.Typer) -> None:
    """Register tunnel commands on the main app"""
    app.command(name="probe")(tunnel_probe)
    app.command(name="connect")(tunnel_connect)
    app.command(name="pipe")(tunnel_pipe)
    app.command(name="ssh")(tunnel_ssh)


def resolve_settings(
    proxy: Optional[str],
    auth: Optional[str],
    timeout: Optional[float],
    config_file: Optional[Path],
) -> TunnelSettings:
    """Merge TOML, environment and CLI options into tunnel settings"""
    section: Dict[str, Any] = {"auth": auth, "timeout": timeout}
    if proxy:
        host, port = split_authority(proxy)
        section["host"] = host
        section["port"] = port

    cfg = ConfigLoader().load(toml_path=config_file, cli_overrides={"proxy": section})
    return TunnelSettings.from_config(cfg)


def _parse_target(value: str, default_port: Optional[int] = None) -> TargetAddress:
    host, port = parse_authority(value, default_port=default_port)
    return TargetAddress(host, port)


def _config_error(e: ConfigError) -> typer.Exit:
    prompt_provider.error(f"Configuration error: {escape(str(e))}")
    return typer.Exit(EXIT_CONFIG)


def tunnel_probe(
    target: str = typer.Argument(..., help="Target as host:port"),
    proxy: Optional[str] = ProxyOption,
    auth: Optional[str] = AuthOption,
    timeout: Optional[float] = TimeoutOption,
    config_file: Optional[Path] = ConfigOption,
):
    """
    Check whether TARGET is reachable through the proxy

    Examples:
        httptunnel probe example.com:22 --proxy proxy.local:3128
    """
    try:
        settings = resolve_settings(proxy, auth, timeout, config_file)
        address = _parse_target(target)
    except ConfigError as e:
        raise _config_error(e)

    if probe_reachability(address, settings.proxy, timeout=settings.timeout):
        prompt_provider.success(f"{address} is reachable via {settings.proxy}")
        return

    prompt_provider.error(f"{address} is not reachable via {settings.proxy}")
    raise typer.Exit(EXIT_FAILED)


def tunnel_connect(
    target: str = typer.Argument(..., help="Target as host:port"),
    proxy: Optional[str] = ProxyOption,
    auth: Optional[str] = AuthOption,
    timeout: Optional[float] = TimeoutOption,
    config_file: Optional[Path] = ConfigOption,
):
    """
    Perform the CONNECT handshake and report the result
    """
    try:
        settings = resolve_settings(proxy, auth, timeout, config_file)
        address = _parse_target(target)
    except ConfigError as e:
        raise _config_error(e)

    outcome = establish_tunnel(address, settings.proxy, timeout=settings.timeout)
    if not isinstance(outcome, Established):
        prompt_provider.failure(outcome)
        raise typer.Exit(EXIT_FAILED)

    with outcome.stream:
        table = Table(title=f"Tunnel: {address}", show_header=True, header_style="bold cyan")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Status", "[green]Established[/green]")
        table.add_row("Proxy", str(settings.proxy))
        table.add_row("Response", escape(outcome.status_line))
        table.add_row("Trailing Bytes", str(len(outcome.trailing_bytes)))

        stdout_console.print(table)


def tunnel_pipe(
    target: str = typer.Argument(..., help="Target as host:port"),
    proxy: Optional[str] = ProxyOption,
    auth: Optional[str] = AuthOption,
    timeout: Optional[float] = TimeoutOption,
    config_file: Optional[Path] = ConfigOption,
):
    """
    Relay stdin/stdout through a tunnel to TARGET

    Usable as an OpenSSH ProxyCommand:
        ssh -o ProxyCommand='httptunnel pipe %h:%p --proxy proxy.local:3128' host
    """
    try:
        settings = resolve_settings(proxy, auth, timeout, config_file)
        address = _parse_target(target)
    except ConfigError as e:
        raise _config_error(e)

    outcome = establish_tunnel(address, settings.proxy, timeout=settings.timeout)
    if not isinstance(outcome, Established):
        prompt_provider.failure(outcome)
        raise typer.Exit(EXIT_FAILED)

    with outcome.stream as stream:
        try:
            relay(stream, sys.stdin.fileno(), sys.stdout.fileno())
        except (BrokenPipeError, ConnectionResetError) as e:
            logger.debug(f"Relay ended: {e}")
        except KeyboardInterrupt:
            logger.info("Received interrupt signal")


def tunnel_ssh(
    target: str = typer.Argument(..., help=f"SSH server as host[:port] (default port {DEFAULT_SSH_PORT})"),
    command: str = typer.Argument(..., help="Command to run on the server"),
    user: str = typer.Option(..., "--user", "-u", help="SSH username"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="SSH password"),
    key: Optional[Path] = typer.Option(None, "--key", "-k", help="Private key file"),
    proxy: Optional[str] = ProxyOption,
    auth: Optional[str] = AuthOption,
    timeout: Optional[float] = TimeoutOption,
    config_file: Optional[Path] = ConfigOption,
):
    """
    Run COMMAND on an SSH server reached through the proxy

    Examples:
        httptunnel ssh build.internal "uname -a" -u deploy -k ~/.ssh/id_ed25519 -x proxy.local:3128
    """
    try:
        settings = resolve_settings(proxy, auth, timeout, config_file)
        address = _parse_target(target, default_port=DEFAULT_SSH_PORT)
    except ConfigError as e:
        raise _config_error(e)

    if key is None and password is None:
        password = prompt_provider.prompt("Enter SSH password", password=True)

    client = RemoteClient(
        host=address.host,
        user=user,
        port=address.port,
        auth_method="key" if key else "password",
        password=password,
        key_path=str(key) if key else None,
        proxy=settings.proxy,
        timeout=settings.timeout,
    )

    try:
        with client:
            client.connect()
            out, err, exit_code = client.exec(command)
    except TunnelError as e:
        prompt_provider.failure(e.outcome)
        raise typer.Exit(EXIT_FAILED)
    except ConnectionError as e:
        prompt_provider.error(escape(str(e)))
        raise typer.Exit(EXIT_FAILED)

    sys.stdout.write(out)
    sys.stderr.write(err)
    raise typer.Exit(exit_code)
