from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Literal, Tuple
import paramiko
from pathlib import Path

from .core.constants import DEFAULT_SSH_PORT, DEFAULT_TUNNEL_TIMEOUT
from .core.exceptions import ConnectionError
from .core.logging import get_logger
from .domain.tunnel import ProxyEndpoint, TargetAddress, Established, establish_tunnel

logger = get_logger(__name__)


@dataclass
class ClientConfig:
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    auth_method: Literal["password", "key"] = "password"
    password: Optional[str] = None
    key_path: Optional[str] = None
    proxy: Optional[ProxyEndpoint] = None
    timeout: float = DEFAULT_TUNNEL_TIMEOUT


class RemoteClient:
    """
    Paramiko SSHClient wrapper that can reach its host through an HTTP proxy:
    - the tunnel is opened by ``establish_tunnel`` and handed to paramiko as ``sock``
    - supports password and key login
    - loads RSA / Ed25519 private keys
    - context manager closes the SSH session and the tunnel
    """
    def __init__(
        self,
        host: str,
        user: str,
        port: int = DEFAULT_SSH_PORT,
        auth_method: Literal["password", "key"] = "password",
        password: Optional[str] = None,
        key_path: Optional[str] = None,
        proxy: Optional[ProxyEndpoint] = None,
        timeout: float = DEFAULT_TUNNEL_TIMEOUT,
    ) -> None:
        self.config = ClientConfig(
            host=host,
            user=user,
            port=port,
            auth_method=auth_method,
            password=password,
            key_path=key_path,
            proxy=proxy,
            timeout=timeout,
        )

        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        self.tunnel: Optional[Established] = None

    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        """
        Connect, going through the proxy when one is configured.

        Raises:
            TunnelError: If the CONNECT handshake fails
            ConnectionError: If the SSH session cannot be set up
        """
        cfg = self.config
        kwargs = {
            "hostname": cfg.host,
            "port": cfg.port,
            "username": cfg.user,
            "timeout": cfg.timeout,
        }

        if cfg.auth_method == "password":
            kwargs["password"] = cfg.password
            kwargs["look_for_keys"] = False
        elif cfg.auth_method == "key":
            kwargs["pkey"] = self._load_private_key(cfg.key_path)
        else:
            raise ValueError(f"Unsupported auth method: {cfg.auth_method}")

        if cfg.proxy is not None:
            self.tunnel = self._open_tunnel()
            kwargs["sock"] = self.tunnel.stream

        try:
            self.client.connect(**kwargs)
        except (paramiko.SSHException, OSError) as e:
            self.close()
            raise ConnectionError(f"Failed to connect to {cfg.user}@{cfg.host}:{cfg.port}: {e}") from e

    def _open_tunnel(self) -> Established:
        cfg = self.config
        target = TargetAddress(cfg.host, cfg.port)
        outcome = establish_tunnel(target, cfg.proxy, timeout=cfg.timeout)
        if not outcome.ok:
            outcome.raise_for_failure()
        logger.info(f"Establishing SSH connection to {target} through {cfg.proxy}")
        return outcome

    # --------------------
    # Load private key
    # --------------------
    def _load_private_key(self, path: str) -> paramiko.PKey:
        """Try Ed25519 first, then RSA"""
        p = Path(path).expanduser()

        try:
            return paramiko.Ed25519Key.from_private_key_file(str(p))
        except (paramiko.SSHException, ValueError, OSError):
            try:
                return paramiko.RSAKey.from_private_key_file(str(p))
            except (paramiko.SSHException, OSError) as e:
                raise ConnectionError(f"Failed to load private key at {p}") from e

    # --------------------
    # Helpers
    # --------------------
    def exec(self, cmd: str) -> Tuple[str, str, int]:
        """Run a command and return (stdout, stderr, exit_code)"""
        stdin, stdout, stderr = self.client.exec_command(cmd)
        out = stdout.read().decode('utf-8', errors='replace')
        err = stderr.read().decode('utf-8', errors='replace')
        exit_code = stdout.channel.recv_exit_status()
        return out, err, exit_code

    def close(self) -> None:
        self.client.close()
        if self.tunnel is not None:
            self.tunnel.stream.close()
            self.tunnel = None

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
