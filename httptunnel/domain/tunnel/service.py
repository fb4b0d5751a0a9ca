"""
Tunnel domain service - CONNECT handshake orchestration
"""
import selectors
import socket
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from ...core.constants import DEFAULT_MAX_WORKERS, DEFAULT_RECV_SIZE, DEFAULT_TUNNEL_TIMEOUT
from ...core.logging import get_logger
from ...core.telemetry import get_telemetry
from .classifier import classify_socket_error, classify_status, deadline_expired, premature_close
from .deadline import Deadline
from .models import Established, Failed, ProxyEndpoint, TargetAddress, TunnelOutcome
from .parser import ParsedResponse, ResponseParser
from .request import build_connect_request
from .stream import TunnelSocket

logger = get_logger(__name__)
telemetry = get_telemetry()

# (address, timeout) -> connected socket
Connector = Callable[[tuple, float], socket.socket]


def _default_connector(address: tuple, timeout: float) -> socket.socket:
    return socket.create_connection(address, timeout=timeout)


class TunnelAttempt:
    """
    One CONNECT handshake against one proxy.

    Owns the socket, the response parser and the deadline until the attempt
    reaches its single terminal transition. That transition is funnelled
    through a Future, so an attempt cannot resolve twice.
    """

    def __init__(
        self,
        target: TargetAddress,
        proxy: ProxyEndpoint,
        timeout: float = DEFAULT_TUNNEL_TIMEOUT,
        connector: Optional[Connector] = None,
        recv_size: int = DEFAULT_RECV_SIZE,
    ):
        self.target = target
        self.proxy = proxy
        self.deadline = Deadline(timeout)
        self.parser = ResponseParser()
        self.recv_size = recv_size
        self._connector = connector or _default_connector
        self._sock: Optional[socket.socket] = None
        self._outcome: Future = Future()
        self._started_at: Optional[float] = None

    @property
    def done(self) -> bool:
        return self._outcome.done()

    def run(self) -> TunnelOutcome:
        """
        Drive the handshake to completion.

        Returns:
            ``Established`` or ``Failed``; socket and timeout errors are
            reported as ``Failed`` rather than raised.
        """
        if self._started_at is not None:
            raise RuntimeError("Tunnel attempt already ran")
        self._started_at = time.monotonic()
        self.deadline.start()

        try:
            self._handshake()
        except OSError as e:
            logger.debug(f"Socket error: {e!r}")
            self._fail(classify_socket_error(e))
        finally:
            if not self._outcome.done():
                # Non-socket error on its way out: release the socket first
                self._close_socket()
                self.deadline.cancel()

        return self._outcome.result()

    def _time_left(self) -> Optional[float]:
        """Seconds left on the deadline, or None after failing the attempt on expiry"""
        remaining = self.deadline.remaining()
        if remaining <= 0:
            self._fail(deadline_expired(self.deadline.seconds))
            return None
        return remaining

    def _handshake(self) -> None:
        logger.info(f"Connecting to proxy {self.proxy}...")
        self._sock = self._connector(self.proxy.address, self.deadline.remaining())
        logger.info("Connected to proxy server")

        # A zero timeout would switch the socket to non-blocking mode
        remaining = self._time_left()
        if remaining is None:
            return
        # Bounds sendall; reads below are bounded by the selector
        self._sock.settimeout(remaining)
        logger.debug(f"Sending HTTP CONNECT request for {self.target} to proxy...")
        self._sock.sendall(build_connect_request(self.target, self.proxy.credential))

        with selectors.DefaultSelector() as selector:
            selector.register(self._sock, selectors.EVENT_READ)
            while True:
                remaining = self._time_left()
                if remaining is None:
                    return
                if not selector.select(remaining):
                    continue

                chunk = self._sock.recv(self.recv_size)
                if not chunk:
                    logger.info("Proxy connection ended")
                    self._fail(premature_close(self.parser.buffered))
                    return

                response = self.parser.feed(chunk)
                if response is None:
                    continue

                logger.debug(f"Proxy response headers: {response.header_block!r}")
                selector.unregister(self._sock)
                if response.ok:
                    self._succeed(response)
                else:
                    self._fail(classify_status(response.status_code, response.status_line))
                return

    def _succeed(self, response: ParsedResponse) -> None:
        # Ownership moves to the caller; hand it over in blocking mode
        self._sock.settimeout(None)
        sock, self._sock = self._sock, None
        logger.info(f"HTTP CONNECT successful, tunnel to {self.target} established")
        self._complete(Established(
            stream=TunnelSocket(sock, response.trailing),
            trailing_bytes=response.trailing,
            status_line=response.status_line,
        ))

    def _fail(self, outcome: Failed) -> None:
        self._close_socket()
        logger.warning(f"HTTP CONNECT to {self.target} via {self.proxy} failed: {outcome}. {outcome.hint}")
        self._complete(outcome)

    def _complete(self, outcome: TunnelOutcome) -> None:
        self.deadline.cancel()
        # Future.set_result raises InvalidStateError on a second resolution
        self._outcome.set_result(outcome)

        elapsed = time.monotonic() - self._started_at
        tags = {"proxy": str(self.proxy), "target": str(self.target)}
        telemetry.record_metric("tunnel.handshake_seconds", elapsed, tags=tags)
        if outcome.ok:
            telemetry.record_event("tunnel.established", tags)
        else:
            telemetry.record_event("tunnel.failed", {**tags, "reason": outcome.reason.value})

    def _close_socket(self) -> None:
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.debug(f"Error closing proxy socket: {e}")


def establish_tunnel(
    target: TargetAddress,
    proxy: ProxyEndpoint,
    timeout: float = DEFAULT_TUNNEL_TIMEOUT,
    connector: Optional[Connector] = None,
) -> TunnelOutcome:
    """
    Open a raw TCP tunnel to ``target`` through an HTTP CONNECT proxy.

    Args:
        target: Host and port the proxy should connect to
        proxy: Proxy endpoint and optional ``user:pass`` credential
        timeout: Seconds allowed for connect plus the full response header
        connector: Replacement for ``socket.create_connection``

    Returns:
        ``Established`` with a ``TunnelSocket`` now owned by the caller, or
        ``Failed`` with the classified reason (the socket is already closed).

    Raises:
        ConfigError: If target or proxy are invalid
    """
    target.validate()
    proxy.validate()
    return TunnelAttempt(target, proxy, timeout=timeout, connector=connector).run()


def probe_reachability(
    target: TargetAddress,
    proxy: ProxyEndpoint,
    timeout: float = DEFAULT_TUNNEL_TIMEOUT,
    connector: Optional[Connector] = None,
) -> bool:
    """
    Check whether ``target`` can be reached through ``proxy``.

    Performs the full handshake and always closes the socket afterwards.

    Returns:
        True iff the proxy answered 200
    """
    outcome = establish_tunnel(target, proxy, timeout=timeout, connector=connector)
    if isinstance(outcome, Established):
        outcome.stream.close()
    return outcome.ok


class TunnelService:
    """
    Runs handshakes against one proxy on a thread pool.

    Attempts share nothing but the proxy settings, which are immutable.
    """

    def __init__(
        self,
        proxy: ProxyEndpoint,
        timeout: float = DEFAULT_TUNNEL_TIMEOUT,
        max_workers: int = DEFAULT_MAX_WORKERS,
        connector: Optional[Connector] = None,
    ):
        proxy.validate()
        self.proxy = proxy
        self.timeout = timeout
        self.connector = connector
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"TunnelService-{proxy.host}",
        )

    def establish(self, target: TargetAddress) -> TunnelOutcome:
        return establish_tunnel(target, self.proxy, timeout=self.timeout, connector=self.connector)

    def submit(self, target: TargetAddress) -> "Future[TunnelOutcome]":
        return self._executor.submit(self.establish, target)

    def probe(self, target: TargetAddress) -> "Future[bool]":
        return self._executor.submit(
            probe_reachability, target, self.proxy, self.timeout, self.connector
        )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "TunnelService":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.shutdown()
