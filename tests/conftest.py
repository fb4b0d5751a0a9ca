"""
Scripted proxies for handshake tests
"""
import socket
import threading
import time
from typing import Iterable, Union

import pytest

from httptunnel.core.telemetry import get_telemetry

Step = Union[bytes, threading.Event, None]

CLOSE = None


def _read_request(sock: socket.socket) -> bytes:
    data = b""
    while b"\r\n\r\n" not in data:
        chunk = sock.recv(4096)
        if not chunk:
            break
        data += chunk
    return data


class FakeProxy:
    """
    Proxy living on the far end of a socketpair.

    Each connection reads the CONNECT request, then plays ``script``: bytes
    are sent, an Event is waited on, and CLOSE hangs up.
    """

    def __init__(self, script: Iterable[Step] = ()):
        self.script = list(script)
        self.requests: list[bytes] = []
        self.client_socks: list[socket.socket] = []
        self.addresses: list[tuple] = []
        self.peer_closed = threading.Event()
        self.received = bytearray()
        self._server_socks: list[socket.socket] = []
        self._threads: list[threading.Thread] = []

    def __call__(self, address, timeout):
        client, server = socket.socketpair()
        self.addresses.append(address)
        self.client_socks.append(client)
        self._server_socks.append(server)
        thread = threading.Thread(target=self._serve, args=(server,), daemon=True)
        thread.start()
        self._threads.append(thread)
        return client

    @property
    def client_sock(self) -> socket.socket:
        return self.client_socks[-1]

    def _serve(self, server: socket.socket) -> None:
        self.requests.append(_read_request(server))
        for step in self.script:
            if step is CLOSE:
                server.close()
                return
            if isinstance(step, threading.Event):
                step.wait(5)
            else:
                server.sendall(step)
        # Collect tunnelled bytes until the client side goes away
        try:
            while True:
                data = server.recv(4096)
                if not data:
                    break
                self.received.extend(data)
        except OSError:
            pass
        self.peer_closed.set()

    def wait_received(self, size: int, timeout: float = 2.0) -> bytes:
        deadline = time.monotonic() + timeout
        while len(self.received) < size and time.monotonic() < deadline:
            time.sleep(0.01)
        return bytes(self.received)

    def close(self) -> None:
        for sock in self.client_socks:
            sock.close()
        for thread in self._threads:
            thread.join(timeout=2)
        for sock in self._server_socks:
            sock.close()


@pytest.fixture
def fake_proxy():
    proxies = []

    def factory(*script: Step) -> FakeProxy:
        proxy = FakeProxy(script)
        proxies.append(proxy)
        return proxy

    yield factory

    for proxy in proxies:
        proxy.close()


class LoopbackProxy:
    """Minimal CONNECT proxy on 127.0.0.1 answering with a fixed response"""

    def __init__(self, response: bytes):
        self.response = response
        self.requests: list[bytes] = []
        self._listener = socket.create_server(("127.0.0.1", 0))
        self.port = self._listener.getsockname()[1]
        self._listener.settimeout(0.2)
        self._running = True
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    def _run(self) -> None:
        while self._running:
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            conn.settimeout(None)
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: socket.socket) -> None:
        with conn:
            self.requests.append(_read_request(conn))
            conn.sendall(self.response)
            try:
                while conn.recv(4096):
                    pass
            except OSError:
                pass

    def close(self) -> None:
        self._running = False
        self._listener.close()
        self._thread.join(timeout=2)


@pytest.fixture
def loopback_proxy():
    proxies = []

    def factory(response: bytes = b"HTTP/1.1 200 Connection established\r\n\r\n") -> LoopbackProxy:
        proxy = LoopbackProxy(response)
        proxies.append(proxy)
        return proxy

    yield factory

    for proxy in proxies:
        proxy.close()


@pytest.fixture
def closed_port() -> int:
    """A loopback port nothing listens on"""
    sock = socket.create_server(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture(autouse=True)
def clean_telemetry():
    get_telemetry().clear()
    yield
    get_telemetry().clear()
