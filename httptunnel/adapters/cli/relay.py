"""
Byte relay between local file descriptors and an established tunnel
"""
import os
import selectors
import socket

from ...core.logging import get_logger
from ...domain.tunnel import TunnelSocket

logger = get_logger(__name__)


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        view = view[written:]


def relay(stream: TunnelSocket, in_fd: int, out_fd: int, bufsize: int = 8192) -> int:
    """
    Copy ``in_fd`` into the tunnel and the tunnel into ``out_fd``.

    Trailing bytes captured during the handshake are written to ``out_fd``
    before anything else. Returns when the tunnel reaches EOF; EOF on
    ``in_fd`` only half-closes the tunnel.

    Returns:
        Number of bytes written to ``out_fd``
    """
    received = 0
    while stream.pending():
        data = stream.recv(bufsize)
        _write_all(out_fd, data)
        received += len(data)

    with selectors.DefaultSelector() as selector:
        selector.register(stream, selectors.EVENT_READ, "tunnel")
        selector.register(in_fd, selectors.EVENT_READ, "input")

        while True:
            for key, _ in selector.select(1.0):
                if key.data == "tunnel":
                    data = stream.recv(bufsize)
                    if not data:
                        logger.debug("Tunnel closed by remote side")
                        return received
                    _write_all(out_fd, data)
                    received += len(data)
                    continue

                data = os.read(in_fd, bufsize)
                if data:
                    stream.sendall(data)
                    continue

                selector.unregister(in_fd)
                try:
                    stream.shutdown(socket.SHUT_WR)
                except OSError as e:
                    logger.debug(f"Half-close failed: {e}")
                    return received
