"""
Socket-like handle for an established tunnel
"""
import socket
import threading
from typing import Optional


class TunnelSocket:
    """
    Socket wrapper returned by a successful handshake.

    Bytes the proxy sent right after its header block are held in a pending
    buffer and served by ``recv`` before anything else is read from the
    socket. Everything else is delegated, so the object can be handed to
    ``paramiko.SSHClient.connect(sock=...)`` in place of a direct connection.
    """

    def __init__(self, sock: socket.socket, pending: bytes = b""):
        self.sock = sock
        self._pending = bytearray(pending)
        self._lock = threading.Lock()
        self._closed = False

    def pending(self) -> int:
        """Number of buffered bytes not yet returned by recv"""
        with self._lock:
            return len(self._pending)

    def recv(self, bufsize: int) -> bytes:
        """Receive data, draining buffered trailing bytes first"""
        with self._lock:
            if self._pending:
                data = bytes(self._pending[:bufsize])
                del self._pending[:bufsize]
                return data
        if self._closed:
            return b""
        return self.sock.recv(bufsize)

    def send(self, data: bytes) -> int:
        return self.sock.send(data)

    def sendall(self, data: bytes) -> None:
        self.sock.sendall(data)

    def settimeout(self, timeout: Optional[float]) -> None:
        self.sock.settimeout(timeout)

    def gettimeout(self) -> Optional[float]:
        return self.sock.gettimeout()

    def setblocking(self, flag: bool) -> None:
        self.sock.setblocking(flag)

    def fileno(self) -> int:
        return self.sock.fileno()

    def getpeername(self):
        return self.sock.getpeername()

    def getsockname(self):
        return self.sock.getsockname()

    def shutdown(self, how: int) -> None:
        self.sock.shutdown(how)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Close the underlying socket; safe to call more than once"""
        if self._closed:
            return
        self._closed = True
        with self._lock:
            self._pending.clear()
        self.sock.close()

    def __enter__(self) -> "TunnelSocket":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"pending={len(self._pending)}"
        return f"<TunnelSocket {state} sock={self.sock!r}>"
