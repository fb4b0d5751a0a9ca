import os
import socket
import threading

from httptunnel.adapters.cli.relay import relay
from httptunnel.domain.tunnel import TunnelSocket


def read_all(fd: int) -> bytes:
    chunks = []
    while True:
        data = os.read(fd, 4096)
        if not data:
            return b"".join(chunks)
        chunks.append(data)


def test_relay_replays_trailing_bytes_then_copies_both_ways():
    left, right = socket.socketpair()
    in_read, in_write = os.pipe()
    out_read, out_write = os.pipe()
    stream = TunnelSocket(left, b"SSH-2.0-server\r\n")
    result = {}

    worker = threading.Thread(
        target=lambda: result.setdefault("received", relay(stream, in_read, out_write)),
        daemon=True,
    )
    worker.start()

    os.write(in_write, b"SSH-2.0-client\r\n")
    os.close(in_write)

    right.settimeout(2)
    data = b""
    while True:
        chunk = right.recv(4096)
        if not chunk:
            break
        data += chunk
    assert data == b"SSH-2.0-client\r\n"

    right.sendall(b"payload")
    right.close()
    worker.join(timeout=5)
    os.close(out_write)

    assert read_all(out_read) == b"SSH-2.0-server\r\npayload"
    assert result["received"] == len(b"SSH-2.0-server\r\npayload")

    stream.close()
    os.close(in_read)
    os.close(out_read)
