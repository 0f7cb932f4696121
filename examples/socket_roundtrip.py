"""Example: socket tests run in parallel with splitrun.

Each test opens its own listener on an ephemeral port, so tests in different
worker slices never compete for a port.

Usage:
    Run through the command line::

        $ splitrun --workers 4 examples/socket_roundtrip.py

    Or directly::

        $ python examples/socket_roundtrip.py
"""

from __future__ import annotations

import socket
import threading

from splitrun import Harness


BUFFER_SIZE = 1024
LOCALHOST = '127.0.0.1'


def read_all(conn: socket.socket, buffer_size: int = BUFFER_SIZE) -> bytes:
    """Receive until a read returns fewer bytes than the buffer holds."""
    received = bytearray()
    while True:
        chunk = conn.recv(buffer_size)
        received.extend(chunk)
        if len(chunk) < buffer_size:
            return bytes(received)


def read_exactly(conn: socket.socket, size: int) -> bytes:
    """Receive up to size bytes, stopping early if the peer closes."""
    received = bytearray()
    while len(received) < size:
        chunk = read_all(conn)
        if not chunk:
            break
        received.extend(chunk)
    return bytes(received)


def _listener() -> socket.socket:
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    server.bind((LOCALHOST, 0))
    server.listen()
    return server


def _serve_once(server: socket.socket, reply: bytes | None) -> threading.Thread:
    """Accept one connection in the background and optionally answer it."""

    def _accept() -> None:
        conn, _ = server.accept()
        with conn:
            if reply is not None:
                read_all(conn)
                conn.sendall(reply)

    thread = threading.Thread(target=_accept, daemon=True)
    thread.start()
    return thread


def test_bind_and_close() -> None:
    with _listener() as server:
        assert server.getsockname()[1] != 0, 'listener has no port'


def test_connect_by_ip() -> None:
    with _listener() as server:
        accepting = _serve_once(server, reply=None)
        with socket.create_connection(server.getsockname(), timeout=5):
            pass
        accepting.join(timeout=5)


def test_connect_by_hostname() -> None:
    with _listener() as server:
        accepting = _serve_once(server, reply=None)
        with socket.create_connection(('localhost', server.getsockname()[1]), timeout=5):
            pass
        accepting.join(timeout=5)


def test_write_then_read_back() -> None:
    with _listener() as server:
        accepting = _serve_once(server, reply=b'back')
        with socket.create_connection(server.getsockname(), timeout=5) as client:
            client.sendall(b'a')
            answer = read_all(client)
        accepting.join(timeout=5)
    if answer != b'back':
        msg = f'expected b"back", got {answer!r}'
        raise AssertionError(msg)


def test_read_spans_multiple_buffers() -> None:
    payload = b'x' * (BUFFER_SIZE * 3 + 17)
    with _listener() as server:
        accepting = _serve_once(server, reply=payload)
        with socket.create_connection(server.getsockname(), timeout=5) as client:
            client.sendall(b'ping')
            client.shutdown(socket.SHUT_WR)
            received = read_exactly(client, len(payload))
        accepting.join(timeout=5)
    assert received == payload, 'payload was truncated'


def test_connect_refused() -> None:
    with _listener() as server:
        port = server.getsockname()[1]
    try:
        socket.create_connection((LOCALHOST, port), timeout=1).close()
    except ConnectionRefusedError:
        return
    msg = f'connecting to closed port {port} succeeded'
    raise AssertionError(msg)


if __name__ == '__main__':
    harness = Harness(workers=0)
    for name, func in list(globals().items()):
        if name.startswith('test_') and callable(func):
            harness.register(func)
    summary = harness.run()
    raise SystemExit(0 if summary.all_passed else 1)
