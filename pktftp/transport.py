"""TCP plumbing shared by the client and the server."""

from __future__ import annotations

import socket


class Channel:
    """A connected stream socket carrying protocol packets."""

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock

    def send(self, data: bytes) -> int:
        """Send all of ``data`` and return the number of bytes sent."""
        self.sock.sendall(data)
        return len(data)

    def recv(self, limit: int) -> bytes:
        """Receive at most ``limit`` bytes; an empty result means the peer closed."""
        return self.sock.recv(limit)

    def close(self) -> None:
        """Close the underlying socket."""
        self.sock.close()

    def __enter__(self) -> Channel:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def connect_server(host: str, port: int) -> Channel:
    """Open a TCP connection to ``host:port``; raises ``OSError`` on failure."""
    return Channel(socket.create_connection((host, port)))


def open_listener(host: str, port: int, backlog: int = 5) -> socket.socket:
    """Bind a listening TCP socket on ``host:port``; raises ``OSError`` on failure."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    return sock