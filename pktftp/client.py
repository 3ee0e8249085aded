"""Interactive client for the packet-framed file transfer protocol."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .protocol import (
    MARKER,
    PACKET_SIZE,
    Chunk,
    Command,
    ProtocolError,
    Status,
    decode_chunk,
    decode_status,
    encode_chunk,
    encode_command,
    encode_status,
    iter_chunks,
)
from .transport import Channel, connect_server

_STATUS_SIZE = 3
_CHUNK_HEADER = 3
_LISTING_LIMIT = 1024
_RULE = "=" * 40
_MENU = "\n".join(
    [
        "",
        "Choose an operation:",
        _RULE,
        "  0 - quit",
        "  1 - list files on the server",
        "  2 - upload a file to the server",
        "  3 - download a file from the server",
        _RULE,
    ]
)


class FtpClient:
    """Issues protocol commands over a connected channel.

    Local files are read from and written to ``local_dir``.
    """

    def __init__(self, channel: Channel, local_dir: str | Path = ".") -> None:
        self.channel = channel
        self.local_dir = Path(local_dir)

    def _recv_exact(self, size: int) -> bytes:
        buffer = bytearray()
        while len(buffer) < size:
            part = self.channel.recv(size - len(buffer))
            if not part:
                raise ConnectionError("connection closed by server")
            buffer += part
        return bytes(buffer)

    def _request(self, command: Command, argument: str | None = None) -> Status:
        self.channel.send(encode_command(command, argument))
        return decode_status(self._recv_exact(_STATUS_SIZE))

    def _recv_chunk(self) -> Chunk:
        header = self._recv_exact(_CHUNK_HEADER)
        remaining = PACKET_SIZE - _CHUNK_HEADER
        if header[2] != 1:
            return decode_chunk(header + self._recv_exact(remaining))
        # The final chunk has no fixed size: read until its closing marker.
        body = bytearray()
        while not body or (body[-1] != MARKER and len(body) < remaining):
            part = self.channel.recv(remaining - len(body))
            if not part:
                raise ConnectionError("connection closed by server")
            body += part
        return decode_chunk(header + bytes(body))

    def list_files(self) -> list[str]:
        """Return the names of the files in the server's directory."""
        if self._request(Command.LS) is not Status.OK:
            raise OSError("server could not list its files")
        listing = self.channel.recv(_LISTING_LIMIT)
        return listing.decode("utf-8", "surrogateescape").splitlines()

    def download(self, filename: str) -> int:
        """Fetch ``filename`` into the local directory; return the bytes written."""
        if self._request(Command.DOWNLOAD, filename) is not Status.OK:
            raise FileNotFoundError(f"server has no file named {filename!r}")
        total = 0
        with (self.local_dir / filename).open("wb") as target:
            while True:
                chunk = self._recv_chunk()
                target.write(chunk.payload)
                total += len(chunk.payload)
                if chunk.last:
                    return total

    def upload(self, filename: str) -> int:
        """Send local ``filename`` to the server; return the bytes sent."""
        if self._request(Command.UPLOAD, filename) is not Status.OK:
            raise PermissionError(f"server refused upload of {filename!r}")
        try:
            source = (self.local_dir / filename).open("rb")
        except OSError:
            self.channel.send(encode_status(Status.ERROR))
            raise
        total = 0
        with source:
            self.channel.send(encode_status(Status.OK))
            for chunk in iter_chunks(Command.UPLOAD, source):
                self.channel.send(encode_chunk(chunk.command, chunk.payload, chunk.last))
                total += len(chunk.payload)
        return total

    def close(self) -> None:
        """Ask the server to end the session and close the channel."""
        if self._request(Command.CLOSE) is not Status.OK:
            raise ConnectionError("server did not acknowledge the disconnect")
        self.channel.close()


def _prompt(text: str) -> str | None:
    print(text, end="", flush=True)
    line = sys.stdin.readline()
    return line if line else None


def _ask_filename(action: str) -> str | None:
    line = _prompt(f"\nName of the file to {action}: ")
    if line is None:
        return None
    words = line.split()
    return words[0] if words else None


def main(argv: list[str] | None = None) -> int:
    """Run the interactive client."""
    parser = argparse.ArgumentParser(
        prog="pktftp-client", description="Transfer files to and from a server."
    )
    parser.add_argument("host", help="server IP address")
    parser.add_argument("port", type=int, help="server port")
    parser.add_argument(
        "-d", "--local-dir", default=".", help="directory for local files"
    )
    args = parser.parse_args(argv)

    print(f"Connecting to server {args.host}:{args.port}...")
    try:
        channel = connect_server(args.host, args.port)
    except OSError as exc:
        print(f"[error] could not connect to server: {exc}")
        return 1
    print("Connected to server")
    print(_RULE)

    client = FtpClient(channel, args.local_dir)
    try:
        while True:
            print(_MENU)
            line = _prompt("Enter an option number: ")
            choice = "0" if line is None else line.strip()
            try:
                if choice == "0":
                    print("\nDisconnecting from server...")
                    try:
                        client.close()
                        print("Disconnected")
                    except (OSError, ProtocolError) as exc:
                        print(f"[error] disconnect failed: {exc}")
                    print("\nGoodbye!")
                    print(_RULE)
                    return 0
                if choice == "1":
                    names = client.list_files()
                    print("\nFiles on server:")
                    print("-" * 40)
                    for name in names:
                        print(name)
                    print("-" * 40)
                elif choice == "2":
                    filename = _ask_filename("upload")
                    if filename is None:
                        print("[error] no file name given")
                        continue
                    sent = client.upload(filename)
                    print(f"Uploaded {filename} ({sent} bytes)")
                elif choice == "3":
                    filename = _ask_filename("download")
                    if filename is None:
                        print("[error] no file name given")
                        continue
                    received = client.download(filename)
                    print(f"Saved {client.local_dir / filename} ({received} bytes)")
                else:
                    print("\n[error] invalid option, try again")
            except ConnectionError as exc:
                print(f"[error] connection lost: {exc}")
                return 1
            except (OSError, ProtocolError) as exc:
                print(f"[error] {exc}")
    finally:
        channel.close()