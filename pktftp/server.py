"""Server side of the packet-framed file transfer protocol."""

from __future__ import annotations

import argparse
import os
import threading
from pathlib import Path

from .protocol import (
    MARKER,
    PACKET_SIZE,
    Chunk,
    Command,
    ProtocolError,
    Status,
    decode_chunk,
    decode_command,
    decode_status,
    encode_chunk,
    encode_status,
    iter_chunks,
)
from .transport import Channel, open_listener

_COMMAND_LIMIT = 100
_STATUS_SIZE = 3
_CHUNK_HEADER = 3


class ClientSession:
    """Serves the commands of one connected client from the ``root`` directory."""

    def __init__(self, channel: Channel, client_ip: str, root: str | Path = ".") -> None:
        self.channel = channel
        self.client_ip = client_ip
        self.root = Path(root)

    def _log(self, message: str) -> None:
        print(f"[{self.client_ip}] {message}")

    def _recv_exact(self, size: int) -> bytes:
        buffer = bytearray()
        while len(buffer) < size:
            part = self.channel.recv(size - len(buffer))
            if not part:
                raise ConnectionError("connection closed by client")
            buffer += part
        return bytes(buffer)

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
                raise ConnectionError("connection closed by client")
            body += part
        return decode_chunk(header + bytes(body))

    def handle_next(self) -> bool:
        """Serve one command; return ``False`` once the session is over."""
        packet = self.channel.recv(_COMMAND_LIMIT)
        if not packet:
            self._log("connection closed by peer")
            return False
        try:
            command, argument = decode_command(packet)
        except ProtocolError as exc:
            self._log(f"ignoring malformed packet: {exc}")
            return True

        if command is Command.CLOSE:
            self._log("close request received")
            self.handle_close()
            return False
        if command is Command.LS:
            self._log("file list request received")
            self.handle_list()
        elif command is Command.UPLOAD:
            self._log(f"upload request received: {argument}")
            self.handle_upload(argument or "")
        elif command is Command.DOWNLOAD:
            self._log(f"download request received: {argument}")
            self.handle_download(argument or "")
        return True

    def handle_list(self) -> Status:
        """Reply with a status and, on success, the newline-terminated file names."""
        self._log("reading file list...")
        try:
            names = [name for name in os.listdir(self.root) if name not in (".", "..")]
        except OSError as exc:
            self._log(f"error: cannot open directory {self.root}: {exc}")
            self.channel.send(encode_status(Status.ERROR))
            return Status.ERROR
        self._log("file list read")
        self.channel.send(encode_status(Status.OK))
        listing = "".join(f"{name}\n" for name in names)
        self.channel.send(listing.encode("utf-8", "surrogateescape"))
        return Status.OK

    def handle_download(self, filename: str) -> Status:
        """Reply with a status and, on success, the file's contents in chunks."""
        path = self.root / filename
        self._log(f"download of {filename}, path {path}")
        try:
            source = path.open("rb")
        except OSError as exc:
            self._log(f"cannot open file {path}: {exc}")
            self.channel.send(encode_status(Status.ERROR))
            return Status.ERROR
        with source:
            self._log("file opened, sending...")
            self.channel.send(encode_status(Status.OK))
            total = 0
            for chunk in iter_chunks(Command.DOWNLOAD, source):
                self.channel.send(encode_chunk(chunk.command, chunk.payload, chunk.last))
                total += len(chunk.payload)
        self._log(f"file sent, {total} bytes in total")
        return Status.OK

    def handle_upload(self, filename: str) -> Status:
        """Create the file, reply with a status and receive the client's chunks."""
        path = self.root / filename
        self._log(f"upload of {filename}, path {path}")
        try:
            target = path.open("wb")
        except OSError as exc:
            self._log(f"cannot create file {path}: {exc}")
            self.channel.send(encode_status(Status.ERROR))
            return Status.ERROR
        with target:
            self._log("file created, receiving...")
            self.channel.send(encode_status(Status.OK))
            reply = decode_status(self._recv_exact(_STATUS_SIZE))
            if reply is not Status.OK:
                self._log("client cancelled the upload")
                return Status.OK
            total = 0
            while True:
                chunk = self._recv_chunk()
                target.write(chunk.payload)
                total += len(chunk.payload)
                if chunk.last:
                    break
        self._log(f"file received, {total} bytes in total")
        return Status.OK

    def handle_close(self) -> Status:
        """Acknowledge the client's request to disconnect."""
        self.channel.send(encode_status(Status.OK))
        self._log("disconnecting...")
        return Status.OK

    def run(self) -> None:
        """Serve commands until the client leaves, then close the channel."""
        try:
            while self.handle_next():
                pass
        except (OSError, ProtocolError) as exc:
            self._log(f"session error: {exc}")
        finally:
            self.channel.close()
            self._log("client disconnected")


def serve(host: str, port: int, root: str | Path = ".") -> None:
    """Accept clients forever, serving each one on its own thread."""
    with open_listener(host, port) as listener:
        while True:
            try:
                conn, address = listener.accept()
            except OSError as exc:
                print(f"accept error: {exc}")
                continue
            client_ip = address[0]
            print(f"New client connection: {client_ip}")
            session = ClientSession(Channel(conn), client_ip, root)
            threading.Thread(
                target=session.run, name=f"pktftp-{client_ip}", daemon=True
            ).start()


def main(argv: list[str] | None = None) -> int:
    """Run the file transfer server."""
    parser = argparse.ArgumentParser(
        prog="pktftp-server", description="Serve files to connecting clients."
    )
    parser.add_argument("host", help="IP address to listen on")
    parser.add_argument("port", type=int, help="port to listen on")
    parser.add_argument(
        "-r", "--root", default=".", help="directory whose files are served"
    )
    args = parser.parse_args(argv)
    try:
        serve(args.host, args.port, args.root)
    except OSError as exc:
        print(f"[error] could not start server: {exc}")
        return 1
    except KeyboardInterrupt:
        return 0
    return 0