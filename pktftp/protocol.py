"""Wire format for the packet-framed file transfer protocol.

Every packet starts and ends with the marker byte ``0xC0``.

* Command packet: ``C0 <command> <arg length> <argument bytes> C0``.
  Filename arguments are NUL-terminated and the length counts the NUL.
* Status packet: ``C0 <status> C0``.
* Data chunk: ``C0 <command> <last flag> <payload> C0``. The payload is at
  most :data:`CHUNK_SIZE` bytes. The flag is 1 on the final chunk of a file.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import BinaryIO, Iterator

MARKER = 0xC0
CHUNK_SIZE = 1020
PACKET_SIZE = CHUNK_SIZE + 4
MAX_ARGUMENT = 255

_MARKER_BYTE = bytes([MARKER])
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class Command(enum.IntEnum):
    """Command numbers carried in the second byte of a packet."""

    CLOSE = 0
    LS = 1
    UPLOAD = 2
    DOWNLOAD = 3


class Status(enum.IntEnum):
    """Reply codes sent in status packets."""

    OK = 0
    ERROR = 1


class ProtocolError(ValueError):
    """Raised when a packet is malformed or cannot be encoded."""


@dataclass(frozen=True)
class Chunk:
    """One piece of file data as carried on the wire."""

    command: Command
    payload: bytes
    last: bool


def _check_framing(packet: bytes, minimum: int) -> None:
    if len(packet) < minimum:
        raise ProtocolError(f"packet too short: {len(packet)} bytes")
    if packet[0] != MARKER or packet[-1] != MARKER:
        raise ProtocolError("packet is not framed by 0xC0 markers")


def _to_command(value: int) -> Command:
    try:
        return Command(value)
    except ValueError:
        raise ProtocolError(f"unknown command number {value}") from None


def encode_command(command: Command, argument: str | None = None) -> bytes:
    """Build a command packet, with an optional NUL-terminated argument."""
    command = Command(command)
    if argument is None:
        body = b""
    else:
        if "\0" in argument:
            raise ProtocolError("argument must not contain NUL characters")
        body = argument.encode(_ENCODING, _ERRORS) + b"\0"
    if len(body) > MAX_ARGUMENT:
        raise ProtocolError(
            f"argument of {len(body)} bytes exceeds the {MAX_ARGUMENT}-byte limit"
        )
    return bytes([MARKER, command, len(body)]) + body + _MARKER_BYTE


def decode_command(packet: bytes) -> tuple[Command, str | None]:
    """Parse a command packet into its command and argument (or ``None``)."""
    _check_framing(packet, 4)
    command = _to_command(packet[1])
    length = packet[2]
    if length == 0:
        return command, None
    end = 3 + length
    if end > len(packet) - 1:
        raise ProtocolError("argument length runs past the end of the packet")
    raw = packet[3:end].split(b"\0", 1)[0]
    return command, raw.decode(_ENCODING, _ERRORS)


def encode_status(status: Status) -> bytes:
    """Build a three-byte status packet."""
    return bytes([MARKER, Status(status), MARKER])


def decode_status(packet: bytes) -> Status:
    """Parse a three-byte status packet."""
    _check_framing(packet, 3)
    if len(packet) != 3:
        raise ProtocolError(f"status packet must be 3 bytes, got {len(packet)}")
    try:
        return Status(packet[1])
    except ValueError:
        raise ProtocolError(f"unknown status code {packet[1]}") from None


def encode_chunk(command: Command, payload: bytes, last: bool) -> bytes:
    """Build a data chunk packet."""
    command = Command(command)
    if len(payload) > CHUNK_SIZE:
        raise ProtocolError(
            f"payload of {len(payload)} bytes exceeds the {CHUNK_SIZE}-byte limit"
        )
    return bytes([MARKER, command, 1 if last else 0]) + bytes(payload) + _MARKER_BYTE


def decode_chunk(packet: bytes) -> Chunk:
    """Parse a data chunk packet."""
    _check_framing(packet, 4)
    if len(packet) > PACKET_SIZE:
        raise ProtocolError(f"chunk packet of {len(packet)} bytes is too large")
    return Chunk(
        command=_to_command(packet[1]),
        payload=bytes(packet[3:-1]),
        last=packet[2] == 1,
    )


def iter_chunks(command: Command, stream: BinaryIO) -> Iterator[Chunk]:
    """Split a binary stream into chunks, flagging the final one.

    A short read ends the transfer, so a stream whose size is a multiple of
    :data:`CHUNK_SIZE` (including an empty one) ends with an empty last chunk.
    """
    command = Command(command)
    while True:
        data = stream.read(CHUNK_SIZE) or b""
        last = len(data) < CHUNK_SIZE
        yield Chunk(command=command, payload=data, last=last)
        if last:
            return