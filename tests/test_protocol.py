import io

import pytest

from pktftp.protocol import (
    CHUNK_SIZE,
    MARKER,
    MAX_ARGUMENT,
    Chunk,
    Command,
    ProtocolError,
    Status,
    decode_chunk,
    decode_command,
    decode_status,
    encode_chunk,
    encode_command,
    encode_status,
    iter_chunks,
)


def test_ls_command_wire_bytes():
    assert encode_command(Command.LS) == b"\xc0\x01\x00\xc0"


def test_download_command_wire_bytes():
    assert encode_command(Command.DOWNLOAD, "a.txt") == b"\xc0\x03\x06a.txt\x00\xc0"


def test_ok_status_wire_bytes():
    assert encode_status(Status.OK) == b"\xc0\x00\xc0"


@pytest.mark.parametrize("command", list(Command))
def test_command_without_argument_round_trip(command):
    assert decode_command(encode_command(command)) == (command, None)


@pytest.mark.parametrize("name", ["report.txt", "x", "notes with spaces.md", "ünïcode.bin"])
def test_command_with_argument_round_trip(name):
    assert decode_command(encode_command(Command.UPLOAD, name)) == (Command.UPLOAD, name)


def test_command_packet_is_framed():
    packet = encode_command(Command.UPLOAD, "file.dat")
    assert packet[0] == MARKER
    assert packet[-1] == MARKER
    assert packet[2] == len("file.dat") + 1


def test_argument_length_limit():
    longest = "a" * (MAX_ARGUMENT - 1)
    assert decode_command(encode_command(Command.DOWNLOAD, longest))[1] == longest
    with pytest.raises(ProtocolError):
        encode_command(Command.DOWNLOAD, "a" * MAX_ARGUMENT)


def test_argument_with_nul_rejected():
    with pytest.raises(ProtocolError):
        encode_command(Command.UPLOAD, "bad\0name")


@pytest.mark.parametrize(
    "packet",
    [
        b"\x00\x01\x00\xc0",
        b"\xc0\x01\x00\x00",
        b"\xc0\x09\x00\xc0",
        b"\xc0\xc0",
        b"\xc0\x03\x20abc\xc0",
    ],
)
def test_decode_command_rejects_malformed(packet):
    with pytest.raises(ProtocolError):
        decode_command(packet)


@pytest.mark.parametrize("status", list(Status))
def test_status_round_trip(status):
    assert decode_status(encode_status(status)) is status


@pytest.mark.parametrize(
    "packet",
    [b"\x00\x00\xc0", b"\xc0\x00\x00", b"\xc0\x05\xc0", b"\xc0\x00\x00\xc0", b"\xc0"],
)
def test_decode_status_rejects_malformed(packet):
    with pytest.raises(ProtocolError):
        decode_status(packet)


@pytest.mark.parametrize("last", [True, False])
def test_chunk_round_trip(last):
    payload = bytes(range(256)) * 3
    chunk = decode_chunk(encode_chunk(Command.DOWNLOAD, payload, last))
    assert chunk == Chunk(Command.DOWNLOAD, payload, last)


def test_chunk_header_layout():
    packet = encode_chunk(Command.UPLOAD, b"hello", True)
    assert packet[0] == MARKER
    assert packet[1] == Command.UPLOAD
    assert packet[2] == 1
    assert packet[3:-1] == b"hello"
    assert packet[-1] == MARKER


def test_payload_containing_marker_survives():
    payload = bytes([MARKER]) * 10
    assert decode_chunk(encode_chunk(Command.UPLOAD, payload, False)).payload == payload


def test_chunk_payload_limit():
    full = encode_chunk(Command.DOWNLOAD, b"z" * CHUNK_SIZE, False)
    assert decode_chunk(full).payload == b"z" * CHUNK_SIZE
    with pytest.raises(ProtocolError):
        encode_chunk(Command.DOWNLOAD, b"z" * (CHUNK_SIZE + 1), False)


@pytest.mark.parametrize("packet", [b"\xc0\x02\x01", b"\x01\x02\x01\xc0", b"\xc0\x07\x01\xc0"])
def test_decode_chunk_rejects_malformed(packet):
    with pytest.raises(ProtocolError):
        decode_chunk(packet)


def test_iter_chunks_reassembles_stream():
    data = bytes(i % 251 for i in range(CHUNK_SIZE * 2 + 460))
    chunks = list(iter_chunks(Command.UPLOAD, io.BytesIO(data)))
    assert b"".join(c.payload for c in chunks) == data
    assert [c.last for c in chunks[:-1]] == [False] * (len(chunks) - 1)
    assert chunks[-1].last
    assert all(len(c.payload) == CHUNK_SIZE for c in chunks[:-1])
    assert all(c.command is Command.UPLOAD for c in chunks)


def test_iter_chunks_empty_stream_gives_one_empty_last_chunk():
    chunks = list(iter_chunks(Command.DOWNLOAD, io.BytesIO(b"")))
    assert chunks == [Chunk(Command.DOWNLOAD, b"", True)]


def test_iter_chunks_exact_multiple_ends_with_empty_chunk():
    data = b"q" * CHUNK_SIZE
    chunks = list(iter_chunks(Command.DOWNLOAD, io.BytesIO(data)))
    assert chunks[0] == Chunk(Command.DOWNLOAD, data, False)
    assert chunks[-1] == Chunk(Command.DOWNLOAD, b"", True)
    assert b"".join(c.payload for c in chunks) == data