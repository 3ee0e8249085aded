# pktftp

A small file transfer client and server that talk over TCP with their own
packet format. It is not compatible with standard FTP clients or servers.

## The protocol

Every packet starts and ends with the byte `0xC0`.

* Command: `C0 | command | argument length | argument | C0`. The commands are
  `CLOSE` (0), `LS` (1), `UPLOAD` (2) and `DOWNLOAD` (3). A file name argument
  is NUL-terminated and its length counts the NUL; it may be at most 255 bytes.
* Status reply: `C0 | status | C0`, where the status is `OK` (0) or `ERROR` (1).
* Data chunk: `C0 | command | last flag | payload | C0`. A payload holds at
  most 1020 bytes and the flag is 1 on the final chunk. A file whose size is a
  multiple of 1020 bytes (an empty file included) ends with an empty final
  chunk.

## Install

    pip install .

## Running the server

    pktftp-server <bind-ip> <port> [-r ROOT]

The server listens on the given address and serves each connected client on
its own thread. Clients can list the files in `ROOT` (the current directory
by default), download files from it and upload files into it. Stop it with
Ctrl-C.

## Running the client

    pktftp-client <server-ip> <port> [-d LOCAL_DIR]

The client connects and shows a menu:

    0 - quit
    1 - list files on the server
    2 - upload a file to the server
    3 - download a file from the server

Uploads are read from `LOCAL_DIR` (the current directory by default) and
downloads are written to it. Choosing 0, or reaching the end of input, asks
the server to end the session and exits.

## Using it from Python

```python
from pktftp.transport import connect_server
from pktftp.client import FtpClient

with connect_server("127.0.0.1", 2121) as channel:
    client = FtpClient(channel, "downloads")
    print(client.list_files())           # list of file names
    client.download("notes.txt")         # returns the number of bytes written
    client.upload("report.pdf")          # returns the number of bytes sent
    client.close()
```

`FtpClient.download` raises `FileNotFoundError` when the server cannot open
the file, `FtpClient.upload` raises `PermissionError` when the server refuses
it, and a lost connection raises `ConnectionError`.

To run a server from Python, `pktftp.server.serve(host, port, root)` listens
and starts a `ClientSession` per connection. A `ClientSession` can also be
driven directly over any `pktftp.transport.Channel`: `run()` serves commands
until the client leaves, and `handle_next()` serves a single command.

The packet encoding in `pktftp.protocol` can be used by itself:
`encode_command`, `decode_command`, `encode_status`, `decode_status`,
`encode_chunk`, `decode_chunk` and `iter_chunks`, together with the
`Command`, `Status` and `Chunk` types. Malformed packets raise
`ProtocolError`.

## What it does not do

* There is no login, authentication or encryption; anyone who can reach the
  server can read and write files in its root directory.
* File names are joined to the server's root directory as given, without any
  check that they stay inside it.
* A file listing is read in a single receive of at most 1024 bytes, so very
  long listings are cut short.
* There are no directory operations, renames, deletes or resumed transfers.

## Tests

    pip install .[test]
    pytest