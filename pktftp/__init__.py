"""Packet-framed file transfer client and server over TCP."""

__version__ = "0.1.0"
__all__ = ["protocol", "transport", "client", "server"]