"""Packet framing for the game server: a fixed header and an optional payload."""

from __future__ import annotations

import socket
import struct
import time
from dataclasses import dataclass
from enum import IntEnum

_HEADER = struct.Struct("!BBBxH2xII")
HEADER_SIZE = _HEADER.size
_U32 = 0xFFFFFFFF


class PacketType(IntEnum):
    """Kinds of packet exchanged between clients and the server."""

    NO = 0
    LOGIN = 1
    USERS = 2
    INVITE = 3
    REVOKE = 4
    ACCEPT = 5
    DECLINE = 6
    MOVE = 7
    RESIGN = 8
    ACK = 9
    NACK = 10
    INVITED = 11
    REVOKED = 12
    ACCEPTED = 13
    DECLINED = 14
    MOVED = 15
    RESIGNED = 16
    ENDED = 17


class ProtocolError(Exception):
    """Raised when a packet cannot be sent or received."""


@dataclass
class PacketHeader:
    """The fixed-size header that starts every packet."""

    type: int
    id: int = 0
    role: int = 0
    size: int = 0
    timestamp_sec: int = 0
    timestamp_nsec: int = 0

    def pack(self) -> bytes:
        """Encode the header in network byte order."""
        try:
            return _HEADER.pack(
                int(self.type),
                self.id,
                self.role,
                self.size,
                self.timestamp_sec,
                self.timestamp_nsec,
            )
        except struct.error as exc:
            raise ProtocolError(f"header field out of range: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> PacketHeader:
        """Decode a header from exactly HEADER_SIZE bytes."""
        if len(data) != HEADER_SIZE:
            raise ProtocolError(
                f"header needs {HEADER_SIZE} bytes, got {len(data)}"
            )
        kind, ident, role, size, sec, nsec = _HEADER.unpack(data)
        try:
            kind = PacketType(kind)
        except ValueError:
            pass
        return cls(kind, ident, role, size, sec, nsec)

    @classmethod
    def now(cls, type: int, id: int = 0, role: int = 0, size: int = 0) -> PacketHeader:
        """Build a header stamped with the current monotonic time."""
        sec, nsec = divmod(time.monotonic_ns(), 1_000_000_000)
        return cls(type, id, role, size, sec & _U32, nsec)


def send_packet(sock: socket.socket, header: PacketHeader, payload: bytes | None = None) -> None:
    """Write a header and, when its size is non-zero, that many payload bytes."""
    data = header.pack()
    if header.size > 0:
        body = payload or b""
        if len(body) < header.size:
            raise ProtocolError(
                f"payload has {len(body)} bytes, header announces {header.size}"
            )
        data += bytes(body[: header.size])
    try:
        sock.sendall(data)
    except OSError as exc:
        raise ProtocolError(f"send failed: {exc}") from exc


def _recv_exact(sock: socket.socket, count: int) -> bytes:
    chunks = []
    remaining = count
    while remaining:
        try:
            chunk = sock.recv(remaining)
        except InterruptedError:
            continue
        except OSError as exc:
            raise ProtocolError(f"receive failed: {exc}") from exc
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    data = b"".join(chunks)
    if len(data) != count:
        raise ProtocolError(f"connection closed after {len(data)} of {count} bytes")
    return data


def recv_packet(sock: socket.socket) -> tuple[PacketHeader, bytes | None]:
    """Read one packet, blocking until it arrives; the payload is None when empty."""
    header = PacketHeader.unpack(_recv_exact(sock, HEADER_SIZE))
    payload = _recv_exact(sock, header.size) if header.size else None
    return header, payload