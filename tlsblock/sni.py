"""Reassembly of TLS ClientHello records and extraction of the SNI host name."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ip import Ip

_RECORD_HEADER = 5
_HANDSHAKE_HEADER = 4
_CLIENT_HELLO = 0x01
_SERVER_NAME_EXTENSION = 0x0000
_HOST_NAME = 0


def _u16(data, offset):
    return int.from_bytes(data[offset : offset + 2], "big")


def parse24(data):
    """Read a 24-bit big-endian length field."""
    return int.from_bytes(bytes(data[:3]), "big")


def extract_sni(data):
    """Return the server name from a ClientHello body, or "" if there is none.

    ``data`` is the handshake message body that follows the 4-byte
    handshake header.
    """
    data = bytes(data)
    length = len(data)
    if length < 38:
        return ""
    offset = 2 + 32  # client version and random
    offset += 1 + data[offset]  # session id
    if offset + 2 > length:
        return ""
    offset += 2 + _u16(data, offset)  # cipher suites
    if offset >= length:
        return ""
    offset += 1 + data[offset]  # compression methods
    if offset + 2 > length:
        return ""
    end = offset + 2 + _u16(data, offset)
    offset += 2
    while offset + 4 <= end and offset + 4 <= length:
        ext_type = _u16(data, offset)
        ext_length = _u16(data, offset + 2)
        offset += 4
        if (
            ext_type == _SERVER_NAME_EXTENSION
            and ext_length >= 5
            and offset + ext_length <= length
        ):
            name_type = data[offset + 2]
            name_length = _u16(data, offset + 3)
            start = offset + 5
            if name_type == _HOST_NAME and start + name_length <= length:
                return data[start : start + name_length].decode("latin-1")
        offset += ext_length
    return ""


def parse_handshake(data):
    """Return the server name from a whole handshake message, or ""."""
    data = bytes(data)
    if len(data) < _HANDSHAKE_HEADER:
        return ""
    if data[0] != _CLIENT_HELLO:
        return ""
    body_length = parse24(data[1:4])
    if len(data) < _HANDSHAKE_HEADER + body_length:
        return ""
    return extract_sni(data[_HANDSHAKE_HEADER : _HANDSHAKE_HEADER + body_length])


@dataclass(frozen=True, order=True)
class ConnKey:
    """The 4-tuple that identifies one direction of a TCP flow."""

    saddr: Ip
    sport: int
    daddr: Ip
    dport: int


@dataclass
class TlsContext:
    """Reassembly state for one flow."""

    buf: bytearray = field(default_factory=bytearray)
    expect_record: int = 0
    expect_handshake: int = 0
    seen_record: bool = False
    seen_handshake: bool = False
    done: bool = False

    def is_complete(self):
        """True once the whole record announced by the headers has arrived."""
        return (
            self.seen_record
            and self.seen_handshake
            and len(self.buf) == self.expect_record
        )


class FragmentAssembler:
    """Collects TCP payload fragments per flow until a ClientHello is whole."""

    def __init__(self):
        self.contexts: dict[ConnKey, TlsContext] = {}

    def feed(self, key, data, is_record):
        """Add a fragment; return the SNI host once the record is complete, else ""."""
        ctx = self.contexts.setdefault(key, TlsContext())
        if ctx.done:
            return ""
        data = bytes(data)

        if is_record and not ctx.seen_record and len(data) >= _RECORD_HEADER:
            ctx.expect_record = _RECORD_HEADER + _u16(data, 3)
            ctx.seen_record = True
        ctx.buf += data

        header_end = _RECORD_HEADER + _HANDSHAKE_HEADER
        if ctx.seen_record and not ctx.seen_handshake and len(ctx.buf) >= header_end:
            if ctx.buf[_RECORD_HEADER] == _CLIENT_HELLO:
                handshake_length = parse24(ctx.buf[_RECORD_HEADER + 1 : header_end])
                ctx.expect_handshake = handshake_length
                ctx.seen_handshake = True
                ctx.expect_record = header_end + handshake_length

        if ctx.is_complete():
            host = parse_handshake(ctx.buf[_RECORD_HEADER:])
            ctx.done = True
            del self.contexts[key]
            return host
        return ""