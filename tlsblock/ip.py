"""IPv4 addresses."""

from __future__ import annotations

import functools
import re

_DOTTED = re.compile(r"\s*(\d+)\.(\d+)\.(\d+)\.(\d+)")


@functools.total_ordering
class Ip:
    """An immutable IPv4 address held as a 32-bit integer in host order."""

    SIZE = 4

    __slots__ = ("_value",)

    def __init__(self, value=0):
        if isinstance(value, Ip):
            number = value._value
        elif isinstance(value, str):
            number = self._parse(value)
        elif isinstance(value, int):
            if not 0 <= value <= 0xFFFFFFFF:
                raise ValueError(f"IPv4 address out of range: {value}")
            number = value
        else:
            raise TypeError(f"cannot build an IPv4 address from {type(value).__name__}")
        self._value = number

    @staticmethod
    def _parse(text):
        match = _DOTTED.match(text)
        if match is None:
            raise ValueError(f"invalid IPv4 address: {text!r}")
        octets = [int(part) for part in match.groups()]
        if any(octet > 0xFF for octet in octets):
            raise ValueError(f"invalid IPv4 address: {text!r}")
        a, b, c, d = octets
        return (a << 24) | (b << 16) | (c << 8) | d

    def __int__(self):
        return self._value

    def __str__(self):
        v = self._value
        return f"{v >> 24 & 0xFF}.{v >> 16 & 0xFF}.{v >> 8 & 0xFF}.{v & 0xFF}"

    def __repr__(self):
        return f"Ip({str(self)!r})"

    def __eq__(self, other):
        if isinstance(other, Ip):
            return self._value == other._value
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == other
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, Ip):
            return self._value < other._value
        return NotImplemented

    def __hash__(self):
        return hash(self._value)

    def is_local_host(self):
        """True for 127.*.*.*."""
        return self._value >> 24 == 0x7F

    def is_broadcast(self):
        """True for 255.255.255.255."""
        return self._value == 0xFFFFFFFF

    def is_multicast(self):
        """True for 224.0.0.0 to 239.255.255.255."""
        return 0xE0 <= self._value >> 24 < 0xF0