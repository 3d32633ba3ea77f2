"""Ethernet hardware (MAC) addresses."""

from __future__ import annotations

import functools
import random
import string

_HEX_DIGITS = frozenset(string.hexdigits)


@functools.total_ordering
class Mac:
    """An immutable six-octet Ethernet address."""

    SIZE = 6

    __slots__ = ("_octets",)

    def __init__(self, value=None):
        if value is None:
            octets = bytes(self.SIZE)
        elif isinstance(value, Mac):
            octets = value._octets
        elif isinstance(value, str):
            octets = self._parse(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            octets = bytes(value)
            if len(octets) != self.SIZE:
                raise ValueError(
                    f"a MAC address needs {self.SIZE} octets, got {len(octets)}"
                )
        else:
            raise TypeError(f"cannot build a MAC address from {type(value).__name__}")
        self._octets = octets

    @classmethod
    def _parse(cls, text):
        # Separators of any kind are ignored; only the hex digits count.
        digits = "".join(ch for ch in text if ch in _HEX_DIGITS)
        # The last octet may be written with a single digit.
        if len(digits) < cls.SIZE * 2 - 1:
            raise ValueError(f"invalid MAC address: {text!r}")
        return bytes(int(digits[i : i + 2], 16) for i in range(0, cls.SIZE * 2, 2))

    def __str__(self):
        return ":".join(f"{octet:02X}" for octet in self._octets)

    def __repr__(self):
        return f"Mac({str(self)!r})"

    def __bytes__(self):
        return self._octets

    def __eq__(self, other):
        if isinstance(other, Mac):
            return self._octets == other._octets
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self._octets == bytes(other)
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, Mac):
            return self._octets < other._octets
        return NotImplemented

    def __hash__(self):
        return hash(self._octets)

    def is_null(self):
        """True for 00:00:00:00:00:00."""
        return self == self.null_mac()

    def is_broadcast(self):
        """True for FF:FF:FF:FF:FF:FF."""
        return self == self.broadcast_mac()

    def is_multicast(self):
        """True for IPv4 multicast addresses, 01:00:5E:00:00:00 to 01:00:5E:7F:FF:FF."""
        first, second, third, fourth = self._octets[:4]
        return first == 0x01 and second == 0x00 and third == 0x5E and not fourth & 0x80

    @classmethod
    def random_mac(cls):
        """A random address whose first octet has its top bit cleared."""
        octets = bytearray(random.randrange(256) for _ in range(cls.SIZE))
        octets[0] &= 0x7F
        return cls(bytes(octets))

    @classmethod
    def null_mac(cls):
        return cls(bytes(cls.SIZE))

    @classmethod
    def broadcast_mac(cls):
        return cls(b"\xff" * cls.SIZE)