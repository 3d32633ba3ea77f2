"""Ethernet, IPv4 and TCP headers and their checksums."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

from .ip import Ip
from .mac import Mac

_ETH = struct.Struct("!6s6sH")
_IP = struct.Struct("!BBHHHBBHII")
_TCP = struct.Struct("!HHIIBBHHH")


class EtherType(enum.IntEnum):
    IP4 = 0x0800
    ARP = 0x0806
    IP6 = 0x86DD


class IpProtocol(enum.IntEnum):
    ICMP = 1
    IGMP = 2
    TCP = 6
    UDP = 17
    SCTP = 132


class TcpFlag(enum.IntFlag):
    URG = 0x20
    ACK = 0x10
    PSH = 0x08
    RST = 0x04
    SYN = 0x02
    FIN = 0x01


def _need(data, size, what):
    if len(data) < size:
        raise ValueError(f"{what} needs {size} bytes, got {len(data)}")


@dataclass
class EthHdr:
    """An Ethernet II header."""

    dmac: Mac
    smac: Mac
    ether_type: int

    SIZE = _ETH.size

    @classmethod
    def parse(cls, data):
        _need(data, cls.SIZE, "Ethernet header")
        dmac, smac, ether_type = _ETH.unpack_from(data)
        return cls(Mac(dmac), Mac(smac), ether_type)

    def pack(self):
        return _ETH.pack(bytes(self.dmac), bytes(self.smac), self.ether_type)


@dataclass
class IpHdr:
    """The fixed 20-byte part of an IPv4 header."""

    version: int
    ihl: int
    tos: int
    total_length: int
    identification: int
    fragment_offset: int
    ttl: int
    protocol: int
    checksum: int
    src: Ip
    dst: Ip

    SIZE = _IP.size

    @classmethod
    def parse(cls, data):
        _need(data, cls.SIZE, "IPv4 header")
        v_hl, tos, length, ident, off, ttl, proto, checksum, sip, dip = _IP.unpack_from(data)
        return cls(
            version=v_hl >> 4,
            ihl=v_hl & 0x0F,
            tos=tos,
            total_length=length,
            identification=ident,
            fragment_offset=off,
            ttl=ttl,
            protocol=proto,
            checksum=checksum,
            src=Ip(sip),
            dst=Ip(dip),
        )

    def pack(self):
        return _IP.pack(
            (self.version & 0x0F) << 4 | (self.ihl & 0x0F),
            self.tos,
            self.total_length,
            self.identification,
            self.fragment_offset,
            self.ttl,
            self.protocol,
            self.checksum,
            int(self.src),
            int(self.dst),
        )

    def header_length(self):
        """Header length in bytes, options included."""
        return self.ihl * 4


@dataclass
class TcpHdr:
    """The fixed 20-byte part of a TCP header."""

    sport: int
    dport: int
    seq: int
    ack: int
    data_offset: int
    reserved: int
    flags: int
    window: int
    checksum: int
    urgent: int

    SIZE = _TCP.size

    @classmethod
    def parse(cls, data):
        _need(data, cls.SIZE, "TCP header")
        sport, dport, seq, ack, off_rsvd, flags, win, checksum, urp = _TCP.unpack_from(data)
        return cls(
            sport=sport,
            dport=dport,
            seq=seq,
            ack=ack,
            data_offset=off_rsvd >> 4,
            reserved=off_rsvd & 0x0F,
            flags=flags,
            window=win,
            checksum=checksum,
            urgent=urp,
        )

    def pack(self):
        return _TCP.pack(
            self.sport,
            self.dport,
            self.seq,
            self.ack,
            (self.data_offset & 0x0F) << 4 | (self.reserved & 0x0F),
            self.flags,
            self.window,
            self.checksum,
            self.urgent,
        )

    def header_length(self):
        """Header length in bytes, options included."""
        return self.data_offset * 4


def _word_sum(data):
    if len(data) % 2:
        data = bytes(data) + b"\x00"
    return sum(word for (word,) in struct.iter_unpack("!H", data))


def ip_checksum(header):
    """Checksum of an IPv4 header; the stored checksum field is ignored."""
    header = bytearray(header)
    _need(header, IpHdr.SIZE, "IPv4 header")
    header[10:12] = b"\x00\x00"
    total = _word_sum(header)
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


def tcp_checksum(source, destination, segment):
    """Checksum of a TCP segment (header and payload) with its IPv4 pseudo-header.

    The stored checksum field is ignored.
    """
    segment = bytearray(segment)
    _need(segment, TcpHdr.SIZE, "TCP segment")
    segment[16:18] = b"\x00\x00"
    total = _word_sum(segment)
    for address in (int(Ip(source)), int(Ip(destination))):
        total += (address >> 16) + (address & 0xFFFF)
    total += len(segment) + IpProtocol.TCP
    if total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF