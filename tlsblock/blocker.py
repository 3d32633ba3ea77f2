"""Watch an interface for TLS ClientHellos and reset matching connections."""

from __future__ import annotations

import contextlib
import socket
import struct
import sys
from dataclasses import dataclass

try:
    import fcntl
except ImportError:  # not a Unix system
    fcntl = None

from .headers import (
    EtherType,
    EthHdr,
    IpHdr,
    IpProtocol,
    TcpFlag,
    TcpHdr,
    ip_checksum,
    tcp_checksum,
)
from .mac import Mac
from .sni import ConnKey, FragmentAssembler

USAGE = "syntax : tls-block <interface> <server_name>\nsample : tls-block wlan0 naver.com\n"

_TLS_HANDSHAKE = 0x16
_RST_TTL = 128
_RST_WINDOW = 60000
_SNAPLEN = 65535

_SIOCGIFHWADDR = 0x8927
_ETH_P_ALL = 0x0003
_SOL_PACKET = 263
_PACKET_ADD_MEMBERSHIP = 1
_PACKET_MR_PROMISC = 1


@dataclass(frozen=True)
class CapturedSegment:
    """A TCP segment with payload, taken from an Ethernet frame."""

    eth: EthHdr
    ip: IpHdr
    tcp: TcpHdr
    payload: bytes

    @property
    def key(self):
        return ConnKey(self.ip.src, self.tcp.sport, self.ip.dst, self.tcp.dport)

    @property
    def is_record(self):
        """True when the payload may start a TLS handshake record."""
        return len(self.payload) > 5 and self.payload[0] == _TLS_HANDSHAKE


def parse_frame(frame):
    """Return the IPv4/TCP segment carried by a frame, or None if it has no payload."""
    frame = bytes(frame)
    try:
        eth = EthHdr.parse(frame)
        if eth.ether_type != EtherType.IP4:
            return None
        ip = IpHdr.parse(frame[EthHdr.SIZE :])
        if ip.protocol != IpProtocol.TCP:
            return None
        ip_length = ip.header_length()
        tcp = TcpHdr.parse(frame[EthHdr.SIZE + ip_length :])
    except ValueError:
        return None
    tcp_length = tcp.header_length()
    if ip.total_length < ip_length + tcp_length:
        return None
    payload_length = ip.total_length - ip_length - tcp_length
    if payload_length == 0:
        return None
    start = EthHdr.SIZE + ip_length + tcp_length
    payload = frame[start : start + payload_length]
    if len(payload) < payload_length:
        return None
    return CapturedSegment(eth, ip, tcp, payload)


def build_server_rst(frame, segment, my_mac):
    """Build the RST+ACK frame sent on towards the server."""
    ip_length = segment.ip.header_length()
    tcp_length = segment.tcp.header_length()
    ip_start = EthHdr.SIZE
    tcp_start = ip_start + ip_length
    total = tcp_start + tcp_length
    out = bytearray(bytes(frame)[:total])

    eth = EthHdr.parse(out)
    eth.smac = Mac(my_mac)
    out[:EthHdr.SIZE] = eth.pack()

    ip = IpHdr.parse(out[ip_start:])
    ip.total_length = ip_length + tcp_length
    ip.checksum = 0
    out[ip_start : ip_start + IpHdr.SIZE] = ip.pack()
    ip.checksum = ip_checksum(out[ip_start : ip_start + IpHdr.SIZE])
    out[ip_start : ip_start + IpHdr.SIZE] = ip.pack()

    tcp = TcpHdr.parse(out[tcp_start:])
    tcp.seq = (segment.tcp.seq + len(segment.payload)) & 0xFFFFFFFF
    tcp.flags = TcpFlag.RST | TcpFlag.ACK
    tcp.checksum = 0
    out[tcp_start : tcp_start + TcpHdr.SIZE] = tcp.pack()
    tcp.checksum = tcp_checksum(ip.src, ip.dst, out[tcp_start:total])
    out[tcp_start : tcp_start + TcpHdr.SIZE] = tcp.pack()
    return bytes(out)


def build_client_rst(segment):
    """Build the RST+ACK IPv4 packet sent back to the client."""
    ip_length = segment.ip.header_length()
    tcp_length = segment.tcp.header_length()
    total = ip_length + tcp_length
    out = bytearray(total)

    ip = IpHdr(
        version=4,
        ihl=ip_length // 4,
        tos=0,
        total_length=total,
        identification=0,
        fragment_offset=0,
        ttl=_RST_TTL,
        protocol=IpProtocol.TCP,
        checksum=0,
        src=segment.ip.dst,
        dst=segment.ip.src,
    )
    out[: IpHdr.SIZE] = ip.pack()
    ip.checksum = ip_checksum(out[: IpHdr.SIZE])
    out[: IpHdr.SIZE] = ip.pack()

    tcp = TcpHdr(
        sport=segment.tcp.dport,
        dport=segment.tcp.sport,
        seq=segment.tcp.ack,
        ack=(segment.tcp.seq + len(segment.payload)) & 0xFFFFFFFF,
        data_offset=tcp_length // 4,
        reserved=0,
        flags=TcpFlag.RST | TcpFlag.ACK,
        window=_RST_WINDOW,
        checksum=0,
        urgent=0,
    )
    out[ip_length : ip_length + TcpHdr.SIZE] = tcp.pack()
    tcp.checksum = tcp_checksum(ip.src, ip.dst, out[ip_length:total])
    out[ip_length : ip_length + TcpHdr.SIZE] = tcp.pack()
    return bytes(out)


def interface_mac(interface):
    """Return the hardware address of a network interface."""
    if fcntl is None:
        raise OSError("reading interface addresses is not supported on this platform")
    request = struct.pack("256s", interface.encode()[:15])
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        result = fcntl.ioctl(sock.fileno(), _SIOCGIFHWADDR, request)
    return Mac(result[18:24])


def _open_capture(interface):
    family = getattr(socket, "AF_PACKET", None)
    if family is None:
        raise OSError("packet capture is not supported on this platform")
    sock = socket.socket(family, socket.SOCK_RAW, socket.htons(_ETH_P_ALL))
    try:
        sock.bind((interface, 0))
        membership = struct.pack(
            "iHH8s", socket.if_nametoindex(interface), _PACKET_MR_PROMISC, 0, b""
        )
        sock.setsockopt(_SOL_PACKET, _PACKET_ADD_MEMBERSHIP, membership)
    except BaseException:
        sock.close()
        raise
    return sock


def _send_client_rst(packet, segment):
    with contextlib.suppress(OSError):
        with socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_RAW) as raw:
            raw.setsockopt(socket.IPPROTO_IP, socket.IP_HDRINCL, 1)
            raw.sendto(packet, (str(segment.ip.src), segment.tcp.sport))


def run(interface, pattern, out=None):
    """Block TLS connections whose server name contains ``pattern``.

    Returns the number of connections reset when capturing stops.
    """
    out = sys.stdout if out is None else out
    with _open_capture(interface) as capture:
        my_mac = interface_mac(interface)
        print(f'Blocking "{pattern}" on {interface}', file=out, flush=True)
        assembler = FragmentAssembler()
        count = 0
        while True:
            try:
                frame = capture.recv(_SNAPLEN)
            except OSError:
                break
            segment = parse_frame(frame)
            if segment is None:
                continue
            host = assembler.feed(segment.key, segment.payload, segment.is_record)
            if host and pattern in host:
                count += 1
                print(f" [{count}] {host}", file=out, flush=True)
                try:
                    capture.send(build_server_rst(frame, segment, my_mac))
                except OSError as exc:
                    print(f"send error: {exc}", file=sys.stderr)
                _send_client_rst(build_client_rst(segment), segment)
    return count


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        print(USAGE, end="")
        return 0
    interface, pattern = args
    try:
        run(interface, pattern)
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        print(f"tls-block: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())