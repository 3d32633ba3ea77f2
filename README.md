# tlsblock

`tlsblock` watches the Ethernet frames on a network interface, puts the TLS
ClientHello of each TCP flow back together (also when it is split over several
segments) and reads the server name (SNI) from it. When the server name
contains a given pattern, the connection is torn down: a TCP RST+ACK is sent
towards the server on the captured link, and another towards the client
through a raw IP socket.

It needs no packages beyond the Python standard library.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Usage

Capturing frames and sending raw packets needs a Linux host and root
privileges (or the `CAP_NET_RAW` capability). The interface is put into
promiscuous mode while capturing.

```
sudo tls-block <interface> <server_name>
```

For example:

```
sudo tls-block wlan0 example.com
```

The command prints `Blocking "example.com" on wlan0` and then one numbered
line for each connection it resets:

```
 [1] www.example.com
```

The pattern is matched as a plain substring of the server name. The command
runs until it is interrupted (Ctrl-C) or capturing fails. Called with the wrong
number of arguments, it prints the syntax and exits with status 0. If the
capture socket cannot be opened or the interface address cannot be read, it
prints the error and exits with status 1.

## Library

The building blocks can also be used on their own:

- `tlsblock.mac.Mac` holds a six-octet hardware address. It parses text such
  as `"00:11:22:33:44:55"` or `"001122-334455"` (only the hex digits count),
  formats as upper-case colon-separated octets, converts with `bytes()`, orders
  and hashes, and offers `is_null`, `is_broadcast`, `is_multicast`,
  `null_mac`, `broadcast_mac` and `random_mac`.
- `tlsblock.ip.Ip` holds an IPv4 address as a 32-bit integer. It parses
  dotted text, converts with `int()` and `str()`, orders and hashes, and
  offers `is_local_host`, `is_broadcast` and `is_multicast`.
- `tlsblock.headers` parses and packs the fixed parts of Ethernet, IPv4 and
  TCP headers (`EthHdr`, `IpHdr`, `TcpHdr`), names their constants
  (`EtherType`, `IpProtocol`, `TcpFlag`) and computes checksums with
  `ip_checksum(header)` and `tcp_checksum(source, destination, segment)`.
  Both ignore the checksum field already stored in the data.
- `tlsblock.sni` reads the server name from a ClientHello (`extract_sni`
  for the message body, `parse_handshake` for the whole handshake message;
  both return `""` when there is none). `FragmentAssembler.feed` collects
  payload fragments per flow, keyed by `ConnKey`, and returns the server name
  once the record is complete.
- `tlsblock.blocker` turns a captured frame into a `CapturedSegment`
  (`parse_frame`, which returns `None` for frames that carry no IPv4/TCP
  payload), builds the reset packets (`build_server_rst`,
  `build_client_rst`), reads an interface's hardware address
  (`interface_mac`) and drives the whole capture loop (`run`, which returns
  the number of connections reset).

```python
from tlsblock.ip import Ip
from tlsblock.sni import ConnKey, FragmentAssembler


def client_hello(host: bytes) -> bytes:
    name = b"\x00" + len(host).to_bytes(2, "big") + host
    sni = (len(name).to_bytes(2, "big") + name)
    ext = b"\x00\x00" + len(sni).to_bytes(2, "big") + sni
    body = (
        b"\x03\x03" + bytes(32)          # version and random
        + b"\x00"                        # session id
        + b"\x00\x02\x13\x01"            # cipher suites
        + b"\x01\x00"                    # compression methods
        + len(ext).to_bytes(2, "big") + ext
    )
    hs = b"\x01" + len(body).to_bytes(3, "big") + body
    return b"\x16\x03\x01" + len(hs).to_bytes(2, "big") + hs


record = client_hello(b"www.example.com")
assembler = FragmentAssembler()
key = ConnKey(Ip("10.0.0.2"), 50000, Ip("10.0.0.1"), 443)

assert assembler.feed(key, record[:20], True) == ""
print(assembler.feed(key, record[20:], False))   # www.example.com
```

## Limits

- Only IPv4 over Ethernet is examined; IPv6 traffic passes untouched.
- Capture and injection work on Linux only (packet sockets and the
  `SIOCGIFHWADDR` request); elsewhere `run` raises `OSError`.
- There is no rule file, list of patterns or log: one substring pattern is
  given on the command line and matches are printed to standard output.
- Failures to send the reset towards the client are ignored; failures to send
  the reset towards the server are reported on standard error and capturing
  goes on.