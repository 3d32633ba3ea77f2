import pytest

from tlsblock.ip import Ip
from tlsblock.sni import (
    ConnKey,
    FragmentAssembler,
    TlsContext,
    extract_sni,
    parse24,
    parse_handshake,
)

HOST = "example.com"


def _len2(data):
    return len(data).to_bytes(2, "big")


def client_hello_body(host=HOST.encode(), session_id=b"", extra_ext=b""):
    name = b"\x00" + _len2(host) + host
    name_list = _len2(name) + name
    sni_ext = b"\x00\x00" + _len2(name_list) + name_list
    exts = extra_ext + sni_ext
    return (
        b"\x03\x03"
        + bytes(32)
        + bytes([len(session_id)])
        + session_id
        + b"\x00\x02\x13\x01"
        + b"\x01\x00"
        + _len2(exts)
        + exts
    )


def handshake(body, msg_type=0x01):
    return bytes([msg_type]) + len(body).to_bytes(3, "big") + body


def record(hs):
    return b"\x16\x03\x01" + _len2(hs) + hs


def key(port=40000):
    return ConnKey(Ip("192.0.2.10"), port, Ip("198.51.100.20"), 443)


def test_parse24_round_trip():
    assert parse24((300).to_bytes(3, "big")) == 300
    assert parse24(b"\xff\xff\xff") == 0xFFFFFF


def test_extract_sni_simple():
    assert extract_sni(client_hello_body()) == HOST


def test_extract_sni_with_session_id_and_other_extension():
    other = b"\x00\x0b\x00\x02\x01\x00"
    body = client_hello_body(session_id=bytes(range(32)), extra_ext=other)
    assert extract_sni(body) == HOST


def test_extract_sni_too_short():
    assert extract_sni(bytes(37)) == ""


def test_extract_sni_without_server_name_extension():
    body = client_hello_body()
    # Replace the server-name extension type with another type.
    index = body.rindex(b"\x00\x00" + _len2(b"x" * (len(HOST) + 5)))
    altered = body[:index] + b"\x00\x10" + body[index + 2 :]
    assert extract_sni(altered) == ""


def test_extract_sni_truncated():
    body = client_hello_body()
    assert extract_sni(body[:-3]) == ""


def test_parse_handshake():
    assert parse_handshake(handshake(client_hello_body())) == HOST


def test_parse_handshake_rejects_other_message_types():
    assert parse_handshake(handshake(client_hello_body(), msg_type=0x02)) == ""


def test_parse_handshake_rejects_short_message():
    hs = handshake(client_hello_body())
    assert parse_handshake(hs[:-1]) == ""
    assert parse_handshake(hs[:3]) == ""


def test_tls_context_completion():
    ctx = TlsContext()
    assert not ctx.is_complete()
    ctx.buf += b"abcde"
    ctx.expect_record = 5
    ctx.seen_record = True
    assert not ctx.is_complete()
    ctx.seen_handshake = True
    assert ctx.is_complete()


def test_conn_key_ordering():
    a = key(1)
    b = key(2)
    c = ConnKey(Ip("192.0.2.11"), 0, Ip("198.51.100.20"), 443)
    assert sorted([c, b, a]) == [a, b, c]
    assert key(1) == key(1)


def test_assembler_single_record():
    assembler = FragmentAssembler()
    assert assembler.feed(key(), record(handshake(client_hello_body())), True) == HOST
    assert key() not in assembler.contexts


@pytest.mark.parametrize("split", [6, 7, 9, 20])
def test_assembler_split_record(split):
    data = record(handshake(client_hello_body()))
    assembler = FragmentAssembler()
    assert assembler.feed(key(), data[:split], True) == ""
    assert assembler.feed(key(), data[split:-1], False) == ""
    assert assembler.feed(key(), data[-1:], False) == HOST
    assert assembler.contexts == {}


def test_assembler_keeps_flows_apart():
    data = record(handshake(client_hello_body()))
    assembler = FragmentAssembler()
    assert assembler.feed(key(1), data[:10], True) == ""
    assert assembler.feed(key(2), data[:10], True) == ""
    assert assembler.feed(key(1), data[10:], False) == HOST
    assert list(assembler.contexts) == [key(2)]


def test_assembler_ignores_server_hello():
    data = record(handshake(client_hello_body(), msg_type=0x02))
    assembler = FragmentAssembler()
    assert assembler.feed(key(), data, True) == ""
    assert key() in assembler.contexts


def test_assembler_starts_again_after_completion():
    data = record(handshake(client_hello_body()))
    assembler = FragmentAssembler()
    assert assembler.feed(key(), data, True) == HOST
    assert assembler.feed(key(), data, True) == HOST


def test_assembler_non_record_data_never_completes():
    assembler = FragmentAssembler()
    assert assembler.feed(key(), b"GET / HTTP/1.1\r\n", False) == ""
    assert assembler.contexts[key()].buf == bytearray(b"GET / HTTP/1.1\r\n")