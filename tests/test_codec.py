import pytest

from relayer_engine.app.domain.codec import (
    bytes_to_hex,
    hex_to_address,
    hex_to_bytes,
    hex_to_hash,
    hex_to_int,
    int_to_hex,
)
from relayer_engine.app.domain.errors import ErrorKind, RpcError


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0x0"),
        (255, "0xff"),
        (2**64, "0x10000000000000000"),
        (2**256 - 1, "0x" + "f" * 64),
    ],
)
def test_int_to_hex(value, expected):
    assert int_to_hex(value) == expected
    assert hex_to_int(expected) == value


def test_int_to_hex_rejects_negative_and_non_int():
    with pytest.raises(ValueError):
        int_to_hex(-1)
    with pytest.raises(TypeError):
        int_to_hex(True)
    with pytest.raises(TypeError):
        int_to_hex("0x1")


@pytest.mark.parametrize("value", ["", "0x", "ff", "0xzz", 12, None])
def test_hex_to_int_rejects_malformed(value):
    with pytest.raises(RpcError) as exc_info:
        hex_to_int(value)
    assert exc_info.value.kind is ErrorKind.INVALID_PARAMS
    assert exc_info.value.code == -32602


def test_bytes_to_hex():
    assert bytes_to_hex(b"") == "0x"
    assert bytes_to_hex(b"\x00\xab") == "0x00ab"
    assert bytes_to_hex(memoryview(b"\x01")) == "0x01"
    assert bytes_to_hex(None) is None


def test_hex_to_bytes_requires_even_digits():
    assert hex_to_bytes("0x") == b""
    assert hex_to_bytes("0x0aFF") == b"\x0a\xff"
    with pytest.raises(RpcError):
        hex_to_bytes("0xabc")
    with pytest.raises(RpcError):
        hex_to_bytes("abcd")


def test_hex_to_hash_checks_length():
    digest = "0x" + "11" * 32
    assert hex_to_hash(digest) == b"\x11" * 32
    with pytest.raises(RpcError):
        hex_to_hash("0x" + "11" * 31)


def test_hex_to_address():
    assert hex_to_address("0x" + "ab" * 20) == b"\xab" * 20
    with pytest.raises(RpcError):
        hex_to_address("0x1234")
