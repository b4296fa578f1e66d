import cbor2
import pytest

from cbor2 import CBORDecodeError

from appattest_verifier.cbor import MAX_DEPTH, decode_first


def nested(depth: int):
    value = b"leaf"
    for _ in range(depth):
        value = [value]
    return value


def test_decode_first_returns_single_item():
    assert decode_first(cbor2.dumps({"a": b"\x01"})) == {"a": b"\x01"}


def test_decode_first_scalar():
    assert decode_first(b"\x18\x2a") == 42


@pytest.mark.parametrize("blob", [b"", b"\x82\x01", b"\xa1\x01", b"\x59\x01"])
def test_decode_first_rejects_malformed(blob):
    with pytest.raises(CBORDecodeError):
        decode_first(blob)


def test_decode_first_rejects_trailing_bytes():
    with pytest.raises(CBORDecodeError, match="trailing"):
        decode_first(cbor2.dumps(1) + cbor2.dumps(2))


def test_decode_first_accepts_max_depth():
    assert decode_first(cbor2.dumps(nested(MAX_DEPTH))) == nested(MAX_DEPTH)


def test_decode_first_rejects_excess_depth():
    with pytest.raises(CBORDecodeError, match="nesting"):
        decode_first(cbor2.dumps(nested(MAX_DEPTH + 1)))


def test_decode_first_counts_maps_and_tags():
    value = {"a": {"b": cbor2.CBORTag(4000, [[b"x"]])}}

    decode_first(cbor2.dumps(value))
    with pytest.raises(CBORDecodeError):
        decode_first(cbor2.dumps(value), max_depth=4)
