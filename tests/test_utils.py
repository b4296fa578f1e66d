import hashlib

import pytest

from appattest_verifier.utils import b64decode, b64encode, hexbytes, parse_uuid, sha256


def test_sha256():
    assert sha256(b"abc") == hashlib.sha256(b"abc").digest()


def test_parse_uuid():
    assert parse_uuid("279e8603-7bb9-4c7a-8965-aa1f8d7c16ee") == bytes.fromhex("279e86037bb94c7a8965aa1f8d7c16ee")


def test_parse_uuid_rejects_garbage():
    with pytest.raises(ValueError):
        parse_uuid("not-a-uuid")


def test_b64_codec():
    assert b64encode(b"\xfb\xb3") == "+7M="
    assert b64decode("+7M=") == b"\xfb\xb3"


def test_b64decode_is_strict():
    with pytest.raises(ValueError):
        b64decode("random_key_id")


def test_hexbytes():
    assert hexbytes(b"\x00\xff") == "00ff"
