#
# Small byte helpers shared by the attestation and assertion pipelines
#

import base64
import binascii
import codecs
import uuid

from cryptography.hazmat.primitives import hashes


def sha256(s: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(s)
    return digest.finalize()


def hexbytes(val: bytes) -> str:
    return codecs.encode(val, 'hex').decode()


def b64encode(val: bytes) -> str:
    return base64.b64encode(val).decode('ascii')


def b64decode(val: str) -> bytes:
    """Strict base64 decoding; raises ValueError on anything but the
    standard alphabet with correct padding."""
    try:
        return base64.b64decode(val, validate=True)
    except binascii.Error as e:
        raise ValueError(str(e)) from e


def parse_uuid(val: str) -> bytes:
    """Convert a textual UUID ("279e8603-7bb9-...") to its 16 raw bytes."""
    return uuid.UUID(val).bytes
