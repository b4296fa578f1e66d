#
# Strict single-value CBOR decoding for attestation and assertion blobs
#

import io

from collections.abc import Mapping

import cbor2

from cbor2 import CBORDecodeEOF, CBORDecodeError, CBORTag

MAX_DEPTH = 5


def _check_depth(value, limit: int, level: int = 0) -> None:
    if isinstance(value, Mapping):
        children = [ c for kv in value.items() for c in kv ]
    elif isinstance(value, (list, tuple)):
        children = value
    elif isinstance(value, CBORTag):
        children = [ value.value ]
    else:
        return

    level += 1
    if level > limit:
        raise CBORDecodeError('CBOR nesting exceeds %d levels' % limit)

    for child in children:
        _check_depth(child, limit, level)


def decode_first(data: bytes, max_depth: int = MAX_DEPTH):
    """Decode exactly one CBOR data item from ``data``.

    Raises CBORDecodeError when the buffer is empty or malformed, when bytes
    remain after the first item, or when maps, arrays and tags nest deeper
    than ``max_depth``.  Scalars do not add a level, so a map of byte strings
    has depth 1.
    """
    decoder = cbor2.CBORDecoder(io.BytesIO(data))
    value = decoder.decode()

    # the decoder may buffer ahead of the item, so ask it rather than the stream
    try:
        trailing = decoder.read(1)
    except CBORDecodeEOF:
        trailing = b''
    if trailing:
        raise CBORDecodeError('trailing bytes after CBOR item')

    _check_depth(value, max_depth)
    return value
