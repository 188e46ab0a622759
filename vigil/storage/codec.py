"""
Record codec — secret fields to bytes and back, with orjson.

Timestamps, revelation sets and values all go through the same codec.
orjson has no native bytes type, so bytes anywhere in a record are tagged as
``{"$b64": "<base64>"}`` on the way out and restored on the way in.
"""
import base64
from typing import Any

import orjson

_BYTES_TAG = "$b64"


def _tag_bytes(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return {_BYTES_TAG: base64.b64encode(bytes(obj)).decode("ascii")}
    raise TypeError(f"Cannot encode {type(obj).__name__} in a record")


def _untag(node: Any) -> Any:
    if isinstance(node, dict):
        if len(node) == 1 and _BYTES_TAG in node:
            return base64.b64decode(node[_BYTES_TAG])
        return {k: _untag(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_untag(v) for v in node]
    return node


def encode_record(value: Any) -> bytes:
    """Encode a record for the store.

    Raises:
        TypeError: If the record holds something orjson cannot encode.
    """
    return orjson.dumps(value, default=_tag_bytes)


def decode_record(data: bytes) -> Any:
    return _untag(orjson.loads(data))


def encode_key(key: tuple[str, ...]) -> str:
    """Flatten a composite store key into an unambiguous string."""
    return orjson.dumps(list(key)).decode("utf-8")
