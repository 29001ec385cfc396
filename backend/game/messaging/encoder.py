"""
MessagePack encoder/decoder for the WebSocket wire format.

Every frame in either direction is a single MessagePack map with a ``type``
key. Inbound frames are bounded so a malicious client cannot make the
server allocate large buffers.
"""

from typing import Any

import msgpack


class DecodeError(Exception):
    """Error raised when an inbound frame cannot be decoded."""


# Client frames are small: the largest is a submitted sequence of short color ids.
MAX_BUFFER_LEN = 64 * 1024
MAX_STR_LEN = 4 * 1024
MAX_BIN_LEN = 0  # clients never send binary blobs
MAX_ARRAY_LEN = 1024
MAX_MAP_LEN = 64
MAX_EXT_LEN = 0


def encode(data: dict[str, Any]) -> bytes:
    """
    Encode a message dict to MessagePack bytes.
    """
    return msgpack.packb(data, use_bin_type=True)


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode a MessagePack frame into a message dict.

    Raises DecodeError if the frame is invalid, exceeds size limits, or is
    not a map.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            strict_map_key=True,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected map, got {type(result).__name__}")

    return result
