"""
MessagePack framing for the WebSocket channel.

Every frame is one MessagePack map. Inbound frames are size-limited before
and during unpacking so a hostile client cannot make the server allocate
large buffers.
"""

from typing import Any

import msgpack


class DecodeError(Exception):
    """Inbound frame is not a valid, reasonably sized MessagePack map."""


MAX_FRAME_BYTES = 16 * 1024
# per-object limits passed straight to msgpack.unpackb
_UNPACK_LIMITS = {
    "max_str_len": 4 * 1024,
    "max_bin_len": 0,
    "max_array_len": 64,
    "max_map_len": 32,
    "max_ext_len": 0,
}


def encode(message: dict[str, Any]) -> bytes:
    return msgpack.packb(message, use_bin_type=True)


def decode(frame: bytes) -> dict[str, Any]:
    """
    Unpack one inbound frame.

    Raises DecodeError for oversized frames, malformed MessagePack and
    payloads that are not a map.
    """
    if len(frame) > MAX_FRAME_BYTES:
        raise DecodeError(f"frame too large: {len(frame)} bytes (max {MAX_FRAME_BYTES})")
    try:
        message = msgpack.unpackb(frame, raw=False, **_UNPACK_LIMITS)
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"malformed frame: {e}") from e
    if not isinstance(message, dict):
        raise DecodeError(f"expected a map, got {type(message).__name__}")
    return message
