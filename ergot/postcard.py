"""Primitive pieces of the postcard wire format: varints and strings."""

from __future__ import annotations

__all__ = ["DecodeError", "encode_varint", "decode_varint", "encode_str", "decode_str"]

_MAX_VARINT_BYTES = 10
_U64_LIMIT = 1 << 64


class DecodeError(ValueError):
    """Raised when bytes cannot be decoded as the expected postcard value."""


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer as an LEB128 varint."""
    if value < 0:
        raise ValueError("varint value must not be negative")
    if value >= _U64_LIMIT:
        raise ValueError("varint value does not fit in 64 bits")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_varint(data: bytes | bytearray | memoryview) -> tuple[int, bytes]:
    """Decode a varint from the start of ``data``.

    Returns the value and the bytes that follow it.
    """
    raw = bytes(data)
    value = 0
    for pos, byte in enumerate(raw[:_MAX_VARINT_BYTES]):
        value |= (byte & 0x7F) << (7 * pos)
        if not byte & 0x80:
            if value >= _U64_LIMIT:
                raise DecodeError("varint does not fit in 64 bits")
            return value, raw[pos + 1 :]
    if len(raw) >= _MAX_VARINT_BYTES:
        raise DecodeError("varint is longer than 10 bytes")
    raise DecodeError("unexpected end of data inside varint")


def encode_str(text: str) -> bytes:
    """Encode a string as a varint byte length followed by UTF-8 bytes."""
    body = text.encode("utf-8")
    return encode_varint(len(body)) + body


def decode_str(data: bytes | bytearray | memoryview) -> tuple[str, bytes]:
    """Decode a length-prefixed UTF-8 string from the start of ``data``.

    Returns the string and the bytes that follow it.
    """
    length, rest = decode_varint(data)
    if length > len(rest):
        raise DecodeError(
            f"string claims {length} bytes, only {len(rest)} available"
        )
    try:
        text = rest[:length].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"string is not valid UTF-8: {exc}") from exc
    return text, rest[length:]