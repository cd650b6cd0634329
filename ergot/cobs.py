"""Consistent Overhead Byte Stuffing (COBS) encoding and decoding."""

from __future__ import annotations

__all__ = ["CobsDecodeError", "encode", "decode"]

_MAX_RUN = 254


class CobsDecodeError(ValueError):
    """Raised when a byte sequence is not a valid COBS frame."""


def encode(data: bytes | bytearray | memoryview) -> bytes:
    """Encode ``data`` with COBS. The result holds no zero bytes and no terminator."""
    out = bytearray()
    for segment in bytes(data).split(b"\x00"):
        full_runs = len(segment) // _MAX_RUN
        for start in range(0, full_runs * _MAX_RUN, _MAX_RUN):
            out.append(_MAX_RUN + 1)
            out += segment[start : start + _MAX_RUN]
        tail = segment[full_runs * _MAX_RUN :]
        out.append(len(tail) + 1)
        out += tail
    return bytes(out)


def decode(data: bytes | bytearray | memoryview) -> bytes:
    """Decode a COBS frame.

    Decoding stops at the first zero byte, if there is one, so a frame may be
    passed together with its terminator and anything after it.
    """
    raw = bytes(data)
    end = raw.find(0)
    if end < 0:
        end = len(raw)

    out = bytearray()
    pos = 0
    while pos < end:
        code = raw[pos]
        block_end = pos + code
        if block_end > end:
            raise CobsDecodeError(
                f"block at offset {pos} claims {code - 1} bytes, "
                f"only {end - pos - 1} available"
            )
        out += raw[pos + 1 : block_end]
        pos = block_end
        if code != _MAX_RUN + 1 and pos < end:
            out.append(0)
    return bytes(out)