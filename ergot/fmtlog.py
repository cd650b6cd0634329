"""Formatted log messages carried as (level, text) pairs."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from .postcard import DecodeError, decode_str, decode_varint, encode_str, encode_varint

__all__ = ["Level", "FmtMessage", "fmt"]


class Level(enum.IntEnum):
    """Log level; the value is the wire discriminant."""

    ERROR = 0
    WARN = 1
    INFO = 2
    DEBUG = 3
    TRACE = 4


@dataclass(frozen=True)
class FmtMessage:
    """A log message: its level and its already formatted text."""

    level: Level
    inner: str

    def to_bytes(self) -> bytes:
        """Encode as a varint level discriminant followed by the text."""
        return encode_varint(int(self.level)) + encode_str(self.inner)

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> FmtMessage:
        """Decode a message; ``data`` must hold exactly one message."""
        discriminant, rest = decode_varint(data)
        try:
            level = Level(discriminant)
        except ValueError as exc:
            raise DecodeError(f"unknown log level {discriminant}") from exc
        inner, rest = decode_str(rest)
        if rest:
            raise DecodeError(f"{len(rest)} trailing bytes after message")
        return cls(level, inner)


def fmt(template: str, *args: Any, **kwargs: Any) -> str:
    """Format ``template`` with the given arguments into message text."""
    return template.format(*args, **kwargs)