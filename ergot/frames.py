"""Frame headers: addressing, sequencing, frame kind and the any/all appendix.

A frame starts with a common header (source, destination, sequence number,
frame kind and TTL). When the destination port is ``0`` ("any") or ``255``
("all"), an any/all appendix follows. It carries the key that describes the
message type and an optional name hash. For every other destination port the
appendix must be absent.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .address import Address
from .postcard import DecodeError, decode_varint, encode_varint

__all__ = [
    "DEFAULT_TTL",
    "ANY_PORT",
    "ALL_PORT",
    "Key",
    "FrameKind",
    "AnyAllAppendix",
    "CommonHeader",
    "Header",
    "needs_any_all",
    "encode_header",
    "decode_header",
]

#: TTL given to frames that do not ask for another one.
DEFAULT_TTL = 16
#: Destination port that selects exactly one socket by key.
ANY_PORT = 0
#: Destination port that selects every socket matching a key.
ALL_PORT = 255

_KEY_LEN = 8
_U8_MAX = 0xFF
_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF


def _check_range(name: str, value: int, limit: int) -> None:
    if not 0 <= value <= limit:
        raise ValueError(f"{name} must be in 0..={limit}, got {value}")


@dataclass(frozen=True)
class Key:
    """An 8-byte key that describes the type of a message."""

    value: bytes

    def __post_init__(self) -> None:
        raw = bytes(self.value)
        if len(raw) != _KEY_LEN:
            raise ValueError(f"key must be {_KEY_LEN} bytes, got {len(raw)}")
        object.__setattr__(self, "value", raw)

    def __bytes__(self) -> bytes:
        return self.value


class FrameKind(enum.IntEnum):
    """The kind of a frame, or of the socket it is meant for."""

    RESERVED = 0
    ENDPOINT_REQ = 1
    ENDPOINT_RESP = 2
    TOPIC_MSG = 3
    PROTOCOL_ERROR = 255


@dataclass(frozen=True)
class AnyAllAppendix:
    """Key and optional name hash used to pick sockets on the any/all ports."""

    key: Key
    nash: int | None = None

    def __post_init__(self) -> None:
        if self.nash is not None:
            _check_range("nash", self.nash, _U32_MAX)

    def to_bytes(self) -> bytes:
        out = bytearray(self.key.value)
        if self.nash is None:
            out.append(0)
        else:
            out.append(1)
            out += encode_varint(self.nash)
        return bytes(out)


@dataclass(frozen=True)
class CommonHeader:
    """The header fields that every frame carries on the wire."""

    src: Address
    dst: Address
    seq_no: int
    kind: FrameKind
    ttl: int

    def __post_init__(self) -> None:
        _check_range("seq_no", self.seq_no, _U16_MAX)
        _check_range("ttl", self.ttl, _U8_MAX)


@dataclass(frozen=True)
class Header:
    """A frame header as handled by the net stack.

    The sequence number is optional here: it is filled in when the frame is
    sent, if the sender did not choose one.
    """

    src: Address
    dst: Address
    any_all: AnyAllAppendix | None = None
    seq_no: int | None = None
    kind: FrameKind = FrameKind.RESERVED
    ttl: int = DEFAULT_TTL

    def __post_init__(self) -> None:
        if self.seq_no is not None:
            _check_range("seq_no", self.seq_no, _U16_MAX)
        _check_range("ttl", self.ttl, _U8_MAX)

    def to_common(self, seq_no: int) -> CommonHeader:
        """The common header, using ``seq_no`` only when none is set."""
        return CommonHeader(
            src=self.src,
            dst=self.dst,
            seq_no=self.seq_no if self.seq_no is not None else seq_no,
            kind=self.kind,
            ttl=self.ttl,
        )

    @classmethod
    def from_common(
        cls, common: CommonHeader, any_all: AnyAllAppendix | None = None
    ) -> Header:
        """Build a header from a decoded common header and appendix."""
        return cls(
            src=common.src,
            dst=common.dst,
            any_all=any_all,
            seq_no=common.seq_no,
            kind=common.kind,
            ttl=common.ttl,
        )


def needs_any_all(dst: Address) -> bool:
    """True when frames to ``dst`` must carry an any/all appendix."""
    return dst.port_id in (ANY_PORT, ALL_PORT)


def encode_header(common: CommonHeader, any_all: AnyAllAppendix | None = None) -> bytes:
    """Encode a common header and, where the destination port needs it, the appendix."""
    required = needs_any_all(common.dst)
    if required and any_all is None:
        raise ValueError(
            f"destination port {common.dst.port_id} requires an any/all appendix"
        )
    if not required and any_all is not None:
        raise ValueError(
            f"destination port {common.dst.port_id} must not carry an any/all appendix"
        )
    out = bytearray()
    out += common.src.to_bytes()
    out += common.dst.to_bytes()
    out += encode_varint(common.seq_no)
    out.append(int(common.kind))
    out.append(common.ttl)
    if any_all is not None:
        out += any_all.to_bytes()
    return bytes(out)


def _read_address(data: bytes) -> tuple[Address, bytes]:
    word, rest = decode_varint(data)
    if word > _U32_MAX:
        raise DecodeError("address word does not fit in 32 bits")
    return Address.from_word(word), rest


def _read_u8(data: bytes, what: str) -> tuple[int, bytes]:
    if not data:
        raise DecodeError(f"unexpected end of data reading {what}")
    return data[0], data[1:]


def _read_appendix(data: bytes) -> tuple[AnyAllAppendix, bytes]:
    if len(data) < _KEY_LEN:
        raise DecodeError("unexpected end of data reading key")
    key, rest = Key(data[:_KEY_LEN]), data[_KEY_LEN:]
    tag, rest = _read_u8(rest, "name hash tag")
    if tag == 0:
        return AnyAllAppendix(key), rest
    if tag != 1:
        raise DecodeError(f"invalid option tag {tag} for name hash")
    nash, rest = decode_varint(rest)
    if nash > _U32_MAX:
        raise DecodeError("name hash does not fit in 32 bits")
    return AnyAllAppendix(key, nash), rest


def decode_header(
    data: bytes | bytearray | memoryview,
) -> tuple[CommonHeader, AnyAllAppendix | None, bytes]:
    """Decode a frame header.

    Returns the common header, the appendix (present exactly when the
    destination port is any or all) and the bytes that follow the header.
    """
    rest = bytes(data)
    src, rest = _read_address(rest)
    dst, rest = _read_address(rest)
    seq_no, rest = decode_varint(rest)
    if seq_no > _U16_MAX:
        raise DecodeError("sequence number does not fit in 16 bits")
    kind_raw, rest = _read_u8(rest, "frame kind")
    try:
        kind = FrameKind(kind_raw)
    except ValueError as exc:
        raise DecodeError(f"unknown frame kind {kind_raw}") from exc
    ttl, rest = _read_u8(rest, "ttl")
    common = CommonHeader(src=src, dst=dst, seq_no=seq_no, kind=kind, ttl=ttl)

    any_all = None
    if needs_any_all(dst):
        any_all, rest = _read_appendix(rest)
    return common, any_all, rest