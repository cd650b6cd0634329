"""Network addresses: a 16-bit network id, an 8-bit node id and an 8-bit port id.

On the wire an address is packed into a 32-bit word (network id in the most
significant bytes, port id in the least) and varint encoded, so addresses
with small ids take fewer than four bytes.
"""

from __future__ import annotations

from dataclasses import dataclass

from .postcard import DecodeError, decode_varint, encode_varint

__all__ = ["Address"]

_U32_MAX = 0xFFFF_FFFF


@dataclass(frozen=True)
class Address:
    """A (network id, node id, port id) triple."""

    network_id: int
    node_id: int
    port_id: int

    def __post_init__(self) -> None:
        for name, limit in (("network_id", 0xFFFF), ("node_id", 0xFF), ("port_id", 0xFF)):
            value = getattr(self, name)
            if not 0 <= value <= limit:
                raise ValueError(f"{name} must be in 0..={limit}, got {value}")

    @classmethod
    def unknown(cls) -> Address:
        """The all-zero address, meaning "local" or "not yet known"."""
        return cls(0, 0, 0)

    def net_node_any(self) -> bool:
        """True when both network id and node id are zero (this device)."""
        return self.network_id == 0 and self.node_id == 0

    def as_u32(self) -> int:
        """Pack into a 32-bit word."""
        return (self.network_id << 16) | (self.node_id << 8) | self.port_id

    @classmethod
    def from_word(cls, word: int) -> Address:
        """Unpack from a 32-bit word."""
        if not 0 <= word <= _U32_MAX:
            raise ValueError(f"address word must fit in 32 bits, got {word}")
        return cls((word >> 16) & 0xFFFF, (word >> 8) & 0xFF, word & 0xFF)

    def to_bytes(self) -> bytes:
        """Wire form: the packed word as a varint."""
        return encode_varint(self.as_u32())

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> Address:
        """Decode the wire form; ``data`` must hold exactly one address."""
        word, rest = decode_varint(data)
        if rest:
            raise DecodeError(f"{len(rest)} trailing bytes after address")
        if word > _U32_MAX:
            raise DecodeError("address word does not fit in 32 bits")
        return cls.from_word(word)

    def __str__(self) -> str:
        return f"{self.network_id}.{self.node_id}:{self.port_id}"