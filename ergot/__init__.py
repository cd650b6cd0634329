"""Typed, addressed messaging with COBS framing and a routing network stack."""

__version__ = "0.10.0"

__all__ = [
    "accumulator",
    "address",
    "cobs",
    "endpoint",
    "fmtlog",
    "frames",
    "net_stack",
    "postcard",
    "profile",
]