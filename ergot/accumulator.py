"""Accumulate a byte stream into COBS frames and decode them."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from . import cobs

__all__ = ["FeedKind", "FeedResult", "CobsAccumulator"]


class FeedKind(enum.Enum):
    """What happened to the data given to :meth:`CobsAccumulator.feed`."""

    #: All input was taken in; no frame is complete yet.
    CONSUMED = enum.auto()
    #: The storage buffer was too small; the current frame was dropped.
    OVERFULL = enum.auto()
    #: A frame ended but it was not valid COBS.
    DECODE_ERROR = enum.auto()
    #: A frame was decoded from data accumulated in the storage buffer.
    SUCCESS = enum.auto()
    #: A frame was decoded straight from the input, with nothing buffered.
    SUCCESS_INPUT = enum.auto()


@dataclass(frozen=True)
class FeedResult:
    """Outcome of one feed: the decoded frame, if any, and the unread input."""

    kind: FeedKind
    data: bytes | None = None
    remaining: bytes = b""

    @property
    def is_success(self) -> bool:
        return self.kind in (FeedKind.SUCCESS, FeedKind.SUCCESS_INPUT)


class CobsAccumulator:
    """Collects zero-terminated COBS frames from arbitrarily split input.

    At most ``capacity`` bytes of a frame are buffered between calls; a frame
    that does not fit is dropped up to its terminating zero.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._buf = bytearray(capacity)
        self._idx = 0
        self._in_overflow = False

    @property
    def capacity(self) -> int:
        return len(self._buf)

    def feed(self, data: bytes | bytearray | memoryview) -> FeedResult:
        """Take in ``data`` up to and including the first frame terminator.

        Input after the terminator is handed back in ``remaining`` and should
        be fed again.
        """
        chunk = bytes(data)
        if not chunk:
            return FeedResult(FeedKind.CONSUMED)

        zero = chunk.find(0)
        if zero < 0:
            if self._in_overflow:
                return FeedResult(FeedKind.OVERFULL)
            if self._push(chunk):
                return FeedResult(FeedKind.CONSUMED)
            # Without a zero, nothing of this input can be used.
            self._in_overflow = True
            return FeedResult(FeedKind.OVERFULL)

        take, release = chunk[: zero + 1], chunk[zero + 1 :]

        # A zero ends the overflow, but the frame it ends is already lost.
        if self._in_overflow:
            self._in_overflow = False
            return FeedResult(FeedKind.OVERFULL, remaining=release)

        if self._idx == 0:
            try:
                decoded = cobs.decode(take)
            except cobs.CobsDecodeError:
                return FeedResult(FeedKind.DECODE_ERROR, remaining=release)
            return FeedResult(FeedKind.SUCCESS_INPUT, decoded, release)

        frame = self._push_reset(take)
        if frame is None:
            return FeedResult(FeedKind.OVERFULL, remaining=release)

        try:
            decoded = cobs.decode(frame)
        except cobs.CobsDecodeError:
            return FeedResult(FeedKind.DECODE_ERROR, remaining=release)
        return FeedResult(FeedKind.SUCCESS, decoded, release)

    def contents(self) -> bytes | None:
        """The bytes buffered so far, or ``None`` while dropping an oversized frame."""
        if self._in_overflow:
            return None
        return bytes(self._buf[: self._idx])

    def _push(self, data: bytes) -> bool:
        new_end = self._idx + len(data)
        if new_end > len(self._buf):
            self._idx = 0
            return False
        self._buf[self._idx : new_end] = data
        self._idx = new_end
        return True

    def _push_reset(self, data: bytes) -> bytes | None:
        new_end = self._idx + len(data)
        frame = None
        if new_end <= len(self._buf):
            self._buf[self._idx : new_end] = data
            frame = bytes(self._buf[:new_end])
        self._idx = 0
        return frame