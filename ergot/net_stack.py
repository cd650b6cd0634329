"""The net stack: the meeting point of sockets, profiles and senders.

The stack is passive. It only acts when a frame is sent to it, and every
send completes at once. The frame is handed to a local socket or to the
profile, or the send fails. Nothing is queued for later delivery.
"""

from __future__ import annotations

import asyncio
import enum
import threading
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from .frames import ALL_PORT, ANY_PORT, AnyAllAppendix, FrameKind, Header, Key
from .postcard import encode_str, encode_varint
from .profile import InterfaceSendError, InterfaceSendFailure, Profile

__all__ = ["DEFAULT_DEPTH", "NetStackSendError", "Message", "Socket", "NetStack"]

#: Number of messages a socket holds before further sends to it fail.
DEFAULT_DEPTH = 16

_FIRST_PORT = 1
_LAST_PORT = 254

_R = TypeVar("_R")


class NetStackSendError(Exception):
    """Raised when the net stack cannot deliver a frame."""

    class Kind(enum.Enum):
        #: No socket or interface matches the destination.
        NO_ROUTE = enum.auto()
        #: A frame to the any or all port came without an any/all appendix.
        ANY_PORT_MISSING_KEY = enum.auto()
        #: The profile refused the frame; see ``interface_error``.
        INTERFACE_SEND = enum.auto()
        #: The destination socket has no room left.
        SOCKET_FULL = enum.auto()

    def __init__(
        self, kind: NetStackSendError.Kind, interface_error: InterfaceSendError | None = None
    ) -> None:
        text = kind.name.lower().replace("_", " ")
        if interface_error is not None:
            text = f"{text}: {interface_error.name.lower().replace('_', ' ')}"
        super().__init__(text)
        self.kind = kind
        self.interface_error = interface_error

    @classmethod
    def no_route(cls) -> NetStackSendError:
        return cls(cls.Kind.NO_ROUTE)

    @classmethod
    def any_port_missing_key(cls) -> NetStackSendError:
        return cls(cls.Kind.ANY_PORT_MISSING_KEY)

    @classmethod
    def interface_send(cls, error: InterfaceSendError) -> NetStackSendError:
        return cls(cls.Kind.INTERFACE_SEND, error)

    @classmethod
    def socket_full(cls) -> NetStackSendError:
        return cls(cls.Kind.SOCKET_FULL)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetStackSendError):
            return NotImplemented
        return (self.kind, self.interface_error) == (other.kind, other.interface_error)

    def __hash__(self) -> int:
        return hash((self.kind, self.interface_error))


@dataclass(frozen=True)
class Message:
    """A delivered frame: its header and its body.

    The body is the sent object itself for typed sends, and the encoded
    bytes for raw sends.
    """

    hdr: Header
    t: Any


def _encode_value(value: Any) -> bytes:
    """Encode a value for sending out of an interface."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, int):
        return encode_varint(int(value))
    if isinstance(value, str):
        return encode_str(value)
    to_bytes = getattr(value, "to_bytes", None)
    if callable(to_bytes):
        return bytes(to_bytes())
    raise TypeError(f"cannot encode a value of type {type(value).__name__}")


class Socket:
    """A receive-only socket attached to a net stack.

    The socket takes a port on creation and gives it back on :meth:`close`.
    It can also be used as a context manager.
    """

    def __init__(
        self,
        stack: NetStack,
        key: Key,
        kind: FrameKind,
        depth: int = DEFAULT_DEPTH,
        nash: int | None = None,
    ) -> None:
        if depth < 1:
            raise ValueError("socket depth must be at least 1")
        self.key = key
        self.kind = FrameKind(kind)
        self.nash = nash
        self._queue: asyncio.Queue[Message] = asyncio.Queue(maxsize=depth)
        self._stack = stack
        self._closed = False
        self.port = stack._register(self)

    @property
    def closed(self) -> bool:
        return self._closed

    def accepts(self, appendix: AnyAllAppendix, kind: FrameKind) -> bool:
        """True when a frame with this appendix and kind is meant for this socket."""
        if appendix.key != self.key or kind != self.kind:
            return False
        return appendix.nash is None or self.nash is None or appendix.nash == self.nash

    def _offer(self, message: Message) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            raise NetStackSendError.socket_full() from None

    async def recv(self) -> Message:
        """Wait for the next message delivered to this socket."""
        if self._closed and self._queue.empty():
            raise RuntimeError("socket is closed")
        return await self._queue.get()

    def close(self) -> None:
        """Detach from the stack; later frames to this port are not accepted."""
        if not self._closed:
            self._closed = True
            self._stack._unregister(self.port)

    def __enter__(self) -> Socket:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class NetStack:
    """Routes frames between local sockets and the external interfaces of a profile."""

    def __init__(self, profile: Profile) -> None:
        self._profile = profile
        self._lock = threading.RLock()
        self._sockets: dict[int, Socket] = {}

    def attach(self, key: Key, kind: FrameKind) -> Socket:
        """Open a socket for frames of ``kind`` carrying ``key``."""
        return Socket(self, key, kind)

    def _register(self, socket: Socket) -> int:
        with self._lock:
            for port in range(_FIRST_PORT, _LAST_PORT + 1):
                if port not in self._sockets:
                    self._sockets[port] = socket
                    return port
        raise RuntimeError("no free port left")

    def _unregister(self, port: int) -> None:
        with self._lock:
            self._sockets.pop(port, None)

    def send_ty(self, header: Header, value: Any) -> None:
        """Send a value. Local sockets get the value itself, interfaces its encoding."""
        self._send(header, value, lambda: _encode_value(value))

    def send_raw(self, header: Header, body: bytes | bytearray | memoryview) -> None:
        """Send an already encoded body."""
        raw = bytes(body)
        self._send(header, raw, lambda: raw)

    def manage_profile(self, func: Callable[[Profile], _R]) -> _R:
        """Call ``func`` with the profile while holding the stack lock."""
        with self._lock:
            return func(self._profile)

    def _send(self, header: Header, local_value: Any, encode: Callable[[], bytes]) -> None:
        with self._lock:
            if header.dst.port_id == ALL_PORT:
                self._broadcast(header, local_value, encode)
            else:
                self._unicast(header, local_value, encode)

    def _unicast(self, header: Header, local_value: Any, encode: Callable[[], bytes]) -> None:
        if not header.dst.net_node_any():
            try:
                self._profile.send(header, encode())
                return
            except InterfaceSendFailure as exc:
                if exc.error is not InterfaceSendError.DESTINATION_LOCAL:
                    raise NetStackSendError.interface_send(exc.error) from exc
        self._find_local(header)._offer(Message(header, local_value))

    def _find_local(self, header: Header) -> Socket:
        port = header.dst.port_id
        if port != ANY_PORT:
            socket = self._sockets.get(port)
            if socket is None:
                raise NetStackSendError.no_route()
            return socket
        if header.any_all is None:
            raise NetStackSendError.any_port_missing_key()
        for socket in self._sockets.values():
            if socket.accepts(header.any_all, header.kind):
                return socket
        raise NetStackSendError.no_route()

    def _broadcast(self, header: Header, local_value: Any, encode: Callable[[], bytes]) -> None:
        if header.any_all is None:
            raise NetStackSendError.any_port_missing_key()
        delivered = False
        for socket in list(self._sockets.values()):
            if not socket.accepts(header.any_all, header.kind):
                continue
            try:
                socket._offer(Message(header, local_value))
            except NetStackSendError:
                continue
            delivered = True
        try:
            self._profile.send(header, encode())
            delivered = True
        except InterfaceSendFailure:
            pass
        if not delivered:
            raise NetStackSendError.no_route()