"""Request/response endpoints on top of the net stack.

An endpoint is named. Its name yields two keys, one for requests and one for
responses. A server opens a socket for the request key, takes one request at
a time, and sends the handler's answer back to the requester's address. A
requester opens a one-shot socket for the response key, sends the request,
and waits for the answer that carries the same sequence number.
"""

from __future__ import annotations

import inspect
import itertools
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

from .address import Address
from .frames import ALL_PORT, ANY_PORT, DEFAULT_TTL, AnyAllAppendix, FrameKind, Header, Key
from .net_stack import DEFAULT_DEPTH, NetStack, Socket

__all__ = ["Endpoint", "EndpointServer", "request"]

_FNV_OFFSET = 0xCBF2_9CE4_8422_2325
_FNV_PRIME = 0x0000_0100_0000_01B3
_U64_MASK = 0xFFFF_FFFF_FFFF_FFFF

_seq_lock = threading.Lock()
_seq_counter = itertools.count()


def _fnv1a64(data: bytes) -> int:
    value = _FNV_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV_PRIME) & _U64_MASK
    return value


def _key_for(text: str) -> Key:
    return Key(_fnv1a64(text.encode("utf-8")).to_bytes(8, "little"))


def _next_seq() -> int:
    with _seq_lock:
        return next(_seq_counter) & 0xFFFF


def _appendix_for(dst: Address, key: Key) -> AnyAllAppendix | None:
    if dst.port_id in (ANY_PORT, ALL_PORT):
        return AnyAllAppendix(key)
    return None


@dataclass(frozen=True)
class Endpoint:
    """A named request/response pair."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("endpoint name must not be empty")

    @property
    def req_key(self) -> Key:
        """Key carried by requests to this endpoint."""
        return _key_for(f"{self.name}/req")

    @property
    def resp_key(self) -> Key:
        """Key carried by responses from this endpoint."""
        return _key_for(f"{self.name}/resp")


Handler = Callable[[Any], Union[Any, Awaitable[Any]]]


class EndpointServer:
    """Serves requests for one endpoint from a socket on a net stack.

    Closing the server (or leaving its ``with`` block) detaches the socket,
    after which requests to it are no longer accepted.
    """

    def __init__(self, stack: NetStack, endpoint: Endpoint, depth: int = DEFAULT_DEPTH) -> None:
        self.stack = stack
        self.endpoint = endpoint
        self._socket = Socket(stack, endpoint.req_key, FrameKind.ENDPOINT_REQ, depth)

    @property
    def port(self) -> int:
        return self._socket.port

    @property
    def closed(self) -> bool:
        return self._socket.closed

    async def serve(self, handler: Handler) -> None:
        """Answer one request with ``handler``'s result.

        ``handler`` may be a plain function or a coroutine function. A failure
        to send the response raises :class:`~ergot.net_stack.NetStackSendError`.
        """
        msg = await self._socket.recv()
        result = handler(msg.t)
        if inspect.isawaitable(result):
            result = await result
        req_hdr = msg.hdr
        dst = req_hdr.src
        resp_hdr = Header(
            src=Address(req_hdr.dst.network_id, req_hdr.dst.node_id, self.port),
            dst=dst,
            any_all=_appendix_for(dst, self.endpoint.resp_key),
            seq_no=req_hdr.seq_no,
            kind=FrameKind.ENDPOINT_RESP,
            ttl=DEFAULT_TTL,
        )
        self.stack.send_ty(resp_hdr, result)

    def close(self) -> None:
        """Detach the server's socket from the stack."""
        self._socket.close()

    def __enter__(self) -> EndpointServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


async def request(stack: NetStack, endpoint: Endpoint, dst: Address, value: Any) -> Any:
    """Send ``value`` to ``endpoint`` at ``dst`` and wait for the response.

    With ``dst`` on the any port (e.g. :meth:`Address.unknown`) the stack picks
    the one local socket serving this endpoint. Send failures raise
    :class:`~ergot.net_stack.NetStackSendError`.
    """
    seq_no = _next_seq()
    with Socket(stack, endpoint.resp_key, FrameKind.ENDPOINT_RESP, depth=1) as resp_socket:
        hdr = Header(
            src=Address(0, 0, resp_socket.port),
            dst=dst,
            any_all=_appendix_for(dst, endpoint.req_key),
            seq_no=seq_no,
            kind=FrameKind.ENDPOINT_REQ,
            ttl=DEFAULT_TTL,
        )
        stack.send_ty(hdr, value)
        while True:
            msg = await resp_socket.recv()
            if msg.hdr.seq_no == seq_no:
                return msg.t