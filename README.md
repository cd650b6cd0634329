# ergot

Typed, addressed messaging between tasks in one program. Messages are sent to
addresses and routed by a network stack. Typed sockets receive them. The
package also has the byte-level pieces for carrying frames over a
byte-stream link: COBS framing, varint encoding, and frame headers.

## Install

```
pip install ergot
pip install "ergot[test]"   # to run the test suite
```

The package has no runtime dependencies.

## What is in the package

- `ergot.cobs`: COBS `encode` and `decode`. `decode` raises `CobsDecodeError`
  on input that is not valid COBS, and it stops at the first zero byte.
- `ergot.accumulator`: `CobsAccumulator(capacity)` takes a byte stream in
  chunks of any size. Its `feed` method returns a `FeedResult`, whose `kind`
  is a `FeedKind`, together with the decoded `data` and the `remaining` input
  to feed again. A frame too big for the buffer is dropped up to its
  terminating zero and is reported as `OVERFULL`. A frame that fails to decode
  is reported as `DECODE_ERROR`. In both cases the stream goes on.
- `ergot.postcard`: `encode_varint`/`decode_varint` (LEB128, up to 64 bits)
  and `encode_str`/`decode_str` (length-prefixed UTF-8). Decoding failures
  raise `DecodeError`.
- `ergot.address`: `Address`, made of a 16-bit network id, an 8-bit node id
  and an 8-bit port id. It has `as_u32`/`from_word`, the varint wire form
  `to_bytes`/`from_bytes`, `unknown()` and `net_node_any()`.
- `ergot.fmtlog`: `Level`, the `FmtMessage` (level, text) pair with its
  `to_bytes`/`from_bytes` wire form, and `fmt`, which formats a template
  with `str.format`.
- `ergot.frames`: `Key`, `FrameKind`, `AnyAllAppendix`, `CommonHeader`,
  `Header`, `encode_header` and `decode_header`. Frames sent to port `0`
  (any) or `255` (all) must carry an any/all appendix, and no other frames
  may carry one.
- `ergot.profile`: the abstract `Profile` for outgoing interfaces. Its `send`
  raises `InterfaceSendFailure` with an `InterfaceSendError`. `NullProfile`
  is a profile with no external interfaces.
- `ergot.net_stack`: `NetStack`, which delivers to local `Socket`s or hands
  frames to the profile. Failures raise `NetStackSendError`.
- `ergot.endpoint`: request/response endpoints, built from `Endpoint`,
  `EndpointServer` and `request`.

## Accumulating COBS frames

```python
from ergot.accumulator import CobsAccumulator, FeedKind
from ergot.cobs import encode

acc = CobsAccumulator(16)
stream = encode(b"\x00\x01\x00\x02") + b"\x00"

for chunk in (stream[:3], stream[3:]):
    remaining = chunk
    while True:
        result = acc.feed(remaining)
        if result.kind is FeedKind.CONSUMED:
            break
        if result.is_success:
            print(result.data)
        remaining = result.remaining
```

## Addresses

```python
from ergot.address import Address

addr = Address(network_id=1, node_id=2, port_id=3)
assert Address.from_word(addr.as_u32()) == addr
assert Address.from_bytes(addr.to_bytes()) == addr
assert Address.unknown().net_node_any()
```

## Routing

Each send completes at once. The stack routes a frame as follows:

- A unicast frame to `0.0:*` goes to a local socket.
- A unicast frame to any other address goes to the profile. If the profile
  answers `DESTINATION_LOCAL`, the frame goes to a local socket instead.
- A local delivery to port `0` picks one socket by key and frame kind.
- A frame to port `255` goes to every matching socket and to the profile.

A full socket makes the send fail. Nothing is queued for later.

```python
from ergot.address import Address
from ergot.frames import AnyAllAppendix, FrameKind, Header, Key
from ergot.net_stack import NetStack
from ergot.profile import NullProfile

stack = NetStack(NullProfile())
key = Key(b"TEST1234")
socket = stack.attach(key, FrameKind.ENDPOINT_REQ)

stack.send_ty(
    Header(
        src=Address(0, 0, 123),
        dst=Address.unknown(),
        any_all=AnyAllAppendix(key),
        kind=FrameKind.ENDPOINT_REQ,
    ),
    42,
)
# message = await socket.recv()   -> message.t == 42
socket.close()
```

## Endpoints

```python
import asyncio
from ergot.address import Address
from ergot.endpoint import Endpoint, EndpointServer, request
from ergot.net_stack import NetStack
from ergot.profile import NullProfile

double = Endpoint("double")

async def main():
    stack = NetStack(NullProfile())
    with EndpointServer(stack, double, 16) as server:
        serving = asyncio.create_task(server.serve(lambda n: n * 2))
        print(await request(stack, double, Address.unknown(), 42))  # 84
        await serving

asyncio.run(main())
```

## What the package does not do

The package has no interfaces that move frames between devices. There are no
serial, USB or TCP links and no worker tasks driving them. `NullProfile` is
the only profile that ships, so to reach anything outside the program you
have to write your own `Profile`. There is also no device discovery, no topic
subscription API, no retries and no timeouts.

## Tests

```
pytest
```