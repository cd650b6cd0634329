import pytest

from ergot.accumulator import CobsAccumulator, FeedKind
from ergot.cobs import encode


def _pairs(count):
    payload = bytearray()
    for i in range(count):
        payload += bytes([0, i])
    return bytes(payload)


INPUT = _pairs(6)
INENC = encode(INPUT) + b"\x00"
BADENC = encode(INPUT) + b"\x04\x00"
EMPENC = b"\x00"
BIGINPUT = _pairs(25)
BIGENC = encode(BIGINPUT) + b"\x00"


def _chunks(stream, size):
    return [stream[start : start + size] for start in range(0, len(stream), size)]


def _drive(acc, stream, size):
    """Feed ``stream`` in chunks of ``size``; return bytes fed and all results."""
    fed = 0
    results = []
    for chunk in _chunks(stream, size):
        fed += len(chunk)
        while True:
            res = acc.feed(chunk)
            if res.kind is FeedKind.CONSUMED:
                break
            results.append(res)
            chunk = res.remaining
    return fed, results


def test_encoded_lengths():
    assert len(INENC) == 14
    assert len(BADENC) == 15
    assert len(BIGENC) == 52


def test_smoke_single_message():
    acc = CobsAccumulator(16)
    for size in range(1, len(INENC)):
        got = None
        fed = 0
        for chunk in _chunks(INENC, size):
            fed += len(chunk)
            res = acc.feed(chunk)
            if res.kind is FeedKind.SUCCESS:
                assert res.remaining == b""
                got = res.data
                break
            assert res.kind is FeedKind.CONSUMED
        assert fed == 14
        assert got == INPUT


def test_smoke_two_messages():
    acc = CobsAccumulator(16)
    stream = INENC + INENC
    for size in range(1, len(stream)):
        fed, results = _drive(acc, stream, size)
        assert fed == 28
        for res in results:
            assert res.is_success
            assert res.data == INPUT
        assert len(results) == 2


def test_decode_err():
    acc = CobsAccumulator(16)
    sandwich = INENC + BADENC + INENC
    for size in range(1, len(sandwich)):
        fed, results = _drive(acc, sandwich, size)
        assert fed == len(INENC) * 2 + len(BADENC)
        good = [r for r in results if r.is_success]
        bad = [r for r in results if r.kind is FeedKind.DECODE_ERROR]
        assert len(good) + len(bad) == len(results)
        assert all(r.data == INPUT for r in good)
        assert len(good) == 2
        assert len(bad) == 1


def test_overflow_err():
    acc = CobsAccumulator(16)
    sandwich = INENC + BIGENC + INENC
    for size in range(1, 16):
        fed, results = _drive(acc, sandwich, size)
        assert fed == len(INENC) * 2 + len(BIGENC)
        good = [r for r in results if r.is_success]
        over = [r for r in results if r.kind is FeedKind.OVERFULL]
        assert len(good) + len(over) == len(results)
        assert all(r.data == INPUT for r in good)
        assert len(good) == 2


@pytest.mark.parametrize("scenario_byte", range(256))
def test_permute_256(scenario_byte):
    acc = CobsAccumulator(16)
    stream = b""
    good_emptys = good_data = bad_dec = 0
    for _ in range(4):
        scen = scenario_byte & 0b11
        scenario_byte >>= 2
        if scen == 0b00:
            stream += INENC
            good_data += 1
        elif scen == 0b01:
            stream += BADENC
            bad_dec += 1
        elif scen == 0b10:
            stream += EMPENC
            good_emptys += 1
        else:
            stream += BIGENC

    for size in range(1, len(BIGENC)):
        fed, results = _drive(acc, stream, size)
        got_data = got_empty = got_bads = 0
        for res in results:
            if res.is_success:
                if res.data:
                    assert res.data == INPUT
                    got_data += 1
                else:
                    got_empty += 1
            elif res.kind is FeedKind.DECODE_ERROR:
                got_bads += 1
            else:
                assert res.kind is FeedKind.OVERFULL
        assert fed == len(stream)
        assert got_data == good_data
        assert got_bads == bad_dec
        assert got_empty == good_emptys


def test_empty_input_is_consumed():
    acc = CobsAccumulator(16)
    res = acc.feed(b"")
    assert res.kind is FeedKind.CONSUMED
    assert res.data is None
    assert acc.contents() == b""


def test_whole_frame_in_one_chunk_decodes_from_input():
    acc = CobsAccumulator(16)
    res = acc.feed(INENC + b"\x05")
    assert res.kind is FeedKind.SUCCESS_INPUT
    assert res.data == INPUT
    assert res.remaining == b"\x05"


def test_whole_frame_larger_than_capacity_still_decodes():
    acc = CobsAccumulator(16)
    res = acc.feed(BIGENC)
    assert res.kind is FeedKind.SUCCESS_INPUT
    assert res.data == BIGINPUT


def test_contents_tracks_partial_frame():
    acc = CobsAccumulator(16)
    acc.feed(INENC[:5])
    assert acc.contents() == INENC[:5]
    res = acc.feed(INENC[5:])
    assert res.kind is FeedKind.SUCCESS
    assert res.data == INPUT
    assert acc.contents() == b""


def test_overflow_state_until_zero():
    acc = CobsAccumulator(4)
    res = acc.feed(b"\x01\x02\x03\x04\x05")
    assert res.kind is FeedKind.OVERFULL
    assert acc.contents() is None
    res = acc.feed(b"\x09\x09")
    assert res.kind is FeedKind.OVERFULL
    assert res.remaining == b""
    res = acc.feed(b"\x09\x00" + INENC[:3])
    assert res.kind is FeedKind.OVERFULL
    assert res.remaining == INENC[:3]
    assert acc.contents() == b""


def test_overflow_on_terminating_chunk_clears_state():
    acc = CobsAccumulator(16)
    acc.feed(BIGENC[:10])
    res = acc.feed(BIGENC[10:])
    assert res.kind is FeedKind.OVERFULL
    assert acc.contents() == b""
    res = acc.feed(INENC)
    assert res.data == INPUT


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        CobsAccumulator(-1)


def test_accepts_bytearray_input():
    acc = CobsAccumulator(16)
    res = acc.feed(bytearray(INENC))
    assert res.data == INPUT