import pytest
from hypothesis import given
from hypothesis import strategies as st

from ergot.fmtlog import FmtMessage, Level, fmt
from ergot.postcard import DecodeError, encode_str, encode_varint


def test_fmt_punning_works():
    x = 10
    y = "world"
    msg = FmtMessage(Level.WARN, fmt("hello {x}, {}", y, x=x))
    res = FmtMessage.from_bytes(msg.to_bytes())
    assert res.inner == "hello 10, world"
    assert res.level is Level.WARN


def test_fmt_positional_and_keyword():
    assert fmt("1 hello ({x}), {}", "world", x=10) == "1 hello (10), world"


@pytest.mark.parametrize(
    "name, discriminant",
    [("ERROR", 0), ("WARN", 1), ("INFO", 2), ("DEBUG", 3), ("TRACE", 4)],
)
def test_level_discriminants_follow_declaration_order(name, discriminant):
    msg = FmtMessage(Level[name], "")
    assert msg.to_bytes() == encode_varint(discriminant) + encode_str("")


def test_wire_layout():
    msg = FmtMessage(Level.WARN, "hello 10, world")
    assert msg.to_bytes() == encode_varint(1) + encode_str("hello 10, world")


@given(st.sampled_from(list(Level)), st.text())
def test_round_trip(level, text):
    msg = FmtMessage(level, text)
    assert FmtMessage.from_bytes(msg.to_bytes()) == msg


def test_unknown_level_rejected():
    with pytest.raises(DecodeError):
        FmtMessage.from_bytes(encode_varint(5) + encode_str("x"))


def test_trailing_bytes_rejected():
    data = FmtMessage(Level.INFO, "x").to_bytes() + b"\x00"
    with pytest.raises(DecodeError):
        FmtMessage.from_bytes(data)


def test_truncated_text_rejected():
    data = FmtMessage(Level.INFO, "hello").to_bytes()[:-1]
    with pytest.raises(DecodeError):
        FmtMessage.from_bytes(data)