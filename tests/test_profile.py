import pytest

from ergot.address import Address
from ergot.frames import FrameKind, Header
from ergot.profile import (
    InterfaceSendError,
    InterfaceSendFailure,
    NullProfile,
    Profile,
)


def _header():
    return Header(
        src=Address.unknown(),
        dst=Address(10, 10, 10),
        kind=FrameKind.RESERVED,
    )


def test_null_profile_has_no_route():
    with pytest.raises(InterfaceSendFailure) as info:
        NullProfile().send(_header(), b"\x01\x02")
    assert info.value.error is InterfaceSendError.NO_ROUTE_TO_DEST


def test_null_profile_rejects_local_destinations_too():
    hdr = Header(src=Address.unknown(), dst=Address(0, 0, 4))
    with pytest.raises(InterfaceSendFailure) as info:
        NullProfile().send(hdr, b"")
    assert info.value.error is InterfaceSendError.NO_ROUTE_TO_DEST


def test_profile_is_abstract():
    with pytest.raises(TypeError):
        Profile()


def test_custom_profile_records_sends():
    class Recording(Profile):
        def __init__(self):
            self.sent = []

        def send(self, header, data):
            self.sent.append((header, data))

    profile = Recording()
    hdr = _header()
    profile.send(hdr, b"\xd2\x09")
    assert profile.sent == [(hdr, b"\xd2\x09")]


def test_custom_profile_can_refuse():
    class Full(Profile):
        def send(self, header, data):
            raise InterfaceSendFailure(InterfaceSendError.INTERFACE_FULL)

    with pytest.raises(InterfaceSendFailure) as info:
        Full().send(_header(), b"")
    assert info.value.error is InterfaceSendError.INTERFACE_FULL


def test_failure_equality_follows_error():
    assert InterfaceSendFailure(InterfaceSendError.DESTINATION_LOCAL) == InterfaceSendFailure(
        InterfaceSendError.DESTINATION_LOCAL
    )
    assert not (
        InterfaceSendFailure(InterfaceSendError.INTERFACE_FULL)
        == InterfaceSendFailure(InterfaceSendError.NO_ROUTE_TO_DEST)
    )


def test_failure_message_names_error():
    assert "full" in str(InterfaceSendFailure(InterfaceSendError.INTERFACE_FULL))