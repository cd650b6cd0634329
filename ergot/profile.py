"""Profiles: the external interfaces of a device and how it routes to them."""

from __future__ import annotations

import abc
import enum

from .frames import Header

__all__ = ["InterfaceSendError", "InterfaceSendFailure", "Profile", "NullProfile"]


class InterfaceSendError(enum.Enum):
    """Why a profile could not take a frame."""

    #: The destination is one of this device's own interface addresses.
    DESTINATION_LOCAL = enum.auto()
    #: No interface leads to the destination.
    NO_ROUTE_TO_DEST = enum.auto()
    #: The interface that leads to the destination has no room.
    INTERFACE_FULL = enum.auto()


class InterfaceSendFailure(Exception):
    """Raised by :meth:`Profile.send` when a frame cannot be sent."""

    def __init__(self, error: InterfaceSendError) -> None:
        super().__init__(error.name.lower().replace("_", " "))
        self.error = error

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InterfaceSendFailure):
            return NotImplemented
        return self.error == other.error

    def __hash__(self) -> int:
        return hash(self.error)


class Profile(abc.ABC):
    """The set of external interfaces a net stack can send through."""

    @abc.abstractmethod
    def send(self, header: Header, data: bytes) -> None:
        """Send an encoded body with ``header`` out of a matching interface.

        Raises :class:`InterfaceSendFailure` if the frame is not taken.
        """


class NullProfile(Profile):
    """A profile with no external interfaces: nothing can be routed outward."""

    def send(self, header: Header, data: bytes) -> None:
        raise InterfaceSendFailure(InterfaceSendError.NO_ROUTE_TO_DEST)