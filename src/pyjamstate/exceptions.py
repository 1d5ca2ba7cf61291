"""Custom exception hierarchy for pyjamstate."""

from __future__ import annotations


class JamStateError(Exception):
    """Base exception for all pyjamstate errors."""


class StateFormatError(JamStateError):
    """Snapshot document is not valid JSON or matches no supported layout."""

    def __init__(self, message: str, *, format_description: str = "") -> None:
        self.format_description = format_description
        super().__init__(message)


class KeyFormatError(JamStateError, ValueError):
    """A key or hash string could not be parsed."""


class ServiceNotFoundError(JamStateError):
    """The snapshot holds no account record for the requested service."""

    def __init__(self, service_id: int) -> None:
        self.service_id = service_id
        super().__init__("Service not found")


class ServiceDecodeError(JamStateError):
    """A service-owned value could not be decoded.

    Raised by :class:`pyjamstate.state.service.RawStateService` when an
    account record or lookup-history value is truncated or malformed.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
