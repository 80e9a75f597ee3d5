"""Custom exception hierarchy for vocbridge."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vocbridge.models.service import PendingInvocation


class VocError(Exception):
    """Base exception for all vocbridge errors."""


class VocConfigError(VocError):
    """Invalid or missing configuration."""


class VocTransportError(VocError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class VocApiError(VocError):
    """API answered with an error label (application-level error)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class VocAuthenticationError(VocApiError):
    """Login rejected (bad username/password or HTTP 401)."""


class VocInvocationError(VocError):
    """A remote action could not be completed.

    The :attr:`invocation` carries the tracking state at the moment the
    invocation was abandoned (attempt count, outcome, failure reason).
    """

    def __init__(self, message: str, *, invocation: PendingInvocation | None = None) -> None:
        self.invocation = invocation
        super().__init__(message)


class VocInvocationFailedError(VocInvocationError):
    """The cloud reported a terminal ``Failed`` status for the invocation."""


class VocInvocationTimeoutError(VocInvocationError):
    """No terminal status was obtained within the polling attempt budget."""


class VocMalformedCommandError(VocError):
    """An inbound MQTT command could not be decoded."""

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)
