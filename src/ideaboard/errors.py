"""Error taxonomy for Ideaboard."""

from __future__ import annotations


class IdeaboardError(Exception):
    """Base class for all Ideaboard errors."""


class ValidationError(IdeaboardError, ValueError):
    """Raised locally before submission when input is invalid."""


class GatewayError(IdeaboardError):
    """Raised when a backend call fails.

    ``code`` carries the structured error code when the backend sent one.
    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class TransportError(GatewayError):
    """The backend could not be reached (network, DNS, CORS-style refusal)."""


class ProtocolError(GatewayError):
    """The backend answered but the payload was unparsable or off-contract."""


class BusinessError(GatewayError):
    """The backend parsed the request and rejected it."""
