"""Custom exception hierarchy for the PowerSchool client."""
from __future__ import annotations

from typing import Any


class PowerSchoolError(RuntimeError):
    """Base error for PowerSchool failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthenticationError(PowerSchoolError):
    """Raised when the client-credentials exchange does not yield a token."""


class TransportError(PowerSchoolError):
    """Raised when an HTTP request cannot be fulfilled."""


class UnexpectedResponseError(TransportError):
    """Raised when the API returns a payload that is not valid JSON."""
