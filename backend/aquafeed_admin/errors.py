"""Exceptions raised by the dashboard services and mapped to responses in main.py."""

from typing import Any, Optional


class BackendError(Exception):
    """The backend REST API answered with an error status or could not be reached.

    Attributes:
        status_code: backend HTTP status, or None for transport failures
        message: human-readable message (backend ``error``/``message`` field when present)
        payload: decoded JSON body of the failed response, if any
    """

    def __init__(self, status_code: Optional[int], message: str, payload: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    def __str__(self) -> str:
        return self.message


class NotAuthenticated(Exception):
    """No session cookie, or the backend rejected the relayed session."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)
        self.message = message


class AdminRequired(Exception):
    """The session belongs to a user whose role is not ``admin``."""

    def __init__(self, message: str = "Access denied. Admin account required."):
        super().__init__(message)
        self.message = message


class FormValidationError(Exception):
    """Inline validation failed; nothing was sent to the backend.

    ``errors`` maps form field names to messages. The empty key holds
    errors that concern the form as a whole.
    """

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" if k else v for k, v in errors.items()))
        self.errors = errors
