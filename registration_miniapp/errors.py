from __future__ import annotations

from typing import Any

from registration_miniapp import messages


class RegistrationError(Exception):
    """Base class for failures that end a registration request."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message}


class AuthenticationError(RegistrationError):
    status_code = 401


class ValidationError(RegistrationError):
    """Payload violations, aggregated into a single ``details`` string."""

    status_code = 400

    def __init__(self, details: str) -> None:
        super().__init__(messages.VALIDATION_FAILED)
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


class ConflictError(RegistrationError):
    status_code = 409

    def __init__(self, message: str = messages.ALREADY_REGISTERED) -> None:
        super().__init__(message)


class InternalError(RegistrationError):
    status_code = 500

    def __init__(self, detail: str = messages.UNEXPECTED_ERROR) -> None:
        super().__init__(messages.INTERNAL_ERROR)
        self.detail = detail or messages.UNEXPECTED_ERROR

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "message": self.detail}


__all__ = [
    "RegistrationError",
    "AuthenticationError",
    "ValidationError",
    "ConflictError",
    "InternalError",
]
