"""Custom exceptions for the site publisher.

Every error carries an :class:`ErrorKind` tag and an HTTP status assigned where
the failure happens, so the API boundary never has to guess from message text.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-usable error classification."""

    VALIDATION = "validation"
    STRUCTURE_MISMATCH = "structure_mismatch"
    TRANSPORT = "transport"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class SitePublisherError(Exception):
    """Base exception for the site publisher."""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class ConfigValidationError(SitePublisherError):
    """Configuration failed structural or field-level validation."""

    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(self, errors: list[str], message: str = "Invalid configuration structure"):
        super().__init__(message, {"errors": list(errors)})
        self.errors = list(errors)


class StructureMismatchError(SitePublisherError):
    """The cloned repository does not have the expected file layout."""

    kind = ErrorKind.STRUCTURE_MISMATCH

    def __init__(self, expected_path: str):
        super().__init__(
            f"Repository structure mismatch: configuration directory not found: {expected_path}",
            {"expected_path": expected_path},
        )
        self.expected_path = expected_path


class TransportError(SitePublisherError):
    """Clone, push or network call failed."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        returncode: int | None = None,
        stderr: str | None = None,
    ):
        details: dict[str, Any] = {}
        if command:
            details["command"] = command
        if returncode is not None:
            details["returncode"] = returncode
        if stderr:
            details["stderr"] = stderr
        super().__init__(message, details)
        self.command = command
        self.returncode = returncode


class AuthError(SitePublisherError):
    """Webhook signature missing or mismatched."""

    kind = ErrorKind.AUTH
    status_code = 401

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class UnsupportedProviderError(SitePublisherError):
    """Webhook posted for a build provider we do not know."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, provider: str):
        super().__init__(f"Unsupported webhook provider: {provider}", {"provider": provider})
        self.provider = provider
