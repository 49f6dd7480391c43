"""Exception hierarchy for the notes API and the outcome taxonomy built on it."""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Dict, Optional


@dataclass(slots=True)
class ApiError(Exception):
    """Base error for a non-2xx response from the notes API."""

    code: str
    status_code: int
    message: str
    payload: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover - convenience string repr
        return f"{self.status_code} {self.code}: {self.message}"


class InvalidBodyError(ApiError):
    """Raised when the API rejects a payload (HTTP 400)."""


class AuthenticationError(ApiError):
    """Raised when the API rejects the bearer credential (HTTP 401)."""


class NotFoundError(ApiError):
    """Raised when the addressed entity does not exist remotely (HTTP 404)."""


class TransportError(RuntimeError):
    """Raised when no HTTP response was received at all."""


class SyncErrorKind(StrEnum):
    INVALID_INPUT = "invalid_input"
    SESSION_EXPIRED = "session_expired"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    UNEXPECTED_SHAPE = "unexpected_shape"
    FETCH_FAILED = "fetch_failed"


def classify(error: BaseException) -> SyncErrorKind:
    """Map an exception raised by :mod:`notesync.client` onto the taxonomy."""

    if isinstance(error, AuthenticationError):
        return SyncErrorKind.SESSION_EXPIRED
    if isinstance(error, NotFoundError):
        return SyncErrorKind.NOT_FOUND
    if isinstance(error, InvalidBodyError):
        return SyncErrorKind.REJECTED
    return SyncErrorKind.FETCH_FAILED


def describe(error: BaseException) -> str:
    """Return the most useful human readable message for ``error``."""

    if isinstance(error, ApiError):
        return error.message
    return str(error) or error.__class__.__name__


__all__ = [
    "ApiError",
    "AuthenticationError",
    "InvalidBodyError",
    "NotFoundError",
    "SyncErrorKind",
    "TransportError",
    "classify",
    "describe",
]
