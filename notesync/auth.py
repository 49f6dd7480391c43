"""Registration, login and sign-out flows."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .client import NotesApiClient
from .errors import ApiError, SyncErrorKind, TransportError, classify, describe
from .models import Identity
from .results import SyncResult
from .session import SessionStore

LOG = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _identity_from(payload: Any) -> tuple[Identity, str] | None:
    if not isinstance(payload, Mapping):
        return None
    user = payload.get("user")
    token = payload.get("token")
    if not isinstance(user, Mapping) or not isinstance(token, str) or not token:
        return None
    try:
        return Identity.model_validate(dict(user)), token
    except ValidationError as exc:
        LOG.warning("Rejecting malformed user record: %s", exc)
        return None


class AuthService:
    """Drive the user endpoints and hand successful sessions to ``session``."""

    def __init__(self, client: NotesApiClient, session: SessionStore) -> None:
        self._client = client
        self._session = session

    async def register(self, name: str, email: str, password: str, confirm_password: str) -> SyncResult:
        if not name.strip():
            return SyncResult.failure(SyncErrorKind.INVALID_INPUT, "Please enter your full name")
        if not email.strip():
            return SyncResult.failure(SyncErrorKind.INVALID_INPUT, "Please enter your email address")
        if password != confirm_password:
            return SyncResult.failure(SyncErrorKind.INVALID_INPUT, "Passwords do not match")
        if len(password) < MIN_PASSWORD_LENGTH:
            return SyncResult.failure(
                SyncErrorKind.INVALID_INPUT,
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            )
        try:
            payload = await self._client.register(name.strip(), email.strip(), password)
        except (ApiError, TransportError) as exc:
            LOG.warning("Registration failed: %s", exc)
            return self._auth_failure(exc, "Unknown error")
        return await self._establish(payload)

    async def login(self, email: str, password: str) -> SyncResult:
        if not email.strip() or not password:
            return SyncResult.failure(SyncErrorKind.INVALID_INPUT, "Email and password are required")
        try:
            payload = await self._client.login(email.strip(), password)
        except (ApiError, TransportError) as exc:
            LOG.warning("Login failed: %s", exc)
            return self._auth_failure(exc, "Invalid credentials")
        return await self._establish(payload)

    async def sign_out(self) -> SyncResult:
        """Tell the server, then drop the local session whatever it answered."""

        token = self._session.credential
        if token:
            try:
                await self._client.sign_out(token)
            except (ApiError, TransportError) as exc:
                LOG.warning("Error signing out from server: %s", exc)
        await self._session.logout()
        return SyncResult.success()

    async def _establish(self, payload: Any) -> SyncResult:
        parsed = _identity_from(payload)
        if parsed is None:
            LOG.warning("Unexpected auth response structure")
            return SyncResult.failure(SyncErrorKind.UNEXPECTED_SHAPE, "Server response did not include a session")
        identity, token = parsed
        await self._session.login(identity, token)
        LOG.info("Signed in as %s", identity.display_name)
        return SyncResult.success()

    @staticmethod
    def _auth_failure(exc: Exception, fallback: str) -> SyncResult:
        kind = classify(exc)
        if isinstance(exc, ApiError):
            # the user endpoints answer bad credentials with 400 or 401
            if kind in (SyncErrorKind.SESSION_EXPIRED, SyncErrorKind.REJECTED):
                kind = SyncErrorKind.REJECTED
            detail = (exc.payload or {}).get("message")
            message = detail.strip() if isinstance(detail, str) and detail.strip() else fallback
            return SyncResult.failure(kind, message)
        return SyncResult.failure(kind, describe(exc))


__all__ = ["AuthService", "MIN_PASSWORD_LENGTH"]
