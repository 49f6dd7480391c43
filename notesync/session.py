"""Authenticated session state and its durable persistence."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import StrEnum

from pydantic import ValidationError

from .models import Identity
from .storage import Storage, StorageError

LOG = logging.getLogger(__name__)

USER_KEY = "user"
TOKEN_KEY = "token"


class SessionState(StrEnum):
    UNINITIALIZED = "uninitialized"
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True, slots=True)
class Session:
    """An identity paired with the bearer credential issued for it."""

    identity: Identity
    credential: str


class SessionStore:
    """Own the current :class:`Session` and mirror it into ``storage``.

    The in-memory session is authoritative for the running process. Storage
    is written on a best-effort basis: failures are logged and never undo an
    in-memory change, so a session stays usable when persistence is not.
    """

    def __init__(self, storage: Storage, *, user_key: str = USER_KEY, token_key: str = TOKEN_KEY) -> None:
        self._storage = storage
        self._user_key = user_key
        self._token_key = token_key
        self._session: Session | None = None
        self._state = SessionState.UNINITIALIZED

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def identity(self) -> Identity | None:
        return self._session.identity if self._session else None

    @property
    def credential(self) -> str | None:
        return self._session.credential if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    async def restore(self) -> Session | None:
        """Load a persisted session, clearing any partial or corrupt remnants."""

        self._state = SessionState.RESTORING
        try:
            raw_user = await asyncio.to_thread(self._storage.get_item, self._user_key)
            raw_token = await asyncio.to_thread(self._storage.get_item, self._token_key)
        except (StorageError, OSError) as exc:
            LOG.warning("Error loading saved session: %s", exc)
            await self._clear_persisted()
            return self._become_anonymous()

        if not raw_user or not raw_token:
            if raw_user or raw_token:
                LOG.info("Discarding incomplete saved session")
                await self._clear_persisted()
            return self._become_anonymous()

        try:
            payload = json.loads(raw_user)
            if not isinstance(payload, dict):
                raise ValueError("saved identity is not an object")
            identity = Identity.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            LOG.warning("Error parsing saved identity: %s", exc)
            await self._clear_persisted()
            return self._become_anonymous()

        self._session = Session(identity=identity, credential=raw_token)
        self._state = SessionState.AUTHENTICATED
        LOG.debug("Restored session for %s", identity.display_name)
        return self._session

    async def login(self, identity: Identity, credential: str) -> Session:
        if not credential:
            raise ValueError("credential must be a non-empty string")
        self._session = Session(identity=identity, credential=credential)
        self._state = SessionState.AUTHENTICATED
        try:
            await asyncio.to_thread(self._storage.set_item, self._user_key, identity.to_storage())
            await asyncio.to_thread(self._storage.set_item, self._token_key, credential)
        except (StorageError, OSError) as exc:
            LOG.warning("Error saving session to storage: %s", exc)
            await self._clear_persisted()
        return self._session

    async def logout(self) -> None:
        self._session = None
        self._state = SessionState.ANONYMOUS
        await self._clear_persisted()

    def _become_anonymous(self) -> None:
        self._session = None
        self._state = SessionState.ANONYMOUS
        return None

    async def _clear_persisted(self) -> None:
        for key in (self._user_key, self._token_key):
            try:
                await asyncio.to_thread(self._storage.remove_item, key)
            except (StorageError, OSError) as exc:
                LOG.warning("Error clearing %s from storage: %s", key, exc)


__all__ = ["Session", "SessionState", "SessionStore", "TOKEN_KEY", "USER_KEY"]
