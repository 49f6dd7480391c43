from __future__ import annotations

import asyncio
import json

import pytest

from notesync.models import Identity
from notesync.session import TOKEN_KEY, USER_KEY, SessionState, SessionStore
from notesync.storage import MemoryStorage, StorageError


class BrokenStorage(MemoryStorage):
    """Storage that refuses every write, like a browser in private mode."""

    def set_item(self, key: str, value: str) -> None:
        raise StorageError("quota exceeded")

    def remove_item(self, key: str) -> None:
        raise StorageError("storage disabled")


class TokenWriteFailure(MemoryStorage):
    def set_item(self, key: str, value: str) -> None:
        if key == TOKEN_KEY:
            raise StorageError("quota exceeded")
        super().set_item(key, value)


class UnreadableStorage(MemoryStorage):
    def get_item(self, key: str) -> str | None:
        raise StorageError("storage disabled")


def _assert_consistent(store: SessionStore) -> None:
    assert (store.identity is None) == (store.credential is None)


def test_restore_with_complete_session(identity: Identity) -> None:
    storage = MemoryStorage({USER_KEY: identity.to_storage(), TOKEN_KEY: "tok"})
    store = SessionStore(storage)
    assert store.state is SessionState.UNINITIALIZED

    session = asyncio.run(store.restore())

    assert session is not None
    assert store.state is SessionState.AUTHENTICATED
    assert store.identity.email == "ada@example.com"
    assert store.identity.id == "u1"
    assert store.credential == "tok"


def test_restore_with_nothing_saved() -> None:
    store = SessionStore(MemoryStorage())
    assert asyncio.run(store.restore()) is None
    assert store.state is SessionState.ANONYMOUS
    _assert_consistent(store)


@pytest.mark.parametrize(
    "saved",
    [
        {USER_KEY: json.dumps({"name": "Ada"})},
        {TOKEN_KEY: "tok"},
        {USER_KEY: "{not json", TOKEN_KEY: "tok"},
        {USER_KEY: json.dumps(["not", "an", "object"]), TOKEN_KEY: "tok"},
        {USER_KEY: json.dumps({"name": "Ada"}), TOKEN_KEY: ""},
    ],
)
def test_restore_clears_partial_or_corrupt_data(saved) -> None:
    storage = MemoryStorage(saved)
    store = SessionStore(storage)

    assert asyncio.run(store.restore()) is None

    assert store.state is SessionState.ANONYMOUS
    assert storage.snapshot() == {}
    _assert_consistent(store)


def test_restore_survives_unreadable_storage() -> None:
    store = SessionStore(UnreadableStorage())
    assert asyncio.run(store.restore()) is None
    assert store.state is SessionState.ANONYMOUS


def test_login_persists_both_keys(storage: MemoryStorage, identity: Identity) -> None:
    store = SessionStore(storage)
    asyncio.run(store.login(identity, "tok"))

    assert store.state is SessionState.AUTHENTICATED
    assert storage.get_item(TOKEN_KEY) == "tok"
    assert json.loads(storage.get_item(USER_KEY))["email"] == "ada@example.com"


def test_login_survives_storage_failure(identity: Identity) -> None:
    store = SessionStore(BrokenStorage())
    asyncio.run(store.login(identity, "tok"))

    assert store.is_authenticated
    assert store.credential == "tok"


def test_half_written_login_leaves_no_stale_pair() -> None:
    storage = TokenWriteFailure({USER_KEY: json.dumps({"_id": "old"}), TOKEN_KEY: "old-token"})
    store = SessionStore(storage)
    asyncio.run(store.login(Identity(id="new"), "new-token"))

    assert store.credential == "new-token"
    assert storage.get_item(USER_KEY) is None
    assert storage.get_item(TOKEN_KEY) is None

    restarted = SessionStore(storage)
    assert asyncio.run(restarted.restore()) is None
    assert restarted.state is SessionState.ANONYMOUS


def test_login_requires_a_credential(identity: Identity) -> None:
    store = SessionStore(MemoryStorage())
    with pytest.raises(ValueError):
        asyncio.run(store.login(identity, ""))
    assert not store.is_authenticated


def test_logout_clears_memory_and_storage(session: SessionStore, storage: MemoryStorage) -> None:
    asyncio.run(session.logout())

    assert session.state is SessionState.ANONYMOUS
    assert session.session is None
    assert storage.snapshot() == {}


def test_logout_survives_storage_failure(identity: Identity) -> None:
    store = SessionStore(BrokenStorage())
    asyncio.run(store.login(identity, "tok"))
    asyncio.run(store.logout())
    assert store.state is SessionState.ANONYMOUS
    _assert_consistent(store)


def test_session_survives_restart(identity: Identity) -> None:
    storage = MemoryStorage()
    asyncio.run(SessionStore(storage).login(identity, "tok"))

    restarted = SessionStore(storage)
    asyncio.run(restarted.restore())
    assert restarted.credential == "tok"
    assert restarted.identity == identity
