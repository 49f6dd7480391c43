from __future__ import annotations

import asyncio
from collections.abc import Iterator

import httpx
import pytest

from notesync.client import NotesApiClient
from notesync.models import Identity
from notesync.repository import NoteRepository
from notesync.session import SessionStore
from notesync.storage import MemoryStorage
from tests.helpers.notes_api import BASE_URL, TOKEN, RecordingHandler


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTESYNC_HOME", str(tmp_path / "home"))
    for name in ("NOTESYNC_API_URL", "NOTESYNC_TIMEOUT", "NOTESYNC_LOG_LEVEL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture()
def client(handler: RecordingHandler) -> Iterator[NotesApiClient]:
    api = NotesApiClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    yield api
    asyncio.run(api.aclose())


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def identity() -> Identity:
    return Identity.model_validate({"_id": "u1", "name": "Ada", "email": "ada@example.com"})


@pytest.fixture()
def session(storage: MemoryStorage, identity: Identity) -> SessionStore:
    store = SessionStore(storage)
    asyncio.run(store.login(identity, TOKEN))
    return store


@pytest.fixture()
def repository(client: NotesApiClient, session: SessionStore) -> NoteRepository:
    return NoteRepository(client, session)
