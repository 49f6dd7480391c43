from __future__ import annotations

import asyncio

import httpx
import pytest

from notesync.auth import AuthService
from notesync.client import NotesApiClient
from notesync.errors import SyncErrorKind
from notesync.session import TOKEN_KEY, SessionState, SessionStore
from notesync.storage import MemoryStorage
from tests.helpers.notes_api import BASE_URL, TOKEN, RecordingHandler

USER = {"_id": "u1", "name": "Ada", "email": "ada@example.com"}


@pytest.fixture()
def anonymous(storage: MemoryStorage) -> SessionStore:
    store = SessionStore(storage)
    asyncio.run(store.restore())
    return store


def test_login_establishes_session(client, handler: RecordingHandler, anonymous, storage) -> None:
    handler.push(httpx.Response(200, json={"user": USER, "token": "fresh"}))

    result = asyncio.run(AuthService(client, anonymous).login("ada@example.com", "secret"))

    assert result.ok
    assert anonymous.state is SessionState.AUTHENTICATED
    assert anonymous.identity.name == "Ada"
    assert storage.get_item(TOKEN_KEY) == "fresh"
    assert handler.calls() == [("POST", "/users/login")]


def test_login_failure_uses_server_message(client, handler, anonymous) -> None:
    handler.push(httpx.Response(401, json={"message": "Wrong password"}))

    result = asyncio.run(AuthService(client, anonymous).login("ada@example.com", "bad"))

    assert result.error is SyncErrorKind.REJECTED
    assert result.message == "Wrong password"
    assert not anonymous.is_authenticated


def test_login_failure_falls_back_to_generic_message(client, handler, anonymous) -> None:
    handler.push(httpx.Response(400))
    result = asyncio.run(AuthService(client, anonymous).login("ada@example.com", "bad"))
    assert result.message == "Invalid credentials"


@pytest.mark.parametrize("body", [{"user": USER}, {"token": "t"}, {"user": "Ada", "token": "t"}, ["nope"]])
def test_login_with_malformed_response_sets_no_session(client, handler, anonymous, body) -> None:
    handler.push(httpx.Response(200, json=body))

    result = asyncio.run(AuthService(client, anonymous).login("ada@example.com", "secret"))

    assert result.error is SyncErrorKind.UNEXPECTED_SHAPE
    assert anonymous.session is None


@pytest.mark.parametrize(
    ("name", "email", "password", "confirm"),
    [
        ("  ", "ada@example.com", "secret1", "secret1"),
        ("Ada", "", "secret1", "secret1"),
        ("Ada", "ada@example.com", "secret1", "secret2"),
        ("Ada", "ada@example.com", "short", "short"),
    ],
)
def test_register_validates_locally(client, handler, anonymous, name, email, password, confirm) -> None:
    result = asyncio.run(AuthService(client, anonymous).register(name, email, password, confirm))
    assert result.error is SyncErrorKind.INVALID_INPUT
    assert handler.requests == []


def test_register_sends_profile_and_logs_in(client, handler, anonymous) -> None:
    handler.push(httpx.Response(201, json={"user": USER, "token": "fresh"}))

    result = asyncio.run(AuthService(client, anonymous).register(" Ada ", "ada@example.com", "secret1", "secret1"))

    assert result.ok
    assert handler.body() == {"name": "Ada", "email": "ada@example.com", "password": "secret1"}
    assert anonymous.credential == "fresh"


def test_register_server_rejection(client, handler, anonymous) -> None:
    handler.push(httpx.Response(400, json={"message": "Email already registered"}))
    result = asyncio.run(AuthService(client, anonymous).register("Ada", "ada@example.com", "secret1", "secret1"))
    assert result.error is SyncErrorKind.REJECTED
    assert result.message == "Email already registered"


def test_register_network_failure(anonymous) -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = NotesApiClient(base_url=BASE_URL, transport=httpx.MockTransport(boom))
    result = asyncio.run(AuthService(client, anonymous).register("Ada", "ada@example.com", "secret1", "secret1"))
    assert result.error is SyncErrorKind.FETCH_FAILED


@pytest.mark.parametrize("status", [200, 401, 500])
def test_sign_out_always_clears_local_session(client, handler, session, storage, status) -> None:
    handler.push(httpx.Response(status, json={}))

    result = asyncio.run(AuthService(client, session).sign_out())

    assert result.ok
    assert session.state is SessionState.ANONYMOUS
    assert storage.snapshot() == {}
    assert handler.requests[0].headers["Authorization"] == f"Bearer {TOKEN}"


def test_sign_out_survives_network_failure(session, storage) -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = NotesApiClient(base_url=BASE_URL, transport=httpx.MockTransport(boom))
    asyncio.run(AuthService(client, session).sign_out())
    assert not session.is_authenticated
    assert storage.snapshot() == {}


def test_sign_out_without_session_skips_server(client, handler, anonymous) -> None:
    assert asyncio.run(AuthService(client, anonymous).sign_out()).ok
    assert handler.requests == []
