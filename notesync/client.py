"""Async HTTP client for the notes API."""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from . import __version__
from .errors import ApiError, AuthenticationError, InvalidBodyError, NotFoundError, TransportError

LOG = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT = 30.0


def _user_agent(suffix: Optional[str] = None) -> str:
    values = [f"notesync/{__version__}", f"httpx/{httpx.__version__}", suffix]
    return " ".join(filter(None, values))


def _prepare_headers(suffix: Optional[str]) -> Dict[str, str]:
    return {
        "User-Agent": _user_agent(suffix),
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def _auth_headers(token: Optional[str]) -> Dict[str, str]:
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}


def _extract_detail(payload: Any) -> Optional[str]:
    """Pull a human friendly message out of an error body."""

    if not isinstance(payload, dict):
        return None
    for key in ("message", "detail", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, Iterable) and not isinstance(value, (str, bytes, dict)):
            first = next((item for item in value if isinstance(item, str) and item.strip()), None)
            if first:
                return first.strip()
    return None


def _error_from_response(response: httpx.Response) -> ApiError:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = {}
    if not isinstance(payload, dict):
        payload = {"body": payload}

    code = payload.get("code") if isinstance(payload.get("code"), str) else f"HTTP_{response.status_code}"
    message = _extract_detail(payload) or response.reason_phrase

    error_type = {
        400: InvalidBodyError,
        401: AuthenticationError,
        404: NotFoundError,
    }.get(response.status_code, ApiError)
    return error_type(code=code, status_code=response.status_code, message=message, payload=payload)


def _note_path(note_id: str) -> str:
    return f"/notes/{quote(str(note_id), safe='')}"


class NotesApiClient:
    """Thin async wrapper around the user and note endpoints.

    Every method returns the decoded JSON body (``None`` for empty or
    non-JSON bodies) and raises an :class:`~notesync.errors.ApiError`
    subclass for error statuses or :class:`~notesync.errors.TransportError`
    when the request never produced a response. Nothing is retried.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent_suffix: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._headers = _prepare_headers(user_agent_suffix)
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers=self._headers,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "NotesApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:  # type: ignore[override]
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not path.startswith("/"):
            path = f"/{path}"
        try:
            response = await self._client.request(method, path, json=json_body, headers=_auth_headers(token))
        except httpx.HTTPError as exc:
            LOG.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if 200 <= response.status_code < 300:
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                LOG.warning("%s %s returned a non-JSON body", method, path)
                return None
        error = _error_from_response(response)
        LOG.debug("%s %s -> %s", method, path, error)
        raise error

    # ---- Users -------------------------------------------------------------
    async def register(self, name: str, email: str, password: str) -> Any:
        return await self.request(
            "POST", "/users/register", json_body={"name": name, "email": email, "password": password}
        )

    async def login(self, email: str, password: str) -> Any:
        return await self.request("POST", "/users/login", json_body={"email": email, "password": password})

    async def sign_out(self, token: str) -> Any:
        return await self.request("POST", "/users/signout", token=token, json_body={})

    # ---- Notes -------------------------------------------------------------
    async def list_notes(self, token: str) -> Any:
        return await self.request("GET", "/notes", token=token)

    async def create_note(self, token: str, title: str, content: str) -> Any:
        return await self.request("POST", "/notes", token=token, json_body={"title": title, "content": content})

    async def update_note(self, token: str, note_id: str, title: str, content: str) -> Any:
        return await self.request(
            "PUT", _note_path(note_id), token=token, json_body={"title": title, "content": content}
        )

    async def delete_note(self, token: str, note_id: str) -> Any:
        return await self.request("DELETE", _note_path(note_id), token=token)


__all__ = ["DEFAULT_BASE_URL", "DEFAULT_TIMEOUT", "NotesApiClient"]
