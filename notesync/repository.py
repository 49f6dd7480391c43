"""Keep a local note collection in step with the remote notes API."""

from __future__ import annotations

import logging

from .client import NotesApiClient
from .errors import ApiError, SyncErrorKind, TransportError, classify, describe
from .models import NoteCollection, parse_note, parse_notes, unwrap_note_list
from .results import SyncResult
from .session import SessionStore
from .split import split_text

LOG = logging.getLogger(__name__)


class NoteRepository:
    """CRUD over the remote note store mirrored into a :class:`NoteCollection`.

    The collection is only mutated once the server has answered; there is
    no optimistic insert or edit to roll back. Expected remote outcomes
    (401, 404, transport failures, odd payloads) come back as a
    :class:`~notesync.results.SyncResult` rather than as exceptions. A
    ``SESSION_EXPIRED`` result leaves the session alone: the caller decides
    when to log out and re-authenticate.
    """

    def __init__(
        self,
        client: NotesApiClient,
        session: SessionStore,
        collection: NoteCollection | None = None,
    ) -> None:
        self._client = client
        self._session = session
        self.notes = collection if collection is not None else NoteCollection()

    def _credential(self) -> str | None:
        return self._session.credential

    async def fetch_all(self) -> SyncResult:
        """Replace the collection with the server's list.

        On any failure the collection is left untouched.
        """

        token = self._credential()
        if not token:
            return SyncResult.failure(SyncErrorKind.SESSION_EXPIRED, "Not signed in")
        try:
            payload = await self._client.list_notes(token)
        except (ApiError, TransportError) as exc:
            kind = classify(exc)
            if kind is not SyncErrorKind.SESSION_EXPIRED:
                kind = SyncErrorKind.FETCH_FAILED
            LOG.warning("Error loading notes: %s", exc)
            return SyncResult.failure(kind, describe(exc))

        warning = SyncErrorKind.UNEXPECTED_SHAPE if unwrap_note_list(payload) is None else None
        self.notes.replace_all(parse_notes(payload))
        LOG.debug("Loaded %d notes", len(self.notes))
        return SyncResult.success(warning=warning)

    async def create(self, raw_text: str) -> SyncResult:
        if not raw_text.strip():
            return SyncResult.failure(SyncErrorKind.INVALID_INPUT, "Note text is empty")
        token = self._credential()
        if not token:
            return SyncResult.failure(SyncErrorKind.SESSION_EXPIRED, "Not signed in")

        title, content = split_text(raw_text)
        try:
            payload = await self._client.create_note(token, title, content)
        except (ApiError, TransportError) as exc:
            LOG.warning("Error creating note: %s", exc)
            return SyncResult.failure(classify(exc), describe(exc))

        note = parse_note(payload)
        if note is None:
            LOG.warning("Unexpected create response; refreshing notes")
            return await self._resync(SyncResult.success(warning=SyncErrorKind.UNEXPECTED_SHAPE))
        self.notes.prepend(note)
        return SyncResult.success(note)

    async def update(self, note_id: str | None, raw_text: str) -> SyncResult:
        if not note_id or not raw_text.strip():
            return SyncResult.failure(SyncErrorKind.INVALID_INPUT, "Invalid note data")
        token = self._credential()
        if not token:
            return SyncResult.failure(SyncErrorKind.SESSION_EXPIRED, "Not signed in")

        title, content = split_text(raw_text)
        try:
            payload = await self._client.update_note(token, note_id, title, content)
        except (ApiError, TransportError) as exc:
            kind = classify(exc)
            LOG.warning("Error updating note %s: %s", note_id, exc)
            if kind is SyncErrorKind.NOT_FOUND:
                return await self._resync(SyncResult.failure(kind, "Note not found. It may have been deleted."))
            return SyncResult.failure(kind, describe(exc))

        note = parse_note(payload)
        if note is None:
            LOG.warning("Unexpected update response for %s; refreshing notes", note_id)
            return await self._resync(SyncResult.success(warning=SyncErrorKind.UNEXPECTED_SHAPE))
        self.notes.replace(note_id, note)
        return SyncResult.success(note)

    async def delete(self, note_id: str | None) -> SyncResult:
        """Delete ``note_id``; a 404 counts as success since the note is gone."""

        if not note_id:
            return SyncResult.failure(SyncErrorKind.INVALID_INPUT, "Invalid note ID")
        token = self._credential()
        if not token:
            return SyncResult.failure(SyncErrorKind.SESSION_EXPIRED, "Not signed in")

        try:
            await self._client.delete_note(token, note_id)
        except (ApiError, TransportError) as exc:
            kind = classify(exc)
            if kind is not SyncErrorKind.NOT_FOUND:
                LOG.warning("Error deleting note %s: %s", note_id, exc)
                return SyncResult.failure(kind, describe(exc))
            LOG.info("Note %s was already deleted remotely; refreshing notes", note_id)
            self.notes.remove(note_id)
            return await self._resync(
                SyncResult.success(warning=SyncErrorKind.NOT_FOUND, message="Note was already deleted")
            )

        self.notes.remove(note_id)
        return SyncResult.success()

    async def _resync(self, result: SyncResult) -> SyncResult:
        refreshed = await self.fetch_all()
        result.resynced = True
        if not refreshed.ok:
            result.refresh_error = refreshed.error
        return result


__all__ = ["NoteRepository"]
