"""Edit buffers for composing and revising notes."""

from __future__ import annotations

from .errors import SyncErrorKind
from .models import Note
from .repository import NoteRepository
from .results import SyncResult
from .split import join_for_edit


class NoteComposer:
    """Buffer for a note that does not exist yet."""

    def __init__(self) -> None:
        self.text = ""

    def set_text(self, value: str) -> None:
        self.text = value

    async def submit(self, repository: NoteRepository) -> SyncResult:
        result = await repository.create(self.text)
        if result.ok:
            self.text = ""
        return result


class NoteEditor:
    """Buffer for revising an existing note.

    ``editing_id`` is ``None`` whenever no edit is in progress. A submit that
    finds the note gone remotely ends the edit, since there is nothing left
    to save into.
    """

    def __init__(self) -> None:
        self.editing_id: str | None = None
        self.text = ""

    @property
    def active(self) -> bool:
        return self.editing_id is not None

    def start(self, note: Note) -> str:
        self.editing_id = note.id
        self.text = join_for_edit(note.title, note.content)
        return self.text

    def set_text(self, value: str) -> None:
        self.text = value

    def cancel(self) -> None:
        self.editing_id = None
        self.text = ""

    async def submit(self, repository: NoteRepository) -> SyncResult:
        result = await repository.update(self.editing_id, self.text)
        if result.ok or result.error is SyncErrorKind.NOT_FOUND:
            self.cancel()
        return result


__all__ = ["NoteComposer", "NoteEditor"]
