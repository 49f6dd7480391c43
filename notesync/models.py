"""Note and identity records plus the local note collection."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

LOG = logging.getLogger(__name__)

_LIST_KEYS = ("notes", "data")
_ITEM_KEYS = ("note", "data")


def _note_id(payload: Mapping[str, Any]) -> Any:
    value = payload.get("_id")
    if value is None:
        value = payload.get("id")
    return value


def is_valid_note(payload: Any) -> bool:
    """Return ``True`` when ``payload`` may be stored in a :class:`NoteCollection`.

    A valid entry is a mapping with a non-empty id whose ``title`` and
    ``content`` are strings when present.
    """

    if not isinstance(payload, Mapping):
        return False
    if not _note_id(payload):
        return False
    for key in ("title", "content"):
        if key in payload and payload[key] is not None and not isinstance(payload[key], str):
            return False
    return True


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # JavaScript clients send epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


class Identity(BaseModel):
    """Opaque user record returned by the login and register endpoints."""

    id: str | None = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    name: str | None = None
    email: str | None = None

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id or "unknown"

    def to_storage(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class Note(BaseModel):
    """A server-side note as seen by the client."""

    id: str = Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")
    title: str | None = None
    content: str | None = None
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "timestamp"),
        serialization_alias="createdAt",
    )
    updated_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("updatedAt"),
        serialization_alias="updatedAt",
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: Any) -> datetime | None:
        return _parse_timestamp(value)

    def effective_created_at(self, now: datetime | None = None) -> datetime:
        """Return the creation time, treating an unknown one as ``now``."""

        if self.created_at is not None:
            return self.created_at
        return now or datetime.now(UTC)


def _coerce_note(payload: Any) -> Note | None:
    if not is_valid_note(payload):
        LOG.debug("Dropping invalid note entry: %r", payload)
        return None
    try:
        return Note.model_validate(payload)
    except ValidationError as exc:
        LOG.warning("Dropping note %r that failed validation: %s", _note_id(payload), exc)
        return None


def unwrap_note_list(payload: Any) -> list[Any] | None:
    """Return the raw list of notes in ``payload`` or ``None`` when unrecognised."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in _LIST_KEYS:
            items = payload.get(key)
            if isinstance(items, list):
                return items
    return None


def parse_notes(payload: Any) -> list[Note]:
    """Parse a list response, dropping entries that fail :func:`is_valid_note`.

    Accepts a bare array or an array wrapped under ``notes`` or ``data``.
    Any other shape is logged and treated as an empty list.
    """

    items = unwrap_note_list(payload)
    if items is None:
        LOG.warning("Unexpected note list payload of type %s", type(payload).__name__)
        return []
    notes: list[Note] = []
    for item in items:
        note = _coerce_note(item)
        if note is not None:
            notes.append(note)
    return notes


def parse_note(payload: Any) -> Note | None:
    """Parse a single-note response, or return ``None`` for an unrecognised shape."""

    if isinstance(payload, Mapping):
        for key in _ITEM_KEYS:
            inner = payload.get(key)
            if is_valid_note(inner):
                return _coerce_note(inner)
    return _coerce_note(payload)


class NoteCollection:
    """Ordered, id-unique local cache of notes."""

    def __init__(self, notes: Iterable[Note] = ()) -> None:
        self._notes: list[Note] = []
        self.replace_all(notes)

    def __iter__(self) -> Iterator[Note]:
        return iter(list(self._notes))

    def __len__(self) -> int:
        return len(self._notes)

    def __contains__(self, note_id: object) -> bool:
        return any(note.id == note_id for note in self._notes)

    def ids(self) -> list[str]:
        return [note.id for note in self._notes]

    def get(self, note_id: str) -> Note | None:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def replace_all(self, notes: Iterable[Note]) -> None:
        seen: set[str] = set()
        fresh: list[Note] = []
        for note in notes:
            if note.id in seen:
                LOG.warning("Ignoring duplicate note id %s", note.id)
                continue
            seen.add(note.id)
            fresh.append(note)
        self._notes = fresh

    def prepend(self, note: Note) -> None:
        self._notes = [note] + [item for item in self._notes if item.id != note.id]

    def replace(self, note_id: str, note: Note) -> None:
        """Swap the entry for ``note_id`` with ``note`` keeping its position.

        When ``note_id`` is not present the note is prepended instead.
        """

        index = next((i for i, item in enumerate(self._notes) if item.id == note_id), None)
        if index is None:
            self.prepend(note)
            return
        rest = [item for i, item in enumerate(self._notes) if i != index and item.id != note.id]
        rest.insert(min(index, len(rest)), note)
        self._notes = rest

    def remove(self, note_id: str) -> bool:
        before = len(self._notes)
        self._notes = [note for note in self._notes if note.id != note_id]
        return len(self._notes) != before


__all__ = [
    "Identity",
    "Note",
    "NoteCollection",
    "is_valid_note",
    "parse_note",
    "parse_notes",
    "unwrap_note_list",
]
