"""Structured outcomes returned to the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import SyncErrorKind

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    from .models import Note


@dataclass(slots=True)
class SyncResult:
    """Outcome of a repository or auth operation.

    ``warning`` marks a request the server accepted but answered oddly, such
    as an unrecognised payload or a delete of a note that was already gone.
    ``resynced`` is set when the operation triggered a full refresh of the
    note collection; ``refresh_error`` records why that refresh failed, if it
    did. ``message`` carries a server supplied explanation when one exists.
    """

    ok: bool
    error: SyncErrorKind | None = None
    note: "Note | None" = None
    warning: SyncErrorKind | None = None
    message: str | None = None
    resynced: bool = False
    refresh_error: SyncErrorKind | None = None

    @classmethod
    def success(cls, note: "Note | None" = None, **kwargs) -> "SyncResult":
        return cls(ok=True, note=note, **kwargs)

    @classmethod
    def failure(cls, kind: SyncErrorKind, message: str | None = None, **kwargs) -> "SyncResult":
        return cls(ok=False, error=kind, message=message, **kwargs)

    @property
    def session_expired(self) -> bool:
        return SyncErrorKind.SESSION_EXPIRED in (self.error, self.refresh_error)


__all__ = ["SyncResult"]
