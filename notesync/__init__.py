"""Session handling and note synchronisation for a remote notes service."""

__version__ = "0.1.0"

from .auth import AuthService
from .client import NotesApiClient
from .editor import NoteComposer, NoteEditor
from .errors import (
    ApiError,
    AuthenticationError,
    InvalidBodyError,
    NotFoundError,
    SyncErrorKind,
    TransportError,
)
from .models import Identity, Note, NoteCollection, is_valid_note
from .repository import NoteRepository
from .results import SyncResult
from .session import Session, SessionState, SessionStore
from .split import join_for_edit, split_text
from .storage import FileStorage, MemoryStorage, Storage, StorageError

__all__ = [
    "ApiError",
    "AuthService",
    "AuthenticationError",
    "FileStorage",
    "Identity",
    "InvalidBodyError",
    "MemoryStorage",
    "Note",
    "NoteCollection",
    "NoteComposer",
    "NoteEditor",
    "NoteRepository",
    "NotFoundError",
    "NotesApiClient",
    "Session",
    "SessionState",
    "SessionStore",
    "Storage",
    "StorageError",
    "SyncErrorKind",
    "SyncResult",
    "TransportError",
    "__version__",
    "is_valid_note",
    "join_for_edit",
    "split_text",
]
