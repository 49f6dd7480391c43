"""Derive structured note fields from free-text input."""

from __future__ import annotations

__all__ = ["FALLBACK_TITLE", "TITLE_LIMIT", "join_for_edit", "split_text"]

TITLE_LIMIT = 100
FALLBACK_TITLE = "Untitled Note"


def split_text(raw: str) -> tuple[str, str]:
    """Return ``(title, content)`` for ``raw``.

    The title is the first line of the trimmed input, truncated to
    :data:`TITLE_LIMIT` characters. Multi-line input keeps the full trimmed
    text (title line included) as content; single-line input uses that line
    for both fields. Empty input yields :data:`FALLBACK_TITLE` for both, so
    callers must reject blank text themselves before sending it anywhere.
    """

    text = raw.strip()
    lines = text.split("\n")
    first = lines[0] or FALLBACK_TITLE
    if len(lines) > 1:
        content = text
    else:
        content = first
    return first[:TITLE_LIMIT], content


def _from_split(title: str, content: str) -> bool:
    if content == title or content.startswith(f"{title}\n"):
        return True
    # a first line longer than the limit leaves a truncated title behind
    first_line = content.split("\n", 1)[0]
    return len(title) == TITLE_LIMIT and first_line.startswith(title)


def join_for_edit(title: str | None, content: str | None) -> str:
    """Seed an edit buffer from stored ``title`` and ``content``.

    Exactly inverts :func:`split_text`: when the content is what it produced
    for this title, the content alone is the original text. Other notes get
    ``title`` and ``content`` joined by a newline, or whichever field is
    present.
    """

    if title and content and not _from_split(title, content):
        return f"{title}\n{content}"
    return content or title or ""
