"""Logging bootstrap for the notesync CLI and embedding front ends."""

from __future__ import annotations

import logging
import os
from typing import Any

__all__ = ["configure_logging", "resolve_level"]

LOG = logging.getLogger(__name__)

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
_ENV_VARS = ("NOTESYNC_LOG_LEVEL", "LOG_LEVEL")


def resolve_level(value: str | int | None) -> int | None:
    """Return the numeric level named by ``value`` or ``None`` if it names none."""

    if value is None or isinstance(value, int):
        return value
    candidate = value.strip().upper()
    if candidate.isdigit():
        return int(candidate)
    return logging.getLevelNamesMapping().get(candidate)


def configure_logging(*, level: str | int | None = None, **kwargs: Any) -> int:
    """Configure the root logger and return the effective level.

    Sources are tried in order: ``level``, then ``NOTESYNC_LOG_LEVEL``, then
    ``LOG_LEVEL``. The first one naming a real level wins; unrecognised
    values are skipped and reported once logging is up. With nothing usable
    the level is INFO. Remaining ``kwargs`` go to :func:`logging.basicConfig`.
    """

    candidates = [("level argument", level)] + [(name, os.environ.get(name)) for name in _ENV_VARS]
    skipped: list[tuple[str, Any]] = []
    effective_level = logging.INFO
    for source, value in candidates:
        if value is None or value == "":
            continue
        resolved = resolve_level(value)
        if resolved is None:
            skipped.append((source, value))
            continue
        effective_level = resolved
        break

    logging.basicConfig(
        level=effective_level,
        format=kwargs.pop("format", _DEFAULT_FORMAT),
        datefmt=kwargs.pop("datefmt", _DEFAULT_DATEFMT),
        force=kwargs.pop("force", True),
        **kwargs,
    )
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(max(effective_level, logging.WARNING))

    for source, value in skipped:
        LOG.warning("Ignoring unknown log level %r from %s", value, source)
    return effective_level
