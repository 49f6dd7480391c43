"""Command line interface for notesync."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import sys
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Optional

import httpx

from .auth import AuthService
from .boot.logging import configure_logging
from .client import NotesApiClient
from .config import ClientSettings, load_settings, update_config_file
from .editor import NoteComposer, NoteEditor
from .models import Note
from .repository import NoteRepository
from .results import SyncResult
from .session import SessionStore
from .storage import FileStorage

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_SESSION_EXPIRED = 2


@dataclass
class CliContext:
    settings: ClientSettings
    client: NotesApiClient
    session: SessionStore
    repository: NoteRepository
    auth: AuthService


Command = Callable[[CliContext, argparse.Namespace], Awaitable[int]]


def _format_note(note: Note) -> str:
    stamp = note.effective_created_at().strftime("%Y-%m-%d %H:%M")
    title = note.title or note.content or ""
    return f"{note.id}  {stamp}  {title}"


def _password(args: argparse.Namespace, prompt: str = "Password: ") -> str:
    if args.password is not None:
        return args.password
    return getpass.getpass(prompt)


async def _report(ctx: CliContext, result: SyncResult, success: str) -> int:
    if result.session_expired:
        await ctx.session.logout()
        print("Your session has expired. Please log in again.", file=sys.stderr)
        return EXIT_SESSION_EXPIRED
    if not result.ok:
        reason = result.message or str(result.error)
        print(f"Failed: {reason}", file=sys.stderr)
        return EXIT_FAILED
    print(success)
    if result.warning is not None:
        print(f"Note: server response was {result.warning}; notes were refreshed.", file=sys.stderr)
    return EXIT_OK


async def cmd_register(ctx: CliContext, args: argparse.Namespace) -> int:
    password = _password(args)
    confirm = args.password if args.password is not None else getpass.getpass("Confirm password: ")
    result = await ctx.auth.register(args.name, args.email, password, confirm)
    if not result.ok:
        print(f"Registration failed: {result.message}", file=sys.stderr)
        return EXIT_FAILED
    print("Welcome! Account created successfully.")
    return EXIT_OK


async def cmd_login(ctx: CliContext, args: argparse.Namespace) -> int:
    result = await ctx.auth.login(args.email, _password(args))
    if not result.ok:
        print(f"Login failed: {result.message}", file=sys.stderr)
        return EXIT_FAILED
    identity = ctx.session.identity
    print(f"Logged in as {identity.display_name if identity else args.email}.")
    return EXIT_OK


async def cmd_logout(ctx: CliContext, _: argparse.Namespace) -> int:
    await ctx.auth.sign_out()
    print("You have been signed out.")
    return EXIT_OK


async def cmd_whoami(ctx: CliContext, args: argparse.Namespace) -> int:
    identity = ctx.session.identity
    if identity is None:
        print("Not logged in.", file=sys.stderr)
        return EXIT_FAILED
    if args.json:
        print(json.dumps(identity.model_dump(mode="json", exclude_none=True), indent=2))
    else:
        print(identity.display_name)
    return EXIT_OK


async def cmd_list(ctx: CliContext, args: argparse.Namespace) -> int:
    result = await ctx.repository.fetch_all()
    if not result.ok:
        return await _report(ctx, result, "")
    notes = list(ctx.repository.notes)
    if args.json:
        payload = [note.model_dump(mode="json", by_alias=True, exclude_none=True) for note in notes]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return EXIT_OK
    if not notes:
        print("No notes yet.")
        return EXIT_OK
    noun = "note" if len(notes) == 1 else "notes"
    print(f"{len(notes)} {noun}:")
    for note in notes:
        print(f" - {_format_note(note)}")
    return EXIT_OK


async def cmd_add(ctx: CliContext, args: argparse.Namespace) -> int:
    composer = NoteComposer()
    composer.set_text(args.text)
    result = await composer.submit(ctx.repository)
    if result.note is not None:
        return await _report(ctx, result, f"Note added: {result.note.id}")
    return await _report(ctx, result, "Note added.")


async def cmd_edit(ctx: CliContext, args: argparse.Namespace) -> int:
    result = await ctx.repository.fetch_all()
    if not result.ok:
        return await _report(ctx, result, "")
    note = ctx.repository.notes.get(args.note_id)
    if note is None:
        print(f"note '{args.note_id}' not found", file=sys.stderr)
        return EXIT_FAILED
    editor = NoteEditor()
    seed = editor.start(note)
    if args.text is None:
        print(seed)
        return EXIT_OK
    editor.set_text(args.text)
    return await _report(ctx, await editor.submit(ctx.repository), "Note updated.")


async def cmd_delete(ctx: CliContext, args: argparse.Namespace) -> int:
    result = await ctx.repository.delete(args.note_id)
    return await _report(ctx, result, "Note deleted.")


async def cmd_configure(ctx: CliContext, args: argparse.Namespace) -> int:
    changes: dict[str, object] = {}
    if args.api_url:
        changes["api_base_url"] = args.api_url
    if args.timeout:
        changes["timeout"] = args.timeout
    if args.new_log_level:
        changes["log_level"] = args.new_log_level
    path = ctx.settings.config_path
    try:
        update_config_file(path, changes)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_FAILED
    print(f"Wrote {path}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notesync", description="Manage notes stored on a notes server.")
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    register = subparsers.add_parser("register", help="Create an account and log in")
    register.add_argument("name")
    register.add_argument("email")
    register.add_argument("--password", help="Password (prompted when omitted)")
    register.set_defaults(func=cmd_register)

    login = subparsers.add_parser("login", help="Log in to an existing account")
    login.add_argument("email")
    login.add_argument("--password", help="Password (prompted when omitted)")
    login.set_defaults(func=cmd_login)

    logout = subparsers.add_parser("logout", help="Sign out and forget the saved session")
    logout.set_defaults(func=cmd_logout)

    whoami = subparsers.add_parser("whoami", help="Show the logged in user")
    whoami.add_argument("--json", action="store_true")
    whoami.set_defaults(func=cmd_whoami)

    listing = subparsers.add_parser("list", help="List notes in server order")
    listing.add_argument("--json", action="store_true")
    listing.set_defaults(func=cmd_list)

    add = subparsers.add_parser("add", help="Create a note; the first line becomes its title")
    add.add_argument("text")
    add.set_defaults(func=cmd_add)

    edit = subparsers.add_parser("edit", help="Replace a note's text, or print it for editing")
    edit.add_argument("note_id")
    edit.add_argument("text", nargs="?")
    edit.set_defaults(func=cmd_edit)

    delete = subparsers.add_parser("delete", help="Delete a note")
    delete.add_argument("note_id")
    delete.set_defaults(func=cmd_delete)

    configure = subparsers.add_parser("configure", help="Persist client settings")
    configure.add_argument("--api-url")
    configure.add_argument("--timeout", type=float)
    configure.add_argument("--level", dest="new_log_level", help="Log level to store")
    configure.set_defaults(func=cmd_configure)

    return parser


async def _run(
    args: argparse.Namespace,
    settings: ClientSettings,
    transport: Optional[httpx.AsyncBaseTransport],
) -> int:
    session = SessionStore(FileStorage.in_directory(settings.data_dir))
    await session.restore()
    async with NotesApiClient(base_url=settings.api_base_url, timeout=settings.timeout, transport=transport) as client:
        ctx = CliContext(
            settings=settings,
            client=client,
            session=session,
            repository=NoteRepository(client, session),
            auth=AuthService(client, session),
        )
        command: Command = args.func
        return await command(ctx, args)


def main(argv: Iterable[str] | None = None, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        settings = load_settings()
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_FAILED
    configure_logging(level=args.log_level or settings.log_level)
    return asyncio.run(_run(args, settings, transport))


__all__ = ["build_parser", "main"]
