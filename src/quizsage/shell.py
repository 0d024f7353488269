"""Interactive QuizSage shell.

A plain :mod:`code` REPL with persisted :mod:`readline` history and tab
completion. The namespace exposes:

* ``api`` -- a :class:`BlockingAPI` over the logged-in
  :class:`~quizsage.api.QuizsageAPI`; coroutine methods run to completion
  and return their result, so ``api.bible_books("Protestant")`` works
  without ``await``.
* ``pp(obj, indent=2)`` -- print an object as JSON, highlighted on a terminal.
* ``save_json(path, obj)`` -- write *obj* as JSON.
* ``help()`` -- print the banner again.
"""

from __future__ import annotations

import asyncio
import code
import functools
import inspect
from pathlib import Path
from typing import Any, Optional

from quizsage import __version__
from quizsage.api import QuizsageAPI
from quizsage.config import save_json
from quizsage.exceptions import QuizsageError
from quizsage.exit_codes import EXIT_AUTH_FAILURE
from quizsage.output import get_output

HELP_TEXT = (
    "\n"
    "Welcome to Quizsage-Shell!\n"
    "----------------------\n"
    f"Version : {__version__}\n"
    "Available Options :\n"
    "  help()                           : print this menu\n"
    "  api.<method>(...args)            : interact with server\n"
    "  pp(obj, indent=2)                : pretty print an object as JSON\n"
    "  save_json(fp, obj, indent=None)  : save json to a file\n"
)


class BlockingAPI:
    """Synchronous facade over a :class:`QuizsageAPI` for the REPL.

    Attribute access is forwarded to the wrapped API; coroutine methods are
    wrapped so each call runs in its own event loop via :func:`asyncio.run`.
    """

    def __init__(self, api: QuizsageAPI) -> None:
        self._api = api

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._api, name)
        if not inspect.iscoroutinefunction(attr):
            return attr

        @functools.wraps(attr)
        def call(*args: Any, **kwargs: Any) -> Any:
            return asyncio.run(attr(*args, **kwargs))

        return call

    def __dir__(self) -> list[str]:
        return [name for name in dir(self._api) if not name.startswith("_")]

    def __repr__(self) -> str:
        session = self._api.session
        state = "authenticated" if session.authenticated else "anonymous"
        return f"<QuizsageAPI {session.base_url} ({state})>"


def login(api: QuizsageAPI, email: str, password: str) -> Any:
    """Log *api* in, treating a login that leaves no session as fatal.

    Raises:
        APIError: When the server rejects the credentials.
        QuizsageError: When the server accepted the login but set no
            session cookie.
    """
    result = asyncio.run(api.login(email, password))
    if not api.authenticated:
        raise QuizsageError("Login silently failed", exit_code=EXIT_AUTH_FAILURE)
    return result


def build_namespace(api: QuizsageAPI) -> dict[str, Any]:
    """Return the globals the REPL starts with."""

    def help() -> None:  # noqa: A001
        print(HELP_TEXT)

    def pp(obj: Any, indent: Optional[int] = 2) -> None:
        get_output().pretty_print(obj, indent)

    return {
        "api": BlockingAPI(api),
        "help": help,
        "pp": pp,
        "save_json": save_json,
    }


def run_shell(api: QuizsageAPI, history_path: Optional[Path] = None) -> None:
    """Start the interactive loop and block until the user exits."""
    namespace = build_namespace(api)
    readline = _setup_readline(namespace, history_path)
    console = code.InteractiveConsole(namespace)
    try:
        console.interact(banner=HELP_TEXT, exitmsg="")
    finally:
        if readline is not None and history_path is not None:
            try:
                readline.write_history_file(str(history_path))
            except OSError as exc:
                get_output().warning(f"Could not save shell history: {exc}")


def _setup_readline(namespace: dict[str, Any], history_path: Optional[Path]) -> Any:
    """Enable tab completion and load history. Returns ``None`` without readline."""
    try:
        import readline
        import rlcompleter
    except ImportError:
        return None

    readline.set_completer(rlcompleter.Completer(namespace).complete)
    readline.parse_and_bind("tab: complete")
    if history_path is not None and history_path.is_file():
        try:
            readline.read_history_file(str(history_path))
        except OSError as exc:
            get_output().warning(f"Could not load shell history: {exc}")
    return readline
