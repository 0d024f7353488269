"""Typer application and CLI entry point for quizsage.

Commands:

* ``shell`` -- log in and open the interactive REPL (see :mod:`quizsage.shell`).
* ``bibles``, ``books``, ``structure``, ``identify``, ``parse`` -- one-shot
  queries printing the server's answer to stdout.
* ``config show|set|reset`` -- manage the saved connection settings (see
  :mod:`quizsage.commands.config`).

Connection settings come from the root options, the ``QUIZSAGE_*``
environment variables and the config file, in that order (see
:func:`~quizsage.config.resolve_connection`). ``shell`` additionally accepts
them positionally.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import asyncio
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Coroutine, Optional

import typer

from quizsage import __version__
from quizsage.commands.config import config_app
from quizsage.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="quizsage",
    help="Client and interactive shell for the QuizSage API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config", help="Saved connection settings.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"quizsage {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    address: Optional[str] = typer.Option(None, "--address", "-a", help="Server host name."),
    port: Optional[int] = typer.Option(None, "--port", help="Server port."),
    protocol: Optional[str] = typer.Option(None, "--protocol", help="http or https."),
    self_signed: Optional[bool] = typer.Option(
        None, "--self-signed/--verify-tls", help="Accept self-signed certificates."
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Request timeout in seconds."),
    email: Optional[str] = typer.Option(
        None, "--email", "-e", help="Log in with this e-mail before querying."
    ),
    password_source: Optional[str] = typer.Option(
        None, "--password-source", help="Password source: env:VAR, file:/path, or prompt."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Trace every request on stderr."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~quizsage.output.OutputManager`, a SIGINT
    handler for every sub-command but ``shell``, and stores the connection
    options in ``ctx.obj`` for the sub-commands.
    """
    from quizsage.output import OutputFormat, OutputManager, set_output

    set_output(
        OutputManager(
            format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    if ctx.invoked_subcommand != "shell":
        # the REPL handles Ctrl-C itself
        _setup_signal_handlers()

    ctx.ensure_object(dict)
    ctx.obj["connection"] = {
        "address": address,
        "port": port,
        "protocol": protocol,
        "self_signed": self_signed,
        "timeout": timeout,
        "email": email,
        "password_source": password_source,
    }


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _build_api(config: Any) -> Any:
    """Create the :class:`~quizsage.api.QuizsageAPI` for a resolved config."""
    from quizsage.api import QuizsageAPI

    return QuizsageAPI.from_config(config)


def _fail(exc: Exception) -> typer.Exit:
    """Report a :class:`~quizsage.exceptions.QuizsageError` and return the exit to raise."""
    from quizsage.output import error

    error(str(exc))
    return typer.Exit(code=getattr(exc, "exit_code", EXIT_GENERIC_FAILURE))


def _connect(ctx: typer.Context, **positional: Any) -> Any:
    """Resolve the connection, build the API and log in when an e-mail is known.

    Raises:
        typer.Exit: With the error's exit code on config or login failure.
    """
    from quizsage.config import resolve_connection, resolve_credential
    from quizsage.exceptions import QuizsageError
    from quizsage.output import debug

    values = dict(ctx.obj["connection"])
    password = positional.pop("password", None)
    values.update({key: value for key, value in positional.items() if value is not None})

    try:
        config = resolve_connection(**values)
        api = _build_api(config)
        debug(f"Connecting against: {config.base_url}")
        if config.email:
            if password is None:
                password = resolve_credential(config.password_source)
            from quizsage.shell import login

            login(api, config.email, password)
    except QuizsageError as exc:
        raise _fail(exc) from None
    return api


def _query(coro: Coroutine[Any, Any, Any]) -> None:
    """Run a query coroutine and print its result."""
    from quizsage.exceptions import QuizsageError
    from quizsage.output import format_response

    try:
        data = asyncio.run(coro)
    except QuizsageError as exc:
        raise _fail(exc) from None
    format_response(data)


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("shell")
def shell_command(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Login e-mail."),
    password: str = typer.Argument(..., help="Login password."),
    address: Optional[str] = typer.Argument(None, help="Server host name."),
    port: Optional[int] = typer.Argument(None, help="Server port."),
    protocol: Optional[str] = typer.Argument(None, help="http or https."),
    self_signed: Optional[bool] = typer.Argument(None, help="Accept self-signed certificates."),
) -> None:
    """Log in and open an interactive shell.

    Example::

        quizsage shell me@example.com secret quizsage.org 443 https
    """
    from quizsage.config import get_history_path
    from quizsage.output import info
    from quizsage.shell import run_shell

    api = _connect(
        ctx,
        email=email,
        password=password,
        address=address,
        port=port,
        protocol=protocol,
        self_signed=self_signed,
    )
    info(f"Connected to {api.session.base_url}")
    run_shell(api, history_path=get_history_path())


@app.command("bibles")
def bibles_command(ctx: typer.Context) -> None:
    """List the bible canons known to the server."""
    from quizsage.output import format_response

    format_response(_connect(ctx).bibles)


@app.command("books")
def books_command(
    ctx: typer.Context,
    bible: str = typer.Argument(..., help="Bible canon, e.g. Protestant."),
) -> None:
    """List the books of a bible canon."""
    api = _connect(ctx)
    _query(api.bible_books(bible))


@app.command("structure")
def structure_command(
    ctx: typer.Context,
    bible: str = typer.Argument(..., help="Bible canon, e.g. Protestant."),
) -> None:
    """Show chapter and verse counts for every book of a canon."""
    api = _connect(ctx)
    _query(api.bible_structure(bible))


@app.command("identify")
def identify_command(
    ctx: typer.Context,
    books: list[str] = typer.Argument(..., help="Book names."),
) -> None:
    """Identify the canon(s) containing all of the given books."""
    api = _connect(ctx)
    _query(api.identify_from_books(books))


@app.command("parse")
def parse_command(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Free text containing scripture references."),
    bible: Optional[str] = typer.Option(None, "--bible", "-b", help="Bible canon."),
    abbreviate: Optional[bool] = typer.Option(
        None, "--abbreviate/--no-abbreviate", help="Render book names as acronyms."
    ),
    sort: Optional[bool] = typer.Option(None, "--sort/--no-sort", help="Sort references."),
    exact_chapter: Optional[bool] = typer.Option(
        None, "--exact-chapter/--loose-chapter", help="Require chapters to exist."
    ),
    exact_verse: Optional[bool] = typer.Option(
        None, "--exact-verse/--loose-verse", help="Require verses to exist."
    ),
    exact_book: Optional[bool] = typer.Option(
        None, "--exact-book/--loose-book", help="Only match capitalised book names."
    ),
    minimum_book_length: Optional[int] = typer.Option(
        None, "--min-book-length", help="Shortest book abbreviation to recognise."
    ),
    expand_verses: Optional[bool] = typer.Option(
        None, "--expand/--no-expand", help="Add per-verse detail."
    ),
) -> None:
    """Parse scripture references out of free text.

    Example::

        quizsage parse "Rom 12:1-3; Jas 1:2" --bible Protestant --sort
    """
    api = _connect(ctx)
    _query(
        api.parse_reference(
            text,
            bible=bible,
            abbreviate=abbreviate,
            sorted=sort,
            exact_chapter=exact_chapter,
            exact_verse=exact_verse,
            exact_book=exact_book,
            minimum_book_length=minimum_book_length,
            expand_verses=expand_verses,
        )
    )


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly outside the shell."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from quizsage.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``quizsage`` console script.

    Unhandled :class:`~quizsage.exceptions.QuizsageError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from quizsage.exceptions import QuizsageError
        from quizsage.output import error

        if isinstance(exc, QuizsageError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
