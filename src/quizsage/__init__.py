"""quizsage -- client library and interactive shell for the QuizSage API.

The library normalises HTTP requests and responses (cookie sessions,
JSON and form bodies, plain and TLS transports) and exposes the QuizSage
endpoints as coroutine methods::

    from quizsage.api import QuizsageAPI

    api = QuizsageAPI(address="quizsage.org")
    await api.login("me@example.com", "secret")
    refs = await api.parse_reference("Rom 12:1-3", bible="Protestant")

The ``quizsage`` console script offers one-shot queries and an interactive
shell.

Modules:
    api: Domain endpoints and query-string rendering.
    client: Transport primitive and session-aware dispatch.
    hooks: Injectable request observers.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
    shell: Interactive REPL.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"
