"""Shared test fixtures for quizsage.

Provides config isolation, output-state management, an anyio backend for
coroutine tests, a Typer CLI runner, and a recording mock server built on
:class:`httpx.MockTransport`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from quizsage.output import reset_output


# ---------------------------------------------------------------------------
# Async backend
# ---------------------------------------------------------------------------


@pytest.fixture
def anyio_backend() -> str:
    """Run ``@pytest.mark.anyio`` tests on asyncio only."""
    return "asyncio"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams, so a manager surviving a
    test would write to closed files.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of tmp_path,
    forces the XDG layout, and clears all QUIZSAGE_* environment variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("quizsage.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "QUIZSAGE_ADDRESS",
        "QUIZSAGE_PORT",
        "QUIZSAGE_PROTOCOL",
        "QUIZSAGE_SELF_SIGNED",
        "QUIZSAGE_TIMEOUT",
        "QUIZSAGE_EMAIL",
        "QUIZSAGE_PASSWORD_SOURCE",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Mock server
# ---------------------------------------------------------------------------


class MockServer:
    """Records every request and answers it with a handler.

    Example::

        server = MockServer(lambda req: httpx.Response(200, json={"ok": True}))
        session = APISession(transport=server.transport, hooks=[])
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def mock_server() -> Callable[..., MockServer]:
    """Factory fixture returning a :class:`MockServer` for a handler."""
    return MockServer


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
