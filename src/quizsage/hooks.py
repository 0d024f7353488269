"""Observability hooks threaded through every API request.

This module provides three components:

* :class:`HookContext` -- a mutable dataclass carrying request and
  response state through the hook chain. Fields are progressively
  populated as the request/response lifecycle advances.
* :class:`RequestHook` -- base class for hooks. All methods are no-ops so
  a hook only overrides the stages it cares about.
* :class:`HookRunner` -- executes ``on_request``, ``on_response`` and
  ``on_error`` across all hooks in registration order.

:class:`~quizsage.client.session.APISession` runs a :class:`TraceHook` by
default, which writes ``=> METHOD url`` for every outgoing request to the
debug stream. Pass ``hooks=[]`` to silence it, or supply your own hooks to
redirect the trace into a structured log sink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from quizsage.output import get_output

logger = logging.getLogger(__name__)


@dataclass
class HookContext:
    """Mutable context object threaded through the hook chain.

    * **Request stage**: ``method``, ``endpoint``, ``url`` and ``body``.
    * **Response stage**: ``status_code``, ``response_body`` and ``cookies``.
    * **Error stage**: ``error`` is set when the request fails.

    The context never carries the session token.
    """

    method: str = ""
    endpoint: str = ""
    url: str = ""
    body: Any = None
    status_code: int = 0
    response_body: Any = None
    cookies: dict[str, str] = field(default_factory=dict)
    error: Optional[Exception] = None


class RequestHook:
    """Base class for request observers. Override any subset of the stages."""

    def on_request(self, ctx: HookContext) -> None:
        """Called before the request is handed to the transport."""

    def on_response(self, ctx: HookContext) -> None:
        """Called after a response has been normalised, whatever its status."""

    def on_error(self, ctx: HookContext) -> None:
        """Called when the request raises (network, parse or API error)."""


class TraceHook(RequestHook):
    """Writes one ``=> METHOD url`` line per outgoing request to the debug stream."""

    def on_request(self, ctx: HookContext) -> None:
        get_output().debug(f"=> {ctx.method.upper()} {ctx.url}")

    def on_error(self, ctx: HookContext) -> None:
        get_output().debug(f"<= {ctx.method.upper()} {ctx.url} failed: {ctx.error}")


class HookRunner:
    """Executes hooks in registration order.

    A hook that raises is logged and skipped: observers never change the
    outcome of the request they observe.
    """

    def __init__(self, hooks: Iterable[RequestHook] = ()) -> None:
        self._hooks = list(hooks)

    @property
    def hooks(self) -> list[RequestHook]:
        return list(self._hooks)

    def run_request(self, ctx: HookContext) -> None:
        self._dispatch("on_request", ctx)

    def run_response(self, ctx: HookContext) -> None:
        self._dispatch("on_response", ctx)

    def run_error(self, ctx: HookContext, error: Exception) -> None:
        ctx.error = error
        self._dispatch("on_error", ctx)

    def _dispatch(self, stage: str, ctx: HookContext) -> None:
        for hook in self._hooks:
            try:
                getattr(hook, stage)(ctx)
            except Exception:
                logger.exception("Hook %r failed during %s", hook, stage)
