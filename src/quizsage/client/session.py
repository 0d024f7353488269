"""Session-aware verb dispatch on top of the transport primitive.

:class:`APISession` owns the connection target and the session token. Each
call:

1. merges the session state (token, TLS tolerance, timeout) with the
   caller's options, caller options winning,
2. runs the request hooks,
3. delegates to :func:`quizsage.client.transport.request`,
4. on a status below 300, adopts a renewed session cookie and returns an
   :class:`~quizsage.models.APIResult`; otherwise raises
   :class:`~quizsage.exceptions.APIError` through :meth:`APISession._error_handler`.

The session holds no domain knowledge; see :class:`quizsage.api.QuizsageAPI`.
"""

from __future__ import annotations

from typing import Any, Iterable, NoReturn, Optional

import httpx

from quizsage.client import transport as _transport
from quizsage.exceptions import APIError, QuizsageError
from quizsage.hooks import HookContext, HookRunner, RequestHook, TraceHook
from quizsage.models import (
    DEFAULT_TIMEOUT,
    SESSION_COOKIE,
    APIResult,
    ConnectionConfig,
    RequestOptions,
)


class APISession:
    """Cookie-session client for one QuizSage server.

    Args:
        address: Server host name.
        port: Server port.
        protocol: ``http`` or ``https``.
        self_signed: Accept self-signed TLS certificates.
        cookie_key: Optional session token to start with.
        timeout: Seconds to wait for each response head.
        hooks: Request observers. Defaults to a single :class:`TraceHook`;
            pass an empty list to disable tracing.
        transport: Optional :mod:`httpx` transport handed to every request.

    Example::

        session = APISession(address="quizsage.org")
        result = await session.get("/api/v1/bible/books?bible=Protestant")
    """

    def __init__(
        self,
        address: str = "localhost",
        port: int = 443,
        protocol: str = "https",
        self_signed: bool = False,
        cookie_key: Optional[str] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        hooks: Optional[Iterable[RequestHook]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = f"{protocol}://{address}:{port}"
        self.self_signed = self_signed
        self.timeout = timeout
        self._cookie_key = cookie_key
        self._hook_runner = HookRunner([TraceHook()] if hooks is None else hooks)
        self._transport = transport

    @classmethod
    def from_config(cls, config: ConnectionConfig, **kwargs: Any) -> APISession:
        """Build a session from a :class:`~quizsage.models.ConnectionConfig`."""
        return cls(
            address=config.address,
            port=config.port,
            protocol=config.protocol,
            self_signed=config.self_signed,
            timeout=config.timeout,
            **kwargs,
        )

    @property
    def base_url(self) -> str:
        """The ``protocol://address:port`` prefix of every endpoint."""
        return self._base_url

    @property
    def authenticated(self) -> bool:
        """Whether a session token is currently held."""
        return bool(self._cookie_key)

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Any = "",
        options: Optional[dict[str, Any]] = None,
    ) -> APIResult:
        """Request *endpoint* with the current session token.

        Args:
            method: HTTP verb, case-insensitive.
            endpoint: Path (and query string) appended to :attr:`base_url`.
            body: Request body for ``post``/``put``/``patch``.
            options: :class:`~quizsage.models.RequestOptions` fields that
                override the session defaults, e.g. ``{"headers": {...}}``.

        Returns:
            The :class:`~quizsage.models.APIResult` for a status below 300.

        Raises:
            APIError: On a status of 300 or above.
            NetworkError: On connection failure or timeout.
            ParseError: When the response body does not decode.
            UnsupportedProtocolError: When the session protocol is not HTTP(S).
        """
        url = self._base_url + endpoint
        ctx = HookContext(method=method, endpoint=endpoint, url=url, body=body)
        self._hook_runner.run_request(ctx)

        try:
            envelope = await _transport.request(
                method,
                url,
                self._request_options(options),
                body,
                transport=self._transport,
            )
        except QuizsageError as exc:
            self._hook_runner.run_error(ctx, exc)
            raise

        ctx.status_code = envelope.status_code
        ctx.response_body = envelope.data
        ctx.cookies = {k: v for k, v in envelope.cookies.items() if k != SESSION_COOKIE}
        self._hook_runner.run_response(ctx)

        if envelope.status_code < 300:
            token = envelope.cookies.get(SESSION_COOKIE)
            if token:
                self._cookie_key = token
            return APIResult(
                status_code=envelope.status_code,
                data=envelope.data if envelope.data else None,
                cookies=envelope.cookies,
            )

        message = _error_message(envelope.data)
        self._hook_runner.run_error(ctx, APIError(envelope.status_code, message))
        self._error_handler(envelope.status_code, message)

    async def get(self, endpoint: str, options: Optional[dict[str, Any]] = None) -> APIResult:
        """Send a GET request to *endpoint*."""
        return await self.request("get", endpoint, "", options)

    async def delete(self, endpoint: str, options: Optional[dict[str, Any]] = None) -> APIResult:
        """Send a DELETE request to *endpoint*."""
        return await self.request("delete", endpoint, "", options)

    async def put(
        self, endpoint: str, body: Any = "", options: Optional[dict[str, Any]] = None
    ) -> APIResult:
        """Send a PUT request with *body* to *endpoint*."""
        return await self.request("put", endpoint, body, options)

    async def post(
        self, endpoint: str, body: Any = "", options: Optional[dict[str, Any]] = None
    ) -> APIResult:
        """Send a POST request with *body* to *endpoint*."""
        return await self.request("post", endpoint, body, options)

    async def patch(
        self, endpoint: str, body: Any = "", options: Optional[dict[str, Any]] = None
    ) -> APIResult:
        """Send a PATCH request with *body* to *endpoint*."""
        return await self.request("patch", endpoint, body, options)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _request_options(self, overrides: Optional[dict[str, Any]]) -> dict[str, Any]:
        """Session defaults with caller *overrides* applied on top."""
        merged: dict[str, Any] = {
            "cookie_key": self._cookie_key,
            "allow_self_signed": self.self_signed,
            "timeout": self.timeout,
        }
        if isinstance(overrides, RequestOptions):
            overrides = overrides.model_dump(exclude_unset=True)
        merged.update(overrides or {})
        return merged

    def _error_handler(self, code: int, message: str) -> NoReturn:
        """Raise the structured error for a failed response.

        Subclasses may override this to translate errors, but it must raise.
        """
        raise APIError(code, message)


def _error_message(data: Any) -> str:
    """Join every ``errors[].message`` reported by the server with ``"; "``."""
    errors = data.get("errors") if isinstance(data, dict) else None
    if not errors or not isinstance(errors, list):
        return "Error"
    messages = []
    for item in errors:
        if isinstance(item, dict):
            messages.append(str(item.get("message", "")))
        else:
            messages.append(str(item))
    return "; ".join(messages)
