"""The transport primitive -- one HTTP(S) request in, one :class:`ResponseEnvelope` out.

:func:`request` wraps :class:`httpx.AsyncClient` and layers on:

- **Scheme check** -- only ``http`` and ``https`` URLs are accepted.
- **Body encoding** -- JSON by default, form-encoding as an alternative;
  ``get`` and ``delete`` never send a body.
- **Session cookie** -- ``options.cookie_key`` becomes the session cookie.
- **Header overrides** -- ``options.headers`` are merged last.
- **Timeout** -- a single timer guards the wait for the response head.
- **Normalisation** -- the response is read whole and turned into a
  :class:`~quizsage.models.ResponseEnvelope` by
  :func:`~quizsage.client.response.build_envelope`.

A fresh client is opened for every call; there is no connection pooling
and no retry.

Example::

    envelope = await request(
        "post",
        "https://quizsage.org:443/api/v1/user/login",
        RequestOptions(),
        {"email": "a@b.com", "password": "secret"},
    )
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional, Union
from urllib.parse import quote, urlencode

import httpx

from quizsage.client.response import build_envelope
from quizsage.exceptions import InvalidUsageError, NetworkError, UnsupportedProtocolError
from quizsage.models import (
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    SESSION_COOKIE,
    HTTPMethod,
    RequestOptions,
    ResponseEnvelope,
)

_SUPPORTED_SCHEMES = ("http", "https")

Options = Union[RequestOptions, dict[str, Any], None]


async def request(
    method: str,
    url: str,
    options: Options = None,
    body: Any = "",
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ResponseEnvelope:
    """Perform a single HTTP(S) request and normalise the response.

    Args:
        method: HTTP verb (``get``, ``post``, ``put``, ``patch``, ``delete``),
            case-insensitive.
        url: Absolute request URL.
        options: :class:`~quizsage.models.RequestOptions` or a dict of its
            fields.
        body: Request body. Dicts and lists are encoded per
            ``options.content_type``; strings and bytes are sent as given.
            Ignored for ``get`` and ``delete`` and when falsy.
        transport: Optional :mod:`httpx` transport, mainly for tests.

    Returns:
        The normalised :class:`~quizsage.models.ResponseEnvelope`, for any
        status code.

    Raises:
        InvalidUsageError: On an unknown verb or invalid options.
        UnsupportedProtocolError: On a URL scheme other than http/https.
        NetworkError: On connection failure or when the timer expires.
        ParseError: When a JSON or form body does not decode.
    """
    verb = _resolve_method(method)
    opts = _resolve_options(options)
    target = _check_url(url)

    headers = httpx.Headers()
    content: Optional[bytes] = None
    if body and verb.sends_body:
        content = _encode_body(body, opts.content_type)
        headers["Content-Length"] = str(len(content))
        headers["Content-Type"] = opts.content_type

    if opts.cookie_key:
        headers["Cookie"] = f"{SESSION_COOKIE}={opts.cookie_key}"

    for name, value in opts.headers.items():
        headers[name] = value

    async with httpx.AsyncClient(
        verify=not opts.allow_self_signed,
        timeout=None,
        transport=transport,
    ) as client:
        outgoing = client.build_request(
            verb.value.upper(), target, headers=headers, content=content
        )
        response = await _send(client, outgoing, opts.timeout)
        try:
            await response.aread()
        except httpx.TransportError as exc:
            raise NetworkError(f"Connection lost while reading response: {exc}") from exc
        finally:
            await response.aclose()

    return build_envelope(response)


async def get(url: str, options: Options = None, **kwargs: Any) -> ResponseEnvelope:
    """Send a GET request via :func:`request`."""
    return await request("get", url, options, **kwargs)


async def delete(url: str, options: Options = None, **kwargs: Any) -> ResponseEnvelope:
    """Send a DELETE request via :func:`request`."""
    return await request("delete", url, options, **kwargs)


async def post(url: str, options: Options = None, body: Any = "", **kwargs: Any) -> ResponseEnvelope:
    """Send a POST request via :func:`request`."""
    return await request("post", url, options, body, **kwargs)


async def put(url: str, options: Options = None, body: Any = "", **kwargs: Any) -> ResponseEnvelope:
    """Send a PUT request via :func:`request`."""
    return await request("put", url, options, body, **kwargs)


async def patch(url: str, options: Options = None, body: Any = "", **kwargs: Any) -> ResponseEnvelope:
    """Send a PATCH request via :func:`request`."""
    return await request("patch", url, options, body, **kwargs)


# ------------------------------------------------------------------ #
# Private helpers
# ------------------------------------------------------------------ #


def _resolve_method(method: str) -> HTTPMethod:
    try:
        return HTTPMethod(method.lower())
    except ValueError:
        raise InvalidUsageError(f"Unsupported HTTP method '{method}'") from None


def _resolve_options(options: Options) -> RequestOptions:
    if options is None:
        return RequestOptions()
    if isinstance(options, RequestOptions):
        return options
    try:
        return RequestOptions.model_validate(options)
    except ValueError as exc:
        raise InvalidUsageError(f"Invalid request options: {exc}") from exc


def _check_url(url: str) -> httpx.URL:
    """Parse *url* and reject anything that is not plain or secure HTTP."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise UnsupportedProtocolError(f"Invalid request URL '{url}': {exc}") from exc
    if parsed.scheme not in _SUPPORTED_SCHEMES:
        raise UnsupportedProtocolError(
            f"Unsupported request protocol '{parsed.scheme}:'"
        )
    return parsed


def _encode_body(body: Any, content_type: str) -> bytes:
    """Serialise *body* for the wire according to *content_type*."""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    if content_type == JSON_CONTENT_TYPE:
        return json.dumps(body).encode("utf-8")
    if content_type == FORM_CONTENT_TYPE:
        return urlencode(body, doseq=True, quote_via=quote).encode("utf-8")
    raise InvalidUsageError(
        f"Cannot encode a {type(body).__name__} body as '{content_type}'; pass a string"
    )


async def _send(
    client: httpx.AsyncClient,
    outgoing: httpx.Request,
    timeout: Optional[float],
) -> httpx.Response:
    """Send *outgoing* and wait for the response head, bounded by *timeout*.

    The timer stops once the status line and headers have arrived; reading
    the body is not timed. Expiry cancels the in-flight send.
    """
    try:
        if timeout:
            return await asyncio.wait_for(client.send(outgoing, stream=True), timeout)
        return await client.send(outgoing, stream=True)
    except asyncio.TimeoutError as exc:
        raise NetworkError("Request timed out") from exc
    except httpx.TransportError as exc:
        raise NetworkError(f"Request to {outgoing.url} failed: {exc}") from exc
