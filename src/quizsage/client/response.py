"""Response normalisation -- maps a raw :class:`httpx.Response` to a :class:`ResponseEnvelope`.

The transport reads the whole body and hands the response to
:func:`build_envelope`, which:

1. collects every ``Set-Cookie`` header into a ``name -> value`` map
   (:func:`parse_set_cookies`),
2. resolves the MIME subtype from ``Content-Type``
   (:func:`resolve_content_type`),
3. decodes JSON and form-encoded bodies (:func:`decode_body`), leaving any
   other body as raw text.

See Also:
    :mod:`quizsage.client.transport` -- the caller of this module.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Optional
from urllib.parse import parse_qs

import httpx

from quizsage.exceptions import ParseError
from quizsage.models import ResponseEnvelope

_COOKIE_PATTERN = re.compile(r"^([^=]*)=([^;]*)")
_CONTENT_TYPE_PATTERN = re.compile(r"(application|text)/([^;]+)")


def parse_set_cookies(lines: Iterable[str]) -> dict[str, str]:
    """Parse ``Set-Cookie`` header values into a ``name -> value`` map.

    Only the first ``name=value`` pair of each line is kept; attributes
    after the first ``;`` (``Path``, ``HttpOnly``, ...) are dropped. Lines
    without an ``=`` are silently ignored. Later lines win on duplicate
    names.

    Args:
        lines: Raw ``Set-Cookie`` header values.

    Returns:
        A dict mapping cookie names to their values.
    """
    cookies: dict[str, str] = {}
    for line in lines:
        match = _COOKIE_PATTERN.match(line)
        if not match:
            continue
        cookies[match.group(1).strip()] = match.group(2)
    return cookies


def resolve_content_type(header: Optional[str]) -> Optional[str]:
    """Return the MIME subtype of an ``application/*`` or ``text/*`` content type.

    ``"application/json; charset=utf-8"`` resolves to ``"json"`` and
    ``"application/x-www-form-urlencoded"`` to ``"x-www-form-urlencoded"``.
    Returns ``None`` when the header is missing or does not match.
    """
    if not header:
        return None
    match = _CONTENT_TYPE_PATTERN.search(header)
    if not match:
        return None
    return match.group(2).strip().lower()


def decode_body(text: str, content_type: Optional[str]) -> Any:
    """Decode *text* according to the resolved *content_type*.

    Args:
        text: The full response body.
        content_type: MIME subtype from :func:`resolve_content_type`.

    Returns:
        A dict for form bodies (empty for an empty body), the decoded JSON
        value for JSON bodies, or *text* unchanged otherwise.

    Raises:
        ParseError: If the body does not decode under its declared type.
    """
    if content_type is None:
        return text

    if "urlencoded" in content_type:
        try:
            parsed = parse_qs(text, keep_blank_values=True, errors="strict")
        except ValueError as exc:
            raise ParseError(f"Malformed form-encoded response body: {exc}") from exc
        return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}

    if "json" in content_type:
        try:
            return json.loads(text)
        except ValueError as exc:
            raise ParseError(f"Malformed JSON response body: {exc}") from exc

    return text


def build_envelope(response: httpx.Response) -> ResponseEnvelope:
    """Normalise a fully-read :class:`httpx.Response` into a :class:`ResponseEnvelope`.

    Raises:
        ParseError: If a JSON or form body fails to decode.
    """
    text = response.text
    content_type = resolve_content_type(response.headers.get("content-type"))
    return ResponseEnvelope(
        status_code=response.status_code,
        data=decode_body(text, content_type),
        cookies=parse_set_cookies(response.headers.get_list("set-cookie")),
        content_type=content_type,
        text=text,
    )
