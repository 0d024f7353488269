"""Tests for the transport primitive."""

from __future__ import annotations

import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from quizsage.client import transport
from quizsage.exceptions import (
    InvalidUsageError,
    NetworkError,
    ParseError,
    UnsupportedProtocolError,
)
from quizsage.models import FORM_CONTENT_TYPE, RequestOptions

pytestmark = pytest.mark.anyio

URL = "https://api.test:443/api/v1/thing"


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"ok": True})


# ---------------------------------------------------------------------------
# URL scheme
# ---------------------------------------------------------------------------


class TestScheme:
    async def test_ftp_is_rejected_before_any_io(self, mock_server) -> None:
        server = mock_server(_ok)
        with pytest.raises(UnsupportedProtocolError, match="ftp"):
            await transport.request("get", "ftp://api.test/x", transport=server.transport)
        assert server.requests == []

    async def test_missing_scheme_is_rejected(self) -> None:
        with pytest.raises(UnsupportedProtocolError):
            await transport.request("get", "api.test/x")

    async def test_http_is_accepted(self, mock_server) -> None:
        server = mock_server(_ok)
        envelope = await transport.request(
            "get", "http://api.test:80/x", transport=server.transport
        )
        assert envelope.status_code == 200
        assert server.last.url.scheme == "http"

    async def test_unknown_method(self) -> None:
        with pytest.raises(InvalidUsageError):
            await transport.request("head", URL)

    async def test_method_is_case_insensitive(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.request("GET", URL, transport=server.transport)
        assert server.last.method == "GET"


# ---------------------------------------------------------------------------
# Request body
# ---------------------------------------------------------------------------


class TestRequestBody:
    async def test_post_json_body(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.post(URL, None, {"email": "a@b.com"}, transport=server.transport)
        sent = server.last
        assert json.loads(sent.content) == {"email": "a@b.com"}
        assert sent.headers["content-type"] == "application/json"
        assert sent.headers["content-length"] == str(len(sent.content))

    async def test_put_form_body(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.put(
            URL,
            RequestOptions(content_type=FORM_CONTENT_TYPE),
            {"name": "Jane Doe", "tags": ["a", "b"]},
            transport=server.transport,
        )
        sent = server.last
        assert sent.headers["content-type"] == FORM_CONTENT_TYPE
        assert parse_qs(sent.content.decode()) == {"name": ["Jane Doe"], "tags": ["a", "b"]}

    async def test_form_body_percent_encodes_spaces(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.post(
            URL,
            {"content_type": FORM_CONTENT_TYPE},
            {"text": "Rom 12:1 & Jas 1:2"},
            transport=server.transport,
        )
        assert server.last.content == b"text=Rom%2012%3A1%20%26%20Jas%201%3A2"

    async def test_patch_raw_string_body(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.patch(
            URL, {"content_type": "text/plain"}, "hello", transport=server.transport
        )
        assert server.last.content == b"hello"
        assert server.last.headers["content-type"] == "text/plain"

    @pytest.mark.parametrize("method", ["get", "delete"])
    async def test_get_and_delete_never_send_a_body(self, mock_server, method: str) -> None:
        server = mock_server(_ok)
        await transport.request(method, URL, None, {"ignored": True}, transport=server.transport)
        assert server.last.content == b""
        assert "content-type" not in server.last.headers

    async def test_empty_body_is_not_sent(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.post(URL, None, {}, transport=server.transport)
        assert server.last.content == b""
        assert "content-type" not in server.last.headers


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


class TestHeaders:
    async def test_session_cookie_header(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.get(URL, {"cookie_key": "tok123"}, transport=server.transport)
        assert server.last.headers["cookie"] == "quizsage_session=tok123"

    async def test_no_cookie_without_token(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.get(URL, transport=server.transport)
        assert "cookie" not in server.last.headers

    async def test_header_overrides_win(self, mock_server) -> None:
        server = mock_server(_ok)
        await transport.post(
            URL,
            {
                "cookie_key": "tok123",
                "headers": {"Cookie": "custom=1", "Content-Type": "application/vnd.x+json"},
            },
            {"a": 1},
            transport=server.transport,
        )
        assert server.last.headers["cookie"] == "custom=1"
        assert server.last.headers["content-type"] == "application/vnd.x+json"

    async def test_unknown_option_is_rejected(self) -> None:
        with pytest.raises(InvalidUsageError):
            await transport.get(URL, {"cookie": "typo"})


# ---------------------------------------------------------------------------
# Response handling
# ---------------------------------------------------------------------------


class TestResponse:
    async def test_json_response(self, mock_server) -> None:
        server = mock_server(
            lambda req: httpx.Response(
                200,
                headers=[
                    ("content-type", "application/json"),
                    ("set-cookie", "quizsage_session=new; Path=/; HttpOnly"),
                ],
                json={"books": ["Genesis"]},
            )
        )
        envelope = await transport.get(URL, transport=server.transport)
        assert envelope.data == {"books": ["Genesis"]}
        assert envelope.cookies == {"quizsage_session": "new"}
        assert envelope.content_type == "json"

    async def test_non_2xx_is_still_an_envelope(self, mock_server) -> None:
        server = mock_server(lambda req: httpx.Response(404, json={"errors": []}))
        envelope = await transport.get(URL, transport=server.transport)
        assert envelope.status_code == 404

    async def test_form_response(self, mock_server) -> None:
        server = mock_server(
            lambda req: httpx.Response(
                200,
                headers={"content-type": "application/x-www-form-urlencoded"},
                content=b"a=1&b=2",
            )
        )
        envelope = await transport.get(URL, transport=server.transport)
        assert envelope.data == {"a": "1", "b": "2"}

    async def test_unparsable_json_rejects(self, mock_server) -> None:
        server = mock_server(
            lambda req: httpx.Response(
                200, headers={"content-type": "application/json"}, content=b"{oops"
            )
        )
        with pytest.raises(ParseError):
            await transport.get(URL, transport=server.transport)

    @pytest.mark.parametrize("content", [b"", b"   "])
    async def test_empty_json_body_rejects(self, mock_server, content: bytes) -> None:
        server = mock_server(
            lambda req: httpx.Response(
                200, headers={"content-type": "application/json"}, content=content
            )
        )
        with pytest.raises(ParseError):
            await transport.get(URL, transport=server.transport)

    async def test_empty_form_body(self, mock_server) -> None:
        server = mock_server(
            lambda req: httpx.Response(
                200, headers={"content-type": "application/x-www-form-urlencoded"}
            )
        )
        envelope = await transport.get(URL, transport=server.transport)
        assert envelope.data == {}

    async def test_unknown_content_type_returns_raw_text(self, mock_server) -> None:
        server = mock_server(
            lambda req: httpx.Response(
                200, headers={"content-type": "image/svg"}, content=b"{oops"
            )
        )
        envelope = await transport.get(URL, transport=server.transport)
        assert envelope.data == "{oops"
        assert envelope.content_type is None

    async def test_text_response(self, mock_server) -> None:
        server = mock_server(lambda req: httpx.Response(200, text="plain words"))
        envelope = await transport.get(URL, transport=server.transport)
        assert envelope.data == "plain words"
        assert envelope.content_type == "plain"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    async def test_connection_error(self, mock_server) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        server = mock_server(handler)
        with pytest.raises(NetworkError, match="connection refused"):
            await transport.get(URL, transport=server.transport)

    async def test_timeout(self) -> None:
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        with pytest.raises(NetworkError, match="timed out"):
            await transport.get(
                URL, {"timeout": 0.05}, transport=httpx.MockTransport(slow)
            )

    async def test_timer_disabled(self) -> None:
        async def slightly_slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(0.05)
            return httpx.Response(204)

        envelope = await transport.get(
            URL, {"timeout": None}, transport=httpx.MockTransport(slightly_slow)
        )
        assert envelope.status_code == 204
        assert envelope.data == ""
