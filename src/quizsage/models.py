"""Canonical Pydantic models shared across all quizsage modules.

The models fall into two groups:

**Wire models** -- built per request and never persisted:
    :class:`HTTPMethod`, :class:`RequestOptions`, :class:`ResponseEnvelope`
    and :class:`APIResult`.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`ConnectionConfig`.

All models use Pydantic v2. Response models are frozen so that an envelope
cannot be altered once the transport has produced it.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

SESSION_COOKIE = "quizsage_session"
"""Name of the cookie carrying the server-issued session token."""

DEFAULT_TIMEOUT = 20.0
"""Seconds before an unanswered request is abandoned."""

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class HTTPMethod(str, enum.Enum):
    """HTTP verbs understood by the transport.

    Only ``post``, ``put`` and ``patch`` ever carry a request body.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"

    @property
    def sends_body(self) -> bool:
        """Whether requests with this verb transmit a body."""
        return self in (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)


class RequestOptions(BaseModel):
    """Per-request options consumed by :func:`quizsage.client.transport.request`.

    Unknown keys are rejected so that a misspelt option fails loudly
    instead of being ignored.

    Example::

        RequestOptions(
            cookie_key="abc123",
            content_type=FORM_CONTENT_TYPE,
            headers={"Accept": "application/json"},
        )
    """

    model_config = ConfigDict(extra="forbid")

    cookie_key: Optional[str] = Field(
        default=None, description="Session token sent as the session cookie"
    )
    content_type: str = Field(
        default=JSON_CONTENT_TYPE,
        description="Encoding of the request body: JSON, form, or any raw MIME type",
    )
    timeout: Optional[float] = Field(
        default=DEFAULT_TIMEOUT,
        description="Seconds to wait for the response head; None or 0 disables the timer",
    )
    allow_self_signed: bool = Field(
        default=False, description="Skip TLS certificate verification"
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers merged last, overriding computed defaults",
    )


class ResponseEnvelope(BaseModel):
    """Normalised HTTP response produced by the transport primitive."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    data: Any = None
    cookies: dict[str, str] = Field(default_factory=dict)
    content_type: Optional[str] = Field(
        default=None,
        description="MIME subtype of the response, e.g. 'json'; None when undeclared",
    )
    text: str = ""


class APIResult(BaseModel):
    """Simplified result returned by :class:`~quizsage.client.session.APISession`."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    data: Any = None
    cookies: dict[str, str] = Field(default_factory=dict)


class ConnectionConfig(BaseModel):
    """Connection settings for a QuizSage server.

    Persisted at ``~/.config/quizsage/config.json`` and resolved by
    :func:`~quizsage.config.resolve_connection` together with environment
    variables and CLI arguments.
    """

    address: str = Field(default="localhost", description="Server host name")
    port: int = Field(default=443, description="Server port")
    protocol: str = Field(default="https", description="http or https")
    self_signed: bool = Field(
        default=False, description="Accept self-signed TLS certificates"
    )
    timeout: float = Field(default=DEFAULT_TIMEOUT, description="Request timeout in seconds")
    email: Optional[str] = Field(default=None, description="Login e-mail address")
    password_source: str = Field(
        default="prompt",
        description="Password source: env:VAR, file:/path, or prompt",
    )

    @property
    def base_url(self) -> str:
        """The ``protocol://address:port`` prefix of every endpoint URL."""
        return f"{self.protocol}://{self.address}:{self.port}"
