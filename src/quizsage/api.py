"""Domain endpoints of the QuizSage API.

:class:`QuizsageAPI` maps business operations (login, bible books and
structure, book identification, scripture reference parsing) onto single
calls of an :class:`~quizsage.client.session.APISession`. It holds no HTTP
logic of its own: every method builds an endpoint path, optionally a body,
and delegates.

Query strings are produced by :func:`render_query_string`.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence, Union
from urllib.parse import quote

from quizsage.client.session import APISession
from quizsage.exceptions import APIError
from quizsage.models import ConnectionConfig

BIBLES = ("Protestant", "Orthodox", "Catholic")

# encodeURIComponent leaves these unescaped
_UNRESERVED = "-_.!~*'()"

QueryParams = Union[Mapping[str, Any], Sequence[tuple[str, Any]]]


def render_query_string(params: QueryParams) -> str:
    """Render *params* as a ``?``-prefixed query string.

    Accepts a mapping, or a sequence of ``(key, value)`` pairs for repeated
    keys. Pairs whose value is ``None`` are skipped. Keys and values are
    percent-encoded; booleans render as ``true``/``false``.

    Args:
        params: The parameters to encode.

    Returns:
        ``""`` when no parameter remains, otherwise ``"?k=v&k=v"``.

    Example::

        >>> render_query_string({"bible": "Protestant", "text": None})
        '?bible=Protestant'
        >>> render_query_string([("books", "Gen"), ("books", "1 Sam")])
        '?books=Gen&books=1%20Sam'
    """
    pairs = params.items() if isinstance(params, Mapping) else params
    rendered = [
        f"{_encode(key)}={_encode(value)}" for key, value in pairs if value is not None
    ]
    if not rendered:
        return ""
    return "?" + "&".join(rendered)


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe=_UNRESERVED)


class QuizsageAPI:
    """QuizSage domain endpoints over an :class:`APISession`.

    Args:
        session: The session to delegate to. When omitted, one is built
            from *connection* keywords (``address``, ``port``, ``protocol``,
            ``self_signed``, ...).

    Example::

        api = QuizsageAPI(address="quizsage.org", port=443, protocol="https")
        await api.login("me@example.com", "secret")
        books = await api.bible_books("Protestant")
    """

    def __init__(self, session: Optional[APISession] = None, **connection: Any) -> None:
        if session is not None and connection:
            raise TypeError("Pass either a session or connection keywords, not both")
        self._session = session if session is not None else APISession(**connection)

    @classmethod
    def from_config(cls, config: ConnectionConfig, **kwargs: Any) -> QuizsageAPI:
        """Build the API over a session configured from *config*."""
        return cls(APISession.from_config(config, **kwargs))

    @property
    def session(self) -> APISession:
        return self._session

    @property
    def authenticated(self) -> bool:
        """Whether the underlying session holds a session token."""
        return self._session.authenticated

    async def login(self, email: str, password: str) -> Any:
        """Log in and adopt the session cookie set by the server.

        Raises:
            APIError: With status 400 when the server reports
                ``success: false``, or with the response status on non-2xx.
        """
        resp = await self._session.post(
            "/api/v1/user/login",
            {"email": email, "password": password},
        )
        data = resp.data if isinstance(resp.data, dict) else {}
        if not data.get("success"):
            raise APIError(400, data.get("message") or "Login failed")
        return resp.data

    @property
    def bibles(self) -> list[str]:
        """Bible canons known to the server. No network call."""
        return list(BIBLES)

    async def bible_books(self, bible: Optional[str]) -> Any:
        resp = await self._session.get(
            f"/api/v1/bible/books{render_query_string({'bible': bible})}"
        )
        return resp.data

    async def bible_structure(self, bible: Optional[str]) -> Any:
        resp = await self._session.get(
            f"/api/v1/bible/structure{render_query_string({'bible': bible})}"
        )
        return resp.data

    async def identify_from_books(self, books: Iterable[str] = ()) -> Any:
        """Identify which bible canon(s) contain every one of *books*."""
        qs = render_query_string([("books", book) for book in books])
        resp = await self._session.get(f"/api/v1/bible/identify{qs}")
        return resp.data

    async def parse_reference(
        self,
        text: str,
        *,
        bible: Optional[str] = None,
        abbreviate: Optional[bool] = None,
        sorted: Optional[bool] = None,
        exact_chapter: Optional[bool] = None,
        exact_verse: Optional[bool] = None,
        exact_book: Optional[bool] = None,
        minimum_book_length: Optional[int] = None,
        expand_verses: Optional[bool] = None,
    ) -> Any:
        """Parse free-text scripture references.

        Args:
            text: Free text containing references, e.g. ``"Rom 12:1-3"``.
            bible: Canon to resolve book names against.
            abbreviate: Render book names as acronyms.
            sorted: Sort the resulting references.
            exact_chapter: Require chapters to exist in the canon.
            exact_verse: Require verses to exist in the canon.
            exact_book: Only match book names starting with a capital letter.
            minimum_book_length: Shortest book abbreviation to recognise.
            expand_verses: Add per-verse detail to the result.

        Unset options are omitted from the query.
        """
        qs = render_query_string({
            "text": text,
            "bible": bible,
            "acronyms": abbreviate,
            "sorting": sorted,
            "require_chapter_match": exact_chapter,
            "require_verse_match": exact_verse,
            "require_book_ucfirst": exact_book,
            "minimum_book_length": minimum_book_length,
            "add_detail": expand_verses,
        })
        resp = await self._session.get(f"/api/v1/bible/reference/parse{qs}")
        return resp.data
