"""HTTP client layer for quizsage.

Two layers, leaves first:

:mod:`~quizsage.client.transport`
    The transport primitive: one request in, one
    :class:`~quizsage.models.ResponseEnvelope` out.
:mod:`~quizsage.client.session`
    :class:`APISession`, which injects and captures the session cookie and
    turns non-2xx responses into :class:`~quizsage.exceptions.APIError`.

Example::

    from quizsage.client import APISession

    session = APISession(address="quizsage.org")
    result = await session.get("/api/v1/bible/books?bible=Protestant")
"""

from quizsage.client.session import APISession
from quizsage.client.transport import request

__all__ = ["APISession", "request"]
