"""Exception hierarchy for quizsage.

All exceptions inherit from :class:`QuizsageError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`quizsage.exit_codes`.
The top-level error handler in :func:`quizsage.app.main` catches
``QuizsageError`` and exits with the appropriate code.

Nothing in the client retries: every error below reaches the immediate
caller of the coroutine that raised it.

Subclass hierarchy::

    QuizsageError (exit 1)
    +-- InvalidUsageError          (exit 2)
    |   +-- UnsupportedProtocolError
    +-- APIError                   (exit 5, or 3 for 401/403)
    +-- NetworkError               (exit 6)
    +-- ParseError                 (exit 7)
    +-- ConfigError                (exit 1)
"""

from quizsage.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NETWORK_ERROR,
    EXIT_PARSE_ERROR,
)


class QuizsageError(Exception):
    """Base exception for all quizsage errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(QuizsageError):
    """Raised for invalid CLI arguments, unknown HTTP verbs or bad request options."""

    exit_code = EXIT_INVALID_USAGE


class UnsupportedProtocolError(InvalidUsageError):
    """Raised when a request URL uses a scheme other than ``http`` or ``https``."""


class APIError(QuizsageError):
    """Raised when the API answers with a status code of 300 or above.

    The ``code`` attribute follows the fixed ``ERR_STATUS_CODE_<status>``
    pattern so callers can classify failures without parsing the message.

    Args:
        status: The HTTP status code reported by the server.
        message: The server's error messages, joined with ``"; "``.

    Example::

        >>> err = APIError(404, "Bible not found")
        >>> err.code
        'ERR_STATUS_CODE_404'
        >>> str(err)
        '404 : Bible not found'
    """

    def __init__(self, status: int, message: str):
        exit_code = EXIT_AUTH_FAILURE if status in (401, 403) else EXIT_API_ERROR
        super().__init__(f"{status} : {message}", exit_code=exit_code)
        self.status = status
        self.message = message
        self.code = f"ERR_STATUS_CODE_{status}"


class NetworkError(QuizsageError):
    """Raised on connection failures and when the request timer expires."""

    exit_code = EXIT_NETWORK_ERROR


class ParseError(QuizsageError):
    """Raised when a JSON or form-encoded response body cannot be decoded."""

    exit_code = EXIT_PARSE_ERROR


class ConfigError(QuizsageError):
    """Raised for configuration problems (invalid config file, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
