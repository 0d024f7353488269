"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~quizsage.exceptions.QuizsageError` subclass.
Shell wrappers can inspect the exit code to tell a rejected login from a
dropped connection without parsing stderr.

Example::

    $ quizsage books Protestant --address api.example.org
    $ echo $?
    6   # EXIT_NETWORK_ERROR -- the server could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unsupported URL."""

EXIT_AUTH_FAILURE = 3
"""Login failed or the server rejected the session (HTTP 401/403)."""

EXIT_API_ERROR = 5
"""The remote API answered with a non-2xx status."""

EXIT_NETWORK_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_PARSE_ERROR = 7
"""The response body did not match its declared content type."""
