"""Numeric process exit codes used by the ``apiwire`` command line tool.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apiwire.exceptions.ApiwireError` subclass (or, for
problems and transport failures, by :func:`apiwire.cli.main`). Shell
scripts can inspect the exit code to tell a misconfigured client apart
from a server that answered with a problem document.

Example::

    $ apiwire call GET /users/42 --base-url https://api.example.com
    $ echo $?
    5   # EXIT_PROBLEM -- the server answered with a failure status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIGURATION_ERROR = 3
"""The client is misconfigured (missing codec, provider, or content type)."""

EXIT_DECODING_ERROR = 4
"""A response or event body could not be decoded."""

EXIT_PROBLEM = 5
"""The server answered with a failure status (reported as a problem)."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
