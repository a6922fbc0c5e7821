"""Exception hierarchy for apiwire.

All library errors inherit from :class:`ApiwireError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apiwire.exit_codes`.
Errors are raised once, at the point where the problem is detected; nothing
in the request/response pipeline retries or recovers locally.

Failure responses from a server are *not* reported through this hierarchy:
they are raised as :class:`~apiwire.problems.Problem` instances. Transport
failures (``httpx.HTTPError`` and friends) are passed through unmodified.

Subclass hierarchy::

    ApiwireError (exit 1)
    +-- ConfigurationError              (exit 3)
    |   +-- NoDecoder
    |   +-- NoSupportedContentTypes
    |   +-- NoSupportedAcceptTypes
    |   +-- InvalidContentType
    |   +-- InvalidBaseUri
    |   +-- InvalidHeaderValue
    |   +-- UnexpectedEmptyResponse
    |   +-- NoData
    |   +-- ProviderError
    |       +-- NoRequestFactoryProvider
    |       +-- MultipleRequestFactoryProviders
    |       +-- NoProblemFactoryProvider
    |       +-- MultipleProblemFactoryProviders
    +-- DecodingError                   (exit 4)
    |   +-- ResponseDecodingFailed
    |   +-- EventDecodingFailed
    +-- EventSourceError                (exit 6)
    +-- SettingsError                   (exit 1)
"""

from __future__ import annotations

import enum
from typing import Optional

from apiwire.exit_codes import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_DECODING_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_TRANSPORT_ERROR,
)


class ApiwireError(Exception):
    """Base exception for all apiwire errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`apiwire.exit_codes`, and a ``default_message``
    used when the error is raised without further detail.

    Args:
        message: Human-readable error description. Defaults to the class'
            ``default_message``.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    default_message: str = "apiwire error"

    def __init__(self, message: Optional[str] = None, exit_code: Optional[int] = None):
        super().__init__(message or self.default_message)
        if exit_code is not None:
            self.exit_code = exit_code

    @classmethod
    def with_detail(cls, detail: str) -> "ApiwireError":
        """Build an error whose message is ``"<default message>: <detail>"``."""
        return cls(f"{cls.default_message}: {detail}")


# --- Configuration errors ---


class ConfigurationError(ApiwireError):
    """The client cannot perform a call as configured."""

    exit_code = EXIT_CONFIGURATION_ERROR
    default_message = "Configuration error"


class NoDecoder(ConfigurationError):
    """No encoder/decoder is registered for a required media type, or the
    registered codec lacks a required capability."""

    default_message = "No decoder registered for MediaType"


class NoSupportedContentTypes(ConfigurationError):
    default_message = "None of the provided Content-Types for the request has a registered encoder"


class NoSupportedAcceptTypes(ConfigurationError):
    default_message = "None of the provided Accept types for the request has a registered decoder"


class InvalidContentType(ConfigurationError):
    """The response ``Content-Type`` header is missing or cannot be parsed."""

    default_message = "Invalid Content-Type"


class InvalidBaseUri(ConfigurationError):
    default_message = "Base URI is invalid after expanding template"


class InvalidHeaderValue(ConfigurationError):
    default_message = "The encoded header value is invalid"


class UnexpectedEmptyResponse(ConfigurationError):
    default_message = "Response is empty but a result was expected"


class NoData(ConfigurationError):
    default_message = "Response contains no data"


class ProviderError(ConfigurationError):
    """Base class for provider discovery/selection failures."""

    default_message = "Provider selection failed"


class NoRequestFactoryProvider(ProviderError):
    default_message = "No RequestFactory provider found"


class MultipleRequestFactoryProviders(ProviderError):
    default_message = "Multiple RequestFactory providers found"


class NoProblemFactoryProvider(ProviderError):
    default_message = "No ProblemFactory provider found"


class MultipleProblemFactoryProviders(ProviderError):
    default_message = "Multiple ProblemFactory providers found"


# --- Decoding errors ---


class DecodingError(ApiwireError):
    """A codec raised while decoding a response or event body.

    The underlying codec exception is always chained as ``__cause__``.
    """

    exit_code = EXIT_DECODING_ERROR
    default_message = "Decoding failed"


class ResponseDecodingFailed(DecodingError):
    default_message = "Response decoding failed"


class EventDecodingFailed(DecodingError):
    default_message = "Event decoding failed"


# --- Event source errors ---


class EventSourceErrorReason(str, enum.Enum):
    """Reasons an :class:`~apiwire.events.EventSource` stops with an error."""

    INVALID_STATE = "invalid_state"
    INVALID_STATUS = "invalid_status"


class EventSourceError(ApiwireError):
    """Raised by an event source that receives data it cannot accept.

    Args:
        reason: Why the event source failed.
        message: Optional human-readable description.
    """

    exit_code = EXIT_TRANSPORT_ERROR

    def __init__(self, reason: EventSourceErrorReason, message: Optional[str] = None):
        super().__init__(message or f"Event source error: {reason.value}")
        self.reason = reason


# --- Settings ---


class SettingsError(ApiwireError):
    """Raised for invalid settings files or environment values."""

    exit_code = EXIT_GENERIC_FAILURE
    default_message = "Invalid settings"
