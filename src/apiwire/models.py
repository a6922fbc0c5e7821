"""Pydantic models shared across apiwire.

**Settings** -- :class:`ClientSettings` is persisted as JSON (project
``./apiwire.json`` or the user config file) and resolved by
:func:`apiwire.config.resolve_settings`.

**Factory configuration** -- :class:`RequestFactoryConfig` bundles
everything a transport provider needs to build a
:class:`~apiwire.request_factory.RequestFactory`. It carries live objects
(codec registries, problem factory), hence ``arbitrary_types_allowed``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from apiwire.codecs.registry import MediaTypeDecoders, MediaTypeEncoders
from apiwire.path_encoders import DEFAULT_PATH_ENCODERS, PathEncoderMap
from apiwire.problems.factory import ProblemFactory
from apiwire.uri_template import URITemplate


class ClientSettings(BaseModel):
    """User-adjustable client settings.

    Unknown keys are ignored so that settings files written by newer
    versions still load.

    Example::

        ClientSettings(base_url="https://api.example.com", timeout=10)
    """

    model_config = ConfigDict(extra="ignore")

    base_url: Optional[str] = Field(default=None, description="Base URI template for requests")
    transport: Optional[str] = Field(
        default=None, description="Transport provider id; auto-selected when unset"
    )
    problem_factory: Optional[str] = Field(
        default=None, description="Problem factory provider id; highest priority when unset"
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    event_timeout: Optional[float] = Field(
        default=None, description="Read timeout for event streams; None waits indefinitely"
    )
    verify_ssl: bool = True
    follow_redirects: bool = True
    user_agent: Optional[str] = None


class RequestFactoryConfig(BaseModel):
    """Everything needed to construct a request factory."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    base_uri: URITemplate
    problem_factory: ProblemFactory
    encoders: MediaTypeEncoders = Field(default_factory=lambda: MediaTypeEncoders.DEFAULT)
    decoders: MediaTypeDecoders = Field(default_factory=lambda: MediaTypeDecoders.DEFAULT)
    path_encoders: PathEncoderMap = Field(default_factory=lambda: dict(DEFAULT_PATH_ENCODERS))
    settings: ClientSettings = Field(default_factory=ClientSettings)
