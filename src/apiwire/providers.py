"""Provider discovery and selection.

Transports and problem factories are plugins advertised through the
``apiwire.transports`` and ``apiwire.problem_factories`` entry-point
groups (see :mod:`apiwire.spi`). Discovery happens once, when a factory is
built, and the discovered providers are an explicit input to selection:
callers (and tests) can pass their own ``providers`` instead.

Selection rules, applied to each kind separately:

* an explicit provider id picks the provider with that id, or fails,
* a single available provider is used,
* several transports without an id is an error (there is no tie-break),
* several problem factories without an id resolve to the unique provider
  with the highest ``priority``, or fail when the maximum is shared,
* no providers at all is an error.
"""

from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Iterable
from typing import Optional, TypeVar, Union

from apiwire.codecs.registry import MediaTypeDecoders, MediaTypeEncoders
from apiwire.exceptions import (
    InvalidBaseUri,
    MultipleProblemFactoryProviders,
    MultipleRequestFactoryProviders,
    NoProblemFactoryProvider,
    NoRequestFactoryProvider,
)
from apiwire.models import ClientSettings, RequestFactoryConfig
from apiwire.path_encoders import DEFAULT_PATH_ENCODERS, PathEncoderMap
from apiwire.problems.factory import ProblemFactory
from apiwire.request_factory import RequestFactory
from apiwire.spi import ProblemFactoryProvider, RequestFactoryProvider
from apiwire.uri_template import URITemplate

logger = logging.getLogger(__name__)

TRANSPORTS_GROUP = "apiwire.transports"
"""Entry-point group for :class:`~apiwire.spi.RequestFactoryProvider` classes."""

PROBLEM_FACTORIES_GROUP = "apiwire.problem_factories"
"""Entry-point group for :class:`~apiwire.spi.ProblemFactoryProvider` classes."""

P = TypeVar("P", RequestFactoryProvider, ProblemFactoryProvider)


# --- Discovery ---


def _discover(group: str, base: type[P]) -> tuple[P, ...]:
    """Instantiate every provider registered under *group*.

    Providers that fail to load, or are not *base* subclasses, are logged
    as warnings and skipped.
    """
    providers: list[P] = []
    for ep in importlib.metadata.entry_points().select(group=group):
        try:
            provider = ep.load()()
        except Exception as exc:
            logger.warning("Failed to load provider '%s' from %s: %s", ep.name, group, exc)
            continue
        if not isinstance(provider, base):
            logger.warning("Entry point '%s' in %s is not a %s", ep.name, group, base.__name__)
            continue
        providers.append(provider)
    return tuple(providers)


def discover_request_factory_providers() -> tuple[RequestFactoryProvider, ...]:
    return _discover(TRANSPORTS_GROUP, RequestFactoryProvider)


def discover_problem_factory_providers() -> tuple[ProblemFactoryProvider, ...]:
    return _discover(PROBLEM_FACTORIES_GROUP, ProblemFactoryProvider)


# --- Selection ---


def _ids(providers: Iterable[Union[RequestFactoryProvider, ProblemFactoryProvider]]) -> str:
    return ", ".join(sorted(p.id for p in providers))


def select_request_factory_provider(
    providers: Iterable[RequestFactoryProvider],
    provider_id: Optional[str] = None,
) -> RequestFactoryProvider:
    """Pick the transport provider to use.

    Raises:
        NoRequestFactoryProvider: If none are available, or *provider_id*
            matches none of them.
        MultipleRequestFactoryProviders: If several are available and no
            *provider_id* was given.
    """
    available = list(providers)
    if not available:
        raise NoRequestFactoryProvider(
            "No RequestFactory provider found. Install a transport such as apiwire[httpx] "
            f"or register one in the '{TRANSPORTS_GROUP}' entry-point group."
        )

    if provider_id is not None:
        for provider in available:
            if provider.id == provider_id:
                return provider
        raise NoRequestFactoryProvider(
            f"Provider '{provider_id}' not found. Available providers: {_ids(available)}."
        )

    if len(available) == 1:
        return available[0]

    raise MultipleRequestFactoryProviders(
        f"Multiple RequestFactory providers found: {_ids(available)}. Specify a provider id."
    )


def select_problem_factory_provider(
    providers: Iterable[ProblemFactoryProvider],
    provider_id: Optional[str] = None,
) -> ProblemFactoryProvider:
    """Pick the problem factory provider to use.

    Raises:
        NoProblemFactoryProvider: If none are available, or *provider_id*
            matches none of them.
        MultipleProblemFactoryProviders: If no *provider_id* was given and
            the highest priority is shared.
    """
    available = list(providers)
    if not available:
        raise NoProblemFactoryProvider(
            "No ProblemFactory provider found. Register one in the "
            f"'{PROBLEM_FACTORIES_GROUP}' entry-point group."
        )

    if provider_id is not None:
        for provider in available:
            if provider.id == provider_id:
                return provider
        raise NoProblemFactoryProvider(
            f"Provider '{provider_id}' not found. Available providers: {_ids(available)}."
        )

    if len(available) == 1:
        return available[0]

    top = max(p.priority for p in available)
    candidates = [p for p in available if p.priority == top]
    if len(candidates) == 1:
        return candidates[0]

    raise MultipleProblemFactoryProviders(
        f"Multiple ProblemFactory providers found: {_ids(available)}. Specify a provider id."
    )


# --- Factory construction ---


def problem_factory(
    provider_id: Optional[str] = None,
    providers: Optional[Iterable[ProblemFactoryProvider]] = None,
) -> ProblemFactory:
    """Create a problem factory from the selected provider.

    Args:
        provider_id: Explicit provider id.
        providers: Candidate providers; discovered from entry points when omitted.
    """
    return _create_problem_factory(provider_id, providers)


def _create_problem_factory(
    provider_id: Optional[str], providers: Optional[Iterable[ProblemFactoryProvider]]
) -> ProblemFactory:
    if providers is None:
        providers = discover_problem_factory_providers()
    return select_problem_factory_provider(providers, provider_id).create()


def request_factory(
    base_uri: Union[URITemplate, str, None] = None,
    *,
    problem_factory: Optional[ProblemFactory] = None,
    provider_id: Optional[str] = None,
    providers: Optional[Iterable[RequestFactoryProvider]] = None,
    problem_factory_providers: Optional[Iterable[ProblemFactoryProvider]] = None,
    encoders: MediaTypeEncoders = MediaTypeEncoders.DEFAULT,
    decoders: MediaTypeDecoders = MediaTypeDecoders.DEFAULT,
    path_encoders: PathEncoderMap = DEFAULT_PATH_ENCODERS,
    settings: Optional[ClientSettings] = None,
) -> RequestFactory:
    """Create a request factory from the selected transport provider.

    Args:
        base_uri: Base URI template; defaults to ``settings.base_url``.
        problem_factory: Problem factory to use; selected from
            *problem_factory_providers* (or discovered) when omitted.
        provider_id: Transport provider id; defaults to ``settings.transport``.
        providers: Candidate transport providers; discovered when omitted.
        problem_factory_providers: Candidate problem factory providers.
        encoders: Encoder registry.
        decoders: Decoder registry.
        path_encoders: Path parameter converters.
        settings: Client settings passed to the transport.

    Returns:
        A request factory ready to use (close it with ``aclose()``).

    Raises:
        ProviderError: If a transport or problem factory cannot be selected.
        InvalidBaseUri: If no base URI is given or configured.
    """
    settings = settings or ClientSettings()
    if base_uri is None:
        if settings.base_url is None:
            raise InvalidBaseUri.with_detail("no base URI given or configured")
        base_uri = settings.base_url
    template = base_uri if isinstance(base_uri, URITemplate) else URITemplate(base_uri)

    if providers is None:
        providers = discover_request_factory_providers()
    provider = select_request_factory_provider(providers, provider_id or settings.transport)

    if problem_factory is None:
        problem_factory = _create_problem_factory(settings.problem_factory, problem_factory_providers)

    config = RequestFactoryConfig(
        base_uri=template,
        problem_factory=problem_factory,
        encoders=encoders,
        decoders=decoders,
        path_encoders=path_encoders,
        settings=settings,
    )
    logger.debug("Creating request factory with provider '%s'", provider.id)
    return provider.create(config)
