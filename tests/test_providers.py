"""Tests for apiwire.providers -- discovery and selection of transports and problem factories."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from apiwire.exceptions import (
    InvalidBaseUri,
    MultipleProblemFactoryProviders,
    MultipleRequestFactoryProviders,
    NoProblemFactoryProvider,
    NoRequestFactoryProvider,
)
from apiwire.models import ClientSettings, RequestFactoryConfig
from apiwire.problems import DocumentProblemFactory, StandardProblemFactory
from apiwire.providers import (
    PROBLEM_FACTORIES_GROUP,
    TRANSPORTS_GROUP,
    _discover,
    discover_problem_factory_providers,
    discover_request_factory_providers,
    problem_factory,
    request_factory,
    select_problem_factory_provider,
    select_request_factory_provider,
)
from apiwire.spi import ProblemFactoryProvider, RequestFactoryProvider

from conftest import FakeRequestFactory


class FakeTransportProvider(RequestFactoryProvider):
    def __init__(self, id: str, priority: int = 0) -> None:
        self.id = id
        self.priority = priority
        self.configs: list[RequestFactoryConfig] = []

    def create(self, config: RequestFactoryConfig) -> FakeRequestFactory:
        self.configs.append(config)
        return FakeRequestFactory(
            config.base_uri,
            config.problem_factory,
            encoders=config.encoders,
            decoders=config.decoders,
            path_encoders=config.path_encoders,
        )


class FakeProblemProvider(ProblemFactoryProvider):
    def __init__(self, id: str, priority: int = 0) -> None:
        self.id = id
        self.priority = priority

    def create(self) -> StandardProblemFactory:
        return StandardProblemFactory()


def _entry_point(name: str, loaded: Any) -> MagicMock:
    ep = MagicMock()
    ep.name = name
    ep.load.return_value = loaded
    return ep


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelectRequestFactoryProvider:
    def test_single_provider(self) -> None:
        only = FakeTransportProvider("a")
        assert select_request_factory_provider([only]) is only

    def test_multiple_providers_are_an_error(self) -> None:
        with pytest.raises(MultipleRequestFactoryProviders, match="a, b"):
            select_request_factory_provider([FakeTransportProvider("b", 100), FakeTransportProvider("a")])

    def test_explicit_id(self) -> None:
        b = FakeTransportProvider("b")
        assert select_request_factory_provider([FakeTransportProvider("a"), b], "b") is b

    def test_unknown_id(self) -> None:
        with pytest.raises(NoRequestFactoryProvider, match="'c' not found"):
            select_request_factory_provider([FakeTransportProvider("a")], "c")

    def test_no_providers(self) -> None:
        with pytest.raises(NoRequestFactoryProvider, match=TRANSPORTS_GROUP):
            select_request_factory_provider([])


class TestSelectProblemFactoryProvider:
    def test_highest_priority_wins(self) -> None:
        b = FakeProblemProvider("b", 100)
        assert select_problem_factory_provider([FakeProblemProvider("a", 0), b]) is b

    def test_shared_priority_is_an_error(self) -> None:
        providers = [FakeProblemProvider("b", 5), FakeProblemProvider("a", 5), FakeProblemProvider("c", 1)]
        with pytest.raises(MultipleProblemFactoryProviders, match="a, b, c"):
            select_problem_factory_provider(providers)

    def test_explicit_id_beats_priority(self) -> None:
        a = FakeProblemProvider("a", 0)
        assert select_problem_factory_provider([a, FakeProblemProvider("b", 100)], "a") is a

    def test_unknown_id(self) -> None:
        with pytest.raises(NoProblemFactoryProvider):
            select_problem_factory_provider([FakeProblemProvider("a")], "x")

    def test_no_providers(self) -> None:
        with pytest.raises(NoProblemFactoryProvider):
            select_problem_factory_provider([])


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestDiscovery:
    @patch("apiwire.providers.importlib.metadata.entry_points")
    def test_discover_instantiates_providers(self, mock_eps: MagicMock) -> None:
        mock_eps.return_value.select.return_value = [_entry_point("fake", lambda: FakeProblemProvider("fake"))]
        providers = _discover(PROBLEM_FACTORIES_GROUP, ProblemFactoryProvider)
        assert [p.id for p in providers] == ["fake"]
        mock_eps.return_value.select.assert_called_once_with(group=PROBLEM_FACTORIES_GROUP)

    @patch("apiwire.providers.importlib.metadata.entry_points")
    def test_broken_and_foreign_entries_are_skipped(
        self, mock_eps: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        broken = _entry_point("broken", None)
        broken.load.side_effect = ImportError("missing module")
        foreign = _entry_point("foreign", lambda: object())
        good = _entry_point("good", lambda: FakeTransportProvider("good"))
        mock_eps.return_value.select.return_value = [broken, foreign, good]

        with caplog.at_level("WARNING", logger="apiwire.providers"):
            providers = _discover(TRANSPORTS_GROUP, RequestFactoryProvider)

        assert [p.id for p in providers] == ["good"]
        assert "broken" in caplog.text
        assert "foreign" in caplog.text

    def test_installed_providers(self) -> None:
        # the package's own entry points
        assert "httpx" in {p.id for p in discover_request_factory_providers()}
        assert {"standard", "pydantic"} <= {p.id for p in discover_problem_factory_providers()}


# ---------------------------------------------------------------------------
# Factory construction
# ---------------------------------------------------------------------------


class TestFactories:
    def test_problem_factory_by_priority(self) -> None:
        from apiwire.problems.document import DocumentProblemFactoryProvider
        from apiwire.problems.standard import StandardProblemFactoryProvider

        providers = [DocumentProblemFactoryProvider(), StandardProblemFactoryProvider()]
        assert isinstance(problem_factory(providers=providers), StandardProblemFactory)
        assert isinstance(problem_factory("pydantic", providers=providers), DocumentProblemFactory)

    def test_request_factory_uses_selected_provider(self) -> None:
        provider = FakeTransportProvider("fake")
        factory = request_factory(
            "http://example.com/{version}",
            providers=[provider],
            problem_factory_providers=[FakeProblemProvider("p")],
        )
        assert isinstance(factory, FakeRequestFactory)
        assert isinstance(factory.problem_factory, StandardProblemFactory)
        assert provider.configs[0].base_uri.template == "http://example.com/{version}"

    def test_request_factory_from_settings(self) -> None:
        chosen = FakeTransportProvider("b")
        settings = ClientSettings(base_url="http://settings.example.com", transport="b")
        factory = request_factory(
            providers=[FakeTransportProvider("a"), chosen],
            problem_factory=StandardProblemFactory(),
            settings=settings,
        )
        assert chosen.configs[0].settings is settings
        assert factory.prepare("GET", "/x").uri == "http://settings.example.com/x"

    def test_request_factory_requires_base_uri(self) -> None:
        with pytest.raises(InvalidBaseUri):
            request_factory(providers=[FakeTransportProvider("a")], problem_factory=StandardProblemFactory())

    def test_request_factory_provider_errors(self) -> None:
        with pytest.raises(MultipleRequestFactoryProviders):
            request_factory(
                "http://example.com",
                providers=[FakeTransportProvider("a"), FakeTransportProvider("b")],
                problem_factory=StandardProblemFactory(),
            )
