"""Shared test fixtures for apiwire.

Provides an in-memory transport (:class:`FakeRequestFactory`) so the
request builder, result pipeline and event sources can be exercised
without sockets, plus config isolation, output management and a CLI
runner. These fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterable
from pathlib import Path
from typing import Any, Optional

import pytest

from apiwire.http import BufferedResponse, Data, End, PreparedRequest, Request, Start
from apiwire.output import OutputFormat, OutputManager, reset_output, set_output
from apiwire.problems.standard import StandardProblemFactory
from apiwire.request_factory import RequestFactory, RequestPurpose

BASE_URI = "http://example.com/api/v1"


# ---------------------------------------------------------------------------
# In-memory transport
# ---------------------------------------------------------------------------


class FakeRequest(Request):
    """Request answered by the owning factory's handlers."""

    def __init__(self, prepared: PreparedRequest, factory: FakeRequestFactory, purpose: RequestPurpose) -> None:
        super().__init__(prepared)
        self.factory = factory
        self.purpose = purpose
        self.closed = False

    async def execute(self) -> BufferedResponse:
        self.factory.sent.append(self)
        if self.factory.handler is None:
            raise AssertionError("No handler installed for buffered requests")
        return self.factory.handler(self)

    async def start(self) -> AsyncIterator[Any]:
        self.factory.sent.append(self)
        if self.factory.stream_handler is None:
            raise AssertionError("No handler installed for streamed requests")
        head, chunks = self.factory.stream_handler(self)
        try:
            yield Start(head)
            for chunk in chunks:
                yield Data(chunk)
            yield End()
        finally:
            self.closed = True


Handler = Callable[[FakeRequest], BufferedResponse]
StreamHandler = Callable[[FakeRequest], "tuple[BufferedResponse, Iterable[bytes]]"]


class FakeRequestFactory(RequestFactory):
    """A request factory whose transport is a pair of Python callables.

    Attributes:
        handler: Answers :meth:`Request.execute` calls.
        stream_handler: Returns ``(response_head, chunks)`` for
            :meth:`Request.start` calls.
        sent: Every request that was executed or started.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.handler: Optional[Handler] = None
        self.stream_handler: Optional[StreamHandler] = None
        self.sent: list[FakeRequest] = []
        self.closed = False

    def request_for(self, prepared: PreparedRequest, purpose: RequestPurpose = RequestPurpose.NORMAL) -> FakeRequest:
        return FakeRequest(prepared, self, purpose)

    def respond(
        self,
        status: int,
        content: Optional[bytes] = None,
        content_type: Optional[str] = None,
        reason: Optional[str] = None,
        headers: Optional[list[tuple[str, str]]] = None,
    ) -> None:
        """Answer every buffered request with a fixed response."""
        pairs = list(headers or [])
        if content_type is not None:
            pairs.append(("Content-Type", content_type))

        def handler(request: FakeRequest) -> BufferedResponse:
            return BufferedResponse(status, pairs, content, reason_phrase=reason, request=request)

        self.handler = handler

    def stream(
        self,
        chunks: Iterable[bytes],
        status: int = 200,
        content_type: str = "text/event-stream",
    ) -> None:
        """Answer every streamed request with *chunks*."""
        chunk_list = list(chunks)

        def handler(request: FakeRequest) -> tuple[BufferedResponse, list[bytes]]:
            head = BufferedResponse(status, [("Content-Type", content_type)], request=request)
            return head, chunk_list

        self.stream_handler = handler

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def make_factory() -> Callable[..., FakeRequestFactory]:
    """Build fake request factories; keyword arguments override the defaults."""

    def make(base_uri: Any = BASE_URI, **kwargs: Any) -> FakeRequestFactory:
        kwargs.setdefault("problem_factory", StandardProblemFactory())
        return FakeRequestFactory(base_uri, **kwargs)

    return make


@pytest.fixture
def factory(make_factory: Callable[..., FakeRequestFactory]) -> FakeRequestFactory:
    """A fake request factory rooted at :data:`BASE_URI` with the standard problem factory."""
    return make_factory()


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams, so a fresh manager is
    needed for each test.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate settings to a temporary directory.

    Points XDG_CONFIG_HOME into tmp_path, clears all APIWIRE_* environment
    variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("apiwire.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in [
        "APIWIRE_BASE_URL",
        "APIWIRE_TRANSPORT",
        "APIWIRE_PROBLEM_FACTORY",
        "APIWIRE_TIMEOUT",
        "APIWIRE_EVENT_TIMEOUT",
        "APIWIRE_VERIFY_SSL",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
