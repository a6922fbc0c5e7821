"""Provider interfaces for pluggable transports and problem factories.

Providers are advertised through entry points and discovered by
:mod:`apiwire.providers`::

    [project.entry-points."apiwire.transports"]
    httpx = "apiwire.transports.httpx:HttpxRequestFactoryProvider"

    [project.entry-points."apiwire.problem_factories"]
    standard = "apiwire.problems.standard:StandardProblemFactoryProvider"

Each entry point names a provider class; it is instantiated with no
arguments. ``id`` must be unique within its group, and ``priority`` only
matters when choosing between several problem factory providers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apiwire.models import RequestFactoryConfig
    from apiwire.problems.factory import ProblemFactory
    from apiwire.request_factory import RequestFactory


class RequestFactoryProvider(ABC):
    """Creates :class:`~apiwire.request_factory.RequestFactory` instances for one transport."""

    id: str = ""
    priority: int = 0

    @abstractmethod
    def create(self, config: RequestFactoryConfig) -> RequestFactory:
        """Create a request factory configured by *config*."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} priority={self.priority}>"


class ProblemFactoryProvider(ABC):
    """Creates :class:`~apiwire.problems.ProblemFactory` instances."""

    id: str = ""
    priority: int = 0

    @abstractmethod
    def create(self) -> ProblemFactory: ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} priority={self.priority}>"
