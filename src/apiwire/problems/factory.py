"""Abstract problem factory, builder, and adapter.

A :class:`ProblemFactory` decides which exception type represents a
failure response; a :class:`ProblemAdapter` reads the RFC 7807 members back
out of whatever that type is. The failure pipeline only talks to these
interfaces, so alternative problem representations plug in through a
:class:`~apiwire.spi.ProblemFactoryProvider`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional

from apiwire.http.response import Response
from apiwire.http.status import Status
from apiwire.problems.problem import ProblemDescriptor


class ProblemBuilder(ABC):
    """Chainable builder returned by :meth:`ProblemFactory.typed` and friends."""

    @abstractmethod
    def title(self, title: Optional[str]) -> ProblemBuilder: ...

    @abstractmethod
    def detail(self, detail: Optional[str]) -> ProblemBuilder: ...

    @abstractmethod
    def instance(self, instance: Optional[str]) -> ProblemBuilder: ...

    @abstractmethod
    def extension(self, name: str, value: Any) -> ProblemBuilder: ...

    @abstractmethod
    def build(self) -> Exception: ...


class ProblemFactory(ABC):
    """Creates problem exceptions."""

    @abstractmethod
    def typed(self, type: str) -> ProblemBuilder:
        """Start a problem of the given type URI."""

    @abstractmethod
    def from_status(self, status: Status) -> ProblemBuilder:
        """Start an ``about:blank`` problem for *status*, titled with its reason phrase."""

    @abstractmethod
    def from_descriptor(self, descriptor: ProblemDescriptor) -> Exception:
        """Build a problem from the members of a parsed problem document."""

    def from_response(self, response: Response) -> ProblemBuilder:
        return self.from_status(Status.of(response.status_code, response.reason_phrase))

    @abstractmethod
    def adapter(self) -> ProblemAdapter: ...


class ProblemAdapter(ABC):
    """Reads RFC 7807 members from problems created by a :class:`ProblemFactory`."""

    @abstractmethod
    def get_type(self, problem: Exception) -> str: ...

    @abstractmethod
    def get_title(self, problem: Exception) -> Optional[str]: ...

    @abstractmethod
    def get_status(self, problem: Exception) -> Optional[Status]: ...

    @abstractmethod
    def get_detail(self, problem: Exception) -> Optional[str]: ...

    @abstractmethod
    def get_instance(self, problem: Exception) -> Optional[str]: ...

    @abstractmethod
    def get_extensions(self, problem: Exception) -> Mapping[str, Any]: ...

    def get_extension(self, problem: Exception, name: str) -> Any:
        return self.get_extensions(problem).get(name)
