"""Default problem factory producing :class:`~apiwire.problems.Problem` instances."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from apiwire.http.status import Status
from apiwire.problems.factory import ProblemAdapter, ProblemBuilder, ProblemFactory
from apiwire.problems.problem import BLANK_TYPE, Problem, ProblemDescriptor
from apiwire.spi import ProblemFactoryProvider


class StandardProblemBuilder(ProblemBuilder):
    def __init__(self, type: str, status: Optional[Status] = None, title: Optional[str] = None) -> None:
        self._type = type
        self._status = status
        self._title = title
        self._detail: Optional[str] = None
        self._instance: Optional[str] = None
        self._extensions: dict[str, Any] = {}

    def title(self, title: Optional[str]) -> StandardProblemBuilder:
        self._title = title
        return self

    def detail(self, detail: Optional[str]) -> StandardProblemBuilder:
        self._detail = detail
        return self

    def instance(self, instance: Optional[str]) -> StandardProblemBuilder:
        self._instance = instance
        return self

    def status(self, status: Optional[Status]) -> StandardProblemBuilder:
        self._status = status
        return self

    def extension(self, name: str, value: Any) -> StandardProblemBuilder:
        self._extensions[name] = value
        return self

    def build(self) -> Problem:
        return Problem(
            type=self._type,
            title=self._title,
            status=self._status,
            detail=self._detail,
            instance=self._instance,
            extensions=self._extensions,
        )


class StandardProblemAdapter(ProblemAdapter):
    def get_type(self, problem: Exception) -> str:
        return _problem(problem).type

    def get_title(self, problem: Exception) -> Optional[str]:
        return _problem(problem).title

    def get_status(self, problem: Exception) -> Optional[Status]:
        return _problem(problem).status

    def get_detail(self, problem: Exception) -> Optional[str]:
        return _problem(problem).detail

    def get_instance(self, problem: Exception) -> Optional[str]:
        return _problem(problem).instance

    def get_extensions(self, problem: Exception) -> Mapping[str, Any]:
        return _problem(problem).extensions


def _problem(problem: Exception) -> Problem:
    if not isinstance(problem, Problem):
        raise TypeError(f"Expected a Problem, got {type(problem).__name__}")
    return problem


class StandardProblemFactory(ProblemFactory):
    def typed(self, type: str) -> StandardProblemBuilder:
        return StandardProblemBuilder(type)

    def from_status(self, status: Status) -> StandardProblemBuilder:
        return StandardProblemBuilder(BLANK_TYPE, status=status, title=status.reason_phrase)

    def from_descriptor(self, descriptor: ProblemDescriptor) -> Problem:
        return Problem.from_descriptor(descriptor)

    def adapter(self) -> StandardProblemAdapter:
        return StandardProblemAdapter()


class StandardProblemFactoryProvider(ProblemFactoryProvider):
    id = "standard"
    priority = 0

    def create(self) -> StandardProblemFactory:
        return StandardProblemFactory()
