"""Problem factory backed by a pydantic document model.

:class:`DocumentProblem` keeps the complete problem document as a
:class:`ProblemDocument` model, so unknown members survive in
``model_extra`` and the problem can be re-serialised with
``problem.document.model_dump_json()``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from apiwire.http.status import Status
from apiwire.problems.factory import ProblemAdapter, ProblemBuilder, ProblemFactory
from apiwire.problems.problem import BLANK_TYPE, ProblemDescriptor
from apiwire.spi import ProblemFactoryProvider


class ProblemDocument(BaseModel):
    """An RFC 7807 problem document; extension members are kept as extras."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str = BLANK_TYPE
    title: Optional[str] = None
    status: Optional[int] = None
    detail: Optional[str] = None
    instance: Optional[str] = None


class DocumentProblem(Exception):
    """Exception wrapping a :class:`ProblemDocument`.

    Args:
        document: The problem document.
        reason_phrase: Reason phrase for ``document.status`` when it differs
            from the standard one.
    """

    def __init__(self, document: ProblemDocument, reason_phrase: Optional[str] = None) -> None:
        self.document = document
        self.reason_phrase = reason_phrase
        super().__init__(document.title or document.type)

    @property
    def status(self) -> Optional[Status]:
        if self.document.status is None:
            return None
        return Status.of(self.document.status, self.reason_phrase)


class DocumentProblemBuilder(ProblemBuilder):
    def __init__(self, type: str, status: Optional[Status] = None) -> None:
        self._fields: dict[str, Any] = {"type": type}
        self._reason: Optional[str] = None
        if status is not None:
            self._fields["status"] = status.code
            self._fields["title"] = status.reason_phrase
            self._reason = status.reason_phrase

    def title(self, title: Optional[str]) -> DocumentProblemBuilder:
        self._fields["title"] = title
        return self

    def detail(self, detail: Optional[str]) -> DocumentProblemBuilder:
        self._fields["detail"] = detail
        return self

    def instance(self, instance: Optional[str]) -> DocumentProblemBuilder:
        self._fields["instance"] = instance
        return self

    def extension(self, name: str, value: Any) -> DocumentProblemBuilder:
        self._fields[name] = value
        return self

    def build(self) -> DocumentProblem:
        return DocumentProblem(ProblemDocument(**self._fields), self._reason)


class DocumentProblemAdapter(ProblemAdapter):
    def get_type(self, problem: Exception) -> str:
        return _document(problem).type

    def get_title(self, problem: Exception) -> Optional[str]:
        return _document(problem).title

    def get_status(self, problem: Exception) -> Optional[Status]:
        return problem.status if isinstance(problem, DocumentProblem) else None

    def get_detail(self, problem: Exception) -> Optional[str]:
        return _document(problem).detail

    def get_instance(self, problem: Exception) -> Optional[str]:
        return _document(problem).instance

    def get_extensions(self, problem: Exception) -> Mapping[str, Any]:
        return dict(_document(problem).model_extra or {})


def _document(problem: Exception) -> ProblemDocument:
    if not isinstance(problem, DocumentProblem):
        raise TypeError(f"Expected a DocumentProblem, got {type(problem).__name__}")
    return problem.document


class DocumentProblemFactory(ProblemFactory):
    def typed(self, type: str) -> DocumentProblemBuilder:
        return DocumentProblemBuilder(type)

    def from_status(self, status: Status) -> DocumentProblemBuilder:
        return DocumentProblemBuilder(BLANK_TYPE, status)

    def from_descriptor(self, descriptor: ProblemDescriptor) -> DocumentProblem:
        status = descriptor.status
        document = ProblemDocument(
            type=descriptor.type,
            title=descriptor.title,
            status=status.code if status else None,
            detail=descriptor.detail,
            instance=descriptor.instance,
            **descriptor.extensions,
        )
        return DocumentProblem(document, status.reason_phrase if status else None)

    def adapter(self) -> DocumentProblemAdapter:
        return DocumentProblemAdapter()


class DocumentProblemFactoryProvider(ProblemFactoryProvider):
    id = "pydantic"
    priority = -10

    def create(self) -> DocumentProblemFactory:
        return DocumentProblemFactory()
