"""Tests for apiwire.problems -- problem values, factories and adapters."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import BaseModel

from apiwire.http import BufferedResponse, Status
from apiwire.problems import (
    BLANK_TYPE,
    DocumentProblem,
    DocumentProblemFactory,
    Problem,
    ProblemDescriptor,
    StandardProblemFactory,
    parse_status,
)


class OutOfStock(Problem):
    TYPE = "http://example.com/out_of_stock"


class Order(BaseModel):
    id: int
    error: Problem


class TestParseStatus:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (404, Status(404, "Not Found")),
            ("404", Status(404, "Not Found")),
            (404.0, Status(404, "Not Found")),
            ({"code": 499, "reasonPhrase": "Custom"}, Status(499, "Custom")),
            ({"statusCode": 400}, Status(400, "Bad Request")),
            (Status(418, "Tea"), Status(418, "Tea")),
        ],
    )
    def test_accepted_forms(self, value: Any, expected: Status) -> None:
        assert parse_status(value) == expected

    @pytest.mark.parametrize("value", [None, True, "abc", 4.5, {"reasonPhrase": "x"}, [400]])
    def test_rejected_forms(self, value: Any) -> None:
        assert parse_status(value) is None


class TestProblemDescriptor:
    def test_defaults(self) -> None:
        descriptor = ProblemDescriptor.from_mapping({})
        assert descriptor.type == BLANK_TYPE
        assert descriptor.title is None
        assert descriptor.status is None

    def test_blank_title_falls_back_to_reason(self) -> None:
        assert ProblemDescriptor.from_mapping({"status": 404}).title == "Not Found"

    def test_typed_problem_keeps_missing_title(self) -> None:
        descriptor = ProblemDescriptor.from_mapping({"type": OutOfStock.TYPE, "status": 404})
        assert descriptor.title is None

    def test_extensions(self) -> None:
        descriptor = ProblemDescriptor.from_mapping({"title": "T", "sku": "A-1", "count": 0})
        assert descriptor.extensions == {"sku": "A-1", "count": 0}


class TestProblem:
    def test_members(self) -> None:
        problem = Problem(title="Bad", status=400, detail="d", instance="/i/1", extensions={"k": 1})
        assert problem.type == BLANK_TYPE
        assert problem.status == Status(400, "Bad Request")
        assert problem.instance == "/i/1"
        assert problem.extension("k") == 1
        assert problem.extension("missing", "x") == "x"

    def test_extensions_are_read_only(self) -> None:
        problem = Problem(extensions={"k": 1})
        with pytest.raises(TypeError):
            problem.extensions["k"] = 2  # type: ignore[index]

    def test_subclass_type(self) -> None:
        assert OutOfStock(title="Gone").type == OutOfStock.TYPE

    def test_str_summary(self) -> None:
        assert str(Problem(title="Bad", status=400, detail="d")) == "Bad (400): d"
        assert str(OutOfStock()) == OutOfStock.TYPE

    def test_to_dict(self) -> None:
        problem = Problem(title="Bad", status=Status(499, "Custom"), extensions={"k": [1]})
        assert problem.to_dict() == {"type": BLANK_TYPE, "title": "Bad", "status": 499, "k": [1]}

    def test_from_data(self) -> None:
        problem = OutOfStock.from_data({"type": OutOfStock.TYPE, "status": 409, "sku": "A"})
        assert isinstance(problem, OutOfStock)
        assert problem.extension("sku") == "A"
        assert OutOfStock.from_data(problem) is problem

    def test_from_data_rejects_non_objects(self) -> None:
        with pytest.raises(ValueError):
            Problem.from_data([1])

    def test_pydantic_field(self) -> None:
        order = Order.model_validate({"id": 1, "error": {"title": "Oops", "status": 500}})
        assert isinstance(order.error, Problem)
        assert order.error.status.code == 500
        dumped = order.model_dump()
        assert dumped["error"] == {"type": BLANK_TYPE, "title": "Oops", "status": 500}


class TestStandardProblemFactory:
    def test_builders(self) -> None:
        factory = StandardProblemFactory()
        problem = factory.typed(OutOfStock.TYPE).title("Gone").detail("d").instance("/o/1").extension("x", 1).build()
        assert isinstance(problem, Problem)
        assert problem.type == OutOfStock.TYPE
        assert problem.title == "Gone"
        assert problem.extension("x") == 1

    def test_from_status_uses_reason_as_title(self) -> None:
        problem = StandardProblemFactory().from_status(Status(503, "Down")).build()
        assert problem.title == "Down"
        assert problem.status == Status(503, "Down")

    def test_from_response(self) -> None:
        response = BufferedResponse(404)
        problem = StandardProblemFactory().from_response(response).build()
        assert problem.status == Status(404, "Not Found")

    def test_adapter(self) -> None:
        factory = StandardProblemFactory()
        adapter = factory.adapter()
        problem = factory.from_status(Status.of(400)).detail("d").extension("k", "v").build()
        assert adapter.get_type(problem) == BLANK_TYPE
        assert adapter.get_title(problem) == "Bad Request"
        assert adapter.get_status(problem).code == 400
        assert adapter.get_detail(problem) == "d"
        assert adapter.get_instance(problem) is None
        assert adapter.get_extension(problem, "k") == "v"

    def test_adapter_rejects_foreign_exceptions(self) -> None:
        with pytest.raises(TypeError):
            StandardProblemFactory().adapter().get_type(ValueError("x"))


class TestDocumentProblemFactory:
    def test_builders(self) -> None:
        problem = DocumentProblemFactory().typed(OutOfStock.TYPE).title("Gone").extension("sku", "A").build()
        assert isinstance(problem, DocumentProblem)
        assert problem.document.type == OutOfStock.TYPE
        assert problem.document.model_extra == {"sku": "A"}
        assert problem.status is None

    def test_from_status(self) -> None:
        problem = DocumentProblemFactory().from_status(Status(499, "Custom")).build()
        assert problem.document.status == 499
        assert problem.document.title == "Custom"
        assert problem.status == Status(499, "Custom")

    def test_document_serialises(self) -> None:
        problem = DocumentProblemFactory().from_descriptor(
            ProblemDescriptor.from_mapping({"status": 400, "detail": "d", "k": 1})
        )
        assert problem.document.model_dump(exclude_none=True) == {
            "type": BLANK_TYPE,
            "title": "Bad Request",
            "status": 400,
            "detail": "d",
            "k": 1,
        }

    def test_adapter(self) -> None:
        factory = DocumentProblemFactory()
        adapter = factory.adapter()
        problem = factory.from_status(Status.of(404)).instance("/x").extension("k", 2).build()
        assert adapter.get_title(problem) == "Not Found"
        assert adapter.get_status(problem) == Status(404, "Not Found")
        assert adapter.get_instance(problem) == "/x"
        assert adapter.get_extensions(problem) == {"k": 2}
