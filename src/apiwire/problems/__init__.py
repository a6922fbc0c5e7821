"""Problem details (RFC 7807) raised for failure responses."""

from apiwire.problems.document import (
    DocumentProblem,
    DocumentProblemFactory,
    DocumentProblemFactoryProvider,
    ProblemDocument,
)
from apiwire.problems.factory import ProblemAdapter, ProblemBuilder, ProblemFactory
from apiwire.problems.problem import BLANK_TYPE, Problem, ProblemDescriptor, parse_status
from apiwire.problems.standard import (
    StandardProblemAdapter,
    StandardProblemFactory,
    StandardProblemFactoryProvider,
)

__all__ = [
    "BLANK_TYPE",
    "DocumentProblem",
    "DocumentProblemFactory",
    "DocumentProblemFactoryProvider",
    "Problem",
    "ProblemAdapter",
    "ProblemBuilder",
    "ProblemDescriptor",
    "ProblemDocument",
    "ProblemFactory",
    "StandardProblemAdapter",
    "StandardProblemFactory",
    "StandardProblemFactoryProvider",
    "parse_status",
]
