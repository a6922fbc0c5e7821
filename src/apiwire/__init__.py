"""apiwire -- runtime support for generated REST API clients.

Generated clients describe each operation (method, path template,
parameters, acceptable media types) and hand it to a
:class:`~apiwire.request_factory.RequestFactory`, which builds the request,
executes it through a pluggable transport, and decodes the response into a
typed result or an RFC 7807 problem exception. Server-sent event endpoints
are consumed through :class:`~apiwire.events.EventSource`.

Typical use::

    from apiwire import request_factory

    async with request_factory("https://api.example.com/v1") as factory:
        user = await factory.result("GET", "/users/{id}", User, path_parameters={"id": 42})

Modules:
    media_type: Media type values and compatibility matching.
    codecs: Encoder/decoder protocols, built-in codecs and registries.
    request_factory: Request building and the response/result pipeline.
    problems: Problem exceptions, factories and adapters.
    events: Server-sent event parsing and event sources.
    providers: Entry-point discovery and selection of transports.
    transports: Concrete transports (httpx).
    config: Settings files and precedence resolution.
    cli: The ``apiwire`` command line tool.
"""

__version__ = "0.1.0"

from apiwire.media_type import MediaType  # noqa: E402
from apiwire.problems.problem import Problem  # noqa: E402
from apiwire.providers import problem_factory, request_factory  # noqa: E402
from apiwire.request_factory import RequestFactory  # noqa: E402

__all__ = [
    "MediaType",
    "Problem",
    "RequestFactory",
    "__version__",
    "problem_factory",
    "request_factory",
]
