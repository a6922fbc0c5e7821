"""Typer application and CLI entry point for apiwire.

The ``apiwire`` command is a thin shell over the library, useful for
poking at an API or checking a client's configuration:

* ``apiwire providers`` lists the discovered transports and problem
  factories and which of them would be selected,
* ``apiwire media-type A B`` reports whether two media types are compatible,
* ``apiwire call METHOD PATH`` executes a request and prints the decoded
  result (or the problem it failed with),
* ``apiwire events PATH`` prints server-sent events as they arrive.

Results go to stdout and diagnostics to stderr (see :mod:`apiwire.output`).
:func:`main` is the console-script entry point and maps errors to the exit
codes of :mod:`apiwire.exit_codes`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Optional

import httpx
import typer

from apiwire import __version__
from apiwire.config import resolve_settings
from apiwire.exceptions import ApiwireError, ProviderError
from apiwire.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROBLEM,
    EXIT_TRANSPORT_ERROR,
)
from apiwire.media_type import JSON, MediaType
from apiwire.models import ClientSettings
from apiwire.output import OutputFormat, OutputLogHandler, OutputManager, get_output, set_output
from apiwire.problems.document import DocumentProblem
from apiwire.problems.problem import Problem
from apiwire.providers import (
    discover_problem_factory_providers,
    discover_request_factory_providers,
    request_factory,
    select_problem_factory_provider,
    select_request_factory_provider,
)
from apiwire.request_factory import RequestFactory

app = typer.Typer(
    name="apiwire",
    help="Call REST APIs and stream server-sent events through apiwire.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

DEFAULT_ACCEPT = ("application/json", "application/*+json", "text/*", "*/*")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"apiwire {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route ``apiwire`` log records through the output manager.

    Warnings are always shown; debug records only with ``--verbose``.
    """
    logger = logging.getLogger("apiwire")
    for handler in list(logger.handlers):
        if isinstance(handler, OutputLogHandler):
            logger.removeHandler(handler)
    handler = OutputLogHandler()
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Initialise output and logging before every sub-command."""
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _pairs(values: Optional[list[str]], option: str) -> dict[str, Any]:
    """Parse repeated ``key=value`` options; repeated keys collect into a list."""
    result: dict[str, Any] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            get_output().error(f"Invalid {option} '{item}', expected key=value")
            raise typer.Exit(EXIT_INVALID_USAGE)
        if key in result:
            existing = result[key]
            result[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            result[key] = value
    return result


def build_factory(settings: ClientSettings) -> RequestFactory:
    """Create the request factory used by ``call`` and ``events``."""
    return request_factory(settings=settings)


def _problem_fields(problem: Exception) -> dict[str, Any]:
    if isinstance(problem, Problem):
        return problem.to_dict()
    if isinstance(problem, DocumentProblem):
        return problem.document.model_dump(mode="json", exclude_none=True)
    return {"detail": str(problem)}


def _report_problem(problem: Exception) -> None:
    output = get_output()
    output.error(str(problem))
    output.print_result(_problem_fields(problem))


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("providers")
def providers_command() -> None:
    """List discovered transports and problem factories."""
    settings = resolve_settings()
    rows: list[list[str]] = []

    transports = discover_request_factory_providers()
    try:
        selected: Optional[str] = select_request_factory_provider(transports, settings.transport).id
    except ProviderError as exc:
        get_output().warning(str(exc))
        selected = None
    for provider in sorted(transports, key=lambda p: p.id):
        rows.append(["transport", provider.id, str(provider.priority), _yes(provider.id == selected)])

    factories = discover_problem_factory_providers()
    try:
        selected = select_problem_factory_provider(factories, settings.problem_factory).id
    except ProviderError as exc:
        get_output().warning(str(exc))
        selected = None
    for provider in sorted(factories, key=lambda p: (-p.priority, p.id)):
        rows.append(["problem factory", provider.id, str(provider.priority), _yes(provider.id == selected)])

    get_output().print_table(["Kind", "Id", "Priority", "Selected"], rows, title="Providers")


def _yes(value: bool) -> str:
    return "yes" if value else "no"


@app.command("media-type")
def media_type_command(
    first: str = typer.Argument(..., help="First media type, e.g. application/vnd.api+json"),
    second: str = typer.Argument(..., help="Second media type, e.g. application/json"),
) -> None:
    """Report whether two media types are compatible."""
    a = MediaType.parse(first)
    b = MediaType.parse(second)
    get_output().print_result(
        {
            "first": a.value,
            "second": b.value,
            "compatible": a.compatible(b),
        }
    )


@app.command("call")
def call_command(
    method: str = typer.Argument(..., help="HTTP method, e.g. GET"),
    path: str = typer.Argument(..., help="Path template joined onto the base URL"),
    base_url: Optional[str] = typer.Option(None, "--base-url", "-b", help="Base URL."),
    query: Optional[list[str]] = typer.Option(None, "--query", "-Q", help="Query parameter key=value."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help="Header key=value."),
    body: Optional[str] = typer.Option(None, "--body", "-d", help="JSON request body."),
    accept: Optional[list[str]] = typer.Option(None, "--accept", "-A", help="Accepted media type."),
) -> None:
    """Execute a request and print the decoded result."""
    payload: Any = None
    if body is not None:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            get_output().error(f"Invalid JSON body: {exc}")
            raise typer.Exit(EXIT_INVALID_USAGE)

    options: dict[str, Any] = {
        "query_parameters": _pairs(query, "--query"),
        "headers": _pairs(header, "--header"),
        "accept_types": accept or list(DEFAULT_ACCEPT),
    }
    if payload is not None:
        options["body"] = payload
        options["content_types"] = [JSON]

    settings = resolve_settings(base_url=base_url)

    async def run() -> Any:
        async with build_factory(settings) as factory:
            response = await factory.response(method, path, **options)
            body = response.body
            if response.status_code not in factory.failure_status_codes and (body is None or body.size == 0):
                # nothing to print for empty successes
                return None
            return factory.parse(response, Any)

    try:
        result = asyncio.run(run())
    except (Problem, DocumentProblem) as problem:
        _report_problem(problem)
        raise typer.Exit(EXIT_PROBLEM)

    if result is not None:
        get_output().print_result(result)


@app.command("events")
def events_command(
    path: str = typer.Argument(..., help="Path of the event stream"),
    base_url: Optional[str] = typer.Option(None, "--base-url", "-b", help="Base URL."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Stop after N events."),
) -> None:
    """Print server-sent events as they arrive."""
    settings = resolve_settings(base_url=base_url)
    output = get_output()

    async def run() -> None:
        count = 0
        async with build_factory(settings) as factory:
            async with factory.event_source("GET", path) as source:
                async for event in source:
                    if output.format == OutputFormat.JSON:
                        output.print_result({"event": event.event, "id": event.id, "data": event.data})
                    else:
                        output.print_data(f"{event.event}\t{event.data or ''}")
                    count += 1
                    if limit is not None and count >= limit:
                        break
        output.info(f"{count} event(s) received")

    try:
        asyncio.run(run())
    except (Problem, DocumentProblem) as problem:
        _report_problem(problem)
        raise typer.Exit(EXIT_PROBLEM)


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def main() -> None:
    """CLI entry point invoked by the ``apiwire`` console script.

    :class:`~apiwire.exceptions.ApiwireError` exits with the error's
    ``exit_code``, problems with ``EXIT_PROBLEM`` and httpx failures with
    ``EXIT_TRANSPORT_ERROR``.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except ApiwireError as exc:
        get_output().error(str(exc))
        sys.exit(exc.exit_code)
    except (Problem, DocumentProblem) as exc:
        _report_problem(exc)
        sys.exit(EXIT_PROBLEM)
    except httpx.HTTPError as exc:
        get_output().error(f"Transport error: {exc}")
        sys.exit(EXIT_TRANSPORT_ERROR)
    except Exception as exc:
        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
