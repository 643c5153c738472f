"""Typer application and CLI entry point for specmcp.

``specmcp serve`` runs the MCP server on stdio. The remaining commands run
the same engine once and print the result, which is handy for checking
what an agent will see::

    specmcp --spec-file openapi.json guide
    specmcp --spec-file openapi.json endpoints --tag Auth
    specmcp --spec-file openapi.json endpoint POST /login
    specmcp --spec-file openapi.json schema User

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~specmcp.exceptions.SpecmcpError` exits with
its ``exit_code``; anything else exits with
:data:`~specmcp.exit_codes.EXIT_GENERIC_FAILURE`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from specmcp import __version__
from specmcp.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED

app = typer.Typer(
    name="specmcp",
    help="Expose an OpenAPI 3.x description to AI agents over MCP.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specmcp {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    mode: Optional[str] = typer.Option(
        None, "--mode", help="Spec acquisition mode: http or file."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Base URL of the API serving the spec."
    ),
    spec_path: Optional[str] = typer.Option(
        None, "--spec-path", help="Path of the spec below the base URL."
    ),
    spec_file: Optional[str] = typer.Option(
        None, "--spec-file", help="Local spec file (implies --mode file)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~specmcp.output.OutputManager` and stores
    the spec-source flags in ``ctx.obj`` for :func:`_load`.
    """
    from specmcp.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    ctx.ensure_object(dict)
    ctx.obj["mode"] = mode
    ctx.obj["base_url"] = base_url
    ctx.obj["spec_path"] = spec_path
    ctx.obj["spec_file"] = spec_file
    ctx.obj["verbose"] = verbose


def _config(ctx: typer.Context):  # noqa: ANN202
    """Resolve the :class:`~specmcp.models.ServerConfig` from context flags."""
    from specmcp.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(
        cli_mode=obj.get("mode"),
        cli_base_url=obj.get("base_url"),
        cli_spec_path=obj.get("spec_path"),
        cli_spec_file=obj.get("spec_file"),
    )


def _load(ctx: typer.Context, config=None):  # noqa: ANN001, ANN202
    """Acquire the document once, resolving configuration unless *config* is given."""
    from specmcp.output import debug
    from specmcp.parser import fetch_spec

    if config is None:
        config = _config(ctx)
    debug(f"Loading spec ({config.mode}) from {config.spec_source}")
    return fetch_spec(config)


def _json_mode() -> bool:
    from specmcp.output import OutputFormat, get_output

    return get_output().format == OutputFormat.JSON


def _configure_logging(verbose: bool) -> None:
    """Send library and server logs to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command("serve")
def serve_command(ctx: typer.Context) -> None:
    """Run the MCP server on stdio."""
    from specmcp.output import info
    from specmcp.server import build_server

    config = _config(ctx)
    _configure_logging(bool((ctx.obj or {}).get("verbose")))

    info(f"{config.server_name} MCP server running on stdio")
    info(f"API Mode: {config.mode}")
    info(f"Spec Source: {config.spec_source}")

    build_server(config).run(transport="stdio")


@app.command("guide")
def guide_command(ctx: typer.Context) -> None:
    """Print the getting-started guide."""
    from specmcp.output import print_markdown
    from specmcp.render import render_getting_started

    config = _config(ctx)
    spec = _load(ctx, config)
    print_markdown(render_getting_started(spec, uri_scheme=config.uri_scheme))


@app.command("endpoints")
def endpoints_command(
    ctx: typer.Context,
    query: Optional[str] = typer.Option(
        None, "--query", "-s", help="Text to find in path, summary or description."
    ),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Exact tag."),
    method: Optional[str] = typer.Option(None, "--method", "-m", help="HTTP method."),
) -> None:
    """List endpoints grouped by tag, optionally filtered."""
    from specmcp.models import SearchFilters
    from specmcp.output import format_response, print_markdown
    from specmcp.parser import index_endpoints
    from specmcp.query import search
    from specmcp.render import render_endpoint_list

    records = search(
        index_endpoints(_load(ctx)),
        SearchFilters(query=query, tag=tag, method=method),
    )
    if _json_mode():
        format_response([record.model_dump() for record in records])
    else:
        print_markdown(render_endpoint_list(records))


@app.command("endpoint")
def endpoint_command(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="HTTP method, any case."),
    path: str = typer.Argument(..., help="Literal path, e.g. /users/{id}."),
) -> None:
    """Show the details of one endpoint."""
    from specmcp.output import print_markdown
    from specmcp.render import render_endpoint_details

    print_markdown(render_endpoint_details(_load(ctx), method, path))


@app.command("schema")
def schema_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Schema name under components.schemas."),
) -> None:
    """Show one component schema."""
    from specmcp.output import format_response, print_markdown
    from specmcp.parser import get_schema
    from specmcp.render import render_schema_details

    spec = _load(ctx)
    schema = get_schema(spec, name)
    if _json_mode() and schema is not None:
        format_response(schema if isinstance(schema, bool) else schema.to_dict())
    else:
        print_markdown(render_schema_details(spec, name))


@app.command("tags")
def tags_command(ctx: typer.Context) -> None:
    """List every tag used by an operation."""
    from specmcp.output import format_response, print_markdown
    from specmcp.parser import extract_tags
    from specmcp.render import render_tag_list

    tags = extract_tags(_load(ctx))
    if _json_mode():
        format_response(tags)
    else:
        print_markdown(render_tag_list(tags))


@app.command("spec")
def spec_command(ctx: typer.Context) -> None:
    """Print the raw OpenAPI document as JSON."""
    from specmcp.output import print_data
    from specmcp.render import render_full_spec

    print_data(render_full_spec(_load(ctx)))


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``specmcp`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from specmcp.exceptions import SpecmcpError
        from specmcp.output import error

        if isinstance(exc, SpecmcpError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
