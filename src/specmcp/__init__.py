"""specmcp -- Expose an OpenAPI 3.x description to AI agents over MCP.

The package turns a REST API's OpenAPI document into a small query
interface: list and search endpoints, read one endpoint in detail, and
read named data-model schemas. It is served to agents as MCP tools and
resources, and the same views are available from the command line.

Typical workflow::

    specmcp --base-url http://localhost:8000 serve   # MCP server on stdio
    specmcp --spec-file openapi.json endpoints       # inspect locally

Modules:
    app: Typer application and CLI entry point.
    server: MCP tool and resource wiring.
    models: Pydantic models for the spec, endpoint records and config.
    parser: Loading, reference resolution and endpoint/tag indexing.
    query: Endpoint search.
    render: Markdown and JSON views.
    config: Configuration precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
