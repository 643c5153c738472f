"""MCP server exposing the introspection engine as tools and resources.

:func:`build_server` returns a :class:`~mcp.server.fastmcp.FastMCP` instance
with three tools and four resources registered. Every call acquires a fresh
document through the injected *loader* (by default
:func:`~specmcp.parser.loader.fetch_spec`) and hands it to the pure engine;
no document or index outlives the call that produced it.

Tools:

* ``get_endpoint_details(method, path)``
* ``search_endpoints(query?, tag?, method?)``
* ``get_schema_details(schemaName)``

Resources (``<scheme>://...``, scheme from
:attr:`~specmcp.models.ServerConfig.uri_scheme`):

* ``getting-started`` -- statistics and usage guide (Markdown)
* ``endpoints-list`` -- all endpoints grouped by tag (Markdown)
* ``tags-list`` -- one tag per line
* ``full-spec`` -- the raw document as JSON

Lookup misses come back as ordinary text. Acquisition failures propagate so
the MCP layer reports them as errors.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated, Callable, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from specmcp.models import SearchFilters, ServerConfig, SpecDocument
from specmcp.parser.indexer import extract_tags, index_endpoints
from specmcp.parser.loader import fetch_spec
from specmcp.query import search
from specmcp.render import (
    render_endpoint_details,
    render_endpoint_list,
    render_full_spec,
    render_getting_started,
    render_schema_details,
    render_tag_list,
)

SpecLoader = Callable[[ServerConfig], SpecDocument]

logger = logging.getLogger(__name__)


def build_server(config: ServerConfig, loader: SpecLoader = fetch_spec) -> FastMCP:
    """Create the MCP server for *config*.

    Args:
        config: Resolved server configuration.
        loader: Callable returning a freshly acquired document. Tests pass
            an in-memory loader here.

    Returns:
        A configured, not yet running, FastMCP server.
    """
    server = FastMCP(config.server_name)
    register_tools(server, config, loader)
    register_resources(server, config, loader)
    return server


def _acquirer(config: ServerConfig, loader: SpecLoader) -> Callable[[], SpecDocument]:
    def acquire() -> SpecDocument:
        logger.debug("Acquiring spec from %s", config.spec_source)
        try:
            return loader(config)
        except Exception:
            logger.exception("Failed to acquire spec from %s", config.spec_source)
            raise

    return acquire


def register_tools(server: FastMCP, config: ServerConfig, loader: SpecLoader) -> None:
    """Register the query tools on *server*."""
    acquire = _acquirer(config, loader)

    @server.tool()
    def get_endpoint_details(
        method: Annotated[
            str, Field(description="HTTP method (GET, POST, PUT, PATCH, DELETE, OPTIONS, HEAD, TRACE)")
        ],
        path: Annotated[
            str, Field(description="Literal endpoint path as declared, e.g. /users/{id}")
        ],
    ) -> str:
        """Get detailed information about a specific API endpoint including request/response schemas."""
        logger.debug("get_endpoint_details method=%s path=%s", method, path)
        return render_endpoint_details(acquire(), method, path)

    @server.tool()
    def search_endpoints(
        query: Annotated[
            Optional[str], Field(description="Text to find in path, summary or description")
        ] = None,
        tag: Annotated[Optional[str], Field(description="Exact tag to filter by")] = None,
        method: Annotated[Optional[str], Field(description="HTTP method to filter by")] = None,
    ) -> str:
        """Search for API endpoints by text, tag, or HTTP method. No filters lists every endpoint."""
        filters = SearchFilters(query=query, tag=tag, method=method)
        logger.debug("search_endpoints %s", filters.model_dump(exclude_none=True))
        return render_endpoint_list(search(index_endpoints(acquire()), filters))

    @server.tool()
    def get_schema_details(
        schemaName: Annotated[  # noqa: N803
            str, Field(description="Name of the schema under components.schemas, e.g. User")
        ],
    ) -> str:
        """Get details about a specific schema/model definition."""
        logger.debug("get_schema_details schemaName=%s", schemaName)
        return render_schema_details(acquire(), schemaName)


def register_resources(server: FastMCP, config: ServerConfig, loader: SpecLoader) -> None:
    """Register the read-only documentation resources on *server*."""
    acquire = _acquirer(config, loader)
    scheme = config.uri_scheme

    @server.resource(
        f"{scheme}://getting-started",
        name="Getting Started Guide",
        description="How to use this MCP server - start here! API stats, tools and examples",
        mime_type="text/markdown",
    )
    def getting_started() -> str:
        return render_getting_started(
            acquire(), uri_scheme=scheme, fetched_at=datetime.now(timezone.utc)
        )

    @server.resource(
        f"{scheme}://endpoints-list",
        name="API Endpoints List",
        description="Formatted list of all API endpoints organized by tags",
        mime_type="text/markdown",
    )
    def endpoints_list() -> str:
        return render_endpoint_list(index_endpoints(acquire()))

    @server.resource(
        f"{scheme}://tags-list",
        name="API Tags",
        description="List of all API tags for navigation",
        mime_type="text/plain",
    )
    def tags_list() -> str:
        return render_tag_list(extract_tags(acquire()))

    @server.resource(
        f"{scheme}://full-spec",
        name="Full OpenAPI Specification",
        description="Complete OpenAPI specification document",
        mime_type="application/json",
    )
    def full_spec() -> str:
        return render_full_spec(acquire())
