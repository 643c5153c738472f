"""OpenAPI introspection engine -- load, index, resolve.

This sub-package turns a raw OpenAPI 3.x document into the structures the
query engine and renderer work on.

Typical usage::

    from specmcp.parser import fetch_spec, index_endpoints, extract_tags

    spec = fetch_spec(config)
    records = index_endpoints(spec)
    tags = extract_tags(spec)

Sub-modules:

* :mod:`~specmcp.parser.loader` -- I/O layer (URL, file, stdin), format
  detection, OpenAPI version gate.
* :mod:`~specmcp.parser.resolver` -- ``#/components/schemas`` pointer
  resolution and operation lookup.
* :mod:`~specmcp.parser.indexer` -- endpoint index, tag index and the
  effective-security rule.
"""

from specmcp.parser.indexer import extract_tags, index_endpoints
from specmcp.parser.loader import fetch_spec, load_spec, parse_document
from specmcp.parser.resolver import find_operation, get_schema, resolve_schema_ref

__all__ = [
    "extract_tags",
    "fetch_spec",
    "find_operation",
    "get_schema",
    "index_endpoints",
    "load_spec",
    "parse_document",
    "resolve_schema_ref",
]
