"""Filter the endpoint index by free text, tag and HTTP method.

Filters are conjunctive and each one is optional. A missing or empty filter
value is ignored, so :func:`search` with no filters returns the index
unchanged. Matching never raises: a record lacking the field a filter looks
at simply does not match that filter.

Matching policies differ per field on purpose:

* ``query`` -- case-insensitive substring of path, summary or description.
* ``tag`` -- exact, case-sensitive membership in the record's tags.
* ``method`` -- case-insensitive equality with the record's method.
"""

from __future__ import annotations

from typing import Optional

from specmcp.models import EndpointRecord, SearchFilters


def matches_query(record: EndpointRecord, query: str) -> bool:
    """``True`` if *query* occurs in the path, summary or description of *record*."""
    needle = query.lower()
    return any(
        needle in text.lower()
        for text in (record.path, record.summary, record.description)
        if text
    )


def matches_tag(record: EndpointRecord, tag: str) -> bool:
    return tag in record.tags


def matches_method(record: EndpointRecord, method: str) -> bool:
    return record.method.upper() == method.strip().upper()


def search(
    records: list[EndpointRecord],
    filters: Optional[SearchFilters] = None,
) -> list[EndpointRecord]:
    """Return the records satisfying every supplied filter.

    Args:
        records: The endpoint index, as built by
            :func:`~specmcp.parser.indexer.index_endpoints`.
        filters: Filters to apply. ``None`` or an instance with no values
            returns *records* as a new list in the same order.

    Returns:
        The matching records, in their original relative order.

    Example::

        search(index_endpoints(spec), SearchFilters(query="log", method="post"))
    """
    if filters is None:
        return list(records)

    result = list(records)
    if filters.query:
        result = [r for r in result if matches_query(r, filters.query)]
    if filters.tag:
        result = [r for r in result if matches_tag(r, filters.tag)]
    if filters.method and filters.method.strip():
        result = [r for r in result if matches_method(r, filters.method)]
    return result
