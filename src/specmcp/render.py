"""Render endpoint records, operations and schemas as Markdown text.

Every function here is pure: it reads the document or records it is given
and returns a string. Nothing is printed, cached or shared between calls.

Views:

* :func:`render_endpoint_list` -- records grouped by tag.
* :func:`render_endpoint_details` -- one operation in full.
* :func:`render_schema_details` -- one component schema as JSON.
* :func:`render_tag_list` -- newline-separated tags.
* :func:`render_full_spec` -- the raw document, pretty-printed.
* :func:`render_getting_started` -- statistics and usage guide, rendered
  from the ``getting_started.md.j2`` Jinja2 template.

Lookup misses are returned as short "not found" sentences, never raised.

Schemas are printed as declared. When a request or response media type
points straight at ``#/components/schemas/<Name>``, the target is printed
once beneath the pointer; references nested inside it are left as literal
``$ref`` text.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from specmcp.models import (
    EndpointRecord,
    MediaType,
    Reference,
    SecurityRequirement,
    SpecDocument,
    SpecNode,
)
from specmcp.parser.indexer import (
    effective_security,
    extract_tags,
    index_endpoints,
    merge_parameters,
    security_scheme_names,
)
from specmcp.parser.resolver import (
    find_operation,
    get_schema,
    parse_schema_ref,
    resolve_schema_ref,
)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``specmcp/templates/``)."""

UNTAGGED = "Untagged"
"""Presentation-only group for operations that declare no tags."""

LOCKED = "\U0001f512"
UNLOCKED = "\U0001f513"

TAG_SAMPLE_SIZE = 10


def _to_json(value: Any) -> str:
    if isinstance(value, SpecNode):
        value = value.to_dict()
    return json.dumps(value, indent=2, ensure_ascii=False)


def _json_block(value: Any) -> list[str]:
    return ["```json", _to_json(value), "```", ""]


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


# ------------------------------------------------------------------ #
# Endpoint list
# ------------------------------------------------------------------ #


def render_endpoint_list(records: list[EndpointRecord]) -> str:
    """Render *records* grouped under one ``##`` heading per tag.

    Tags are listed in sorted order and records keep their input order
    within a tag. A record with several tags appears under each of them;
    records without tags appear once, in a trailing ``Untagged`` section.
    Each line carries a lock icon when the endpoint requires auth.

    Args:
        records: Endpoint records, usually the output of
            :func:`~specmcp.query.search`.

    Returns:
        The Markdown text.
    """
    lines = ["# API Endpoints", ""]
    if not records:
        lines.extend(["No endpoints found.", ""])
        return "\n".join(lines)

    grouped: dict[str, list[EndpointRecord]] = {}
    untagged: list[EndpointRecord] = []
    for record in records:
        if not record.tags:
            untagged.append(record)
            continue
        for tag in dict.fromkeys(record.tags):
            grouped.setdefault(tag, []).append(record)

    sections = [(tag, grouped[tag]) for tag in sorted(grouped)]
    if untagged:
        if UNTAGGED in grouped:
            grouped[UNTAGGED].extend(untagged)
        else:
            sections.append((UNTAGGED, untagged))

    for tag, tag_records in sections:
        lines.extend([f"## {tag}", ""])
        for record in tag_records:
            icon = LOCKED if record.requires_auth else UNLOCKED
            line = f"- {icon} **{record.method}** `{record.path}`"
            if record.summary:
                line += f" - {record.summary}"
            lines.append(line)
        lines.append("")

    return "\n".join(lines)


# ------------------------------------------------------------------ #
# Endpoint detail
# ------------------------------------------------------------------ #


def _describe_schemes(spec: SpecDocument, requirements: list[SecurityRequirement]) -> str:
    declared = spec.components.security_schemes if spec.components else {}
    described = []
    for name in security_scheme_names(requirements):
        scheme = declared.get(name)
        if scheme is None:
            described.append(name)
            continue
        detail = scheme.type
        if scheme.scheme:
            detail += f", {scheme.scheme}"
        elif scheme.location and scheme.name:
            detail += f", {scheme.location} `{scheme.name}`"
        described.append(f"{name} ({detail})")
    return ", ".join(described)


def _media_type_lines(spec: SpecDocument, content: dict[str, MediaType]) -> list[str]:
    lines: list[str] = []
    for content_type, media in content.items():
        lines.extend([f"**Content-Type:** {content_type}", ""])
        if media.schema_ is None:
            continue
        lines.extend(_json_block(media.schema_))
        if isinstance(media.schema_, Reference):
            resolved = resolve_schema_ref(spec, media.schema_.ref)
            if resolved is not None:
                name = parse_schema_ref(media.schema_.ref)
                lines.extend([f"**Resolved schema `{name}`:**", ""])
                lines.extend(_json_block(resolved))
    return lines


def render_endpoint_details(spec: SpecDocument, method: str, path: str) -> str:
    """Render everything the document says about *method* on *path*.

    Sections appear in a fixed order: summary, description, tags, operation
    ID, authentication, parameters, request body, responses. Path-level
    parameters are merged in; operation-level ones win on ``(name, in)``.

    Args:
        spec: The parsed document.
        method: HTTP method, any case.
        path: Literal path key, e.g. ``/users/{id}``.

    Returns:
        The Markdown text, or ``"Endpoint not found: METHOD path"`` when the
        document has no such operation.
    """
    display_method = method.strip().upper()
    operation = find_operation(spec, method, path)
    if operation is None:
        return f"Endpoint not found: {display_method} {path}"

    lines = [f"# {display_method} {path}", ""]

    if operation.summary:
        lines.extend([f"**Summary:** {operation.summary}", ""])
    if operation.description:
        lines.extend([f"**Description:** {operation.description}", ""])
    if operation.tags:
        lines.extend([f"**Tags:** {', '.join(operation.tags)}", ""])
    if operation.operation_id:
        lines.extend([f"**Operation ID:** {operation.operation_id}", ""])
    if operation.deprecated:
        lines.extend(["**Deprecated:** Yes", ""])

    requirements = effective_security(operation, spec)
    lines.extend([f"**Authentication Required:** {_yes_no(bool(requirements))}", ""])
    schemes = _describe_schemes(spec, requirements)
    if schemes:
        lines.extend([f"**Security Schemes:** {schemes}", ""])

    parameters = merge_parameters(spec.paths[path], operation)
    if parameters:
        lines.extend(["## Parameters", ""])
        for param in parameters:
            if isinstance(param, Reference):
                lines.append(f"- `{param.ref}` (reference)")
                continue
            required = " *required*" if param.required else ""
            lines.append(f"- **{param.name}** ({param.location.value}){required}")
            if param.description:
                lines.append(f"  - {param.description}")
        lines.append("")

    body = operation.request_body
    if body is not None:
        lines.extend(["## Request Body", ""])
        if isinstance(body, Reference):
            lines.extend([f"Reference: {body.ref}", ""])
        else:
            lines.extend([f"**Required:** {_yes_no(body.required)}", ""])
            if body.description:
                lines.extend([body.description, ""])
            lines.extend(_media_type_lines(spec, body.content))

    if operation.responses:
        lines.extend(["## Responses", ""])
        for status_code, response in operation.responses.items():
            lines.extend([f"### {status_code}", ""])
            if isinstance(response, Reference):
                lines.extend([f"Reference: {response.ref}", ""])
                continue
            if response.description:
                lines.extend([response.description, ""])
            if response.content:
                lines.extend(_media_type_lines(spec, response.content))

    return "\n".join(lines)


# ------------------------------------------------------------------ #
# Schemas, tags, raw document
# ------------------------------------------------------------------ #


def render_schema_details(spec: SpecDocument, name: str) -> str:
    """Render ``components.schemas[name]`` as a heading plus pretty JSON.

    Keys keep the order of the source document. Nested ``$ref`` members
    are printed as-is.

    Returns:
        The Markdown text, or ``"Schema not found: <name>"``.
    """
    schema = get_schema(spec, name)
    if schema is None:
        return f"Schema not found: {name}"
    return f"# Schema: {name}\n\n```json\n{_to_json(schema)}\n```"


def render_tag_list(tags: list[str]) -> str:
    """Render *tags* one per line."""
    return "\n".join(tags)


def render_full_spec(spec: SpecDocument) -> str:
    """Re-serialise the raw document as indented JSON."""
    return json.dumps(spec.raw, indent=2, ensure_ascii=False, default=str)


# ------------------------------------------------------------------ #
# Getting started
# ------------------------------------------------------------------ #


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for the Markdown templates."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("md.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def build_guide_context(
    spec: SpecDocument,
    uri_scheme: str = "openapi",
    fetched_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """Assemble the counts and samples shown by the getting-started guide.

    Returns:
        A dict with ``title``, ``stats``, ``tag_sample``, ``remaining_tags``,
        ``security_schemes``, ``base_url``, ``uri_scheme`` and
        ``fetched_at`` keys.
    """
    records = index_endpoints(spec)
    tags = extract_tags(spec)
    components = spec.components
    protected = sum(1 for record in records if record.requires_auth)

    return {
        "title": spec.info.title,
        "stats": {
            "total": len(records),
            "public": len(records) - protected,
            "protected": protected,
            "tags": len(tags),
            "schemas": len(components.schemas) if components else 0,
            "version": spec.info.version,
            "openapi": spec.openapi,
        },
        "tag_sample": tags[:TAG_SAMPLE_SIZE],
        "remaining_tags": max(len(tags) - TAG_SAMPLE_SIZE, 0),
        "security_schemes": components.security_schemes if components else {},
        "base_url": spec.servers[0].url if spec.servers else None,
        "uri_scheme": uri_scheme,
        "fetched_at": fetched_at.isoformat() if fetched_at else None,
        "locked": LOCKED,
        "unlocked": UNLOCKED,
    }


def render_getting_started(
    spec: SpecDocument,
    uri_scheme: str = "openapi",
    fetched_at: Optional[datetime] = None,
) -> str:
    """Render the getting-started guide for *spec*.

    Args:
        spec: The parsed document.
        uri_scheme: Scheme of the resource URIs advertised in the guide.
        fetched_at: When the document was acquired; omitted when ``None``.

    Returns:
        The Markdown text.
    """
    template = _create_jinja_env().get_template("getting_started.md.j2")
    return template.render(**build_guide_context(spec, uri_scheme, fetched_at))
