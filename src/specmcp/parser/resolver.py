"""Resolve ``#/components/schemas`` references and look up operations.

Only the exact pointer shape ``#/components/schemas/<Name>`` is supported.
Any other shape -- a different root, another component kind, an external
file, a pointer with missing or extra segments -- is reported as *not found*
by returning ``None``. Callers render a miss as text instead of failing,
because an agent must be able to continue after asking for something the
document does not contain.

Resolution is a single step: the node stored under ``<Name>`` is returned
as-is, including any nested ``$ref`` members. Callers that want more must
resolve again themselves; the renderer never does so beyond one level,
which keeps self-referencing components safe without cycle detection.

Public functions:

* :func:`parse_schema_ref` -- extract the schema name from a pointer.
* :func:`resolve_schema_ref` -- pointer to schema node.
* :func:`get_schema` -- schema name to schema node.
* :func:`find_operation` -- method + literal path to operation.
"""

from __future__ import annotations

from typing import Optional

from specmcp.models import HTTPMethod, Operation, PathItem, SchemaOrRef, SpecDocument

_SCHEMA_POINTER_PREFIX = ("#", "components", "schemas")


def parse_schema_ref(ref: str) -> Optional[str]:
    """Return the schema name addressed by *ref*, or ``None`` for any other shape.

    Example::

        parse_schema_ref("#/components/schemas/Pet")      # "Pet"
        parse_schema_ref("#/components/responses/Error")  # None
        parse_schema_ref("other.yaml#/Pet")               # None
    """
    parts = ref.split("/")
    if len(parts) != 4 or tuple(parts[:3]) != _SCHEMA_POINTER_PREFIX or not parts[3]:
        return None
    return parts[3].replace("~1", "/").replace("~0", "~")


def resolve_schema_ref(spec: SpecDocument, ref: str) -> Optional[SchemaOrRef]:
    """Resolve a schema pointer against *spec*, one level deep.

    Args:
        spec: The parsed document.
        ref: A ``$ref`` string, expected to look like
            ``#/components/schemas/<Name>``.

    Returns:
        The node stored under that name -- usually a
        :class:`~specmcp.models.Schema`, or a
        :class:`~specmcp.models.Reference` when the component is itself an
        alias, or a bare ``True``/``False`` for a boolean schema -- or
        ``None`` when the pointer is unsupported or the name is
        not declared.
    """
    name = parse_schema_ref(ref)
    if name is None:
        return None
    return get_schema(spec, name)


def get_schema(spec: SpecDocument, name: str) -> Optional[SchemaOrRef]:
    """Return ``components.schemas[name]`` or ``None`` when it is not declared."""
    if spec.components is None:
        return None
    return spec.components.schemas.get(name)


def find_path_item(spec: SpecDocument, path: str) -> Optional[PathItem]:
    """Return the path item for the literal *path* (no template matching)."""
    return spec.paths.get(path)


def find_operation(spec: SpecDocument, method: str, path: str) -> Optional[Operation]:
    """Find the operation for *method* on *path*.

    The path must match a key of ``paths`` exactly, so ``/users/{id}`` has
    to be queried literally. The method is matched case-insensitively;
    anything that is not one of the eight OpenAPI methods is a miss.
    """
    path_item = find_path_item(spec, path)
    if path_item is None:
        return None
    try:
        http_method = HTTPMethod(method.strip().lower())
    except ValueError:
        return None
    return getattr(path_item, http_method.value)
