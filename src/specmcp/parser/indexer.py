"""Flatten an OpenAPI document into endpoint records and a tag index.

:func:`index_endpoints` walks ``paths`` in document order and, within each
path, the eight OpenAPI methods in :class:`~specmcp.models.HTTPMethod`
declaration order, emitting one :class:`~specmcp.models.EndpointRecord` per
operation found. :func:`extract_tags` derives the sorted set of distinct
tags.

Security follows the OpenAPI override rule implemented by
:func:`effective_security`: an operation-level ``security`` array replaces
the global one, and an explicit empty array ``[]`` means "no auth
required". Only when the operation has no ``security`` field does the
document-level requirement apply.

Both indices are pure functions of the document and are rebuilt on every
call; nothing is cached.
"""

from __future__ import annotations

from typing import Iterator

from specmcp.models import (
    EndpointRecord,
    HTTPMethod,
    Operation,
    ParameterOrRef,
    PathItem,
    Reference,
    SecurityRequirement,
    SpecDocument,
)


def iter_operations(spec: SpecDocument) -> Iterator[tuple[str, HTTPMethod, Operation]]:
    """Yield ``(path, method, operation)`` for every operation in the document."""
    for path, path_item in spec.paths.items():
        for method in HTTPMethod:
            operation = getattr(path_item, method.value)
            if operation is not None:
                yield path, method, operation


def effective_security(
    operation: Operation, spec: SpecDocument
) -> list[SecurityRequirement]:
    """Return the security requirements that actually govern *operation*."""
    if operation.security is not None:
        return operation.security
    return spec.security or []


def requires_auth(operation: Operation, spec: SpecDocument) -> bool:
    """``True`` iff the effective security list of *operation* is non-empty."""
    return len(effective_security(operation, spec)) > 0


def security_scheme_names(requirements: list[SecurityRequirement]) -> list[str]:
    """Return the distinct scheme names used by *requirements*, in first-seen order.

    An empty requirement object (``{}``, "auth optional") contributes no
    name.
    """
    names: list[str] = []
    for requirement in requirements:
        for name in requirement:
            if name not in names:
                names.append(name)
    return names


def index_endpoints(spec: SpecDocument) -> list[EndpointRecord]:
    """Build the ordered endpoint index for *spec*.

    Args:
        spec: The parsed document.

    Returns:
        One :class:`~specmcp.models.EndpointRecord` per operation, in
        document path order and method-declaration order within a path.
        The same document always yields the same list.
    """
    return [
        EndpointRecord(
            method=method.value.upper(),
            path=path,
            summary=operation.summary,
            description=operation.description,
            tags=list(operation.tags or []),
            operation_id=operation.operation_id,
            requires_auth=requires_auth(operation, spec),
        )
        for path, method, operation in iter_operations(spec)
    ]


def extract_tags(spec: SpecDocument) -> list[str]:
    """Return every tag used by any operation, sorted, without duplicates.

    Operations without tags contribute nothing; the synthetic ``Untagged``
    group used for presentation is never part of this set.
    """
    tags: set[str] = set()
    for _, _, operation in iter_operations(spec):
        tags.update(operation.tags or [])
    return sorted(tags)


def _parameter_key(param: ParameterOrRef) -> tuple[str, str]:
    if isinstance(param, Reference):
        return ("$ref", param.ref)
    return (param.name, param.location.value)


def merge_parameters(path_item: PathItem, operation: Operation) -> list[ParameterOrRef]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the
    same ``name`` and ``in`` values. References are compared by pointer.

    Args:
        path_item: The path item that owns *operation*.
        operation: The operation being described.

    Returns:
        Path-level parameters that are not overridden, followed by every
        operation-level parameter, in declaration order.
    """
    overridden = {_parameter_key(param) for param in operation.parameters}
    merged: list[ParameterOrRef] = [
        param for param in path_item.parameters if _parameter_key(param) not in overridden
    ]
    merged.extend(operation.parameters)
    return merged

