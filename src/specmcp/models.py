"""Canonical Pydantic models shared across all specmcp modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Spec model** -- the typed shape of an OpenAPI 3.x document:
    :class:`SpecDocument`, :class:`Info`, :class:`Server`,
    :class:`Components`, :class:`SecurityScheme`, :class:`PathItem`,
    :class:`Operation`, :class:`Parameter`, :class:`RequestBody`,
    :class:`MediaType`, :class:`Response`, :class:`Schema` and
    :class:`Reference`.

**Derived models** -- produced by the indexer and query engine:
    :class:`HTTPMethod`, :class:`EndpointRecord` and :class:`SearchFilters`.

**Configuration models** -- :class:`ServerConfig`.

Spec nodes accept unknown keys (``extra="allow"``) so vendor extensions and
keywords the engine does not interpret (``format``, ``example``,
``nullable`` ...) survive untouched. Every node also remembers the key order
of the mapping it was built from and serialises back in that order, so a
rendered schema reads exactly like the source document.

Anything that may be written as ``{"$ref": ...}`` is typed as a tagged
union (:data:`SchemaOrRef`, :data:`ParameterOrRef`, :data:`ResponseOrRef`,
:data:`RequestBodyOrRef`) discriminated on the presence of ``$ref``, so a
reference can never be mistaken for an inline node.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    PrivateAttr,
    SerializerFunctionWrapHandler,
    Tag,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_serializer,
    model_validator,
)


# --- Spec model base ---


class SpecNode(BaseModel):
    """Base class for every node of an OpenAPI document.

    Unknown keys are preserved in ``model_extra``. The source key order is
    recorded during validation and restored by :meth:`to_dict`.
    """

    # YAML reads unquoted scalars such as `version: 1.0` as numbers.
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    _source_keys: tuple[str, ...] = PrivateAttr(default=())

    @model_validator(mode="wrap")
    @classmethod
    def _remember_key_order(
        cls, data: Any, handler: ValidatorFunctionWrapHandler
    ) -> Any:
        node = handler(data)
        if isinstance(data, dict):
            node._source_keys = tuple(data)
        return node

    @model_serializer(mode="wrap")
    def _serialize_in_source_order(self, handler: SerializerFunctionWrapHandler) -> Any:
        data = handler(self)
        if not isinstance(data, dict) or not self._source_keys:
            return data
        ordered = {key: data[key] for key in self._source_keys if key in data}
        for key, value in data.items():
            if key not in ordered:
                ordered[key] = value
        return ordered

    def to_dict(self) -> dict[str, Any]:
        """Return the node as plain JSON-compatible data, keyed as in the source."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


def _ref_or_node(value: Any) -> str:
    """Discriminator for ``X | Reference`` unions: ``$ref`` wins.

    Shared by every ``...OrRef`` alias. Only :data:`SchemaOrRef` carries a
    ``"bool"`` member, so a boolean anywhere else fails validation.
    """
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, dict):
        return "ref" if "$ref" in value else "node"
    return "ref" if isinstance(value, Reference) else "node"


class Reference(SpecNode):
    """A ``{"$ref": "#/components/..."}`` pointer.

    OpenAPI 3.1 allows ``summary`` and ``description`` next to ``$ref``;
    they are kept but never change what the pointer targets.
    """

    ref: str = Field(alias="$ref")
    summary: Optional[str] = None
    description: Optional[str] = None


# --- Schemas ---


class Schema(SpecNode):
    """An inline JSON Schema node.

    Only the keywords the engine reads are typed; everything else stays in
    ``model_extra``. Nested members are :data:`SchemaOrRef` and are never
    resolved at construction time.
    """

    type: Optional[Union[str, list[str]]] = None
    title: Optional[str] = None
    description: Optional[str] = None
    properties: Optional[dict[str, SchemaOrRef]] = None
    required: Optional[list[str]] = None
    items: Optional[SchemaOrRef] = None
    enum: Optional[list[Any]] = None
    all_of: Optional[list[SchemaOrRef]] = Field(default=None, alias="allOf")
    any_of: Optional[list[SchemaOrRef]] = Field(default=None, alias="anyOf")
    one_of: Optional[list[SchemaOrRef]] = Field(default=None, alias="oneOf")


SchemaOrRef = Annotated[
    Union[
        Annotated[Reference, Tag("ref")],
        Annotated[Schema, Tag("node")],
        Annotated[bool, Tag("bool")],
    ],
    Discriminator(_ref_or_node),
]
"""A schema member: a ``$ref`` pointer, an inline schema, or a JSON Schema
boolean (``true`` accepts anything, ``false`` nothing; OpenAPI 3.1)."""


# --- Operations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised on an OpenAPI *Path Item Object*.

    Declaration order is the order operations are indexed within a path.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class Parameter(SpecNode):
    """An OpenAPI *Parameter Object*."""

    name: str
    location: ParameterLocation = Field(alias="in")
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[SchemaOrRef] = Field(default=None, alias="schema")


ParameterOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[Parameter, Tag("node")]],
    Discriminator(_ref_or_node),
]


class MediaType(SpecNode):
    """One entry of a ``content`` map, keyed by content type."""

    schema_: Optional[SchemaOrRef] = Field(default=None, alias="schema")


class RequestBody(SpecNode):
    """An OpenAPI *Request Body Object*."""

    description: Optional[str] = None
    required: bool = False
    content: dict[str, MediaType] = Field(default_factory=dict)


RequestBodyOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[RequestBody, Tag("node")]],
    Discriminator(_ref_or_node),
]


class Response(SpecNode):
    """An OpenAPI *Response Object* for a single status code."""

    description: Optional[str] = None
    content: Optional[dict[str, MediaType]] = None


ResponseOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[Response, Tag("node")]],
    Discriminator(_ref_or_node),
]

SecurityRequirement = dict[str, list[str]]


class Operation(SpecNode):
    """An OpenAPI *Operation Object* -- one HTTP method handler on a path.

    ``security`` is ``None`` when the field is absent and ``[]`` when it is
    present but empty; the two mean different things (see
    :func:`~specmcp.parser.indexer.effective_security`).
    """

    operation_id: Optional[str] = Field(default=None, alias="operationId")
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    parameters: list[ParameterOrRef] = Field(default_factory=list)
    request_body: Optional[RequestBodyOrRef] = Field(default=None, alias="requestBody")
    responses: dict[str, ResponseOrRef] = Field(default_factory=dict)
    security: Optional[list[SecurityRequirement]] = None
    deprecated: bool = False

    @field_validator("responses", mode="before")
    @classmethod
    def _status_codes_as_strings(cls, value: Any) -> Any:
        # YAML reads unquoted status codes (200:) as integers.
        if isinstance(value, dict):
            return {str(code): response for code, response in value.items()}
        return value


class PathItem(SpecNode):
    """An OpenAPI *Path Item Object*: at most one operation per method."""

    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: list[ParameterOrRef] = Field(default_factory=list)
    get: Optional[Operation] = None
    post: Optional[Operation] = None
    put: Optional[Operation] = None
    patch: Optional[Operation] = None
    delete: Optional[Operation] = None
    options: Optional[Operation] = None
    head: Optional[Operation] = None
    trace: Optional[Operation] = None


# --- Document ---


class Info(SpecNode):
    """API metadata from the document's *Info Object*."""

    title: str = "Untitled API"
    version: str = "0.0.0"
    description: Optional[str] = None


class Server(SpecNode):
    """A ``servers`` entry. The first one is reported as the API base URL."""

    url: str = "/"
    description: Optional[str] = None


class SecurityScheme(SpecNode):
    """An OpenAPI *Security Scheme Object* (detection only, never executed)."""

    type: str
    description: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = Field(default=None, alias="in")
    scheme: Optional[str] = None
    bearer_format: Optional[str] = Field(default=None, alias="bearerFormat")


class Components(SpecNode):
    """The ``components`` section. Only schemas and security schemes are typed."""

    schemas: dict[str, SchemaOrRef] = Field(default_factory=dict)
    security_schemes: dict[str, SecurityScheme] = Field(
        default_factory=dict, alias="securitySchemes"
    )


class SpecDocument(SpecNode):
    """Root of a parsed OpenAPI 3.x document.

    Built once per acquisition with :meth:`from_raw` and never mutated
    afterwards. The raw mapping it came from is kept in :attr:`raw` so the
    full document can be re-serialised verbatim.

    Example::

        doc = SpecDocument.from_raw(load_spec("openapi.json"))
        doc.paths["/login"].post.tags
    """

    openapi: str = "3.0.0"
    info: Info = Field(default_factory=Info)
    servers: list[Server] = Field(default_factory=list)
    paths: dict[str, PathItem] = Field(default_factory=dict)
    components: Optional[Components] = None
    security: Optional[list[SecurityRequirement]] = None

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> SpecDocument:
        """Validate *raw* into a :class:`SpecDocument` and keep the source mapping."""
        document = cls.model_validate(raw)
        document._raw = raw
        return document

    @property
    def raw(self) -> dict[str, Any]:
        """The source mapping this document was built from."""
        return self._raw


# --- Derived models ---


class EndpointRecord(BaseModel):
    """Flattened view of one operation, used for listing and searching.

    Created fresh on every index build and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    method: str = Field(description="Uppercased HTTP method")
    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    operation_id: Optional[str] = None
    requires_auth: bool = False


class SearchFilters(BaseModel):
    """Optional, conjunctive filters applied by :func:`~specmcp.query.search`.

    Empty strings count as "not supplied".
    """

    query: Optional[str] = Field(
        default=None, description="Case-insensitive substring of path, summary or description"
    )
    tag: Optional[str] = Field(default=None, description="Exact, case-sensitive tag")
    method: Optional[str] = Field(default=None, description="Case-insensitive HTTP method")


# --- Configuration ---


class ServerConfig(BaseModel):
    """Where the OpenAPI document comes from and how the server presents itself.

    Resolved by :func:`~specmcp.config.resolve_config` from CLI flags,
    environment variables, the project file and these defaults.
    """

    mode: Literal["http", "file"] = Field(
        default="http", description="Spec acquisition mode: http or file"
    )
    base_url: str = Field(
        default="http://localhost:8000", description="Base URL of the API serving the spec"
    )
    spec_path: str = Field(
        default="/docs/api.json", description="Path of the spec relative to base_url"
    )
    spec_file: Optional[str] = Field(
        default=None, description="Local spec file, required in file mode"
    )
    timeout: float = Field(default=30.0, description="HTTP fetch timeout in seconds")
    server_name: str = Field(default="specmcp", description="Name announced to MCP clients")
    uri_scheme: str = Field(default="openapi", description="Scheme of resource URIs")

    @property
    def spec_url(self) -> str:
        """Full URL of the spec in http mode."""
        return f"{self.base_url.rstrip('/')}/{self.spec_path.lstrip('/')}"

    @property
    def spec_source(self) -> str:
        """The URL or file path the spec is read from, for diagnostics."""
        if self.mode == "file":
            return self.spec_file or "<unset>"
        return self.spec_url


Schema.model_rebuild()
