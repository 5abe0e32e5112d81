"""Canonical Pydantic models shared across all openapi-sync modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Settings** -- :class:`CacheSettings`, resolved by
:func:`~openapi_sync.config.resolve_settings`.

**Unified spec models** -- produced by the normalizer for both Swagger 2.0 and
OpenAPI 3.x documents:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`SpecDialect`,
    the :data:`SchemaType` tagged union, :class:`Schema`, :class:`Parameter`,
    :class:`RequestBody`, :class:`Response`, :class:`Endpoint`,
    :class:`SpecMetadata` and :class:`UnifiedSpec`.

**Cache record models** -- the on-disk JSON record:
    :class:`HttpCacheInfo`, :class:`LocalCacheInfo`, :class:`CachedMeta`,
    :class:`CacheRecord` and the :class:`CacheStatus` summary.

**Graph models** -- :class:`Direction`, :class:`GraphStats` and
:class:`ImpactResult`.

Unified spec models are frozen: a spec is built once per fetch or cache hit
and never mutated afterwards.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Bump whenever the shape of UnifiedSpec (or anything it embeds) changes.
# Records written with a different value are discarded on load.
CACHE_SCHEMA_VERSION = 1

CACHE_FORMAT_VERSION = "1.0.0"

DEFAULT_TTL_SECONDS = 86400


# --- Settings ---


class CacheSettings(BaseModel):
    """Cache and transport settings used by :class:`~openapi_sync.cache.CacheManager`.

    See Also:
        :func:`~openapi_sync.config.resolve_settings` for the precedence
        chain (explicit overrides, environment variables, defaults).
    """

    enabled: bool = Field(default=True, description="Enable the spec cache")
    ttl_seconds: int = Field(
        default=DEFAULT_TTL_SECONDS, ge=0, description="Cache TTL in seconds"
    )
    cache_filename: str = Field(
        default=".openapi-sync.cache.json",
        description="Name of the cache record file inside the project directory",
    )
    fetch_timeout: float = Field(
        default=30.0, gt=0, description="Timeout for a full GET of the spec"
    )
    revalidate_timeout: float = Field(
        default=10.0, gt=0, description="Timeout for the HEAD revalidation request"
    )
    max_connections: int = Field(default=10, ge=1)
    max_keepalive_connections: int = Field(default=10, ge=0)
    keepalive_expiry: float = Field(
        default=90.0, ge=0, description="Idle pooled connections are closed after this many seconds"
    )
    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Worker threads for parallel extraction (None = executor default)",
    )


# --- Unified spec models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised in path-item objects of both dialects."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per the ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class SpecDialect(str, enum.Enum):
    """The document dialect detected from the top-level version field."""

    SWAGGER_2 = "swagger2"
    OPENAPI_30 = "openapi30"
    OPENAPI_31 = "openapi31"

    @property
    def is_legacy(self) -> bool:
        return self is SpecDialect.SWAGGER_2


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class RefType(_Frozen):
    kind: Literal["ref"] = "ref"
    target: str


class OneOfType(_Frozen):
    kind: Literal["one_of"] = "one_of"
    variants: list[SchemaType] = Field(default_factory=list)


class AnyOfType(_Frozen):
    kind: Literal["any_of"] = "any_of"
    variants: list[SchemaType] = Field(default_factory=list)


class AllOfType(_Frozen):
    kind: Literal["all_of"] = "all_of"
    variants: list[SchemaType] = Field(default_factory=list)


class StringType(_Frozen):
    kind: Literal["string"] = "string"
    format: Optional[str] = None
    enum_values: Optional[list[str]] = None


class NumberType(_Frozen):
    kind: Literal["number"] = "number"
    format: Optional[str] = None


class IntegerType(_Frozen):
    kind: Literal["integer"] = "integer"
    format: Optional[str] = None


class BooleanType(_Frozen):
    kind: Literal["boolean"] = "boolean"


class ArrayType(_Frozen):
    kind: Literal["array"] = "array"
    items: SchemaType


class ObjectType(_Frozen):
    kind: Literal["object"] = "object"
    properties: dict[str, SchemaType] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class UnknownType(_Frozen):
    kind: Literal["unknown"] = "unknown"


SchemaType = Annotated[
    Union[
        RefType,
        OneOfType,
        AnyOfType,
        AllOfType,
        StringType,
        NumberType,
        IntegerType,
        BooleanType,
        ArrayType,
        ObjectType,
        UnknownType,
    ],
    Field(discriminator="kind"),
]
"""Closed set of structural schema shapes, discriminated on ``kind``."""

for _model in (OneOfType, AnyOfType, AllOfType, ArrayType, ObjectType):
    _model.model_rebuild()


class Schema(_Frozen):
    """A named schema definition (``definitions`` or ``components/schemas``).

    ``refs`` lists every schema name referenced anywhere beneath the raw
    definition, deduplicated and sorted.  ``content_hash`` is computed over
    the raw definition, so unmodelled fields still affect it.
    """

    name: str
    schema_type: SchemaType = Field(default_factory=UnknownType)
    description: Optional[str] = None
    refs: list[str] = Field(default_factory=list)
    content_hash: str = ""


class Parameter(_Frozen):
    """A single non-body parameter of an operation."""

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_ref: Optional[str] = None
    schema_type: Optional[str] = Field(
        default=None, description="Inline primitive type name, if any"
    )


class RequestBody(_Frozen):
    """Request body of an operation.

    For Swagger 2.0 documents this is hoisted from the ``in: body``
    parameter; ``content_types`` then comes from ``consumes``.
    """

    required: bool = False
    description: Optional[str] = None
    content_types: list[str] = Field(default_factory=list)
    schema_ref: Optional[str] = None


class Response(_Frozen):
    """Response metadata for a single status code."""

    status_code: str
    description: Optional[str] = None
    content_types: list[str] = Field(default_factory=list)
    schema_ref: Optional[str] = None


class Endpoint(_Frozen):
    """A single operation (one path + HTTP method pair).

    ``schema_refs`` holds every schema name the raw operation references,
    at any depth (parameters, request body, responses, inline ``allOf``...).
    """

    path: str
    method: HTTPMethod
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: dict[str, Response] = Field(default_factory=dict)
    deprecated: bool = False
    content_hash: str = ""
    schema_refs: list[str] = Field(default_factory=list)

    @property
    def key(self) -> str:
        """Unique key of the endpoint, e.g. ``"GET /users/{id}"``."""
        return endpoint_key(self.method, self.path)


def endpoint_key(method: HTTPMethod, path: str) -> str:
    return f"{method.value.upper()} {path}"


class SpecMetadata(_Frozen):
    title: str = "Unknown API"
    version: str = "0.0.0"
    description: Optional[str] = None
    dialect: SpecDialect
    endpoint_count: int = 0
    schema_count: int = 0
    tag_count: int = 0


class UnifiedSpec(_Frozen):
    """Normalized representation of a Swagger 2.0 or OpenAPI 3.x document.

    Produced by :func:`~openapi_sync.parser.normalize` and consumed by the
    dependency graph and external collaborators.  ``content_hash`` is the
    structural digest of the entire raw document.

    See Also:
        :class:`Endpoint`: keyed by :attr:`Endpoint.key`.
        :class:`Schema`: keyed by :attr:`Schema.name`.
    """

    metadata: SpecMetadata
    endpoints: dict[str, Endpoint] = Field(default_factory=dict)
    schemas: dict[str, Schema] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    content_hash: str
    source: str


# --- Cache record models ---


class HttpCacheInfo(BaseModel):
    """Remote validators captured from the last full fetch."""

    etag: Optional[str] = None
    last_modified: Optional[str] = None


class LocalCacheInfo(BaseModel):
    """Local validator: file modification time as an RFC 3339 UTC timestamp."""

    mtime: Optional[str] = None


class CachedMeta(BaseModel):
    title: Optional[str] = None
    version: Optional[str] = None
    dialect: Optional[str] = None
    endpoint_count: int = 0
    schema_count: int = 0


class CacheRecord(BaseModel):
    """The persisted cache record (``.openapi-sync.cache.json``).

    The embedded ``parsed_spec`` allows a cache hit to return the model
    without re-parsing; its ``content_hash`` must equal the record's own
    ``content_hash`` for the embedded copy to be trusted.
    """

    version: str = CACHE_FORMAT_VERSION
    schema_version: int = CACHE_SCHEMA_VERSION
    last_fetch: str
    content_hash: str
    source: str
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    http_cache: HttpCacheInfo = Field(default_factory=HttpCacheInfo)
    local_cache: LocalCacheInfo = Field(default_factory=LocalCacheInfo)
    meta: CachedMeta = Field(default_factory=CachedMeta)
    parsed_spec: Optional[UnifiedSpec] = None


class CacheStatus(BaseModel):
    """Summary of the persisted cache record, as reported by ``CacheManager.status``."""

    exists: bool
    path: str
    source: Optional[str] = None
    source_matches: Optional[bool] = None
    last_fetch: Optional[str] = None
    age_seconds: Optional[float] = None
    ttl_seconds: Optional[int] = None
    expired: Optional[bool] = None
    has_parsed_spec: bool = False
    meta: Optional[CachedMeta] = None
    error: Optional[str] = None


# --- Graph models ---


class Direction(str, enum.Enum):
    """Direction of a dependency query.

    ``upstream`` follows outgoing edges (what the anchor depends on);
    ``downstream`` follows them in reverse (what depends on the anchor).
    """

    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    BOTH = "both"


class GraphStats(BaseModel):
    node_count: int = 0
    edge_count: int = 0
    orphan_count: int = 0


class ImpactResult(BaseModel):
    """Result of an impact query, split by node type."""

    anchor: str
    direction: Direction
    affected_schemas: list[str] = Field(default_factory=list)
    affected_endpoints: list[str] = Field(default_factory=list)
    stats: GraphStats = Field(default_factory=GraphStats)

    @property
    def total(self) -> int:
        return len(self.affected_schemas) + len(self.affected_endpoints)
