"""Normalize Swagger 2.0 and OpenAPI 3.x documents into a :class:`~openapi_sync.models.UnifiedSpec`.

The public entry point is :func:`normalize`, a pure function from document
text to model: no I/O, no shared state.  :func:`parse_source` is a thin
uncached convenience wrapper that fetches first.

Pipeline:

1. :func:`~openapi_sync.parser.loader.parse_content` decodes JSON or YAML.
2. :func:`detect_dialect` picks Swagger 2.0, OpenAPI 3.0 or OpenAPI 3.1.
3. ``info`` is read with defaults.
4. Operations are flattened to ``(path, method, operation)`` units and named
   schemas to ``(name, definition)`` units.  Each unit is extracted
   independently on a thread pool and the results are merged into
   key-indexed dicts, so completion order never matters.
5. Every unit's ``$ref`` targets and content hash come from a single walk of
   its raw sub-document (:func:`~openapi_sync.parser.hashing.extract_refs_and_hash`).

Dialect differences are confined to parameter, request-body and response
extraction: Swagger 2.0 hoists the ``in: body`` parameter into the request
body and takes media types from ``consumes`` / ``produces`` (falling back to
``application/json``); OpenAPI 3.x reads native ``content`` maps.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

import httpx

from openapi_sync.client import build_http_client
from openapi_sync.exceptions import (
    MissingFieldError,
    NestingTooDeepError,
    UnsupportedVersionError,
)
from openapi_sync.models import (
    Endpoint,
    HTTPMethod,
    Parameter,
    ParameterLocation,
    RequestBody,
    Response,
    Schema,
    SpecDialect,
    SpecMetadata,
    UnifiedSpec,
    endpoint_key,
)
from openapi_sync.parser.hashing import compute_hash, extract_refs_and_hash, strip_ref_prefix
from openapi_sync.parser.loader import fetch_source, parse_content
from openapi_sync.parser.resolver import primary_type, resolve_schema_type

logger = logging.getLogger(__name__)

_HTTP_METHODS = {m.value: m for m in HTTPMethod}

_OPENAPI_VERSION = re.compile(r"^3\.([01])(\.|$)")

_DEFAULT_MEDIA_TYPES = ("application/json",)

_T = TypeVar("_T")
_R = TypeVar("_R")

# (path, method, operation, path-level parameters)
_OperationUnit = tuple[str, HTTPMethod, dict[str, Any], list[Any]]


def normalize(
    raw_text: str, source: str, *, max_workers: Optional[int] = None
) -> UnifiedSpec:
    """Normalize a raw Swagger 2.0 / OpenAPI 3.x document.

    Args:
        raw_text: The document text (JSON or YAML).
        source: Origin identifier stored on the result (URL or file path).
        max_workers: Thread count for parallel extraction.  ``1`` runs
            sequentially; ``None`` uses the executor default.  The result is
            identical either way.

    Returns:
        The normalized :class:`~openapi_sync.models.UnifiedSpec`.

    Raises:
        InvalidJSONError: If JSON-looking text cannot be decoded.
        InvalidYAMLError: If YAML cannot be decoded or is not a mapping.
        MissingFieldError: If ``info`` or the dialect version field is absent.
        UnsupportedVersionError: If the dialect version is not 2.x, 3.0.x or 3.1.x.
        NestingTooDeepError: If the document is too deeply nested to walk.

    Example::

        spec = normalize(Path("petstore.yaml").read_text(), "petstore.yaml")
        for key, endpoint in spec.endpoints.items():
            print(key, endpoint.schema_refs)
    """
    document = parse_content(raw_text)
    dialect = detect_dialect(document)
    return normalize_document(document, source, dialect, max_workers=max_workers)


def detect_dialect(document: dict[str, Any]) -> SpecDialect:
    """Classify a decoded document by its top-level version field.

    A ``swagger`` value that is not 2.x defers to the ``openapi`` field when
    one is present.

    Raises:
        MissingFieldError: If neither ``swagger`` nor ``openapi`` is present.
        UnsupportedVersionError: For any other version value.
    """
    if "swagger" in document:
        version = str(document["swagger"])
        if version.startswith("2."):
            return SpecDialect.SWAGGER_2
        if "openapi" not in document:
            raise UnsupportedVersionError(f"Unsupported Swagger version: {version}")

    if "openapi" in document:
        version = str(document["openapi"])
        match = _OPENAPI_VERSION.match(version)
        if match is None:
            raise UnsupportedVersionError(f"Unsupported OpenAPI version: {version}")
        return SpecDialect.OPENAPI_30 if match.group(1) == "0" else SpecDialect.OPENAPI_31

    raise MissingFieldError("Missing 'openapi' or 'swagger' field")


def normalize_document(
    document: dict[str, Any],
    source: str,
    dialect: SpecDialect,
    *,
    max_workers: Optional[int] = None,
) -> UnifiedSpec:
    """Build the unified model from an already decoded and classified document.

    Raises:
        MissingFieldError: If ``info`` is absent.
        NestingTooDeepError: If a sub-document exceeds the recursion limit.
    """
    if "info" not in document:
        raise MissingFieldError("Missing 'info' field")
    info = _as_dict(document["info"])

    schema_units = list(_as_dict(_schema_container(document, dialect)).items())
    operation_units = _flatten_operations(_as_dict(document.get("paths")))

    def extract_endpoint(unit: _OperationUnit) -> Endpoint:
        return _extract_endpoint(unit, document, dialect)

    try:
        parsed_schemas = _parallel_map(_extract_schema, schema_units, max_workers)
        parsed_endpoints = _parallel_map(extract_endpoint, operation_units, max_workers)
        content_hash = compute_hash(document)
    except RecursionError as exc:
        raise NestingTooDeepError(f"Document from {source} is nested too deeply") from exc

    schemas = {schema.name: schema for schema in sorted(parsed_schemas, key=lambda s: s.name)}
    endpoints = {
        endpoint.key: endpoint for endpoint in sorted(parsed_endpoints, key=lambda e: e.key)
    }
    tags = sorted({tag for endpoint in endpoints.values() for tag in endpoint.tags})

    logger.debug(
        "Normalized %s (%s): %d endpoints, %d schemas",
        source,
        dialect.value,
        len(endpoints),
        len(schemas),
    )

    return UnifiedSpec(
        metadata=SpecMetadata(
            title=_text(info.get("title")) or "Unknown API",
            version=_text(info.get("version")) or "0.0.0",
            description=_text(info.get("description")),
            dialect=dialect,
            endpoint_count=len(endpoints),
            schema_count=len(schemas),
            tag_count=len(tags),
        ),
        endpoints=endpoints,
        schemas=schemas,
        tags=tags,
        content_hash=content_hash,
        source=source,
    )


def parse_source(source: str, client: Optional[httpx.Client] = None) -> UnifiedSpec:
    """Fetch and normalize *source* without touching the cache.

    Args:
        source: A URL or local file path.
        client: Pooled client for remote sources.  A short-lived client is
            created (and closed) when omitted.
    """
    if client is not None:
        return normalize(fetch_source(source, client).content, source)
    with build_http_client() as owned:
        return normalize(fetch_source(source, owned).content, source)


# --- Work distribution ---


def _parallel_map(
    func: Callable[[_T], _R], items: list[_T], max_workers: Optional[int]
) -> list[_R]:
    """Apply *func* to every item, on a thread pool unless ``max_workers == 1``."""
    if max_workers == 1 or len(items) < 2:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(func, items))


def _schema_container(document: dict[str, Any], dialect: SpecDialect) -> Any:
    if dialect.is_legacy:
        return document.get("definitions")
    return _as_dict(document.get("components")).get("schemas")


def _flatten_operations(paths: dict[str, Any]) -> list[_OperationUnit]:
    """One unit per recognised HTTP method per path item."""
    units: list[_OperationUnit] = []
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        path_params = _as_list(path_item.get("parameters"))
        for method_name, operation in path_item.items():
            method = _HTTP_METHODS.get(str(method_name).lower())
            if method is None or not isinstance(operation, dict):
                continue
            units.append((str(path), method, operation, path_params))
    return units


# --- Schemas ---


def _extract_schema(unit: tuple[Any, Any]) -> Schema:
    name, definition = unit
    refs, content_hash = extract_refs_and_hash(definition)
    description = definition.get("description") if isinstance(definition, dict) else None
    return Schema(
        name=str(name),
        schema_type=resolve_schema_type(definition),
        description=_text(description),
        refs=refs,
        content_hash=content_hash,
    )


# --- Operations ---


def _extract_endpoint(
    unit: _OperationUnit, document: dict[str, Any], dialect: SpecDialect
) -> Endpoint:
    """Extract one operation.  Reads only its own sub-document (plus globals)."""
    path, method, operation, path_params = unit

    # Single pass for refs and hash; inherited path-level parameters are part
    # of the endpoint's raw sub-document
    raw_endpoint: Any = operation
    if path_params:
        raw_endpoint = {"operation": operation, "parameters": path_params}
    schema_refs, content_hash = extract_refs_and_hash(raw_endpoint)

    raw_params = _merge_parameters(path_params, _as_list(operation.get("parameters")))

    if dialect.is_legacy:
        parameters = _extract_parameters(raw_params, legacy=True)
        request_body = _extract_swagger2_body(raw_params, operation, document)
        responses = _extract_swagger2_responses(operation, document)
    else:
        parameters = _extract_parameters(raw_params, legacy=False)
        request_body = _extract_openapi3_body(operation.get("requestBody"))
        responses = _extract_openapi3_responses(operation)

    return Endpoint(
        path=path,
        method=method,
        operation_id=_text(operation.get("operationId")),
        summary=_text(operation.get("summary")),
        description=_text(operation.get("description")),
        tags=[tag for tag in _as_list(operation.get("tags")) if isinstance(tag, str)],
        parameters=parameters,
        request_body=request_body,
        responses=responses,
        deprecated=operation.get("deprecated") is True,
        content_hash=content_hash,
        schema_refs=schema_refs,
    )


def _merge_parameters(path_params: list[Any], op_params: list[Any]) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field).
    """
    op_dicts = [p for p in op_params if isinstance(p, dict)]
    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_dicts}
    merged = [
        p
        for p in path_params
        if isinstance(p, dict) and (p.get("name", ""), p.get("in", "")) not in overridden
    ]
    merged.extend(op_dicts)
    return merged


def _extract_parameters(params: list[dict[str, Any]], *, legacy: bool) -> list[Parameter]:
    """Convert raw non-body parameters.

    Parameters whose ``in`` is not a known location (``body``, ``formData``,
    ``$ref`` stubs without ``in``) are skipped.  ``required`` defaults to
    true only for path parameters.
    """
    parameters: list[Parameter] = []
    for param in params:
        try:
            location = ParameterLocation(param.get("in"))
        except ValueError:
            continue

        schema = _as_dict(param.get("schema"))
        # Swagger 2.0 declares primitive types on the parameter itself
        type_source = param if legacy and "type" in param else schema
        required = param.get("required")
        if not isinstance(required, bool):
            required = location is ParameterLocation.PATH

        parameters.append(
            Parameter(
                name=_text(param.get("name")) or "",
                location=location,
                required=required,
                description=_text(param.get("description")),
                schema_ref=_ref_name(schema),
                schema_type=primary_type(type_source.get("type")),
            )
        )
    return parameters


def _extract_swagger2_body(
    params: list[dict[str, Any]], operation: dict[str, Any], document: dict[str, Any]
) -> Optional[RequestBody]:
    """Hoist the first ``in: body`` parameter into a request body."""
    for param in params:
        if param.get("in") != "body":
            continue
        return RequestBody(
            required=param.get("required") is True,
            description=_text(param.get("description")),
            content_types=_media_types(operation, document, "consumes"),
            schema_ref=_ref_name(param.get("schema")),
        )
    return None


def _extract_swagger2_responses(
    operation: dict[str, Any], document: dict[str, Any]
) -> dict[str, Response]:
    produces = _media_types(operation, document, "produces")
    responses: dict[str, Response] = {}
    for status, response in _as_dict(operation.get("responses")).items():
        if not isinstance(response, dict):
            continue
        responses[str(status)] = Response(
            status_code=str(status),
            description=_text(response.get("description")),
            content_types=list(produces),
            schema_ref=_ref_name(response.get("schema")),
        )
    return responses


def _media_types(operation: dict[str, Any], document: dict[str, Any], field: str) -> list[str]:
    """Operation-level ``consumes``/``produces``, then the document-level list, then JSON."""
    for container in (operation, document):
        values = container.get(field)
        if isinstance(values, list) and values:
            return [str(v) for v in values]
    return list(_DEFAULT_MEDIA_TYPES)


def _extract_openapi3_body(body: Any) -> Optional[RequestBody]:
    if not isinstance(body, dict):
        return None
    content = body.get("content")
    if not isinstance(content, dict):
        return None
    return RequestBody(
        required=body.get("required") is True,
        description=_text(body.get("description")),
        content_types=[str(ct) for ct in content],
        schema_ref=_first_content_ref(content),
    )


def _extract_openapi3_responses(operation: dict[str, Any]) -> dict[str, Response]:
    responses: dict[str, Response] = {}
    for status, response in _as_dict(operation.get("responses")).items():
        if not isinstance(response, dict):
            continue
        content = _as_dict(response.get("content"))
        responses[str(status)] = Response(
            status_code=str(status),
            description=_text(response.get("description")),
            content_types=[str(ct) for ct in content],
            schema_ref=_first_content_ref(content),
        )
    return responses


def _first_content_ref(content: dict[str, Any]) -> Optional[str]:
    """Schema name from the first media-type entry whose schema is a ``$ref``."""
    for media in content.values():
        if isinstance(media, dict):
            ref = _ref_name(media.get("schema"))
            if ref is not None:
                return ref
    return None


# --- Small coercions ---


def _ref_name(schema: Any) -> Optional[str]:
    if isinstance(schema, dict):
        ref = schema.get("$ref")
        if isinstance(ref, str):
            return strip_ref_prefix(ref)
    return None


def _text(value: Any) -> Optional[str]:
    """Strings pass through; YAML-decoded numbers (``version: 1.0``) become text."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_dict(value: Any) -> dict[Any, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
