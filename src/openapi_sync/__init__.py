"""openapi-sync -- normalize Swagger 2.0 / OpenAPI 3.x documents, cache them, and query their dependencies.

This package turns an API description (local file or URL) into a single
:class:`~openapi_sync.models.UnifiedSpec` regardless of dialect, keeps a
validated on-disk cache of the result, and builds a dependency graph over
schemas and endpoints for change-impact queries.

Typical usage::

    from openapi_sync.cache import CacheManager
    from openapi_sync.graph import DependencyGraph
    from openapi_sync.models import Direction

    with CacheManager("/path/to/project") as manager:
        spec = manager.resolve("https://petstore.swagger.io/v2/swagger.json")

    graph = DependencyGraph.build(spec)
    affected = graph.query("Pet", Direction.DOWNSTREAM)

Modules:
    models: Pydantic models shared across the entire package.
    config: Settings resolution, XDG cache directory, atomic writes.
    exceptions: Error taxonomy (I/O, network, format, cache).
    client: Pooled :mod:`httpx` client construction.
    parser: Source loading and dialect normalization.
    cache: Cache record store, validity cascade and cache manager.
    graph: Dependency graph and impact queries.
"""

__version__ = "0.1.0"
