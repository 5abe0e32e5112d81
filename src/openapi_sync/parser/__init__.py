"""Document parser -- load, decode, and normalize API descriptions.

This sub-package turns a raw Swagger 2.0 or OpenAPI 3.x document (JSON or
YAML, local file or remote URL) into a
:class:`~openapi_sync.models.UnifiedSpec`.

Typical usage::

    from openapi_sync.parser import normalize

    spec = normalize(Path("swagger.yaml").read_text(), "swagger.yaml")

Sub-modules:

* :mod:`~openapi_sync.parser.loader` -- I/O layer (URL, file) plus JSON/YAML
  decoding and path-traversal protection.
* :mod:`~openapi_sync.parser.hashing` -- Single-pass ``$ref`` collection and
  structural content hashing.
* :mod:`~openapi_sync.parser.resolver` -- Raw schema -> structural
  :data:`~openapi_sync.models.SchemaType`.
* :mod:`~openapi_sync.parser.normalizer` -- Dialect detection and parallel
  extraction of endpoints and schemas.
"""

from openapi_sync.parser.hashing import compute_hash, extract_refs_and_hash
from openapi_sync.parser.loader import fetch_source, parse_content, read_local
from openapi_sync.parser.normalizer import detect_dialect, normalize, parse_source

__all__ = [
    "compute_hash",
    "detect_dialect",
    "extract_refs_and_hash",
    "fetch_source",
    "normalize",
    "parse_content",
    "parse_source",
    "read_local",
]
