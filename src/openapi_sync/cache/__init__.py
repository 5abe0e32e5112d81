"""Durable spec cache.

This package provides :class:`CacheManager`, which resolves a source (URL or
local file) to a :class:`~openapi_sync.models.UnifiedSpec` and persists the
result as a single JSON record with an embedded copy of the spec, so that
later resolutions of an unchanged source skip both the fetch and the parse.

* :mod:`~openapi_sync.cache.store` -- atomic read/write of the record file.
* :mod:`~openapi_sync.cache.validation` -- the ordered validity cascade.
* :mod:`~openapi_sync.cache.manager` -- fetch-vs-reuse orchestration.
"""

from openapi_sync.cache.manager import CacheManager
from openapi_sync.cache.store import CacheStore
from openapi_sync.cache.validation import Validation, validate_record

__all__ = ["CacheManager", "CacheStore", "Validation", "validate_record"]
