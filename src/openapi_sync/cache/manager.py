"""Resolve a source to a :class:`~openapi_sync.models.UnifiedSpec`, reusing the cache when valid.

:class:`CacheManager` sits in front of the normalizer.  Each call to
:meth:`CacheManager.resolve` either returns the spec embedded in the
persisted record (no fetch, no parse) or takes the cold path: fetch, normalize,
write a fresh record, return.

Every cache-side problem -- missing or corrupt record, version mismatch,
wrong source, expired TTL, changed validators, hash mismatch, failed write --
is handled here and never reaches the caller.  Only failures of the cold
path itself (I/O, network, format errors) propagate.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import httpx

from openapi_sync.cache.store import CacheStore
from openapi_sync.cache.validation import (
    Validation,
    is_expired,
    parse_timestamp,
    utc_now,
    validate_record,
)
from openapi_sync.client import build_http_client
from openapi_sync.config import get_cache_dir, resolve_settings
from openapi_sync.exceptions import CacheError, CacheWriteError
from openapi_sync.models import (
    CachedMeta,
    CacheRecord,
    CacheSettings,
    CacheStatus,
    HttpCacheInfo,
    LocalCacheInfo,
    UnifiedSpec,
)
from openapi_sync.parser.loader import (
    FetchResult,
    fetch_remote,
    is_remote,
    local_mtime,
    read_local,
)
from openapi_sync.parser.normalizer import normalize

logger = logging.getLogger(__name__)


class CacheManager:
    """Cache-aware spec resolution for one project directory.

    The manager owns a pooled :class:`httpx.Client` (created lazily on the
    first remote request) unless one is injected, in which case the caller
    keeps ownership and must close it.  Use the manager as a context manager,
    or call :meth:`close`, to release an owned client.

    Args:
        project_dir: Directory holding the cache record.  Defaults to
            :func:`~openapi_sync.config.get_cache_dir`.
        settings: Cache settings; :func:`~openapi_sync.config.resolve_settings`
            is used when omitted.
        client: Optional pre-built client (e.g. with a mock transport).

    Example::

        with CacheManager(".") as manager:
            spec = manager.resolve("openapi.yaml")
            spec = manager.resolve("openapi.yaml")  # served from the record
    """

    def __init__(
        self,
        project_dir: str | Path | None = None,
        settings: Optional[CacheSettings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings or resolve_settings()
        directory = Path(project_dir) if project_dir is not None else get_cache_dir()
        self._store = CacheStore(directory / self._settings.cache_filename)
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def __enter__(self) -> CacheManager:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = build_http_client(self._settings)
        return self._client

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    def resolve(self, source: str, ttl_seconds: Optional[int] = None) -> UnifiedSpec:
        """Return the spec for *source*, from the cache when it is still valid.

        Args:
            source: A URL or local file path.
            ttl_seconds: TTL stored on a freshly written record.  Defaults
                to ``settings.ttl_seconds``.  Existing records are judged by
                the TTL they were written with.

        Returns:
            The normalized spec.

        Raises:
            SourceIOError: If the cold path cannot read a local file.
            NetworkError: If the cold path cannot fetch a URL.
            FormatError: If the fetched document cannot be normalized.
        """
        if self._settings.enabled:
            validation, record = self._check(source)
            if validation and record is not None and record.parsed_spec is not None:
                logger.debug("Cache hit for %s", source)
                return record.parsed_spec
            logger.debug("Cache not used for %s: %s", source, validation.reason)

        spec, fetched = self._fetch_and_normalize(source)

        if self._settings.enabled:
            ttl = ttl_seconds if ttl_seconds is not None else self._settings.ttl_seconds
            self._persist(self.create_record(spec, source, ttl, fetched))
        return spec

    def validate(self, source: str, now: Optional[datetime] = None) -> Validation:
        """Run the validity cascade for *source* without fetching anything."""
        validation, _ = self._check(source, now)
        return validation

    def _check(
        self, source: str, now: Optional[datetime] = None
    ) -> tuple[Validation, Optional[CacheRecord]]:
        try:
            record = self._store.load()
        except CacheError as exc:
            return Validation.fail(str(exc)), None
        validation = validate_record(
            record,
            source,
            client_factory=lambda: self.client,
            revalidate_timeout=self._settings.revalidate_timeout,
            now=now,
        )
        return validation, record

    def _fetch_and_normalize(self, source: str) -> tuple[UnifiedSpec, FetchResult]:
        if is_remote(source):
            fetched = fetch_remote(self.client, source)
        else:
            fetched = FetchResult(content=read_local(source))
        spec = normalize(fetched.content, source, max_workers=self._settings.max_workers)
        logger.info(
            "Fetched %s: %d endpoints, %d schemas",
            source,
            spec.metadata.endpoint_count,
            spec.metadata.schema_count,
        )
        return spec, fetched

    def create_record(
        self,
        spec: UnifiedSpec,
        source: str,
        ttl_seconds: int,
        fetched: Optional[FetchResult] = None,
    ) -> CacheRecord:
        """Build a fresh record embedding *spec* and the current validators."""
        mtime = None if is_remote(source) else local_mtime(source)
        return CacheRecord(
            last_fetch=utc_now().isoformat(),
            content_hash=spec.content_hash,
            source=source,
            ttl_seconds=ttl_seconds,
            http_cache=HttpCacheInfo(
                etag=fetched.etag if fetched else None,
                last_modified=fetched.last_modified if fetched else None,
            ),
            local_cache=LocalCacheInfo(mtime=mtime),
            meta=CachedMeta(
                title=spec.metadata.title,
                version=spec.metadata.version,
                dialect=spec.metadata.dialect.value,
                endpoint_count=spec.metadata.endpoint_count,
                schema_count=spec.metadata.schema_count,
            ),
            parsed_spec=spec,
        )

    def _persist(self, record: CacheRecord) -> None:
        try:
            self._store.save(record)
        except CacheWriteError as exc:
            logger.warning("Could not persist cache record: %s", exc)

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def status(self, source: Optional[str] = None) -> CacheStatus:
        """Summarise the persisted record without validating validators.

        Args:
            source: When given, ``source_matches`` reports whether the record
                belongs to it.
        """
        path = str(self._store.path)
        if not self._store.exists():
            return CacheStatus(exists=False, path=path)
        try:
            record = self._store.load()
        except CacheError as exc:
            return CacheStatus(exists=True, path=path, error=str(exc))

        fetched_at = parse_timestamp(record.last_fetch)
        age = (utc_now() - fetched_at).total_seconds() if fetched_at else None
        return CacheStatus(
            exists=True,
            path=path,
            source=record.source,
            source_matches=(record.source == source) if source is not None else None,
            last_fetch=record.last_fetch,
            age_seconds=age,
            ttl_seconds=record.ttl_seconds,
            expired=is_expired(record),
            has_parsed_spec=record.parsed_spec is not None,
            meta=record.meta,
        )

    def clear(self) -> bool:
        """Delete the persisted record.  Returns True if one existed."""
        removed = self._store.clear()
        if removed:
            logger.info("Removed cache record %s", self._store.path)
        return removed
