"""The cache validity cascade.

A persisted :class:`~openapi_sync.models.CacheRecord` is reused only if every
stage below passes, in order.  Each stage returns a :class:`Validation`
instead of raising, and the first failure decides the outcome, so tests can
exercise every stage on its own.

1. :func:`check_schema_version` -- the record was written for the current
   :data:`~openapi_sync.models.CACHE_SCHEMA_VERSION`.
2. :func:`check_source` -- the record belongs to the requested source.
3. :func:`check_ttl` -- ``last_fetch`` is no older than ``ttl_seconds``.
4. :func:`check_local_freshness` / :func:`check_remote_freshness` -- the
   source has not changed (file mtime, or ETag / Last-Modified via HEAD).
5. :func:`check_integrity` -- an embedded spec is present and its
   ``content_hash`` equals the record's.

Loading the record itself (stage 0) happens in
:class:`~openapi_sync.cache.manager.CacheManager`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from openapi_sync.models import CACHE_SCHEMA_VERSION, CacheRecord
from openapi_sync.parser.loader import is_remote, local_mtime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Validation:
    """Outcome of one cascade stage (or of the whole cascade)."""

    valid: bool
    reason: str

    @classmethod
    def ok(cls, reason: str = "valid") -> Validation:
        return cls(True, reason)

    @classmethod
    def fail(cls, reason: str) -> Validation:
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.valid


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_expired(record: CacheRecord, now: Optional[datetime] = None) -> bool:
    """Return True when more than ``ttl_seconds`` have passed since ``last_fetch``.

    An unparseable ``last_fetch`` counts as expired.
    """
    fetched_at = parse_timestamp(record.last_fetch)
    if fetched_at is None:
        return True
    elapsed = ((now or utc_now()) - fetched_at).total_seconds()
    return elapsed > record.ttl_seconds


def check_schema_version(record: CacheRecord) -> Validation:
    if record.schema_version != CACHE_SCHEMA_VERSION:
        return Validation.fail(
            f"schema_version {record.schema_version} != {CACHE_SCHEMA_VERSION}"
        )
    return Validation.ok()


def check_source(record: CacheRecord, source: str) -> Validation:
    if record.source != source:
        return Validation.fail(f"record is for {record.source!r}, not {source!r}")
    return Validation.ok()


def check_ttl(record: CacheRecord, now: Optional[datetime] = None) -> Validation:
    if is_expired(record, now):
        return Validation.fail(f"TTL of {record.ttl_seconds}s elapsed")
    return Validation.ok()


def check_local_freshness(record: CacheRecord, path: str) -> Validation:
    """Compare the file's current mtime with the one captured at fetch time."""
    current = local_mtime(path)
    if current is None:
        return Validation.fail(f"cannot stat {path}")
    cached = record.local_cache.mtime
    if cached is None:
        return Validation.fail("no cached mtime")
    if current != cached:
        return Validation.fail(f"mtime changed ({cached} -> {current})")
    return Validation.ok()


def check_remote_freshness(
    record: CacheRecord, url: str, client: httpx.Client, timeout: float
) -> Validation:
    """Revalidate with a HEAD request.

    ETag is compared when both sides carry one, otherwise Last-Modified.
    When the HEAD request fails at the network layer, or the response has
    no comparable validator, the record is kept: the TTL check already
    passed.
    """
    try:
        response = client.head(url, timeout=timeout)
    except httpx.RequestError as exc:
        logger.warning("Revalidation of %s failed, keeping cached copy: %s", url, exc)
        return Validation.ok("revalidation failed; within TTL")

    etag = response.headers.get("etag")
    cached_etag = record.http_cache.etag
    if etag is not None and cached_etag is not None:
        if etag == cached_etag:
            return Validation.ok("etag unchanged")
        return Validation.fail(f"etag changed ({cached_etag} -> {etag})")

    last_modified = response.headers.get("last-modified")
    cached_last_modified = record.http_cache.last_modified
    if last_modified is not None and cached_last_modified is not None:
        if last_modified == cached_last_modified:
            return Validation.ok("last-modified unchanged")
        return Validation.fail(
            f"last-modified changed ({cached_last_modified} -> {last_modified})"
        )

    return Validation.ok("no validators; within TTL")


def check_integrity(record: CacheRecord) -> Validation:
    spec = record.parsed_spec
    if spec is None:
        return Validation.fail("no embedded spec")
    if spec.content_hash != record.content_hash:
        return Validation.fail(
            f"content_hash mismatch ({record.content_hash} != {spec.content_hash})"
        )
    return Validation.ok()


def validate_record(
    record: CacheRecord,
    source: str,
    client_factory: Callable[[], httpx.Client],
    revalidate_timeout: float,
    now: Optional[datetime] = None,
) -> Validation:
    """Run the full cascade and return the first failure, or success.

    Args:
        record: The loaded record.
        source: The requested source.
        client_factory: Returns the pooled client; only called for remote
            sources that reach the revalidation stage.
        revalidate_timeout: Timeout for the HEAD request.
        now: Reference time for the TTL check.
    """

    def freshness() -> Validation:
        if is_remote(source):
            return check_remote_freshness(record, source, client_factory(), revalidate_timeout)
        return check_local_freshness(record, source)

    stages: list[Callable[[], Validation]] = [
        lambda: check_schema_version(record),
        lambda: check_source(record, source),
        lambda: check_ttl(record, now),
        freshness,
        lambda: check_integrity(record),
    ]
    for stage in stages:
        result = stage()
        if not result:
            return result
    return Validation.ok()
