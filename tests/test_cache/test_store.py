"""Tests for openapi_sync.cache.store."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from openapi_sync.cache.store import CacheStore
from openapi_sync.exceptions import (
    CacheCorruptedError,
    CacheError,
    CacheNotFoundError,
    CacheWriteError,
)
from openapi_sync.models import (
    CACHE_FORMAT_VERSION,
    CACHE_SCHEMA_VERSION,
    CachedMeta,
    CacheRecord,
    HttpCacheInfo,
    UnifiedSpec,
)


@pytest.fixture
def store(tmp_path: Path) -> CacheStore:
    return CacheStore(tmp_path / ".openapi-sync.cache.json")


@pytest.fixture
def record(openapi3_spec: UnifiedSpec) -> CacheRecord:
    return CacheRecord(
        last_fetch="2026-10-17T08:00:00+00:00",
        content_hash=openapi3_spec.content_hash,
        source="https://api.example.com/openapi.json",
        ttl_seconds=3600,
        http_cache=HttpCacheInfo(etag='"v1"'),
        meta=CachedMeta(title="Petstore Modern", endpoint_count=3, schema_count=5),
        parsed_spec=openapi3_spec,
    )


# ------------------------------------------------------------------ #
# Round trip
# ------------------------------------------------------------------ #


class TestSaveLoad:
    def test_round_trip(self, store: CacheStore, record: CacheRecord) -> None:
        store.save(record)
        loaded = store.load()
        assert loaded == record
        assert loaded.parsed_spec == record.parsed_spec

    def test_file_is_readable_json(self, store: CacheStore, record: CacheRecord) -> None:
        store.save(record)
        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["version"] == CACHE_FORMAT_VERSION
        assert data["schema_version"] == CACHE_SCHEMA_VERSION
        assert data["source"] == "https://api.example.com/openapi.json"
        assert data["http_cache"]["etag"] == '"v1"'
        assert data["parsed_spec"]["content_hash"] == record.content_hash

    def test_schema_types_survive_round_trip(self, store: CacheStore, record: CacheRecord) -> None:
        store.save(record)
        spec = store.load().parsed_spec
        assert spec is not None
        assert spec.schemas["Pet"].schema_type.kind == "all_of"
        assert spec.schemas["PetFilter"].schema_type.kind == "string"

    def test_overwrite(self, store: CacheStore, record: CacheRecord) -> None:
        store.save(record)
        store.save(record.model_copy(update={"ttl_seconds": 10}))
        assert store.load().ttl_seconds == 10

    def test_creates_parent_directory(self, tmp_path: Path, record: CacheRecord) -> None:
        store = CacheStore(tmp_path / "nested" / "dir" / "cache.json")
        store.save(record)
        assert store.exists()

    def test_no_temp_files_left_behind(self, store: CacheStore, record: CacheRecord) -> None:
        store.save(record)
        store.save(record)
        leftovers = [p.name for p in store.path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []


# ------------------------------------------------------------------ #
# Failures
# ------------------------------------------------------------------ #


class TestLoadFailures:
    def test_missing(self, store: CacheStore) -> None:
        assert not store.exists()
        with pytest.raises(CacheNotFoundError):
            store.load()

    def test_not_json(self, store: CacheStore) -> None:
        store.path.write_text("not json at all", encoding="utf-8")
        with pytest.raises(CacheCorruptedError):
            store.load()

    def test_truncated(self, store: CacheStore, record: CacheRecord) -> None:
        store.save(record)
        text = store.path.read_text(encoding="utf-8")
        store.path.write_text(text[: len(text) // 2], encoding="utf-8")
        with pytest.raises(CacheCorruptedError):
            store.load()

    def test_missing_required_fields(self, store: CacheStore) -> None:
        store.path.write_text(json.dumps({"version": "1.0.0"}), encoding="utf-8")
        with pytest.raises(CacheCorruptedError) as exc_info:
            store.load()
        assert exc_info.value.kind == "cache_corrupted"

    def test_errors_share_cache_family(self, store: CacheStore) -> None:
        with pytest.raises(CacheError):
            store.load()


class TestSaveFailures:
    def test_replace_failure(self, store: CacheStore, record: CacheRecord) -> None:
        with patch("openapi_sync.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(CacheWriteError):
                store.save(record)
        assert not store.exists()
        assert list(store.path.parent.iterdir()) == []

    def test_failed_write_keeps_previous_record(self, store: CacheStore, record: CacheRecord) -> None:
        store.save(record)
        with patch("openapi_sync.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(CacheWriteError):
                store.save(record.model_copy(update={"ttl_seconds": 1}))
        assert store.load().ttl_seconds == 3600

    def test_unwritable_directory(self, tmp_path: Path, record: CacheRecord) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = CacheStore(blocker / "cache.json")
        with pytest.raises(CacheWriteError):
            store.save(record)


class TestClear:
    def test_clear_existing(self, store: CacheStore, record: CacheRecord) -> None:
        store.save(record)
        assert store.clear() is True
        assert not store.exists()

    def test_clear_missing(self, store: CacheStore) -> None:
        assert store.clear() is False
