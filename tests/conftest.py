"""Shared test fixtures for openapi-sync.

Provides the two petstore fixture documents (one per dialect) as raw text
and as normalized specs, plus helpers for building :class:`httpx.Client`
instances backed by :class:`httpx.MockTransport`.  These fixtures are
discovered by pytest automatically.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from openapi_sync.models import CacheSettings, UnifiedSpec
from openapi_sync.parser import normalize


FIXTURES_DIR = Path(__file__).parent / "fixtures"

SWAGGER2_FIXTURE = "petstore_swagger2.json"
OPENAPI3_FIXTURE = "petstore_openapi3.json"


# ---------------------------------------------------------------------------
# Raw document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def swagger2_text() -> str:
    """Raw Swagger 2.0 petstore document."""
    return (FIXTURES_DIR / SWAGGER2_FIXTURE).read_text(encoding="utf-8")


@pytest.fixture
def openapi3_text() -> str:
    """Raw OpenAPI 3.0.3 petstore document."""
    return (FIXTURES_DIR / OPENAPI3_FIXTURE).read_text(encoding="utf-8")


@pytest.fixture
def swagger2_raw(swagger2_text: str) -> dict[str, Any]:
    return json.loads(swagger2_text)


@pytest.fixture
def openapi3_raw(openapi3_text: str) -> dict[str, Any]:
    return json.loads(openapi3_text)


# ---------------------------------------------------------------------------
# Normalized spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def swagger2_spec(swagger2_text: str) -> UnifiedSpec:
    return normalize(swagger2_text, SWAGGER2_FIXTURE)


@pytest.fixture
def openapi3_spec(openapi3_text: str) -> UnifiedSpec:
    return normalize(openapi3_text, OPENAPI3_FIXTURE)


# ---------------------------------------------------------------------------
# Local sources and settings
# ---------------------------------------------------------------------------


@pytest.fixture
def spec_file(tmp_path: Path, openapi3_text: str) -> Path:
    """The OpenAPI 3 fixture copied into a temporary directory."""
    path = tmp_path / "specs" / "openapi.json"
    path.parent.mkdir(parents=True)
    path.write_text(openapi3_text, encoding="utf-8")
    return path


@pytest.fixture
def settings() -> CacheSettings:
    return CacheSettings()


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ``OPENAPI_SYNC_*`` variables from the developer's shell out of tests."""
    for name in (
        "OPENAPI_SYNC_CACHE_ENABLED",
        "OPENAPI_SYNC_TTL_SECONDS",
        "OPENAPI_SYNC_FETCH_TIMEOUT",
        "OPENAPI_SYNC_REVALIDATE_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


MockHandler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def make_client():
    """Factory for :class:`httpx.Client` instances answered by a handler function.

    Every client created through the factory is closed after the test.
    """
    clients: list[httpx.Client] = []

    def _make(handler: MockHandler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
