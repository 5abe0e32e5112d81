"""Load API description documents from a URL or a local file.

This module handles all I/O for fetching raw documents and decoding them into
Python dictionaries.  It is the only part of the parser that touches the
network or the filesystem; :mod:`~openapi_sync.parser.normalizer` works on
the decoded text alone.

Public functions:

* :func:`is_remote` -- does a source name an ``http(s)`` URL?
* :func:`read_local` -- read a local file with path-traversal protection.
* :func:`fetch_remote` -- GET a URL through a pooled :class:`httpx.Client`,
  capturing the ``ETag`` and ``Last-Modified`` validators.
* :func:`fetch_source` -- dispatch between the two.
* :func:`local_mtime` -- modification time of a local file as RFC 3339.
* :func:`parse_content` -- decode JSON or YAML text into a dict.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from openapi_sync.exceptions import (
    ConnectionFailedError,
    HTTPStatusError,
    InvalidJSONError,
    InvalidYAMLError,
    PathTraversalError,
    PermissionDeniedError,
    SourceNotFoundError,
    SourceReadError,
)

_SEGMENT_SPLIT = re.compile(r"[\\/]")


@dataclass(frozen=True)
class FetchResult:
    """Raw document text plus the validators captured while fetching it."""

    content: str
    etag: Optional[str] = None
    last_modified: Optional[str] = None


def is_remote(source: str) -> bool:
    """Return True when *source* is an ``http://`` or ``https://`` URL."""
    return source.startswith(("http://", "https://"))


def fetch_source(source: str, client: httpx.Client) -> FetchResult:
    """Fetch the raw document for *source*.

    Args:
        source: A URL (http/https) or a local file path.
        client: Pooled client used for remote sources.

    Returns:
        A :class:`FetchResult`.  Local reads carry no HTTP validators.

    Raises:
        SourceIOError: For local read failures (see :func:`read_local`).
        NetworkError: For remote fetch failures (see :func:`fetch_remote`).
    """
    if is_remote(source):
        return fetch_remote(client, source)
    return FetchResult(content=read_local(source))


def fetch_remote(
    client: httpx.Client, url: str, timeout: Optional[float] = None
) -> FetchResult:
    """GET *url* and return its body together with the cache validators.

    Args:
        client: The pooled client.
        url: The HTTP(S) URL to fetch.
        timeout: Per-request timeout; the client's default when ``None``.

    Returns:
        A :class:`FetchResult`.

    Raises:
        HTTPStatusError: If the server answers with a non-2xx status.
        ConnectionFailedError: On timeouts, DNS failures, refused connections.
    """
    kwargs: dict[str, Any] = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    try:
        response = client.get(url, **kwargs)
    except httpx.RequestError as exc:
        raise ConnectionFailedError(f"Failed to fetch spec from {url}: {exc}") from exc

    if not response.is_success:
        raise HTTPStatusError(response.status_code, response.reason_phrase or "error")

    return FetchResult(
        content=response.text,
        etag=response.headers.get("etag"),
        last_modified=response.headers.get("last-modified"),
    )


def _has_parent_segment(path: str) -> bool:
    return ".." in _SEGMENT_SPLIT.split(path)


def read_local(path: str) -> str:
    """Read a local spec file as UTF-8 text.

    The path is rejected before any filesystem access if it contains a
    ``..`` segment.  It is then canonicalised (following symlinks) and
    checked again.

    Args:
        path: Path to the local file.

    Returns:
        The file content.

    Raises:
        PathTraversalError: If the path (raw or canonical) contains ``..``,
            or cannot be canonicalised.
        SourceNotFoundError: If the file does not exist.
        PermissionDeniedError: If the file cannot be opened for reading.
        SourceReadError: For any other read failure (directories, bad encoding).
    """
    if _has_parent_segment(path):
        raise PathTraversalError(f"Parent-directory segments are not allowed: {path}")

    try:
        canonical = Path(path).resolve(strict=True)
    except FileNotFoundError as exc:
        raise SourceNotFoundError(f"Spec file not found: {path}") from exc
    except (OSError, RuntimeError) as exc:
        raise PathTraversalError(f"Cannot resolve path: {path} ({exc})") from exc

    if _has_parent_segment(str(canonical)):
        raise PathTraversalError(
            f"Parent-directory segments are not allowed: {canonical}"
        )

    try:
        return canonical.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SourceNotFoundError(f"Spec file not found: {path}") from exc
    except PermissionError as exc:
        raise PermissionDeniedError(f"Permission denied reading {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceReadError(f"Failed to read spec file {path}: {exc}") from exc


def local_mtime(path: str) -> Optional[str]:
    """Return the file's modification time as an RFC 3339 UTC timestamp.

    Returns:
        The timestamp, or ``None`` if the file cannot be stat'ed.
    """
    try:
        mtime = Path(path).stat().st_mtime
    except OSError:
        return None
    return datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat()


def parse_content(content: str) -> dict[str, Any]:
    """Decode document text as JSON or YAML.

    Text whose first non-blank character is ``{`` is decoded as JSON;
    everything else goes through :func:`yaml.safe_load`.

    Args:
        content: The raw document text.

    Returns:
        The decoded top-level mapping.

    Raises:
        InvalidJSONError: If JSON-looking text fails to decode.
        InvalidYAMLError: If YAML decoding fails, or the document is not a
            mapping.  Both decode errors also cover nesting too deep to decode.
    """
    if content.lstrip().startswith("{"):
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            raise InvalidJSONError(f"Invalid JSON: {exc}") from exc
        except RecursionError as exc:
            raise InvalidJSONError("Invalid JSON: nesting too deep") from exc
        if not isinstance(result, dict):
            raise InvalidJSONError(
                f"Spec must be a JSON object (got {type(result).__name__})"
            )
        return result

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise InvalidYAMLError(f"Invalid YAML: {exc}") from exc
    except RecursionError as exc:
        raise InvalidYAMLError("Invalid YAML: nesting too deep") from exc
    if not isinstance(result, dict):
        raise InvalidYAMLError(
            "Spec must be a YAML mapping (got "
            f"{type(result).__name__ if result is not None else 'empty document'})"
        )
    return result
