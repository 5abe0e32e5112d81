"""Settings resolution, XDG cache directory and atomic file writes.

This module handles the ambient configuration for openapi-sync:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.openapi-sync/`` on macOS and Windows. See :func:`get_cache_dir`.
  The cache directory is only used when a caller does not supply a project
  directory of its own.
* **Settings** -- :func:`resolve_settings` merges explicit overrides,
  environment variables, and the defaults declared on
  :class:`~openapi_sync.models.CacheSettings`.
* **Atomic writes** -- :func:`_atomic_write` writes through a temp file in
  the target directory and renames it over the destination, so a reader
  never observes a partially written file.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from openapi_sync.exceptions import ConfigError
from openapi_sync.models import CacheSettings

_APP_NAME = "openapi-sync"
_ENV_PREFIX = "OPENAPI_SYNC_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def get_cache_dir() -> Path:
    """Return the default cache directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/openapi-sync/`` (default
    ``~/.cache/openapi-sync/``).  On macOS/Windows: ``~/.openapi-sync/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CACHE_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".cache"
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Settings ---


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


# env suffix -> (settings field, converter)
_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "CACHE_ENABLED": ("enabled", _parse_bool),
    "TTL_SECONDS": ("ttl_seconds", int),
    "FETCH_TIMEOUT": ("fetch_timeout", float),
    "REVALIDATE_TIMEOUT": ("revalidate_timeout", float),
}


def _settings_from_env() -> dict[str, Any]:
    """Collect settings overrides from ``OPENAPI_SYNC_*`` environment variables."""
    values: dict[str, Any] = {}
    for suffix, (field, convert) in _ENV_FIELDS.items():
        env_name = f"{_ENV_PREFIX}{suffix}"
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            values[field] = convert(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {env_name}: {exc}") from exc
    return values


def resolve_settings(
    base: Optional[CacheSettings] = None, **overrides: Any
) -> CacheSettings:
    """Resolve cache settings with the full precedence chain.

    Precedence (high to low):
        1. Keyword ``overrides`` whose value is not ``None``
        2. Environment variables (``OPENAPI_SYNC_TTL_SECONDS``,
           ``OPENAPI_SYNC_CACHE_ENABLED``, ``OPENAPI_SYNC_FETCH_TIMEOUT``,
           ``OPENAPI_SYNC_REVALIDATE_TIMEOUT``)
        3. Fields of *base*, if given
        4. Defaults

    Returns:
        A validated :class:`~openapi_sync.models.CacheSettings`.

    Raises:
        ConfigError: If an environment variable cannot be converted or the
            merged values fail validation.
    """
    data: dict[str, Any] = base.model_dump() if base is not None else {}
    data.update(_settings_from_env())
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return CacheSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid cache settings: {exc}") from exc


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up and the original exception re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f"{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
