"""Exception hierarchy for openapi-sync.

All exceptions inherit from :class:`OpenAPISyncError`, which carries a
class-level ``kind`` string identifying the error family.  The kind is
prefixed to the message so that callers who only log ``str(exc)`` still see
what went wrong.

Subclass hierarchy::

    OpenAPISyncError
    +-- ConfigError
    +-- SourceIOError
    |   +-- SourceNotFoundError      (not_found)
    |   +-- PermissionDeniedError    (permission_denied)
    |   +-- PathTraversalError       (path_traversal)
    |   +-- SourceReadError          (read_error)
    +-- NetworkError
    |   +-- ConnectionFailedError    (connection_failed)
    |   +-- HTTPStatusError          (http_error)
    +-- FormatError
    |   +-- InvalidJSONError         (invalid_json)
    |   +-- InvalidYAMLError         (invalid_yaml)
    |   +-- MissingFieldError        (missing_field)
    |   +-- UnsupportedVersionError  (unsupported_version)
    |   +-- NestingTooDeepError      (nesting_too_deep)
    +-- CacheError
        +-- CacheNotFoundError       (cache_not_found)
        +-- CacheCorruptedError      (cache_corrupted)
        +-- CacheWriteError          (cache_write_failed)

Only the I/O, network and format families ever reach callers of
:meth:`~openapi_sync.cache.CacheManager.resolve`; cache errors are recovered
inside the cache layer.
"""

from __future__ import annotations


class OpenAPISyncError(Exception):
    """Base exception for all openapi-sync errors.

    Args:
        message: Human-readable error description.
    """

    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.kind}] {self.message}"


class ConfigError(OpenAPISyncError):
    """Raised for invalid settings (bad environment values, negative TTLs)."""

    kind = "config_error"


# --- I/O ---


class SourceIOError(OpenAPISyncError):
    """Base class for local source read failures."""

    kind = "io_error"


class SourceNotFoundError(SourceIOError):
    """Raised when a local spec file does not exist."""

    kind = "not_found"


class PermissionDeniedError(SourceIOError):
    """Raised when a local spec file exists but cannot be read."""

    kind = "permission_denied"


class PathTraversalError(SourceIOError):
    """Raised when a local path contains a parent-directory segment."""

    kind = "path_traversal"


class SourceReadError(SourceIOError):
    """Raised for any other failure while reading a local spec file."""

    kind = "read_error"


# --- Network ---


class NetworkError(OpenAPISyncError):
    """Base class for remote fetch failures."""

    kind = "network_error"


class ConnectionFailedError(NetworkError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    kind = "connection_failed"


class HTTPStatusError(NetworkError):
    """Raised when the remote server answers with a non-2xx status.

    Args:
        status_code: The HTTP status code returned.
        message: The reason phrase or a short description.
    """

    kind = "http_error"

    def __init__(self, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code


# --- Format ---


class FormatError(OpenAPISyncError):
    """Base class for documents that cannot be decoded or classified."""

    kind = "format_error"


class InvalidJSONError(FormatError):
    kind = "invalid_json"


class InvalidYAMLError(FormatError):
    kind = "invalid_yaml"


class MissingFieldError(FormatError):
    """Raised when ``info`` or the dialect version field is absent."""

    kind = "missing_field"


class UnsupportedVersionError(FormatError):
    """Raised for a ``swagger``/``openapi`` version outside 2.x, 3.0.x and 3.1.x."""

    kind = "unsupported_version"


class NestingTooDeepError(FormatError):
    """Raised when a decoded document is nested beyond the interpreter recursion limit."""

    kind = "nesting_too_deep"


# --- Cache ---


class CacheError(OpenAPISyncError):
    """Base class for cache record failures.  Never surfaced by ``resolve``."""

    kind = "cache_error"


class CacheNotFoundError(CacheError):
    kind = "cache_not_found"


class CacheCorruptedError(CacheError):
    """Raised when a cache record exists but cannot be deserialised."""

    kind = "cache_corrupted"


class CacheWriteError(CacheError):
    kind = "cache_write_failed"
