"""Pooled HTTP client construction.

A single :class:`httpx.Client` is shared by every fetch and revalidation a
:class:`~openapi_sync.cache.CacheManager` performs, so repeated resolutions
against the same host reuse connections.  The client is built explicitly from
:class:`~openapi_sync.models.CacheSettings` and owned by whoever created it;
there is no module-level client.

Timeouts:

* the client-wide default is ``settings.fetch_timeout`` (full GET);
* revalidation passes ``settings.revalidate_timeout`` per request.
"""

from __future__ import annotations

import httpx

from openapi_sync import __version__
from openapi_sync.models import CacheSettings

_ACCEPT = "application/json, application/yaml;q=0.9, text/yaml;q=0.9, */*;q=0.5"


def build_http_client(
    settings: CacheSettings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create the pooled client used for spec fetches.

    Args:
        settings: Pool and timeout configuration.  Defaults apply when omitted.
        transport: Optional transport override, e.g. :class:`httpx.MockTransport`
            in tests.

    Returns:
        A configured :class:`httpx.Client`.  The caller must close it.
    """
    settings = settings or CacheSettings()
    return httpx.Client(
        timeout=httpx.Timeout(settings.fetch_timeout),
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
            keepalive_expiry=settings.keepalive_expiry,
        ),
        headers={
            "Accept": _ACCEPT,
            "User-Agent": f"openapi-sync/{__version__}",
        },
        follow_redirects=True,
        transport=transport,
    )
