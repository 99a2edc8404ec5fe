"""Outbound HTTP client construction.

The application owns a single ``httpx.AsyncClient``: it is created in the
FastAPI lifespan, shared by the Gemini client and the image fetcher, and
closed on shutdown. Per-request deadlines (image fetches) are passed at call
time and override the client defaults built here.
"""

import os
from pathlib import Path
from typing import Any

import httpx

from gcproxy.config.settings import Settings
from gcproxy.core.logging import get_logger


logger = get_logger(__name__)

_PROXY_ENV_VARS = ("HTTPS_PROXY", "https_proxy", "ALL_PROXY", "HTTP_PROXY", "http_proxy")
_CA_BUNDLE_ENV_VARS = ("REQUESTS_CA_BUNDLE", "SSL_CERT_FILE")


class HTTPClientFactory:
    """Builds the shared outbound client from application settings."""

    @staticmethod
    def create_client(
        settings: Settings | None = None,
        *,
        connect_timeout: float = 10.0,
        pool_limit: int = 100,
        keepalive_limit: int = 20,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create the shared client.

        The read timeout follows ``gemini.timeout_seconds``: generations
        stream for minutes, so the default read timeout is long.

        Args:
            settings: Application settings; defaults are used when omitted
            connect_timeout: Seconds allowed for establishing a connection
            pool_limit: Maximum concurrent connections
            keepalive_limit: Maximum idle connections kept for reuse
            **kwargs: Passed through to ``httpx.AsyncClient``
        """
        settings = settings or Settings()
        read_timeout = settings.gemini.timeout_seconds
        proxy = proxy_from_env()

        transport = httpx.AsyncHTTPTransport(
            limits=httpx.Limits(
                max_connections=pool_limit,
                max_keepalive_connections=keepalive_limit,
            ),
            verify=tls_verify_from_env(),
            proxy=proxy,
        )

        logger.debug(
            "http_client_created",
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            pool_limit=pool_limit,
            has_proxy=proxy is not None,
            category="http",
        )

        return httpx.AsyncClient(
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            transport=transport,
            follow_redirects=True,
            **kwargs,
        )


def proxy_from_env() -> str | None:
    """First outbound proxy URL found in the conventional environment variables."""
    for name in _PROXY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            logger.debug("proxy_configured", variable=name, category="http")
            return value
    return None


def tls_verify_from_env() -> str | bool:
    """TLS verification setting: a CA bundle path, True, or False if disabled."""
    for name in _CA_BUNDLE_ENV_VARS:
        bundle = os.environ.get(name)
        if bundle and Path(bundle).exists():
            logger.debug("ssl_ca_bundle_configured", path=bundle, category="http")
            return bundle

    if os.environ.get("SSL_VERIFY", "true").lower() in ("false", "0", "no"):
        logger.warning("ssl_verification_disabled", category="http")
        return False
    return True
