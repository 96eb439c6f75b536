"""
HTTP client for GitHub API operations.

One AsyncClient is created per invocation and shared by every concurrent fetch
and image download of that invocation, so connections are pooled without any
process-wide state. Auth headers are passed per-request, not stored on the
client, because image downloads from third-party hosts must not carry the token.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from ghtranscript.config import Settings

logger = logging.getLogger(__name__)


def create_github_client(config: Settings) -> httpx.AsyncClient:
    """
    Build an HTTP client configured for GitHub API calls.

    Args:
        config: Settings providing timeouts and connection limits

    Returns:
        httpx.AsyncClient with connection pooling and HTTP/2 enabled
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.request_timeout, connect=config.connect_timeout),
        limits=httpx.Limits(
            max_connections=config.max_connections,
            max_keepalive_connections=config.max_connections // 2,
        ),
        http2=True,
    )


@asynccontextmanager
async def github_client(config: Settings) -> AsyncIterator[httpx.AsyncClient]:
    """Create a client for the duration of one invocation and always close it."""
    client = create_github_client(config)
    logger.debug("Created GitHub HTTP client")
    try:
        yield client
    finally:
        await client.aclose()
        logger.debug("Closed GitHub HTTP client")
