"""
GitHub API helper utilities.

Provides rate limit handling, error response classification and URL parsing
shared by all read operations.
"""

import logging
from datetime import datetime

import httpx

from ghtranscript.services.github.constants import RESOURCE_URL_PATTERN
from ghtranscript.services.github.exceptions import (
    GitHubAPIError,
    NotFoundError,
    RateLimitedError,
)
from ghtranscript.services.github.types import ResourceRef

logger = logging.getLogger(__name__)


class InvalidResourceURL(ValueError):
    """The given URL does not point at a GitHub issue or pull request."""


class RateLimitInfo:
    """Rate limit information from GitHub API response."""

    def __init__(self, response: httpx.Response) -> None:
        self.remaining = response.headers.get("X-RateLimit-Remaining")
        self.reset = response.headers.get("X-RateLimit-Reset")

    @property
    def reset_timestamp(self) -> int | None:
        """Get reset timestamp as integer, or None if not available."""
        return int(self.reset) if self.reset else None

    @property
    def is_exhausted(self) -> bool:
        """Check if rate limit is exhausted."""
        return self.remaining is not None and int(self.remaining) == 0


def parse_resource_url(url: str) -> ResourceRef:
    """
    Extract owner, repo and number from a GitHub issue or pull request URL.

    Args:
        url: e.g. "https://github.com/octo/hello/pull/42/files"

    Returns:
        ResourceRef with is_pull set for /pull/ URLs

    Raises:
        InvalidResourceURL: If the URL is not an issue or PR URL
    """
    match = RESOURCE_URL_PATTERN.match(url.strip())
    if not match:
        raise InvalidResourceURL(f"Not a GitHub issue or pull request URL: {url!r}")

    return ResourceRef(
        owner=match.group("owner"),
        repo=match.group("repo"),
        number=int(match.group("number")),
        is_pull=match.group("kind") == "pull",
    )


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp ('2024-01-02T03:04:05Z'); None if absent or malformed."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Ignoring malformed timestamp: {value!r}")
        return None


def error_message(response: httpx.Response) -> str:
    """Best-effort extraction of GitHub's error message from a response."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase


def handle_error_response(response: httpx.Response, resource: str) -> None:
    """
    Handle common error responses from GitHub API.

    Args:
        response: The HTTP response from GitHub API
        resource: Resource description for error context (e.g. "octo/hello#42")

    Raises:
        NotFoundError: For 404 responses
        RateLimitedError: For exhausted quotas, 429s and secondary rate limits
        GitHubAPIError: For authentication, authorization, or other API errors
    """
    if response.status_code == 200:
        return

    rate_info = RateLimitInfo(response)

    if response.status_code == 404:
        raise NotFoundError(f"Not found: {resource}")
    elif response.status_code == 401:
        raise GitHubAPIError("Invalid or expired GitHub token", 401)
    elif response.status_code in (403, 429):
        message = error_message(response)
        if rate_info.is_exhausted or response.status_code == 429 or "rate limit" in message.lower():
            logger.warning(f"Rate limited while fetching {resource}: {message}")
            raise RateLimitedError(
                "GitHub API rate limit exceeded",
                response.status_code,
                rate_limit_reset=rate_info.reset_timestamp,
            )
        raise GitHubAPIError(f"GitHub API forbidden: {message}", 403)
    else:
        raise GitHubAPIError(
            f"GitHub API error: {response.status_code}", response.status_code
        )
