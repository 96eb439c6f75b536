"""
GitHub service package.

Re-exports all public types and classes.
Usage: `from ghtranscript.services.github import GitHubReadOperations, ResourceRef`

Module structure:
- read_operations.py: All read-only API operations (the transcript's data provider)
- http_client.py: Per-invocation HTTP client lifecycle
- helpers.py: Rate limit handling, error classification, URL parsing
- types.py: Data types and response models
- exceptions.py: Custom exceptions
- constants.py: API constants, URL patterns and status icons
"""

from ghtranscript.services.github.exceptions import (
    GitHubAPIError,
    NotFoundError,
    ParseFailureError,
    RateLimitedError,
)
from ghtranscript.services.github.helpers import (
    InvalidResourceURL,
    RateLimitInfo,
    handle_error_response,
    parse_resource_url,
    parse_timestamp,
)
from ghtranscript.services.github.http_client import create_github_client, github_client
from ghtranscript.services.github.read_operations import GitHubReadOperations
from ghtranscript.services.github.types import (
    CheckRunEntry,
    CheckStatus,
    CommitStatusEntry,
    IssueDetails,
    PullDetails,
    ResourceRef,
)

__all__ = [
    # Data provider
    "GitHubReadOperations",
    # HTTP client lifecycle
    "create_github_client",
    "github_client",
    # Utilities
    "handle_error_response",
    "parse_resource_url",
    "parse_timestamp",
    "RateLimitInfo",
    # Exceptions
    "GitHubAPIError",
    "InvalidResourceURL",
    "NotFoundError",
    "ParseFailureError",
    "RateLimitedError",
    # Types
    "CheckRunEntry",
    "CheckStatus",
    "CommitStatusEntry",
    "IssueDetails",
    "PullDetails",
    "ResourceRef",
]
