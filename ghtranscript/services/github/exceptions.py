"""Exceptions for GitHub service."""


class GitHubAPIError(Exception):
    """Error from GitHub API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        rate_limit_reset: int | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.rate_limit_reset = rate_limit_reset  # Unix timestamp when rate limit resets
        super().__init__(message)


class NotFoundError(GitHubAPIError):
    """The resource does not exist or is not visible with the current credentials."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class RateLimitedError(GitHubAPIError):
    """GitHub refused the request because a (primary or secondary) rate limit was hit.

    Recoverable: the caller may wait and retry the whole operation.
    """


class ParseFailureError(GitHubAPIError):
    """A response could not be decoded as the structured data we needed.

    `diagnostic` holds whatever we learned while investigating the failure
    (response excerpt, rate-limit probe output) for the user-facing report.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        diagnostic: str = "",
    ):
        self.diagnostic = diagnostic
        super().__init__(message, status_code=status_code)

    def __str__(self) -> str:
        if self.diagnostic:
            return f"{self.message}\n{self.diagnostic}"
        return self.message
