from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub - empty token = unauthenticated requests (60/hour)
    github_token: str = ""
    github_api_url: str = "https://api.github.com"

    # Application
    debug: bool = False

    # Pull requests: below this many changed lines (additions + deletions)
    # the full diff is rendered, otherwise only the changed file names
    diff_threshold: int = 800

    # Where per-resource scratch directories are created (empty = system temp dir)
    scratch_root: str = ""

    # Whole-document retry on rate limiting
    max_attempts: int = 3
    retry_backoff_min: float = 1.0
    retry_backoff_max: float = 3.0

    # HTTP client
    request_timeout: float = 30.0
    connect_timeout: float = 5.0
    max_connections: int = 20
    max_concurrent_downloads: int = 8
    # Upper bound on followed `Link: rel="next"` pages per listing
    max_pages: int = 30

    @property
    def authenticated(self) -> bool:
        """Check if a GitHub token is configured."""
        return bool(self.github_token)


settings = Settings()
