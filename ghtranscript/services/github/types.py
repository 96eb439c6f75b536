"""Data types for GitHub API responses."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ResourceRef:
    """Identifies one issue or pull request."""

    owner: str
    repo: str
    number: int
    is_pull: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def slug(self) -> str:
        """Filesystem-safe identifier, e.g. 'octo-hello-42'."""
        return f"{self.owner}-{self.repo}-{self.number}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


@dataclass
class PullDetails:
    """Pull-request-only metadata."""

    additions: int
    deletions: int
    changed_files: int
    head_ref: str
    base_ref: str
    head_sha: str
    merged: bool = False
    merged_at: datetime | None = None
    draft: bool = False

    @property
    def changed_lines(self) -> int:
        return self.additions + self.deletions


@dataclass
class IssueDetails:
    """Normalized issue or pull request metadata (the primary fetch)."""

    number: int
    title: str
    state: str  # "open" or "closed"
    author: str
    body: str
    html_url: str
    body_html: str = ""
    state_reason: str | None = None  # "completed", "not_planned", "reopened"
    created_at: datetime | None = None
    closed_at: datetime | None = None
    labels: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    milestone: str | None = None
    pull: PullDetails | None = None  # Only set for pull requests

    @property
    def is_pull(self) -> bool:
        return self.pull is not None

    @property
    def is_closed(self) -> bool:
        return self.state == "closed" or (self.pull is not None and self.pull.merged)


@dataclass
class CommitStatusEntry:
    """One legacy commit status (from the combined status endpoint)."""

    context: str
    state: str  # "success", "failure", "error", "pending"
    description: str | None = None
    target_url: str | None = None


@dataclass
class CheckRunEntry:
    """One check run (GitHub Actions and other Checks API integrations)."""

    name: str
    status: str  # "queued", "in_progress", "completed", ...
    conclusion: str | None = None  # Only set once status == "completed"
    html_url: str | None = None


@dataclass
class CheckStatus:
    """All CI signals reported for a PR head commit."""

    statuses: list[CommitStatusEntry] = field(default_factory=list)
    check_runs: list[CheckRunEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.statuses and not self.check_runs
