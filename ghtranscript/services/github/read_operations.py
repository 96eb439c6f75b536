"""
GitHub API read operations.

Provides every read-only call the transcript needs:
- Issue / pull request metadata (with rendered body HTML)
- Comments, timeline events, reviews, review comments, commits
- Pull request diff or changed file names
- Commit statuses and check runs
- Issue titles for link hydration
- Rate limit probing for failure diagnosis
- Raw downloads for image localization
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx

from ghtranscript.schemas import (
    Comment,
    Commit,
    Review,
    ReviewComment,
    TimelineEvent,
    parse_timeline_event,
)
from ghtranscript.services.github.constants import (
    ACCEPT_DIFF,
    ACCEPT_FULL_JSON,
    ACCEPT_JSON,
    API_VERSION,
    CO_AUTHOR_PATTERN,
    PER_PAGE,
)
from ghtranscript.services.github.exceptions import (
    GitHubAPIError,
    NotFoundError,
    ParseFailureError,
    RateLimitedError,
)
from ghtranscript.services.github.helpers import (
    error_message,
    handle_error_response,
    parse_timestamp,
)
from ghtranscript.services.github.types import (
    CheckRunEntry,
    CheckStatus,
    CommitStatusEntry,
    IssueDetails,
    PullDetails,
    ResourceRef,
)

logger = logging.getLogger(__name__)

_REVIEW_STATES = {"APPROVED", "CHANGES_REQUESTED", "COMMENTED", "DISMISSED", "PENDING"}


class GitHubReadOperations:
    """
    Read-only operations for GitHub API.

    The HTTP client is owned by the caller (one per invocation); this class only
    adds auth headers per request, so the same client can safely download
    images from third-party hosts without leaking the token.
    """

    BASE_URL = "https://api.github.com"
    API_VERSION = API_VERSION

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str = "",
        base_url: str | None = None,
        max_pages: int = 30,
    ):
        self.client = client
        self.token = token
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.max_pages = max_pages

    def _headers(self, accept: str = ACCEPT_JSON) -> dict[str, str]:
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": self.API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    # ─────────────────────────────────────────────────────────────────────
    # Request plumbing
    # ─────────────────────────────────────────────────────────────────────

    async def _get(
        self,
        url: str,
        resource: str,
        accept: str = ACCEPT_JSON,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        """GET a URL and raise a typed GitHubAPIError for any non-200 response."""
        try:
            response = await self.client.get(url, headers=self._headers(accept), params=params)
        except httpx.RequestError as e:
            raise GitHubAPIError(f"Request for {resource} failed: {e}") from e

        handle_error_response(response, resource)
        return response

    def _decode(self, response: httpx.Response, resource: str) -> Any:
        """Decode a JSON body, turning anything unparseable into ParseFailureError."""
        try:
            return response.json()
        except ValueError as e:
            raise ParseFailureError(
                f"Unparseable response for {resource}",
                response.status_code,
                diagnostic=response.text[:500],
            ) from e

    async def _get_object(
        self,
        path: str,
        resource: str,
        accept: str = ACCEPT_JSON,
        params: dict[str, str | int] | None = None,
    ) -> dict[str, Any]:
        response = await self._get(f"{self.base_url}{path}", resource, accept, params)
        data = self._decode(response, resource)
        if not isinstance(data, dict):
            raise ParseFailureError(
                f"Expected an object for {resource}, got {type(data).__name__}",
                response.status_code,
            )
        return data

    async def _get_paginated(
        self,
        path: str,
        resource: str,
        accept: str = ACCEPT_JSON,
    ) -> list[dict[str, Any]]:
        """
        Fetch every page of a listing endpoint.

        Follows the `Link: rel="next"` header up to max_pages pages.
        """
        url = f"{self.base_url}{path}"
        params: dict[str, str | int] | None = {"per_page": PER_PAGE}
        items: list[dict[str, Any]] = []

        for _ in range(self.max_pages):
            response = await self._get(url, resource, accept, params)
            data = self._decode(response, resource)
            if not isinstance(data, list):
                raise ParseFailureError(
                    f"Expected a list for {resource}, got {type(data).__name__}",
                    response.status_code,
                )
            items.extend(data)

            next_url = response.links.get("next", {}).get("url")
            if not next_url:
                break
            # The next link already carries per_page and page
            url, params = next_url, None
        else:
            logger.warning(f"Stopped paginating {resource} after {self.max_pages} pages")

        return items

    # ─────────────────────────────────────────────────────────────────────
    # Normalization
    # ─────────────────────────────────────────────────────────────────────

    def _normalize_issue(self, data: dict[str, Any], is_pull: bool) -> IssueDetails:
        """Convert an issue or pull request payload to IssueDetails."""
        milestone = data.get("milestone") or {}

        pull = None
        if is_pull:
            pull = PullDetails(
                additions=data.get("additions", 0),
                deletions=data.get("deletions", 0),
                changed_files=data.get("changed_files", 0),
                head_ref=(data.get("head") or {}).get("ref", ""),
                base_ref=(data.get("base") or {}).get("ref", ""),
                head_sha=(data.get("head") or {}).get("sha", ""),
                merged=bool(data.get("merged") or data.get("merged_at")),
                merged_at=parse_timestamp(data.get("merged_at")),
                draft=data.get("draft", False),
            )

        return IssueDetails(
            number=data["number"],
            title=data.get("title") or "",
            state=data.get("state", "open"),
            author=(data.get("user") or {}).get("login", "ghost"),
            body=data.get("body") or "",
            body_html=data.get("body_html") or "",
            html_url=data.get("html_url", ""),
            state_reason=data.get("state_reason"),
            created_at=parse_timestamp(data.get("created_at")),
            closed_at=parse_timestamp(data.get("closed_at")),
            labels=[lb["name"] for lb in data.get("labels") or [] if isinstance(lb, dict) and "name" in lb],
            assignees=[a["login"] for a in data.get("assignees") or [] if isinstance(a, dict) and "login" in a],
            milestone=milestone.get("title"),
            pull=pull,
        )

    def _normalize_comment(self, data: dict[str, Any]) -> Comment:
        return Comment(
            id=data["id"],
            author=(data.get("user") or {}).get("login", "ghost"),
            body=data.get("body") or "",
            body_html=data.get("body_html") or "",
            created_at=data.get("created_at"),
            html_url=data.get("html_url"),
        )

    def _normalize_review(self, data: dict[str, Any]) -> Review:
        state = data.get("state") or "COMMENTED"
        return Review(
            id=data["id"],
            author=(data.get("user") or {}).get("login", "ghost"),
            state=state if state in _REVIEW_STATES else "COMMENTED",
            body=data.get("body") or "",
            submitted_at=data.get("submitted_at"),
            html_url=data.get("html_url"),
        )

    def _normalize_review_comment(self, data: dict[str, Any]) -> ReviewComment:
        return ReviewComment(
            author=(data.get("user") or {}).get("login", "ghost"),
            body=data.get("body") or "",
            path=data.get("path") or "",
            diff_hunk=data.get("diff_hunk") or "",
            created_at=data.get("created_at"),
            html_url=data.get("html_url"),
        )

    def _normalize_commit(self, data: dict[str, Any]) -> Commit:
        """
        Convert a PR commit payload to a Commit.

        Authors are the GitHub login of the commit author (or the git author
        name when the email isn't linked to an account) followed by every
        Co-authored-by trailer, de-duplicated in order.
        """
        commit = data.get("commit") or {}
        message = (commit.get("message") or "").strip()
        headline, _, body = message.partition("\n")

        git_author = commit.get("author") or {}
        primary = (data.get("author") or {}).get("login") or git_author.get("name") or "unknown"

        authors = [primary]
        for match in CO_AUTHOR_PATTERN.finditer(message):
            name = match.group("name").strip()
            if name and name not in authors:
                authors.append(name)

        committer = commit.get("committer") or {}
        return Commit(
            sha=data.get("sha", ""),
            authors=authors,
            headline=headline.strip(),
            body=body.strip(),
            committed_at=committer.get("date") or git_author.get("date"),
        )

    # ─────────────────────────────────────────────────────────────────────
    # Issue / pull request data
    # ─────────────────────────────────────────────────────────────────────

    async def get_issue(self, ref: ResourceRef) -> IssueDetails:
        """
        Fetch issue or pull request metadata including the rendered body HTML.

        Pull requests are read from the pulls endpoint, which additionally
        reports additions/deletions, branches and merge state.
        """
        kind = "pulls" if ref.is_pull else "issues"
        data = await self._get_object(
            f"/repos/{ref.owner}/{ref.repo}/{kind}/{ref.number}",
            str(ref),
            accept=ACCEPT_FULL_JSON,
        )

        if "number" not in data:
            raise ParseFailureError(
                f"Response for {ref} is missing the issue number",
                diagnostic=str(data)[:500],
            )
        if not ref.is_pull and "pull_request" in data:
            logger.info(f"{ref} is a pull request; use its /pull/ URL to include reviews and diff")

        return self._normalize_issue(data, is_pull=ref.is_pull)

    async def get_issue_comments(self, ref: ResourceRef) -> list[Comment]:
        """Fetch all top-level comments (markdown + HTML bodies)."""
        items = await self._get_paginated(
            f"/repos/{ref.owner}/{ref.repo}/issues/{ref.number}/comments",
            f"comments of {ref}",
            accept=ACCEPT_FULL_JSON,
        )
        return [self._normalize_comment(c) for c in items]

    async def get_timeline(self, ref: ResourceRef) -> list[TimelineEvent]:
        """Fetch all timeline events in API order."""
        items = await self._get_paginated(
            f"/repos/{ref.owner}/{ref.repo}/issues/{ref.number}/timeline",
            f"timeline of {ref}",
        )
        return [parse_timeline_event(e) for e in items if isinstance(e, dict)]

    async def get_reviews(self, ref: ResourceRef) -> list[Review]:
        items = await self._get_paginated(
            f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.number}/reviews",
            f"reviews of {ref}",
            accept=ACCEPT_FULL_JSON,
        )
        return [self._normalize_review(r) for r in items]

    async def get_review_comments(self, ref: ResourceRef) -> list[ReviewComment]:
        items = await self._get_paginated(
            f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.number}/comments",
            f"review comments of {ref}",
            accept=ACCEPT_FULL_JSON,
        )
        return [self._normalize_review_comment(c) for c in items]

    async def get_commits(self, ref: ResourceRef) -> list[Commit]:
        items = await self._get_paginated(
            f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.number}/commits",
            f"commits of {ref}",
        )
        return [self._normalize_commit(c) for c in items]

    async def get_diff(self, ref: ResourceRef) -> str:
        """Fetch the unified diff of a pull request."""
        response = await self._get(
            f"{self.base_url}/repos/{ref.owner}/{ref.repo}/pulls/{ref.number}",
            f"diff of {ref}",
            accept=ACCEPT_DIFF,
        )
        return response.text

    async def get_changed_files(self, ref: ResourceRef) -> list[str]:
        """Fetch the names of all files changed by a pull request."""
        items = await self._get_paginated(
            f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.number}/files",
            f"files of {ref}",
        )
        return [f.get("filename", "") for f in items if f.get("filename")]

    async def get_check_status(self, owner: str, repo: str, sha: str) -> CheckStatus:
        """
        Fetch legacy commit statuses and check runs for a commit (parallel).

        Args:
            owner: Repository owner
            repo: Repository name
            sha: Commit SHA, usually the PR head

        Returns:
            CheckStatus with both kinds of entries
        """
        resource = f"checks of {owner}/{repo}@{sha[:7]}"
        combined, runs = await asyncio.gather(
            self._get_object(f"/repos/{owner}/{repo}/commits/{sha}/status", resource),
            self._get_object(
                f"/repos/{owner}/{repo}/commits/{sha}/check-runs",
                resource,
                params={"per_page": PER_PAGE},
            ),
        )

        statuses = [
            CommitStatusEntry(
                context=s.get("context") or "status",
                state=s.get("state") or "pending",
                description=s.get("description"),
                target_url=s.get("target_url"),
            )
            for s in combined.get("statuses") or []
        ]
        check_runs = [
            CheckRunEntry(
                name=r.get("name") or "check",
                status=r.get("status") or "queued",
                conclusion=r.get("conclusion"),
                html_url=r.get("html_url"),
            )
            for r in runs.get("check_runs") or []
        ]
        return CheckStatus(statuses=statuses, check_runs=check_runs)

    async def get_issue_title(self, owner: str, repo: str, number: int) -> str | None:
        """
        Fetch the title of any issue or pull request.

        Returns None on any failure; callers treat titles as optional.
        """
        try:
            data = await self._get_object(
                f"/repos/{owner}/{repo}/issues/{number}", f"{owner}/{repo}#{number}"
            )
        except GitHubAPIError as e:
            logger.debug(f"Title lookup failed for {owner}/{repo}#{number}: {e.message}")
            return None

        title = data.get("title")
        return title if isinstance(title, str) and title else None

    # ─────────────────────────────────────────────────────────────────────
    # Failure diagnosis
    # ─────────────────────────────────────────────────────────────────────

    async def probe_rate_limit(self) -> str:
        """
        Query /rate_limit and describe the result in one line.

        The text only mentions "rate limit" when the quota is actually
        exhausted or GitHub itself reports a rate limit.
        """
        try:
            response = await self.client.get(f"{self.base_url}/rate_limit", headers=self._headers())
        except httpx.RequestError as e:
            return f"Diagnostic probe failed: {e}"

        try:
            data = response.json()
        except ValueError:
            return f"Diagnostic probe returned HTTP {response.status_code}: {response.text[:200]}"

        core = (data.get("resources") or {}).get("core") or data.get("rate") or {}
        remaining = core.get("remaining")
        limit = core.get("limit")

        if remaining == 0:
            return f"API rate limit exceeded ({limit} requests/hour), resets at {core.get('reset')}"
        if response.status_code != 200:
            return f"Diagnostic probe returned HTTP {response.status_code}: {error_message(response)}"
        return f"Core quota: {remaining}/{limit} requests remaining"

    async def diagnose_failure(self, error: GitHubAPIError, resource: str) -> GitHubAPIError:
        """
        Classify a failed primary fetch as not-found, rate-limited or fatal.

        Already-classified errors are returned unchanged. Anything else is
        combined with a rate limit probe and inspected for known phrases.
        """
        if isinstance(error, (NotFoundError, RateLimitedError)):
            return error

        probe = await self.probe_rate_limit()
        diagnostic = "\n".join(part for part in (str(error), probe) if part)
        lowered = diagnostic.lower()

        if "rate limit" in lowered:
            return RateLimitedError(
                f"GitHub API rate limit exceeded while fetching {resource}", error.status_code
            )
        if "not found" in lowered:
            return NotFoundError(f"Not found: {resource}")
        return ParseFailureError(
            f"Could not fetch {resource}", error.status_code, diagnostic=diagnostic
        )

    # ─────────────────────────────────────────────────────────────────────
    # Raw downloads
    # ─────────────────────────────────────────────────────────────────────

    async def download(self, url: str, dest: Path) -> bool:
        """
        Download a URL to a local file without GitHub auth headers.

        Signed image URLs carry their own token. Returns False on any failure.
        """
        short_url = url.split("?")[0]
        try:
            response = await self.client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.debug(f"Download failed for {short_url}: {e}")
            return False

        if response.status_code != 200:
            logger.debug(f"Download failed for {short_url}: HTTP {response.status_code}")
            return False

        try:
            await asyncio.to_thread(dest.write_bytes, response.content)
        except OSError as e:
            logger.debug(f"Could not write {dest}: {e}")
            return False

        logger.debug(f"Downloaded {short_url} -> {dest.name} ({len(response.content)} bytes)")
        return True
