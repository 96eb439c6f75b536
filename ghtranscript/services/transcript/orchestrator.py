"""
Transcript orchestrator.

Coordinates one invocation end to end:
1. Launch every independent fetch concurrently (metadata, comments, timeline,
   and for PRs reviews, review comments, commits)
2. Once metadata resolves, schedule the dependent fetches (diff or file
   list, CI status)
3. Once bodies are known, localize images and resolve link titles in parallel
4. Render everything into one chronological document

The whole attempt is retried, with a short random backoff, when GitHub
reports a rate limit.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Literal, TypeVar

from ghtranscript.config import Settings, settings
from ghtranscript.schemas import Comment, Commit, Record, Review, ReviewComment, TimelineEvent
from ghtranscript.services.github import (
    CheckStatus,
    GitHubAPIError,
    GitHubReadOperations,
    IssueDetails,
    NotFoundError,
    PullDetails,
    RateLimitedError,
    ResourceRef,
    github_client,
    parse_resource_url,
)
from ghtranscript.services.transcript.context import RenderContext, new_title_cache
from ghtranscript.services.transcript.diff_policy import (
    render_check_section,
    render_diff_section,
    render_files_section,
    should_fetch_checks,
    wants_full_diff,
)
from ghtranscript.services.transcript.images import localize_images
from ghtranscript.services.transcript.links import (
    find_issue_links,
    make_title_lookup,
    resolve_link_titles,
)
from ghtranscript.services.transcript.pipeline import build_document
from ghtranscript.services.transcript.scratch import provision_scratch_dir

logger = logging.getLogger(__name__)

T = TypeVar("T")

OutcomeStatus = Literal["ok", "not_found", "rate_limited", "failed"]


class TranscriptError(Exception):
    """A document could not be produced (fatal fetch failure or retries exhausted)."""


@dataclass
class RenderOutcome:
    """Typed result of one render attempt."""

    status: OutcomeStatus
    document: str = ""
    message: str = ""


@dataclass
class FetchedResources:
    """Everything fetched for one resource, buffered before rendering."""

    issue: IssueDetails
    comments: list[Comment]
    events: list[TimelineEvent]
    reviews: list[Review] = field(default_factory=list)
    review_comments: list[ReviewComment] = field(default_factory=list)
    commits: list[Commit] = field(default_factory=list)
    diff: str | None = None
    changed_files: list[str] | None = None
    check_status: CheckStatus | None = None
    image_map: dict[str, Path] = field(default_factory=dict)
    link_titles: dict[str, str] = field(default_factory=dict)

    @property
    def records(self) -> list[Record]:
        """Non-timeline records in tie-breaking arrival order."""
        return [*self.comments, *self.reviews, *self.review_comments, *self.commits]

    @property
    def bodies(self) -> list[str]:
        return [
            self.issue.body,
            *(c.body for c in self.comments),
            *(r.body for r in self.reviews),
            *(rc.body for rc in self.review_comments),
            *(c.body for c in self.commits),
        ]


async def _cancel_all(tasks: list[asyncio.Task]) -> None:
    """Cancel every unfinished task and wait for them to wind down."""
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class TranscriptOrchestrator:
    """
    Fetches and renders one issue or pull request.

    All collaborators are passed in explicitly: the data provider, settings,
    the display time zone and the per-invocation link title cache.
    """

    def __init__(
        self,
        github: GitHubReadOperations,
        config: Settings,
        tz: tzinfo | None = None,
    ) -> None:
        self.github = github
        self.config = config
        self.tz = tz
        # Survives retries within this invocation only
        self.title_cache = new_title_cache()
        self._title_lookup = make_title_lookup(github.get_issue_title)

    async def _soft(self, awaitable: Awaitable[T], default: T, what: str) -> T:
        """Await an auxiliary fetch, degrading to `default` if it fails."""
        try:
            return await awaitable
        except GitHubAPIError as e:
            logger.warning(f"Could not fetch {what}, continuing without it: {e.message}")
            return default

    async def _fetch_primary(self, ref: ResourceRef) -> IssueDetails:
        """Fetch metadata; classify failures as not found / rate limited / fatal."""
        try:
            return await self.github.get_issue(ref)
        except GitHubAPIError as e:
            logger.warning(f"Primary fetch failed for {ref}: {e.message}")
            diagnosed = await self.github.diagnose_failure(e, str(ref))
            if diagnosed is e:
                raise
            raise diagnosed from e

    async def _fetch_diff(
        self,
        ref: ResourceRef,
        pull: PullDetails,
        diff_threshold: int,
    ) -> tuple[str | None, list[str] | None]:
        """Fetch either the full diff or only the changed file names."""
        if wants_full_diff(pull, diff_threshold):
            diff = await self._soft(self.github.get_diff(ref), None, f"diff of {ref}")
            return diff, None

        logger.info(
            f"{ref} changes {pull.changed_lines} lines (threshold {diff_threshold}); "
            "listing file names only"
        )
        files = await self._soft(self.github.get_changed_files(ref), None, f"files of {ref}")
        return None, files

    async def _localize_images(
        self,
        issue: IssueDetails,
        comments: list[Comment],
        scratch_dir: Path | None,
    ) -> dict[str, Path]:
        if scratch_dir is None:
            return {}
        return await localize_images(
            [issue.body_html, *(c.body_html for c in comments)],
            [issue.body, *(c.body for c in comments)],
            scratch_dir,
            self.github.download,
            max_concurrent=self.config.max_concurrent_downloads,
        )

    async def fetch(
        self,
        ref: ResourceRef,
        diff_threshold: int,
        scratch_dir: Path | None = None,
    ) -> FetchedResources:
        """
        Fetch every artifact of the resource concurrently.

        Required fetches (metadata, comments, reviews, commits) propagate
        their failure after cancelling all sibling tasks; auxiliary ones
        (timeline, review comments, diff, CI status, images, link titles)
        degrade to empty results.

        Args:
            ref: The issue or pull request
            diff_threshold: Changed-line count at which the diff is replaced by a file list
            scratch_dir: Directory for downloaded images (None disables downloads)

        Returns:
            FetchedResources with all results buffered
        """
        github = self.github

        primary_task = asyncio.create_task(self._fetch_primary(ref))
        comments_task = asyncio.create_task(github.get_issue_comments(ref))
        timeline_task = asyncio.create_task(
            self._soft(github.get_timeline(ref), [], f"timeline of {ref}")
        )
        tasks: list[asyncio.Task] = [primary_task, comments_task, timeline_task]

        reviews_task = review_comments_task = commits_task = None
        if ref.is_pull:
            reviews_task = asyncio.create_task(github.get_reviews(ref))
            review_comments_task = asyncio.create_task(
                self._soft(github.get_review_comments(ref), [], f"review comments of {ref}")
            )
            commits_task = asyncio.create_task(github.get_commits(ref))
            tasks += [reviews_task, review_comments_task, commits_task]

        try:
            issue = await primary_task

            # Depend on metadata: diff size and open/merged state
            diff_task = checks_task = None
            if issue.pull is not None:
                diff_task = asyncio.create_task(self._fetch_diff(ref, issue.pull, diff_threshold))
                tasks.append(diff_task)
                if should_fetch_checks(issue):
                    checks_task = asyncio.create_task(
                        self._soft(
                            github.get_check_status(ref.owner, ref.repo, issue.pull.head_sha),
                            None,
                            f"CI status of {ref}",
                        )
                    )
                    tasks.append(checks_task)
                else:
                    logger.debug(f"{ref} is closed or merged; skipping CI status")

            comments = await comments_task
            images_task = asyncio.create_task(self._localize_images(issue, comments, scratch_dir))
            tasks.append(images_task)

            resources = FetchedResources(
                issue=issue,
                comments=comments,
                events=await timeline_task,
                reviews=await reviews_task if reviews_task else [],
                review_comments=await review_comments_task if review_comments_task else [],
                commits=await commits_task if commits_task else [],
            )

            # Link titles resolve while images are still downloading
            resources.link_titles = await resolve_link_titles(
                find_issue_links(resources.bodies), self._title_lookup, self.title_cache
            )
            resources.image_map = await images_task
            if diff_task is not None:
                resources.diff, resources.changed_files = await diff_task
            if checks_task is not None:
                resources.check_status = await checks_task
        except BaseException:
            await _cancel_all(tasks)
            raise

        logger.info(
            f"Fetched {ref}: {len(resources.comments)} comment(s), {len(resources.events)} event(s), "
            f"{len(resources.reviews)} review(s), {len(resources.review_comments)} review comment(s), "
            f"{len(resources.commits)} commit(s)"
        )
        return resources

    def _trailing_sections(self, resources: FetchedResources, diff_threshold: int) -> list[str]:
        pull = resources.issue.pull
        if pull is None:
            return []

        sections = []
        if resources.diff is not None:
            sections.append(render_diff_section(resources.diff))
        elif resources.changed_files is not None:
            sections.append(render_files_section(resources.changed_files, pull, diff_threshold))
        if resources.check_status is not None:
            sections.append(render_check_section(resources.check_status))
        return sections

    def _provision(self, ref: ResourceRef) -> Path | None:
        try:
            return provision_scratch_dir(ref, self.config.scratch_root or None)
        except OSError as e:
            logger.warning(f"No scratch directory for {ref}, images stay remote: {e}")
            return None

    async def render(self, ref: ResourceRef, diff_threshold: int) -> str:
        """
        Fetch and render the document once.

        Raises:
            NotFoundError, RateLimitedError, GitHubAPIError: From required fetches
        """
        scratch_dir = self._provision(ref)
        resources = await self.fetch(ref, diff_threshold, scratch_dir)

        ctx = RenderContext(
            image_map=resources.image_map,
            link_titles=resources.link_titles,
            tz=self.tz,
        )
        return build_document(
            resources.issue,
            ref,
            resources.records,
            resources.events,
            ctx,
            self._trailing_sections(resources, diff_threshold),
        )

    async def attempt(self, ref: ResourceRef, diff_threshold: int) -> RenderOutcome:
        """Run one render and convert failures into a typed outcome."""
        try:
            document = await self.render(ref, diff_threshold)
        except NotFoundError as e:
            return RenderOutcome(
                "not_found",
                message=(
                    f"{ref} was not found ({e.message}). Check the URL and that "
                    "your token can access the repository."
                ),
            )
        except RateLimitedError as e:
            return RenderOutcome("rate_limited", message=e.message)
        except GitHubAPIError as e:
            return RenderOutcome("failed", message=f"Failed to render {ref}: {e}")
        return RenderOutcome("ok", document=document)

    async def render_with_retry(self, ref: ResourceRef, diff_threshold: int) -> RenderOutcome:
        """
        Render, retrying the whole attempt while GitHub reports rate limiting.

        Returns:
            The first non-rate-limited outcome, or the last rate-limited one
            once max_attempts is reached
        """
        max_attempts = max(1, self.config.max_attempts)
        attempt = 1
        while True:
            outcome = await self.attempt(ref, diff_threshold)
            match outcome.status:
                case "rate_limited" if attempt < max_attempts:
                    delay = random.uniform(self.config.retry_backoff_min, self.config.retry_backoff_max)
                    logger.warning(
                        f"Rate limited rendering {ref} (attempt {attempt}/{max_attempts}); "
                        f"retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    attempt += 1
                case _:
                    return outcome


async def render_document(
    url: str,
    diff_threshold: int | None = None,
    *,
    config: Settings = settings,
    tz: tzinfo | None = None,
) -> str:
    """
    Render a GitHub issue or pull request URL into one markdown document.

    This is the main entry point for the CLI.

    Args:
        url: Issue or pull request URL
        diff_threshold: Override for config.diff_threshold
        config: Settings (defaults to the environment-loaded settings)
        tz: Display time zone (default: local)

    Returns:
        The rendered document, or a user-facing message when the resource
        does not exist

    Raises:
        InvalidResourceURL: If the URL is not an issue or PR URL
        TranscriptError: If the document could not be produced
    """
    ref = parse_resource_url(url)
    threshold = config.diff_threshold if diff_threshold is None else diff_threshold

    async with github_client(config) as client:
        github = GitHubReadOperations(
            client,
            token=config.github_token,
            base_url=config.github_api_url,
            max_pages=config.max_pages,
        )
        orchestrator = TranscriptOrchestrator(github, config, tz=tz)
        outcome = await orchestrator.render_with_retry(ref, threshold)

    match outcome.status:
        case "ok":
            return outcome.document
        case "not_found":
            return outcome.message
        case "rate_limited":
            raise TranscriptError(f"Gave up on {ref} after repeated rate limiting: {outcome.message}")
        case _:
            raise TranscriptError(outcome.message)
