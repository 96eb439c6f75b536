"""
Per-kind renderers.

Each renderer turns one record (or event group) into a markdown block: a
heading naming the author, the local time and a link back to GitHub, followed
by the rewritten body. Renderers return None for records that should not
appear in the document.
"""

import re
from datetime import datetime, tzinfo

from ghtranscript.schemas import (
    AssignmentEvent,
    BranchEvent,
    Comment,
    Commit,
    CrossReferenceEvent,
    DeploymentEvent,
    DraftEvent,
    EventGroup,
    LabelEvent,
    LockEvent,
    MergeEvent,
    MilestoneEvent,
    PinEvent,
    ReferenceEvent,
    RenameEvent,
    Review,
    ReviewComment,
    ReviewRequestEvent,
    StateEvent,
    normalize_timestamp,
)
from ghtranscript.services.github.types import IssueDetails, ResourceRef
from ghtranscript.services.transcript.context import RenderContext
from ghtranscript.services.transcript.images import apply_image_map
from ghtranscript.services.transcript.links import apply_link_titles

TIME_FORMAT = "%Y-%m-%d %H:%M %Z"
EMPTY_BODY = "_No description provided._"

_REVIEW_ACTIONS = {
    "APPROVED": ("✅", "approved these changes"),
    "CHANGES_REQUESTED": ("🔴", "requested changes"),
    "COMMENTED": ("👀", "reviewed"),
    "DISMISSED": ("🚫", "left a review (dismissed)"),
}

_CLOSE_REASONS = {
    "completed": "as completed",
    "not_planned": "as not planned",
    "duplicate": "as a duplicate",
}


def format_time(value: datetime | None, tz: tzinfo | None = None) -> str:
    """Format a timestamp in the given zone (local zone when tz is None)."""
    if value is None:
        return "unknown time"
    return normalize_timestamp(value).astimezone(tz).strftime(TIME_FORMAT).strip()


def fence(text: str, lang: str = "") -> str:
    """Wrap text in a code fence longer than any backtick run inside it."""
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    marker = "`" * max(3, longest + 1)
    return f"{marker}{lang}\n{text.rstrip()}\n{marker}"


def rewrite_body(text: str, ctx: RenderContext) -> str:
    """Apply image localization and link hydration to a markdown body."""
    # Link hydration needs the space before a leading URL, so strip last
    text = (text or "").replace("\r\n", "\n")
    text = apply_image_map(text, ctx.image_map)
    return apply_link_titles(text, ctx.link_titles).strip()


def _heading(
    icon: str,
    who: str,
    action: str,
    when: datetime | None,
    ctx: RenderContext,
    url: str | None = None,
) -> str:
    heading = f"### {icon} {who} {action} · {format_time(when, ctx.tz)}"
    if url:
        heading += f" · [link]({url})"
    return heading


def _with_body(heading: str, body: str) -> str:
    return f"{heading}\n\n{body}" if body else heading


# ─────────────────────────────────────────────────────────────────────────────
# Records
# ─────────────────────────────────────────────────────────────────────────────


def render_comment(comment: Comment, ctx: RenderContext) -> str:
    heading = _heading("💬", f"@{comment.author}", "commented", comment.created_at, ctx, comment.html_url)
    return _with_body(heading, rewrite_body(comment.body, ctx) or EMPTY_BODY)


def render_review(review: Review, ctx: RenderContext) -> str | None:
    # Pending reviews haven't been submitted yet
    if review.state == "PENDING":
        return None
    icon, action = _REVIEW_ACTIONS.get(review.state, _REVIEW_ACTIONS["COMMENTED"])
    heading = _heading(icon, f"@{review.author}", action, review.submitted_at, ctx, review.html_url)
    return _with_body(heading, rewrite_body(review.body, ctx))


def render_review_comment(comment: ReviewComment, ctx: RenderContext) -> str:
    action = f"commented on `{comment.path}`" if comment.path else "commented on the diff"
    heading = _heading("🔍", f"@{comment.author}", action, comment.created_at, ctx, comment.html_url)
    parts = [heading]
    if comment.diff_hunk:
        parts.append(fence(comment.diff_hunk, "diff"))
    parts.append(rewrite_body(comment.body, ctx) or EMPTY_BODY)
    return "\n\n".join(parts)


def render_commit(commit: Commit, ctx: RenderContext) -> str:
    heading = _heading("📝", ", ".join(commit.authors), f"committed `{commit.short_sha}`", commit.committed_at, ctx)
    body = f"**{commit.headline}**" if commit.headline else ""
    if commit.body:
        body = f"{body}\n\n{rewrite_body(commit.body, ctx)}".strip()
    return _with_body(heading, body)


# ─────────────────────────────────────────────────────────────────────────────
# Timeline events
# ─────────────────────────────────────────────────────────────────────────────


def describe_group(group: EventGroup) -> str | None:
    """
    Phrase for what the group's actor did, or None for kinds we don't render.

    Groupable kinds list every event's payload; other kinds are singletons.
    """
    events = group.events
    first = group.first

    match first:
        case LabelEvent():
            names = ", ".join(e.label.name for e in events)
            noun = "label" if len(events) == 1 else "labels"
            verb = "added" if first.kind == "labeled" else "removed"
            return f"{verb} {noun} {names}"
        case AssignmentEvent():
            if len(events) == 1 and first.assignee.login == first.actor_login:
                return "self-assigned this" if first.kind == "assigned" else "removed their assignment"
            who = ", ".join(f"@{e.assignee.login}" for e in events)
            return f"assigned {who}" if first.kind == "assigned" else f"unassigned {who}"
        case ReviewRequestEvent():
            who = ", ".join(e.reviewer_name for e in events)
            if first.kind == "review_requested":
                return f"requested review from {who}"
            return f"removed the review request for {who}"
        case MilestoneEvent():
            if first.kind == "milestoned":
                return f"added this to the **{first.milestone.title}** milestone"
            return f"removed this from the **{first.milestone.title}** milestone"
        case RenameEvent():
            return f"changed the title ~~{first.rename.from_}~~ → **{first.rename.to}**"
        case StateEvent():
            if first.kind == "reopened":
                return "reopened this"
            phrase = "closed this"
            if first.commit_id:
                phrase += f" in `{first.commit_id[:7]}`"
            reason = _CLOSE_REASONS.get(first.state_reason or "")
            return f"{phrase} {reason}" if reason else phrase
        case CrossReferenceEvent():
            issue = first.source.issue
            if issue is None:
                return None
            repo = issue.repository.full_name if issue.repository else ""
            label = f"{repo}#{issue.number}: {issue.title}" if issue.title else f"{repo}#{issue.number}"
            return f"mentioned this in [{label}]({issue.html_url})" if issue.html_url else f"mentioned this in {label}"
        case ReferenceEvent():
            if not first.commit_id:
                return None
            sha = first.commit_id[:7]
            return f"referenced this in commit [`{sha}`]({first.commit_url})" if first.commit_url else f"referenced this in commit `{sha}`"
        case MergeEvent():
            return f"merged commit `{first.commit_id[:7]}`" if first.commit_id else "merged this"
        case BranchEvent():
            return {
                "head_ref_force_pushed": "force-pushed the head branch",
                "head_ref_deleted": "deleted the head branch",
                "head_ref_restored": "restored the head branch",
            }[first.kind]
        case DraftEvent():
            if first.kind == "ready_for_review":
                return "marked this pull request as ready for review"
            return "marked this pull request as draft"
        case DeploymentEvent():
            return "deployed this"
        case LockEvent():
            if first.kind == "unlocked":
                return "unlocked this conversation"
            return f"locked this conversation as {first.lock_reason}" if first.lock_reason else "locked this conversation"
        case PinEvent():
            return "pinned this" if first.kind == "pinned" else "unpinned this"
    return None


def render_event_group(group: EventGroup, ctx: RenderContext) -> str | None:
    """One line: '**@actor** <phrase> · <time>'."""
    phrase = describe_group(group)
    if phrase is None:
        return None
    actor = f"@{group.actor_login}" if group.actor_login else "Someone"
    return f"**{actor}** {phrase} · {format_time(group.created_at, ctx.tz)}"


# ─────────────────────────────────────────────────────────────────────────────
# Document header
# ─────────────────────────────────────────────────────────────────────────────


def describe_state(issue: IssueDetails) -> str:
    if issue.pull is not None and issue.pull.merged:
        return "Merged"
    if issue.state == "closed":
        reason = (issue.state_reason or "").replace("_", " ")
        return f"Closed ({reason})" if reason else "Closed"
    if issue.pull is not None and issue.pull.draft:
        return "Open (draft)"
    return "Open"


def render_header(issue: IssueDetails, ref: ResourceRef, ctx: RenderContext) -> str:
    """Title, metadata list and the rewritten opening body."""
    facts = [
        ("Type", "Pull request" if issue.is_pull else "Issue"),
        ("Repository", ref.full_name),
        ("State", describe_state(issue)),
        ("Author", f"@{issue.author}"),
        ("Created", format_time(issue.created_at, ctx.tz)),
    ]
    if issue.closed_at and not (issue.pull and issue.pull.merged):
        facts.append(("Closed", format_time(issue.closed_at, ctx.tz)))
    if issue.labels:
        facts.append(("Labels", ", ".join(issue.labels)))
    if issue.assignees:
        facts.append(("Assignees", ", ".join(f"@{a}" for a in issue.assignees)))
    if issue.milestone:
        facts.append(("Milestone", issue.milestone))
    if issue.pull is not None:
        pull = issue.pull
        if pull.merged:
            facts.append(("Merged", format_time(pull.merged_at, ctx.tz)))
        facts.append(("Branch", f"`{pull.head_ref}` → `{pull.base_ref}`"))
        facts.append(
            ("Changes", f"+{pull.additions} −{pull.deletions} across {pull.changed_files} file(s)")
        )
    facts.append(("URL", issue.html_url))

    lines = [f"# {issue.title} (#{issue.number})", ""]
    lines.extend(f"- **{name}:** {value}" for name, value in facts)
    lines.extend(["", rewrite_body(issue.body, ctx) or EMPTY_BODY])
    return "\n".join(lines)
