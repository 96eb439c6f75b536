"""Diff verbosity and CI status policy for pull requests."""

from ghtranscript.services.github.constants import (
    CHECK_CONCLUSION_ICONS,
    FAILING_OUTCOMES,
    PENDING_ICON,
    STATUS_ICONS,
    UNKNOWN_ICON,
)
from ghtranscript.services.github.types import (
    CheckRunEntry,
    CheckStatus,
    CommitStatusEntry,
    IssueDetails,
    PullDetails,
)
from ghtranscript.services.transcript.render import fence


def wants_full_diff(pull: PullDetails, threshold: int) -> bool:
    """Full diff only while additions + deletions stay strictly below the threshold."""
    return pull.changed_lines < threshold


def should_fetch_checks(issue: IssueDetails) -> bool:
    """CI status is only interesting for pull requests that are still open."""
    return issue.is_pull and not issue.is_closed


def render_diff_section(diff: str) -> str:
    return f"## Diff\n\n{fence(diff, 'diff')}"


def render_files_section(files: list[str], pull: PullDetails, threshold: int) -> str:
    note = (
        f"_{pull.changed_lines} changed lines (threshold {threshold}); "
        f"showing file names only._"
    )
    listing = "\n".join(files)
    return f"## Changed files\n\n{note}\n\n{fence(listing)}"


def status_icon(entry: CommitStatusEntry) -> str:
    return STATUS_ICONS.get(entry.state, UNKNOWN_ICON)


def check_run_icon(run: CheckRunEntry) -> str:
    if run.status != "completed":
        return PENDING_ICON
    return CHECK_CONCLUSION_ICONS.get(run.conclusion or "", UNKNOWN_ICON)


def overall_status(status: CheckStatus) -> tuple[str, str]:
    """
    Reduce all statuses and check runs to one (icon, summary).

    Any failing outcome wins, then anything still running, then success.
    """
    if status.is_empty:
        return "⚪", "No checks reported"

    outcomes = [s.state for s in status.statuses]
    for run in status.check_runs:
        completed = run.status == "completed"
        outcomes.append((run.conclusion or "pending") if completed else "pending")

    failed = sum(1 for o in outcomes if o in FAILING_OUTCOMES)
    if failed:
        return "❌", f"{failed} of {len(outcomes)} checks failed"
    if "pending" in outcomes:
        return PENDING_ICON, "Checks in progress"
    return "✅", f"All {len(outcomes)} checks passed"


def render_check_section(status: CheckStatus) -> str:
    lines = ["## CI status", ""]

    for entry in status.statuses:
        line = f"- {status_icon(entry)} **{entry.context}**"
        if entry.description:
            line += f": {entry.description}"
        if entry.target_url:
            line += f" ([details]({entry.target_url}))"
        lines.append(line)

    for run in status.check_runs:
        line = f"- {check_run_icon(run)} **{run.name}**"
        if run.html_url:
            line += f" ([details]({run.html_url}))"
        lines.append(line)

    icon, summary = overall_status(status)
    if len(lines) > 2:
        lines.append("")
    lines.append(f"**Overall:** {icon} {summary}")
    return "\n".join(lines)
