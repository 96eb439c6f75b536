"""
Chronological merge & render pipeline.

Puts every record and timeline event into one stable timestamp order, groups
contiguous runs of timeline events, renders each unit, and emits the document.

Two sorts are involved:
1. Records and raw events are sorted together so the walk sees timeline
   events that are adjacent in time as one contiguous run to group.
2. The rendered (timestamp, text) units are sorted again, because a flushed
   group is stamped with its first event's time rather than its position.
Ties keep arrival order in both passes; anything stricter is unspecified.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from ghtranscript.schemas import (
    Comment,
    Commit,
    Record,
    Review,
    ReviewComment,
    TimelineEvent,
    TimelineEventBase,
    ordering_timestamp,
)
from ghtranscript.services.github.types import IssueDetails, ResourceRef
from ghtranscript.services.transcript.context import RenderContext
from ghtranscript.services.transcript.grouping import group_events
from ghtranscript.services.transcript.render import (
    render_comment,
    render_commit,
    render_event_group,
    render_header,
    render_review,
    render_review_comment,
)

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n---\n\n"
NO_ACTIVITY = "_No activity._"


@dataclass(frozen=True)
class RenderedUnit:
    """One rendered block and the timestamp it sorts by."""

    timestamp: datetime
    text: str


def render_record(record: Record, ctx: RenderContext) -> str | None:
    """Dispatch a non-timeline record to its renderer."""
    match record:
        case Comment():
            return render_comment(record, ctx)
        case Review():
            return render_review(record, ctx)
        case ReviewComment():
            return render_review_comment(record, ctx)
        case Commit():
            return render_commit(record, ctx)
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def render_timeline(
    records: Sequence[Record],
    events: Sequence[TimelineEvent],
    ctx: RenderContext,
) -> list[RenderedUnit]:
    """
    Merge, group and render all records and events.

    Args:
        records: Non-timeline records in arrival order (comments, reviews,
            review comments, commits)
        events: Timeline events in API order
        ctx: Render context

    Returns:
        Rendered units in non-decreasing timestamp order
    """
    ordered = sorted([*records, *events], key=ordering_timestamp)

    units: list[RenderedUnit] = []
    pending: list[TimelineEvent] = []

    def flush() -> None:
        for group in group_events(pending):
            text = render_event_group(group, ctx)
            if text:
                units.append(RenderedUnit(ordering_timestamp(group), text))
        pending.clear()

    for item in ordered:
        match item:
            case TimelineEventBase():
                pending.append(item)
            case _:
                flush()
                text = render_record(item, ctx)
                if text:
                    units.append(RenderedUnit(ordering_timestamp(item), text))
    flush()

    units.sort(key=lambda unit: unit.timestamp)
    logger.debug(f"Rendered {len(units)} unit(s) from {len(records)} record(s) and {len(events)} event(s)")
    return units


def build_document(
    issue: IssueDetails,
    ref: ResourceRef,
    records: Sequence[Record],
    events: Sequence[TimelineEvent],
    ctx: RenderContext,
    trailing_sections: Sequence[str] = (),
) -> str:
    """
    Assemble the complete markdown document.

    Args:
        issue: Primary metadata (header and opening body)
        ref: The resource being rendered
        records: Non-timeline records in arrival order
        events: Timeline events in API order
        ctx: Render context
        trailing_sections: Pre-rendered sections appended after the timeline
            (diff or file list, CI status)

    Returns:
        The document as one string, ending with a newline
    """
    units = render_timeline(records, events, ctx)
    timeline = SECTION_SEPARATOR.join(unit.text for unit in units) if units else NO_ACTIVITY

    sections = [render_header(issue, ref, ctx), f"## Timeline\n\n{timeline}", *trailing_sections]
    return "\n\n".join(section.rstrip() for section in sections if section) + "\n"
