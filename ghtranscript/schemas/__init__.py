"""Pydantic schemas for transcript records and timeline events."""

from ghtranscript.schemas.records import (
    EPOCH,
    Comment,
    Commit,
    EventGroup,
    Record,
    Review,
    ReviewComment,
    normalize_timestamp,
    ordering_timestamp,
)
from ghtranscript.schemas.timeline import (
    Actor,
    AssignmentEvent,
    BranchEvent,
    CrossReferenceEvent,
    DeploymentEvent,
    DraftEvent,
    LabelEvent,
    LockEvent,
    MergeEvent,
    MilestoneEvent,
    PinEvent,
    ReferenceEvent,
    RenameEvent,
    ReviewRequestEvent,
    StateEvent,
    TimelineEvent,
    TimelineEventBase,
    UnknownEvent,
    parse_timeline_event,
)

__all__ = [
    # Records
    "Comment",
    "Commit",
    "EventGroup",
    "Record",
    "Review",
    "ReviewComment",
    "EPOCH",
    "normalize_timestamp",
    "ordering_timestamp",
    # Timeline events
    "Actor",
    "AssignmentEvent",
    "BranchEvent",
    "CrossReferenceEvent",
    "DeploymentEvent",
    "DraftEvent",
    "LabelEvent",
    "LockEvent",
    "MergeEvent",
    "MilestoneEvent",
    "PinEvent",
    "ReferenceEvent",
    "RenameEvent",
    "ReviewRequestEvent",
    "StateEvent",
    "TimelineEvent",
    "TimelineEventBase",
    "UnknownEvent",
    "parse_timeline_event",
]
