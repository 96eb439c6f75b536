"""Pydantic schemas for issue/PR timeline events.

GitHub's timeline endpoint returns a loosely-typed array where each element is
tagged by its `event` field and only carries the fields relevant to that kind.
Each kind (or family of kinds sharing a payload) gets its own model here, and
`parse_timeline_event` picks the right one through a discriminated union.

Kinds we don't render (commented, committed, reviewed, subscribed, ...) parse
into `UnknownEvent`; those are duplicated by the dedicated comment/commit/review
endpoints anyway.
"""

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ghtranscript.schemas.common import OptionalTimestamp

logger = logging.getLogger(__name__)


class Actor(BaseModel):
    """A GitHub user reference (actor, assignee, requested reviewer)."""

    model_config = ConfigDict(frozen=True)

    login: str


class LabelRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class MilestoneRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str


class TeamRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    slug: str | None = None


class RenameChange(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str = Field(alias="from")
    to: str


class SourceRepository(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_name: str


class SourceIssue(BaseModel):
    """The issue or PR that mentioned this one."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str = ""
    html_url: str = ""
    repository: SourceRepository | None = None


class CrossReferenceSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = "issue"
    issue: SourceIssue | None = None


class TimelineEventBase(BaseModel):
    """Fields shared by every timeline event."""

    model_config = ConfigDict(frozen=True)

    event: str
    actor: Actor | None = None
    created_at: OptionalTimestamp = None

    @property
    def kind(self) -> str:
        return self.event

    @property
    def actor_login(self) -> str | None:
        return self.actor.login if self.actor else None


class LabelEvent(TimelineEventBase):
    event: Literal["labeled", "unlabeled"]
    label: LabelRef


class MilestoneEvent(TimelineEventBase):
    event: Literal["milestoned", "demilestoned"]
    milestone: MilestoneRef


class AssignmentEvent(TimelineEventBase):
    event: Literal["assigned", "unassigned"]
    assignee: Actor


class RenameEvent(TimelineEventBase):
    event: Literal["renamed"]
    rename: RenameChange


class StateEvent(TimelineEventBase):
    event: Literal["closed", "reopened"]
    state_reason: str | None = None
    commit_id: str | None = None


class CrossReferenceEvent(TimelineEventBase):
    event: Literal["cross-referenced"]
    source: CrossReferenceSource


class ReferenceEvent(TimelineEventBase):
    event: Literal["referenced"]
    commit_id: str | None = None
    commit_url: str | None = None


class MergeEvent(TimelineEventBase):
    event: Literal["merged"]
    commit_id: str | None = None


class ReviewRequestEvent(TimelineEventBase):
    event: Literal["review_requested", "review_request_removed"]
    requested_reviewer: Actor | None = None
    requested_team: TeamRef | None = None

    @property
    def reviewer_name(self) -> str:
        """'@login' for a user, the team name for a team request."""
        if self.requested_reviewer is not None:
            return f"@{self.requested_reviewer.login}"
        if self.requested_team is not None:
            return self.requested_team.name
        return "someone"


class BranchEvent(TimelineEventBase):
    event: Literal["head_ref_force_pushed", "head_ref_deleted", "head_ref_restored"]


class DraftEvent(TimelineEventBase):
    event: Literal["ready_for_review", "convert_to_draft"]


class DeploymentEvent(TimelineEventBase):
    event: Literal["deployed"]


class LockEvent(TimelineEventBase):
    event: Literal["locked", "unlocked"]
    lock_reason: str | None = None


class PinEvent(TimelineEventBase):
    event: Literal["pinned", "unpinned"]


class UnknownEvent(TimelineEventBase):
    """Any event kind without a dedicated model. Renders to nothing."""


KnownTimelineEvent = Annotated[
    Union[
        LabelEvent,
        MilestoneEvent,
        AssignmentEvent,
        RenameEvent,
        StateEvent,
        CrossReferenceEvent,
        ReferenceEvent,
        MergeEvent,
        ReviewRequestEvent,
        BranchEvent,
        DraftEvent,
        DeploymentEvent,
        LockEvent,
        PinEvent,
    ],
    Field(discriminator="event"),
]

TimelineEvent = Union[
    LabelEvent,
    MilestoneEvent,
    AssignmentEvent,
    RenameEvent,
    StateEvent,
    CrossReferenceEvent,
    ReferenceEvent,
    MergeEvent,
    ReviewRequestEvent,
    BranchEvent,
    DraftEvent,
    DeploymentEvent,
    LockEvent,
    PinEvent,
    UnknownEvent,
]

KNOWN_EVENT_KINDS = frozenset(
    {
        "labeled",
        "unlabeled",
        "milestoned",
        "demilestoned",
        "assigned",
        "unassigned",
        "renamed",
        "closed",
        "reopened",
        "cross-referenced",
        "referenced",
        "merged",
        "review_requested",
        "review_request_removed",
        "head_ref_force_pushed",
        "head_ref_deleted",
        "head_ref_restored",
        "ready_for_review",
        "convert_to_draft",
        "deployed",
        "locked",
        "unlocked",
        "pinned",
        "unpinned",
    }
)

_known_adapter: TypeAdapter[Any] = TypeAdapter(KnownTimelineEvent)


def parse_timeline_event(data: dict[str, Any]) -> TimelineEvent:
    """
    Convert one raw timeline element into its typed variant.

    A known kind whose payload doesn't validate is downgraded to UnknownEvent
    (logged) rather than failing the whole timeline.

    Malformed timestamps become None, so the fallback itself never raises.
    """
    kind = str(data.get("event") or "unknown")
    if kind in KNOWN_EVENT_KINDS:
        try:
            return _known_adapter.validate_python(data)
        except ValidationError as e:
            logger.warning(f"Malformed '{kind}' timeline event, skipping payload: {e.error_count()} error(s)")

    return UnknownEvent(
        event=kind,
        actor=_safe_actor(data.get("actor")),
        created_at=data.get("created_at"),
    )


def _safe_actor(raw: Any) -> Actor | None:
    if isinstance(raw, dict) and isinstance(raw.get("login"), str) and raw["login"]:
        return Actor(login=raw["login"])
    return None
