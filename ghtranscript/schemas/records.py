"""Pydantic schemas for the records that make up a transcript.

Every record exposes exactly one ordering timestamp through
`ordering_timestamp()`. Records are frozen: body rewriting happens at render
time and produces new strings.
"""

from datetime import UTC, datetime
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ghtranscript.schemas.common import OptionalTimestamp
from ghtranscript.schemas.timeline import TimelineEvent, TimelineEventBase

# Records without a timestamp sort as the oldest possible value
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

ReviewState = Literal["APPROVED", "CHANGES_REQUESTED", "COMMENTED", "DISMISSED", "PENDING"]


class Comment(BaseModel):
    """A top-level discussion comment on the issue or PR."""

    model_config = ConfigDict(frozen=True)

    id: int
    author: str
    body: str = ""
    body_html: str = ""
    created_at: OptionalTimestamp = None
    html_url: str | None = None


class Review(BaseModel):
    """A PR-level review verdict."""

    model_config = ConfigDict(frozen=True)

    id: int
    author: str
    state: ReviewState = "COMMENTED"
    body: str = ""
    submitted_at: OptionalTimestamp = None
    html_url: str | None = None


class ReviewComment(BaseModel):
    """An inline comment anchored to a diff line."""

    model_config = ConfigDict(frozen=True)

    author: str
    body: str = ""
    path: str = ""
    diff_hunk: str = ""
    created_at: OptionalTimestamp = None
    html_url: str | None = None


class Commit(BaseModel):
    """A commit included in a PR."""

    model_config = ConfigDict(frozen=True)

    sha: str
    authors: list[str] = Field(min_length=1)
    headline: str
    body: str = ""
    committed_at: OptionalTimestamp = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


class EventGroup(BaseModel):
    """A run of same-actor, same-timestamp, same-kind timeline events.

    Built transiently by timeline grouping; never fetched or persisted.
    """

    model_config = ConfigDict(frozen=True)

    events: list[TimelineEvent] = Field(min_length=1)

    @property
    def first(self) -> TimelineEvent:
        return self.events[0]

    @property
    def kind(self) -> str:
        return self.first.kind

    @property
    def actor_login(self) -> str | None:
        return self.first.actor_login

    @property
    def created_at(self) -> datetime | None:
        return self.first.created_at


# Non-timeline records, in the arrival order used to break timestamp ties
Record = Union[Comment, Review, ReviewComment, Commit]


def normalize_timestamp(value: datetime | None) -> datetime:
    """Return an aware timestamp for ordering; missing values become EPOCH."""
    if value is None:
        return EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def ordering_timestamp(item: Record | TimelineEvent | EventGroup) -> datetime:
    """The single timestamp used to place an item in the document."""
    match item:
        case Comment(created_at=ts) | ReviewComment(created_at=ts):
            return normalize_timestamp(ts)
        case Review(submitted_at=ts):
            return normalize_timestamp(ts)
        case Commit(committed_at=ts):
            return normalize_timestamp(ts)
        case EventGroup() | TimelineEventBase():
            return normalize_timestamp(item.created_at)
    raise TypeError(f"Not an orderable record: {type(item).__name__}")
