"""Timeline grouping.

Collapses runs of timeline events that share actor, timestamp and kind into a
single EventGroup so e.g. adding three labels at once renders as one line.
"""

from collections.abc import Iterable

from ghtranscript.schemas import EventGroup, TimelineEvent
from ghtranscript.services.github.constants import GROUPABLE_EVENT_KINDS


def joins_group(group: list[TimelineEvent], event: TimelineEvent) -> bool:
    """Whether `event` may extend the open group started by `group[0]`."""
    first = group[0]
    return (
        event.kind in GROUPABLE_EVENT_KINDS
        and event.kind == first.kind
        and event.actor_login == first.actor_login
        # Missing timestamps never match anything
        and event.created_at is not None
        and first.created_at is not None
        and event.created_at == first.created_at
    )


def group_events(events: Iterable[TimelineEvent]) -> list[EventGroup]:
    """
    Partition events into groups in a single left-to-right pass.

    Greedy and local: never looks ahead and never reorders, so concatenating
    the groups' events gives back the input sequence.

    Args:
        events: Timeline events in arrival order

    Returns:
        EventGroups in the same order; non-groupable kinds are singletons
    """
    groups: list[EventGroup] = []
    current: list[TimelineEvent] = []

    for event in events:
        if current and joins_group(current, event):
            current.append(event)
            continue
        if current:
            groups.append(EventGroup(events=current))
        current = [event]

    if current:
        groups.append(EventGroup(events=current))

    return groups
