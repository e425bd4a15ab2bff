"""Clustering of the notification log into renderable groups."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from acp_bridge.state.events import NotificationEvent, NotificationKind
from acp_bridge.types.notifications import TOOL_CALL_KINDS, SessionNotification, SessionUpdate


class InvariantError(AssertionError):
    """Raised when input breaks an assumption the aggregator relies on."""


def _same_group(a: NotificationEvent, b: NotificationEvent) -> bool:
    if (
        a.kind is NotificationKind.SESSION_NOTIFICATION
        and b.kind is NotificationKind.SESSION_NOTIFICATION
    ):
        # Tool calls cluster together even across different tool call ids
        if a.session_update in TOOL_CALL_KINDS and b.session_update in TOOL_CALL_KINDS:
            return True
        return a.session_update == b.session_update
    return a.kind is b.kind


def group_notifications(events: Iterable[NotificationEvent]) -> list[list[NotificationEvent]]:
    """Split the log into runs of consecutive same-kind events.

    Order is preserved and every event lands in exactly one group.
    """
    groups: list[list[NotificationEvent]] = []
    for event in events:
        if groups and _same_group(groups[-1][0], event):
            groups[-1].append(event)
        else:
            groups.append([event])
    return groups


def tool_call_updates(group: Iterable[NotificationEvent]) -> list[SessionUpdate]:
    """Pull the tool call updates out of a group, in order."""
    return [
        event.data.update
        for event in group
        if isinstance(event.data, SessionNotification) and event.data.update.is_tool_call
    ]


def _merge(updates: Sequence[SessionUpdate]) -> SessionUpdate:
    first = updates[0]
    status = None
    raw_output: Any = None
    locations = []
    content: list[Any] = []
    for update in updates:
        if update.status is not None:
            status = update.status
        if update.raw_output is not None:
            if isinstance(raw_output, Mapping) and isinstance(update.raw_output, Mapping):
                raw_output = {**raw_output, **update.raw_output}
            elif isinstance(update.raw_output, Mapping):
                raw_output = dict(update.raw_output)
            else:
                # Strings and lists replace whatever came before
                raw_output = update.raw_output
        if update.locations:
            locations.extend(update.locations)
        if isinstance(update.content, list):
            content.extend(update.content)
        elif update.content is not None:
            content.append(update.content)

    return first.model_copy(
        update={
            "status": status,
            "raw_output": raw_output,
            "locations": locations,
            "content": content,
        }
    )


def merge_tool_calls(updates: Iterable[SessionUpdate]) -> list[SessionUpdate]:
    """Collapse tool call updates into one record per tool call id.

    Identifying fields (title, kind, raw input) come from the first update of
    each id. Status is the last non-null status: an update that omits its
    status does not clear one reported earlier, so the result can differ
    from taking the final update's status as is. ``raw_output`` is merged
    key by key while both sides are objects; any other JSON value replaces
    the previous one. ``locations`` and ``content`` are concatenated in
    arrival order.

    Raises:
        InvariantError: An update has no tool call id.
    """
    partitions: dict[str, list[SessionUpdate]] = {}
    for update in updates:
        if not update.tool_call_id:
            raise InvariantError("Tool call ID is required")
        partitions.setdefault(update.tool_call_id, []).append(update)
    return [_merge(partition) for partition in partitions.values()]
