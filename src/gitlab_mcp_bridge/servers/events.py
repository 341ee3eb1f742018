"""User contribution event tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import arg
from ..exceptions import operation
from ..pagination import MAX_PER_PAGE, all_with_id, collect
from ._helpers import parse_time
from .gitlab import _current_user, _get_client, tool

TARGET_TYPES = (
    "epic",
    "issue",
    "merge_request",
    "milestone",
    "note",
    "project",
    "snippet",
    "user",
)
ACTION_TYPES = (
    "approved",
    "closed",
    "commented",
    "created",
    "destroyed",
    "expired",
    "joined",
    "left",
    "merged",
    "pushed",
    "reopened",
    "updated",
)
UNBOUNDED_NOTE = "When both 'before' and 'after' are missing, only 100 events are returned."


@dataclass
class ListUserEventsArgs:
    username: str = arg("The username to load events for. Defaults to the current user")
    before: str = arg(f"Only events created before this date (YYYY-MM-DD). {UNBOUNDED_NOTE}")
    after: str = arg(f"Only events created after this date (YYYY-MM-DD). {UNBOUNDED_NOTE}")
    target_type: str = arg(
        "Only events for this target type. If omitted, all target types are returned",
        enum=TARGET_TYPES,
    )
    action_type: str = arg(
        "Only events of this action type. If omitted, all action types are returned",
        enum=ACTION_TYPES,
    )


def _event_params(args: ListUserEventsArgs) -> dict[str, Any]:
    params: dict[str, Any] = {"sort": "desc", "per_page": MAX_PER_PAGE}
    if args.target_type:
        params["target_type"] = args.target_type
    if args.action_type:
        params["action"] = args.action_type
    # GitLab expects plain dates here
    for name in ("before", "after"):
        if parsed := parse_time(name, getattr(args, name)):
            params[name] = parsed.date().isoformat()
    return params


@tool("list_user_events", ListUserEventsArgs, tags={"events", "users"}, read_only=True)
async def list_user_events(ctx: Context, args: ListUserEventsArgs) -> list[dict]:
    """Review the event activity of a user.

    Events cover a wide range of actions, such as joining projects, commenting
    on issues and pushing changes to merge requests. They are returned from
    most recent to oldest.
    """
    client = _get_client(ctx)
    username = args.username or _current_user(ctx)
    params = _event_params(args)
    with operation(f"list_user_events({username!r})"):
        if not (args.before or args.after):
            events, _ = await client.list_user_events(username, params)
            return events
        return await collect(all_with_id(username, client.list_user_events, params))
