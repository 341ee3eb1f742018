"""Epic tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import arg
from ..exceptions import operation
from ..pagination import MAX_PER_PAGE, all_pages, all_with_id, collect
from ..scalars import ID
from .gitlab import _get_client, tool

GROUP_ID = "ID of the group, either the numeric ID or the 'owner/namespace' path"


@dataclass
class ListGroupEpicsArgs:
    group_id: ID = arg(GROUP_ID, required=True)
    state: str = arg(
        "Return all epics or only those that are opened or closed", enum=("all", "opened", "closed")
    )


@tool("list_group_epics", ListGroupEpicsArgs, tags={"epics"}, read_only=True)
async def list_group_epics(ctx: Context, args: ListGroupEpicsArgs) -> list[dict]:
    """List the epics of a group."""
    params: dict[str, Any] = {"per_page": MAX_PER_PAGE}
    if args.state:
        params["state"] = args.state
    group_id = args.group_id.value()
    with operation(f"list_group_epics({group_id!r})"):
        return await collect(all_with_id(group_id, _get_client(ctx).list_group_epics, params))


@dataclass
class EpicArgs:
    group_id: ID = arg(GROUP_ID, required=True)
    epic_iid: int = arg("Internal ID of the epic", required=True)


@tool("get_epic", EpicArgs, tags={"epics"}, read_only=True)
async def get_epic(ctx: Context, args: EpicArgs) -> dict:
    """Get a single epic of a group."""
    group_id = args.group_id.value()
    with operation(f"get_epic({group_id!r}, {args.epic_iid})"):
        return await _get_client(ctx).get_epic(group_id, args.epic_iid)


@tool("get_epic_links", EpicArgs, tags={"epics"}, read_only=True)
async def get_epic_links(ctx: Context, args: EpicArgs) -> list[dict]:
    """List the child epics of an epic."""
    group_id = args.group_id.value()
    with operation(f"list_epic_links({group_id!r}, {args.epic_iid})"):
        return await _get_client(ctx).list_epic_links(group_id, args.epic_iid)


@tool("list_epic_issues", EpicArgs, tags={"epics", "issues"}, read_only=True)
async def list_epic_issues(ctx: Context, args: EpicArgs) -> list[dict]:
    """List the issues assigned to an epic."""
    client = _get_client(ctx)
    group_id = args.group_id.value()

    async def fetch(p: dict[str, Any]) -> tuple[list, int]:
        return await client.list_epic_issues(group_id, args.epic_iid, p)

    with operation(f"list_epic_issues({group_id!r}, {args.epic_iid})"):
        return await collect(all_pages(fetch, {"per_page": MAX_PER_PAGE}))
