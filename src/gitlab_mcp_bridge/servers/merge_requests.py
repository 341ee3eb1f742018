"""Merge request tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import arg
from ..client import GitLabClient
from ..discussions import MergeRequestDiscussions
from ..exceptions import operation
from ..pagination import MAX_PER_PAGE, all_pages, all_with_id, collect, limited
from ..scalars import ID, OptionalBool
from ._helpers import gather_all, label_options, limit_or_default, parse_user_ids
from .gitlab import _check_write, _current_user, _get_client, tool

PROJECT_ID = "ID of the project, either the numeric ID or the 'owner/project' path"
MR_IID = "The internal ID of the merge request"
STATES = ("all", "opened", "closed", "merged")
STATE_FILTER = "Return all merge requests or only those that are opened, closed or merged"
LIMIT = "Maximum number of merge requests to return. Defaults to 1000"


@dataclass
class MergeRequestArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    merge_request_iid: int = arg(MR_IID, required=True)


def _paged(
    fetch: Any, project_id: int | str, mr_iid: int, params: dict[str, Any] | None = None
) -> Any:
    async def page(p: dict[str, Any]) -> tuple[list, int]:
        return await fetch(project_id, mr_iid, p)

    return all_pages(page, {"per_page": MAX_PER_PAGE, **(params or {})})


async def list_all_diffs(client: GitLabClient, project_id: int | str, mr_iid: int) -> list[dict]:
    return await collect(
        _paged(client.list_merge_request_diffs, project_id, mr_iid, {"unidiff": True})
    )


# ════════════════════════════════════════════════════════════════════
# Listing
# ════════════════════════════════════════════════════════════════════


@dataclass
class ListUserMergeRequestsArgs:
    username: str = arg("Username to list merge requests for. Defaults to the authenticated user")
    state: str = arg(STATE_FILTER, enum=STATES)
    role: str = arg(
        "List merge requests the user authored or was asked to review. Defaults to 'author'",
        enum=("author", "reviewer"),
    )
    limit: int = arg(LIMIT)


@tool(
    "list_user_merge_requests",
    ListUserMergeRequestsArgs,
    tags={"merge_requests"},
    read_only=True,
)
async def list_user_merge_requests(ctx: Context, args: ListUserMergeRequestsArgs) -> list[dict]:
    """List merge requests authored by or assigned for review to a user."""
    params: dict[str, Any] = {"scope": "all", "per_page": MAX_PER_PAGE}
    username = args.username or _current_user(ctx)
    if args.role == "reviewer":
        params["reviewer_username"] = username
    else:
        params["author_username"] = username
    if args.state:
        params["state"] = args.state
    seq = all_pages(_get_client(ctx).list_merge_requests, params)
    with operation("list_merge_requests()"):
        return await collect(limited(seq, limit_or_default(args.limit)))


@dataclass
class ListProjectMergeRequestsArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    state: str = arg(STATE_FILTER, enum=STATES)
    limit: int = arg(LIMIT)


@tool(
    "list_project_merge_requests",
    ListProjectMergeRequestsArgs,
    tags={"merge_requests"},
    read_only=True,
)
async def list_project_merge_requests(
    ctx: Context, args: ListProjectMergeRequestsArgs
) -> list[dict]:
    """List the merge requests of a project."""
    params: dict[str, Any] = {"per_page": MAX_PER_PAGE}
    if args.state:
        params["state"] = args.state
    project_id = args.project_id.value()
    seq = all_with_id(project_id, _get_client(ctx).list_project_merge_requests, params)
    with operation(f"list_project_merge_requests({project_id!r})"):
        return await collect(limited(seq, limit_or_default(args.limit)))


@dataclass
class ListGroupMergeRequestsArgs:
    group_id: ID = arg(
        "ID of the group, either the numeric ID or the 'owner/namespace' path", required=True
    )
    state: str = arg(STATE_FILTER, enum=STATES)
    limit: int = arg(LIMIT)


@tool(
    "list_group_merge_requests", ListGroupMergeRequestsArgs, tags={"merge_requests"}, read_only=True
)
async def list_group_merge_requests(ctx: Context, args: ListGroupMergeRequestsArgs) -> list[dict]:
    """List the merge requests of a group and its subgroups."""
    params: dict[str, Any] = {"per_page": MAX_PER_PAGE}
    if args.state:
        params["state"] = args.state
    group_id = args.group_id.value()
    seq = all_with_id(group_id, _get_client(ctx).list_group_merge_requests, params)
    with operation(f"list_group_merge_requests({group_id!r})"):
        return await collect(limited(seq, limit_or_default(args.limit)))


# ════════════════════════════════════════════════════════════════════
# Single merge requests
# ════════════════════════════════════════════════════════════════════


@tool("get_merge_request", MergeRequestArgs, tags={"merge_requests"}, read_only=True)
async def get_merge_request(ctx: Context, args: MergeRequestArgs) -> dict[str, Any]:
    """Get a merge request with its discussions and diffs.

    Fails if any of the three parts cannot be fetched. Internal notes are
    left out of the discussions.
    """
    client = _get_client(ctx)
    project_id = args.project_id.value()
    iid = args.merge_request_iid

    async def fetch_merge_request() -> dict:
        with operation(f"getting merge request IID {iid} (project {project_id})"):
            return await client.get_merge_request(project_id, iid)

    async def fetch_discussions() -> list:
        with operation(f"listing discussions for MR IID {iid} (project {project_id})"):
            manager = MergeRequestDiscussions(client, args.project_id, iid)
            return await manager.list(include_confidential=False)

    async def fetch_diffs() -> list[dict]:
        with operation(f"listing diffs for MR IID {iid} (project {project_id})"):
            return await list_all_diffs(client, project_id, iid)

    merge_request, discussions, diffs = await gather_all(
        fetch_merge_request(), fetch_discussions(), fetch_diffs()
    )
    result: dict[str, Any] = {"merge_request": merge_request}
    if discussions:
        result["discussions"] = discussions
    if diffs:
        result["diffs"] = diffs
    return result


@tool(
    "get_merge_request_approvals", MergeRequestArgs, tags={"merge_requests"}, read_only=True
)
async def get_merge_request_approvals(ctx: Context, args: MergeRequestArgs) -> dict:
    """Get the approval state of a merge request."""
    project_id = args.project_id.value()
    with operation(f"get_merge_request_approvals({project_id!r}, {args.merge_request_iid})"):
        return await _get_client(ctx).get_merge_request_approvals(
            project_id, args.merge_request_iid
        )


@tool("get_merge_request_commits", MergeRequestArgs, tags={"merge_requests"}, read_only=True)
async def get_merge_request_commits(ctx: Context, args: MergeRequestArgs) -> list[dict]:
    """List the commits of a merge request."""
    project_id = args.project_id.value()
    seq = _paged(
        _get_client(ctx).list_merge_request_commits, project_id, args.merge_request_iid
    )
    with operation(f"list_merge_request_commits({project_id!r}, {args.merge_request_iid})"):
        return await collect(seq)


@tool("list_merge_request_diffs", MergeRequestArgs, tags={"merge_requests"}, read_only=True)
async def list_merge_request_diffs(ctx: Context, args: MergeRequestArgs) -> list[dict]:
    """List the file diffs of a merge request in unified diff format."""
    project_id = args.project_id.value()
    with operation(
        f"listing merge request diffs for MR IID {args.merge_request_iid} (project {project_id})"
    ):
        return await list_all_diffs(_get_client(ctx), project_id, args.merge_request_iid)


@tool(
    "get_merge_request_participants", MergeRequestArgs, tags={"merge_requests"}, read_only=True
)
async def get_merge_request_participants(ctx: Context, args: MergeRequestArgs) -> list[dict]:
    """List the users who took part in a merge request."""
    project_id = args.project_id.value()
    with operation(f"get_merge_request_participants({project_id!r}, {args.merge_request_iid})"):
        return await _get_client(ctx).get_merge_request_participants(
            project_id, args.merge_request_iid
        )


@tool("get_merge_request_reviewers", MergeRequestArgs, tags={"merge_requests"}, read_only=True)
async def get_merge_request_reviewers(ctx: Context, args: MergeRequestArgs) -> list[dict]:
    """List the reviewers of a merge request and their review state."""
    project_id = args.project_id.value()
    with operation(f"get_merge_request_reviewers({project_id!r}, {args.merge_request_iid})"):
        return await _get_client(ctx).get_merge_request_reviewers(
            project_id, args.merge_request_iid
        )


@tool("list_merge_request_pipelines", MergeRequestArgs, tags={"merge_requests"}, read_only=True)
async def list_merge_request_pipelines(ctx: Context, args: MergeRequestArgs) -> list[dict]:
    """List the pipelines that ran for a merge request."""
    project_id = args.project_id.value()
    with operation(f"list_merge_request_pipelines({project_id!r}, {args.merge_request_iid})"):
        return await _get_client(ctx).list_merge_request_pipelines(
            project_id, args.merge_request_iid
        )


@tool("get_issues_closed_on_merge", MergeRequestArgs, tags={"merge_requests"}, read_only=True)
async def get_issues_closed_on_merge(ctx: Context, args: MergeRequestArgs) -> list[dict]:
    """List the issues that merging this merge request would close."""
    project_id = args.project_id.value()
    seq = _paged(
        _get_client(ctx).list_merge_request_closes_issues, project_id, args.merge_request_iid
    )
    with operation(f"list_merge_request_closes_issues({project_id!r}, {args.merge_request_iid})"):
        return await collect(seq)


@tool(
    "get_merge_request_dependencies", MergeRequestArgs, tags={"merge_requests"}, read_only=True
)
async def get_merge_request_dependencies(ctx: Context, args: MergeRequestArgs) -> list[dict]:
    """List the merge requests that must be merged before this one."""
    project_id = args.project_id.value()
    with operation(f"get_merge_request_dependencies({project_id!r}, {args.merge_request_iid})"):
        return await _get_client(ctx).get_merge_request_dependencies(
            project_id, args.merge_request_iid
        )


@tool("list_draft_notes", MergeRequestArgs, tags={"merge_requests"}, read_only=True)
async def list_draft_notes(ctx: Context, args: MergeRequestArgs) -> list[dict]:
    """List the unpublished review comments of the current user on a merge request."""
    project_id = args.project_id.value()
    seq = _paged(_get_client(ctx).list_draft_notes, project_id, args.merge_request_iid)
    with operation(f"list_draft_notes({project_id!r}, {args.merge_request_iid})"):
        return await collect(seq)


# ════════════════════════════════════════════════════════════════════
# Edit
# ════════════════════════════════════════════════════════════════════


@dataclass
class EditMergeRequestArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    merge_request_iid: int = arg(MR_IID, required=True)
    title: str = arg("New title of the merge request")
    description: str = arg("New description, in GitLab Flavored Markdown")
    target_branch: str = arg("New target branch")
    assignee_ids: str = arg(
        "Comma-separated user IDs to assign. '-' removes all assignees;"
        " omit to leave assignees unchanged"
    )
    reviewer_ids: str = arg(
        "Comma-separated user IDs to request reviews from. '-' removes all reviewers;"
        " omit to leave reviewers unchanged"
    )
    milestone_id: int = arg("ID of a milestone to assign the merge request to")
    add_labels: str = arg("Comma-separated label names to add")
    remove_labels: str = arg("Comma-separated label names to remove")
    state_event: str = arg(
        "'close' closes the merge request, 'reopen' reopens it. Omit to keep the state",
        enum=("close", "reopen"),
    )
    remove_source_branch: OptionalBool = arg("Delete the source branch when merging")
    squash: OptionalBool = arg("Squash all commits into one when merging")
    discussion_locked: OptionalBool = arg(
        "Lock or unlock the discussion. When locked only project members can comment"
    )
    allow_collaboration: OptionalBool = arg(
        "Allow commits from members who can merge to the target branch"
    )


@tool("edit_merge_request", EditMergeRequestArgs, tags={"merge_requests"}, idempotent=True)
async def edit_merge_request(ctx: Context, args: EditMergeRequestArgs) -> dict:
    """Update a merge request.

    Title, description, target branch, assignees, reviewers, milestone,
    labels, state and merge options can be changed.
    """
    _check_write(ctx)
    payload: dict[str, Any] = {}
    if args.title:
        payload["title"] = args.title
    if args.description:
        payload["description"] = args.description
    if args.target_branch:
        payload["target_branch"] = args.target_branch
    if args.milestone_id:
        payload["milestone_id"] = args.milestone_id
    if (assignee_ids := parse_user_ids(args.assignee_ids)) is not None:
        payload["assignee_ids"] = assignee_ids
    if (reviewer_ids := parse_user_ids(args.reviewer_ids)) is not None:
        payload["reviewer_ids"] = reviewer_ids
    if add_labels := label_options(args.add_labels):
        payload["add_labels"] = ",".join(add_labels)
    if remove_labels := label_options(args.remove_labels):
        payload["remove_labels"] = ",".join(remove_labels)
    if args.state_event:
        payload["state_event"] = args.state_event
    for key in ("remove_source_branch", "squash", "discussion_locked", "allow_collaboration"):
        flag: OptionalBool = getattr(args, key)
        if flag.is_set:
            payload[key] = flag.value

    project_id = args.project_id.value()
    with operation(f"update_merge_request({project_id!r}, {args.merge_request_iid})"):
        return await _get_client(ctx).update_merge_request(
            project_id, args.merge_request_iid, payload
        )
