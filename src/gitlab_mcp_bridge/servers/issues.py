"""Issue tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import arg
from ..discussions import IssueDiscussions
from ..exceptions import PolicyRefusal, operation
from ..models.issues import Issue
from ..pagination import MAX_PER_PAGE, all_pages, all_with_id, collect, limited
from ..scalars import ID, OptionalBool
from ._helpers import (
    DUE_DATES,
    ISSUE_ORDER_BY,
    SORT_ORDER,
    gather_all,
    label_options,
    limit_or_default,
    parse_user_ids,
    put_time,
)
from .gitlab import _check_write, _current_user, _get_client, tool

DEFAULT_STATE = "opened"

PROJECT_ID = "ID of the project, either the numeric ID or the 'owner/project' path"
ISSUE_IID = "The internal ID of the project issue"
STATES = ("all", "opened", "closed")
STATE_FILTER = "Filter issues by state; 'all' returns open and closed. Defaults to 'opened'"
CONFIDENTIAL_FILTER = (
    "If true, confidential issues are included. By default only public issues are returned"
)


def _list_params(
    state: str, confidential: bool, labels: str, milestone: str, order_by: str, sort_order: str
) -> dict[str, Any]:
    params: dict[str, Any] = {"per_page": MAX_PER_PAGE, "state": state or DEFAULT_STATE}
    # true means "no filter"; false restricts to public issues
    if not confidential:
        params["confidential"] = False
    if label_list := label_options(labels):
        params["labels"] = ",".join(label_list)
    if milestone:
        params["milestone"] = milestone
    if order_by:
        params["order_by"] = order_by
    if sort_order:
        params["sort"] = sort_order
    return params


def _put_user_filter(params: dict[str, Any], prefix: str, user: ID) -> None:
    if user.integer:
        params[f"{prefix}_id"] = user.integer
    elif user.string:
        params[f"{prefix}_username"] = user.string


# ════════════════════════════════════════════════════════════════════
# Listing
# ════════════════════════════════════════════════════════════════════


@dataclass
class ListUserIssuesArgs:
    assignee: str = arg(
        "Filter issues by assignee username. Defaults to the authenticated user"
    )
    state: str = arg(STATE_FILTER, enum=STATES)
    confidential: bool = arg(CONFIDENTIAL_FILTER)
    order_by: str = arg("Sort issues by this field. Default is 'created_at'", enum=ISSUE_ORDER_BY)
    sort_order: str = arg("Sort order. Default is 'desc'", enum=SORT_ORDER)
    limit: int = arg("Maximum number of issues to return. Defaults to 1000")
    milestone: str = arg("Milestone title to filter by")
    labels: str = arg("Comma-separated label names to filter by")


@tool("list_user_issues", ListUserIssuesArgs, tags={"issues"}, read_only=True)
async def list_user_issues(ctx: Context, args: ListUserIssuesArgs) -> list[dict]:
    """List issues assigned to a user, across all projects."""
    params = _list_params(
        args.state, args.confidential, args.labels, args.milestone, args.order_by, args.sort_order
    )
    params["scope"] = "all"
    params["assignee_username"] = args.assignee or _current_user(ctx)
    seq = all_pages(_get_client(ctx).list_issues, params)
    with operation("list_issues()"):
        return await collect(limited(seq, limit_or_default(args.limit)))


@dataclass
class IssueFilterArgs:
    state: str = arg(STATE_FILTER, enum=STATES)
    confidential: bool = arg(CONFIDENTIAL_FILTER)
    labels: str = arg("Comma-separated label names to filter by")
    milestone: str = arg("Milestone title to filter by")
    author: ID = arg("Filter by author ID or username")
    assignee: ID = arg("Filter by assignee ID or username")
    search: str = arg("Search issues against their title and description")
    created_after: str = arg(
        "Issues created on or after this time (RFC 3339, 'YYYY-MM-DD HH:MM:SS' or 'YYYY-MM-DD')"
    )
    created_before: str = arg(
        "Issues created on or before this time (RFC 3339, 'YYYY-MM-DD HH:MM:SS' or 'YYYY-MM-DD')"
    )
    updated_after: str = arg(
        "Issues updated on or after this time (RFC 3339, 'YYYY-MM-DD HH:MM:SS' or 'YYYY-MM-DD')"
    )
    updated_before: str = arg(
        "Issues updated on or before this time (RFC 3339, 'YYYY-MM-DD HH:MM:SS' or 'YYYY-MM-DD')"
    )
    due_date: str = arg(
        "Issues with no due date, overdue, or due today, tomorrow, this week, this month,"
        " or between two weeks ago and next month ('recent')",
        enum=tuple(DUE_DATES),
    )
    order_by: str = arg("Sort issues by this field. Default is 'created_at'", enum=ISSUE_ORDER_BY)
    sort_order: str = arg("Sort order. Default is 'desc'", enum=SORT_ORDER)
    limit: int = arg("Maximum number of issues to return. Defaults to 1000")


def issue_filters(args: IssueFilterArgs) -> dict[str, Any]:
    """Build list parameters shared by the project and group issue listings."""
    params = _list_params(
        args.state, args.confidential, args.labels, args.milestone, args.order_by, args.sort_order
    )
    _put_user_filter(params, "author", args.author)
    _put_user_filter(params, "assignee", args.assignee)
    if args.search:
        params["search"] = args.search
    put_time(params, "created_after", args.created_after)
    put_time(params, "created_before", args.created_before)
    put_time(params, "updated_after", args.updated_after)
    put_time(params, "updated_before", args.updated_before)
    if args.due_date:
        params["due_date"] = DUE_DATES[args.due_date]
    return params


@dataclass
class ListGroupIssuesArgs(IssueFilterArgs):
    group_id: ID = arg(
        "ID of the group, either the numeric ID or the 'owner/namespace' path", required=True
    )


@tool("list_group_issues", ListGroupIssuesArgs, tags={"issues"}, read_only=True)
async def list_group_issues(ctx: Context, args: ListGroupIssuesArgs) -> list[dict]:
    """List the issues of a group."""
    params = issue_filters(args)
    group_id = args.group_id.value()
    seq = all_with_id(group_id, _get_client(ctx).list_group_issues, params)
    with operation(f"list_group_issues({group_id!r})"):
        return await collect(limited(seq, limit_or_default(args.limit)))


@dataclass
class ListProjectIssuesArgs(IssueFilterArgs):
    project_id: ID = arg(PROJECT_ID, required=True)
    iteration_id: int = arg("Iteration ID to filter by")


@tool("list_project_issues", ListProjectIssuesArgs, tags={"issues"}, read_only=True)
async def list_project_issues(ctx: Context, args: ListProjectIssuesArgs) -> list[dict]:
    """List the issues of a project."""
    params = issue_filters(args)
    if args.iteration_id:
        params["iteration_id"] = args.iteration_id
    project_id = args.project_id.value()
    seq = all_with_id(project_id, _get_client(ctx).list_project_issues, params)
    with operation(f"list_project_issues({project_id!r})"):
        return await collect(limited(seq, limit_or_default(args.limit)))


# ════════════════════════════════════════════════════════════════════
# Single issues
# ════════════════════════════════════════════════════════════════════


@dataclass
class GetIssueArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    issue_iid: int = arg(ISSUE_IID, required=True)
    confidential: bool = arg(
        "If true, confidential issues and internal notes may be returned."
        " By default a confidential issue is refused"
    )


@tool("get_issue", GetIssueArgs, tags={"issues"}, read_only=True)
async def get_issue(ctx: Context, args: GetIssueArgs) -> dict[str, Any]:
    """Get a single project issue together with its discussions.

    Fails if either the issue or its discussions cannot be fetched.
    """
    client = _get_client(ctx)
    project_id = args.project_id.value()

    async def fetch_issue() -> Issue:
        with operation(f"get_issue({project_id!r}, {args.issue_iid})"):
            return Issue.model_validate(await client.get_issue(project_id, args.issue_iid))

    async def fetch_discussions() -> list:
        with operation(
            f"failed to fetch discussions for issue {args.issue_iid} in project {project_id}"
        ):
            manager = IssueDiscussions(client, args.project_id, args.issue_iid)
            return await manager.list(args.confidential)

    issue, discussions = await gather_all(fetch_issue(), fetch_discussions())

    if issue.confidential and not args.confidential:
        raise PolicyRefusal(
            f"issue {args.issue_iid} is confidential, ensure it is safe to be shared"
            " with the model, then set confidential=true to access it"
        )

    result: dict[str, Any] = {"issue": issue}
    if discussions:
        result["discussions"] = discussions
    return result


@dataclass
class ListMergeRequestsRelatedToIssueArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    issue_iid: int = arg(ISSUE_IID, required=True)


@tool(
    "list_merge_requests_related_to_issue",
    ListMergeRequestsRelatedToIssueArgs,
    tags={"issues", "merge_requests"},
    read_only=True,
)
async def list_merge_requests_related_to_issue(
    ctx: Context, args: ListMergeRequestsRelatedToIssueArgs
) -> list[dict]:
    """List the merge requests related to an issue."""
    project_id = args.project_id.value()
    client = _get_client(ctx)

    async def fetch(params: dict[str, Any]) -> tuple[list, int]:
        return await client.list_issue_related_merge_requests(project_id, args.issue_iid, params)

    with operation(f"list_issue_related_merge_requests({project_id!r}, {args.issue_iid})"):
        return await collect(all_pages(fetch, {"per_page": MAX_PER_PAGE}))


# ════════════════════════════════════════════════════════════════════
# Create / edit
# ════════════════════════════════════════════════════════════════════


@dataclass
class CreateIssueArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    title: str = arg("Title of the new issue", required=True)
    description: str = arg("Description in GitLab Flavored Markdown")
    assignee_ids: str = arg("Comma-separated user IDs to assign the issue to")
    milestone_id: int = arg("ID of a milestone to assign the issue to")
    epic_id: int = arg("Global ID of an epic to add the issue to")
    labels: str = arg("Comma-separated label names for the new issue")
    confidential: OptionalBool = arg("Set to true to create a confidential issue")


@tool("create_issue", CreateIssueArgs, tags={"issues"})
async def create_issue(ctx: Context, args: CreateIssueArgs) -> dict:
    """Create a new issue in a project."""
    _check_write(ctx)
    payload: dict[str, Any] = {"title": args.title}
    if args.description:
        payload["description"] = args.description
    if args.milestone_id:
        payload["milestone_id"] = args.milestone_id
    if args.epic_id:
        payload["epic_id"] = args.epic_id
    if (assignee_ids := parse_user_ids(args.assignee_ids)) is not None:
        payload["assignee_ids"] = assignee_ids
    if labels := label_options(args.labels):
        payload["labels"] = ",".join(labels)
    if (confidential := args.confidential.ptr()) is not None:
        payload["confidential"] = confidential

    project_id = args.project_id.value()
    with operation(f"create_issue({project_id!r})"):
        return await _get_client(ctx).create_issue(project_id, payload)


@dataclass
class EditIssueArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    issue_iid: int = arg(ISSUE_IID, required=True)
    title: str = arg("New title of the issue")
    description: str = arg("New description, in GitLab Flavored Markdown")
    assignee_ids: str = arg(
        "Comma-separated user IDs to assign. A single hyphen ('-') removes all assignees;"
        " omit to leave assignees unchanged"
    )
    milestone_id: int = arg("ID of a milestone to assign the issue to")
    epic_id: int = arg("Global ID of an epic to add the issue to")
    add_labels: str = arg("Comma-separated label names to add")
    remove_labels: str = arg("Comma-separated label names to remove")
    state_event: str = arg(
        "'close' closes the issue, 'reopen' reopens it. Omit to keep the state",
        enum=("close", "reopen"),
    )
    confidential: bool = arg(
        "Must be true to edit a confidential issue; also makes a public issue confidential."
        " Passing false never makes a confidential issue public"
    )
    discussion_locked: OptionalBool = arg(
        "Lock or unlock the discussion. When locked only project members can comment"
    )


@tool("edit_issue", EditIssueArgs, tags={"issues"}, idempotent=True)
async def edit_issue(ctx: Context, args: EditIssueArgs) -> dict:
    """Update an existing issue.

    Title, description, labels, assignees, milestone, epic, state,
    confidentiality and the discussion lock can be changed.
    """
    _check_write(ctx)
    client = _get_client(ctx)
    project_id = args.project_id.value()

    with operation(f"get_issue({project_id!r}, {args.issue_iid})"):
        issue = Issue.model_validate(await client.get_issue(project_id, args.issue_iid))
    if issue.confidential and not args.confidential:
        raise PolicyRefusal(
            f"cannot edit issue {args.issue_iid} as it is confidential. Ensure it is safe"
            " to be shared with the model, then set confidential=true to edit"
        )

    payload: dict[str, Any] = {}
    if args.title:
        payload["title"] = args.title
    if args.description:
        payload["description"] = args.description
    if args.state_event:
        payload["state_event"] = args.state_event
    if args.milestone_id:
        payload["milestone_id"] = args.milestone_id
    if args.epic_id:
        payload["epic_id"] = args.epic_id
    if (assignee_ids := parse_user_ids(args.assignee_ids)) is not None:
        payload["assignee_ids"] = assignee_ids
    if add_labels := label_options(args.add_labels):
        payload["add_labels"] = ",".join(add_labels)
    if remove_labels := label_options(args.remove_labels):
        payload["remove_labels"] = ",".join(remove_labels)
    if args.confidential:
        payload["confidential"] = True
    if (locked := args.discussion_locked.ptr()) is not None:
        payload["discussion_locked"] = locked

    with operation(f"update_issue({project_id!r}, {args.issue_iid})"):
        return await client.update_issue(project_id, args.issue_iid, payload)
