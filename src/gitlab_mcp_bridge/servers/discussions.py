"""Discussion tools for issues, merge requests, epics, snippets and commits."""

from __future__ import annotations

from dataclasses import dataclass

from fastmcp import Context

from ..arguments import arg
from ..discussions import (
    CommitDiscussions,
    DiscussionManager,
    EpicDiscussions,
    IssueDiscussions,
    MergeRequestDiscussions,
    Positioned,
    SnippetDiscussions,
)
from ..exceptions import InvalidArgumentError, operation
from ..models.discussions import Discussion, Position
from ..scalars import ID
from .gitlab import _check_write, _get_client, tool

RESOURCE_TYPES = ("issue", "merge_request", "epic", "snippet", "commit")
RESOURCE_TYPE = "Type of GitLab resource (issue, merge_request, epic, snippet, commit)"
PARENT_ID = "ID of the parent resource (project ID for issue/MR/snippet/commit, group ID for epic)"
RESOURCE_ID = "ID of the resource (IID for issue/MR, ID for epic/snippet, SHA for commit)"
PROJECT_ID = "ID of the project, either the numeric ID or the 'owner/project' path"


def discussion_manager(
    ctx: Context, resource_type: str, parent_id: ID, resource_id: ID
) -> DiscussionManager:
    """Return the manager for one noteable."""
    client = _get_client(ctx)
    if resource_type == "issue":
        return IssueDiscussions(client, parent_id, resource_id.integer)
    if resource_type == "merge_request":
        return MergeRequestDiscussions(client, parent_id, resource_id.integer)
    if resource_type == "epic":
        return EpicDiscussions(client, parent_id, resource_id.integer)
    if resource_type == "snippet":
        return SnippetDiscussions(client, parent_id, resource_id.integer)
    if resource_type == "commit":
        # Commit SHAs may look like numbers
        return CommitDiscussions(client, parent_id, resource_id.raw or str(resource_id))
    raise InvalidArgumentError(f"unsupported resource type: {resource_type!r}")


@dataclass
class NewDiscussionArgs:
    resource_type: str = arg(RESOURCE_TYPE, required=True, enum=RESOURCE_TYPES)
    parent_id: ID = arg(PARENT_ID, required=True)
    resource_id: ID = arg(RESOURCE_ID, required=True)
    body: str = arg("Content of the discussion in GitLab Flavored Markdown", required=True)


@tool("discussion_new", NewDiscussionArgs, tags={"discussions"})
async def discussion_new(ctx: Context, args: NewDiscussionArgs) -> Discussion:
    """Create a new discussion thread on a GitLab resource."""
    _check_write(ctx)
    manager = discussion_manager(ctx, args.resource_type, args.parent_id, args.resource_id)
    with operation("failed to create discussion"):
        return await manager.new_discussion(args.body)


@dataclass
class ListDiscussionsArgs:
    resource_type: str = arg(RESOURCE_TYPE, required=True, enum=RESOURCE_TYPES)
    parent_id: ID = arg(PARENT_ID, required=True)
    resource_id: ID = arg(RESOURCE_ID, required=True)
    confidential: bool = arg(
        "Include internal notes. Only access confidential information when"
        " explicitly prompted. Defaults to false"
    )


@tool("discussion_list", ListDiscussionsArgs, tags={"discussions"}, read_only=True)
async def discussion_list(ctx: Context, args: ListDiscussionsArgs) -> list[Discussion]:
    """List all discussions of a GitLab resource."""
    manager = discussion_manager(ctx, args.resource_type, args.parent_id, args.resource_id)
    with operation("failed to list discussions"):
        return await manager.list(args.confidential)


@dataclass
class AddNoteArgs:
    resource_type: str = arg(RESOURCE_TYPE, required=True, enum=RESOURCE_TYPES)
    parent_id: ID = arg(PARENT_ID, required=True)
    resource_id: ID = arg(RESOURCE_ID, required=True)
    discussion_id: str = arg("ID of the discussion thread", required=True)
    body: str = arg("Content of the note in GitLab Flavored Markdown", required=True)


@tool("discussion_add_note", AddNoteArgs, tags={"discussions"})
async def discussion_add_note(ctx: Context, args: AddNoteArgs) -> dict:
    """Add a note (a reply) to an existing discussion thread."""
    _check_write(ctx)
    manager = discussion_manager(ctx, args.resource_type, args.parent_id, args.resource_id)
    with operation("failed to add discussion note"):
        return await manager.add_note(args.discussion_id, args.body)


@dataclass
class ModifyNoteArgs:
    resource_type: str = arg(RESOURCE_TYPE, required=True, enum=RESOURCE_TYPES)
    parent_id: ID = arg(PARENT_ID, required=True)
    resource_id: ID = arg(RESOURCE_ID, required=True)
    discussion_id: str = arg("ID of the discussion thread", required=True)
    note_id: int = arg("ID of the note to modify", required=True)
    body: str = arg("Updated content of the note in GitLab Flavored Markdown", required=True)


@tool("discussion_modify_note", ModifyNoteArgs, tags={"discussions"}, idempotent=True)
async def discussion_modify_note(ctx: Context, args: ModifyNoteArgs) -> dict:
    """Modify an existing note in a discussion thread."""
    _check_write(ctx)
    manager = discussion_manager(ctx, args.resource_type, args.parent_id, args.resource_id)
    with operation("failed to modify discussion note"):
        return await manager.modify_note(args.discussion_id, args.note_id, args.body)


@dataclass
class DeleteNoteArgs:
    resource_type: str = arg(RESOURCE_TYPE, required=True, enum=RESOURCE_TYPES)
    parent_id: ID = arg(PARENT_ID, required=True)
    resource_id: ID = arg(RESOURCE_ID, required=True)
    discussion_id: str = arg("ID of the discussion thread", required=True)
    note_id: int = arg("ID of the note to delete", required=True)


@tool(
    "discussion_delete_note",
    DeleteNoteArgs,
    tags={"discussions"},
    destructive=True,
    idempotent=True,
)
async def discussion_delete_note(ctx: Context, args: DeleteNoteArgs) -> dict:
    """Delete a note from a discussion thread."""
    _check_write(ctx)
    manager = discussion_manager(ctx, args.resource_type, args.parent_id, args.resource_id)
    with operation("failed to delete discussion note"):
        await manager.delete_note(args.discussion_id, args.note_id)
    return {"deleted": True}


@dataclass
class ResolveDiscussionArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    merge_request_iid: int = arg("Internal ID of the merge request", required=True)
    discussion_id: str = arg("ID of the discussion thread", required=True)
    resolved: bool = arg(
        "Whether to resolve (true) or unresolve (false) the discussion", required=True
    )


@tool(
    "discussion_resolve",
    ResolveDiscussionArgs,
    tags={"discussions", "merge_requests"},
    idempotent=True,
)
async def discussion_resolve(ctx: Context, args: ResolveDiscussionArgs) -> Discussion:
    """Resolve or unresolve a discussion thread in a merge request."""
    _check_write(ctx)
    manager = MergeRequestDiscussions(_get_client(ctx), args.project_id, args.merge_request_iid)
    action = "resolve" if args.resolved else "unresolve"
    with operation(f"failed to {action} discussion"):
        return await manager.resolve_discussion(args.discussion_id, args.resolved)


@dataclass
class NewPositionDiscussionArgs:
    resource_type: str = arg(
        "Type of GitLab resource (merge_request, commit)",
        required=True,
        enum=("merge_request", "commit"),
    )
    project_id: ID = arg(PROJECT_ID, required=True)
    resource_id: ID = arg("ID of the resource (IID for MR, SHA for commit)", required=True)
    body: str = arg("Content of the discussion in GitLab Flavored Markdown", required=True)
    base_sha: str = arg("Base commit SHA in the source branch", required=True)
    head_sha: str = arg("SHA referencing HEAD of the merge request", required=True)
    start_sha: str = arg("SHA referencing the commit in the target branch", required=True)
    old_path: str = arg("File path before the change", required=True)
    new_path: str = arg("File path after the change", required=True)
    position_type: str = arg(
        "Type of the position reference: text or file", required=True, enum=("text", "file")
    )
    old_line: int = arg("Line number before the change (text positions)")
    new_line: int = arg("Line number after the change (text positions)")
    commit_id: str = arg("SHA of the commit to start the thread on")


@tool(
    "discussion_new_with_position",
    NewPositionDiscussionArgs,
    tags={"discussions"},
)
async def discussion_new_with_position(ctx: Context, args: NewPositionDiscussionArgs) -> Discussion:
    """Create a new discussion on a specific position in a merge request or commit diff."""
    _check_write(ctx)
    manager = discussion_manager(ctx, args.resource_type, args.project_id, args.resource_id)
    if not isinstance(manager, Positioned):
        raise InvalidArgumentError(f"{args.resource_type} discussions cannot be positioned")
    position = Position(
        base_sha=args.base_sha,
        head_sha=args.head_sha,
        start_sha=args.start_sha,
        old_path=args.old_path,
        new_path=args.new_path,
        position_type=args.position_type,
        old_line=args.old_line or None,
        new_line=args.new_line or None,
    )
    with operation("failed to create diff discussion"):
        return await manager.new_position_discussion(args.body, position, args.commit_id)
