"""Todo tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import NoArguments, arg
from ..exceptions import operation
from ..pagination import MAX_PER_PAGE, all_pages, collect, limited
from ._helpers import limit_or_default
from .gitlab import _check_write, _get_client, tool

DEFAULT_TODOS_LIMIT = 100

ACTIONS = (
    "assigned",
    "mentioned",
    "build_failed",
    "marked",
    "approval_required",
    "unmergeable",
    "directly_addressed",
    "merge_train_removed",
    "member_access_requested",
)
TARGET_TYPES = (
    "Issue",
    "MergeRequest",
    "Commit",
    "Epic",
    "DesignManagement::Design",
    "AlertManagement::Alert",
    "Project",
    "Namespace",
    "Vulnerability",
    "WikiPage::Meta",
)


@dataclass
class ListUserTodosArgs:
    action: str = arg("Filter by the action that caused the todo item", enum=ACTIONS)
    author_id: int = arg("Filter by the ID of the author who created the todo item")
    project_id: int = arg("Filter by the ID of the project the todo item belongs to")
    group_id: int = arg("Filter by the ID of the group the todo item belongs to")
    state: str = arg(
        "Filter by the state of the todo item. Defaults to 'pending'", enum=("pending", "done")
    )
    type: str = arg(
        "Filter by the type of resource the todo item is associated with", enum=TARGET_TYPES
    )
    limit: int = arg("Maximum number of todos to return. Defaults to 100")


@tool("list_user_todos", ListUserTodosArgs, tags={"todos"}, read_only=True)
async def list_user_todos(ctx: Context, args: ListUserTodosArgs) -> list[dict]:
    """Get the todos of the current user, with optional filtering."""
    limit = limit_or_default(args.limit, DEFAULT_TODOS_LIMIT)
    params: dict[str, Any] = {
        "per_page": min(limit, MAX_PER_PAGE),
        "state": args.state or "pending",
    }
    for key in ("action", "author_id", "project_id", "group_id", "type"):
        if value := getattr(args, key):
            params[key] = value
    with operation("list_todos()"):
        return await collect(limited(all_pages(_get_client(ctx).list_todos, params), limit))


@dataclass
class CompleteTodoItemArgs:
    id: int = arg("The ID of the todo item to mark as done", required=True)


@tool("complete_todo_item", CompleteTodoItemArgs, tags={"todos"}, destructive=True, idempotent=True)
async def complete_todo_item(ctx: Context, args: CompleteTodoItemArgs) -> str:
    """Mark a single pending todo item as done."""
    _check_write(ctx)
    with operation(f"mark_todo_done({args.id})"):
        await _get_client(ctx).mark_todo_done(args.id)
    return "success"


@tool("complete_all_todo_items", NoArguments, tags={"todos"}, destructive=True)
async def complete_all_todo_items(ctx: Context, args: NoArguments) -> str:
    """Mark all pending todo items of the current user as done.

    Only perform this action when explicitly requested by the user.
    """
    _check_write(ctx)
    with operation("mark_all_todos_done()"):
        await _get_client(ctx).mark_all_todos_done()
    return "success"
