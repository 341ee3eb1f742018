"""Personal snippet tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import NoArguments, arg
from ..exceptions import operation
from ..pagination import MAX_PER_PAGE, all_pages, collect
from .gitlab import _check_write, _get_client, tool

VISIBILITY = ("private", "internal", "public")
FILE_ACTIONS = ("create", "update", "delete")
DEFAULT_VISIBILITY = "private"


@tool("list_user_snippets", NoArguments, tags={"snippets"}, read_only=True)
async def list_user_snippets(ctx: Context, args: NoArguments) -> list[dict]:
    """List the snippets of the current user."""
    with operation("list_snippets()"):
        return await collect(
            all_pages(_get_client(ctx).list_snippets, {"per_page": MAX_PER_PAGE})
        )


@dataclass
class ListAllSnippetsArgs:
    include_private: bool = arg(
        "Include private snippets. Requires administrator access; otherwise"
        " only public snippets are returned"
    )


@tool("list_all_snippets", ListAllSnippetsArgs, tags={"snippets"}, read_only=True)
async def list_all_snippets(ctx: Context, args: ListAllSnippetsArgs) -> list[dict]:
    """List all snippets the current user can see across the instance."""
    client = _get_client(ctx)
    if args.include_private:
        name, fetch = "list_all_snippets()", client.list_all_snippets
    else:
        name, fetch = "list_public_snippets()", client.list_public_snippets
    with operation(name):
        return await collect(all_pages(fetch, {"per_page": MAX_PER_PAGE}))


@dataclass
class SnippetArgs:
    snippet_id: int = arg("ID of the snippet", required=True)


@tool("get_snippet", SnippetArgs, tags={"snippets"}, read_only=True)
async def get_snippet(ctx: Context, args: SnippetArgs) -> dict:
    """Get the metadata of a single snippet."""
    with operation(f"get_snippet({args.snippet_id})"):
        return await _get_client(ctx).get_snippet(args.snippet_id)


@tool("get_snippet_content", SnippetArgs, tags={"snippets"}, read_only=True)
async def get_snippet_content(ctx: Context, args: SnippetArgs) -> dict:
    """Get the raw content of a snippet."""
    with operation(f"get_snippet_content({args.snippet_id})"):
        content = await _get_client(ctx).get_snippet_content(args.snippet_id)
    return {"content": content}


@dataclass
class CreateSnippetArgs:
    title: str = arg("Title of the snippet", required=True)
    file_name: str = arg("Name of the snippet file", required=True)
    content: str = arg("Content of the snippet file", required=True)
    visibility: str = arg(
        "Visibility level of the snippet. Defaults to private", enum=VISIBILITY
    )
    description: str = arg("Description of the snippet")


@tool("create_snippet", CreateSnippetArgs, tags={"snippets"})
async def create_snippet(ctx: Context, args: CreateSnippetArgs) -> dict:
    """Create a new personal snippet with a single file."""
    _check_write(ctx)
    payload: dict[str, Any] = {
        "title": args.title,
        "visibility": args.visibility or DEFAULT_VISIBILITY,
        "files": [{"file_path": args.file_name, "content": args.content}],
    }
    if args.description:
        payload["description"] = args.description
    with operation("create_snippet()"):
        return await _get_client(ctx).create_snippet(payload)


@dataclass
class UpdateSnippetArgs:
    snippet_id: int = arg("ID of the snippet", required=True)
    file_name: str = arg("Name of the snippet file to act on", required=True)
    content: str = arg("New content of the snippet file", required=True)
    file_action: str = arg(
        "What to do with the file: create, update or delete. Defaults to update",
        enum=FILE_ACTIONS,
    )
    title: str = arg("New title of the snippet")
    description: str = arg("New description of the snippet")
    visibility: str = arg("New visibility level of the snippet", enum=VISIBILITY)


@tool("update_snippet", UpdateSnippetArgs, tags={"snippets"}, idempotent=True)
async def update_snippet(ctx: Context, args: UpdateSnippetArgs) -> dict:
    """Update a snippet's metadata and create, update or delete one of its files."""
    _check_write(ctx)
    payload: dict[str, Any] = {
        "files": [
            {
                "action": args.file_action or "update",
                "file_path": args.file_name,
                "content": args.content,
            }
        ]
    }
    for key in ("title", "description", "visibility"):
        if value := getattr(args, key):
            payload[key] = value
    with operation(f"update_snippet({args.snippet_id})"):
        return await _get_client(ctx).update_snippet(args.snippet_id, payload)


@tool("delete_snippet", SnippetArgs, tags={"snippets"}, destructive=True, idempotent=True)
async def delete_snippet(ctx: Context, args: SnippetArgs) -> dict:
    """Delete a snippet. Only perform this action when explicitly requested by the user."""
    _check_write(ctx)
    with operation(f"delete_snippet({args.snippet_id})"):
        await _get_client(ctx).delete_snippet(args.snippet_id)
    return {"result": "success"}
