"""Repository tree and file tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import arg
from ..exceptions import PolicyRefusal, operation
from ..pagination import MAX_PER_PAGE, all_with_id, collect
from ..scalars import ID
from .gitlab import _get_client, tool


@dataclass
class ListRepositoryDirectoryArgs:
    project_id: ID = arg(
        "The project to list files from, either the 'owner/project' path or the numeric ID",
        required=True,
    )
    path: str = arg("Path inside the repository. Defaults to the repository root")
    ref: str = arg("Branch or tag to list files from. Defaults to the default branch")
    recursive: bool = arg("List files in subdirectories recursively")


@tool("list_repository_directory", ListRepositoryDirectoryArgs, tags={"repository"}, read_only=True)
async def list_repository_directory(ctx: Context, args: ListRepositoryDirectoryArgs) -> list[dict]:
    """List the files and directories of a repository.

    The result uses Git terminology: files are 'blob' and directories are 'tree'.
    """
    params: dict[str, Any] = {"per_page": MAX_PER_PAGE, "recursive": args.recursive}
    if args.path:
        params["path"] = args.path
    if args.ref:
        params["ref"] = args.ref
    project_id = args.project_id.value()
    with operation(f"list_repository_tree({project_id!r})"):
        return await collect(
            all_with_id(project_id, _get_client(ctx).list_repository_tree, params)
        )


@dataclass
class GetRepositoryFileContentsArgs:
    project_id: ID = arg(
        "The project to read from, either the 'owner/project' path or the numeric ID",
        required=True,
    )
    sha: str = arg("Blob SHA to read. Provide either 'sha' or 'file_path', but not both")
    file_path: str = arg(
        "Path of the file in the repository. Provide either 'sha' or 'file_path', but not both"
    )
    ref: str = arg(
        "Branch or tag to read a file path from. Defaults to the default branch"
    )


@tool(
    "get_repository_file_contents",
    GetRepositoryFileContentsArgs,
    tags={"repository"},
    read_only=True,
)
async def get_repository_file_contents(ctx: Context, args: GetRepositoryFileContentsArgs) -> str:
    """Get the contents of a single file from the repository."""
    if bool(args.sha) == bool(args.file_path):
        raise PolicyRefusal("exactly one of 'sha' or 'file_path' must be provided")
    client = _get_client(ctx)
    project_id = args.project_id.value()
    if args.sha:
        with operation(f"get_raw_blob({project_id!r}, {args.sha!r})"):
            return await client.get_raw_blob(project_id, args.sha)
    name = f"get_raw_file({project_id!r}, {args.file_path!r}, ref={args.ref!r})"
    with operation(name):
        return await client.get_raw_file(project_id, args.file_path, args.ref)
