"""GitLab MCP server: lifespan, tool registration and result encoding.

Tools live in the per-domain modules next to this one. Each declares an
argument dataclass (see :mod:`gitlab_mcp_bridge.arguments`) and an async
handler taking ``(ctx, args)``; the :func:`tool` decorator turns the pair
into an MCP tool.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import Context, FastMCP
from fastmcp.server.dependencies import get_context
from fastmcp.tools import Tool, ToolResult
from pydantic.json_schema import SkipJsonSchema

from ..arguments import build_schema, decode
from ..client import GitLabClient
from ..config import GitLabConfig
from ..exceptions import GitLabWriteDisabledError, PolicyRefusal
from ..models.base import GitLabModel
from ..models.common import User

logger = logging.getLogger(__name__)

Handler = Callable[[Context, Any], Awaitable[Any]]


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    config = GitLabConfig.from_env()
    config.validate()
    client = GitLabClient(config)
    try:
        user = User.model_validate(await client.get_current_user())
        logger.info("Connected to %s as %s", config.url, user.username)
        yield {"client": client, "config": config, "current_user": user.username}
    finally:
        await client.close()


mcp = FastMCP(
    name="GitLab MCP Bridge",
    instructions=(
        "Tools for GitLab issues, merge requests, discussions, epics, jobs,"
        " snippets, todos, users, events and repository files."
    ),
    lifespan=lifespan,
)


def _get_client(ctx: Context) -> GitLabClient:
    return ctx.lifespan_context["client"]


def _get_config(ctx: Context) -> GitLabConfig:
    return ctx.lifespan_context["config"]


def _current_user(ctx: Context) -> str:
    return ctx.lifespan_context["current_user"]


def _check_write(ctx: Context) -> None:
    if _get_config(ctx).read_only:
        raise GitLabWriteDisabledError


def _default(obj: Any) -> Any:
    if isinstance(obj, GitLabModel):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _ok(data: Any) -> str:
    """Encode a handler result. ``None`` stands for an empty list."""
    if data is None:
        return "[]"
    return json.dumps(data, indent=2, ensure_ascii=False, default=_default)


class ArgumentTool(Tool):
    """A tool whose schema and decoding come from an argument dataclass."""

    fn: SkipJsonSchema[Callable[..., Any]]
    args_type: SkipJsonSchema[type]

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        args = decode(arguments, self.args_type)
        ctx = get_context()
        try:
            result = await self.fn(ctx, args)
        except PolicyRefusal as e:
            return ToolResult(content=str(e), is_error=True)
        text = result if isinstance(result, str) else _ok(result)
        return ToolResult(content=text)


def tool(
    name: str,
    args_type: type,
    *,
    tags: set[str],
    read_only: bool = False,
    destructive: bool = False,
    idempotent: bool = False,
) -> Callable[[Handler], Handler]:
    """Register *fn* as the MCP tool *name*, described by its docstring."""

    def decorator(fn: Handler) -> Handler:
        mcp.add_tool(
            ArgumentTool(
                name=name,
                description=inspect.getdoc(fn),
                parameters=build_schema(args_type),
                tags={"gitlab", "read" if read_only else "write", *tags},
                annotations={
                    "readOnlyHint": read_only,
                    "destructiveHint": destructive,
                    "idempotentHint": idempotent,
                    "openWorldHint": True,
                },
                fn=fn,
                args_type=args_type,
            )
        )
        return fn

    return decorator

