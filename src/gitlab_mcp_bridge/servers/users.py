"""User and user status tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import arg
from ..exceptions import PolicyRefusal, operation
from ..scalars import ID
from .gitlab import _check_write, _get_client, tool


@dataclass
class GetUserArgs:
    user_id: ID = arg(
        "The ID or username of the user. If not provided, returns the authenticated user"
    )


@tool("get_user", GetUserArgs, tags={"users"}, read_only=True)
async def get_user(ctx: Context, args: GetUserArgs) -> dict:
    """Get information about a user or the current user.

    Use this to resolve a username to a numeric ID.
    """
    client = _get_client(ctx)
    if args.user_id.is_zero():
        with operation("get_current_user()"):
            return await client.get_current_user()
    if args.user_id.integer:
        with operation(f"get_user({args.user_id.integer})"):
            return await client.get_user(args.user_id.integer)

    username = args.user_id.string.removeprefix("@")
    with operation(f"list_users(username={username!r})"):
        users = await client.list_users({"username": username})
    if not users:
        raise PolicyRefusal("user not found")
    return users[0]


@dataclass
class GetUserStatusArgs:
    user_id: ID = arg("ID or username of the user to get the status for", required=True)


@tool("get_user_status", GetUserStatusArgs, tags={"users"}, read_only=True)
async def get_user_status(ctx: Context, args: GetUserStatusArgs) -> dict:
    """Get a user's status."""
    user: Any = args.user_id.value()
    if isinstance(user, str):
        user = user.removeprefix("@")
    with operation(f"get_user_status({user!r})"):
        return await _get_client(ctx).get_user_status(user)


@dataclass
class SetUserStatusArgs:
    emoji: str = arg(
        "Name of the emoji to use as status. If omitted, 'speech_balloon' is used"
    )
    message: str = arg(
        "Message to set as the status. Can contain emoji codes. At most 100 characters"
    )
    availability: str = arg(
        "Availability of the user: 'busy', or 'not_set' if the user is available",
        enum=("busy", "not_set"),
    )


@tool("set_user_status", SetUserStatusArgs, tags={"users"}, idempotent=True)
async def set_user_status(ctx: Context, args: SetUserStatusArgs) -> dict:
    """Set the current user's status."""
    _check_write(ctx)
    payload = {
        key: value
        for key in ("emoji", "message", "availability")
        if (value := getattr(args, key))
    }
    with operation("set_user_status()"):
        return await _get_client(ctx).set_user_status(payload)
