"""Shared helper functions for tool modules."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable
from datetime import datetime
from typing import Any

from ..exceptions import GitLabCompositeError, InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 1000

BUILD_STATES = (
    "created",
    "waiting_for_resource",
    "preparing",
    "pending",
    "running",
    "success",
    "failed",
    "canceled",
    "skipped",
    "manual",
    "scheduled",
)

ISSUE_ORDER_BY = (
    "created_at",
    "due_date",
    "label_priority",
    "milestone_due",
    "popularity",
    "priority",
    "relative_position",
    "title",
    "updated_at",
    "weight",
)
SORT_ORDER = ("asc", "desc")

# User-facing due date filter -> GitLab ``due_date`` parameter
DUE_DATES = {
    "today": "today",
    "tomorrow": "tomorrow",
    "overdue": "overdue",
    "week": "week",
    "month": "month",
    "recent": "next_month_and_previous_two_weeks",
    "any": "any",
    "none": "0",
}

_USER_ID = re.compile(r"[+-]?[0-9]+")

_TIME_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


def limit_or_default(limit: int, default: int = DEFAULT_LIMIT) -> int:
    return limit if limit > 0 else default


def parse_user_ids(value: str) -> list[int] | None:
    """Parse a comma-separated list of user IDs for an update payload.

    ``""`` means "leave unchanged" (``None``) and ``"-"`` clears the list.
    Tokens that are not integers are skipped with a warning.
    """
    if value == "":
        return None
    if value == "-":
        return []
    ids: list[int] = []
    for token in value.split(","):
        token = token.strip()
        if _USER_ID.fullmatch(token):
            ids.append(int(token))
        else:
            logger.warning("Ignoring invalid user ID %r", token)
    return ids or None


def label_options(value: str) -> list[str] | None:
    """Split comma-separated label names; ``None`` when nothing is left."""
    labels = [label.strip() for label in value.split(",")]
    return [label for label in labels if label] or None


def parse_build_states(value: str) -> list[str] | None:
    """Parse a comma-separated job state filter.

    Unknown states and repeats are dropped. ``None`` means "no filter".
    """
    states: list[str] = []
    for token in value.split(","):
        token = token.strip()
        if token in BUILD_STATES and token not in states:
            states.append(token)
    return states or None


def parse_time(name: str, value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp, ``YYYY-MM-DD HH:MM:SS`` or ``YYYY-MM-DD``."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise InvalidArgumentError(f"invalid {name} date: {value!r}")


def put_time(params: dict[str, Any], name: str, value: str) -> None:
    parsed = parse_time(name, value)
    if parsed is not None:
        params[name] = parsed.isoformat()


async def gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Run *aws* concurrently and wait for all of them.

    If any fails, every failure is raised together as a GitLabCompositeError.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        for error in errors:
            logger.debug("Sub-operation failed: %s", error)
        raise GitLabCompositeError(errors)
    return results
