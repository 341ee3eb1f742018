"""Lazy iteration over GitLab's page-numbered list endpoints."""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from typing import Any, TypeVar

T = TypeVar("T")

MAX_PER_PAGE = 100

Page = tuple[list[T], int]
Params = dict[str, Any]
Fetcher = Callable[[Params], Awaitable[Page[T]]]
Advance = Callable[[Params, int], None]


def set_page(params: Params, page: int) -> None:
    params["page"] = page


async def all_pages(
    fetch: Fetcher[T],
    params: Params | None = None,
    next_page: Advance = set_page,
) -> AsyncGenerator[T, None]:
    """Yield every item of every page, following the next-page cursor.

    ``fetch`` returns ``(items, next_page)``; a cursor of ``0`` is the last
    page. A failing fetch raises out of the iterator, which is then finished.
    Pages are fetched only as the consumer asks for more items.
    """
    params = dict(params or {})
    while True:
        items, cursor = await fetch(params)
        for item in items:
            yield item
        if not cursor:
            return
        next_page(params, cursor)


def all_with_id(
    id: Any,
    fetch: Callable[[Any, Params], Awaitable[Page[T]]],
    params: Params | None = None,
    next_page: Advance = set_page,
) -> AsyncGenerator[T, None]:
    """Like :func:`all_pages` for endpoints scoped to a parent resource."""

    async def bound(p: Params) -> Page[T]:
        return await fetch(id, p)

    return all_pages(bound, params, next_page)


async def limited(seq: AsyncGenerator[T, None], n: int) -> AsyncIterator[T]:
    """Yield at most *n* items of *seq*; errors from *seq* pass through."""
    if n <= 0:
        return
    count = 0
    async with aclosing(seq):
        async for item in seq:
            yield item
            count += 1
            if count >= n:
                return


async def collect(seq: AsyncIterator[T]) -> list[T]:
    return [item async for item in seq]
