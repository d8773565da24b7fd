"""Concurrency primitives for the catalog fan-out.

The aggregator queries every enabled catalog for the same track at the
same time and must wait for *all* of them to settle: one slow or failing
catalog may never cancel or hide the answers of the others.

:func:`gather_settled` is ``asyncio.gather`` with ``return_exceptions=True``
and an optional semaphore, returning results in input order.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


async def gather_settled(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
) -> list[_T | BaseException]:
    """Run awaitables concurrently and wait until every one has settled.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore bounding how many awaitables run at once.
        Without one, all of them start immediately.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input; failed awaitables are
        represented by their exception instead of raising.
    """
    if semaphore is None:
        return await asyncio.gather(*coros, return_exceptions=True)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *(_wrapped(c) for c in coros), return_exceptions=True
    )
