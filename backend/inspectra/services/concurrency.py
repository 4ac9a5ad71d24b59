"""
Inspectra Backend — Fan-out / Gather Combinators
==================================================

Two-level concurrency of the extraction pipeline:

    gather_all      all-or-nothing, fail fast   (3-way ensemble of one image)
    gather_settled  collect every outcome       (sub-pipelines across images)

Both preserve argument order in their results, regardless of completion order.
"""

import asyncio
from typing import Awaitable, List, TypeVar, Union

T = TypeVar("T")


async def gather_all(*aws: Awaitable[T]) -> List[T]:
    """
    Run awaitables concurrently and return their results in argument order.

    The first failure cancels the still-running siblings and is re-raised.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        # Let cancelled siblings unwind before the failure propagates
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def gather_settled(*aws: Awaitable[T]) -> List[Union[T, BaseException]]:
    """
    Run awaitables concurrently and wait for every one of them.

    Each slot holds either the result or the exception that awaitable raised;
    one failure never affects the others.
    """
    return list(await asyncio.gather(*aws, return_exceptions=True))
