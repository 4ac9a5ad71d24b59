"""
Inspectra Backend — Fan-out / Gather Combinator Tests
=======================================================
"""

import asyncio

import pytest

from inspectra.services.concurrency import gather_all, gather_settled


async def _value(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(message, delay=0.0):
    await asyncio.sleep(delay)
    raise RuntimeError(message)


@pytest.mark.asyncio
async def test_gather_all_keeps_argument_order():
    assert await gather_all(_value(1, 0.02), _value(2, 0.0), _value(3, 0.01)) == [1, 2, 3]


@pytest.mark.asyncio
async def test_gather_all_cancels_siblings_on_first_failure():
    finished = []

    async def slow():
        await asyncio.sleep(1)
        finished.append("slow")

    slow_task = asyncio.ensure_future(slow())
    with pytest.raises(RuntimeError, match="boom"):
        await gather_all(_fail("boom"), slow_task)

    assert slow_task.cancelled()
    assert finished == []


@pytest.mark.asyncio
async def test_gather_settled_isolates_failures():
    outcomes = await gather_settled(_value("a"), _fail("bad"), _value("c", 0.01))

    assert outcomes[0] == "a"
    assert isinstance(outcomes[1], RuntimeError)
    assert outcomes[2] == "c"
