"""Shared fixtures: a virtual clock so limiter timing is deterministic."""

import asyncio
import heapq
import itertools

import pytest
from loguru import logger


async def settle(rounds: int = 20):
    """Let every ready task run until it blocks again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class VirtualClock:
    """Monotonic clock + sleep that only move when the test advances time."""

    def __init__(self):
        self.now = 0.0
        self._timers = []
        self._seq = itertools.count()

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        fut = asyncio.get_running_loop().create_future()
        heapq.heappush(self._timers, (self.now + max(0.0, seconds), next(self._seq), fut))
        await fut

    @property
    def pending(self) -> int:
        return sum(1 for _, _, f in self._timers if not f.done())

    async def advance(self, seconds: float):
        target = self.now + seconds
        await settle()
        while self._timers and self._timers[0][0] <= target:
            deadline, _, fut = heapq.heappop(self._timers)
            self.now = deadline
            if not fut.done():
                fut.set_result(None)
            await settle()
        self.now = target
        await settle()


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def log_messages():
    messages = []
    sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)
