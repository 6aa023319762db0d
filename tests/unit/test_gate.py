"""Unit tests for the FetchGate admission control."""

from __future__ import annotations

import asyncio
import math

import pytest

from pyisgweb.gate import FetchGate

DELAY = 0.05


class ConcurrencyProbe:
    """Task factory recording how many tasks run at once."""

    def __init__(self, delay: float = DELAY) -> None:
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.started: list[int] = []

    def task(self, index: int):
        async def _run() -> int:
            self.started.append(index)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            try:
                await asyncio.sleep(self.delay)
            finally:
                self.active -= 1
            return index

        return _run


class TestAdmission:
    """Test the concurrency cap."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [1, 2, 3, 5])
    async def test_never_exceeds_limit(self, limit: int) -> None:
        """At most ``limit`` tasks execute concurrently."""
        gate = FetchGate(limit)
        probe = ConcurrencyProbe()

        futures = [gate.submit(probe.task(i)) for i in range(12)]
        results = await asyncio.gather(*futures)

        assert results == list(range(12))
        assert probe.max_active == limit
        assert gate.running == 0
        assert gate.pending == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("limit", "count"), [(1, 3), (2, 5), (3, 7), (5, 5)])
    async def test_completes_in_ceil_rounds(self, limit: int, count: int) -> None:
        """K tasks of equal length finish in ceil(K/N) rounds."""
        gate = FetchGate(limit)
        probe = ConcurrencyProbe()
        loop = asyncio.get_running_loop()

        started = loop.time()
        await asyncio.gather(*(gate.submit(probe.task(i)) for i in range(count)))
        elapsed = loop.time() - started

        rounds = math.ceil(count / limit)
        assert elapsed >= rounds * DELAY * 0.9
        assert elapsed < (rounds + 1) * DELAY

    @pytest.mark.asyncio
    async def test_fifo_start_order(self) -> None:
        """Queued tasks are admitted in submission order."""
        gate = FetchGate(2)
        probe = ConcurrencyProbe(delay=0.01)

        await asyncio.gather(*(gate.submit(probe.task(i)) for i in range(6)))

        assert probe.started == list(range(6))

    def test_invalid_limit(self) -> None:
        """The limit must be positive."""
        with pytest.raises(ValueError):
            FetchGate(0)


class TestFailures:
    """Test error propagation."""

    @pytest.mark.asyncio
    async def test_failure_frees_slot(self) -> None:
        """A failing task reports its exception and admits the next task."""
        gate = FetchGate(1)

        async def boom() -> None:
            raise RuntimeError("boom")

        async def ok() -> str:
            return "ok"

        failing = gate.submit(boom)
        succeeding = gate.submit(ok)

        with pytest.raises(RuntimeError, match="boom"):
            await failing
        assert await succeeding == "ok"

    @pytest.mark.asyncio
    async def test_cancelled_future_is_skipped(self) -> None:
        """Futures cancelled while queued are never started."""
        gate = FetchGate(1)
        probe = ConcurrencyProbe(delay=0.01)

        first = gate.submit(probe.task(0))
        second = gate.submit(probe.task(1))
        third = gate.submit(probe.task(2))
        second.cancel()

        await asyncio.gather(first, third)
        assert probe.started == [0, 2]


class TestClose:
    """Test shutdown."""

    @pytest.mark.asyncio
    async def test_close_cancels_everything(self) -> None:
        """Closing cancels running and queued tasks and refuses new ones."""
        gate = FetchGate(1)
        probe = ConcurrencyProbe(delay=10)

        running = gate.submit(probe.task(0))
        queued = gate.submit(probe.task(1))
        await asyncio.sleep(0)

        await gate.close()

        assert running.cancelled()
        assert queued.cancelled()
        with pytest.raises(RuntimeError):
            gate.submit(probe.task(2))
