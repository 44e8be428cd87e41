"""
Tests for Singleflight (call coalescing).

Coverage includes:
- Path coverage: leader path, join path
- Error handling: error propagation to all subscribers
- Cancellation: abandoning one caller keeps the shared call alive
- Event emission: listener notifications
"""
import asyncio
from typing import List

import pytest

from fetch_auth_pipeline.singleflight import (
    Singleflight,
    SingleflightEvent,
    SingleflightEventType,
)


class TestSingleflight:
    """Tests for Singleflight."""

    @pytest.fixture
    def singleflight(self) -> Singleflight:
        return Singleflight()

    @pytest.mark.asyncio
    async def test_single_call_is_leader(self, singleflight):
        async def fn():
            return "value"

        result = await singleflight.do("key", fn)

        assert result.value == "value"
        assert result.shared is False
        assert result.subscribers == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_coalesce(self, singleflight):
        calls = 0
        gate = asyncio.Event()

        async def fn():
            nonlocal calls
            calls += 1
            await gate.wait()
            return "shared"

        tasks = [asyncio.create_task(singleflight.do("key", fn)) for _ in range(5)]
        await asyncio.sleep(0)
        assert singleflight.is_in_flight("key")

        gate.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert [r.value for r in results] == ["shared"] * 5
        assert sum(1 for r in results if not r.shared) == 1

    @pytest.mark.asyncio
    async def test_different_keys_do_not_coalesce(self, singleflight):
        calls = []

        async def make(key):
            async def fn():
                calls.append(key)
                await asyncio.sleep(0)
                return key
            return await singleflight.do(key, fn)

        results = await asyncio.gather(make("a"), make("b"))

        assert sorted(calls) == ["a", "b"]
        assert [r.value for r in results] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_error_propagates_to_all(self, singleflight):
        gate = asyncio.Event()

        async def fn():
            await gate.wait()
            raise ValueError("boom")

        tasks = [asyncio.create_task(singleflight.do("key", fn)) for _ in range(3)]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, ValueError) for r in results)

    @pytest.mark.asyncio
    async def test_key_released_after_completion(self, singleflight):
        async def fn():
            return 1

        await singleflight.do("key", fn)
        await asyncio.sleep(0)

        assert singleflight.is_in_flight("key") is False

    @pytest.mark.asyncio
    async def test_new_call_after_completion_runs_again(self, singleflight):
        calls = 0

        async def fn():
            nonlocal calls
            calls += 1
            return calls

        await singleflight.do("key", fn)
        await asyncio.sleep(0)
        second = await singleflight.do("key", fn)

        assert calls == 2
        assert second.value == 2

    @pytest.mark.asyncio
    async def test_cancelled_leader_does_not_cancel_shared_call(self, singleflight):
        gate = asyncio.Event()

        async def fn():
            await gate.wait()
            return "done"

        leader = asyncio.create_task(singleflight.do("key", fn))
        await asyncio.sleep(0)
        follower = asyncio.create_task(singleflight.do("key", fn))
        await asyncio.sleep(0)

        leader.cancel()
        with pytest.raises(asyncio.CancelledError):
            await leader

        gate.set()
        result = await follower

        assert result.value == "done"
        assert result.shared is True

    @pytest.mark.asyncio
    async def test_events(self, singleflight):
        events: List[SingleflightEvent] = []
        singleflight.on(events.append)
        gate = asyncio.Event()

        async def fn():
            await gate.wait()
            return 1

        tasks = [asyncio.create_task(singleflight.do("key", fn)) for _ in range(2)]
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(*tasks)
        await asyncio.sleep(0)

        types = [e.type for e in events]
        assert types == [
            SingleflightEventType.LEAD,
            SingleflightEventType.JOIN,
            SingleflightEventType.COMPLETE,
        ]
        assert events[-1].metadata["subscribers"] == 2

    @pytest.mark.asyncio
    async def test_listener_removal_and_failure(self, singleflight):
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        remove = singleflight.on(received.append)
        singleflight.on(broken)
        remove()

        async def fn():
            return 1

        result = await singleflight.do("key", fn)

        assert result.value == 1
        assert received == []
