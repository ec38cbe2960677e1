"""Tests for the reconcile queue."""

from __future__ import annotations

import asyncio

import pytest

from takaro_operator.controllers.queue import ReconcileQueue, ReconcileRequest, ReconcileResult


class Handler:
    """Records requests and optionally blocks until released."""

    def __init__(self, result: ReconcileResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[ReconcileRequest] = []
        self.release = asyncio.Event()
        self.release.set()
        self.active = 0
        self.max_active = 0

    async def __call__(self, request: ReconcileRequest) -> ReconcileResult | None:
        self.calls.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.release.wait()
            await asyncio.sleep(0.01)
        finally:
            self.active -= 1
        if self.error is not None:
            raise self.error
        return self.result


class TestReconcileRequest:
    """Test cases for ReconcileRequest."""

    def test_key(self):
        """Test request keys."""
        assert ReconcileRequest("games", "d").key == "games/d"
        assert ReconcileRequest("", "d").key == "d"

    def test_wants_requeue(self):
        """Test result requeue semantics."""
        assert not ReconcileResult().wants_requeue
        assert ReconcileResult(requeue=True).wants_requeue
        assert ReconcileResult(requeue_after=5).wants_requeue
        assert ReconcileResult(requeue_after=0.0).wants_requeue


class TestReconcileQueue:
    """Test cases for ReconcileQueue."""

    @pytest.mark.asyncio
    async def test_deduplicates_keys(self):
        """Test that repeated enqueues collapse into one reconcile."""
        queue = ReconcileQueue("test")
        handler = Handler()
        for version in ("1", "2", "3"):
            queue.enqueue(ReconcileRequest("games", "d", resource_version=version))

        assert len(queue) == 1
        assert await queue.drain(handler) == 1
        assert [r.resource_version for r in handler.calls] == ["3"]
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_distinct_keys(self):
        """Test that distinct keys are all handled."""
        queue = ReconcileQueue("test", max_concurrent=2)
        handler = Handler()
        queue.enqueue(ReconcileRequest("games", "a"))
        queue.enqueue(ReconcileRequest("games", "b"))

        assert await queue.drain(handler) == 2
        assert sorted(r.name for r in handler.calls) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        """Test that max_concurrent bounds parallel reconciles."""
        queue = ReconcileQueue("test", max_concurrent=1)
        handler = Handler()
        for name in ("a", "b", "c"):
            queue.enqueue(ReconcileRequest("games", name))

        await queue.drain(handler)

        assert len(handler.calls) == 3
        assert handler.max_active == 1

    @pytest.mark.asyncio
    async def test_in_flight_key_stays_pending(self):
        """Test that a key is never reconciled twice at once."""
        queue = ReconcileQueue("test", max_concurrent=2)
        handler = Handler()
        handler.release.clear()
        queue.enqueue(ReconcileRequest("games", "d"))

        first = asyncio.create_task(queue.drain(handler))
        await asyncio.sleep(0)
        assert "games/d" in queue.in_flight

        queue.enqueue(ReconcileRequest("games", "d", resource_version="2"))
        assert await queue.drain(handler) == 0
        assert "games/d" in queue

        handler.release.set()
        await first
        assert queue.in_flight == frozenset()
        assert await queue.drain(handler) == 1
        assert len(handler.calls) == 2

    @pytest.mark.asyncio
    async def test_requeue_after_result(self):
        """Test that a result asking for a requeue comes back later."""
        queue = ReconcileQueue("test")
        handler = Handler(result=ReconcileResult(requeue_after=0.01))
        queue.enqueue(ReconcileRequest("games", "d"))

        await queue.drain(handler)
        assert len(queue) == 0

        await asyncio.sleep(0.05)
        assert "games/d" in queue

    @pytest.mark.asyncio
    async def test_zero_delay_requeue(self):
        """Test that requeue_after=0 asks for an immediate requeue."""
        queue = ReconcileQueue("test", default_requeue_delay=60.0)
        handler = Handler(result=ReconcileResult(requeue_after=0.0))
        queue.enqueue(ReconcileRequest("games", "d"))

        await queue.drain(handler)
        await asyncio.sleep(0.01)

        assert "games/d" in queue

    @pytest.mark.asyncio
    async def test_handler_error_requeues(self):
        """Test that a failing reconcile is retried after the error delay."""
        queue = ReconcileQueue("test", error_requeue_delay=0.01)
        handler = Handler(error=RuntimeError("boom"))
        queue.enqueue(ReconcileRequest("games", "d"))

        await queue.drain(handler)
        await asyncio.sleep(0.05)

        assert "games/d" in queue
        assert queue.in_flight == frozenset()

    @pytest.mark.asyncio
    async def test_clear_cancels_timers(self):
        """Test that clearing drops scheduled requeues."""
        queue = ReconcileQueue("test")
        queue.enqueue(ReconcileRequest("games", "a"))
        queue.requeue_after(ReconcileRequest("games", "b"), 0.01)

        queue.clear()
        await asyncio.sleep(0.05)

        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_wait_for_work(self):
        """Test waiting for enqueued work."""
        queue = ReconcileQueue("test")

        assert await queue.wait_for_work(0.01) is False

        asyncio.get_running_loop().call_later(0.01, queue.enqueue, ReconcileRequest("games", "d"))
        assert await queue.wait_for_work(1.0) is True
