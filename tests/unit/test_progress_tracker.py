"""Unit tests for ProgressTracker."""

from __future__ import annotations

import pytest

from tagresolver.models.batch import BatchPhase, ProgressEvent
from tagresolver.pipeline.progress_tracker import ProgressTracker


def _event(processed: int, run_id: str = "run-1", phase: BatchPhase = BatchPhase.FIND, **kw) -> ProgressEvent:
    return ProgressEvent(run_id=run_id, phase=phase, processed=processed, total=5, **kw)


class TestProgressTracker:
    @pytest.fixture()
    def tracker(self) -> ProgressTracker:
        return ProgressTracker()

    @pytest.mark.asyncio
    async def test_publish_stores_latest_event(self, tracker: ProgressTracker) -> None:
        await tracker.publish(_event(1))
        await tracker.publish(_event(2, current_title="Track"))
        event = tracker.get_event("run-1")
        assert event is not None
        assert event.processed == 2
        assert event.current_title == "Track"

    @pytest.mark.asyncio
    async def test_regression_is_rejected(self, tracker: ProgressTracker) -> None:
        await tracker.publish(_event(3))
        assert await tracker.publish(_event(2)) is False
        assert tracker.get_event("run-1").processed == 3

    @pytest.mark.asyncio
    async def test_start_lets_a_reused_run_count_from_zero(self, tracker: ProgressTracker) -> None:
        received: list[ProgressEvent] = []
        tracker.register_listener("run-1-apply", received.append)
        await tracker.publish(_event(3, run_id="run-1-apply", phase=BatchPhase.APPLY, done=True))

        tracker.start("run-1-apply")

        assert tracker.get_event("run-1-apply") is None
        assert await tracker.publish(_event(0, run_id="run-1-apply", phase=BatchPhase.APPLY)) is True
        assert [e.processed for e in received] == [3, 0]

    @pytest.mark.asyncio
    async def test_new_phase_may_restart_from_zero(self, tracker: ProgressTracker) -> None:
        await tracker.publish(_event(5))
        assert await tracker.publish(_event(0, phase=BatchPhase.APPLY)) is True

    @pytest.mark.asyncio
    async def test_sync_and_async_listeners_notified(self, tracker: ProgressTracker) -> None:
        sync_seen: list[int] = []
        async_seen: list[int] = []

        async def async_listener(event: ProgressEvent) -> None:
            async_seen.append(event.processed)

        tracker.register_listener("run-1", lambda e: sync_seen.append(e.processed))
        tracker.register_listener("run-1", async_listener)
        await tracker.publish(_event(1))

        assert sync_seen == [1]
        assert async_seen == [1]

    @pytest.mark.asyncio
    async def test_listeners_only_see_their_run(self, tracker: ProgressTracker) -> None:
        seen: list[str] = []
        tracker.register_listener("run-1", lambda e: seen.append(e.run_id))
        await tracker.publish(_event(1, run_id="run-2"))
        assert seen == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, tracker: ProgressTracker) -> None:
        seen: list[int] = []

        def broken(event: ProgressEvent) -> None:
            raise RuntimeError("socket closed")

        tracker.register_listener("run-1", broken)
        tracker.register_listener("run-1", lambda e: seen.append(e.processed))
        assert await tracker.publish(_event(1)) is True
        assert seen == [1]

    @pytest.mark.asyncio
    async def test_unregistered_listener_is_not_called(self, tracker: ProgressTracker) -> None:
        seen: list[int] = []

        def listener(event: ProgressEvent) -> None:
            seen.append(event.processed)

        tracker.register_listener("run-1", listener)
        tracker.unregister_listener("run-1", listener)
        await tracker.publish(_event(1))
        assert seen == []

    def test_status_of_unknown_run_is_zeroed(self, tracker: ProgressTracker) -> None:
        status = tracker.get_status("nope")
        assert status["processed"] == 0
        assert status["total"] == 0
        assert status["done"] is False

    @pytest.mark.asyncio
    async def test_status_is_json_ready(self, tracker: ProgressTracker) -> None:
        await tracker.publish(_event(2, done=True))
        status = tracker.get_status("run-1")
        assert status["phase"] == "find"
        assert status["done"] is True

    @pytest.mark.asyncio
    async def test_clear_forgets_run(self, tracker: ProgressTracker) -> None:
        await tracker.publish(_event(2))
        tracker.clear("run-1")
        assert tracker.get_event("run-1") is None
