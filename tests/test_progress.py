"""Tests for the progress bus."""

from __future__ import annotations

import asyncio
from typing import List

from folderchat.jobs import FAILED_MESSAGE
from folderchat.progress import (
    COMPLETED_MESSAGE,
    CONNECTED_MESSAGE,
    STREAM_CLOSED_MESSAGE,
    ProgressBus,
    is_terminal,
)


def _collect(bus: ProgressBus, job_id: str, is_disconnected=None) -> List[str]:
    async def run() -> List[str]:
        return [event.message async for event in bus.subscribe(job_id, is_disconnected)]

    return asyncio.run(run())


class TestProgressLog:
    """Test append/get/clear."""

    def test_append_and_get_in_order(self) -> None:
        bus = ProgressBus()
        bus.append("job", "one")
        bus.append("job", "two")

        assert [e.message for e in bus.get("job")] == ["one", "two"]
        assert bus.get("other") == []

    def test_capacity_keeps_most_recent(self) -> None:
        bus = ProgressBus()
        for i in range(150):
            bus.append("job", f"m{i}")

        events = bus.get("job")

        assert len(events) == 100
        assert events[0].message == "m50"
        assert events[-1].message == "m149"

    def test_clear_then_append(self) -> None:
        """A cleared log holds only events appended afterwards."""
        bus = ProgressBus()
        bus.append("job", "old")
        bus.clear("job")
        new = bus.append("job", "new")

        assert [e.message for e in bus.get("job")] == ["new"]
        assert new.seq == 2

    def test_sequence_survives_truncation(self) -> None:
        bus = ProgressBus(capacity=3)
        for i in range(5):
            bus.append("job", f"m{i}")

        assert [e.seq for e in bus.get("job")] == [3, 4, 5]
        assert [e.message for e in bus.events_after("job", 4)] == ["m4"]

    def test_jobs_are_isolated(self) -> None:
        bus = ProgressBus()
        bus.append("a", "for a")
        bus.append("b", "for b")
        bus.clear("a")

        assert [e.message for e in bus.get("b")] == ["for b"]


class TestIsTerminal:
    def test_success_and_failure_messages_are_terminal(self) -> None:
        assert is_terminal(COMPLETED_MESSAGE)
        assert is_terminal(f"{FAILED_MESSAGE}: boom")
        assert not is_terminal("📄 Processing file 1/2: a.pdf")


class TestSubscribe:
    """Test the polling subscription."""

    def test_replays_completed_log(self) -> None:
        """A late subscriber replays the log and closes after the sentinel."""
        bus = ProgressBus(poll_interval=0.01)
        bus.append("job", "step one")
        bus.append("job", COMPLETED_MESSAGE)

        messages = _collect(bus, "job")

        assert messages == [CONNECTED_MESSAGE, "step one", COMPLETED_MESSAGE, STREAM_CLOSED_MESSAGE]

    def test_follows_live_events(self) -> None:
        bus = ProgressBus(poll_interval=0.01)

        async def run() -> List[str]:
            async def produce() -> None:
                for message in ("first", "second", COMPLETED_MESSAGE):
                    await asyncio.sleep(0.02)
                    bus.append("job", message)

            producer = asyncio.create_task(produce())
            messages = [event.message async for event in bus.subscribe("job")]
            await producer
            return messages

        messages = asyncio.run(run())

        assert messages == [
            CONNECTED_MESSAGE,
            "first",
            "second",
            COMPLETED_MESSAGE,
            STREAM_CLOSED_MESSAGE,
        ]

    def test_stops_on_disconnect(self) -> None:
        """A departed subscriber stops polling without touching the log."""
        bus = ProgressBus(poll_interval=0.01)
        bus.append("job", "step")

        async def gone() -> bool:
            return True

        assert _collect(bus, "job", gone) == [CONNECTED_MESSAGE]
        assert [e.message for e in bus.get("job")] == ["step"]

    def test_failure_closes_stream(self) -> None:
        bus = ProgressBus(poll_interval=0.01)
        bus.append("job", f"{FAILED_MESSAGE}: folder missing")

        messages = _collect(bus, "job")

        assert messages[-1] == STREAM_CLOSED_MESSAGE

    def test_log_released_after_terminal_observed(self) -> None:
        bus = ProgressBus(poll_interval=0.01)
        bus.append("job", "step one")
        bus.append("job", COMPLETED_MESSAGE)

        _collect(bus, "job")

        assert bus.get("job") == []
        assert bus.append("job", "next run").seq == 1

    def test_log_kept_until_every_subscriber_finishes(self) -> None:
        """A subscriber still following the job keeps its log alive."""
        bus = ProgressBus(poll_interval=0.01)
        bus.append("job", "step")

        async def run() -> List[str]:
            follower = bus.subscribe("job")
            assert (await follower.__anext__()).message == CONNECTED_MESSAGE
            assert (await follower.__anext__()).message == "step"

            bus.append("job", COMPLETED_MESSAGE)
            first = [event.message async for event in bus.subscribe("job")]
            retained = [event.message for event in bus.get("job")]

            rest = [event.message async for event in follower]
            assert rest == [COMPLETED_MESSAGE, STREAM_CLOSED_MESSAGE]
            assert first[-1] == STREAM_CLOSED_MESSAGE
            return retained

        assert asyncio.run(run()) == ["step", COMPLETED_MESSAGE]
        assert bus.get("job") == []

    def test_unobserved_log_is_kept(self) -> None:
        bus = ProgressBus()
        bus.append("job", COMPLETED_MESSAGE)

        assert [e.message for e in bus.get("job")] == [COMPLETED_MESSAGE]
