"""In-process progress log per job with polling subscribers.

Jobs append from a worker thread; subscribers poll the log from the event loop
every ``poll_interval`` seconds. Each event carries a per-job sequence number
that keeps increasing across ring-buffer truncation and ``clear`` so a
subscriber never re-sends or skips an event it has already positioned past.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from typing import AsyncIterator, Awaitable, Callable, Deque, Dict, List, Optional

from folderchat.models import ProgressEvent

LOGGER = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
DEFAULT_POLL_INTERVAL = 0.1

COMPLETION_SENTINEL = "Folder processing completed"
COMPLETED_MESSAGE = "🎉 Folder processing completed successfully!"
CONNECTED_MESSAGE = "🔗 Connected to progress stream..."
STREAM_CLOSED_MESSAGE = "✅ Processing complete!"


def is_terminal(message: str) -> bool:
    return COMPLETION_SENTINEL in message


class ProgressBus:
    def __init__(
        self,
        *,
        capacity: int = DEFAULT_CAPACITY,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.capacity = capacity
        self.poll_interval = poll_interval
        self._logs: Dict[str, Deque[ProgressEvent]] = {}
        self._seq: Dict[str, int] = {}
        self._subscribers: Dict[str, int] = {}
        self._lock = threading.Lock()

    def append(self, job_id: str, message: str) -> ProgressEvent:
        with self._lock:
            seq = self._seq.get(job_id, 0) + 1
            self._seq[job_id] = seq
            event = ProgressEvent(message=message, seq=seq)
            log = self._logs.get(job_id)
            if log is None:
                log = self._logs[job_id] = deque(maxlen=self.capacity)
            log.append(event)
        LOGGER.debug("[%s] %s", job_id, message)
        return event

    def get(self, job_id: str) -> List[ProgressEvent]:
        with self._lock:
            return list(self._logs.get(job_id, ()))

    def events_after(self, job_id: str, seq: int) -> List[ProgressEvent]:
        with self._lock:
            return [event for event in self._logs.get(job_id, ()) if event.seq > seq]

    def clear(self, job_id: str) -> None:
        with self._lock:
            self._logs.pop(job_id, None)

    def _unsubscribe(self, job_id: str, terminal_seq: Optional[int]) -> None:
        """Drop a subscriber, releasing the job's log once every subscriber
        has seen its terminal event.

        A log nobody subscribed to is kept, so late subscribers can still
        replay it.
        """
        with self._lock:
            remaining = self._subscribers.get(job_id, 1) - 1
            if remaining > 0:
                self._subscribers[job_id] = remaining
                return
            self._subscribers.pop(job_id, None)
            log = self._logs.get(job_id)
            if terminal_seq is None or not log or log[-1].seq != terminal_seq:
                return
            del self._logs[job_id]
            self._seq.pop(job_id, None)
        LOGGER.debug("Released progress log for %s", job_id)

    async def subscribe(
        self,
        job_id: str,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[ProgressEvent]:
        """Replay the buffered events, then follow new ones until completion.

        Ends after the completion sentinel is delivered, or as soon as
        ``is_disconnected`` reports the subscriber has gone away. The job
        itself is never affected. When the last subscriber leaves having
        seen the sentinel, the job's log is released.
        """
        with self._lock:
            self._subscribers[job_id] = self._subscribers.get(job_id, 0) + 1
        terminal_seq: Optional[int] = None
        try:
            yield ProgressEvent(message=CONNECTED_MESSAGE)
            last_seq = 0
            while True:
                if is_disconnected is not None and await is_disconnected():
                    LOGGER.debug("Progress subscriber for %s disconnected", job_id)
                    return

                for event in self.events_after(job_id, last_seq):
                    last_seq = event.seq
                    yield event
                    if is_terminal(event.message):
                        terminal_seq = event.seq

                if terminal_seq is not None:
                    yield ProgressEvent(message=STREAM_CLOSED_MESSAGE)
                    return
                await asyncio.sleep(self.poll_interval)
        finally:
            self._unsubscribe(job_id, terminal_seq)


default_bus = ProgressBus()
