"""Progress events for pipeline runs.

The orchestrator reports to an injected :class:`ProgressSink`.  The HTTP
layer uses :class:`ProgressBroker`, a per-application registry of
per-session queues, so a browser can follow a run over Server-Sent Events
while the run itself stays unaware of the transport.

Event shape (JSON)::

    {"step": "keywords", "status": "complete", "message": "...",
     "progress": 45, "timestamp": 1700000000000}
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)

START = "start"
PROGRESS = "progress"
COMPLETE = "complete"
ERROR = "error"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ProgressEvent:
    step: str
    status: str
    message: str
    progress: int | None = None
    timestamp: int = field(default_factory=_now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class ProgressSink(Protocol):
    async def emit(self, event: ProgressEvent) -> None: ...


class NullSink:
    """Discard every event."""

    async def emit(self, event: ProgressEvent) -> None:
        return None


class SessionSink:
    """Publish events for one session through a :class:`ProgressBroker`."""

    def __init__(self, broker: "ProgressBroker", session_id: str) -> None:
        self._broker = broker
        self._session_id = session_id

    async def emit(self, event: ProgressEvent) -> None:
        self._broker.publish(self._session_id, event)


class ProgressBroker:
    """Registry of ``session_id → asyncio.Queue``.

    One instance lives on ``app.state``; nothing here is process-global.
    Events published for a session nobody is subscribed to are dropped.
    A ``None`` item on a queue marks the end of the run.
    """

    def __init__(self) -> None:
        self._queues: dict[str, asyncio.Queue[ProgressEvent | None]] = {}

    def subscribe(self, session_id: str) -> "asyncio.Queue[ProgressEvent | None]":
        """Register a new queue for *session_id*.

        A stream already following the session is ended so that only the
        newest subscriber receives the run's events.
        """
        queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()
        previous = self._queues.get(session_id)
        if previous is not None:
            logger.info("[PROGRESS] Replacing existing subscriber for session %s", session_id)
            previous.put_nowait(None)
        self._queues[session_id] = queue
        return queue

    def unsubscribe(
        self,
        session_id: str,
        queue: "asyncio.Queue[ProgressEvent | None] | None" = None,
    ) -> None:
        """Drop the subscription for *session_id*.

        When *queue* is given the subscription is only removed if it is still
        that queue, so a replaced stream cannot detach its successor.
        """
        if queue is not None and self._queues.get(session_id) is not queue:
            return
        self._queues.pop(session_id, None)

    def is_subscribed(self, session_id: str) -> bool:
        return session_id in self._queues

    def publish(self, session_id: str, event: ProgressEvent) -> None:
        queue = self._queues.get(session_id)
        if queue is None:
            return
        queue.put_nowait(event)

    def complete(self, session_id: str) -> None:
        """Signal end-of-stream to the subscriber (if any)."""
        queue = self._queues.get(session_id)
        if queue is not None:
            queue.put_nowait(None)

    def sink(self, session_id: str) -> SessionSink:
        return SessionSink(self, session_id)
