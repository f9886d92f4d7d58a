"""Per-session progress stream with Server-Sent Events (SSE).

Routes
------
GET /progress/{session_id}

Open this stream *before* posting to ``/faq`` with the same ``session_id``.
The first frame confirms the subscription; every pipeline event follows as
its own frame, and the stream closes after the run's final ``done`` event.
A ``: heartbeat`` comment is sent while the run is quiet to keep proxies
from timing the connection out.

SSE event format
----------------
Each event is a JSON-encoded object on the ``data:`` line::

    data: {"step": "connected", "status": "start", "message": "...", "timestamp": ...}

    data: {"step": "keywords", "status": "complete", "message": "...", "progress": 45, ...}
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from faqbot.config import settings
from faqbot.progress import START, ProgressBroker, ProgressEvent

router = APIRouter()


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------

def _sse(payload: dict[str, Any]) -> str:
    """Format a payload dict as a single SSE ``data:`` line."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def _progress_sse_generator(
    broker: ProgressBroker,
    session_id: str,
    heartbeat: float,
) -> AsyncIterator[str]:
    """Yield SSE frames for *session_id* until the run signals completion."""
    queue = broker.subscribe(session_id)
    try:
        yield _sse(
            ProgressEvent(
                step="connected",
                status=START,
                message="Connected to progress stream",
            ).to_dict()
        )
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat)
            except asyncio.TimeoutError:
                yield ": heartbeat\n\n"
                continue
            if event is None:
                break
            yield _sse(event.to_dict())
    finally:
        broker.unsubscribe(session_id, queue)


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

@router.get("/{session_id}")
async def progress(session_id: str, request: Request) -> StreamingResponse:
    """Stream progress events for *session_id* as ``text/event-stream``."""
    return StreamingResponse(
        _progress_sse_generator(
            request.app.state.progress, session_id, settings.sse_heartbeat_seconds
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",   # disable nginx proxy buffering
        },
    )
