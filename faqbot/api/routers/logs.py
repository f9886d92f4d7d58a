"""Run log endpoints.

Routes
------
GET    /logs?limit=50    Entries newest-first
DELETE /logs             Reset the log to an empty array
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query, Request

router = APIRouter()


@router.get("")
async def list_logs(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, description="Return at most this many entries."),
) -> list[dict[str, Any]]:
    """Return run records, newest first."""
    entries = await request.app.state.log_store.get_logs()
    if limit is not None:
        entries = entries[:limit]
    return [entry.to_dict() for entry in entries]


@router.delete("", status_code=204)
async def clear_logs(request: Request) -> None:
    """Delete every run record."""
    await request.app.state.log_store.clear_all_logs()
