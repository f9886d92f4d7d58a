"""FAQ generation endpoint.

Routes
------
POST /faq    Body: {"url": "https://...", "openrouter_api_key": "...",
                    "serper_api_key": "...", "session_id": "..."}

Keys omitted from the body fall back to the server's environment
(``OPENROUTER_API_KEY`` / ``SERPER_API_KEY`` / ``FIRECRAWL_API_KEY``).  When
``session_id`` is given, progress events are published to
``GET /progress/{session_id}`` while the run is in flight.

A terminal stage failure is still a ``200``: the body carries ``error`` and
``failed_stage`` next to whatever the earlier stages produced.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, HttpUrl

from faqbot.config import Credentials
from faqbot.pipeline import run_pipeline
from faqbot.pipeline.jsonutil import clean_faq_schema

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class FaqRequest(BaseModel):
    url: HttpUrl
    openrouter_api_key: Optional[str] = None
    serper_api_key: Optional[str] = None
    firecrawl_api_key: Optional[str] = None
    session_id: Optional[str] = None
    strict_search: Optional[bool] = None


class RelatedQuestionOut(BaseModel):
    question: str
    snippet: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None


class FaqResponse(BaseModel):
    url: str
    keywords: list[str]
    related_questions: list[RelatedQuestionOut]
    faq_schema: str
    faq_schema_json: Optional[str] = None
    plain_text_faq: str
    error: Optional[str] = None
    failed_stage: Optional[str] = None
    warnings: list[str] = []
    content_analysis: Optional[dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _credentials(body: FaqRequest) -> Credentials:
    """Merge request keys over environment keys; 422 when any is missing."""
    env = Credentials.from_env()
    credentials = Credentials(
        openrouter_api_key=body.openrouter_api_key or env.openrouter_api_key,
        serper_api_key=body.serper_api_key or env.serper_api_key,
        firecrawl_api_key=body.firecrawl_api_key or env.firecrawl_api_key,
    )
    missing = credentials.missing()
    if missing:
        raise HTTPException(
            status_code=422, detail=f"Missing API key(s): {', '.join(missing)}"
        )
    return credentials


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("", response_model=FaqResponse)
async def generate_faq(body: FaqRequest, request: Request) -> dict[str, Any]:
    """Run the FAQ pipeline for ``body.url`` and return the aggregate result."""
    credentials = _credentials(body)
    broker = request.app.state.progress
    sink = broker.sink(body.session_id) if body.session_id else None

    try:
        result = await run_pipeline(
            str(body.url),
            credentials,
            sink=sink,
            log_store=request.app.state.log_store,
            strict_search=body.strict_search,
        )
    finally:
        if body.session_id:
            broker.complete(body.session_id)

    payload = result.to_dict()
    payload["faq_schema_json"] = clean_faq_schema(result.faq_schema) if result.ok else None
    return payload
