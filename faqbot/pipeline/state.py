"""State bag threaded through the pipeline graph.

Credentials are deliberately absent: node closures capture them so they
never appear in streamed state snapshots.
"""

from __future__ import annotations

from typing import TypedDict

from faqbot.pipeline.analysis import ContentAnalysis
from faqbot.pipeline.models import RelatedQuestion
from faqbot.scraper.models import PageContent, RawPage

# Status values, in pipeline order.
FETCHING = "fetching"
EXTRACTING = "extracting"
EXTRACTING_KEYWORDS = "extracting_keywords"
SEARCHING = "searching"
GENERATING_SCHEMA = "generating_schema"
FORMATTING_TEXT = "formatting_text"
DONE = "done"
FAILED = "failed"


class PipelineState(TypedDict, total=False):
    url: str
    status: str
    raw: RawPage | None
    page: PageContent | None
    analysis: ContentAnalysis | None
    keywords: list[str]
    related_questions: list[RelatedQuestion]
    faq_schema: str
    schema_failed: bool
    plain_text_faq: str
    warnings: list[str]
    error: str | None
    failed_stage: str | None


def initial_state(url: str) -> PipelineState:
    return {
        "url": url,
        "status": FETCHING,
        "raw": None,
        "page": None,
        "analysis": None,
        "keywords": [],
        "related_questions": [],
        "faq_schema": "",
        "schema_failed": False,
        "plain_text_faq": "",
        "warnings": [],
        "error": None,
        "failed_stage": None,
    }
