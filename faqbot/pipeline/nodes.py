"""LangGraph node functions for the FAQ pipeline.

Each public symbol is a *factory* that accepts a :class:`NodeContext` and
returns an async callable ``(PipelineState) -> dict`` suitable for use as a
LangGraph node.  Using factories (closures) keeps credentials, the progress
sink and the run's log entry out of the state bag while still letting every
node reach them.

Public factories
----------------
``make_fetcher``            — fetches the page (direct or Firecrawl).
``make_extractor``          — isolates title and body text and analyses the page.
``make_keyword_extractor``  — LLM keywords with a title-token fallback.
``make_searcher``           — related questions, one query per keyword.
``make_schema_generator``   — FAQPage JSON-LD via LLM (never fails the run).
``make_text_formatter``     — 問/答 plain text via LLM (never fails the run).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from faqbot.config import Credentials, settings
from faqbot.errors import KeywordExtractionError, PipelineError, SearchError
from faqbot.logstore.models import LogEntry
from faqbot.pipeline import state as st
from faqbot.pipeline.analysis import analyze_page
from faqbot.pipeline.formatter import format_faq_to_text
from faqbot.pipeline.keywords import extract_keywords, fallback_keywords
from faqbot.pipeline.schema import generate_faq_schema
from faqbot.pipeline.search import SearchProvider, SerperSearchProvider, search_related_questions
from faqbot.pipeline.state import PipelineState
from faqbot.progress import COMPLETE, ERROR, START, NullSink, ProgressEvent, ProgressSink
from faqbot.scraper.extractor import extract_content
from faqbot.scraper.fetcher import fetch_page

logger = logging.getLogger(__name__)

PLAIN_TEXT_PLACEHOLDER = "Could not generate plain text FAQ."


@dataclass
class NodeContext:
    """Everything a node needs besides the state bag."""

    credentials: Credentials
    log_entry: LogEntry
    sink: ProgressSink = field(default_factory=NullSink)
    strict_search: bool = False
    search_provider: SearchProvider | None = None

    def provider(self) -> SearchProvider:
        return self.search_provider or SerperSearchProvider(self.credentials.serper_api_key)

    async def report(
        self, step: str, status: str, message: str, progress: int | None = None
    ) -> None:
        await self.sink.emit(
            ProgressEvent(step=step, status=status, message=message, progress=progress)
        )


async def _fail(ctx: NodeContext, exc: PipelineError) -> dict:
    """Turn a terminal stage error into a ``failed`` state update."""
    logger.error("[%s] %s", exc.stage.upper(), exc.message)
    ctx.log_entry.add_error(exc.message)
    await ctx.report(exc.stage, ERROR, exc.message)
    return {"status": st.FAILED, "error": exc.message, "failed_stage": exc.stage}


# ---------------------------------------------------------------------------
# Node factories
# ---------------------------------------------------------------------------

def make_fetcher(ctx: NodeContext):
    """Return a *fetcher* node function."""

    async def fetcher(state: PipelineState) -> dict:
        url = state["url"]
        await ctx.report("fetch", START, f"Fetching {url}", 5)
        try:
            raw = await fetch_page(url, ctx.credentials)
        except PipelineError as exc:
            return await _fail(ctx, exc)
        await ctx.report("fetch", COMPLETE, f"Fetched {len(raw.content)} characters", 15)
        return {"raw": raw, "status": st.EXTRACTING}

    return fetcher


def make_extractor(ctx: NodeContext):
    """Return an *extractor* node function."""

    async def extractor(state: PipelineState) -> dict:
        await ctx.report("extract", START, "Extracting title and content", 20)
        raw = state["raw"]
        try:
            page = extract_content(raw)
        except PipelineError as exc:
            return await _fail(ctx, exc)
        logger.info("[EXTRACT] title=%r body=%d chars", page.title, len(page.body_text))
        analysis = analyze_page(raw) if settings.content_analysis else None
        if analysis is not None:
            logger.info(
                "[ANALYSIS] seo_score=%d headings=%d schema=%s",
                analysis.seo_score,
                len(analysis.headings),
                analysis.existing_schema_types,
            )
        await ctx.report("extract", COMPLETE, f"Title: {page.title}", 30)
        return {"page": page, "analysis": analysis, "status": st.EXTRACTING_KEYWORDS}

    return extractor


def make_keyword_extractor(ctx: NodeContext):
    """Return a *keyword extractor* node function.

    An empty LLM result *or* a provider error falls back to the title's
    tokens longer than three characters.  Only an empty fallback fails.
    """

    async def keyword_extractor(state: PipelineState) -> dict:
        await ctx.report("keywords", START, "Extracting keywords", 35)
        title = state["page"].title
        warnings = list(state.get("warnings", []))

        try:
            keywords = await extract_keywords(title, ctx.credentials.openrouter_api_key)
        except KeywordExtractionError as exc:
            logger.warning("[KEYWORDS] %s; falling back to title tokens.", exc.message)
            warnings.append(exc.message)
            ctx.log_entry.add_error(exc.message)
            keywords = []

        if not keywords:
            keywords = fallback_keywords(title)
            logger.info("[KEYWORDS] Using title tokens: %s", keywords)
            if not keywords:
                ctx.log_entry.keywords = []
                return await _fail(
                    ctx,
                    KeywordExtractionError(
                        "Failed to extract keywords and title is too short for fallback."
                    ),
                )

        ctx.log_entry.keywords = list(keywords)
        await ctx.report("keywords", COMPLETE, f"Keywords: {', '.join(keywords)}", 45)
        return {"keywords": keywords, "warnings": warnings, "status": st.SEARCHING}

    return keyword_extractor


def make_searcher(ctx: NodeContext):
    """Return a *searcher* node function."""

    async def searcher(state: PipelineState) -> dict:
        keywords = state["keywords"]
        await ctx.report("search", START, f"Searching related questions for {len(keywords)} keyword(s)", 50)
        warnings = list(state.get("warnings", []))

        def _record(keyword: str, exc: SearchError) -> None:
            warnings.append(exc.message)
            ctx.log_entry.add_error(exc.message)

        try:
            questions = await search_related_questions(
                keywords,
                ctx.provider(),
                strict=ctx.strict_search,
                on_failure=_record,
            )
        except SearchError as exc:
            ctx.log_entry.people_also_ask = []
            await ctx.report("search", ERROR, exc.message)
            # The error text was already recorded by the failure callback.
            return {"status": st.FAILED, "error": exc.message, "failed_stage": exc.stage}

        ctx.log_entry.people_also_ask = [q.to_dict() for q in questions]
        await ctx.report("search", COMPLETE, f"Found {len(questions)} related question(s)", 60)
        return {
            "related_questions": questions,
            "warnings": warnings,
            "status": st.GENERATING_SCHEMA,
        }

    return searcher


def make_schema_generator(ctx: NodeContext):
    """Return a *schema generator* node function.

    Never fails the run: a provider error becomes the schema payload and a
    warning.
    """

    async def schema_generator(state: PipelineState) -> dict:
        await ctx.report("schema", START, "Generating FAQ schema", 65)
        warnings = list(state.get("warnings", []))
        output = await generate_faq_schema(
            state["keywords"],
            state["page"],
            state.get("related_questions", []),
            ctx.credentials.openrouter_api_key,
            settings.faq_question_count,
            analysis=state.get("analysis"),
        )
        ctx.log_entry.faq_schema = output.text
        if output.ok:
            await ctx.report("schema", COMPLETE, "FAQ schema generated", 80)
        else:
            warnings.append(output.error or output.text)
            ctx.log_entry.add_error(output.error or output.text)
            await ctx.report("schema", ERROR, output.text, 80)
        return {
            "faq_schema": output.text,
            "warnings": warnings,
            "status": st.FORMATTING_TEXT,
            # Lets the formatter skip a schema that is really an error string.
            "schema_failed": not output.ok,
        }

    return schema_generator


def make_text_formatter(ctx: NodeContext):
    """Return a *text formatter* node function."""

    async def text_formatter(state: PipelineState) -> dict:
        warnings = list(state.get("warnings", []))
        schema = state.get("faq_schema", "")

        if state.get("schema_failed") or not schema:
            ctx.log_entry.plain_text_faq = PLAIN_TEXT_PLACEHOLDER
            return {"plain_text_faq": PLAIN_TEXT_PLACEHOLDER, "status": st.DONE}

        await ctx.report("format", START, "Formatting FAQ as plain text", 85)
        output = await format_faq_to_text(schema, ctx.credentials.openrouter_api_key)
        if output.ok:
            await ctx.report("format", COMPLETE, "Plain text FAQ ready", 95)
        else:
            warnings.append(output.error or output.text)
            ctx.log_entry.add_error(output.error or output.text)
            await ctx.report("format", ERROR, output.text, 95)
        ctx.log_entry.plain_text_faq = output.text
        return {"plain_text_faq": output.text, "warnings": warnings, "status": st.DONE}

    return text_formatter
