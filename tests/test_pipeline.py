"""Tests for the LangGraph FAQ pipeline (faqbot.pipeline.runner / nodes / graph).

Mocking strategy:
- ``faqbot.pipeline.nodes.fetch_page`` is patched so no page is downloaded.
- The ``complete`` helper is patched in each LLM-calling stage module with a
  fake that answers per stage.
- Related-question search uses an injected in-process provider.
- The run log is written to a per-test file under ``tmp_path``.
"""

from __future__ import annotations

import json
from contextlib import ExitStack, contextmanager
from typing import Any, Iterator
from unittest.mock import AsyncMock, patch

import pytest

from faqbot.config import Credentials, settings
from faqbot.errors import FetchError, SearchError
from faqbot.logstore import LogStore
from faqbot.pipeline import run_pipeline
from faqbot.pipeline.model_configs import EXTRACT_KEYWORDS, FORMAT_FAQ, GENERATE_FAQ_SCHEMA
from faqbot.pipeline.models import RelatedQuestion
from faqbot.pipeline.nodes import PLAIN_TEXT_PLACEHOLDER
from faqbot.pipeline.search import SearchProvider
from faqbot.progress import COMPLETE, ERROR, ProgressEvent
from faqbot.scraper.models import RawPage

URL = "https://example.com/how-to-brew-coffee"
CREDS = Credentials(openrouter_api_key="or-key", serper_api_key="serper-key")

_KEYWORDS = ["coffee", "brewing", "how to brew"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _page_html(title: str = "How to Brew Coffee") -> str:
    body = " ".join(["Brewing coffee well takes fresh beans and patience."] * 60)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><nav>Home Shop</nav><main><p>{body}</p></main></body></html>"
    )


def _raw(html: str | None = None) -> RawPage:
    return RawPage(url=URL, content=html or _page_html(), status_code=200)


def _schema(count: int = 6) -> str:
    return json.dumps(
        {
            "@context": "https://schema.org",
            "@type": "FAQPage",
            "mainEntity": [
                {
                    "@type": "Question",
                    "name": f"Question {i}?",
                    "acceptedAnswer": {"@type": "Answer", "text": f"Answer {i}."},
                }
                for i in range(count)
            ],
        }
    )


def _plain_text(count: int = 6) -> str:
    return "\n\n".join(f"問：Question {i}?\n答：Answer {i}." for i in range(count))


class FakeProvider(SearchProvider):
    """Two related questions per keyword; keywords in *failing* raise."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()

    @property
    def name(self) -> str:
        return "Fake"

    async def related_questions(self, keyword: str) -> list[RelatedQuestion]:
        if keyword in self.failing:
            raise SearchError(f"Serper API error: 500 - {keyword} failed", status_code=500)
        return [
            RelatedQuestion(question=f"What is {keyword}?", snippet="..."),
            RelatedQuestion(question=f"Why {keyword}?"),
        ]


class ListSink:
    """Collects progress events in memory."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    async def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)


@contextmanager
def fake_llm(replies: dict[str, Any]) -> Iterator[list[str]]:
    """Patch every stage's ``complete``; yields the list of stages called.

    A reply that is an exception instance is raised instead of returned.
    """
    calls: list[str] = []

    async def _complete(stage: str, api_key: str, system: str, user: str) -> str:
        calls.append(stage)
        reply = replies[stage]
        if isinstance(reply, Exception):
            raise reply
        return reply

    with ExitStack() as stack:
        for module in ("keywords", "schema", "formatter"):
            stack.enter_context(patch(f"faqbot.pipeline.{module}.complete", _complete))
        yield calls


def _replies(**overrides: Any) -> dict[str, Any]:
    replies: dict[str, Any] = {
        EXTRACT_KEYWORDS: json.dumps(_KEYWORDS),
        GENERATE_FAQ_SCHEMA: _schema(),
        FORMAT_FAQ: _plain_text(),
    }
    replies.update(overrides)
    return replies


@pytest.fixture()
def store(tmp_path) -> LogStore:
    return LogStore(tmp_path / "admin_logs.json")


@pytest.fixture()
def fetch_ok():
    with patch("faqbot.pipeline.nodes.fetch_page", AsyncMock(return_value=_raw())) as mock:
        yield mock


# ===========================================================================
# Happy path
# ===========================================================================

class TestEndToEnd:
    async def test_coffee_page(self, store, fetch_ok):
        sink = ListSink()
        with fake_llm(_replies()) as calls:
            result = await run_pipeline(
                URL, CREDS, sink=sink, log_store=store, search_provider=FakeProvider()
            )

        assert result.ok
        assert result.error is None
        assert result.warnings == []
        assert result.keywords == _KEYWORDS
        assert len(result.related_questions) == 6
        assert [q.question for q in result.related_questions[:2]] == [
            "What is coffee?",
            "Why coffee?",
        ]
        assert len(json.loads(result.faq_schema)["mainEntity"]) == 6
        assert result.plain_text_faq.count("問：") == 6
        assert result.plain_text_faq.count("答：") == 6
        assert calls == [EXTRACT_KEYWORDS, GENERATE_FAQ_SCHEMA, FORMAT_FAQ]
        fetch_ok.assert_awaited_once_with(URL, CREDS)

    async def test_log_entry_is_complete(self, store, fetch_ok):
        with fake_llm(_replies()):
            await run_pipeline(URL, CREDS, log_store=store, search_provider=FakeProvider())

        entries = await store.get_logs()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.url == URL
        assert entry.timestamp.endswith("Z")
        assert entry.keywords == _KEYWORDS
        assert len(entry.people_also_ask) == 6
        assert entry.faq_schema == _schema()
        assert entry.plain_text_faq == _plain_text()
        assert entry.error is None

    async def test_progress_events(self, store, fetch_ok):
        sink = ListSink()
        with fake_llm(_replies()):
            await run_pipeline(
                URL, CREDS, sink=sink, log_store=store, search_provider=FakeProvider()
            )

        steps = [e.step for e in sink.events]
        assert steps[0] == "fetch"
        for step in ("extract", "keywords", "search", "schema", "format"):
            assert step in steps
        last = sink.events[-1]
        assert (last.step, last.status, last.progress) == ("done", COMPLETE, 100)
        progress = [e.progress for e in sink.events if e.progress is not None]
        assert progress == sorted(progress)


# ===========================================================================
# Content analysis
# ===========================================================================

class TestContentAnalysis:
    _HTML = (
        "<html><head><title>How to Brew Coffee</title>"
        '<meta name="description" content="Brew better coffee at home."></head>'
        "<body><main><h1>How to Brew Coffee</h1><h2>Grind size</h2>"
        "<p>Brewing coffee well takes fresh beans and patience.</p></main></body></html>"
    )

    @staticmethod
    @contextmanager
    def _schema_prompts() -> Iterator[list[str]]:
        prompts: list[str] = []

        async def _complete(stage: str, api_key: str, system: str, user: str) -> str:
            prompts.append(user)
            return _schema()

        with patch("faqbot.pipeline.schema.complete", _complete):
            yield prompts

    async def test_analysis_reaches_prompt_and_result(self, store):
        with patch("faqbot.pipeline.nodes.fetch_page", AsyncMock(return_value=_raw(self._HTML))):
            with fake_llm(_replies()), self._schema_prompts() as prompts:
                result = await run_pipeline(
                    URL, CREDS, log_store=store, search_provider=FakeProvider()
                )

        assert result.ok
        analysis = result.content_analysis
        assert analysis["meta_description"] == "Brew better coffee at home."
        assert [h["text"] for h in analysis["headings"]] == ["How to Brew Coffee", "Grind size"]
        assert result.to_dict()["content_analysis"] == analysis
        assert "Meta Description: Brew better coffee at home." in prompts[0]
        assert "Page Outline: H1 How to Brew Coffee | H2 Grind size" in prompts[0]

    async def test_disabled_by_setting(self, store, monkeypatch):
        monkeypatch.setattr(settings, "content_analysis", False)
        with patch("faqbot.pipeline.nodes.fetch_page", AsyncMock(return_value=_raw(self._HTML))):
            with fake_llm(_replies()), self._schema_prompts() as prompts:
                result = await run_pipeline(
                    URL, CREDS, log_store=store, search_provider=FakeProvider()
                )

        assert result.ok
        assert result.content_analysis is None
        assert "Meta Description" not in prompts[0]


# ===========================================================================
# Keyword stage
# ===========================================================================

class TestKeywordFallback:
    async def test_empty_llm_result_uses_title_tokens(self, store, fetch_ok):
        with fake_llm(_replies(**{EXTRACT_KEYWORDS: "Sorry, no keywords."})):
            result = await run_pipeline(
                URL, CREDS, log_store=store, search_provider=FakeProvider()
            )

        assert result.ok
        assert result.keywords == ["Brew", "Coffee"]
        assert result.warnings == []

    async def test_provider_error_uses_title_tokens(self, store, fetch_ok):
        with fake_llm(_replies(**{EXTRACT_KEYWORDS: RuntimeError("503 upstream")})):
            result = await run_pipeline(
                URL, CREDS, log_store=store, search_provider=FakeProvider()
            )

        assert result.ok
        assert result.keywords == ["Brew", "Coffee"]
        assert result.warnings == ["Error extracting keywords: 503 upstream"]
        entry = (await store.get_logs())[0]
        assert entry.error == "Error extracting keywords: 503 upstream"

    async def test_short_title_aborts(self, store):
        raw = _raw(_page_html(title="A to Z"))
        with patch("faqbot.pipeline.nodes.fetch_page", AsyncMock(return_value=raw)):
            with fake_llm(_replies(**{EXTRACT_KEYWORDS: "[]"})) as calls:
                result = await run_pipeline(
                    URL, CREDS, log_store=store, search_provider=FakeProvider()
                )

        assert not result.ok
        assert result.failed_stage == "keywords"
        assert calls == [EXTRACT_KEYWORDS]
        assert len(await store.get_logs()) == 1


# ===========================================================================
# Search stage
# ===========================================================================

class TestSearchPolicy:
    async def test_tolerant_skips_failed_keyword(self, store, fetch_ok):
        provider = FakeProvider(failing={"brewing"})
        with fake_llm(_replies()):
            result = await run_pipeline(URL, CREDS, log_store=store, search_provider=provider)

        assert result.ok
        assert [q.question for q in result.related_questions] == [
            "What is coffee?",
            "Why coffee?",
            "What is how to brew?",
            "Why how to brew?",
        ]
        assert result.warnings == ["Serper API error: 500 - brewing failed"]
        entry = (await store.get_logs())[0]
        assert "brewing failed" in entry.error
        assert len(entry.people_also_ask) == 4

    async def test_no_related_questions_still_generates(self, store, fetch_ok):
        provider = FakeProvider(failing=set(_KEYWORDS))
        with fake_llm(_replies()) as calls:
            result = await run_pipeline(URL, CREDS, log_store=store, search_provider=provider)

        assert result.ok
        assert result.related_questions == []
        assert GENERATE_FAQ_SCHEMA in calls

    async def test_strict_aborts(self, store, fetch_ok):
        provider = FakeProvider(failing={"brewing"})
        with fake_llm(_replies()) as calls:
            result = await run_pipeline(
                URL, CREDS, log_store=store, strict_search=True, search_provider=provider
            )

        assert result.failed_stage == "search"
        assert result.error == "Serper API error: 500 - brewing failed"
        assert result.keywords == _KEYWORDS
        assert calls == [EXTRACT_KEYWORDS]


# ===========================================================================
# Late stages
# ===========================================================================

class TestLateStageFailures:
    async def test_schema_failure_is_not_fatal(self, store, fetch_ok):
        with fake_llm(_replies(**{GENERATE_FAQ_SCHEMA: RuntimeError("429")})) as calls:
            result = await run_pipeline(
                URL, CREDS, log_store=store, search_provider=FakeProvider()
            )

        assert result.ok
        assert result.faq_schema == "Error generating FAQ schema: 429"
        assert result.plain_text_faq == PLAIN_TEXT_PLACEHOLDER
        assert result.keywords == _KEYWORDS
        assert len(result.related_questions) == 6
        assert FORMAT_FAQ not in calls
        entry = (await store.get_logs())[0]
        assert entry.faq_schema == "Error generating FAQ schema: 429"
        assert entry.error == "Error generating FAQ schema: 429"

    async def test_format_failure_is_not_fatal(self, store, fetch_ok):
        with fake_llm(_replies(**{FORMAT_FAQ: RuntimeError("timeout")})):
            result = await run_pipeline(
                URL, CREDS, log_store=store, search_provider=FakeProvider()
            )

        assert result.ok
        assert result.faq_schema == _schema()
        assert result.plain_text_faq == "Error formatting FAQ to plain text: timeout"
        assert result.warnings == ["Error formatting FAQ to plain text: timeout"]


# ===========================================================================
# Early-stage failures and the run log
# ===========================================================================

class TestTerminalFailures:
    async def test_fetch_failure(self, store):
        sink = ListSink()
        error = FetchError("Failed to fetch URL: 404 Not Found", status_code=404)
        with patch("faqbot.pipeline.nodes.fetch_page", AsyncMock(side_effect=error)):
            with fake_llm(_replies()) as calls:
                result = await run_pipeline(URL, CREDS, sink=sink, log_store=store)

        assert result.failed_stage == "fetch"
        assert result.error == "Failed to fetch URL: 404 Not Found"
        assert result.keywords == []
        assert calls == []
        assert sink.events[-2].status == ERROR
        assert (sink.events[-1].step, sink.events[-1].status) == ("done", ERROR)

        entries = await store.get_logs()
        assert len(entries) == 1
        assert entries[0].url == URL
        assert entries[0].timestamp
        assert entries[0].error == "Failed to fetch URL: 404 Not Found"

    async def test_extraction_failure(self, store):
        raw = _raw("<html><body><p>No title anywhere.</p></body></html>")
        with patch("faqbot.pipeline.nodes.fetch_page", AsyncMock(return_value=raw)):
            with fake_llm(_replies()) as calls:
                result = await run_pipeline(URL, CREDS, log_store=store)

        assert result.failed_stage == "extract"
        assert calls == []

    async def test_unexpected_error(self, store):
        with patch(
            "faqbot.pipeline.nodes.fetch_page", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            result = await run_pipeline(URL, CREDS, log_store=store)

        assert result.failed_stage == "pipeline"
        assert result.error == "boom"
        assert (await store.get_logs())[0].error == "boom"

    async def test_one_log_entry_per_run(self, store, fetch_ok):
        with fake_llm(_replies()):
            await run_pipeline(URL, CREDS, log_store=store, search_provider=FakeProvider())
        with patch(
            "faqbot.pipeline.nodes.fetch_page",
            AsyncMock(side_effect=FetchError("Error fetching URL: refused")),
        ):
            await run_pipeline("https://example.com/down", CREDS, log_store=store)

        entries = await store.get_logs()
        assert len(entries) == 2
        assert {e.url for e in entries} == {URL, "https://example.com/down"}
        assert all(e.timestamp for e in entries)

    async def test_log_write_failure_does_not_break_run(self, store, fetch_ok):
        with patch.object(store, "add_entry", AsyncMock(side_effect=OSError("disk full"))):
            with fake_llm(_replies()):
                result = await run_pipeline(
                    URL, CREDS, log_store=store, search_provider=FakeProvider()
                )

        assert result.ok
