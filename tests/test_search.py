"""Tests for faqbot.pipeline.search.

The Serper provider is exercised through ``respx``; the aggregation logic is
exercised with an in-process fake provider.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
import respx

from faqbot.config import settings
from faqbot.errors import SearchError
from faqbot.pipeline.models import RelatedQuestion
from faqbot.pipeline.search import (
    SearchProvider,
    SerperSearchProvider,
    search_related_questions,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class FakeProvider(SearchProvider):
    """Answers ``"<keyword>?"`` after *delays[keyword]* seconds; fails for *failing*."""

    def __init__(self, failing: set[str] | None = None, delays: dict[str, float] | None = None):
        self.failing = failing or set()
        self.delays = delays or {}
        self.queried: list[str] = []

    @property
    def name(self) -> str:
        return "Fake"

    async def related_questions(self, keyword: str) -> list[RelatedQuestion]:
        self.queried.append(keyword)
        await asyncio.sleep(self.delays.get(keyword, 0))
        if keyword in self.failing:
            raise SearchError(f"search failed for {keyword}", status_code=500)
        return [RelatedQuestion(question=f"{keyword}?")]


def _serper_handler(request: httpx.Request) -> httpx.Response:
    q = json.loads(request.content)["q"]
    if q == "broken":
        return httpx.Response(500, text="upstream exploded")
    return httpx.Response(
        200,
        json={
            "organic": [],
            "peopleAlsoAsk": [
                {"question": f"What is {q}?", "snippet": "A snippet.", "title": "T", "link": "https://a.test"},
                {"snippet": "entry without a question"},
            ],
        },
    )


# ===========================================================================
# SerperSearchProvider
# ===========================================================================

class TestSerperSearchProvider:
    @respx.mock
    async def test_parses_people_also_ask(self):
        route = respx.post(settings.serper_url).mock(side_effect=_serper_handler)

        questions = await SerperSearchProvider("serper-key").related_questions("coffee")

        assert questions == [
            RelatedQuestion(
                question="What is coffee?", snippet="A snippet.", title="T", link="https://a.test"
            )
        ]
        request = route.calls.last.request
        assert request.headers["X-API-KEY"] == "serper-key"
        assert json.loads(request.content) == {"q": "coffee"}

    @respx.mock
    async def test_missing_block_is_empty(self):
        respx.post(settings.serper_url).mock(return_value=httpx.Response(200, json={"organic": []}))

        assert await SerperSearchProvider("k").related_questions("nothing") == []

    @respx.mock
    async def test_http_error_raises(self):
        respx.post(settings.serper_url).mock(side_effect=_serper_handler)

        with pytest.raises(SearchError) as excinfo:
            await SerperSearchProvider("k").related_questions("broken")

        assert excinfo.value.status_code == 500
        assert excinfo.value.message == "Serper API error: 500 - upstream exploded"

    @respx.mock
    async def test_transport_error_raises(self):
        respx.post(settings.serper_url).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(SearchError):
            await SerperSearchProvider("k").related_questions("slow")


# ===========================================================================
# search_related_questions
# ===========================================================================

class TestSearchRelatedQuestions:
    async def test_results_follow_keyword_order(self):
        # The first keyword answers last; output order must not change.
        provider = FakeProvider(delays={"a": 0.03, "b": 0.01, "c": 0})

        questions = await search_related_questions(["a", "b", "c"], provider)

        assert [q.question for q in questions] == ["a?", "b?", "c?"]

    async def test_duplicates_are_kept(self):
        questions = await search_related_questions(["same", "same"], FakeProvider())

        assert [q.question for q in questions] == ["same?", "same?"]

    async def test_tolerant_skips_failed_keyword(self):
        failures: list[tuple[str, str]] = []
        provider = FakeProvider(failing={"b"})

        questions = await search_related_questions(
            ["a", "b", "c"],
            provider,
            on_failure=lambda kw, exc: failures.append((kw, exc.message)),
        )

        assert [q.question for q in questions] == ["a?", "c?"]
        assert failures == [("b", "search failed for b")]
        assert sorted(provider.queried) == ["a", "b", "c"]

    async def test_tolerant_all_failed_is_empty(self):
        provider = FakeProvider(failing={"a", "b"})

        assert await search_related_questions(["a", "b"], provider) == []

    async def test_strict_raises(self):
        provider = FakeProvider(failing={"b"})

        with pytest.raises(SearchError, match="search failed for b"):
            await search_related_questions(["a", "b", "c"], provider, strict=True)

    async def test_no_keywords(self):
        provider = FakeProvider()

        assert await search_related_questions([], provider) == []
        assert provider.queried == []

    @respx.mock
    async def test_with_serper_partial_failure(self):
        respx.post(settings.serper_url).mock(side_effect=_serper_handler)

        questions = await search_related_questions(
            ["coffee", "broken", "tea"], SerperSearchProvider("k")
        )

        assert [q.question for q in questions] == ["What is coffee?", "What is tea?"]
