"""Related-question search ("People Also Ask") via a web search API.

One request is issued per keyword; the requests run concurrently and their
results are concatenated in keyword order without de-duplication.

Failure policy
--------------
*tolerant* (default)
    A failed keyword query is logged and skipped.  If every query fails the
    result is simply ``[]``.
*strict*
    The first failed query aborts the stage with :class:`SearchError`.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable

import httpx

from faqbot.config import settings
from faqbot.errors import SearchError
from faqbot.pipeline.models import RelatedQuestion

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class SearchProvider(ABC):
    """A search API that can list related questions for a query."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""

    @abstractmethod
    async def related_questions(self, keyword: str) -> list[RelatedQuestion]:
        """Return the related questions for *keyword*.

        Raises:
            SearchError: On transport failure or a non-2xx response.
        """


# ---------------------------------------------------------------------------
# Serper provider
# ---------------------------------------------------------------------------

class SerperSearchProvider(SearchProvider):
    """Serper.dev Google search API (``peopleAlsoAsk`` block)."""

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    @property
    def name(self) -> str:
        return "Serper"

    async def related_questions(self, keyword: str) -> list[RelatedQuestion]:
        try:
            async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
                resp = await client.post(
                    settings.serper_url,
                    json={"q": keyword},
                    headers={
                        "X-API-KEY": self._api_key,
                        "Content-Type": "application/json",
                    },
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SearchError(f"Serper request failed for {keyword!r}: {exc}") from exc

        if not resp.is_success:
            raise SearchError(
                f"Serper API error: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise SearchError(f"Serper returned invalid JSON for {keyword!r}") from exc

        items = data.get("peopleAlsoAsk") or []
        return [
            RelatedQuestion.from_dict(item)
            for item in items
            if isinstance(item, dict) and item.get("question")
        ]


# ---------------------------------------------------------------------------
# Stage entry point
# ---------------------------------------------------------------------------

async def search_related_questions(
    keywords: list[str],
    provider: SearchProvider,
    strict: bool = False,
    on_failure: Callable[[str, SearchError], None] | None = None,
) -> list[RelatedQuestion]:
    """Query *provider* once per keyword and concatenate the results.

    Args:
        keywords: Queries to run, in result order.
        provider: The search API to query.
        strict: Abort on the first failed query instead of skipping it.
        on_failure: Optional callback receiving ``(keyword, error)`` for every
            failed query (called before a strict abort as well).

    Raises:
        SearchError: Only when *strict* is set and at least one query failed.
    """

    async def _one(keyword: str) -> list[RelatedQuestion] | SearchError:
        try:
            found = await provider.related_questions(keyword)
        except SearchError as exc:
            logger.error("[SEARCH] %s query %r failed: %s", provider.name, keyword, exc)
            if on_failure is not None:
                on_failure(keyword, exc)
            return exc
        logger.info("[SEARCH] %s %r → %d question(s).", provider.name, keyword, len(found))
        return found

    outcomes = await asyncio.gather(*(_one(keyword) for keyword in keywords))

    questions: list[RelatedQuestion] = []
    for outcome in outcomes:
        if isinstance(outcome, SearchError):
            if strict:
                raise outcome
            continue
        questions.extend(outcome)
    return questions
