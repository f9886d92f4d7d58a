"""Firecrawl scraping-provider client.

The provider renders the page, keeps only the main content and returns it as
Markdown together with page metadata.  Only the ``/v1/scrape`` endpoint is
used; crawling whole sites is out of scope.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from faqbot.config import settings
from faqbot.errors import FetchError
from faqbot.scraper.models import RawPage

logger = logging.getLogger(__name__)


def _scrape_payload(url: str) -> dict[str, Any]:
    return {
        "url": url,
        "formats": ["markdown", "html"],
        "onlyMainContent": True,
        # Give client-side rendering time to populate the DOM.
        "waitFor": settings.firecrawl_wait_for_ms,
    }


async def fetch_with_firecrawl(url: str, api_key: str) -> RawPage:
    """Scrape *url* through Firecrawl and return a Markdown :class:`RawPage`.

    Raises:
        FetchError: On transport failure, a non-2xx response, or a response
            with ``success: false`` / no ``data``.
    """
    logger.info("[FETCH] Firecrawl scrape: %s", url)
    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
            response = await client.post(
                settings.firecrawl_url,
                json=_scrape_payload(url),
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"Firecrawl request failed: {exc}") from exc

    if not response.is_success:
        raise FetchError(
            f"Firecrawl API error ({response.status_code}): {response.text}",
            status_code=response.status_code,
        )

    try:
        result = response.json()
    except ValueError as exc:
        raise FetchError(f"Firecrawl returned invalid JSON: {exc}") from exc

    data = result.get("data")
    if not result.get("success") or not data:
        raise FetchError(f"Firecrawl scrape failed: {result.get('error') or 'unknown error'}")

    metadata = data.get("metadata") or {}
    markdown = data.get("markdown") or ""
    logger.info("[FETCH] Firecrawl ✓ %s (%d chars)", url, len(markdown))
    return RawPage(
        url=url,
        content=markdown,
        status_code=int(metadata.get("statusCode") or response.status_code),
        format="markdown",
        metadata=metadata,
    )
