"""HTTP fetcher with an optional scraping-provider strategy.

Exactly one strategy runs per call.  The Firecrawl strategy is chosen when
``settings.fetch_backend == "firecrawl"`` *and* a Firecrawl key is present;
without a key the provider is unavailable and the direct fetch is used
instead.  A provider that answers with an error is never retried through the
direct path.
"""

from __future__ import annotations

import logging

import httpx

from faqbot.config import Credentials, settings
from faqbot.errors import FetchError
from faqbot.scraper.firecrawl import fetch_with_firecrawl
from faqbot.scraper.models import RawPage

logger = logging.getLogger(__name__)


def _default_headers() -> dict[str, str]:
    return {"User-Agent": settings.user_agent}


async def fetch_url(url: str, timeout: float | None = None) -> RawPage:
    """Fetch *url* directly and return its HTML as a :class:`RawPage`.

    Raises:
        FetchError: On a transport failure or a non-2xx response.  The
            status code is attached when the server answered.
    """
    try:
        async with httpx.AsyncClient(
            headers=_default_headers(),
            timeout=timeout or settings.request_timeout,
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"Error fetching URL: {exc}") from exc

    if not response.is_success:
        raise FetchError(
            f"Failed to fetch URL: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )

    logger.info("[FETCH] %s → %d (%d bytes)", url, response.status_code, len(response.text))
    return RawPage(url=url, content=response.text, status_code=response.status_code)


def firecrawl_available(credentials: Credentials) -> bool:
    """Return ``True`` when the scraping provider is configured and keyed."""
    return settings.fetch_backend.lower() == "firecrawl" and bool(
        credentials.firecrawl_api_key
    )


async def fetch_page(url: str, credentials: Credentials) -> RawPage:
    """Fetch *url* with the configured strategy."""
    if firecrawl_available(credentials):
        return await fetch_with_firecrawl(url, credentials.firecrawl_api_key or "")

    if settings.fetch_backend.lower() == "firecrawl":
        logger.warning("[FETCH] Firecrawl selected but no API key supplied; using direct fetch.")
    return await fetch_url(url)
