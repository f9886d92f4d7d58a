"""Scraper package — page fetch & content extraction."""

from faqbot.scraper.extractor import TRUNCATION_MARKER, extract_content
from faqbot.scraper.fetcher import fetch_page, fetch_url
from faqbot.scraper.firecrawl import fetch_with_firecrawl
from faqbot.scraper.models import PageContent, RawPage

__all__ = [
    "fetch_page",
    "fetch_url",
    "fetch_with_firecrawl",
    "extract_content",
    "TRUNCATION_MARKER",
    "RawPage",
    "PageContent",
]
