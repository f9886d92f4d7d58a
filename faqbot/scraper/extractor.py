"""Content extraction: turns a :class:`RawPage` into a :class:`PageContent`."""

from __future__ import annotations

import html as html_lib
import re

from bs4 import BeautifulSoup

from faqbot.config import settings
from faqbot.errors import ExtractionError, MissingBodyError, MissingTitleError
from faqbot.scraper.models import PageContent, RawPage

TRUNCATION_MARKER = "... (truncated)"

# Words that mark a Markdown line as site chrome rather than a page title.
_NAVIGATION_WORDS = ("menu", "navigation")

_MARKDOWN_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"```[\s\S]*?```"), ""),                 # code fences
    (re.compile(r"!\[.*?\]\(.*?\)"), ""),                # images
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),       # links → text
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),       # headers
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),             # bold
    (re.compile(r"\*([^*]+)\*"), r"\1"),                 # italic
    (re.compile(r"`([^`]+)`"), r"\1"),                   # inline code
    (re.compile(r"^-{3,}$", re.MULTILINE), ""),          # horizontal rules
    (re.compile(r"^>\s*", re.MULTILINE), ""),            # blockquotes
    (re.compile(r"^[ \t]*[-*+]\s+", re.MULTILINE), ""),  # bullet lists
    (re.compile(r"^[ \t]*\d+\.\s+", re.MULTILINE), ""),  # ordered lists
    (re.compile(r"\n\s*\n"), "\n\n"),
    (re.compile(r"^[ \t]+|[ \t]+$", re.MULTILINE), ""),
    (re.compile(r"[ \t]+"), " "),
]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _truncate(text: str, limit: int | None = None) -> str:
    """Cut *text* at *limit* characters and append :data:`TRUNCATION_MARKER`."""
    limit = settings.max_content_length if limit is None else limit
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def _extract_title(html: str) -> str:
    """Return the text content of the first ``<title>`` tag, or empty string."""
    match = re.search(r"<title[^>]*>([^<]+)</title>", html, re.IGNORECASE)
    if match:
        return html_lib.unescape(match.group(1)).strip()
    return ""


def _extract_body(soup: BeautifulSoup) -> str:
    """Readable text from ``<main>``, else ``<article>``, else ``<body>``.

    *soup* is modified in place: ``<script>``, ``<style>`` and ``<head>``
    blocks are removed first.
    """
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    container = soup.find("main") or soup.find("article") or soup.body or soup
    text = container.get_text(separator=" ")
    return re.sub(r"\s+", " ", text).strip()


def _first_heading(soup: BeautifulSoup) -> str:
    h1 = soup.find("h1")
    if h1 is None:
        return ""
    return re.sub(r"\s+", " ", h1.get_text(" ", strip=True)).strip()


def _clean_markdown(markdown: str) -> str:
    """Strip Markdown syntax, keeping paragraph breaks."""
    if not markdown:
        return ""
    cleaned = markdown
    for pattern, replacement in _MARKDOWN_RULES:
        cleaned = pattern.sub(replacement, cleaned)
    return cleaned.strip()


def _title_from_markdown(content: str) -> str:
    """Pick the first plausible title among the first five non-empty lines."""
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    for line in lines[:5]:
        lowered = line.lower()
        if (
            5 < len(line) < 100
            and "|" not in line
            and not any(word in lowered for word in _NAVIGATION_WORDS)
        ):
            return line
    return ""


def _extract_html(raw: RawPage) -> tuple[str, str]:
    soup = BeautifulSoup(raw.content, "html.parser")
    title = _extract_title(raw.content)
    body = _truncate(_extract_body(soup))
    if not title:
        title = _first_heading(soup)
    return title, body


def _extract_markdown(raw: RawPage) -> tuple[str, str]:
    cleaned = _clean_markdown(raw.content)
    title = (raw.metadata.get("title") or "").strip() or _title_from_markdown(cleaned)
    return title, _truncate(cleaned)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_content(raw: RawPage) -> PageContent:
    """Isolate the title and bounded body text of *raw*.

    Raises:
        ExtractionError: Neither a title nor body text was found.
        MissingTitleError: Body text exists but no title.
        MissingBodyError: A title exists but no body text.
    """
    if raw.is_markdown:
        title, body = _extract_markdown(raw)
    else:
        title, body = _extract_html(raw)

    if not title and not body:
        raise ExtractionError("Could not extract title or content from the URL.")
    if not title:
        raise MissingTitleError(
            "Could not extract title from the URL. A title is required for keyword extraction."
        )
    if not body:
        raise MissingBodyError("Could not extract relevant page content from the URL.")

    return PageContent(title=title, body_text=body)
