"""Keyword extraction: one LLM call turning a page title into search keywords.

Malformed model output is not an error: it yields an empty list and the
orchestrator falls back to title tokens (see :func:`fallback_keywords`).
"""

from __future__ import annotations

import logging

from faqbot.config import settings
from faqbot.errors import KeywordExtractionError
from faqbot.pipeline.jsonutil import parse_json_block
from faqbot.pipeline.llm import complete
from faqbot.pipeline.model_configs import EXTRACT_KEYWORDS

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an expert in SEO and keyword extraction. Your task is to extract "
    "the 3 to 5 most search-relevant keywords from the given title. "
    "Respond with ONLY a JSON array of strings, for example "
    '["keyword one", "keyword two", "keyword three"]. '
    "Do not add explanations, Markdown or any other text."
)


def parse_keywords(raw: str, limit: int | None = None) -> list[str]:
    """Return the keyword strings in the first JSON array found in *raw*.

    Non-string items and blanks are dropped; the result is capped at
    *limit* (``settings.max_keywords`` by default).  Returns ``[]`` when no
    array can be parsed.
    """
    limit = settings.max_keywords if limit is None else limit
    parsed = parse_json_block(raw, "[")
    if not isinstance(parsed, list):
        return []
    keywords = [item.strip() for item in parsed if isinstance(item, str) and item.strip()]
    return keywords[:limit]


def fallback_keywords(title: str, limit: int | None = None) -> list[str]:
    """Split *title* on whitespace and keep tokens longer than 3 characters."""
    limit = settings.max_keywords if limit is None else limit
    return [token for token in title.split() if len(token) > 3][:limit]


async def extract_keywords(title: str, api_key: str) -> list[str]:
    """Ask the LLM for SEO keywords describing *title*.

    Raises:
        KeywordExtractionError: If the provider call itself fails.
    """
    try:
        raw = await complete(
            EXTRACT_KEYWORDS,
            api_key,
            _SYSTEM_PROMPT,
            f"Title: {title}\n\nOutput the keywords as a JSON array of strings.",
        )
    except Exception as exc:
        raise KeywordExtractionError(f"Error extracting keywords: {exc}") from exc

    keywords = parse_keywords(raw)
    if not keywords:
        logger.warning("[KEYWORDS] Could not parse a keyword array from: %.200r", raw)
    return keywords
