"""FAQ schema generation: page content + related questions → JSON-LD.

The model's reply is returned verbatim.  Stripping code fences is left to
consumers (see :func:`faqbot.pipeline.jsonutil.clean_faq_schema`).
"""

from __future__ import annotations

import json
import logging

from faqbot.config import settings
from faqbot.pipeline.analysis import ContentAnalysis, describe_for_prompt
from faqbot.pipeline.llm import complete
from faqbot.pipeline.model_configs import GENERATE_FAQ_SCHEMA
from faqbot.pipeline.models import RelatedQuestion, StageOutput
from faqbot.scraper.models import PageContent

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an AI SEO expert. Your task is to generate FAQ schema structured "
    "data in JSON-LD format, based on the provided page content and "
    '"People Also Ask" data. The output must be valid JSON-LD following the '
    'schema.org FAQPage guidelines: an object with "@context", '
    '"@type": "FAQPage" and a "mainEntity" array of "Question" objects, each '
    'with a "name" and an "acceptedAnswer" of type "Answer" holding a "text". '
    "Answers must be grounded in the page content."
)


def build_prompt(
    keywords: list[str],
    page: PageContent,
    questions: list[RelatedQuestion],
    question_count: int,
    analysis: ContentAnalysis | None = None,
) -> str:
    """Return the user message for the schema request."""
    paa = json.dumps([q.to_dict() for q in questions], ensure_ascii=False)
    context = describe_for_prompt(analysis) if analysis is not None else ""
    return (
        f"Title Keywords: {', '.join(keywords)}\n"
        f"Page Content: {page.body_text}\n"
        + (f"{context}\n" if context else "")
        + f"People Also Ask: {paa}\n\n"
        f"Generate exactly {question_count} questions with answers. "
        "Output exactly one complete JSON-LD block and nothing else: "
        "no commentary, no explanations before or after it."
    )


async def generate_faq_schema(
    keywords: list[str],
    page: PageContent,
    questions: list[RelatedQuestion],
    api_key: str,
    question_count: int | None = None,
    analysis: ContentAnalysis | None = None,
) -> StageOutput:
    """Generate FAQPage JSON-LD.  Never raises: errors become the payload."""
    prompt = build_prompt(
        keywords,
        page,
        questions,
        question_count or settings.faq_question_count,
        analysis,
    )
    try:
        schema = await complete(GENERATE_FAQ_SCHEMA, api_key, _SYSTEM_PROMPT, prompt)
    except Exception as exc:  # noqa: BLE001
        logger.error("[SCHEMA] generation failed: %s", exc)
        message = f"Error generating FAQ schema: {exc}"
        return StageOutput(text=message, error=message)

    logger.info("[SCHEMA] generated %d chars of JSON-LD.", len(schema))
    return StageOutput(text=schema)
