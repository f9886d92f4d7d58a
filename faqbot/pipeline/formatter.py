"""Plain-text rendering of a FAQ JSON-LD document."""

from __future__ import annotations

import logging

from faqbot.pipeline.llm import complete
from faqbot.pipeline.model_configs import FORMAT_FAQ
from faqbot.pipeline.models import StageOutput

logger = logging.getLogger(__name__)

UNPARSEABLE_MESSAGE = "Could not parse FAQ content for plain text display."

_SYSTEM_PROMPT = (
    "You are a text formatting assistant. Your task is to convert the given "
    "JSON-LD FAQPage schema into a plain text question and answer format. "
    "For each question and answer pair found in the 'mainEntity' array of the "
    "JSON-LD, format it strictly as:\n"
    "問：[Question text from the 'name' field of the Question object]\n"
    "答：[Answer text from the 'text' field of the acceptedAnswer object]\n\n"
    "Ensure each Q&A pair is separated by exactly one blank line. Output "
    "nothing else. If the input JSON-LD is invalid or does not contain FAQ "
    f'data, return exactly: "{UNPARSEABLE_MESSAGE}"'
)


async def format_faq_to_text(faq_schema: str, api_key: str) -> StageOutput:
    """Render *faq_schema* as 問/答 pairs.  Never raises."""
    try:
        text = await complete(
            FORMAT_FAQ,
            api_key,
            _SYSTEM_PROMPT,
            f"JSON-LD Input:\n{faq_schema}\n\nPlain Text Output:",
        )
    except Exception as exc:  # noqa: BLE001
        logger.error("[FORMAT] formatting failed: %s", exc)
        message = f"Error formatting FAQ to plain text: {exc}"
        return StageOutput(text=message, error=message)

    return StageOutput(text=text.strip())
