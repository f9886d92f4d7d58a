"""Per-stage chat completion parameters.

Keyword extraction and text formatting need consistent, near-deterministic
output; schema generation is allowed slightly more variety.
"""

from __future__ import annotations

from dataclasses import dataclass

from faqbot.config import settings


@dataclass(frozen=True)
class ModelConfig:
    model: str
    temperature: float = 0.2
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    max_tokens: int | None = None


EXTRACT_KEYWORDS = "extract_keywords"
GENERATE_FAQ_SCHEMA = "generate_faq_schema"
FORMAT_FAQ = "format_faq"

MODEL_CONFIGS: dict[str, ModelConfig] = {
    EXTRACT_KEYWORDS: ModelConfig(
        model=settings.llm_model,
        temperature=0.2,
        top_p=0.9,
        frequency_penalty=0.1,
        max_tokens=500,
    ),
    GENERATE_FAQ_SCHEMA: ModelConfig(
        model=settings.llm_model,
        temperature=0.3,
        top_p=0.95,
        frequency_penalty=0.2,
        presence_penalty=0.1,
        max_tokens=2000,
    ),
    FORMAT_FAQ: ModelConfig(
        model=settings.llm_model,
        temperature=0.1,
        top_p=0.8,
        presence_penalty=0.1,
        max_tokens=3000,
    ),
}


def get_model_config(stage: str) -> ModelConfig:
    """Return the config for *stage*.

    Raises:
        KeyError: If *stage* is not a known stage name.
    """
    return MODEL_CONFIGS[stage]
