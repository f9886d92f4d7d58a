"""Chat completion helper shared by the three LLM-calling stages."""

from __future__ import annotations

from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from faqbot.config import settings
from faqbot.pipeline.model_configs import ModelConfig, get_model_config


def _get_llm(config: ModelConfig, api_key: str) -> Any:
    """Return a LangChain chat model for *config* bound to *api_key*.

    ``max_retries=0``: every provider call is single-attempt.
    """
    return ChatOpenAI(
        model=config.model,
        api_key=api_key,
        base_url=settings.llm_base_url,
        temperature=config.temperature,
        top_p=config.top_p,
        frequency_penalty=config.frequency_penalty,
        presence_penalty=config.presence_penalty,
        max_tokens=config.max_tokens,
        timeout=settings.llm_timeout,
        max_retries=0,
    )


async def complete(stage: str, api_key: str, system: str, user: str) -> str:
    """Send one system + user exchange for *stage* and return the reply text.

    Raises:
        Any provider / transport exception from the underlying client.
    """
    llm = _get_llm(get_model_config(stage), api_key)
    response = await llm.ainvoke([SystemMessage(content=system), HumanMessage(content=user)])
    content = response.content if hasattr(response, "content") else str(response)
    if isinstance(content, list):
        # Some providers return content parts; keep the text ones.
        content = "".join(
            part.get("text", "") if isinstance(part, dict) else str(part) for part in content
        )
    return content or ""
