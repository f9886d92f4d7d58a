"""FAQ generation pipeline package.

Public API::

    from faqbot.pipeline import run_pipeline
    result = await run_pipeline("https://example.com/post", credentials)
"""

from faqbot.pipeline.models import PipelineResult, RelatedQuestion
from faqbot.pipeline.runner import run_pipeline

__all__ = ["run_pipeline", "PipelineResult", "RelatedQuestion"]
