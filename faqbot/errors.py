"""Exception taxonomy for the FAQ pipeline.

Every terminal failure is a :class:`PipelineError` tagged with the stage
that produced it, so the orchestrator can report *which* stage failed
without inspecting messages.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for errors that abort a pipeline run."""

    stage = "pipeline"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FetchError(PipelineError):
    """The page (or scraping provider) could not be fetched.

    ``status_code`` is ``None`` for transport-level failures.
    """

    stage = "fetch"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionError(PipelineError):
    """Neither a title nor body text could be extracted."""

    stage = "extract"


class MissingTitleError(ExtractionError):
    """Body text exists but no title could be found."""


class MissingBodyError(ExtractionError):
    """A title exists but the body text is empty."""


class KeywordExtractionError(PipelineError):
    """The LLM provider call for keyword extraction failed."""

    stage = "keywords"


class SearchError(PipelineError):
    """A search-provider request failed."""

    stage = "search"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
