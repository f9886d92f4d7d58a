"""Value objects produced by the pipeline stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class RelatedQuestion:
    """One "people also ask" item returned by the search provider."""

    question: str
    snippet: str | None = None
    title: str | None = None
    link: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RelatedQuestion":
        return cls(
            question=str(data.get("question", "")),
            snippet=data.get("snippet"),
            title=data.get("title"),
            link=data.get("link"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise, omitting empty optional fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class StageOutput:
    """Text produced by a late stage that never raises.

    On failure ``text`` holds a human-readable error description and
    ``error`` the underlying message.
    """

    text: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PipelineResult:
    """Aggregate outcome of one :func:`~faqbot.pipeline.runner.run_pipeline` call.

    ``error`` is set only for terminal failures (with ``failed_stage``).
    Late-stage failures leave ``error`` empty and are listed in ``warnings``.
    """

    url: str
    keywords: list[str] = field(default_factory=list)
    related_questions: list[RelatedQuestion] = field(default_factory=list)
    faq_schema: str = ""
    plain_text_faq: str = ""
    error: str | None = None
    failed_stage: str | None = None
    warnings: list[str] = field(default_factory=list)
    content_analysis: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "keywords": list(self.keywords),
            "related_questions": [q.to_dict() for q in self.related_questions],
            "faq_schema": self.faq_schema,
            "plain_text_faq": self.plain_text_faq,
            "error": self.error,
            "failed_stage": self.failed_stage,
            "warnings": list(self.warnings),
            "content_analysis": self.content_analysis,
        }
