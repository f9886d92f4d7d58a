"""Data models for the scraper stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawPage:
    """Page markup as returned by a fetch strategy.

    ``format`` is ``"html"`` for a direct fetch and ``"markdown"`` when the
    content came pre-cleaned from the scraping provider, in which case
    ``metadata`` carries the provider's page metadata (title, description…).
    """

    url: str
    content: str
    status_code: int
    format: str = "html"
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_markdown(self) -> bool:
        return self.format == "markdown"


@dataclass(frozen=True)
class PageContent:
    """Title and bounded body text isolated from a :class:`RawPage`."""

    title: str
    body_text: str
