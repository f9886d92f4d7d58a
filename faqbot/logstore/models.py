"""The :class:`LogEntry` record written once per pipeline run.

Entries are stored with camelCase keys (``peopleAlsoAsk``, ``faqSchema``,
``plainTextFaq``) so log files produced by earlier versions of the tool stay
readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_FIELD_KEYS = {
    "keywords": "keywords",
    "people_also_ask": "peopleAlsoAsk",
    "faq_schema": "faqSchema",
    "plain_text_faq": "plainTextFaq",
    "error": "error",
}


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class LogEntry:
    url: str
    timestamp: str = field(default_factory=utc_timestamp)
    keywords: list[str] | None = None
    people_also_ask: list[dict[str, Any]] | None = None
    faq_schema: str | None = None
    plain_text_faq: str | None = None
    error: str | None = None

    def add_error(self, message: str) -> None:
        """Record *message*, appending to an existing error with ``"; "``."""
        self.error = f"{self.error}; {message}" if self.error else message

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"timestamp": self.timestamp, "url": self.url}
        for attr, key in _FIELD_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEntry":
        kwargs = {attr: data.get(key) for attr, key in _FIELD_KEYS.items()}
        return cls(
            url=str(data.get("url", "")),
            timestamp=str(data.get("timestamp", "")),
            **kwargs,
        )
