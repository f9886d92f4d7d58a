"""Runtime settings for the FAQ pipeline, the API and the CLI.

Every field reads an environment variable when :class:`Settings` is
constructed.  A `.env` file at the project root is loaded on import and never
overrides variables that are already set.

API keys are *not* settings: they are supplied per invocation through
:class:`Credentials` so a single server can run pipelines for many callers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Log store
    # ------------------------------------------------------------------
    log_file: Path = field(
        default_factory=lambda: Path(
            os.environ.get("FAQBOT_LOG_FILE", Path.cwd() / "admin_logs.json")
        )
    )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    fetch_backend: str = field(
        default_factory=lambda: os.environ.get("FETCH_BACKEND", "direct")
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "FAQBOT_USER_AGENT",
            "Mozilla/5.0 (compatible; SchemaFAQBot/1.0; +https://github.com/schemafaq-bot)",
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    firecrawl_url: str = field(
        default_factory=lambda: os.environ.get(
            "FIRECRAWL_URL", "https://api.firecrawl.dev/v1/scrape"
        )
    )
    firecrawl_wait_for_ms: int = field(
        default_factory=lambda: int(os.environ.get("FIRECRAWL_WAIT_FOR_MS", "2000"))
    )
    max_content_length: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONTENT_LENGTH", "15000"))
    )

    # ------------------------------------------------------------------
    # LLM provider (any OpenAI-compatible chat completions endpoint)
    # ------------------------------------------------------------------
    llm_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "LLM_BASE_URL", "https://openrouter.ai/api/v1"
        )
    )
    llm_model: str = field(
        default_factory=lambda: os.environ.get(
            "LLM_MODEL", "google/gemma-3-27b-it:free"
        )
    )
    llm_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TIMEOUT", "60.0"))
    )

    # ------------------------------------------------------------------
    # Search provider
    # ------------------------------------------------------------------
    serper_url: str = field(
        default_factory=lambda: os.environ.get(
            "SERPER_URL", "https://google.serper.dev/search"
        )
    )
    # "tolerant" skips keywords whose search fails; "strict" aborts the run.
    search_policy: str = field(
        default_factory=lambda: os.environ.get("SEARCH_POLICY", "tolerant")
    )

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    max_keywords: int = field(
        default_factory=lambda: int(os.environ.get("MAX_KEYWORDS", "5"))
    )
    faq_question_count: int = field(
        default_factory=lambda: int(os.environ.get("FAQ_QUESTION_COUNT", "6"))
    )
    # On-page SEO analysis fed into the schema prompt and returned with results.
    content_analysis: bool = field(
        default_factory=lambda: os.environ.get("CONTENT_ANALYSIS", "true").lower()
        not in ("0", "false", "no", "off")
    )

    # ------------------------------------------------------------------
    # Progress streaming
    # ------------------------------------------------------------------
    sse_heartbeat_seconds: float = field(
        default_factory=lambda: float(os.environ.get("SSE_HEARTBEAT_SECONDS", "30.0"))
    )

    @property
    def strict_search(self) -> bool:
        """``True`` when a failed keyword search must abort the pipeline."""
        return self.search_policy.lower() == "strict"


@dataclass(frozen=True)
class Credentials:
    """Third-party API keys for a single pipeline invocation."""

    openrouter_api_key: str
    serper_api_key: str
    firecrawl_api_key: str | None = None

    @classmethod
    def from_env(cls) -> "Credentials":
        """Build credentials from ``OPENROUTER_API_KEY`` / ``SERPER_API_KEY`` /
        ``FIRECRAWL_API_KEY``.  Missing keys become empty strings."""
        return cls(
            openrouter_api_key=os.environ.get("OPENROUTER_API_KEY", ""),
            serper_api_key=os.environ.get("SERPER_API_KEY", ""),
            firecrawl_api_key=os.environ.get("FIRECRAWL_API_KEY") or None,
        )

    def missing(self) -> list[str]:
        """Return the names of required keys that are empty."""
        names: list[str] = []
        if not self.openrouter_api_key:
            names.append("openrouter_api_key")
        if not self.serper_api_key:
            names.append("serper_api_key")
        return names


# Module-level singleton, import this everywhere:
#   from faqbot.config import settings
settings = Settings()
