"""FastAPI application factory.

Lifespan
--------
On startup the app creates one :class:`~faqbot.logstore.LogStore` and one
:class:`~faqbot.progress.ProgressBroker` and keeps them on ``app.state`` so
every request shares them.  Nothing is process-global.

Routers
-------
All endpoint groups are mounted under their respective path prefix:

    /faq       — run the pipeline for a URL
    /progress  — per-session progress stream (SSE)
    /logs      — read / clear the run log
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from faqbot.logstore import LogStore
from faqbot.progress import ProgressBroker

from faqbot.api.routers import faq as faq_router
from faqbot.api.routers import logs as logs_router
from faqbot.api.routers import progress as progress_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared log store and progress broker."""
    if not hasattr(app.state, "log_store"):
        app.state.log_store = LogStore()
    app.state.progress = ProgressBroker()
    yield


def create_app(log_store: LogStore | None = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        log_store: Use this store instead of one at ``settings.log_file``.
    """
    app = FastAPI(
        title="SchemaFAQ API",
        description=(
            "Generates schema.org FAQPage JSON-LD for a web page: fetches and "
            "extracts the page, derives keywords, gathers related questions "
            "from search, and asks an LLM to write the FAQ.  Progress is "
            "available per session via Server-Sent Events."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    if log_store is not None:
        app.state.log_store = log_store

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(faq_router.router, prefix="/faq", tags=["faq"])
    app.include_router(progress_router.router, prefix="/progress", tags=["progress"])
    app.include_router(logs_router.router, prefix="/logs", tags=["logs"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn faqbot.api.app:app --reload
app = create_app()
