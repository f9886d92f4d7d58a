"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from faqbot.api import app

    uvicorn faqbot.api:app --reload
"""

from faqbot.api.app import app

__all__ = ["app"]
