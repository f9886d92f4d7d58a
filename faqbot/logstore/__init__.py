"""Run log package.

Public re-exports so callers can write::

    from faqbot.logstore import LogEntry, LogStore
"""

from faqbot.logstore.models import LogEntry
from faqbot.logstore.store import LogStore

__all__ = ["LogEntry", "LogStore"]
