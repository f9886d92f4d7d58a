"""Append-only JSON file store for pipeline run records.

The file holds a single JSON array.  Every append is a read-modify-write of
the whole array, so writes are serialised with an :class:`asyncio.Lock` and
land through a temporary file + :func:`os.replace`; a reader never sees a
half-written file and two runs finishing together never lose an entry.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from faqbot.config import settings
from faqbot.logstore.models import LogEntry

logger = logging.getLogger(__name__)


class LogStore:
    """Run log persisted as a flat JSON array at *path*."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or settings.log_file)
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # File helpers (blocking; called through asyncio.to_thread)
    # ------------------------------------------------------------------

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("[LOGS] Could not read %s, starting a new log list: %s", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.warning("[LOGS] %s does not hold a JSON array; ignoring it.", self.path)
            return []
        return [item for item in data if isinstance(item, dict)]

    def _write(self, entries: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entries, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def add_entry(self, entry: LogEntry) -> None:
        """Append *entry* (newest first in the file)."""
        async with self._lock:
            entries = await asyncio.to_thread(self._read)
            entries.insert(0, entry.to_dict())
            await asyncio.to_thread(self._write, entries)
        logger.debug("[LOGS] Recorded run for %s (%d total).", entry.url, len(entries))

    async def get_logs(self) -> list[LogEntry]:
        """Return every entry sorted newest-first by timestamp."""
        async with self._lock:
            raw = await asyncio.to_thread(self._read)
        entries = [LogEntry.from_dict(item) for item in raw]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries

    async def clear_all_logs(self) -> None:
        """Reset the store to an empty array."""
        async with self._lock:
            await asyncio.to_thread(self._write, [])
        logger.info("[LOGS] Cleared %s", self.path)
