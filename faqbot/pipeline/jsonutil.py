"""Defensive JSON extraction from free-text model output.

Models wrap JSON in code fences or surround it with prose despite being told
not to.  Every stage that expects structured output goes through
:func:`extract_json_block` instead of its own ad hoc regular expression.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator

_CLOSERS = {"[": "]", "{": "}"}


def _iter_json_blocks(text: str, opener: str) -> Iterator[str]:
    """Yield every balanced ``[...]`` (or ``{...}``) substring of *text*.

    Scanning resumes at the next opener after each candidate, so a bracketed
    word in leading prose does not hide the array that follows it.  Brackets
    inside JSON string literals are ignored.
    """
    closer = _CLOSERS[opener]
    start = text.find(opener)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    yield text[start : i + 1]
                    break
        start = text.find(opener, start + 1)


def extract_json_block(text: str, opener: str = "[") -> str | None:
    """Return the first balanced ``[...]`` (or ``{...}``) substring of *text*.

    Returns ``None`` when no opener is found or no block is ever closed.
    """
    return next(_iter_json_blocks(text, opener), None)


def parse_json_block(text: str, opener: str = "[") -> Any | None:
    """Decode the first balanced block that is valid JSON, or ``None``."""
    for block in _iter_json_blocks(text, opener):
        try:
            return json.loads(block)
        except json.JSONDecodeError:
            continue
    return None


def clean_faq_schema(raw: str) -> str | None:
    """Normalise an LLM-produced JSON-LD string for display.

    Strips Markdown code fences and anything after a ``---`` separator, then
    re-serialises the object with two-space indentation.  Returns ``None``
    when no JSON object can be recovered.
    """
    if not raw:
        return None
    cleaned = raw.strip()
    cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
    cleaned = re.sub(r"```\s*$", "", cleaned)
    separator = cleaned.find("\n---")
    if separator != -1:
        cleaned = cleaned[:separator].strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        parsed = parse_json_block(cleaned, "{")
    if not isinstance(parsed, (dict, list)):
        return None
    return json.dumps(parsed, indent=2, ensure_ascii=False)
