"""On-page content analysis: SEO facts read straight from the fetched page.

Runs alongside extraction and never calls a model.  The result is passed to
the schema prompt (meta description, heading outline and any structured data
the page already publishes) and returned to callers as
``PipelineResult.content_analysis``.

Scoring
-------
Each category scores 0-100 and ``seo_score`` is their rounded mean:

``meta``       title present / 30-60 chars, description present / 120-160 chars
``headings``   exactly one H1, two or more H2, at least one H3, no skipped levels
``images``     share of images carrying alt text (100 when there are none)
``content``    300+ words, 800+ words, three paragraphs, at least one list
``schema``     100 when any JSON-LD block is present
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field
from typing import Any

from bs4 import BeautifulSoup

from faqbot.scraper.models import RawPage

_OG_FIELDS = ("title", "description", "image", "url", "type")

# Firecrawl metadata key → Open Graph field.
_FIRECRAWL_OG_KEYS = {
    "ogTitle": "title",
    "ogDescription": "description",
    "ogImage": "image",
    "ogUrl": "url",
    "ogType": "type",
}

_MD_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*$", re.MULTILINE)
_MD_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_MD_LIST_ITEM = re.compile(r"^[ \t]*(?:[-*+]|\d+\.)\s+", re.MULTILINE)

# Only the top of the outline is useful to the model.
_OUTLINE_MAX_LEVEL = 3


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class ContentAnalysis:
    """SEO-relevant facts about one page."""

    title: str = ""
    meta_description: str = ""
    open_graph: dict[str, str] = field(default_factory=dict)
    headings: list[Heading] = field(default_factory=list)
    existing_schema_types: list[str] = field(default_factory=list)
    word_count: int = 0
    seo_score: int = 0
    score_breakdown: dict[str, int] = field(default_factory=dict)
    improvements: list[str] = field(default_factory=list)

    @property
    def has_faq_schema(self) -> bool:
        return "FAQPage" in self.existing_schema_types

    def outline(self, max_level: int = _OUTLINE_MAX_LEVEL) -> list[Heading]:
        return [h for h in self.headings if h.level <= max_level]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["has_faq_schema"] = self.has_faq_schema
        return data


@dataclass
class _PageFacts:
    """Raw counts collected from either an HTML or a Markdown page."""

    title: str = ""
    meta_description: str = ""
    open_graph: dict[str, str] = field(default_factory=dict)
    headings: list[Heading] = field(default_factory=list)
    schema_types: list[str] = field(default_factory=list)
    text: str = ""
    paragraphs: int = 0
    lists: int = 0
    images: int = 0
    images_without_alt: int = 0


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------

def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return _clean(str(tag.get("content") or ""))


def _schema_types(soup: BeautifulSoup) -> list[str]:
    """Return the ``@type`` of every JSON-LD block; ``"Invalid"`` if unparseable."""
    types: list[str] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            parsed = json.loads(script.string or "")
        except json.JSONDecodeError:
            types.append("Invalid")
            continue
        items = parsed if isinstance(parsed, list) else [parsed]
        for item in items:
            graph = item.get("@graph") if isinstance(item, dict) else None
            for node in graph if isinstance(graph, list) else [item]:
                if not isinstance(node, dict):
                    continue
                kind = node.get("@type") or "Unknown"
                types.extend(kind if isinstance(kind, list) else [str(kind)])
    return types


def _html_facts(html: str) -> _PageFacts:
    soup = BeautifulSoup(html, "html.parser")
    title_tag = soup.find("title")

    facts = _PageFacts(
        title=_clean(title_tag.get_text()) if title_tag else "",
        meta_description=_meta_content(soup, name="description"),
        schema_types=_schema_types(soup),
    )
    for name in _OG_FIELDS:
        value = _meta_content(soup, property=f"og:{name}")
        if value:
            facts.open_graph[name] = value
    for tag in soup.find_all(re.compile(r"^h[1-6]$")):
        text = _clean(tag.get_text(" "))
        if text:
            facts.headings.append(Heading(level=int(tag.name[1]), text=text))

    images = soup.find_all("img")
    facts.images = len(images)
    facts.images_without_alt = sum(1 for img in images if not img.get("alt"))
    facts.paragraphs = len(soup.find_all("p"))
    facts.lists = len(soup.find_all(["ul", "ol"]))

    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    facts.text = _clean((soup.body or soup).get_text(" "))
    return facts


def _markdown_facts(markdown: str, metadata: dict[str, Any]) -> _PageFacts:
    facts = _PageFacts(
        title=_clean(str(metadata.get("title") or "")),
        meta_description=_clean(str(metadata.get("description") or "")),
    )
    for key, name in _FIRECRAWL_OG_KEYS.items():
        if metadata.get(key):
            facts.open_graph[name] = _clean(str(metadata[key]))
    for hashes, text in _MD_HEADING.findall(markdown):
        facts.headings.append(Heading(level=len(hashes), text=_clean(text)))

    alts = _MD_IMAGE.findall(markdown)
    facts.images = len(alts)
    facts.images_without_alt = sum(1 for alt in alts if not alt.strip())
    blocks = [b for b in re.split(r"\n\s*\n", markdown) if b.strip()]
    facts.paragraphs = sum(
        1 for b in blocks if not b.lstrip().startswith("#") and not _MD_LIST_ITEM.match(b)
    )
    facts.lists = sum(1 for b in blocks if _MD_LIST_ITEM.match(b))
    facts.text = _clean(_MD_IMAGE.sub("", markdown))
    return facts


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def _proper_hierarchy(headings: list[Heading]) -> bool:
    return all(
        later.level - earlier.level <= 1 for earlier, later in zip(headings, headings[1:])
    )


def _score(facts: _PageFacts, word_count: int) -> dict[str, int]:
    levels = [h.level for h in facts.headings]
    meta = (
        25 * bool(facts.title)
        + 25 * bool(facts.meta_description)
        + 25 * (30 <= len(facts.title) <= 60)
        + 25 * (120 <= len(facts.meta_description) <= 160)
    )
    headings = (
        30 * (levels.count(1) == 1)
        + 25 * (levels.count(2) >= 2)
        + 20 * (levels.count(3) >= 1)
        + 25 * _proper_hierarchy(facts.headings)
    )
    if facts.images:
        images = round(100 * (facts.images - facts.images_without_alt) / facts.images)
    else:
        images = 100
    content = (
        25 * (word_count >= 300)
        + 25 * (word_count >= 800)
        + 25 * (facts.paragraphs >= 3)
        + 25 * (facts.lists >= 1)
    )
    schema = 100 if facts.schema_types else 0
    return {
        "meta": meta,
        "headings": headings,
        "images": images,
        "content": content,
        "schema": schema,
    }


def _improvements(facts: _PageFacts, word_count: int) -> list[str]:
    found: list[str] = []
    if not facts.meta_description:
        found.append("Add a meta description of 120-160 characters.")
    h1_count = sum(1 for h in facts.headings if h.level == 1)
    if h1_count != 1:
        found.append(f"Use exactly one H1 heading (found {h1_count}).")
    if facts.images_without_alt:
        found.append(f"Add alt text to {facts.images_without_alt} image(s).")
    if word_count < 800:
        found.append("Expand the content; pages under 800 words rarely rank for questions.")
    if "FAQPage" not in facts.schema_types:
        found.append("Publish the generated FAQPage JSON-LD on the page.")
    return found


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def analyze_page(raw: RawPage) -> ContentAnalysis:
    """Collect meta tags, heading outline, structured data and an SEO score."""
    if raw.is_markdown:
        facts = _markdown_facts(raw.content, raw.metadata)
    else:
        facts = _html_facts(raw.content)

    word_count = len(facts.text.split())
    breakdown = _score(facts, word_count)
    return ContentAnalysis(
        title=facts.title,
        meta_description=facts.meta_description,
        open_graph=dict(facts.open_graph),
        headings=list(facts.headings),
        existing_schema_types=list(facts.schema_types),
        word_count=word_count,
        seo_score=round(sum(breakdown.values()) / len(breakdown)),
        score_breakdown=breakdown,
        improvements=_improvements(facts, word_count),
    )


def describe_for_prompt(analysis: ContentAnalysis) -> str:
    """Render the parts of *analysis* the schema model should see."""
    lines: list[str] = []
    if analysis.meta_description:
        lines.append(f"Meta Description: {analysis.meta_description}")
    outline = analysis.outline()
    if outline:
        lines.append("Page Outline: " + " | ".join(f"H{h.level} {h.text}" for h in outline))
    if analysis.existing_schema_types:
        lines.append("Existing Structured Data: " + ", ".join(analysis.existing_schema_types))
    if analysis.has_faq_schema:
        lines.append(
            "The page already publishes FAQPage markup; prefer questions it does not answer yet."
        )
    return "\n".join(lines)
