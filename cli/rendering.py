"""Utilities for rendering pipeline results in the CLI."""

from __future__ import annotations

from faqbot.pipeline.models import PipelineResult

_RULE = "=" * 72


def render_result(result: PipelineResult) -> str:
    """Render *result* as a human-readable report.

    Terminal failures show the failed stage and message; otherwise the
    keywords, related-question count, any warnings and the plain-text FAQ.
    """
    lines: list[str] = [f"URL       : {result.url}"]
    if result.keywords:
        lines.append(f"Keywords  : {', '.join(result.keywords)}")

    if not result.ok:
        lines.append(f"Failed at : {result.failed_stage}")
        lines.append(f"Error     : {result.error}")
        return "\n".join(lines)

    lines.append(f"Questions : {len(result.related_questions)} related question(s)")
    for warning in result.warnings:
        lines.append(f"Warning   : {warning}")
    analysis = result.content_analysis
    if analysis:
        lines.append(f"SEO score : {analysis['seo_score']}/100")
        for tip in analysis.get("improvements", []):
            lines.append(f"SEO tip   : {tip}")

    lines += ["", _RULE, result.plain_text_faq, _RULE]
    return "\n".join(lines)
