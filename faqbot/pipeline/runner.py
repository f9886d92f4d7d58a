"""High-level runner for the FAQ pipeline.

``run_pipeline`` is the single public function in this module.  It wires
together the compiled graph, the progress sink and the run log so the API
and the CLI can drive a run with one call.
"""

from __future__ import annotations

import logging

from faqbot.config import Credentials, settings
from faqbot.logstore import LogEntry, LogStore
from faqbot.pipeline.graph import build_graph
from faqbot.pipeline.models import PipelineResult
from faqbot.pipeline.nodes import NodeContext
from faqbot.pipeline.search import SearchProvider
from faqbot.pipeline.state import PipelineState, initial_state
from faqbot.progress import COMPLETE, ERROR, NullSink, ProgressEvent, ProgressSink

logger = logging.getLogger(__name__)


def _result_from_state(url: str, state: PipelineState) -> PipelineResult:
    analysis = state.get("analysis")
    return PipelineResult(
        url=url,
        keywords=list(state.get("keywords", [])),
        related_questions=list(state.get("related_questions", [])),
        faq_schema=state.get("faq_schema", ""),
        plain_text_faq=state.get("plain_text_faq", ""),
        error=state.get("error"),
        failed_stage=state.get("failed_stage"),
        warnings=list(state.get("warnings", [])),
        content_analysis=analysis.to_dict() if analysis is not None else None,
    )


async def run_pipeline(
    url: str,
    credentials: Credentials,
    sink: ProgressSink | None = None,
    log_store: LogStore | None = None,
    strict_search: bool | None = None,
    search_provider: SearchProvider | None = None,
) -> PipelineResult:
    """Generate FAQ structured data for *url*.

    Exactly one :class:`LogEntry` is written per call, whatever the outcome.
    Terminal stage failures are returned as ``PipelineResult.error``; they are
    not raised.

    Args:
        url: Page to analyse.
        credentials: API keys for the stages that will run.
        sink: Receives progress events.  Defaults to a no-op sink.
        log_store: Where the run record is written.  Defaults to a store at
            ``settings.log_file``.
        strict_search: Abort when a keyword search fails.  Defaults to
            ``settings.search_policy``.
        search_provider: Override the related-question provider (Serper).

    Returns:
        The aggregate :class:`PipelineResult`.
    """
    sink = sink or NullSink()
    log_store = log_store or LogStore()
    log_entry = LogEntry(url=url)
    ctx = NodeContext(
        credentials=credentials,
        log_entry=log_entry,
        sink=sink,
        strict_search=settings.strict_search if strict_search is None else strict_search,
        search_provider=search_provider,
    )

    logger.info("[PIPELINE] Starting run for %s", url)
    try:
        graph = build_graph(ctx)
        final: PipelineState = initial_state(url)
        # stream_mode="values" yields the full state after every step; the
        # last one is the final state.
        async for snapshot in graph.astream(initial_state(url), stream_mode="values"):
            final = snapshot
        result = _result_from_state(url, final)
    except Exception as exc:  # noqa: BLE001
        logger.exception("[PIPELINE] Unhandled error for %s", url)
        message = str(exc) or "An unexpected error occurred."
        log_entry.add_error(message)
        result = PipelineResult(
            url=url,
            keywords=list(log_entry.keywords or []),
            error=message,
            failed_stage="pipeline",
        )

    try:
        await log_store.add_entry(log_entry)
    except OSError:
        logger.exception("[PIPELINE] Could not write run log to %s", log_store.path)

    if result.ok:
        await sink.emit(ProgressEvent(step="done", status=COMPLETE, message="FAQ generated", progress=100))
        logger.info("[PIPELINE] Done: %s (%d warning(s))", url, len(result.warnings))
    else:
        await sink.emit(ProgressEvent(step="done", status=ERROR, message=result.error or ""))
        logger.info("[PIPELINE] Failed at %s: %s", result.failed_stage, result.error)
    return result
