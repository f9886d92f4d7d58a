"""Build and compile the LangGraph FAQ pipeline.

The graph topology is linear; the first four stages may end the run early:

    START → fetcher → extractor → keyword_extractor → searcher
               |          |               |               |
               └──────────┴───── (failed) ┴───────────────┴──→ END
                                                          ↓
                              schema_generator → text_formatter → END

``schema_generator`` and ``text_formatter`` never fail the run; their errors
travel forward as payload.
"""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph

from faqbot.pipeline.nodes import (
    NodeContext,
    make_extractor,
    make_fetcher,
    make_keyword_extractor,
    make_schema_generator,
    make_searcher,
    make_text_formatter,
)
from faqbot.pipeline.state import FAILED, PipelineState


def _continue_to(next_node: str):
    """Return a router that stops at END once a node has marked the run failed."""

    def _route(state: PipelineState) -> str:
        return END if state.get("status") == FAILED else next_node

    return _route


def build_graph(ctx: NodeContext):
    """Compile and return the pipeline ``StateGraph``.

    Args:
        ctx: Per-run context captured by every node closure.

    Returns:
        A compiled LangGraph graph.  No checkpointer is attached: a run is
        never resumed, and the final state is read from the value stream.
    """
    graph = StateGraph(PipelineState)

    # ------------------------------------------------------------------
    # Register nodes (each is a closure over *ctx*)
    # ------------------------------------------------------------------
    graph.add_node("fetcher", make_fetcher(ctx))
    graph.add_node("extractor", make_extractor(ctx))
    graph.add_node("keyword_extractor", make_keyword_extractor(ctx))
    graph.add_node("searcher", make_searcher(ctx))
    graph.add_node("schema_generator", make_schema_generator(ctx))
    graph.add_node("text_formatter", make_text_formatter(ctx))

    # ------------------------------------------------------------------
    # Edges: abortable stages route through a failure check
    # ------------------------------------------------------------------
    graph.add_edge(START, "fetcher")
    graph.add_conditional_edges("fetcher", _continue_to("extractor"), ["extractor", END])
    graph.add_conditional_edges(
        "extractor", _continue_to("keyword_extractor"), ["keyword_extractor", END]
    )
    graph.add_conditional_edges(
        "keyword_extractor", _continue_to("searcher"), ["searcher", END]
    )
    graph.add_conditional_edges(
        "searcher", _continue_to("schema_generator"), ["schema_generator", END]
    )
    graph.add_edge("schema_generator", "text_formatter")
    graph.add_edge("text_formatter", END)

    return graph.compile()
