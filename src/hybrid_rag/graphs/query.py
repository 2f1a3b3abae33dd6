"""
Hybrid query LangGraph graph.

One query runs keyword ranking first, then decides how to use vectors:

    BM25 found candidates  → rerank them by fused BM25 + cosine score
    BM25 found nothing     → pure semantic search over all chunks

and finally synthesizes a cited answer from the top_k chunks.

Graph structure:
    START → keyword_rank → route_after_keyword → [rerank|semantic_search]
          → route_after_ranking → [synthesize|END]

The graph ends without synthesizing when ranking selected nothing; the
caller turns an empty "final" into NoRelevantContentError.

Usage:
    from hybrid_rag.graphs.query import build_query_graph

    graph = build_query_graph(keyword, vector, synthesizer)
    state = await graph.ainvoke({"query": "refund window", "chunks": chunks, "top_k": 5})
    print(state["synthesis"].answer)
"""

import logging

from langgraph.graph import END, START, StateGraph

from hybrid_rag.config import RetrieverConfig
from hybrid_rag.errors import EmbeddingError
from hybrid_rag.generation.synthesis import AnswerSynthesizer
from hybrid_rag.graphs.state import QueryState
from hybrid_rag.retrieval.keyword import BM25Ranker
from hybrid_rag.retrieval.vector import VectorRanker

logger = logging.getLogger(__name__)


def build_query_graph(
    keyword: BM25Ranker,
    vector: VectorRanker,
    synthesizer: AnswerSynthesizer,
    retriever_config: RetrieverConfig = None,
) -> StateGraph:
    """
    Build the hybrid query LangGraph.

    Args:
        keyword: BM25 ranker for the candidate pass.
        vector: Vector ranker holding the embedding provider.
        synthesizer: Produces the final cited answer.
        retriever_config: Over-fetch factor and keyword fallback switch.

    Returns:
        A compiled LangGraph that accepts {"query", "chunks", "top_k"} and
        returns the full QueryState. Run it with ainvoke(); the
        embedding and synthesis nodes are async.
    """
    retriever_config = retriever_config or RetrieverConfig()

    # --- Node functions ---

    def keyword_rank(state: QueryState) -> dict:
        """Over-fetch BM25 candidates so the rerank has room to reorder."""
        fetch_k = state["top_k"] * retriever_config.candidate_multiplier
        candidates = keyword.search(state["query"], state["chunks"], top_k=fetch_k)
        return {"candidates": candidates}

    async def rerank(state: QueryState) -> dict:
        """
        Fuse BM25 with cosine similarity and keep the top_k.

        If the query cannot be embedded and keyword_fallback is on, the
        BM25 order is used as is. Otherwise the EmbeddingError propagates.
        """
        top_k = state["top_k"]
        try:
            query_vector = await vector.embed_query(state["query"])
        except EmbeddingError as e:
            if not retriever_config.keyword_fallback:
                raise
            logger.warning("Query embedding failed, using keyword ranking only: %s", e)
            return {"final": state["candidates"][:top_k], "strategy": "keyword"}

        reranked = vector.rerank(query_vector, state["candidates"])
        return {
            "query_vector": query_vector,
            "final": reranked[:top_k],
            "strategy": "hybrid",
        }

    async def semantic_search(state: QueryState) -> dict:
        """No keyword match at all: rank every embedded chunk by similarity."""
        logger.info("No keyword candidates for %r, falling back to semantic search", state["query"])
        query_vector = await vector.embed_query(state["query"])
        results = vector.semantic_search(query_vector, state["chunks"], top_k=state["top_k"])
        return {
            "query_vector": query_vector,
            "final": results,
            "strategy": "semantic",
        }

    async def synthesize(state: QueryState) -> dict:
        chunks = [candidate.chunk for candidate in state["final"]]
        synthesis = await synthesizer.synthesize(state["query"], chunks)
        return {"synthesis": synthesis}

    # --- Routing functions ---

    def route_after_keyword(state: QueryState) -> str:
        return "rerank" if state.get("candidates") else "semantic_search"

    def route_after_ranking(state: QueryState) -> str:
        return "synthesize" if state.get("final") else END

    # --- Build the graph ---
    graph = StateGraph(QueryState)

    graph.add_node("keyword_rank", keyword_rank)
    graph.add_node("rerank", rerank)
    graph.add_node("semantic_search", semantic_search)
    graph.add_node("synthesize", synthesize)

    graph.add_edge(START, "keyword_rank")

    graph.add_conditional_edges(
        "keyword_rank",
        route_after_keyword,
        {"rerank": "rerank", "semantic_search": "semantic_search"},
    )

    # Both ranking paths → synthesize, unless nothing was selected
    for ranking_node in ("rerank", "semantic_search"):
        graph.add_conditional_edges(
            ranking_node,
            route_after_ranking,
            {"synthesize": "synthesize", END: END},
        )

    graph.add_edge("synthesize", END)

    return graph.compile()
