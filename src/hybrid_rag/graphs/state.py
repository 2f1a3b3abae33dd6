"""
LangGraph state for the query pipeline.

Each node receives the full state, reads what it needs, and returns a
partial update. TypedDict because LangGraph requires it.

Usage:
    from hybrid_rag.graphs.state import QueryState
"""

from typing_extensions import TypedDict

from hybrid_rag.models.document import Chunk, RankedCandidate
from hybrid_rag.models.result import SynthesisResult


class QueryState(TypedDict, total=False):
    """
    State for the hybrid query graph.

    Flow: keyword_rank → rerank | semantic_search → synthesize

    Fields are populated by different nodes:
        - query, chunks, top_k:  set at start
        - candidates:            set by keyword_rank
        - query_vector:          set by rerank / semantic_search
        - final, strategy:       set by rerank / semantic_search
        - synthesis:             set by synthesize
    """

    # Input
    query: str
    chunks: list[Chunk]      # every cached chunk of the requested documents
    top_k: int

    # After keyword ranking
    candidates: list[RankedCandidate]

    # After vector ranking
    query_vector: list[float]
    final: list[RankedCandidate]
    strategy: str            # "hybrid", "semantic" or "keyword"

    # After synthesis
    synthesis: SynthesisResult
