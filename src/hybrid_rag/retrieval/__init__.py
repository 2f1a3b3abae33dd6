"""
Retrieval components: BM25 keyword ranking and vector reranking.

Usage:
    from hybrid_rag.retrieval import BM25Ranker, VectorRanker, cosine_similarity
"""

from .keyword import BM25Ranker, STOP_WORDS, tokenize
from .vector import VectorRanker, cosine_similarity

__all__ = [
    # Keyword
    "BM25Ranker",
    "STOP_WORDS",
    "tokenize",
    # Vector
    "VectorRanker",
    "cosine_similarity",
]
