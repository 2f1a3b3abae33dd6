"""
Indexing: chunk → count tokens → embed.

Usage:
    from hybrid_rag.indexing import StructureAwareChunker, LangChainEmbeddingProvider
"""

from .chunking import StructureAwareChunker, detect_headers, find_page_number, split_into_sections
from .embeddings import LangChainEmbeddingProvider, get_embedding_model
from .tokens import HeuristicTokenCounter, LLMTokenCounter, TokenCounter, get_token_counter

__all__ = [
    # Chunking
    "StructureAwareChunker",
    "detect_headers",
    "find_page_number",
    "split_into_sections",
    # Embeddings
    "LangChainEmbeddingProvider",
    "get_embedding_model",
    # Tokens
    "HeuristicTokenCounter",
    "LLMTokenCounter",
    "TokenCounter",
    "get_token_counter",
]
