"""
Abstract base classes defining the contract for each pipeline stage.

Import from here:
    from hybrid_rag.base import BaseChunker, EmbeddingProvider, GenerativeProvider
"""

from .indexer import BaseChunker
from .providers import EmbeddingProvider, GenerativeProvider

__all__ = [
    "BaseChunker",
    "EmbeddingProvider",
    "GenerativeProvider",
]
