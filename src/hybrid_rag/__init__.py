"""
Hybrid RAG: keyword + semantic retrieval with cited answer synthesis.

Quick start:
    from hybrid_rag import HybridRAG

    rag = HybridRAG()
    await rag.index_document("contract-42", text)
    result = await rag.query("When does the lease end?", ["contract-42"])
    print(result.answer)

Pipeline:
    - Structure-aware chunking (headers, then sentences)
    - BM25 candidate selection
    - Cosine-similarity rerank (0.4 · BM25 + 0.6 · similarity)
    - Answer synthesis with [n] citations, confidence and self-critique
"""

from .config import (
    ChunkingConfig,
    EmbeddingConfig,
    KeywordConfig,
    LLMConfig,
    LLMProvider,
    RAGConfig,
    RetrieverConfig,
    SynthesisConfig,
    TokenCounterType,
)
from .errors import (
    EmbeddingError,
    EmptyQueryError,
    NoIndexedContentError,
    NoRelevantContentError,
    RAGError,
    SynthesisError,
)
from .models import (
    CacheStats,
    Chunk,
    ChunkMetadata,
    Citation,
    DocumentText,
    IndexState,
    RankedCandidate,
    RetrievalResult,
    SynthesisResult,
)
from .pipeline import ChunkStore, HybridRAG, should_use_rag

__all__ = [
    # Pipeline (public API)
    "HybridRAG",
    "ChunkStore",
    "should_use_rag",
    # Config
    "RAGConfig",
    "LLMConfig",
    "LLMProvider",
    "EmbeddingConfig",
    "ChunkingConfig",
    "TokenCounterType",
    "KeywordConfig",
    "RetrieverConfig",
    "SynthesisConfig",
    # Models
    "CacheStats",
    "Chunk",
    "ChunkMetadata",
    "Citation",
    "DocumentText",
    "IndexState",
    "RankedCandidate",
    "RetrievalResult",
    "SynthesisResult",
    # Errors
    "RAGError",
    "EmptyQueryError",
    "NoIndexedContentError",
    "NoRelevantContentError",
    "EmbeddingError",
    "SynthesisError",
]

__version__ = "0.1.0"
