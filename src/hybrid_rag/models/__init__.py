"""
Pydantic models shared across the pipeline.

Import from here rather than reaching into submodules:
    from hybrid_rag.models import Chunk, RankedCandidate, RetrievalResult
"""

from .document import Chunk, ChunkMetadata, DocumentText, IndexState, RankedCandidate
from .result import (
    CacheStats,
    Citation,
    CitationPayload,
    RetrievalResult,
    SynthesisPayload,
    SynthesisResult,
)

__all__ = [
    # Document
    "Chunk",
    "ChunkMetadata",
    "DocumentText",
    "IndexState",
    "RankedCandidate",
    # Result
    "CacheStats",
    "Citation",
    "CitationPayload",
    "RetrievalResult",
    "SynthesisPayload",
    "SynthesisResult",
]
