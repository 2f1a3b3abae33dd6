"""
Document models for the retrieval pipeline.

These represent data at each stage:
  Raw text (input) → Chunk (split, later embedded) → RankedCandidate (scored)
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class IndexState(str, Enum):
    """
    Lifecycle of one document in the chunk store.

    UNINDEXED → INDEXING → INDEXED. The only way back to UNINDEXED is
    explicit eviction (or a failed indexing run).
    """

    UNINDEXED = "unindexed"
    INDEXING = "indexing"
    INDEXED = "indexed"


class ChunkMetadata(BaseModel):
    """
    Metadata attached to every chunk.

    Offsets are character positions in the original document text.
    page_number and section_header feed the citation metadata shown
    next to an answer.
    """

    document_id: str = Field(description="Parent document identifier")
    chunk_index: int = Field(default=0, ge=0, description="Position of this chunk in the document")
    total_chunks: int = Field(default=0, ge=0, description="Chunk count for the whole document")
    start_offset: int = Field(default=0, ge=0)
    end_offset: int = Field(default=0, ge=0)
    page_number: Optional[int] = Field(default=None, description="Page number if page markers were given")
    section_header: Optional[str] = Field(default=None, description="Header of the enclosing section")


class Chunk(BaseModel):
    """
    A contiguous span of document text, the atomic retrieval unit.

    The embedding is absent until the vector ranker attaches it and is
    fixed from then on: concurrent queries read the same cached chunk.
    """

    id: str = Field(description="Unique within a document: '{document_id}_chunk_{index}'")
    content: str = Field(description="The actual text content")
    token_count: int = Field(default=0, ge=0, description="Token length used for sizing")
    metadata: ChunkMetadata
    embedding: Optional[list[float]] = Field(
        default=None,
        description="Vector embedding, populated after the embedding step",
    )

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def attach_embedding(self, vector: list[float]) -> None:
        """Set the embedding once. Re-embedding a chunk is a caller bug."""
        if self.embedding is not None:
            raise ValueError(f"Chunk {self.id} already has an embedding")
        self.embedding = list(vector)


class RankedCandidate(BaseModel):
    """
    A chunk paired with its score between ranking stages.

    score is the score of the stage that produced the candidate: BM25
    after the keyword pass, the fused score after reranking, cosine
    similarity after a pure semantic search. bm25_score and similarity
    keep the individual signals for debugging.
    """

    chunk: Chunk
    score: float = Field(default=0.0, description="Relevance score (higher = more relevant)")
    bm25_score: Optional[float] = Field(default=None)
    similarity: Optional[float] = Field(default=None)


class DocumentText(BaseModel):
    """Raw text for one document plus its optional page markers (page → start offset)."""

    text: str
    page_markers: Optional[dict[int, int]] = None
