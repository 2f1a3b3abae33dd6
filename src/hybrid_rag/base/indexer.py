"""
Abstract base class for chunkers.

A chunker turns one document's raw text into token-bounded, metadata
tagged Chunks. It is pure local computation: no provider calls, no
failures on odd content (empty text simply yields no chunks).
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from hybrid_rag.config import ChunkingConfig
from hybrid_rag.models.document import Chunk


class BaseChunker(ABC):
    """
    Contract for document chunkers.

    Every chunker receives a ChunkingConfig so the caller controls the
    token band and overlap.
    """

    def __init__(self, config: ChunkingConfig):
        self.config = config

    @abstractmethod
    def chunk(
        self,
        document_id: str,
        text: str,
        page_markers: Optional[Mapping[int, int]] = None,
    ) -> list[Chunk]:
        """
        Split a document into chunks.

        Args:
            document_id: Identifier used for chunk ids and metadata.
            text: The full extracted document text.
            page_markers: Optional page number → starting character offset.

        Returns:
            Chunks with chunk_index 0..n-1 and total_chunks == n.
        """
        ...
