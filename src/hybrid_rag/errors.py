"""
Exception hierarchy for the hybrid retrieval pipeline.

Input errors (empty query, nothing indexed) and boundary failures
(embedding provider, generative provider) get their own types so callers
can tell "index the document first" apart from "the provider is down".
Local computations (chunking, BM25, cosine) only raise ValueError on
programmer error and are not represented here.
"""

from typing import Any, Optional


class RAGError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class EmptyQueryError(RAGError, ValueError):
    """Raised when a query has no searchable text."""


class NoIndexedContentError(RAGError, LookupError):
    """
    Raised when none of the requested documents has cached chunks.

    Recoverable: the caller should index the documents and retry.
    """

    def __init__(self, document_ids: list[str]) -> None:
        super().__init__(
            "No indexed chunks found for specified documents",
            {"document_ids": list(document_ids)},
        )
        self.document_ids = list(document_ids)


class NoRelevantContentError(RAGError, LookupError):
    """Raised when neither ranking signal selected any chunk for a query."""


class EmbeddingError(RAGError):
    """Raised when the embedding provider fails or times out."""


class SynthesisError(RAGError):
    """Raised when the generative call fails, times out, or returns unparsable output."""
