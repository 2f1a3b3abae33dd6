"""
Result models for synthesis and the overall query.

These are the outputs of the pipeline, what the caller gets back.
Also includes the schema the generative response must satisfy.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .document import Chunk


# ---------------------------------------------------------------------------
# Generative response schema
# ---------------------------------------------------------------------------

class CitationPayload(BaseModel):
    """One entry of the 'citations' array the model is asked to return."""

    number: int = Field(description="The bracketed marker, [1] → 1")
    text: str = Field(default="", description="Exact quote from the context")
    reasoning: str = Field(default="", description="Why the quote supports the answer")


class SynthesisPayload(BaseModel):
    """
    The JSON object the generative provider must return.

    Validated before use so a malformed response fails loudly instead of
    turning into a low-confidence guess.
    """

    model_config = ConfigDict(populate_by_name=True)

    answer: str = Field(min_length=1)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    citations: list[CitationPayload] = Field(default_factory=list)
    self_critique: str = Field(
        default="No self-critique provided",
        alias="selfCritique",
    )


# ---------------------------------------------------------------------------
# Synthesis results
# ---------------------------------------------------------------------------

class Citation(BaseModel):
    """
    A claim-to-source link produced during synthesis.

    chunk_id always refers to a chunk in the set passed to synthesis,
    or to 'unknown_{marker}' when the model cited a marker that does
    not exist (with degraded confidence).
    """

    text: str = Field(default="", description="Quoted span supporting the claim")
    chunk_id: str
    page_number: Optional[int] = None
    section_header: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    marker: int = Field(description="Bracket number used in the answer text")
    reasoning: str = Field(default="")


class SynthesisResult(BaseModel):
    """Output of the synthesis stage."""

    answer: str
    citations: list[Citation] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    self_critique: str = ""


# ---------------------------------------------------------------------------
# Query result (top-level output)
# ---------------------------------------------------------------------------

class RetrievalResult(BaseModel):
    """
    The complete response to one query.

    Built fresh per query and never cached. strategy records which
    ranking path selected retrieved_chunks:
        - "hybrid":   BM25 candidates reranked by cosine similarity
        - "semantic": no keyword match, pure vector search
        - "keyword":  query embedding failed, BM25 order (opt-in fallback)
    """

    answer: str
    citations: list[Citation] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    self_critique: str = ""
    retrieved_chunks: list[Chunk] = Field(default_factory=list)
    strategy: str = Field(default="hybrid")


class CacheStats(BaseModel):
    documents: int = 0
    total_chunks: int = 0
