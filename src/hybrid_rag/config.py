"""
Configuration for the hybrid retrieval pipeline.

Split into one config per stage so each component only receives what it
needs. RAGConfig bundles them all for convenience.

Usage:
    # Full config, pass to the orchestrator
    config = RAGConfig()

    # Override specific parts
    config = RAGConfig(
        llm=LLMConfig(provider="anthropic", model_name="claude-sonnet-4-5-20250929"),
        retriever=RetrieverConfig(top_k=8, keyword_fallback=True),
    )

    # Standalone, use just one piece
    chunking = ChunkingConfig(max_chunk_tokens=1200, target_chunk_tokens=1000)
"""

from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load .env from the project root. Provider API keys (OPENAI_API_KEY,
# ANTHROPIC_API_KEY, ...) are read by the LangChain clients from the env.
_env_path = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_env_path)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class LLMProvider(str, Enum):
    """
    Supported generative providers.

    Each provider needs a different LangChain chat model class
    (ChatOpenAI vs ChatAnthropic), so the set is closed.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class TokenCounterType(str, Enum):
    """How the chunker measures text length."""

    HEURISTIC = "heuristic"
    LLM = "llm"


# ---------------------------------------------------------------------------
# Per-stage configs
# ---------------------------------------------------------------------------

class LLMConfig(BaseModel):
    """
    Generative model configuration.

    Used by: generation/llm.py (answer synthesis) and indexing/tokens.py
    when exact token counting is requested.
    """

    provider: LLMProvider = Field(
        default=LLMProvider.ANTHROPIC,
        description="Which LLM provider to use",
    )
    model_name: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Model identifier",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. 0 = deterministic, higher = more creative",
    )
    max_tokens: int = Field(
        default=4000,
        gt=0,
        description="Maximum tokens in the LLM response",
    )


class EmbeddingConfig(BaseModel):
    """
    Embedding model configuration.

    Used by: indexing/embeddings.py and retrieval/vector.py

    Provider is an open string because the embedding landscape keeps
    growing. The factory in indexing/embeddings.py maps known provider
    strings to LangChain classes and raises a clear error for unknown ones.

    batch_size caps how many chunk texts go into one provider call.
    max_concurrency=1 issues the batches one after another; raising it
    lets several batches run at once for large documents.
    """

    provider: str = Field(
        default="openai",
        description="Embedding provider: 'openai', 'huggingface', 'cohere'",
    )
    model_name: str = Field(
        default="text-embedding-3-small",
        description="Embedding model identifier",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor",
    )
    batch_size: int = Field(
        default=100,
        gt=0,
        description="Number of chunks embedded per provider call",
    )
    max_concurrency: int = Field(
        default=1,
        gt=0,
        description="How many embedding batches may be in flight at once",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Time box for a single embedding call",
    )


class ChunkingConfig(BaseModel):
    """
    Structure-aware chunking configuration.

    Used by: indexing/chunking.py

    Sizes are in tokens. A section that fits under max_chunk_tokens
    becomes one chunk; longer sections are split at sentence boundaries
    and each new chunk starts with the last overlap_sentences sentences
    of the previous one.
    """

    target_chunk_tokens: int = Field(default=1500, gt=0)
    min_chunk_tokens: int = Field(default=1000, gt=0)
    max_chunk_tokens: int = Field(default=2000, gt=0)
    overlap_sentences: int = Field(
        default=2,
        ge=0,
        description="Sentences carried over from the previous chunk",
    )
    chars_per_token: int = Field(
        default=4,
        gt=0,
        description="Ratio used by the heuristic token counter",
    )
    token_counter: TokenCounterType = Field(
        default=TokenCounterType.HEURISTIC,
        description="'heuristic' (chars / ratio) or 'llm' (exact, via the chat model)",
    )

    @model_validator(mode="after")
    def validate_sizes(self) -> "ChunkingConfig":
        """The target must sit inside the [min, max] band."""
        if not (self.min_chunk_tokens <= self.target_chunk_tokens <= self.max_chunk_tokens):
            raise ValueError(
                f"chunk sizes must satisfy min ({self.min_chunk_tokens}) <= "
                f"target ({self.target_chunk_tokens}) <= max ({self.max_chunk_tokens})"
            )
        return self


class KeywordConfig(BaseModel):
    """BM25 parameters. Used by: retrieval/keyword.py"""

    k1: float = Field(default=1.5, ge=0.0, description="Term frequency saturation")
    b: float = Field(default=0.75, ge=0.0, le=1.0, description="Length normalization")


class RetrieverConfig(BaseModel):
    """
    Query-time retrieval configuration.

    Used by: pipeline.py, graphs/query.py, retrieval/vector.py

    The keyword pass fetches top_k * candidate_multiplier candidates so the
    semantic rerank has enough material to promote chunks the keyword pass
    ranked lower.

    keyword_fallback lets a query finish on BM25 ranking alone when the
    query embedding cannot be produced. Off by default: an embedding
    failure is a query failure.
    """

    top_k: int = Field(default=5, gt=0, description="Chunks passed to synthesis")
    candidate_multiplier: int = Field(
        default=3,
        gt=0,
        description="Over-fetch factor for the keyword pass",
    )
    bm25_weight: float = Field(default=0.4, ge=0.0)
    semantic_weight: float = Field(default=0.6, ge=0.0)
    keyword_fallback: bool = Field(
        default=False,
        description="Use BM25 order when the query embedding fails",
    )

    @model_validator(mode="after")
    def validate_weights(self) -> "RetrieverConfig":
        """At least one ranking signal must contribute to the fused score."""
        if self.bm25_weight + self.semantic_weight <= 0:
            raise ValueError("bm25_weight and semantic_weight cannot both be 0")
        return self


class SynthesisConfig(BaseModel):
    """
    Answer synthesis configuration.

    Used by: generation/synthesis.py

    strict_json=False accepts a JSON object wrapped in prose (the model
    sometimes adds a preamble). strict_json=True requires the response to
    be the JSON object alone.
    """

    timeout_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Time box for the synthesis call",
    )
    strict_json: bool = Field(default=False)
    industry: str = Field(
        default="general",
        description="Key into generation.prompts.INDUSTRY_PROMPTS",
    )
    known_chunk_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    unknown_chunk_confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    @field_validator("industry")
    @classmethod
    def validate_industry(cls, value: str) -> str:
        # Imported here: prompts.py is pure data but lives in a package
        # that imports this module.
        from hybrid_rag.generation.prompts import INDUSTRY_PROMPTS

        key = value.lower()
        if key not in INDUSTRY_PROMPTS:
            raise ValueError(
                f"Unknown industry: '{value}'. "
                f"Known: {', '.join(sorted(INDUSTRY_PROMPTS))}"
            )
        return key


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

class RAGConfig(BaseModel):
    """
    Complete pipeline configuration.

    HybridRAG receives this and hands slices to each stage:
        chunker = StructureAwareChunker(config.chunking)
        keyword = BM25Ranker(config.keyword)
        vector = VectorRanker(provider, config.embedding, config.retriever)

    RAGConfig() with no arguments gives a working setup.
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    keyword: KeywordConfig = Field(default_factory=KeywordConfig)
    retriever: RetrieverConfig = Field(default_factory=RetrieverConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
