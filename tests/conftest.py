"""
Shared test fixtures for the hybrid-rag test suite.

Provides deterministic fake providers (no API calls), configs and sample
chunks.
"""

import json
import re
import zlib

import pytest

from hybrid_rag.base.providers import EmbeddingProvider, GenerativeProvider
from hybrid_rag.config import ChunkingConfig, RAGConfig, RetrieverConfig
from hybrid_rag.indexing.tokens import HeuristicTokenCounter
from hybrid_rag.models.document import Chunk, ChunkMetadata


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------

def bag_of_words_vector(text: str, dimensions: int = 64) -> list[float]:
    """Hash each word into a bucket. Texts sharing words get similar vectors."""
    vector = [0.0] * dimensions
    for word in re.findall(r"[a-z0-9]+", text.lower()):
        vector[zlib.crc32(word.encode()) % dimensions] += 1.0
    return vector


class FakeEmbeddingProvider(EmbeddingProvider):
    """
    Deterministic embedding provider.

    fail_queries makes embed_query raise. fail_batches holds 1-based
    embed_documents call numbers that raise; fail_all_documents makes
    every embed_documents call raise.
    """

    def __init__(self, dimensions: int = 64):
        self.dimensions = dimensions
        self.query_calls: list[str] = []
        self.document_calls: list[list[str]] = []
        self.fail_queries = False
        self.fail_batches: set[int] = set()
        self.fail_all_documents = False

    async def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        if self.fail_queries:
            raise RuntimeError("embedding service unavailable")
        return bag_of_words_vector(text, self.dimensions)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        if self.fail_all_documents or len(self.document_calls) in self.fail_batches:
            raise RuntimeError("embedding service unavailable")
        return [bag_of_words_vector(text, self.dimensions) for text in texts]

    @property
    def embedded_texts(self) -> int:
        return sum(len(call) for call in self.document_calls)


def synthesis_json(answer="The refund window is 30 days [1].", confidence=0.85, citations=None, critique="Single source."):
    if citations is None:
        citations = [{"number": 1, "text": "returns within 30 days", "reasoning": "States the window"}]
    return json.dumps({
        "answer": answer,
        "confidence": confidence,
        "citations": citations,
        "selfCritique": critique,
    })


class FakeGenerativeProvider(GenerativeProvider):
    """Returns a canned response and records every prompt."""

    def __init__(self, response: str = None):
        self.response = response if response is not None else synthesis_json()
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.response


@pytest.fixture
def embedding_provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def generative_provider():
    return FakeGenerativeProvider()


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def small_chunking_config():
    """Tiny limits so short test texts get split."""
    return ChunkingConfig(
        target_chunk_tokens=15,
        min_chunk_tokens=10,
        max_chunk_tokens=20,
        overlap_sentences=1,
    )


@pytest.fixture
def rag_config():
    return RAGConfig(retriever=RetrieverConfig(top_k=3))


@pytest.fixture
def token_counter():
    return HeuristicTokenCounter()


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

REFUND_DOCUMENT = (
    "# Intro\n"
    "The refund policy allows returns within 30 days.\n"
    "# Pricing\n"
    "Standard plan is $50/month."
)


@pytest.fixture
def refund_document():
    return REFUND_DOCUMENT


def make_chunk(content: str, index: int = 0, document_id: str = "doc", page=None, section=None, embedding=None) -> Chunk:
    return Chunk(
        id=f"{document_id}_chunk_{index}",
        content=content,
        token_count=len(content) // 4,
        metadata=ChunkMetadata(
            document_id=document_id,
            chunk_index=index,
            total_chunks=index + 1,
            page_number=page,
            section_header=section,
        ),
        embedding=embedding,
    )


@pytest.fixture
def sample_chunks():
    """Chunks on distinct topics, without embeddings."""
    return [
        make_chunk("The refund policy allows returns within 30 days of purchase.", 0, page=1, section="Refunds"),
        make_chunk("Standard plan pricing is fifty dollars per month.", 1, page=2, section="Pricing"),
        make_chunk("Support is available by email on weekdays.", 2, page=3, section="Support"),
        make_chunk("Refund requests are processed by the billing team.", 3, page=3, section="Refunds"),
    ]
