"""
Hybrid RAG: index documents once, answer many queries with citations.

This is the entry point of the hybrid-rag package:

    from hybrid_rag import HybridRAG

    rag = HybridRAG()
    await rag.index_document("doc-1", text, page_markers={1: 0, 2: 3100})
    result = await rag.query("What is the refund window?", ["doc-1"])
    print(result.answer)
    for citation in result.citations:
        print(citation.marker, citation.page_number, citation.text)

HybridRAG wires the stages together:
    1. Chunk the document along its headers and sentences
    2. Embed the chunks in batches and cache them per document
    3. For each query: BM25 candidates → semantic rerank → top_k
    4. Synthesize a cited answer from the top_k chunks

Documents can also be indexed lazily: pass a document_source callable
and the first query that names an unindexed document indexes it.

All configuration is optional. Providers default to the LangChain models
selected by RAGConfig; tests and callers with their own clients pass
EmbeddingProvider / GenerativeProvider implementations directly.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable, Mapping, Optional

from hybrid_rag.base.providers import EmbeddingProvider, GenerativeProvider
from hybrid_rag.config import RAGConfig
from hybrid_rag.errors import EmptyQueryError, NoIndexedContentError, NoRelevantContentError
from hybrid_rag.generation.llm import LangChainGenerativeProvider
from hybrid_rag.generation.synthesis import AnswerSynthesizer
from hybrid_rag.graphs.query import build_query_graph
from hybrid_rag.indexing.chunking import StructureAwareChunker
from hybrid_rag.indexing.embeddings import LangChainEmbeddingProvider
from hybrid_rag.indexing.tokens import TokenCounter, get_token_counter
from hybrid_rag.models.document import Chunk, DocumentText, IndexState
from hybrid_rag.models.result import CacheStats, RetrievalResult
from hybrid_rag.retrieval.keyword import BM25Ranker
from hybrid_rag.retrieval.vector import VectorRanker
from hybrid_rag.utils.helpers import replace_t_with_space

logger = logging.getLogger(__name__)

# async (document_id) -> DocumentText, or None when the source has no text
DocumentSource = Callable[[str], Awaitable[Optional[DocumentText]]]

# Original threshold: ~1.2K tokens of text
MIN_LENGTH_FOR_RAG = 5000


def should_use_rag(text: Optional[str], min_chars: int = MIN_LENGTH_FOR_RAG) -> bool:
    """
    Whether a document is long enough to be worth retrieval.

    Shorter documents fit in a prompt whole; retrieval only pays off once
    the text is too long to send in full.
    """
    return len(text or "") >= min_chars


# ---------------------------------------------------------------------------
# Chunk cache
# ---------------------------------------------------------------------------

class ChunkStore:
    """
    In-memory chunk cache keyed by document id, with per-document index state.

    Chunks are stored as tuples so a caller holding the result of get()
    cannot change what later queries see.
    """

    def __init__(self):
        self._chunks: dict[str, tuple[Chunk, ...]] = {}
        self._states: dict[str, IndexState] = {}

    def get(self, document_id: str) -> Optional[tuple[Chunk, ...]]:
        return self._chunks.get(document_id)

    def put(self, document_id: str, chunks: Iterable[Chunk]) -> None:
        self._chunks[document_id] = tuple(chunks)
        self._states[document_id] = IndexState.INDEXED

    def mark_indexing(self, document_id: str) -> None:
        self._states[document_id] = IndexState.INDEXING

    def evict(self, document_id: str) -> bool:
        """Drop a document. Returns whether anything was cached for it."""
        self._states.pop(document_id, None)
        return self._chunks.pop(document_id, None) is not None

    def state(self, document_id: str) -> IndexState:
        return self._states.get(document_id, IndexState.UNINDEXED)

    def stats(self) -> CacheStats:
        return CacheStats(
            documents=len(self._chunks),
            total_chunks=sum(len(chunks) for chunks in self._chunks.values()),
        )

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._chunks

    def __len__(self) -> int:
        return len(self._chunks)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class HybridRAG:
    """
    Hybrid keyword + semantic retrieval with cited answer synthesis.

    Lifecycle of a document:
        UNINDEXED → INDEXING → INDEXED
    and back to UNINDEXED when indexing fails or the cache entry is
    cleared. Concurrent index_document() calls for the same id share
    one indexing run; calls for an indexed id return the cached chunks
    without re-embedding.

    Each instance owns its own ChunkStore. Nothing is shared between
    instances and nothing is persisted.
    """

    def __init__(
        self,
        config: Optional[RAGConfig] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        generative_provider: Optional[GenerativeProvider] = None,
        token_counter: Optional[TokenCounter] = None,
        document_source: Optional[DocumentSource] = None,
    ):
        """
        Args:
            config: Full pipeline configuration. Defaults to RAGConfig().
            embedding_provider: Embeds chunks and queries. Built from
                config.embedding when omitted.
            generative_provider: Produces the synthesized answer. Built
                from config.llm when omitted.
            token_counter: Counts chunk tokens. Selected by
                config.chunking.token_counter when omitted.
            document_source: Async callable returning a document's text by
                id. When set, query() indexes unindexed documents first.
        """
        self._config = config or RAGConfig()
        self._document_source = document_source

        embedding_provider = embedding_provider or LangChainEmbeddingProvider.from_config(self._config.embedding)
        generative_provider = generative_provider or LangChainGenerativeProvider.from_config(self._config.llm)
        token_counter = token_counter or get_token_counter(self._config.chunking, self._config.llm)

        # --- Components ---
        self._chunker = StructureAwareChunker(self._config.chunking, token_counter)
        self._keyword = BM25Ranker(self._config.keyword)
        self._vector = VectorRanker(embedding_provider, self._config.embedding, self._config.retriever)
        self._synthesizer = AnswerSynthesizer(generative_provider, self._config.synthesis)
        self._graph = build_query_graph(
            self._keyword, self._vector, self._synthesizer, self._config.retriever,
        )

        self._store = ChunkStore()
        self._in_flight: dict[str, asyncio.Task] = {}

    @property
    def config(self) -> RAGConfig:
        return self._config

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def index_document(
        self,
        document_id: str,
        text: str,
        page_markers: Optional[Mapping[int, int]] = None,
    ) -> list[Chunk]:
        """
        Chunk and embed a document, caching the result.

        Args:
            document_id: Cache key. Non-string ids are converted with str().
            text: Extracted document text.
            page_markers: Page number → character offset where it starts.

        Returns:
            The document's chunks. Chunks whose embedding batch failed are
            included without an embedding.

        Raises:
            EmbeddingError: If every embedding batch failed. The document
                is left unindexed and a later call retries.
        """
        document_id = str(document_id)

        cached = self._store.get(document_id)
        if cached is not None:
            logger.debug("Document %s already indexed (%d chunks)", document_id, len(cached))
            return list(cached)

        task = self._in_flight.get(document_id)
        if task is None:
            task = asyncio.ensure_future(self._index(document_id, text, page_markers))
            self._in_flight[document_id] = task
        else:
            logger.info("Document %s is already being indexed, waiting for it", document_id)

        # One cancelled caller must not cancel the run other callers share
        chunks = await asyncio.shield(task)
        return list(chunks)

    async def _index(
        self,
        document_id: str,
        text: str,
        page_markers: Optional[Mapping[int, int]],
    ) -> tuple[Chunk, ...]:
        self._store.mark_indexing(document_id)
        start_time = time.perf_counter()

        try:
            chunks = self._chunker.chunk(document_id, replace_t_with_space(text or ""), page_markers)
            embedded = await self._vector.embed_chunks(chunks)
            self._store.put(document_id, chunks)
        finally:
            if self._store.state(document_id) is IndexState.INDEXING:
                self._store.evict(document_id)
                logger.warning("Indexing of document %s failed, left unindexed", document_id)
            self._in_flight.pop(document_id, None)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Indexed document %s: %d chunks (%d embedded) in %.0fms",
            document_id, len(chunks), embedded, elapsed_ms,
        )
        return self._store.get(document_id)

    async def _index_from_source(self, document_id: str) -> None:
        document = await self._document_source(document_id)
        if document is None:
            logger.warning("Document source returned no text for %s", document_id)
            return
        await self.index_document(document_id, document.text, document.page_markers)

    async def _ensure_indexed(self, document_ids: list[str]) -> None:
        """Wait for in-flight indexing and index missing documents from the source."""
        pending = []
        for document_id in document_ids:
            if document_id in self._store:
                continue
            task = self._in_flight.get(document_id)
            if task is not None:
                pending.append(asyncio.shield(task))
            elif self._document_source is not None:
                pending.append(self._index_from_source(document_id))

        if pending:
            await asyncio.gather(*pending)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    async def query(
        self,
        text: str,
        document_ids: Iterable[str],
        top_k: Optional[int] = None,
    ) -> RetrievalResult:
        """
        Answer a question from the named documents.

        Args:
            text: The question.
            document_ids: Documents to search. Their cached chunks form
                one corpus for ranking.
            top_k: Chunks passed to synthesis. Defaults to
                config.retriever.top_k.

        Returns:
            RetrievalResult with the answer, citations, confidence,
            self-critique and the chunks that were used.

        Raises:
            EmptyQueryError: If text is empty or whitespace.
            ValueError: If top_k < 1.
            NoIndexedContentError: If none of the documents has chunks.
            NoRelevantContentError: If ranking selected no chunk.
            EmbeddingError: If the query embedding fails (unless
                keyword_fallback is enabled and keyword candidates exist).
            SynthesisError: If answer synthesis fails.
        """
        if not text or not text.strip():
            raise EmptyQueryError("Query text is empty")

        top_k = self._config.retriever.top_k if top_k is None else top_k
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")

        # Keep caller order, drop repeats
        document_ids = list(dict.fromkeys(str(d) for d in document_ids))
        start_time = time.perf_counter()

        await self._ensure_indexed(document_ids)

        chunks: list[Chunk] = []
        for document_id in document_ids:
            chunks.extend(self._store.get(document_id) or ())
        if not chunks:
            raise NoIndexedContentError(document_ids)

        state = await self._graph.ainvoke({"query": text, "chunks": chunks, "top_k": top_k})

        final = state.get("final") or []
        if not final:
            raise NoRelevantContentError(
                "No relevant chunks found for query",
                {"document_ids": document_ids, "chunks_searched": len(chunks)},
            )

        synthesis = state["synthesis"]
        result = RetrievalResult(
            answer=synthesis.answer,
            citations=synthesis.citations,
            confidence=synthesis.confidence,
            self_critique=synthesis.self_critique,
            retrieved_chunks=[candidate.chunk for candidate in final],
            strategy=state["strategy"],
        )

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Query answered in %.0fms via %s ranking: %d chunks from %d documents, confidence %.2f",
            elapsed_ms, result.strategy, len(final), len(document_ids), result.confidence,
        )
        return result

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def get_document_chunks(self, document_id: str) -> Optional[list[Chunk]]:
        """Cached chunks for a document, or None when it is not indexed."""
        cached = self._store.get(str(document_id))
        return list(cached) if cached is not None else None

    def get_index_state(self, document_id: str) -> IndexState:
        return self._store.state(str(document_id))

    def clear_document_cache(self, document_id: str) -> None:
        """Forget a document. The next index or query rebuilds it."""
        if self._store.evict(str(document_id)):
            logger.info("Cleared RAG cache for document %s", document_id)

    def get_cache_stats(self) -> CacheStats:
        return self._store.stats()
