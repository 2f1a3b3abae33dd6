"""
Vector similarity: embedding chunks and queries, reranking candidates.

Two jobs:
    - Indexing time: embed_chunks() attaches an embedding to every chunk,
      in batches, tolerating individual batch failures.
    - Query time: embed_query() + rerank() blend the BM25 score with the
      cosine similarity between the query and each candidate:

          fused = 0.4 · bm25 + 0.6 · similarity

      Keyword overlap is precise but misses paraphrases; similarity
      catches paraphrases but can drift off topic. The blend leans
      semantic while BM25 still breaks near-ties.

semantic_search() is the pure-vector variant, used when the keyword pass
produced no candidates at all.

Usage:
    from hybrid_rag.retrieval.vector import VectorRanker

    ranker = VectorRanker(provider)
    await ranker.embed_chunks(chunks)
    query_vector = await ranker.embed_query("refund window")
    reranked = ranker.rerank(query_vector, bm25_candidates)
"""

import asyncio
import logging
import math
import time
from typing import Optional

from hybrid_rag.base.providers import EmbeddingProvider
from hybrid_rag.config import EmbeddingConfig, RetrieverConfig
from hybrid_rag.errors import EmbeddingError
from hybrid_rag.models.document import Chunk, RankedCandidate

logger = logging.getLogger(__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """
    Cosine similarity between two vectors.

    Raises ValueError when the lengths differ: vectors from one provider
    always share a dimension, so a mismatch is a wiring bug. A zero
    vector has similarity 0.0 with everything.
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have same length ({len(a)} != {len(b)})")

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class VectorRanker:
    """
    Embeds through an EmbeddingProvider and ranks by cosine similarity.

    Every provider call is time-boxed by EmbeddingConfig.timeout_seconds.
    Chunks keep their embedding once attached; embed_chunks() skips
    chunks that already have one.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        config: EmbeddingConfig = None,
        retriever_config: RetrieverConfig = None,
    ):
        self._provider = provider
        self._config = config or EmbeddingConfig()
        self._retriever_config = retriever_config or RetrieverConfig()

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------

    async def embed_query(self, text: str) -> list[float]:
        """
        Embed a query string.

        Raises:
            EmbeddingError: If the provider fails or exceeds the time box.
        """
        try:
            return await asyncio.wait_for(
                self._provider.embed_query(text),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise EmbeddingError(
                f"Query embedding timed out after {self._config.timeout_seconds}s"
            ) from e
        except Exception as e:
            raise EmbeddingError(f"Query embedding failed: {e}") from e

    async def embed_chunks(self, chunks: list[Chunk]) -> int:
        """
        Attach embeddings to chunks that do not have one yet.

        Chunks go to the provider in batches of batch_size, at most
        max_concurrency batches at a time. A failed batch is logged and
        skipped: its chunks stay without an embedding (still usable by
        BM25, ignored by similarity) and the other batches continue.

        Returns:
            Number of chunks embedded by this call.

        Raises:
            EmbeddingError: If there was work to do and every batch failed.
        """
        pending = [chunk for chunk in chunks if not chunk.has_embedding]
        if not pending:
            return 0

        start_time = time.perf_counter()
        size = self._config.batch_size
        batches = [pending[i:i + size] for i in range(0, len(pending), size)]
        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def run(number: int, batch: list[Chunk]) -> Optional[BaseException]:
            async with semaphore:
                try:
                    await self._embed_batch(batch)
                except Exception as e:
                    logger.warning(
                        "Embedding batch %d/%d (%d chunks) failed: %s",
                        number, len(batches), len(batch), e,
                    )
                    return e
                logger.debug("Embedded batch %d/%d", number, len(batches))
                return None

        errors = await asyncio.gather(*(run(n, b) for n, b in enumerate(batches, start=1)))
        failures = [e for e in errors if e is not None]

        embedded = sum(1 for chunk in pending if chunk.has_embedding)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Embedded %d/%d chunks in %.0fms (%d/%d batches failed)",
            embedded, len(pending), elapsed_ms, len(failures), len(batches),
        )

        if len(failures) == len(batches):
            raise EmbeddingError(
                "All embedding batches failed",
                {"batches": len(batches), "chunks": len(pending)},
            ) from failures[0]
        return embedded

    async def _embed_batch(self, batch: list[Chunk]) -> None:
        try:
            vectors = await asyncio.wait_for(
                self._provider.embed_documents([chunk.content for chunk in batch]),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise EmbeddingError(
                f"Embedding batch timed out after {self._config.timeout_seconds}s"
            ) from e

        if len(vectors) != len(batch):
            raise EmbeddingError(
                f"Provider returned {len(vectors)} vectors for {len(batch)} texts"
            )
        for chunk, vector in zip(batch, vectors):
            chunk.attach_embedding(vector)

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def rerank(
        self,
        query_vector: list[float],
        candidates: list[RankedCandidate],
    ) -> list[RankedCandidate]:
        """
        Rerank keyword candidates by the fused BM25 + similarity score.

        Candidates whose chunk has no embedding get similarity 0, so they
        can still place on their BM25 score alone. Returns new candidate
        objects; the input list is left untouched.
        """
        bm25_weight = self._retriever_config.bm25_weight
        semantic_weight = self._retriever_config.semantic_weight

        reranked = []
        for candidate in candidates:
            bm25 = candidate.bm25_score if candidate.bm25_score is not None else candidate.score
            similarity = (
                cosine_similarity(query_vector, candidate.chunk.embedding)
                if candidate.chunk.has_embedding
                else 0.0
            )
            reranked.append(RankedCandidate(
                chunk=candidate.chunk,
                score=bm25 * bm25_weight + similarity * semantic_weight,
                bm25_score=bm25,
                similarity=similarity,
            ))

        reranked.sort(key=lambda c: c.score, reverse=True)

        logger.info(
            "Reranked %d candidates, top fused scores: %s",
            len(reranked),
            ", ".join(f"{c.score:.3f}" for c in reranked[:3]),
        )
        return reranked

    def semantic_search(
        self,
        query_vector: list[float],
        chunks: list[Chunk],
        top_k: int = 10,
    ) -> list[RankedCandidate]:
        """
        Pure vector search over chunks that have an embedding.

        Used when there is no keyword candidate set to rerank.
        """
        embedded = [chunk for chunk in chunks if chunk.has_embedding]
        if not embedded:
            logger.warning("No chunks have embeddings, semantic search skipped")
            return []

        results = []
        for chunk in embedded:
            similarity = cosine_similarity(query_vector, chunk.embedding)
            results.append(RankedCandidate(chunk=chunk, score=similarity, similarity=similarity))

        results.sort(key=lambda c: c.score, reverse=True)
        results = results[:top_k]

        logger.info(
            "Semantic search over %d chunks, top similarities: %s",
            len(embedded),
            ", ".join(f"{c.score:.3f}" for c in results[:3]),
        )
        return results
