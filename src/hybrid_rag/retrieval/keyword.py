"""
BM25 keyword ranking.

The cheap first pass of every query: scores each chunk by term overlap
with the query, with no provider calls. Its top candidates are what the
vector ranker reranks.

    idf(t)   = ln((N - df(t) + 0.5) / (df(t) + 0.5) + 1)
    score(c) = Σ_t idf(t) · tf(t)·(k1 + 1) / (tf(t) + k1·(1 - b + b·|c| / avgLen))

N is the number of chunks, df(t) the chunks containing t, tf(t) the
count of t in chunk c, |c| the chunk's term count and avgLen the mean
term count over the chunk set.

Usage:
    from hybrid_rag.retrieval.keyword import BM25Ranker

    ranker = BM25Ranker()
    candidates = ranker.search("refund days", chunks, top_k=15)
"""

import logging
import math
import re
import time
from collections import Counter

from hybrid_rag.config import KeywordConfig
from hybrid_rag.models.document import Chunk, RankedCandidate
from hybrid_rag.utils.helpers import preview

logger = logging.getLogger(__name__)


STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "can", "this", "that", "these",
    "those", "it", "its", "what", "which", "who", "when", "where", "why", "how",
})

_PUNCTUATION = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    """
    Lowercase, strip punctuation, split on whitespace, then drop terms
    of two characters or fewer and stop words.

    Queries and chunks go through the same function.
    """
    terms = _PUNCTUATION.sub(" ", text.lower()).split()
    return [term for term in terms if len(term) > 2 and term not in STOP_WORDS]


class BM25Ranker:
    """
    Okapi BM25 over an in-memory chunk list.

    k1 controls term-frequency saturation (how quickly repeated terms
    stop adding score); b controls how strongly long chunks are
    penalised. Defaults are the usual 1.5 / 0.75.
    """

    def __init__(self, config: KeywordConfig = None):
        self._config = config or KeywordConfig()

    def search(
        self,
        query: str,
        chunks: list[Chunk],
        top_k: int = 10,
    ) -> list[RankedCandidate]:
        """
        Score every chunk against the query and keep the best.

        Args:
            query: Natural language query.
            chunks: The chunk set to rank (also the corpus for IDF).
            top_k: Maximum number of candidates returned.

        Returns:
            Candidates with score > 0, best first. Equal scores keep the
            input order, so results are deterministic.
        """
        start_time = time.perf_counter()

        query_terms = tokenize(query)
        if not query_terms or not chunks:
            logger.info("BM25 search: no searchable terms or no chunks for %r", query)
            return []

        # Tokenize each chunk once; everything below works on term counts
        term_counts = [Counter(tokenize(chunk.content)) for chunk in chunks]
        lengths = [sum(counts.values()) for counts in term_counts]
        avg_length = (sum(lengths) / len(lengths)) or 1.0

        idf = self._idf(query_terms, term_counts)

        scored: list[RankedCandidate] = []
        for chunk, counts, length in zip(chunks, term_counts, lengths):
            score = self._score(query_terms, counts, length, avg_length, idf)
            if score > 0:
                scored.append(RankedCandidate(chunk=chunk, score=score, bm25_score=score))

        # sorted() is stable: ties keep chunk order
        scored = sorted(scored, key=lambda c: c.score, reverse=True)[:top_k]

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "BM25 found %d relevant chunks out of %d in %.0fms, top scores: %s",
            len(scored),
            len(chunks),
            elapsed_ms,
            ", ".join(f"{c.score:.2f}" for c in scored[:3]),
        )
        return scored

    def explain_score(self, query: str, candidate: RankedCandidate) -> str:
        """Human-readable breakdown of which query terms a candidate matched."""
        chunk_terms = set(tokenize(candidate.chunk.content))
        matches = [term for term in tokenize(query) if term in chunk_terms]
        return (
            f"BM25 Score: {candidate.score:.2f} | "
            f"Matched terms: [{', '.join(matches)}] | "
            f'Chunk: "{preview(candidate.chunk.content)}"'
        )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    @staticmethod
    def _idf(query_terms: list[str], term_counts: list[Counter]) -> dict[str, float]:
        n = len(term_counts)
        idf = {}
        for term in set(query_terms):
            df = sum(1 for counts in term_counts if term in counts)
            idf[term] = math.log((n - df + 0.5) / (df + 0.5) + 1) if df > 0 else 0.0
        return idf

    def _score(
        self,
        query_terms: list[str],
        counts: Counter,
        length: int,
        avg_length: float,
        idf: dict[str, float],
    ) -> float:
        k1, b = self._config.k1, self._config.b
        score = 0.0
        for term in query_terms:
            tf = counts.get(term, 0)
            if tf == 0:
                continue
            numerator = tf * (k1 + 1)
            denominator = tf + k1 * (1 - b + b * (length / avg_length))
            score += idf[term] * (numerator / denominator)
        return score
