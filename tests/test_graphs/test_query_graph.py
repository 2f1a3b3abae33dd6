"""Tests for the hybrid query graph — real rankers, fake providers."""

import pytest

from conftest import make_chunk
from hybrid_rag.config import RetrieverConfig
from hybrid_rag.errors import EmbeddingError
from hybrid_rag.generation.synthesis import AnswerSynthesizer
from hybrid_rag.graphs.query import build_query_graph
from hybrid_rag.retrieval.keyword import BM25Ranker
from hybrid_rag.retrieval.vector import VectorRanker


def _graph(embedding_provider, generative_provider, **retriever_kwargs):
    retriever_config = RetrieverConfig(**retriever_kwargs)
    return build_query_graph(
        BM25Ranker(),
        VectorRanker(embedding_provider, retriever_config=retriever_config),
        AnswerSynthesizer(generative_provider),
        retriever_config,
    )


async def _embedded(chunks, embedding_provider):
    await VectorRanker(embedding_provider).embed_chunks(chunks)
    return chunks


class TestQueryGraph:

    @pytest.mark.asyncio
    async def test_hybrid_path(self, sample_chunks, embedding_provider, generative_provider):
        chunks = await _embedded(sample_chunks, embedding_provider)
        graph = _graph(embedding_provider, generative_provider)

        state = await graph.ainvoke({"query": "refund policy", "chunks": chunks, "top_k": 1})

        assert state["strategy"] == "hybrid"
        assert [c.chunk.id for c in state["candidates"]] == ["doc_chunk_0", "doc_chunk_3"]
        assert len(state["final"]) == 1
        assert state["final"][0].similarity is not None
        assert state["synthesis"].answer
        assert len(generative_provider.prompts) == 1

    @pytest.mark.asyncio
    async def test_keyword_pass_over_fetches(self, embedding_provider, generative_provider):
        chunks = [make_chunk(f"refund rule {i}", i) for i in range(10)]
        await _embedded(chunks, embedding_provider)
        graph = _graph(embedding_provider, generative_provider, candidate_multiplier=3)

        state = await graph.ainvoke({"query": "refund", "chunks": chunks, "top_k": 2})

        assert len(state["candidates"]) == 6
        assert len(state["final"]) == 2

    @pytest.mark.asyncio
    async def test_semantic_path_when_no_keyword_match(self, sample_chunks, embedding_provider, generative_provider):
        chunks = await _embedded(sample_chunks, embedding_provider)
        graph = _graph(embedding_provider, generative_provider)

        state = await graph.ainvoke({"query": "what is it", "chunks": chunks, "top_k": 2})

        assert state["candidates"] == []
        assert state["strategy"] == "semantic"
        assert len(state["final"]) == 2
        assert "synthesis" in state

    @pytest.mark.asyncio
    async def test_ends_without_synthesis_when_nothing_ranked(self, sample_chunks, embedding_provider, generative_provider):
        graph = _graph(embedding_provider, generative_provider)

        # No embeddings and no keyword match: both signals come up empty
        state = await graph.ainvoke({"query": "what is it", "chunks": sample_chunks, "top_k": 2})

        assert state["final"] == []
        assert "synthesis" not in state
        assert generative_provider.prompts == []

    @pytest.mark.asyncio
    async def test_query_embedding_failure_propagates(self, sample_chunks, embedding_provider, generative_provider):
        chunks = await _embedded(sample_chunks, embedding_provider)
        embedding_provider.fail_queries = True
        graph = _graph(embedding_provider, generative_provider)

        with pytest.raises(EmbeddingError):
            await graph.ainvoke({"query": "refund policy", "chunks": chunks, "top_k": 2})

    @pytest.mark.asyncio
    async def test_keyword_fallback(self, sample_chunks, embedding_provider, generative_provider):
        chunks = await _embedded(sample_chunks, embedding_provider)
        embedding_provider.fail_queries = True
        graph = _graph(embedding_provider, generative_provider, keyword_fallback=True)

        state = await graph.ainvoke({"query": "refund policy", "chunks": chunks, "top_k": 1})

        assert state["strategy"] == "keyword"
        assert [c.chunk.id for c in state["final"]] == ["doc_chunk_0"]
        assert state["final"][0].similarity is None
