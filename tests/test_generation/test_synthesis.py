"""Tests for answer synthesis — fake generative provider, no API calls."""

import asyncio

import pytest

from conftest import FakeGenerativeProvider, make_chunk, synthesis_json
from hybrid_rag.config import SynthesisConfig
from hybrid_rag.errors import SynthesisError
from hybrid_rag.generation.synthesis import AnswerSynthesizer, build_context, extract_json_object


class FailingProvider(FakeGenerativeProvider):

    async def generate(self, prompt):
        raise RuntimeError("rate limited")


class SlowProvider(FakeGenerativeProvider):

    async def generate(self, prompt):
        await asyncio.sleep(1)
        return self.response


class TestBuildContext:

    def test_numbered_blocks_with_metadata(self, sample_chunks):
        context = build_context(sample_chunks[:2])
        assert context == (
            "[1] (Page 1, Section: Refunds)\n"
            "The refund policy allows returns within 30 days of purchase.\n\n"
            "[2] (Page 2, Section: Pricing)\n"
            "Standard plan pricing is fifty dollars per month."
        )

    def test_partial_metadata(self):
        assert build_context([make_chunk("text", page=4)]) == "[1] (Page 4)\ntext"
        assert build_context([make_chunk("text", section="Terms")]) == "[1] (Section: Terms)\ntext"

    def test_no_metadata(self):
        assert build_context([make_chunk("text")]) == "[1]\ntext"


class TestExtractJsonObject:

    def test_clean_json(self):
        assert extract_json_object('{"answer": "x"}') == {"answer": "x"}

    def test_prose_wrapped_json_in_lenient_mode(self):
        text = 'Here is my analysis:\n{"answer": "x", "citations": [{"number": 1}]}\nHope this helps.'
        assert extract_json_object(text) == {"answer": "x", "citations": [{"number": 1}]}

    def test_skips_braces_that_are_not_json(self):
        text = 'Using {placeholder} notation. {"answer": "x"}'
        assert extract_json_object(text) == {"answer": "x"}

    def test_code_fence(self):
        text = '```json\n{"answer": "x"}\n```'
        assert extract_json_object(text, strict=True) == {"answer": "x"}

    def test_strict_mode_rejects_prose(self):
        with pytest.raises(SynthesisError, match="not a JSON object"):
            extract_json_object('Sure! {"answer": "x"}', strict=True)

    def test_strict_mode_rejects_array(self):
        with pytest.raises(SynthesisError, match="not a JSON object"):
            extract_json_object('[{"answer": "x"}]', strict=True)

    def test_no_json_at_all(self):
        with pytest.raises(SynthesisError, match="Failed to parse"):
            extract_json_object("I cannot answer that.")


class TestAnswerSynthesizer:

    @pytest.mark.asyncio
    async def test_clean_response(self, sample_chunks, generative_provider):
        result = await AnswerSynthesizer(generative_provider).synthesize("refund window?", sample_chunks)

        assert result.answer == "The refund window is 30 days [1]."
        assert result.confidence == 0.85
        assert result.self_critique == "Single source."
        assert len(result.citations) == 1

    @pytest.mark.asyncio
    async def test_citation_mapped_to_chunk(self, sample_chunks, generative_provider):
        result = await AnswerSynthesizer(generative_provider).synthesize("refund window?", sample_chunks)
        citation = result.citations[0]

        assert citation.chunk_id == "doc_chunk_0"
        assert citation.page_number == 1
        assert citation.section_header == "Refunds"
        assert citation.confidence == 0.9
        assert citation.marker == 1
        assert citation.text == "returns within 30 days"
        assert citation.reasoning == "States the window"

    @pytest.mark.asyncio
    async def test_unknown_citation_marker(self, sample_chunks):
        provider = FakeGenerativeProvider(synthesis_json(
            answer="See [9].",
            citations=[{"number": 9, "text": "quote", "reasoning": "why"}],
        ))
        result = await AnswerSynthesizer(provider).synthesize("q", sample_chunks[:2])
        citation = result.citations[0]

        assert citation.chunk_id == "unknown_9"
        assert citation.confidence == 0.5
        assert citation.page_number is None
        assert citation.marker == 9

    @pytest.mark.asyncio
    async def test_zero_marker_is_unknown(self, sample_chunks):
        provider = FakeGenerativeProvider(synthesis_json(citations=[{"number": 0}]))
        result = await AnswerSynthesizer(provider).synthesize("q", sample_chunks)
        assert result.citations[0].chunk_id == "unknown_0"

    @pytest.mark.asyncio
    async def test_prose_wrapped_response(self, sample_chunks):
        provider = FakeGenerativeProvider("Sure, here you go:\n" + synthesis_json() + "\nLet me know.")
        result = await AnswerSynthesizer(provider).synthesize("q", sample_chunks)
        assert result.answer == "The refund window is 30 days [1]."

    @pytest.mark.asyncio
    async def test_prose_wrapped_response_rejected_in_strict_mode(self, sample_chunks):
        provider = FakeGenerativeProvider("Sure, here you go:\n" + synthesis_json())
        synthesizer = AnswerSynthesizer(provider, SynthesisConfig(strict_json=True))
        with pytest.raises(SynthesisError):
            await synthesizer.synthesize("q", sample_chunks)

    @pytest.mark.asyncio
    async def test_missing_optional_fields_use_defaults(self, sample_chunks):
        provider = FakeGenerativeProvider('{"answer": "Thirty days [1]."}')
        result = await AnswerSynthesizer(provider).synthesize("q", sample_chunks)

        assert result.confidence == 0.5
        assert result.citations == []
        assert result.self_critique == "No self-critique provided"

    @pytest.mark.asyncio
    async def test_unparsable_response(self, sample_chunks):
        provider = FakeGenerativeProvider("I think it is thirty days.")
        with pytest.raises(SynthesisError, match="Failed to parse"):
            await AnswerSynthesizer(provider).synthesize("q", sample_chunks)

    @pytest.mark.asyncio
    async def test_wrong_shape_rejected(self, sample_chunks):
        provider = FakeGenerativeProvider('{"confidence": 0.9}')
        with pytest.raises(SynthesisError, match="expected shape"):
            await AnswerSynthesizer(provider).synthesize("q", sample_chunks)

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self, sample_chunks):
        with pytest.raises(SynthesisError, match="rate limited") as exc_info:
            await AnswerSynthesizer(FailingProvider()).synthesize("q", sample_chunks)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_timeout(self, sample_chunks):
        synthesizer = AnswerSynthesizer(SlowProvider(), SynthesisConfig(timeout_seconds=0.01))
        with pytest.raises(SynthesisError, match="timed out"):
            await synthesizer.synthesize("q", sample_chunks)

    @pytest.mark.asyncio
    async def test_requires_chunks(self, generative_provider):
        with pytest.raises(ValueError):
            await AnswerSynthesizer(generative_provider).synthesize("q", [])

    @pytest.mark.asyncio
    async def test_prompt_contents(self, sample_chunks, generative_provider):
        await AnswerSynthesizer(generative_provider).synthesize("How long is the refund window?", sample_chunks)
        prompt = generative_provider.prompts[0]

        assert "QUERY: How long is the refund window?" in prompt
        assert "[1] (Page 1, Section: Refunds)" in prompt
        assert '"selfCritique"' in prompt
        assert prompt.startswith("You are a precise document analysis AI.")

    def test_industry_preamble_in_prompt(self, sample_chunks, generative_provider):
        synthesizer = AnswerSynthesizer(generative_provider, SynthesisConfig(industry="legal"))
        prompt = synthesizer.build_prompt("q", sample_chunks)

        assert prompt.startswith("You are a legal document analysis expert")
        assert "Pay particular attention to: parties" in prompt
