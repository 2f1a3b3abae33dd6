"""
Answer synthesis with citations, confidence and self-critique.

The final stage of a query: the reranked chunks go to the generative
provider as numbered context blocks, and the provider must answer from
that context only, in a fixed JSON shape:

    {
      "answer": "... [1] ... [2]",
      "confidence": 0.0-1.0,
      "citations": [{"number": 1, "text": "quote", "reasoning": "why"}],
      "selfCritique": "weaknesses of the answer"
    }

The response is parsed and validated against SynthesisPayload before
use. A response that cannot be parsed is a SynthesisError, never a
low-confidence guess. Citation markers are mapped back to chunks by
position ([1] → first chunk) to recover page and section metadata.

Usage:
    from hybrid_rag.generation.synthesis import AnswerSynthesizer

    synthesizer = AnswerSynthesizer(provider, SynthesisConfig())
    result = await synthesizer.synthesize("How long is the refund window?", chunks)
    print(result.answer, result.confidence)
"""

import asyncio
import json
import logging
import re
import time
from typing import Any

from pydantic import ValidationError

from hybrid_rag.base.providers import GenerativeProvider
from hybrid_rag.config import SynthesisConfig
from hybrid_rag.errors import SynthesisError
from hybrid_rag.generation.prompts import SYNTHESIS_PROMPT, industry_preamble
from hybrid_rag.models.document import Chunk
from hybrid_rag.models.result import Citation, SynthesisPayload, SynthesisResult

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def build_context(chunks: list[Chunk]) -> str:
    """
    Format chunks as numbered context blocks.

    Numbering lets the model cite specific pieces ("According to [1]...").
    Page and section are shown when known:
        [1] (Page 3, Section: Refunds)
        <chunk text>
    """
    blocks = []
    for number, chunk in enumerate(chunks, start=1):
        labels = []
        if chunk.metadata.page_number is not None:
            labels.append(f"Page {chunk.metadata.page_number}")
        if chunk.metadata.section_header:
            labels.append(f"Section: {chunk.metadata.section_header}")

        heading = f"[{number}] ({', '.join(labels)})" if labels else f"[{number}]"
        blocks.append(f"{heading}\n{chunk.content}")
    return "\n\n".join(blocks)


def extract_json_object(text: str, strict: bool = False) -> dict[str, Any]:
    """
    Pull the JSON object out of a model response.

    strict=True: the response (minus surrounding whitespace and an
    optional ```json fence) must be exactly one JSON object.
    strict=False: the first well-formed JSON object anywhere in the text
    is used, so a sentence of preamble before the JSON is tolerated.

    Raises:
        SynthesisError: If no JSON object can be extracted.
    """
    stripped = text.strip()
    fenced = _CODE_FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1)

    if strict:
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise SynthesisError("Response is not a JSON object", {"error": str(e)}) from e
        if not isinstance(parsed, dict):
            raise SynthesisError("Response is not a JSON object", {"type": type(parsed).__name__})
        return parsed

    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", stripped):
        try:
            parsed, _ = decoder.raw_decode(stripped, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise SynthesisError("Failed to parse response as JSON", {"response_start": stripped[:200]})


class AnswerSynthesizer:
    """
    Produces a cited answer from the final reranked chunks.

    One provider call per query, time-boxed by
    SynthesisConfig.timeout_seconds. There is no partial result: a
    timeout, a provider error or unparsable output all raise
    SynthesisError.
    """

    def __init__(self, provider: GenerativeProvider, config: SynthesisConfig = None):
        self._provider = provider
        self._config = config or SynthesisConfig()

    def build_prompt(self, query: str, chunks: list[Chunk]) -> str:
        return SYNTHESIS_PROMPT.format(
            preamble=industry_preamble(self._config.industry),
            query=query,
            context=build_context(chunks),
        )

    async def synthesize(self, query: str, chunks: list[Chunk]) -> SynthesisResult:
        """
        Generate an answer grounded in chunks.

        Args:
            query: The user's question.
            chunks: Final chunks, in rank order. Their position defines
                the citation numbers.

        Returns:
            SynthesisResult with answer, mapped citations, confidence and
            self-critique.

        Raises:
            ValueError: If chunks is empty.
            SynthesisError: On provider failure, timeout or bad output.
        """
        if not chunks:
            raise ValueError("synthesize() needs at least one chunk")

        prompt = self.build_prompt(query, chunks)
        start_time = time.perf_counter()

        try:
            response_text = await asyncio.wait_for(
                self._provider.generate(prompt),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise SynthesisError(
                f"Synthesis timed out after {self._config.timeout_seconds}s"
            ) from e
        except Exception as e:
            raise SynthesisError(f"Generative provider failed: {e}") from e

        result = self.parse_response(response_text, chunks)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Synthesized answer in %.0fms: confidence %.2f, %d citations",
            elapsed_ms, result.confidence, len(result.citations),
        )
        return result

    def parse_response(self, response_text: str, chunks: list[Chunk]) -> SynthesisResult:
        """Parse, validate and map a raw provider response."""
        raw = extract_json_object(response_text, strict=self._config.strict_json)

        try:
            payload = SynthesisPayload.model_validate(raw)
        except ValidationError as e:
            raise SynthesisError(
                "Response JSON does not match the expected shape",
                {"errors": e.errors(include_url=False)},
            ) from e

        return SynthesisResult(
            answer=payload.answer,
            citations=[self._map_citation(c.number, c.text, c.reasoning, chunks) for c in payload.citations],
            confidence=payload.confidence,
            self_critique=payload.self_critique,
        )

    def _map_citation(self, number: int, text: str, reasoning: str, chunks: list[Chunk]) -> Citation:
        # Markers are 1-based positions into the context blocks
        chunk = chunks[number - 1] if 1 <= number <= len(chunks) else None

        if chunk is None:
            logger.warning("Citation [%d] does not match any of %d context chunks", number, len(chunks))
            return Citation(
                text=text,
                chunk_id=f"unknown_{number}",
                confidence=self._config.unknown_chunk_confidence,
                marker=number,
                reasoning=reasoning,
            )

        return Citation(
            text=text,
            chunk_id=chunk.id,
            page_number=chunk.metadata.page_number,
            section_header=chunk.metadata.section_header,
            confidence=self._config.known_chunk_confidence,
            marker=number,
            reasoning=reasoning,
        )
