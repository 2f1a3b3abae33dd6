"""
Token counting for chunk sizing.

The chunker sizes chunks in tokens but should not care which tokenizer
produced the number. It depends on the TokenCounter protocol only:

    HeuristicTokenCounter   ceil(len(text) / chars_per_token). Fast,
                            no dependencies, the default.
    LLMTokenCounter         Exact count from a LangChain language model
                            (get_num_tokens). Falls back to the heuristic
                            when the model cannot count.

Usage:
    from hybrid_rag.indexing.tokens import get_token_counter

    counter = get_token_counter(ChunkingConfig())
    counter.count("some text")   # → 3
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol

from langchain_core.language_models import BaseLanguageModel

from hybrid_rag.config import ChunkingConfig, LLMConfig, TokenCounterType

logger = logging.getLogger(__name__)


class TokenCounter(Protocol):
    """Minimal interface for token-based sizing."""

    def count(self, text: str) -> int:
        """Return the number of tokens in text."""
        ...


@dataclass(frozen=True)
class HeuristicTokenCounter:
    """Approximate token counter: one token per chars_per_token characters, rounded up."""

    chars_per_token: int = 4

    def count(self, text: str) -> int:
        return math.ceil(len(text) / self.chars_per_token)


class LLMTokenCounter:
    """
    Exact token counts from the model that will read the chunks.

    get_num_tokens may need a tokenizer download or an API round trip
    depending on the provider, and some providers do not implement it
    at all. Any failure drops to the heuristic for that call so chunking
    never fails on a counting problem.
    """

    def __init__(self, llm: BaseLanguageModel, fallback: Optional[HeuristicTokenCounter] = None):
        self._llm = llm
        self._fallback = fallback or HeuristicTokenCounter()

    def count(self, text: str) -> int:
        try:
            return self._llm.get_num_tokens(text)
        except Exception as e:
            logger.warning("Token counting failed, using estimation: %s", e)
            return self._fallback.count(text)


def get_token_counter(
    config: ChunkingConfig,
    llm_config: Optional[LLMConfig] = None,
) -> TokenCounter:
    """
    Factory that returns the token counter selected by config.token_counter.

    Args:
        config: ChunkingConfig with token_counter and chars_per_token.
        llm_config: Model to count with when token_counter is 'llm'.

    Returns:
        A TokenCounter implementation.
    """
    heuristic = HeuristicTokenCounter(chars_per_token=config.chars_per_token)

    if config.token_counter == TokenCounterType.HEURISTIC:
        return heuristic

    elif config.token_counter == TokenCounterType.LLM:
        from hybrid_rag.utils.helpers import get_llm

        return LLMTokenCounter(get_llm(llm_config or LLMConfig()), fallback=heuristic)

    else:
        raise ValueError(
            f"Unknown token counter: '{config.token_counter}'. "
            f"Supported: 'heuristic', 'llm'."
        )
