"""
Generation: cited answer synthesis over the final chunks.

Usage:
    from hybrid_rag.generation import AnswerSynthesizer, LangChainGenerativeProvider
"""

from .llm import LangChainGenerativeProvider
from .prompts import INDUSTRY_PROMPTS, SYNTHESIS_PROMPT, IndustryPrompt, industry_preamble
from .synthesis import AnswerSynthesizer, build_context, extract_json_object

__all__ = [
    "AnswerSynthesizer",
    "LangChainGenerativeProvider",
    "INDUSTRY_PROMPTS",
    "SYNTHESIS_PROMPT",
    "IndustryPrompt",
    "industry_preamble",
    "build_context",
    "extract_json_object",
]
