"""
Shared utility functions.

Helpers used across the pipeline: LLM factory, text cleaning, log previews.
"""

from langchain_core.language_models.chat_models import BaseChatModel

from hybrid_rag.config import LLMConfig, LLMProvider


def get_llm(config: LLMConfig) -> BaseChatModel:
    """
    Build the LangChain chat model selected by config.provider.

    Provider packages are imported per branch, like the embedding
    factory. Callers: generation/llm.py for synthesis and
    indexing/tokens.py for exact token counts.

    Raises:
        ValueError: For a provider outside LLMProvider.
    """
    if config.provider == LLMProvider.OPENAI:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    elif config.provider == LLMProvider.ANTHROPIC:
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    else:
        raise ValueError(
            f"Unknown LLM provider: '{config.provider}'. "
            f"Expected one of: {', '.join(p.value for p in LLMProvider)}."
        )


def replace_t_with_space(text: str) -> str:
    """
    Replace tab characters with spaces.

    Useful for OCR output and PDF-extracted text that often has stray
    tabs. Length is preserved, so character offsets and page markers
    computed on the original text stay valid.
    """
    return text.replace("\t", " ")


def preview(text: str, limit: int = 100) -> str:
    """First `limit` characters of text on one line, for log messages."""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[:limit] + "..."
