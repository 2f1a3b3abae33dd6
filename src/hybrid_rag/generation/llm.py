"""
LangChain-backed GenerativeProvider.

Adapts a LangChain chat model to the pipeline's async
GenerativeProvider contract. The chat model comes from get_llm() so the
provider (OpenAI / Anthropic) is a config choice.

Usage:
    from hybrid_rag.generation.llm import LangChainGenerativeProvider
    from hybrid_rag.config import LLMConfig

    provider = LangChainGenerativeProvider.from_config(LLMConfig())
    text = await provider.generate("Say hi")
"""

from langchain_core.language_models.chat_models import BaseChatModel

from hybrid_rag.base.providers import GenerativeProvider
from hybrid_rag.config import LLMConfig
from hybrid_rag.utils.helpers import get_llm


class LangChainGenerativeProvider(GenerativeProvider):
    """GenerativeProvider over a LangChain BaseChatModel."""

    def __init__(self, llm: BaseChatModel):
        self._llm = llm

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LangChainGenerativeProvider":
        return cls(get_llm(config))

    async def generate(self, prompt: str) -> str:
        response = await self._llm.ainvoke(prompt)

        # Chat models return an AIMessage. Anthropic content can be a list
        # of content blocks; keep only the text ones.
        content = response.content if hasattr(response, "content") else response
        if isinstance(content, list):
            parts = []
            for block in content:
                if isinstance(block, str):
                    parts.append(block)
                elif isinstance(block, dict) and block.get("type") == "text":
                    parts.append(block.get("text", ""))
            return "".join(parts)
        return str(content)
