"""Tests for the LangChain-backed generative provider and the LLM factory — mocked."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage

from hybrid_rag.config import LLMConfig
from hybrid_rag.generation.llm import LangChainGenerativeProvider
from hybrid_rag.utils.helpers import get_llm


def _llm_returning(message):
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=message)
    return llm


class TestLangChainGenerativeProvider:

    @pytest.mark.asyncio
    async def test_string_content(self):
        llm = _llm_returning(AIMessage(content='{"answer": "x"}'))
        text = await LangChainGenerativeProvider(llm).generate("prompt")

        assert text == '{"answer": "x"}'
        llm.ainvoke.assert_awaited_once_with("prompt")

    @pytest.mark.asyncio
    async def test_content_blocks(self):
        message = AIMessage(content=[
            {"type": "text", "text": '{"answer": '},
            {"type": "tool_use", "id": "t1", "name": "noop", "input": {}},
            {"type": "text", "text": '"x"}'},
        ])
        text = await LangChainGenerativeProvider(_llm_returning(message)).generate("prompt")
        assert text == '{"answer": "x"}'

    @patch("hybrid_rag.generation.llm.get_llm")
    def test_from_config(self, mock_get_llm):
        config = LLMConfig(provider="openai", model_name="gpt-4o")
        provider = LangChainGenerativeProvider.from_config(config)

        mock_get_llm.assert_called_once_with(config)
        assert provider._llm is mock_get_llm.return_value


class TestGetLLM:

    @patch("langchain_openai.ChatOpenAI")
    def test_openai(self, mock_cls):
        get_llm(LLMConfig(provider="openai", model_name="gpt-4o", max_tokens=100))
        mock_cls.assert_called_once_with(model="gpt-4o", temperature=0.0, max_tokens=100)

    @patch("langchain_anthropic.ChatAnthropic")
    def test_anthropic(self, mock_cls):
        get_llm(LLMConfig(provider="anthropic", model_name="claude-3-5-sonnet-20241022"))
        mock_cls.assert_called_once_with(
            model="claude-3-5-sonnet-20241022", temperature=0.0, max_tokens=4000,
        )
