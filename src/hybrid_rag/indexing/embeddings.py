"""
Embedding model factory and the LangChain-backed EmbeddingProvider.

get_embedding_model() is the single place that maps provider strings to
LangChain classes. LangChainEmbeddingProvider adapts any LangChain
Embeddings object to the pipeline's async EmbeddingProvider contract.

Supported providers:
    openai       OpenAIEmbeddings, the default
    huggingface  HuggingFaceEmbeddings, runs locally ([huggingface] extra)
    cohere       CohereEmbeddings ([cohere] extra)

Usage:
    from hybrid_rag.indexing.embeddings import LangChainEmbeddingProvider
    from hybrid_rag.config import EmbeddingConfig

    provider = LangChainEmbeddingProvider.from_config(EmbeddingConfig())
    vector = await provider.embed_query("refund policy")
"""

from langchain_core.embeddings import Embeddings

from hybrid_rag.base.providers import EmbeddingProvider
from hybrid_rag.config import EmbeddingConfig

KNOWN_PROVIDERS = ("openai", "huggingface", "cohere")


def _missing_extra(provider: str, package: str) -> ImportError:
    return ImportError(
        f"The '{provider}' embedding provider needs {package}. "
        f"Install it with: pip install hybrid-rag[{provider}]"
    )


def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Build the LangChain Embeddings object named by config.provider.

    Integration packages are imported inside each branch: only OpenAI
    ships with the base install, the others come with an extra.

    Raises:
        ValueError: For a provider outside KNOWN_PROVIDERS.
        ImportError: When the provider's extra is not installed.
    """
    name = config.provider.lower()

    if name == "openai":
        from langchain_openai import OpenAIEmbeddings

        return OpenAIEmbeddings(model=config.model_name, **config.model_kwargs)

    if name == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError as e:
            raise _missing_extra(name, "langchain-huggingface") from e
        # Local sentence-transformers model; model_kwargs go to the model itself
        return HuggingFaceEmbeddings(model_name=config.model_name, model_kwargs=config.model_kwargs)

    if name == "cohere":
        try:
            from langchain_cohere import CohereEmbeddings
        except ImportError as e:
            raise _missing_extra(name, "langchain-cohere") from e
        return CohereEmbeddings(model=config.model_name, **config.model_kwargs)

    raise ValueError(
        f"Unknown embedding provider: '{config.provider}'. "
        f"Known providers: {', '.join(KNOWN_PROVIDERS)}. "
        f"Any other LangChain Embeddings object can be wrapped with "
        f"LangChainEmbeddingProvider directly."
    )


class LangChainEmbeddingProvider(EmbeddingProvider):
    """
    EmbeddingProvider over a LangChain Embeddings object.

    Uses the async methods (aembed_query / aembed_documents). LangChain
    runs the sync implementation in an executor for integrations that
    have no native async client, so every integration works here.
    """

    def __init__(self, embeddings: Embeddings):
        self._embeddings = embeddings

    @classmethod
    def from_config(cls, config: EmbeddingConfig) -> "LangChainEmbeddingProvider":
        return cls(get_embedding_model(config))

    async def embed_query(self, text: str) -> list[float]:
        return await self._embeddings.aembed_query(text)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return await self._embeddings.aembed_documents(texts)
