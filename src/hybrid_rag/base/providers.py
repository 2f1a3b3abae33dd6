"""
Abstract base classes for the two external collaborators.

The pipeline only needs two things from the outside world:
    - an EmbeddingProvider: text → fixed-length float vector
    - a GenerativeProvider: prompt → text

Keeping them behind these narrow interfaces means the ranking and
synthesis logic never touches a vendor client directly, and tests can
swap in deterministic fakes. The LangChain-backed implementations live
in indexing/embeddings.py and generation/llm.py.

Both are async: provider calls are the only suspension points in the
pipeline.
"""

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """
    Contract for embedding providers.

    Vectors must have the same length for every call made through one
    provider instance (fixed per deployment).
    """

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query string."""
        ...

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """
        Embed a batch of texts.

        Returns one vector per input text, in input order.
        """
        ...


class GenerativeProvider(ABC):
    """Contract for generative answer providers."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the response text.

        Raises whatever the underlying client raises; the synthesizer
        wraps it into a SynthesisError.
        """
        ...
