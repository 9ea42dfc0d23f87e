"""Embedding helpers using OpenAI text-embedding-3-small."""

from __future__ import annotations

from openai import OpenAI

from agentic_rag.config import settings


def embed_texts(texts: list[str], model: str | None = None) -> list[list[float]]:
    """Embed a list of texts using the OpenAI embeddings API.

    Args:
        texts: Strings to embed.
        model: OpenAI embedding model name; defaults to ``settings.embedding_model``.

    Returns:
        A list of embedding vectors (one per input text), each
        ``settings.embedding_dimensions`` long.
    """
    client = OpenAI(api_key=settings.openai_api_key)
    response = client.embeddings.create(
        input=texts,
        model=model or settings.embedding_model,
        dimensions=settings.embedding_dimensions,
    )
    return [item.embedding for item in response.data]


def generate_embedding(text: str) -> list[float]:
    """Generate an embedding vector for a single query string."""
    return embed_texts([text])[0]
