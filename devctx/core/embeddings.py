"""OpenAI embeddings generation with dimension validation.

The OpenAI client is built once on first use and shared by every request.
Model and output dimension are read per call from the ``Settings`` passed
in, falling back to the process settings.
"""

import asyncio
import threading
from functools import lru_cache

from openai import OpenAI

from devctx.core.config import Settings, load_settings
from devctx.core.errors import EmbeddingError
from devctx.core.logging import get_logger

logger = get_logger(__name__)

_client_lock = threading.Lock()


@lru_cache(maxsize=1)
def _create_client() -> OpenAI:
    settings = load_settings()
    return OpenAI(
        api_key=settings.OPENAI_API_KEY,
        timeout=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )


def _get_client() -> OpenAI:
    """Get OpenAI client instance (cached singleton)."""
    # Aspect queries embed from several worker threads at once
    with _client_lock:
        return _create_client()


def embed_texts(texts: list[str], settings: Settings | None = None) -> list[list[float]]:
    """
    Generate embeddings for a list of texts using OpenAI.

    Args:
        texts: List of non-empty text strings to embed
        settings: Settings supplying EMBEDDING_MODEL and EMBEDDING_DIM

    Returns:
        List of embedding vectors (each vector is list of floats)

    Raises:
        EmbeddingError: If a text is empty, the API call fails, or a
            vector does not match EMBEDDING_DIM
    """
    if not texts:
        return []

    if any(not text or not text.strip() for text in texts):
        raise EmbeddingError("Text cannot be empty")

    settings = settings or load_settings()
    client = _get_client()

    try:
        response = client.embeddings.create(
            model=settings.EMBEDDING_MODEL,
            input=texts,
            dimensions=settings.EMBEDDING_DIM,
        )
    except Exception as e:
        logger.error(f"Failed to generate embeddings: {e}")
        raise EmbeddingError(f"Failed to generate embedding: {e}") from e

    embeddings = []
    for i, embedding_obj in enumerate(response.data):
        embedding = list(embedding_obj.embedding or [])

        if len(embedding) != settings.EMBEDDING_DIM:
            raise EmbeddingError(
                f"Embedding dimension mismatch for text {i}: "
                f"expected {settings.EMBEDDING_DIM}, got {len(embedding)}"
            )

        embeddings.append(embedding)

    logger.debug(f"Generated {len(embeddings)} embeddings using {settings.EMBEDDING_MODEL}")

    return embeddings


def embed_text(text: str, settings: Settings | None = None) -> list[float]:
    """Generate the embedding for a single query text."""
    return embed_texts([text], settings=settings)[0]


async def embed_text_async(text: str, settings: Settings | None = None) -> list[float]:
    """Async wrapper around embed_text using thread pool."""
    return await asyncio.to_thread(embed_text, text, settings)
