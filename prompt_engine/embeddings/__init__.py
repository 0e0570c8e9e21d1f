"""
Embedding backends for similarity and reranking.

Usage:
    # Get embedder (auto-configured from env):
    from prompt_engine.embeddings import get_embedder

    embedder = get_embedder()
    vector = embedder.embed("code review checklist")

    # Or create a specific implementation:
    from prompt_engine.embeddings import FallbackEmbedder, LocalSentenceTransformerEmbedder

    embedder = FallbackEmbedder(LocalSentenceTransformerEmbedder(), timeout_seconds=10)
"""

from typing import Optional

from ..config import EngineSettings
from .base import BaseEmbedder
from .hashing import HashEmbedder, hash_embedding, cosine_similarity, fnv1a_32
from .local import LocalSentenceTransformerEmbedder
from .fallback import FallbackEmbedder
from .factory import EmbedderFactory


def get_embedder(settings: Optional[EngineSettings] = None, force_reload: bool = False) -> BaseEmbedder:
    """
    Get configured embedder instance (factory convenience function).

    Falls back to hash embeddings when EMBEDDER_TYPE is unset.
    """
    return EmbedderFactory.create(settings=settings, force_reload=force_reload)


__all__ = [
    'BaseEmbedder',
    'HashEmbedder',
    'LocalSentenceTransformerEmbedder',
    'FallbackEmbedder',
    'EmbedderFactory',
    'hash_embedding',
    'cosine_similarity',
    'fnv1a_32',
    'get_embedder',
]
