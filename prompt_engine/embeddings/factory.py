"""
Factory to create embedder instances based on configuration.
"""

from typing import Optional
import logging

from ..config import EngineSettings
from .base import BaseEmbedder
from .fallback import FallbackEmbedder
from .hashing import HashEmbedder
from .local import LocalSentenceTransformerEmbedder

logger = logging.getLogger(__name__)


class EmbedderFactory:
    """Factory to create embedder instances based on configuration."""

    _instance: Optional[BaseEmbedder] = None  # Singleton cache

    @classmethod
    def create(
        cls,
        settings: Optional[EngineSettings] = None,
        force_reload: bool = False,
    ) -> BaseEmbedder:
        """
        Create embedder based on settings (default: EngineSettings.from_env()).

        Supported types:
            - hash: deterministic hash embeddings (default, no dependencies)
            - local: sentence-transformers model behind FallbackEmbedder,
              degrading to hash embeddings on load/inference failure

        Args:
            settings: Resolved settings; read from the environment when omitted
            force_reload: If True, recreate instance even if cached

        Returns:
            Embedder instance
        """
        # Return cached instance
        if cls._instance is not None and not force_reload:
            logger.debug(f"Returning cached embedder instance: {cls._instance}")
            return cls._instance

        settings = settings or EngineSettings.from_env()
        embedder_type = settings.embedder_type

        if embedder_type == "hash":
            logger.info(f"Creating hash embedder ({settings.hash_dimensions} dims)")
            instance: BaseEmbedder = HashEmbedder(dimensions=settings.hash_dimensions)

        elif embedder_type == "local":
            logger.info(f"Creating local embedder with hash fallback: {settings.embedder_model}")
            instance = FallbackEmbedder(
                primary=LocalSentenceTransformerEmbedder(model_name=settings.embedder_model),
                fallback=HashEmbedder(dimensions=settings.hash_dimensions),
                timeout_seconds=settings.embedder_timeout_seconds,
            )

        else:
            raise ValueError(
                f"Unknown embedder type: {embedder_type}. "
                f"Valid options: hash, local"
            )

        cls._instance = instance
        return cls._instance

    @classmethod
    def cleanup(cls):
        """Cleanup cached embedder instance."""
        if cls._instance is not None:
            logger.info("Cleaning up embedder instance")
            cls._instance.close()
            cls._instance = None
