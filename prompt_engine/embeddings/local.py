"""
Local neural embedder using sentence-transformers.

Optional backend: sentence-transformers is only imported on first use, so the
engine works without it installed. Wrap it in FallbackEmbedder so a missing
package, a failed download or a slow load degrades to hash embeddings.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import numpy as np

from .base import BaseEmbedder

logger = logging.getLogger(__name__)


def default_model_cache_path() -> Path:
    """
    Model cache directory following XDG conventions.

    XDG_CACHE_HOME/prompt-engine/models, else LOCALAPPDATA on Windows,
    else ~/.cache/prompt-engine/models.
    """
    if os.getenv("XDG_CACHE_HOME"):
        return Path(os.environ["XDG_CACHE_HOME"]) / "prompt-engine" / "models"
    if os.getenv("LOCALAPPDATA"):
        return Path(os.environ["LOCALAPPDATA"]) / "prompt-engine" / "models"
    return Path.home() / ".cache" / "prompt-engine" / "models"


class LocalSentenceTransformerEmbedder(BaseEmbedder):
    """
    Local embedder using sentence-transformers.

    Supports any HuggingFace sentence embedding model.
    Model loads once and stays in memory for fast inference.
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        cache_folder: Optional[Path] = None,
    ):
        """
        Initialize local embedder.

        Args:
            model_name: HuggingFace model identifier
                - 'sentence-transformers/all-MiniLM-L6-v2' (90MB, 384 dims, fast)
                - 'BAAI/bge-small-en-v1.5' (130MB, 384 dims, better quality)
            cache_folder: Where to keep downloaded weights (default: XDG cache)
        """
        self.model_name = model_name
        self.cache_folder = Path(cache_folder) if cache_folder else default_model_cache_path()
        self.model = None  # Lazy loading
        logger.info(f"LocalSentenceTransformerEmbedder initialized (model will load on first use): {model_name}")

    def load(self) -> None:
        """Lazy load model on first use (avoid startup overhead)"""
        if self.model is None:
            logger.info(f"Loading embedding model: {self.model_name}")
            try:
                from sentence_transformers import SentenceTransformer
                self.model = SentenceTransformer(self.model_name, cache_folder=str(self.cache_folder))
                logger.info(f"Model loaded successfully: {self.model_name}")
            except Exception as e:
                logger.error(f"Failed to load model {self.model_name}: {e}")
                raise

    def embed(self, text: str) -> np.ndarray:
        """Mean-pooled, L2-normalized sentence embedding."""
        self.load()
        vector = self.model.encode(text, normalize_embeddings=True, show_progress_bar=False)
        return np.asarray(vector, dtype=np.float64)

    def get_model_info(self) -> dict:
        """Get model metadata."""
        info = {
            "name": self.model_name,
            "type": "local_sentence_transformer",
            "provider": "sentence-transformers",
            "loaded": self.model is not None,
        }
        if self.model is not None:
            info["dimensions"] = self.model.get_sentence_embedding_dimension()
        return info

    def close(self):
        """Free model memory."""
        if self.model is not None:
            logger.info(f"Closing model: {self.model_name}")
            del self.model
            self.model = None
