"""
Abstract base class for embedding implementations.

All embedders must implement this interface to be swappable. The similarity
and search code depend only on this interface.
"""

from abc import ABC, abstractmethod

import numpy as np


class BaseEmbedder(ABC):
    """
    Abstract base class for embedding implementations.

    Embeddings are unit-normalized, so a dot product is the cosine similarity.
    """

    @abstractmethod
    def embed(self, text: str) -> np.ndarray:
        """
        Embed a single text.

        Args:
            text: Text to embed

        Returns:
            1-D float array, L2-normalized (or all zeros for empty text)
        """
        pass

    @abstractmethod
    def get_model_info(self) -> dict:
        """
        Get information about the embedding model.

        Returns:
            Dict with keys: name, type, dimensions (when known)
        """
        pass

    def load(self) -> None:
        """Optional eager load (download weights, warm caches)"""
        pass

    def close(self):
        """Optional cleanup (free model memory, stop workers, etc.)"""
        pass
