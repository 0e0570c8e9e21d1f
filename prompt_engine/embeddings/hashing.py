"""
Hash-based embeddings: deterministic, fast, no model or network.

Locality-sensitive hashing over character 3-grams:
- Each 3-gram is hashed with 32-bit FNV-1a
- 3 hash rounds per gram: bucket = (hash × round) mod dims,
  +1 or -1 depending on bit `round - 1` of the hash
- Each whole token adds +2 to bucket (hash mod dims), so token identity
  outweighs n-gram noise
- Result is L2-normalized (empty text stays the zero vector)

Less accurate than neural embeddings, but identical text always gives a
bit-identical vector, which makes it the always-available baseline.
"""

import logging

import numpy as np

from ..bm25.tokenizer import tokenize
from ..models import InvalidOptionError
from .base import BaseEmbedder

logger = logging.getLogger(__name__)

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
UINT32_MASK = 0xFFFFFFFF

NGRAM_SIZE = 3
HASH_ROUNDS = 3
TOKEN_WEIGHT = 2.0


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash of the text's code points."""
    value = FNV_OFFSET_BASIS
    for char in text:
        value ^= ord(char)
        value = (value * FNV_PRIME) & UINT32_MASK
    return value


def hash_embedding(text: str, dimensions: int = 128) -> np.ndarray:
    """
    Embed text without any model.

    Args:
        text: Text to embed (tokenized with stopword removal)
        dimensions: Vector length

    Returns:
        Unit-length float64 vector, or the zero vector if text has no tokens

    Raises:
        InvalidOptionError: If dimensions is not positive

    Examples:
        >>> v = hash_embedding("code review checklist")
        >>> v.shape
        (128,)
        >>> round(float(np.linalg.norm(v)), 6)
        1.0
    """
    if dimensions <= 0:
        raise InvalidOptionError(f"dimensions must be positive, got {dimensions}")

    vector = np.zeros(dimensions, dtype=np.float64)

    for token in tokenize(text):
        for i in range(len(token) - NGRAM_SIZE + 1):
            gram_hash = fnv1a_32(token[i:i + NGRAM_SIZE])
            for h in range(HASH_ROUNDS):
                idx = ((gram_hash * (h + 1)) & UINT32_MASK) % dimensions
                vector[idx] += 1.0 if (gram_hash >> h) & 1 else -1.0

        vector[fnv1a_32(token) % dimensions] += TOKEN_WEIGHT

    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity of two unit vectors (plain dot product).

    Mismatched lengths (e.g. a 384-dim neural vector against a 128-dim hash
    vector) are not an error: a warning is logged and 0.0 returned.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if a.shape != b.shape:
        logger.warning(
            f"Cosine similarity dimension mismatch: {a.shape[0] if a.ndim else 0} "
            f"vs {b.shape[0] if b.ndim else 0}. Returning 0."
        )
        return 0.0

    return float(np.dot(a, b))


class HashEmbedder(BaseEmbedder):
    """
    BaseEmbedder over hash_embedding.

    Stateless and thread-safe; the default everywhere an embedder is optional.
    """

    def __init__(self, dimensions: int = 128):
        if dimensions <= 0:
            raise InvalidOptionError(f"dimensions must be positive, got {dimensions}")
        self.dimensions = dimensions

    def embed(self, text: str) -> np.ndarray:
        return hash_embedding(text, self.dimensions)

    def get_model_info(self) -> dict:
        return {
            "name": "fnv1a-lsh",
            "type": "hash",
            "dimensions": self.dimensions,
        }
