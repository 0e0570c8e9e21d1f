"""Unit test configuration - isolation for cached singletons and logging"""

import logging

import numpy as np
import pytest

from prompt_engine.embeddings.base import BaseEmbedder
from prompt_engine.embeddings.factory import EmbedderFactory


class FixedEmbedder(BaseEmbedder):
    """
    Test double: looks vectors up by the first line of the text (the title).

    Unknown titles map to the zero vector. Counts embed calls per title.
    """

    def __init__(self, vectors):
        self.vectors = {k: np.asarray(v, dtype=np.float64) for k, v in vectors.items()}
        self.calls = {}

    def embed(self, text):
        key = text.split("\n", 1)[0]
        self.calls[key] = self.calls.get(key, 0) + 1
        dims = len(next(iter(self.vectors.values()))) if self.vectors else 2
        return self.vectors.get(key, np.zeros(dims))

    def get_model_info(self):
        return {"name": "fixed", "type": "test"}


@pytest.fixture
def fixed_embedder():
    """Factory fixture: fixed_embedder({"Title": [..]})"""
    return FixedEmbedder


@pytest.fixture(autouse=True)
def reset_embedder_factory():
    """Each test gets a fresh EmbedderFactory cache"""
    EmbedderFactory._instance = None
    yield
    EmbedderFactory.cleanup()


@pytest.fixture
def clean_package_logger():
    """Remove handlers added by setup_logging so file handles don't leak between tests"""
    yield logging.getLogger("prompt_engine")
    package_logger = logging.getLogger("prompt_engine")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
