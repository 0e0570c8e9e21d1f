"""
Fallback policy for optional embedding backends.

FallbackEmbedder wraps a primary embedder (typically a neural model) and a
fallback (the hash embedder). Every primary call runs on a worker thread and
is waited on with a timeout; on timeout or any error the fallback result is
returned instead, so callers never block indefinitely and never see the
backend's exceptions.

A primary that fails to load, or whose inference call times out, is disabled
until reset(), so at most one call waits out the timeout. Inference errors
that return promptly fall back for that text only.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Optional

import numpy as np

from .base import BaseEmbedder
from .hashing import HashEmbedder

logger = logging.getLogger(__name__)


class FallbackEmbedder(BaseEmbedder):
    """
    Primary embedder with a guaranteed fallback.

    Note: vectors from the two backends usually differ in length; comparing
    them yields 0.0 (see cosine_similarity), so a backend that flaps mid-run
    degrades similarity rather than failing.
    """

    def __init__(
        self,
        primary: BaseEmbedder,
        fallback: Optional[BaseEmbedder] = None,
        timeout_seconds: float = 30.0,
    ):
        """
        Args:
            primary: Preferred embedder (may be slow, missing or failing)
            fallback: Always-available embedder (default: HashEmbedder())
            timeout_seconds: Max wait for each primary load/embed call
        """
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")

        self.primary = primary
        self.fallback = fallback or HashEmbedder()
        self.timeout_seconds = timeout_seconds
        self.load_error: Optional[BaseException] = None
        self._loaded = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="embedder")

    @property
    def primary_available(self) -> bool:
        """True once the primary has loaded and has not been disabled."""
        return self._loaded and self.load_error is None

    def ensure_primary_loaded(self) -> bool:
        """
        Load the primary if needed (bounded by the timeout).

        Returns:
            True if the primary is usable, False if it is disabled
        """
        if self.load_error is not None:
            return False
        if self._loaded:
            return True

        future = self._executor.submit(self.primary.load)
        try:
            future.result(timeout=self.timeout_seconds)
        except FuturesTimeoutError:
            future.cancel()
            self.load_error = TimeoutError(f"Model loading timed out after {self.timeout_seconds}s")
            logger.warning(f"Failed to load primary embedder: {self.load_error}")
            logger.warning("Falling back to hash-based embeddings")
            return False
        except Exception as e:
            self.load_error = e
            logger.warning(f"Failed to load primary embedder: {e}")
            logger.warning("Falling back to hash-based embeddings")
            return False

        self._loaded = True
        return True

    def embed(self, text: str) -> np.ndarray:
        if not self.ensure_primary_loaded():
            return self.fallback.embed(text)

        future = self._executor.submit(self.primary.embed, text)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FuturesTimeoutError:
            future.cancel()
            self.load_error = TimeoutError(f"Embedding timed out after {self.timeout_seconds}s")
            logger.warning(f"{self.load_error}, disabling primary embedder until reset()")
        except Exception as e:
            logger.warning(f"Embedding generation failed, using hash fallback: {e}")

        return self.fallback.embed(text)

    async def warmup(self) -> bool:
        """
        Pre-load the primary backend (call during idle time).

        Returns:
            True if the primary is ready, False if it failed or timed out
        """
        if self.load_error is not None:
            return False
        if self._loaded:
            return True

        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(
                loop.run_in_executor(self._executor, self.primary.load),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            self.load_error = TimeoutError(f"Model loading timed out after {self.timeout_seconds}s")
            logger.warning(f"Primary embedder warmup failed: {self.load_error}")
            return False
        except Exception as e:
            self.load_error = e
            logger.warning(f"Primary embedder warmup failed: {e}")
            return False

        self._loaded = True
        return True

    def reset(self) -> None:
        """Forget a previous load failure or inference timeout so the primary is retried."""
        self.load_error = None
        self._loaded = False

    def get_model_info(self) -> dict:
        return {
            "name": self.primary.get_model_info().get("name"),
            "type": "fallback",
            "primary": self.primary.get_model_info(),
            "fallback": self.fallback.get_model_info(),
            "primary_available": self.primary_available,
            "load_error": str(self.load_error) if self.load_error else None,
        }

    def close(self):
        """Stop the worker thread and release both backends."""
        self._executor.shutdown(wait=False)
        self.primary.close()
        self.fallback.close()
