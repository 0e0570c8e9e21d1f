"""
Pairwise prompt similarity with evidence.

Three signals are combined into one score:
- content: cosine similarity of prompt-text embeddings
- tags: Jaccard overlap of tag sets
- title: Jaccard overlap of tokenized titles

    score = max(0.7 × content + 0.2 × tags + 0.1 × title, content)
    score = max(score, 0.98) if titles normalize to the same text
    score = min(score, 1.0)

Tag and title agreement can only raise the score above raw content
similarity, and an exact title collision is treated as a near-certain
duplicate. Every result carries the shared tags, a sample of shared tokens
and the title-match flag that explain it.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .bm25.tokenizer import tokenize
from .embeddings.base import BaseEmbedder
from .embeddings.hashing import HashEmbedder, cosine_similarity
from .models import Prompt, validate_limit, validate_threshold

logger = logging.getLogger(__name__)

CONTENT_WEIGHT = 0.7
TAG_WEIGHT = 0.2
TITLE_WEIGHT = 0.1
TITLE_MATCH_FLOOR = 0.98
MAX_SHARED_TOKENS = 8

_NON_ALNUM_RE = re.compile(r'[^a-z0-9]+')


@dataclass
class SimilarityResult:
    """Candidate prompt with its similarity to a base prompt and the evidence"""
    prompt: Prompt
    score: float
    shared_tags: List[str]
    shared_tokens: List[str]
    title_match: bool


def build_prompt_text(prompt: Prompt) -> str:
    """Title, description, content and tags joined by newlines (empty fields skipped)."""
    parts = [prompt.title, prompt.description, prompt.content, " ".join(prompt.tags)]
    return "\n".join(part for part in parts if part)


def normalize_title(title: str) -> str:
    """
    Lowercase, collapse non-alphanumeric runs to one space, trim.

    Examples:
        >>> normalize_title("The Idea-Wizard!")
        'the idea wizard'
    """
    return _NON_ALNUM_RE.sub(' ', title.lower()).strip()


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """|A ∩ B| / |A ∪ B|; 0.0 when both are empty."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def intersection(a: Sequence[str], b: Sequence[str]) -> List[str]:
    """Items of a that are also in b, deduplicated, in a's order."""
    set_b = set(b)
    return list(dict.fromkeys(item for item in a if item in set_b))


class SimilarityEngine:
    """
    Scores prompt pairs using an injected embedder.

    Embeddings are cached per prompt id for the lifetime of the engine, so
    create a fresh engine (or call clear_cache) when prompt text changes.
    """

    def __init__(self, embedder: Optional[BaseEmbedder] = None):
        self.embedder = embedder or HashEmbedder()
        self._embeddings: Dict[str, np.ndarray] = {}

    def embedding_for(self, prompt: Prompt) -> np.ndarray:
        cached = self._embeddings.get(prompt.id)
        if cached is None:
            cached = self.embedder.embed(build_prompt_text(prompt))
            self._embeddings[prompt.id] = cached
        return cached

    def clear_cache(self) -> None:
        self._embeddings.clear()

    def analyze(self, base: Prompt, candidate: Prompt) -> SimilarityResult:
        """
        Score candidate against base.

        Returns:
            SimilarityResult for the candidate, score in [0, 1]
        """
        content_score = cosine_similarity(self.embedding_for(base), self.embedding_for(candidate))
        title_overlap = jaccard(tokenize(base.title), tokenize(candidate.title))
        tag_overlap = jaccard(base.tags, candidate.tags)

        shared_tags = intersection(base.tags, candidate.tags)
        shared_tokens = intersection(
            tokenize(build_prompt_text(base)),
            tokenize(build_prompt_text(candidate)),
        )[:MAX_SHARED_TOKENS]

        title_match = normalize_title(base.title) == normalize_title(candidate.title)

        score = content_score * CONTENT_WEIGHT + tag_overlap * TAG_WEIGHT + title_overlap * TITLE_WEIGHT
        score = max(score, content_score)
        if title_match:
            score = max(score, TITLE_MATCH_FLOOR)
        # Float noise on near-identical unit vectors can push cosine past 1
        score = min(max(score, 0.0), 1.0)

        return SimilarityResult(
            prompt=candidate,
            score=score,
            shared_tags=shared_tags,
            shared_tokens=shared_tokens,
            title_match=title_match,
        )

    def find_similar(
        self,
        prompt: Prompt,
        prompts: Sequence[Prompt],
        threshold: float = 0.35,
        max_similar: Optional[int] = 5,
    ) -> List[SimilarityResult]:
        """
        Neighbors of prompt at or above threshold, best first.

        The prompt itself (by id) is never its own neighbor.

        Raises:
            InvalidOptionError: If threshold is outside [0, 1] or max_similar is invalid
        """
        threshold = validate_threshold(threshold)
        cap = validate_limit(max_similar, "max_similar")

        results = [
            self.analyze(prompt, candidate)
            for candidate in prompts
            if candidate.id != prompt.id
        ]
        results = [result for result in results if result.score >= threshold]
        results.sort(key=lambda result: result.score, reverse=True)

        logger.debug(f"Similar to {prompt.id}: {len(results)} above {threshold}")
        return results if cap is None else results[:cap]


def analyze_similarity(
    base: Prompt,
    candidate: Prompt,
    engine: Optional[SimilarityEngine] = None,
) -> SimilarityResult:
    """One-off pairwise similarity (hash embeddings unless an engine is given)."""
    return (engine or SimilarityEngine()).analyze(base, candidate)
