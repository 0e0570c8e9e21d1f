"""
Corpus-wide near-duplicate detection.

Every unordered pair is scored with the SimilarityEngine, so the scan is
O(n²) in corpus size. That is fine for prompt libraries of a few hundred
entries; larger corpora would need blocking (e.g. by shared tokens) first.

A pair is reported when its score reaches min_score, or whenever the titles
normalize to the same text, regardless of score.
"""

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import List, Optional, Sequence

from .models import DuplicateOptions, Prompt
from .similarity import SimilarityEngine

logger = logging.getLogger(__name__)


@dataclass
class DuplicateCandidate:
    """Unordered pair of likely duplicates with the evidence"""
    prompt_a: Prompt
    prompt_b: Prompt
    score: float
    reasons: List[str]
    shared_tags: List[str]
    shared_tokens: List[str]
    title_match: bool


def find_duplicates(
    prompts: Sequence[Prompt],
    options: Optional[DuplicateOptions] = None,
    engine: Optional[SimilarityEngine] = None,
) -> List[DuplicateCandidate]:
    """
    Find likely duplicate pairs.

    Args:
        prompts: Full corpus
        options: min_score threshold and max_pairs cap
        engine: Similarity engine (default: hash embeddings)

    Returns:
        Candidates sorted by score (descending), at most max_pairs
    """
    options = options or DuplicateOptions()
    engine = engine or SimilarityEngine()
    results: List[DuplicateCandidate] = []

    for a, b in combinations(prompts, 2):
        similarity = engine.analyze(a, b)

        if similarity.score < options.min_score and not similarity.title_match:
            continue

        reasons: List[str] = []
        if similarity.title_match:
            reasons.append("Titles normalize to the same text")
        if similarity.shared_tags:
            reasons.append(f"Shared tags: {', '.join(similarity.shared_tags[:3])}")
        if similarity.shared_tokens:
            reasons.append(f"Shared tokens: {', '.join(similarity.shared_tokens[:5])}")

        results.append(DuplicateCandidate(
            prompt_a=a,
            prompt_b=b,
            score=similarity.score,
            reasons=reasons,
            shared_tags=similarity.shared_tags,
            shared_tokens=similarity.shared_tokens,
            title_match=similarity.title_match,
        ))

    results.sort(key=lambda candidate: candidate.score, reverse=True)
    logger.debug(f"Duplicate scan over {len(prompts)} prompts: {len(results)} candidates")
    return results[:options.max_pairs]
