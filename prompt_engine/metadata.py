"""
Deterministic metadata suggestions for a single prompt.

Pipeline:
1. Find similar prompts (SimilarityEngine, threshold + cap)
2. Tags: sum neighbor scores per tag the target lacks
3. Categories: sum neighbor scores per neighbor category
4. Descriptions: a summary of the target's own content, plus the best
   neighbor's description, deduplicated

Every suggestion carries the reason it was made.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .models import MetadataOptions, Prompt, PromptCategory
from .similarity import SimilarityEngine, SimilarityResult

logger = logging.getLogger(__name__)

SUMMARY_MAX_LENGTH = 140
# Cutting at a space earlier than this would leave a uselessly short summary
SUMMARY_MIN_WORD_BOUNDARY = 40

_WHITESPACE_RE = re.compile(r'\s+')


@dataclass
class TagSuggestion:
    tag: str
    score: float
    reasons: List[str]


@dataclass
class CategorySuggestion:
    category: PromptCategory
    score: float
    reasons: List[str]


@dataclass
class DescriptionSuggestion:
    description: str
    reason: str


@dataclass
class MetadataSuggestions:
    """All suggestions for one prompt plus the neighbors they came from"""
    prompt_id: str
    similar: List[SimilarityResult] = field(default_factory=list)
    tags: List[TagSuggestion] = field(default_factory=list)
    categories: List[CategorySuggestion] = field(default_factory=list)
    descriptions: List[DescriptionSuggestion] = field(default_factory=list)


def summarize_text(text: str, max_length: int = SUMMARY_MAX_LENGTH) -> Optional[str]:
    """
    Collapse whitespace and shorten to max_length at a word boundary.

    Returns None for blank text. Long text is cut at the last space within
    max_length (if that space is past SUMMARY_MIN_WORD_BOUNDARY, otherwise a
    hard cut) and ends with "...".

    Examples:
        >>> summarize_text("  short   text ")
        'short text'
    """
    trimmed = _WHITESPACE_RE.sub(' ', text).strip()
    if not trimmed:
        return None
    if len(trimmed) <= max_length:
        return trimmed

    truncated = trimmed[:max_length + 1]
    last_space = truncated.rfind(' ')
    if last_space > SUMMARY_MIN_WORD_BOUNDARY:
        return f"{truncated[:last_space]}..."
    return f"{trimmed[:max_length]}..."


def derive_description(prompt: Prompt, top_tags: Sequence[str]) -> Optional[str]:
    summary = summarize_text(prompt.content)
    if summary:
        return summary
    if top_tags:
        return f"{prompt.title} - {', '.join(top_tags[:3])}"
    return None


def _rank(scores: Dict, limit: int) -> List:
    # sorted() is stable: equal scores keep first-seen order
    return sorted(scores.items(), key=lambda item: item[1], reverse=True)[:limit]


def find_similar_prompts(
    prompt: Prompt,
    prompts: Sequence[Prompt],
    options: Optional[MetadataOptions] = None,
    engine: Optional[SimilarityEngine] = None,
) -> List[SimilarityResult]:
    """Neighbors of prompt using the metadata threshold and cap."""
    options = options or MetadataOptions()
    engine = engine or SimilarityEngine()
    return engine.find_similar(
        prompt,
        prompts,
        threshold=options.similarity_threshold,
        max_similar=options.max_similar,
    )


def suggest_metadata(
    prompt: Prompt,
    prompts: Sequence[Prompt],
    options: Optional[MetadataOptions] = None,
    engine: Optional[SimilarityEngine] = None,
) -> MetadataSuggestions:
    """
    Suggest tags, categories and descriptions for prompt from its neighbors.

    Args:
        prompt: Target prompt
        prompts: Full corpus (the target may be included; it is skipped)
        options: Caps and similarity threshold
        engine: Similarity engine (default: hash embeddings)

    Returns:
        MetadataSuggestions with reasons on every suggestion
    """
    options = options or MetadataOptions()
    similar = find_similar_prompts(prompt, prompts, options, engine)

    own_tags = set(prompt.tags)
    tag_scores: Dict[str, float] = defaultdict(float)
    category_scores: Dict[PromptCategory, float] = defaultdict(float)

    for item in similar:
        for tag in dict.fromkeys(item.prompt.tags):
            if tag not in own_tags:
                tag_scores[tag] += item.score
        category_scores[item.prompt.category] += item.score

    tags = [
        TagSuggestion(
            tag=tag,
            score=score,
            reasons=[f"Appears in {sum(1 for item in similar if tag in item.prompt.tags)} similar prompts"],
        )
        for tag, score in _rank(tag_scores, options.max_tag_suggestions)
    ]

    categories = [
        CategorySuggestion(
            category=category,
            score=score,
            reasons=[f"Matches {sum(1 for item in similar if item.prompt.category == category)} similar prompts"],
        )
        for category, score in _rank(category_scores, options.max_category_suggestions)
    ]

    candidates: List[DescriptionSuggestion] = []
    derived = derive_description(prompt, [t.tag for t in tags])
    if derived:
        candidates.append(DescriptionSuggestion(
            description=derived,
            reason="Derived from prompt content and top tags",
        ))

    if similar and similar[0].prompt.description:
        top = similar[0].prompt
        candidates.append(DescriptionSuggestion(
            description=top.description,
            reason=f'Matches description style from similar prompt "{top.title}"',
        ))

    descriptions: List[DescriptionSuggestion] = []
    seen = set()
    for candidate in candidates:
        if candidate.description in seen:
            continue
        seen.add(candidate.description)
        descriptions.append(candidate)

    logger.debug(
        f"Metadata for {prompt.id}: {len(similar)} similar, {len(tags)} tags, "
        f"{len(categories)} categories, {len(descriptions)} descriptions"
    )

    return MetadataSuggestions(
        prompt_id=prompt.id,
        similar=similar,
        tags=tags,
        categories=categories,
        descriptions=descriptions[:options.max_description_suggestions],
    )
