"""
BM25 index builder - per-prompt term frequencies plus corpus statistics.

Field weighting is baked into term frequency by repeating each field's text
before tokenizing:
    id x5, title x3, description x2, each tag x2, content x1

The index is a pure function of the corpus snapshot. There is no incremental
update; a changed corpus means building a new index.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from ..models import Prompt
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

ID_WEIGHT = 5
TITLE_WEIGHT = 3
DESCRIPTION_WEIGHT = 2
TAG_WEIGHT = 2
CONTENT_WEIGHT = 1


@dataclass(frozen=True)
class BM25Document:
    """Indexed view of one prompt"""
    id: str
    tokens: Tuple[str, ...]
    length: int
    term_freq: Mapping[str, int]


@dataclass(frozen=True)
class BM25Index:
    """Read-only BM25 statistics for one corpus snapshot"""
    documents: Mapping[str, BM25Document]
    avg_doc_length: float
    doc_count: int
    term_doc_freq: Mapping[str, int]


def build_weighted_text(prompt: Prompt) -> str:
    """
    Concatenate searchable fields, repeating each by its weight.

    Example:
        >>> p = Prompt(id="x", title="T", category="workflow", tags=["a"])
        >>> build_weighted_text(p).split(" ")[:5]
        ['x', 'x', 'x', 'x', 'x']
    """
    parts: List[str] = []
    parts.extend([prompt.id] * ID_WEIGHT)
    parts.extend([prompt.title] * TITLE_WEIGHT)
    parts.extend([prompt.description] * DESCRIPTION_WEIGHT)
    parts.extend(list(prompt.tags) * TAG_WEIGHT)
    parts.extend([prompt.content] * CONTENT_WEIGHT)
    return " ".join(parts)


def build_index(prompts: Sequence[Prompt]) -> BM25Index:
    """
    Build a BM25 index from a validated corpus.

    Args:
        prompts: Corpus, unique by id (see build_corpus)

    Returns:
        BM25Index with per-document term frequencies, document frequency
        per term and average document length (floored at 1)
    """
    documents: Dict[str, BM25Document] = {}
    term_doc_freq: Counter = Counter()
    total_length = 0

    for prompt in prompts:
        tokens = tokenize(build_weighted_text(prompt))
        term_freq = Counter(tokens)

        documents[prompt.id] = BM25Document(
            id=prompt.id,
            tokens=tuple(tokens),
            length=len(tokens),
            term_freq=MappingProxyType(dict(term_freq)),
        )
        total_length += len(tokens)

        # Each unique term counts once per document
        term_doc_freq.update(term_freq.keys())

    doc_count = len(prompts)
    # Floor at 1 so dl/avgdl never divides by zero (empty corpus, empty docs)
    avg_doc_length = max(total_length / doc_count if doc_count else 1.0, 1.0)

    logger.debug(
        f"Built BM25 index: {doc_count} prompts, {len(term_doc_freq)} unique terms, "
        f"avg length {avg_doc_length:.1f}"
    )

    return BM25Index(
        documents=MappingProxyType(documents),
        avg_doc_length=avg_doc_length,
        doc_count=doc_count,
        term_doc_freq=MappingProxyType(dict(term_doc_freq)),
    )
