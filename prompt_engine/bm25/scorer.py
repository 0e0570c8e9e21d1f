"""
Okapi BM25 scorer over a prebuilt index.

Formula:
    score(doc) = Σ idf(term) × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × dl/avgdl))
    idf(term)  = ln((N - df + 0.5) / (df + 0.5) + 1)

Where:
    tf = term frequency in document (field weights already baked in)
    df = number of documents containing the term
    N = number of documents in the index
    dl = document length (number of tokens)
    avgdl = average document length (floored at 1)
    k1 = term frequency saturation parameter (default: 1.2)
    b = length normalization parameter (default: 0.75)

Ordering: score descending, ties broken by prompt id ascending so results are
deterministic regardless of corpus order.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..models import validate_limit
from .index_builder import BM25Index
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BM25Hit:
    """Single ranked document with the query terms that matched it"""
    id: str
    score: float
    matched_terms: tuple = ()


class BM25Scorer:
    """
    Okapi BM25 with corpus-level IDF.
    """

    def __init__(self, k1: float = 1.2, b: float = 0.75):
        """
        Initialize BM25 scorer.

        Args:
            k1: Term frequency saturation parameter
                Higher = more weight to term frequency
                Default: 1.2 (standard)

            b: Length normalization parameter
                Higher = more penalty for long documents
                Range: 0.0 - 1.0
                Default: 0.75 (standard)
        """
        self.k1 = k1
        self.b = b

    @staticmethod
    def idf(doc_freq: int, doc_count: int) -> float:
        """Inverse document frequency; always positive thanks to the +1."""
        return math.log((doc_count - doc_freq + 0.5) / (doc_freq + 0.5) + 1)

    def score(
        self,
        query_terms: Sequence[str],
        doc_term_frequencies: Mapping[str, int],
        token_count: int,
        index: BM25Index,
    ) -> float:
        """
        Compute BM25 score for one document.

        Args:
            query_terms: Tokenized query (lowercase, deduplicated by caller if desired)
            doc_term_frequencies: Term frequency map {term: count}
            token_count: Total number of tokens in document
            index: Index providing document frequencies and avgdl

        Returns:
            BM25 score (0.0 when no query term occurs in the document)
        """
        if not query_terms or not doc_term_frequencies:
            return 0.0

        score = 0.0
        length_norm = 1 - self.b + self.b * (token_count / index.avg_doc_length)

        for term in query_terms:
            tf = doc_term_frequencies.get(term, 0)
            if tf == 0:
                continue

            idf = self.idf(index.term_doc_freq.get(term, 0), index.doc_count)
            score += idf * (tf * (self.k1 + 1)) / (tf + self.k1 * length_norm)

        return score


def search(
    index: BM25Index,
    query: Union[str, Sequence[str]],
    limit: Optional[Union[int, float]] = None,
    scorer: Optional[BM25Scorer] = None,
) -> List[BM25Hit]:
    """
    Rank indexed documents against a query.

    Args:
        index: Prebuilt BM25 index
        query: Raw query string, or a pre-tokenized list of terms
        limit: Maximum results; None or math.inf for no cap
        scorer: BM25 parameters (default k1=1.2, b=0.75)

    Returns:
        Hits with score > 0, best first

    Raises:
        InvalidOptionError: If limit is negative or fractional

    Example:
        >>> hits = search(index, "code review", limit=5)
        >>> [h.id for h in hits]
        ['code-reviewer', 'pr-summary']
    """
    cap = validate_limit(limit)
    scorer = scorer or BM25Scorer()
    query_terms = tokenize(query) if isinstance(query, str) else list(query)

    if not query_terms:
        return []

    scores: Dict[str, float] = {}
    matches: Dict[str, tuple] = {}

    for doc_id, doc in index.documents.items():
        score = scorer.score(query_terms, doc.term_freq, doc.length, index)
        if score > 0:
            scores[doc_id] = score
            matches[doc_id] = tuple(dict.fromkeys(t for t in query_terms if t in doc.term_freq))

    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    if cap is not None:
        ranked = ranked[:cap]

    logger.debug(f"BM25 search: {len(query_terms)} terms, {len(scores)} matches, returning {len(ranked)}")

    return [BM25Hit(id=doc_id, score=score, matched_terms=matches[doc_id]) for doc_id, score in ranked]
