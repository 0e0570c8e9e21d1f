"""
BM25 (Best Match 25) ranking for prompt search.

Components:
- tokenizer: Text normalization and term extraction
- synonyms: Static synonym table for query expansion
- index_builder: Field-weighted term frequencies and corpus statistics
- scorer: Okapi BM25 scoring with corpus IDF

The index is built once per corpus snapshot and is read-only afterwards.
"""

from .tokenizer import tokenize, tokenize_raw, ngrams, STOPWORDS, ALLOWED_SHORT_TOKENS
from .synonyms import expand_query, SYNONYMS
from .index_builder import build_index, build_weighted_text, BM25Index, BM25Document
from .scorer import BM25Scorer, BM25Hit, search

__all__ = [
    "tokenize",
    "tokenize_raw",
    "ngrams",
    "STOPWORDS",
    "ALLOWED_SHORT_TOKENS",
    "expand_query",
    "SYNONYMS",
    "build_index",
    "build_weighted_text",
    "BM25Index",
    "BM25Document",
    "BM25Scorer",
    "BM25Hit",
    "search",
]
