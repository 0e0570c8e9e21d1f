"""
Prompt search: BM25 retrieval with optional synonym expansion and rerank.

Query flow:
    raw query → tokenize → expand synonyms (optional) → BM25 over the index
    → rerank top N by embedding similarity (optional) → cap

The index lives on a PromptSearchEngine instance owned by the caller. There
is no module-level cache: build one engine per corpus snapshot and call
rebuild() when the corpus changes. Reads are safe from many threads as long
as only one thread calls rebuild(); rebuild swaps in the new state with a
single assignment so readers see either the old or the new corpus.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Union

from .bm25.index_builder import BM25Index, build_index
from .bm25.scorer import BM25Scorer, search as bm25_search
from .bm25.synonyms import expand_query
from .bm25.tokenizer import tokenize
from .embeddings.base import BaseEmbedder
from .embeddings.fallback import FallbackEmbedder
from .embeddings.hashing import HashEmbedder, cosine_similarity
from .models import InvalidOptionError, Prompt, SearchOptions, build_corpus, validate_limit
from .similarity import SimilarityEngine, build_prompt_text

logger = logging.getLogger(__name__)

# Rerank blend: BM25 gives recall, embeddings refine the top slice
BM25_RERANK_WEIGHT = 0.4
SEMANTIC_RERANK_WEIGHT = 0.6
RERANK_FALLBACKS = ("hash", "passthrough")

SEARCH_FIELDS = ("id", "title", "description", "tags", "content")


@dataclass
class SearchResult:
    """
    Ranked prompt with the evidence for the match.

    score is the BM25 score, or the blended rerank score for reranked
    results; bm25_score always keeps the raw BM25 value.
    """
    prompt: Prompt
    score: float
    matched_terms: List[str]
    matched_fields: List[str]
    bm25_score: float


class _EngineState(NamedTuple):
    prompts: Mapping[str, Prompt]
    index: BM25Index
    field_tokens: Mapping[str, Mapping[str, FrozenSet[str]]]
    # Embedding cache lives and dies with its snapshot
    similarity: SimilarityEngine


def _field_tokens(prompt: Prompt) -> Dict[str, FrozenSet[str]]:
    return {
        "id": frozenset(tokenize(prompt.id)),
        "title": frozenset(tokenize(prompt.title)),
        "description": frozenset(tokenize(prompt.description)),
        "tags": frozenset(tokenize(" ".join(prompt.tags))),
        "content": frozenset(tokenize(prompt.content)),
    }


def _has_neural_backend(embedder: BaseEmbedder) -> bool:
    if isinstance(embedder, FallbackEmbedder):
        return embedder.ensure_primary_loaded()
    return not isinstance(embedder, HashEmbedder)


def semantic_rerank(
    query: str,
    results: Sequence[SearchResult],
    embedder: Union[BaseEmbedder, SimilarityEngine],
    top_n: int = 10,
    fallback: str = "hash",
) -> List[SearchResult]:
    """
    Reorder the top N results by blending BM25 with embedding similarity.

        score = 0.4 × bm25 / max(max_bm25_in_top_n, 1) + 0.6 × cosine(query, prompt)

    Results past top_n keep their order and scores.

    Args:
        query: Raw query text (embedded as-is)
        results: BM25-ordered results
        embedder: Embedder, or a SimilarityEngine to reuse its prompt cache
        top_n: Size of the slice to rerank (math.inf reranks everything)
        fallback: "hash" reranks with whatever embedder is available;
            "passthrough" returns the BM25 order unchanged when no neural
            model can be loaded

    Raises:
        InvalidOptionError: If top_n is not a positive integer or fallback is unknown
    """
    cap = validate_limit(top_n, "top_n")
    if cap == 0:
        raise InvalidOptionError(f"top_n must be at least 1, got {top_n!r}")
    if fallback not in RERANK_FALLBACKS:
        raise InvalidOptionError(f"fallback must be one of {RERANK_FALLBACKS}, got {fallback!r}")

    if not results:
        return list(results)

    engine = embedder if isinstance(embedder, SimilarityEngine) else SimilarityEngine(embedder)
    if fallback == "passthrough" and not _has_neural_backend(engine.embedder):
        logger.debug("No neural embedder available, keeping BM25 order")
        return list(results)

    head = list(results) if cap is None else list(results[:cap])
    rest = [] if cap is None else list(results[cap:])

    query_embedding = engine.embedder.embed(query)
    max_bm25 = max([r.bm25_score for r in head] + [1.0])

    reranked = []
    for result in head:
        semantic = cosine_similarity(query_embedding, engine.embedding_for(result.prompt))
        blended = (result.bm25_score / max_bm25) * BM25_RERANK_WEIGHT + semantic * SEMANTIC_RERANK_WEIGHT
        reranked.append(replace(result, score=blended))

    reranked.sort(key=lambda r: r.score, reverse=True)
    return reranked + rest


class PromptSearchEngine:
    """
    Caller-owned search index over one corpus snapshot.

    Example:
        >>> engine = PromptSearchEngine(prompts)
        >>> [r.prompt.id for r in engine.search("readme docs")][:1]
        ['readme-reviser']
    """

    def __init__(
        self,
        prompts: Iterable[Union[Prompt, Mapping]] = (),
        embedder: Optional[BaseEmbedder] = None,
        scorer: Optional[BM25Scorer] = None,
    ):
        self.scorer = scorer or BM25Scorer()
        self.embedder = embedder or HashEmbedder()
        self._state: Optional[_EngineState] = None
        self.rebuild(prompts)

    @property
    def index(self) -> BM25Index:
        return self._state.index

    @property
    def similarity(self) -> SimilarityEngine:
        return self._state.similarity

    @property
    def prompts(self) -> List[Prompt]:
        return list(self._state.prompts.values())

    def get(self, prompt_id: str) -> Optional[Prompt]:
        return self._state.prompts.get(prompt_id)

    def rebuild(self, prompts: Iterable[Union[Prompt, Mapping]]) -> None:
        """
        Replace the corpus and rebuild the index from scratch.

        Raises:
            CorpusError: If prompt ids are not unique
        """
        corpus = build_corpus(prompts)
        state = _EngineState(
            prompts={p.id: p for p in corpus},
            index=build_index(corpus),
            field_tokens={p.id: _field_tokens(p) for p in corpus},
            similarity=SimilarityEngine(self.embedder),
        )
        self._state = state
        logger.info(f"Search index built: {len(corpus)} prompts")

    def search(self, query: Union[str, Sequence[str]], options: Optional[SearchOptions] = None) -> List[SearchResult]:
        """
        Search the corpus.

        Args:
            query: Raw query, or pre-tokenized terms
            options: limit, synonym expansion and rerank settings

        Returns:
            Results best first; empty for blank queries or no matches.
            Without rerank, scores are non-increasing and ties are ordered
            by prompt id.
        """
        options = options or SearchOptions()
        state = self._state

        terms = tokenize(query) if isinstance(query, str) else list(query)
        if not terms:
            return []
        if options.expand_synonyms:
            terms = expand_query(terms)

        # Rerank needs the full BM25 head before capping
        bm25_limit = None if options.rerank else options.limit
        hits = bm25_search(state.index, terms, limit=bm25_limit, scorer=self.scorer)

        results = []
        for hit in hits:
            fields = state.field_tokens[hit.id]
            matched_fields = [
                name for name in SEARCH_FIELDS
                if any(term in fields[name] for term in hit.matched_terms)
            ]
            results.append(SearchResult(
                prompt=state.prompts[hit.id],
                score=hit.score,
                matched_terms=list(hit.matched_terms),
                matched_fields=matched_fields,
                bm25_score=hit.score,
            ))

        if options.rerank:
            query_text = query if isinstance(query, str) else " ".join(query)
            results = semantic_rerank(
                query_text, results, state.similarity,
                top_n=options.rerank_top_n, fallback=options.rerank_fallback,
            )
            if options.limit is not None:
                results = results[:options.limit]

        logger.debug(f"Search {terms[:5]}: {len(results)} results")
        return results


def search_prompts(
    query: Union[str, Sequence[str]],
    prompts: Iterable[Union[Prompt, Mapping]],
    options: Optional[SearchOptions] = None,
    embedder: Optional[BaseEmbedder] = None,
) -> List[SearchResult]:
    """One-off search that builds a throwaway engine; prefer PromptSearchEngine for repeated queries."""
    return PromptSearchEngine(prompts, embedder=embedder).search(query, options)
