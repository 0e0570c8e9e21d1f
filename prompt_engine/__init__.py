"""
prompt-engine: search, similarity and recommendations over a prompt library.

Everything runs in-process over an in-memory corpus:
- search: BM25 with synonym expansion and optional embedding rerank
- similarity: hash (or neural) embeddings + tag/title overlap, with evidence
- metadata: tag/category/description suggestions from similar prompts
- duplicates: corpus-wide near-duplicate pairs
- recommendations: related, history-based and cold-start feeds

Usage:
    from prompt_engine import PromptSearchEngine, build_corpus, find_duplicates

    prompts = build_corpus(records)
    engine = PromptSearchEngine(prompts)
    results = engine.search("readme docs")
    pairs = find_duplicates(prompts)
"""

from .models import (
    Prompt,
    PromptCategory,
    build_corpus,
    CorpusError,
    InvalidOptionError,
    SearchOptions,
    MetadataOptions,
    DuplicateOptions,
    RecommendationOptions,
)
from .config import EngineSettings, load_environment
from .logging_config import setup_logging, setup_logging_from_settings
from .bm25 import tokenize, tokenize_raw, expand_query, build_index, BM25Index
from .embeddings import (
    BaseEmbedder,
    HashEmbedder,
    FallbackEmbedder,
    LocalSentenceTransformerEmbedder,
    hash_embedding,
    cosine_similarity,
    get_embedder,
)
from .search import PromptSearchEngine, SearchResult, search_prompts, semantic_rerank
from .similarity import SimilarityEngine, SimilarityResult, analyze_similarity
from .metadata import (
    suggest_metadata,
    find_similar_prompts,
    MetadataSuggestions,
    TagSuggestion,
    CategorySuggestion,
    DescriptionSuggestion,
)
from .duplicates import find_duplicates, DuplicateCandidate
from .recommendations import (
    recommend,
    get_related_recommendations,
    get_recommendations_from_history,
    get_for_you_recommendations,
    RecommendationResult,
    RecommendationSignal,
    RecommendationPreferences,
    SignalKind,
    UserHistory,
)

__version__ = "0.1.0"

__all__ = [
    "Prompt",
    "PromptCategory",
    "build_corpus",
    "CorpusError",
    "InvalidOptionError",
    "SearchOptions",
    "MetadataOptions",
    "DuplicateOptions",
    "RecommendationOptions",
    "EngineSettings",
    "load_environment",
    "setup_logging",
    "setup_logging_from_settings",
    "tokenize",
    "tokenize_raw",
    "expand_query",
    "build_index",
    "BM25Index",
    "BaseEmbedder",
    "HashEmbedder",
    "FallbackEmbedder",
    "LocalSentenceTransformerEmbedder",
    "hash_embedding",
    "cosine_similarity",
    "get_embedder",
    "PromptSearchEngine",
    "SearchResult",
    "search_prompts",
    "semantic_rerank",
    "SimilarityEngine",
    "SimilarityResult",
    "analyze_similarity",
    "suggest_metadata",
    "find_similar_prompts",
    "MetadataSuggestions",
    "TagSuggestion",
    "CategorySuggestion",
    "DescriptionSuggestion",
    "find_duplicates",
    "DuplicateCandidate",
    "recommend",
    "get_related_recommendations",
    "get_recommendations_from_history",
    "get_for_you_recommendations",
    "RecommendationResult",
    "RecommendationSignal",
    "RecommendationPreferences",
    "SignalKind",
    "UserHistory",
]
