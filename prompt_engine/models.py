"""
Core data model for the prompt engine.

- PromptCategory: closed set of categories, validated once at ingestion
- Prompt: immutable prompt record supplied by the calling layer
- build_corpus: corpus ingestion boundary (unique ids, valid categories)
- Option models: bounded, validated knobs for each query family

Scoring code never re-validates categories or ids; anything that made it
through build_corpus is trusted.
"""

import logging
import math
from enum import Enum
from typing import Any, Iterable, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class CorpusError(ValueError):
    """Corpus failed ingestion validation (duplicate ids, bad records)"""


class InvalidOptionError(ValueError):
    """Caller passed an invalid numeric option (negative limit, bad threshold)"""


class PromptCategory(str, Enum):
    """Supported prompt categories"""
    IDEATION = "ideation"
    DOCUMENTATION = "documentation"
    AUTOMATION = "automation"
    REFACTORING = "refactoring"
    TESTING = "testing"
    DEBUGGING = "debugging"
    WORKFLOW = "workflow"
    COMMUNICATION = "communication"


class Prompt(BaseModel):
    """
    Single prompt record.

    Owned by the calling layer; the engine never mutates it. Tags keep their
    authored order for display but are compared as sets everywhere.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    description: str = ""
    content: str = ""
    category: PromptCategory
    tags: Tuple[str, ...] = ()
    author: str = ""
    featured: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> Any:
        # Categories arrive as free-form strings from registries and APIs
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(value)


def build_corpus(records: Iterable[Union[Prompt, Mapping[str, Any]]]) -> List[Prompt]:
    """
    Validate raw records into an ordered corpus of prompts.

    Args:
        records: Prompt instances or dicts with Prompt fields

    Returns:
        List of Prompt in input order

    Raises:
        CorpusError: If two records share an id
        pydantic.ValidationError: If a record has missing fields or an unknown category
    """
    corpus: List[Prompt] = []
    seen = set()

    for record in records:
        prompt = record if isinstance(record, Prompt) else Prompt.model_validate(record)
        if prompt.id in seen:
            raise CorpusError(f"Duplicate prompt id in corpus: {prompt.id!r}")
        seen.add(prompt.id)
        corpus.append(prompt)

    logger.debug(f"Corpus validated: {len(corpus)} prompts")
    return corpus


def validate_limit(limit: Optional[Union[int, float]], name: str = "limit") -> Optional[int]:
    """
    Normalize a result cap.

    None and math.inf both mean "no cap" and return None. Negative or
    fractional values are programmer errors.
    """
    if limit is None:
        return None
    if isinstance(limit, bool):
        raise InvalidOptionError(f"{name} must be a non-negative integer, got {limit!r}")
    if isinstance(limit, float):
        if math.isinf(limit) and limit > 0:
            return None
        if not limit.is_integer():
            raise InvalidOptionError(f"{name} must be a non-negative integer, got {limit!r}")
        limit = int(limit)
    if not isinstance(limit, int) or limit < 0:
        raise InvalidOptionError(f"{name} must be a non-negative integer, got {limit!r}")
    return limit


def validate_threshold(threshold: float, name: str = "threshold") -> float:
    """Reject similarity thresholds outside [0, 1] (NaN included)."""
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise InvalidOptionError(f"{name} must be a number in [0, 1], got {threshold!r}")
    if not 0.0 <= threshold <= 1.0:
        raise InvalidOptionError(f"{name} must be a number in [0, 1], got {threshold!r}")
    return float(threshold)


class SearchOptions(BaseModel):
    """Knobs for free-text search"""
    model_config = ConfigDict(frozen=True)

    limit: Optional[int] = Field(default=None, ge=0)
    expand_synonyms: bool = True
    rerank: bool = False
    rerank_top_n: int = Field(default=10, ge=1)
    # "passthrough" keeps BM25 order when no neural embedder is available
    rerank_fallback: Literal["hash", "passthrough"] = "hash"

    @field_validator("limit", mode="before")
    @classmethod
    def _unbounded_limit(cls, value: Any) -> Any:
        if isinstance(value, float) and math.isinf(value) and value > 0:
            return None
        return value


class MetadataOptions(BaseModel):
    """Knobs for metadata suggestion"""
    model_config = ConfigDict(frozen=True)

    max_similar: int = Field(default=5, ge=0)
    max_tag_suggestions: int = Field(default=6, ge=0)
    max_category_suggestions: int = Field(default=3, ge=0)
    max_description_suggestions: int = Field(default=3, ge=0)
    similarity_threshold: float = Field(default=0.35, ge=0.0, le=1.0)


class DuplicateOptions(BaseModel):
    """Knobs for corpus-wide duplicate detection"""
    model_config = ConfigDict(frozen=True)

    min_score: float = Field(default=0.85, ge=0.0, le=1.0)
    max_pairs: int = Field(default=50, ge=0)


class RecommendationOptions(BaseModel):
    """Knobs shared by the recommendation modes"""
    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=10, ge=0)
    exclude_ids: Tuple[str, ...] = ()
    min_score: float = Field(default=0.0, ge=0.0)
