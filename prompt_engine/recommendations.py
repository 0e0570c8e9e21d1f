"""
Personalized prompt recommendations.

Works only on structured fields (tags, category, author, featured flag); it
does not use the text index or embeddings.

Weights (sum to 1.0 when every signal fires):
    tags 0.6, category 0.2, author 0.1, featured 0.1

Modes:
- related: one source prompt vs. every candidate
- history: interaction signals (save > run > view, decayed by age) plus
  explicit preferences, normalized by the strongest observed weight
- for you: history when there is any, otherwise cold start (featured first)
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from .models import Prompt, RecommendationOptions

logger = logging.getLogger(__name__)

TAG_WEIGHT = 0.6
CATEGORY_WEIGHT = 0.2
AUTHOR_WEIGHT = 0.1
FEATURED_WEIGHT = 0.1

RECENCY_HALF_LIFE_DAYS = 21
PREFERENCE_TAG_BOOST = 0.9
PREFERENCE_CATEGORY_BOOST = 0.6

PREFERENCE_SOURCE = "preference"


class SignalKind(str, Enum):
    """How the user interacted with a prompt"""
    VIEW = "view"
    SAVE = "save"
    RUN = "run"


SIGNAL_WEIGHTS = {
    SignalKind.SAVE: 2.0,
    SignalKind.RUN: 1.5,
    SignalKind.VIEW: 1.0,
}


@dataclass(frozen=True)
class RecommendationSignal:
    """One interaction; occurred_at may be a datetime or an ISO-8601 string"""
    prompt: Prompt
    kind: SignalKind = SignalKind.VIEW
    occurred_at: Optional[Union[datetime, str]] = None
    weight: float = 1.0


class RecommendationPreferences(BaseModel):
    """Explicit user preferences; names are compared case-insensitively"""
    model_config = ConfigDict(frozen=True)

    tags: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    exclude_tags: Tuple[str, ...] = ()
    exclude_categories: Tuple[str, ...] = ()


HistoryItem = Union[Prompt, RecommendationSignal]


@dataclass
class UserHistory:
    viewed: List[HistoryItem] = field(default_factory=list)
    saved: List[HistoryItem] = field(default_factory=list)
    runs: List[HistoryItem] = field(default_factory=list)
    preferences: Optional[RecommendationPreferences] = None


@dataclass
class RecommendationResult:
    prompt: Prompt
    score: float
    reasons: List[str]


def _normalize(name: str) -> str:
    return name.strip().lower()


def _category_name(prompt: Prompt) -> str:
    return _normalize(prompt.category.value)


def _utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def recency_weight(occurred_at: Optional[Union[datetime, str]], now: Optional[datetime] = None) -> float:
    """
    Exponential decay with a 21-day half-life.

    Missing or unparseable timestamps count as fresh (weight 1). Future
    timestamps are treated as age 0.
    """
    if occurred_at is None:
        return 1.0
    if isinstance(occurred_at, str):
        try:
            occurred_at = datetime.fromisoformat(occurred_at.replace("Z", "+00:00"))
        except ValueError:
            return 1.0

    now = _utc(now or datetime.now(timezone.utc))
    age_days = max(0.0, (now - _utc(occurred_at)).total_seconds() / 86400)
    return math.exp(-(math.log(2) / RECENCY_HALF_LIFE_DAYS) * age_days)


def signal_weight(signal: RecommendationSignal, now: Optional[datetime] = None) -> float:
    return SIGNAL_WEIGHTS.get(signal.kind, 1.0) * recency_weight(signal.occurred_at, now) * signal.weight


def normalize_signals(items: Optional[Iterable[HistoryItem]], default_kind: SignalKind) -> List[RecommendationSignal]:
    """Wrap bare prompts as signals of default_kind; signals pass through."""
    signals = []
    for item in items or ():
        if isinstance(item, RecommendationSignal):
            signals.append(item)
        else:
            signals.append(RecommendationSignal(prompt=item, kind=default_kind))
    return signals


def _source_label(source) -> str:
    return source.value if isinstance(source, SignalKind) else source


def _top_source(sources: Optional[Dict[str, float]]) -> Optional[str]:
    if not sources:
        return None
    # max() keeps the first of equal weights
    return max(sources.items(), key=lambda item: item[1])[0]


def _tag_reason(source: Optional[str], tags: Sequence[str]) -> str:
    label = ", ".join(tags[:3])
    if source == SignalKind.SAVE.value:
        return f"Because you saved prompts tagged: {label}"
    if source == SignalKind.RUN.value:
        return f"Based on prompts you've run: {label}"
    if source == SignalKind.VIEW.value:
        return f"Based on recent views: {label}"
    if source == PREFERENCE_SOURCE:
        return f"Matches your preferences: {label}"
    return f"Matches your interests: {label}"


def _category_reason(source: Optional[str], category: str) -> str:
    if source == SignalKind.SAVE.value:
        return f"Because you saved prompts in {category}"
    if source == SignalKind.RUN.value:
        return f"Based on runs in {category}"
    if source == SignalKind.VIEW.value:
        return f"Based on recent views in {category}"
    if source == PREFERENCE_SOURCE:
        return f"Preferred category: {category}"
    return f"In a category you like: {category}"


def tag_similarity(tags_a: Iterable[str], tags_b: Iterable[str]) -> float:
    """Case-insensitive Jaccard similarity of two tag lists."""
    set_a = {t.lower() for t in tags_a}
    set_b = {t.lower() for t in tags_b}
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def _is_excluded(prompt: Prompt, preferences: Optional[RecommendationPreferences]) -> bool:
    if preferences is None:
        return False
    excluded_categories = {_normalize(c) for c in preferences.exclude_categories}
    excluded_tags = {_normalize(t) for t in preferences.exclude_tags}
    if _category_name(prompt) in excluded_categories:
        return True
    return any(_normalize(tag) in excluded_tags for tag in prompt.tags)


def get_related_recommendations(
    source: Prompt,
    prompts: Sequence[Prompt],
    options: Optional[RecommendationOptions] = None,
) -> List[RecommendationResult]:
    """
    Prompts related to a single source prompt.

    Candidates must score strictly above options.min_score.
    """
    options = options or RecommendationOptions()
    exclude_ids = {source.id, *options.exclude_ids}
    recommendations: List[RecommendationResult] = []

    for candidate in prompts:
        if candidate.id in exclude_ids:
            continue

        reasons: List[str] = []
        score = 0.0

        similarity = tag_similarity(source.tags, candidate.tags)
        if similarity > 0:
            score += similarity * TAG_WEIGHT
            candidate_tags = {t.lower() for t in candidate.tags}
            common = [t for t in source.tags if t.lower() in candidate_tags]
            if common:
                reasons.append(f"Similar tags: {', '.join(common[:3])}")

        if candidate.category == source.category:
            score += CATEGORY_WEIGHT
            reasons.append(f"Same category: {candidate.category.value}")

        if candidate.author and candidate.author == source.author:
            score += AUTHOR_WEIGHT
            reasons.append(f"By the same author: {candidate.author}")

        if candidate.featured:
            score += FEATURED_WEIGHT
            reasons.append("Featured prompt")

        if score > options.min_score:
            recommendations.append(RecommendationResult(prompt=candidate, score=score, reasons=reasons))

    recommendations.sort(key=lambda r: r.score, reverse=True)
    return recommendations[:options.limit]


def get_recommendations_from_history(
    history: Iterable[HistoryItem],
    prompts: Sequence[Prompt],
    options: Optional[RecommendationOptions] = None,
    preferences: Optional[RecommendationPreferences] = None,
    now: Optional[datetime] = None,
) -> List[RecommendationResult]:
    """
    Recommend from interaction history and preferences.

    A prompt listed twice (or saved rather than viewed) weighs more. Tag and
    category weights are normalized by the strongest observed weight (at
    least 1). Excluded tags/categories drop candidates after scoring.

    Args:
        history: Prompts (treated as views) or RecommendationSignals
        prompts: Candidate pool
        options: limit, extra exclude_ids
        preferences: Preferred and excluded tags/categories
        now: Reference time for recency decay (default: current UTC time)
    """
    options = options or RecommendationOptions()
    signals = normalize_signals(history, SignalKind.VIEW)
    exclude_ids = {s.prompt.id for s in signals} | set(options.exclude_ids)

    tag_weights: Dict[str, float] = defaultdict(float)
    category_weights: Dict[str, float] = defaultdict(float)
    tag_sources: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    category_sources: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))

    for signal in signals:
        weight = signal_weight(signal, now)
        if weight <= 0:
            continue
        source = _source_label(signal.kind)
        for tag in signal.prompt.tags:
            tag_weights[_normalize(tag)] += weight
            tag_sources[_normalize(tag)][source] += weight
        category = _category_name(signal.prompt)
        category_weights[category] += weight
        category_sources[category][source] += weight

    if preferences is not None:
        for tag in preferences.tags:
            tag_weights[_normalize(tag)] += PREFERENCE_TAG_BOOST
            tag_sources[_normalize(tag)][PREFERENCE_SOURCE] += PREFERENCE_TAG_BOOST
        for category in preferences.categories:
            category_weights[_normalize(category)] += PREFERENCE_CATEGORY_BOOST
            category_sources[_normalize(category)][PREFERENCE_SOURCE] += PREFERENCE_CATEGORY_BOOST

    max_tag_weight = max([1.0, *tag_weights.values()])
    max_category_weight = max([1.0, *category_weights.values()])

    recommendations: List[RecommendationResult] = []

    for candidate in prompts:
        if candidate.id in exclude_ids:
            continue

        reasons: List[str] = []
        score = 0.0

        tag_score = 0.0
        matched_tags: List[str] = []
        source_totals: Dict[str, float] = defaultdict(float)
        for tag in candidate.tags:
            weight = tag_weights.get(_normalize(tag), 0.0)
            if weight > 0:
                tag_score += weight / max_tag_weight
                matched_tags.append(tag)
                for source, value in tag_sources[_normalize(tag)].items():
                    source_totals[source] += value
        if matched_tags:
            score += (tag_score / max(1, len(candidate.tags))) * TAG_WEIGHT
            reasons.append(_tag_reason(_top_source(source_totals), matched_tags))

        category = _category_name(candidate)
        category_weight = category_weights.get(category, 0.0)
        if category_weight > 0:
            score += (category_weight / max_category_weight) * CATEGORY_WEIGHT
            reasons.append(_category_reason(_top_source(category_sources.get(category)), candidate.category.value))

        if candidate.featured:
            score += FEATURED_WEIGHT
            reasons.append("Featured prompt")

        if score > 0:
            recommendations.append(RecommendationResult(prompt=candidate, score=score, reasons=reasons))

    recommendations = [r for r in recommendations if not _is_excluded(r.prompt, preferences)]
    recommendations.sort(key=lambda r: r.score, reverse=True)

    logger.debug(
        f"History recommendations: {len(signals)} signals, {len(tag_weights)} tags, "
        f"{len(recommendations)} candidates"
    )
    return recommendations[:options.limit]


def get_for_you_recommendations(
    history: UserHistory,
    prompts: Sequence[Prompt],
    options: Optional[RecommendationOptions] = None,
    now: Optional[datetime] = None,
) -> List[RecommendationResult]:
    """
    Personalized feed: history-based when there is any signal or preference,
    otherwise cold start (featured prompts first, then the rest in corpus order).
    """
    options = options or RecommendationOptions()
    preferences = history.preferences

    signals = (
        normalize_signals(history.saved, SignalKind.SAVE)
        + normalize_signals(history.runs, SignalKind.RUN)
        + normalize_signals(history.viewed, SignalKind.VIEW)
    )
    has_preferences = preferences is not None and bool(preferences.tags or preferences.categories)

    if not signals and not has_preferences:
        exclude_ids = set(options.exclude_ids)
        pool = [
            p for p in prompts
            if p.id not in exclude_ids and not _is_excluded(p, preferences)
        ]
        # Stable: featured first, otherwise corpus order
        pool.sort(key=lambda p: not p.featured)
        logger.debug(f"Cold start recommendations from {len(pool)} prompts")
        return [
            RecommendationResult(
                prompt=p,
                score=1.0 if p.featured else 0.5,
                reasons=["Featured prompt" if p.featured else "Popular in the library"],
            )
            for p in pool[:options.limit]
        ]

    return get_recommendations_from_history(signals, prompts, options, preferences, now)


def recommend(
    history: Union[UserHistory, Sequence[HistoryItem], None],
    prompts: Sequence[Prompt],
    options: Optional[RecommendationOptions] = None,
    now: Optional[datetime] = None,
) -> List[RecommendationResult]:
    """
    Recommend prompts for a user.

    Args:
        history: UserHistory, or a plain list of prompts/signals (treated as views)
        prompts: Candidate pool
        options: limit and exclusions
        now: Reference time for recency decay
    """
    if history is None:
        history = UserHistory()
    elif not isinstance(history, UserHistory):
        history = UserHistory(viewed=list(history))
    return get_for_you_recommendations(history, prompts, options, now)
