"""
Unit tests for pairwise prompt similarity.

Scores are checked with FixedEmbedder (vectors keyed by title) so the
content component is exact; hash embeddings are only used where the
property holds for any embedder.
"""

import math

import pytest

from prompt_engine.models import InvalidOptionError, Prompt
from prompt_engine.similarity import (
    SimilarityEngine,
    analyze_similarity,
    build_prompt_text,
    intersection,
    jaccard,
    normalize_title,
)

pytestmark = pytest.mark.unit


def make_prompt(**fields):
    fields.setdefault("category", "workflow")
    return Prompt(**fields)


class TestHelpers:
    """Test text helpers"""

    def test_build_prompt_text(self):
        """Test fields joined by newlines with empty fields skipped"""
        prompt = make_prompt(id="p", title="Title", content="Body", tags=["one", "two"])
        assert build_prompt_text(prompt) == "Title\nBody\none two"

    def test_normalize_title(self):
        """Test punctuation and case are ignored"""
        assert normalize_title("The Idea-Wizard!") == "the idea wizard"
        assert normalize_title("  THE   idea wizard ") == "the idea wizard"

    def test_jaccard(self):
        """Test set overlap"""
        assert jaccard(["a", "b"], ["b", "c"]) == pytest.approx(1 / 3)
        assert jaccard([], []) == 0.0
        assert jaccard(["a", "a"], ["a"]) == 1.0

    def test_intersection_keeps_first_order(self):
        """Test shared items keep the first list's order"""
        assert intersection(["c", "a", "b", "a"], ["a", "c"]) == ["c", "a"]


class TestSimilarityEngine:
    """Test SimilarityEngine.analyze() scoring"""

    def test_content_dominates(self, fixed_embedder):
        """Test score is raw content similarity when it beats the blend"""
        embedder = fixed_embedder({"Alpha Notes": [1.0, 0.0], "Beta Notes": [0.6, 0.8]})
        base = make_prompt(id="a", title="Alpha Notes", tags=["python", "review"])
        candidate = make_prompt(id="b", title="Beta Notes", tags=["review", "style"])

        result = SimilarityEngine(embedder).analyze(base, candidate)

        # blend = 0.7 * 0.6 + 0.2 / 3 + 0.1 / 3 = 0.52 < 0.6
        assert result.score == pytest.approx(0.6)
        assert result.prompt is candidate
        assert result.shared_tags == ["review"]
        assert result.title_match is False

    def test_tags_and_title_raise_score(self, fixed_embedder):
        """Test tag and title overlap lift orthogonal content"""
        embedder = fixed_embedder({"Alpha Notes": [1.0, 0.0], "Beta Notes": [0.0, 1.0]})
        base = make_prompt(id="a", title="Alpha Notes", tags=["python"])
        candidate = make_prompt(id="b", title="Beta Notes", tags=["python"])

        result = SimilarityEngine(embedder).analyze(base, candidate)

        assert result.score == pytest.approx(0.2 + 0.1 / 3)

    def test_unrelated_scores_zero(self, fixed_embedder):
        """Test no shared tags, titles or content gives 0"""
        embedder = fixed_embedder({"Alpha Notes": [1.0, 0.0], "Gamma Digest": [0.0, 1.0]})
        base = make_prompt(id="a", title="Alpha Notes", tags=["python"])
        candidate = make_prompt(id="b", title="Gamma Digest", tags=["golang"])

        result = SimilarityEngine(embedder).analyze(base, candidate)

        assert result.score == 0.0
        assert result.shared_tags == []

    def test_title_match_floor(self, fixed_embedder):
        """Test titles that normalize equal score at least 0.98"""
        embedder = fixed_embedder({"The Idea-Wizard": [1.0, 0.0], "the idea wizard!": [0.0, 1.0]})
        base = make_prompt(id="a", title="The Idea-Wizard", content="Generate ideas")
        candidate = make_prompt(id="b", title="the idea wizard!", content="Completely different body")

        result = SimilarityEngine(embedder).analyze(base, candidate)

        assert result.title_match is True
        assert result.score == pytest.approx(0.98)

    def test_score_clamped_to_unit_interval(self, fixed_embedder):
        """Test float noise above 1 and negative cosine are clamped"""
        embedder = fixed_embedder({
            "Alpha Notes": [1.0, 0.0],
            "Beta Notes": [1.0000001, 0.0],
            "Gamma Digest": [-1.0, 0.0],
        })
        base = make_prompt(id="a", title="Alpha Notes")
        engine = SimilarityEngine(embedder)

        assert engine.analyze(base, make_prompt(id="b", title="Beta Notes")).score == 1.0
        assert engine.analyze(base, make_prompt(id="c", title="Gamma Digest")).score == 0.0

    def test_shared_tokens_capped(self):
        """Test shared token evidence is capped at 8 in base order"""
        words = "alpha bravo charlie delta echo foxtrot golf hotel india juliet"
        base = make_prompt(id="a", title="First", content=words)
        candidate = make_prompt(id="b", title="Second", content=words)

        result = SimilarityEngine().analyze(base, candidate)

        assert result.shared_tokens == words.split()[:8]

    def test_symmetric_score(self):
        """Test analyze(a, b) and analyze(b, a) agree"""
        a = make_prompt(id="a", title="Code Review", content="Review the diff", tags=["review"])
        b = make_prompt(id="b", title="Review Checklist", content="Check the code", tags=["review", "quality"])
        engine = SimilarityEngine()
        assert engine.analyze(a, b).score == pytest.approx(engine.analyze(b, a).score)

    def test_embedding_cache(self, fixed_embedder):
        """Test embeddings are computed once per prompt id"""
        embedder = fixed_embedder({"Alpha Notes": [1.0, 0.0], "Beta Notes": [0.0, 1.0]})
        engine = SimilarityEngine(embedder)
        base = make_prompt(id="a", title="Alpha Notes")
        candidate = make_prompt(id="b", title="Beta Notes")

        engine.analyze(base, candidate)
        engine.analyze(candidate, base)
        assert embedder.calls == {"Alpha Notes": 1, "Beta Notes": 1}

        engine.clear_cache()
        engine.analyze(base, candidate)
        assert embedder.calls["Alpha Notes"] == 2


class TestFindSimilar:
    """Test SimilarityEngine.find_similar()"""

    @pytest.fixture
    def setup(self, fixed_embedder):
        embedder = fixed_embedder({
            "Target Prompt": [1.0, 0.0],
            "Near Match": [0.9, math.sqrt(1 - 0.81)],
            "Mid Match": [0.5, math.sqrt(0.75)],
            "Far Away": [0.0, 1.0],
        })
        target = make_prompt(id="target", title="Target Prompt")
        corpus = [
            target,
            make_prompt(id="mid", title="Mid Match"),
            make_prompt(id="far", title="Far Away"),
            make_prompt(id="near", title="Near Match"),
        ]
        return SimilarityEngine(embedder), target, corpus

    def test_sorted_and_thresholded(self, setup):
        """Test neighbors above threshold, best first, self excluded"""
        engine, target, corpus = setup
        results = engine.find_similar(target, corpus, threshold=0.35)
        assert [r.prompt.id for r in results] == ["near", "mid"]
        assert results[0].score == pytest.approx(0.9)
        assert results[1].score == pytest.approx(0.5)

    def test_threshold_inclusive(self, setup):
        """Test a score equal to the threshold is kept"""
        engine, target, corpus = setup
        results = engine.find_similar(target, corpus, threshold=0.5)
        assert [r.prompt.id for r in results] == ["near", "mid"]
        assert engine.find_similar(target, corpus, threshold=0.95) == []

    def test_cap(self, setup):
        """Test max_similar caps results"""
        engine, target, corpus = setup
        assert len(engine.find_similar(target, corpus, threshold=0.0, max_similar=1)) == 1
        assert len(engine.find_similar(target, corpus, threshold=0.0, max_similar=None)) == 3

    def test_invalid_cap(self, setup):
        """Test negative caps raise"""
        engine, target, corpus = setup
        with pytest.raises(InvalidOptionError):
            engine.find_similar(target, corpus, max_similar=-1)

    @pytest.mark.parametrize("threshold", [-0.1, 1.5, math.nan, "0.5"])
    def test_invalid_threshold(self, setup, threshold):
        """Test thresholds outside [0, 1] raise instead of changing results"""
        engine, target, corpus = setup
        with pytest.raises(InvalidOptionError, match="threshold"):
            engine.find_similar(target, corpus, threshold=threshold)

    def test_threshold_bounds_accepted(self, setup):
        """Test 0 and 1 are valid thresholds"""
        engine, target, corpus = setup
        assert len(engine.find_similar(target, corpus, threshold=0, max_similar=None)) == 3
        assert engine.find_similar(target, corpus, threshold=1) == []


class TestAnalyzeSimilarity:
    """Test the one-off helper with hash embeddings"""

    def test_identical_prompts(self):
        """Test copies under different ids are near-identical"""
        fields = dict(title="Debug Helper", content="Find bugs and fix issues", tags=["debug"])
        result = analyze_similarity(make_prompt(id="a", **fields), make_prompt(id="b", **fields))
        assert result.score == pytest.approx(1.0)
        assert result.title_match is True
        assert result.shared_tags == ["debug"]

    def test_identical_titles_different_content(self):
        """Test identical normalized titles floor the score"""
        a = make_prompt(id="a", title="The Idea Wizard", content="Brainstorm thirty ideas")
        b = make_prompt(id="b", title="the idea-wizard", content="Audit database migrations for locking")
        assert analyze_similarity(a, b).score >= 0.98
