"""
Unit tests for Okapi BM25 scorer and ranked search.
"""

import math

import pytest

from prompt_engine.bm25.index_builder import build_index
from prompt_engine.bm25.scorer import BM25Scorer, search
from prompt_engine.models import InvalidOptionError, Prompt

pytestmark = pytest.mark.unit


def make_prompt(**fields):
    fields.setdefault("category", "workflow")
    return Prompt(**fields)


@pytest.fixture
def single_doc_index():
    prompt = make_prompt(id="alpha", title="beta", description="gamma", tags=["delta"], content="epsilon")
    return build_index([prompt])


class TestBM25Scorer:
    """Test BM25 scoring logic"""

    def test_manual_score(self, single_doc_index):
        """Test score against a hand-computed value"""
        # N=1, df=1, tf=3, dl == avgdl
        expected = math.log(4 / 3) * (3 * 2.2) / (3 + 1.2)
        doc = single_doc_index.documents["alpha"]

        score = BM25Scorer().score(["beta"], doc.term_freq, doc.length, single_doc_index)

        assert score == pytest.approx(expected)

    def test_idf_always_positive(self):
        """Test IDF stays positive when every document has the term"""
        assert BM25Scorer.idf(doc_freq=10, doc_count=10) > 0
        assert BM25Scorer.idf(doc_freq=1, doc_count=10) > BM25Scorer.idf(doc_freq=5, doc_count=10)

    def test_zero_score_no_matches(self, single_doc_index):
        """Test that score is zero when no query terms match"""
        doc = single_doc_index.documents["alpha"]
        assert BM25Scorer().score(["nonexistent"], doc.term_freq, doc.length, single_doc_index) == 0.0

    def test_empty_query(self, single_doc_index):
        """Test empty query terms"""
        doc = single_doc_index.documents["alpha"]
        assert BM25Scorer().score([], doc.term_freq, doc.length, single_doc_index) == 0.0

    def test_length_normalization(self):
        """Test longer documents score lower for the same term frequency"""
        index = build_index([
            make_prompt(id="short", title="Note", content="target"),
            make_prompt(id="long", title="Note", content="target " + "filler " * 40),
        ])
        hits = search(index, "target")
        assert [hit.id for hit in hits] == ["short", "long"]
        assert hits[0].score > hits[1].score

    def test_custom_parameters(self, single_doc_index):
        """Test k1 changes saturation"""
        doc = single_doc_index.documents["alpha"]
        default = BM25Scorer().score(["alpha"], doc.term_freq, doc.length, single_doc_index)
        saturated = BM25Scorer(k1=0.1).score(["alpha"], doc.term_freq, doc.length, single_doc_index)
        assert saturated < default


class TestSearch:
    """Test ranked search over an index"""

    @pytest.fixture
    def index(self):
        return build_index([
            make_prompt(id="code-reviewer", title="Code Reviewer", tags=["review"], content="Review the diff"),
            make_prompt(id="pr-summary", title="PR Summary", content="Summarize the code changes"),
            make_prompt(id="release-notes", title="Release Notes", content="Draft release notes"),
        ])

    def test_title_match_ranks_first(self, index):
        """Test id/title weighting puts the titled prompt first"""
        hits = search(index, "code review")
        assert [hit.id for hit in hits] == ["code-reviewer", "pr-summary"]

    def test_unknown_terms_empty(self, index):
        """Test no results for terms outside the corpus"""
        assert search(index, "kubernetes") == []

    def test_blank_query_empty(self, index):
        """Test blank and stopword-only queries"""
        assert search(index, "") == []
        assert search(index, "the and of") == []

    def test_scores_non_increasing(self, index):
        """Test results are sorted by score"""
        hits = search(index, "code review release notes summary")
        scores = [hit.score for hit in hits]
        assert scores == sorted(scores, reverse=True)
        assert all(score > 0 for score in scores)

    def test_matched_terms(self, index):
        """Test matched_terms lists query terms found in the document"""
        hits = search(index, "code review")
        assert hits[0].matched_terms == ("code", "review")
        assert hits[1].matched_terms == ("code",)

    def test_pre_tokenized_query(self, index):
        """Test list queries are used as-is"""
        assert [hit.id for hit in search(index, ["release"])] == ["release-notes"]

    def test_tie_break_by_id(self):
        """Test equal scores are ordered by id ascending regardless of corpus order"""
        index = build_index([
            make_prompt(id="omega", title="Note", content="shared"),
            make_prompt(id="kappa", title="Note", content="shared"),
        ])
        hits = search(index, "shared")
        assert hits[0].score == hits[1].score
        assert [hit.id for hit in hits] == ["kappa", "omega"]

    def test_limit(self, index):
        """Test result caps"""
        assert len(search(index, "code review", limit=1)) == 1
        assert search(index, "code review", limit=0) == []
        assert len(search(index, "code review", limit=math.inf)) == 2
        assert len(search(index, "code review", limit=None)) == 2

    @pytest.mark.parametrize("limit", [-1, 1.5, True])
    def test_invalid_limit(self, index, limit):
        """Test invalid limits raise"""
        with pytest.raises(InvalidOptionError):
            search(index, "code", limit=limit)

    def test_empty_index(self):
        """Test search over an empty corpus"""
        assert search(build_index([]), "anything") == []
