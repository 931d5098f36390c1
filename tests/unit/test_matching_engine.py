"""
Tests for cvmatch.core.matching.matching_engine: MatchingEngine orchestration.

A fake embedding model stands in for sentence-transformers, so the
semantic score is fixed by the vectors each test chooses.
"""

import asyncio

import pytest

from cvmatch.core.matching import MatchingEngine, build_jd_text
from cvmatch.utils.constants import (
    ANALYSIS_FAILED_EXPLANATION,
    INSUFFICIENT_CONTENT_EXPLANATION,
)


JD_TEXT = build_jd_text("Frontend Developer", "Build UIs", ["React", "Node.js"], "Junior")
JD_EMBEDDING = [1.0, 0.0]


def _match(engine, cv_text, job_skills=("React", "Node.js"), jd_embedding=JD_EMBEDDING):
    return asyncio.run(
        engine.match_cv_to_job(cv_text, JD_TEXT, jd_embedding, list(job_skills))
    )


# ── guards ───────────────────────────────────────────────────────────────────


class TestGuards:
    def test_short_text_skips_embedding(self, make_embedder):
        embedder = make_embedder()
        outcome = _match(MatchingEngine(embedder), "React dev")
        assert outcome.match_score == 0
        assert outcome.matched_skills == []
        assert outcome.missing_skills == ["React", "Node.js"]
        assert outcome.explanation == INSUFFICIENT_CONTENT_EXPLANATION
        assert embedder.calls == []

    def test_short_text_is_kept(self, make_embedder):
        outcome = _match(MatchingEngine(make_embedder()), "React dev")
        assert outcome.cv_text == "React dev"

    def test_empty_text(self, make_embedder):
        embedder = make_embedder()
        outcome = _match(MatchingEngine(embedder), "")
        assert outcome.match_score == 0
        assert outcome.cv_text == ""
        assert embedder.calls == []

    def test_exactly_fifty_chars_is_scored(self, make_embedder):
        embedder = make_embedder()
        outcome = _match(MatchingEngine(embedder), "x" * 50)
        assert embedder.calls == ["x" * 50]
        assert outcome.explanation != INSUFFICIENT_CONTENT_EXPLANATION

    def test_embedding_failure(self, make_embedder, sample_cv_text):
        embedder = make_embedder(fail_cv=True)
        outcome = _match(MatchingEngine(embedder), sample_cv_text)
        assert outcome.match_score == 0
        assert outcome.matched_skills == []
        assert outcome.missing_skills == ["React", "Node.js"]
        assert outcome.explanation == ANALYSIS_FAILED_EXPLANATION
        assert outcome.cv_text == sample_cv_text


# ── scoring ──────────────────────────────────────────────────────────────────


class TestMatchCVToJob:
    def test_half_skills_at_threshold_semantic(self, make_embedder, sample_cv_text):
        # cos = 0.5 (not above the boost threshold), one of two skills:
        # 0.4 * 0.5 + 0.6 * 0.5 + 0.10 tier bonus
        embedder = make_embedder(cv_vector=(1.0, 0.0, 1.0, 0.0))
        outcome = _match(
            MatchingEngine(embedder), sample_cv_text, jd_embedding=[1.0, 1.0, 0.0, 0.0]
        )
        assert outcome.semantic_score == pytest.approx(0.5)
        assert outcome.matched_skills == ["React"]
        assert outcome.missing_skills == ["Node.js"]
        assert outcome.match_score == 0.6
        assert "Quite suitable" in outcome.explanation

    def test_semantic_boost(self, matching_engine, sample_cv_text):
        # cos = 0.6: 0.24 + 0.3 + 0.10 + 0.05
        outcome = _match(matching_engine, sample_cv_text)
        assert outcome.semantic_score == pytest.approx(0.6)
        assert outcome.match_score == 0.69

    def test_no_job_skills(self, make_embedder, sample_cv_text):
        embedder = make_embedder(cv_vector=(0.4, 0.84 ** 0.5))
        outcome = _match(MatchingEngine(embedder), sample_cv_text, job_skills=())
        assert outcome.match_score == 0.9
        assert outcome.matched_skills == []
        assert outcome.missing_skills == []

    def test_score_rounded_to_two_decimals(self, make_embedder, sample_cv_text):
        embedder = make_embedder(cv_vector=(0.123, 0.456))
        outcome = _match(MatchingEngine(embedder), sample_cv_text)
        assert outcome.match_score == round(outcome.match_score, 2)

    def test_all_skills_matched(self, make_embedder, sample_cv_text):
        embedder = make_embedder(cv_vector=(1.0, 0.0))
        outcome = _match(MatchingEngine(embedder), sample_cv_text, job_skills=("React", "CSS"))
        assert outcome.matched_skills == ["React", "CSS"]
        assert outcome.match_score == 0.98
        assert "Very suitable" in outcome.explanation

    def test_embeds_cv_once(self, make_embedder, sample_cv_text):
        embedder = make_embedder()
        _match(MatchingEngine(embedder), sample_cv_text)
        assert embedder.calls == [sample_cv_text]
