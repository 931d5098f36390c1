"""
CV-job matching engine.

Scores a CV against a job description by combining embedding similarity
with required-skill overlap.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from cvmatch.ml.embeddings import EmbeddingModel, get_embedding_model
from cvmatch.utils.constants import (
    ANALYSIS_FAILED_EXPLANATION,
    INSUFFICIENT_CONTENT_EXPLANATION,
    MIN_CV_TEXT_LENGTH,
)
from cvmatch.utils.logger import get_logger

from .scoring import (
    compute_score,
    cosine_similarity,
    extract_skill_match,
    generate_explanation,
)

logger = get_logger(__name__)


@dataclass
class MatchOutcome:
    """Result of scoring one CV against one job."""

    cv_text: str = ""
    match_score: float = 0.0
    matched_skills: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)
    explanation: str = ""
    semantic_score: float = 0.0


class MatchingEngine:
    """
    Engine for scoring CVs against job descriptions.

    The embedding model is injected so that one loaded model serves every
    caller in the process.
    """

    def __init__(self, embedding_model: Optional[EmbeddingModel] = None):
        self.embedding_model = embedding_model or get_embedding_model()

    async def match_cv_to_job(
        self,
        cv_text: str,
        jd_text: str,
        jd_embedding: Sequence[float],
        job_skills: Sequence[str],
    ) -> MatchOutcome:
        """
        Match a CV against a job description.

        Args:
            cv_text: Pre-extracted CV text
            jd_text: Flattened job description (see build_jd_text)
            jd_embedding: Embedding of jd_text
            job_skills: Skills required by the job

        Returns:
            MatchOutcome with the score rounded to two decimals
        """
        if not cv_text or len(cv_text) < MIN_CV_TEXT_LENGTH:
            logger.debug(f"CV text too short to score ({len(cv_text or '')} chars)")
            return MatchOutcome(
                cv_text=cv_text or "",
                missing_skills=list(job_skills),
                explanation=INSUFFICIENT_CONTENT_EXPLANATION,
            )

        cv_embedding = await self.embedding_model.embed(cv_text)
        if not cv_embedding:
            return MatchOutcome(
                cv_text=cv_text,
                missing_skills=list(job_skills),
                explanation=ANALYSIS_FAILED_EXPLANATION,
            )

        semantic_score = cosine_similarity(jd_embedding, cv_embedding)
        skill_match = extract_skill_match(cv_text, job_skills)
        score = compute_score(
            semantic_score, len(skill_match.matched_skills), len(job_skills)
        )
        explanation = generate_explanation(
            score, skill_match.matched_skills, skill_match.missing_skills
        )

        logger.info(
            f"CV match: semantic={semantic_score:.3f}, "
            f"skills={len(skill_match.matched_skills)}/{len(job_skills)}, final={score:.3f}"
        )

        return MatchOutcome(
            cv_text=cv_text,
            match_score=round(score, 2),
            matched_skills=skill_match.matched_skills,
            missing_skills=skill_match.missing_skills,
            explanation=explanation,
            semantic_score=semantic_score,
        )


# Singleton instance
_matching_engine: Optional[MatchingEngine] = None


def get_matching_engine() -> MatchingEngine:
    """Get the matching engine singleton instance."""
    global _matching_engine
    if _matching_engine is None:
        _matching_engine = MatchingEngine()
    return _matching_engine
