"""CV-job matching engine module."""

from .matching_engine import (
    MatchingEngine,
    MatchOutcome,
    get_matching_engine,
)
from .scoring import (
    SkillMatchResult,
    build_jd_text,
    compute_score,
    cosine_similarity,
    extract_skill_match,
    generate_explanation,
    skill_variants,
)

__all__ = [
    "MatchingEngine",
    "MatchOutcome",
    "get_matching_engine",
    "SkillMatchResult",
    "build_jd_text",
    "compute_score",
    "cosine_similarity",
    "extract_skill_match",
    "generate_explanation",
    "skill_variants",
]
