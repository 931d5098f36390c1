"""
Similarity and score fusion for CV-job matching.

The match score blends the cosine similarity of the CV and job embeddings
with the share of required job skills found in the CV text, then applies
tiered bonuses and clamps the result. All functions here are pure.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from cvmatch.utils.constants import (
    NO_SKILLS_CAP,
    NO_SKILLS_FACTOR,
    NO_SKILLS_OFFSET,
    SCORE_CEILING,
    SCORE_FLOOR,
    SEMANTIC_BOOST,
    SEMANTIC_BOOST_CAP,
    SEMANTIC_BOOST_THRESHOLD,
    SEMANTIC_WEIGHT,
    SKILL_BONUS_TIERS,
    SKILL_WEIGHT,
    SuitabilityBand,
)


@dataclass
class SkillMatchResult:
    """Job skills split by whether the CV mentions them, in job order."""

    matched_skills: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.matched_skills) + len(self.missing_skills)

    @property
    def ratio(self) -> float:
        """Share of job skills found; 0 when the job lists none."""
        if self.total == 0:
            return 0.0
        return len(self.matched_skills) / self.total


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0 for empty vectors, vectors of different lengths, or a zero
    magnitude. Values are not clipped, so opposite vectors give a
    negative result.
    """
    if len(vec_a) == 0 or len(vec_b) == 0 or len(vec_a) != len(vec_b):
        return 0.0

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)

    magnitude = np.linalg.norm(a) * np.linalg.norm(b)
    if magnitude == 0:
        return 0.0

    return float(np.dot(a, b) / magnitude)


def skill_variants(skill: str) -> list[str]:
    """Spellings of a skill to look for in CV text."""
    lowered = skill.lower()
    variants = [lowered, lowered.replace(".", "")]

    if lowered.endswith("javascript"):
        variants.append(lowered[: -len("javascript")] + "js")
    elif lowered.endswith("js"):
        variants.append(lowered[: -len("js")] + "javascript")

    return variants


def extract_skill_match(cv_text: str, job_skills: Sequence[str]) -> SkillMatchResult:
    """
    Split job skills into those mentioned in the CV and those missing.

    Matching is case-insensitive substring containment of any variant
    from skill_variants, so "Node.js" matches "nodejs" and "ReactJS"
    matches "reactjavascript" as well as the literal spelling.
    """
    text_lower = (cv_text or "").lower()
    result = SkillMatchResult()

    for skill in job_skills:
        if any(variant and variant in text_lower for variant in skill_variants(skill)):
            result.matched_skills.append(skill)
        else:
            result.missing_skills.append(skill)

    return result


def compute_score(
    semantic_score: float,
    matched_count: int,
    job_skill_count: int,
) -> float:
    """
    Fuse semantic similarity and skill overlap into one score.

    Args:
        semantic_score: Cosine similarity of CV and job embeddings
        matched_count: Number of job skills found in the CV
        job_skill_count: Number of skills the job requires

    Returns:
        Unrounded score in [0, 1]
    """
    if job_skill_count == 0:
        return min(NO_SKILLS_CAP, semantic_score * NO_SKILLS_FACTOR + NO_SKILLS_OFFSET)

    skill_ratio = matched_count / job_skill_count
    score = semantic_score * SEMANTIC_WEIGHT + skill_ratio * SKILL_WEIGHT

    for min_ratio, bonus, cap in SKILL_BONUS_TIERS:
        if skill_ratio >= min_ratio:
            score = min(cap, score + bonus)
            break

    if semantic_score > SEMANTIC_BOOST_THRESHOLD:
        score = min(SEMANTIC_BOOST_CAP, score + SEMANTIC_BOOST)

    return max(SCORE_FLOOR, min(SCORE_CEILING, score))


def generate_explanation(
    match_score: float,
    matched_skills: Sequence[str],
    missing_skills: Sequence[str],
) -> str:
    """Short human-readable summary of a match score."""
    percent = round(match_score * 100)
    band = SuitabilityBand.from_score(match_score)

    if band == SuitabilityBand.VERY_SUITABLE:
        explanation = f"Very suitable candidate ({percent}%)."
        if matched_skills:
            explanation += f" Has {', '.join(matched_skills[:3])}."
    elif band == SuitabilityBand.QUITE_SUITABLE:
        explanation = f"Quite suitable candidate ({percent}%)."
        if matched_skills:
            explanation += f" Has {', '.join(matched_skills[:2])}."
        if missing_skills:
            explanation += f" Needs to add: {', '.join(missing_skills[:2])}."
    elif band == SuitabilityBand.PARTIALLY_SUITABLE:
        explanation = f"Partially suitable candidate ({percent}%)."
        if missing_skills:
            explanation += f" Missing: {', '.join(missing_skills[:3])}."
    else:
        explanation = (
            f"Low suitability ({percent}%). "
            "The profile does not match the job requirements well."
        )

    return explanation


def build_jd_text(
    name: Optional[str],
    description: Optional[str] = None,
    skills: Optional[Sequence[str]] = None,
    level: Optional[str] = None,
) -> str:
    """Flatten job fields into the text that gets embedded, one field per line."""
    parts = [
        f"Job Title: {name}" if name else "",
        f"Description: {description}" if description else "",
        f"Required Skills: {', '.join(skills)}" if skills else "",
        f"Level: {level}" if level else "",
    ]
    return "\n".join(part for part in parts if part)
