"""
Application-wide constants for the CV match pipeline.

Scoring constants are exact; changing any of them changes every stored
match score on the next reprocess.
"""

from enum import Enum
from typing import Final


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "cvmatch"
APP_DISPLAY_NAME: Final[str] = "CV to Job Matching Pipeline"
VERSION: Final[str] = "0.1.0"


# =============================================================================
# File Types
# =============================================================================

SUPPORTED_CV_FORMATS: Final[tuple[str, ...]] = (
    ".pdf",
    ".docx",
    ".doc",
)


# =============================================================================
# Matching Constants
# =============================================================================

# CV texts shorter than this are scored 0 without embedding
MIN_CV_TEXT_LENGTH: Final[int] = 50

# Fusion weights when the job lists required skills
SEMANTIC_WEIGHT: Final[float] = 0.4
SKILL_WEIGHT: Final[float] = 0.6

# Jobs without skills: min(cap, semantic * factor + offset)
NO_SKILLS_FACTOR: Final[float] = 1.5
NO_SKILLS_OFFSET: Final[float] = 0.3
NO_SKILLS_CAP: Final[float] = 0.95

# (minimum skill ratio, bonus, cap) - first applicable tier only
SKILL_BONUS_TIERS: Final[tuple[tuple[float, float, float], ...]] = (
    (0.8, 0.20, 0.98),
    (0.6, 0.15, 0.95),
    (0.4, 0.10, 0.90),
)

# Extra bonus when the CV is semantically close to the job
SEMANTIC_BOOST_THRESHOLD: Final[float] = 0.5
SEMANTIC_BOOST: Final[float] = 0.05
SEMANTIC_BOOST_CAP: Final[float] = 0.98

# Final clamp when the job lists required skills
SCORE_FLOOR: Final[float] = 0.10
SCORE_CEILING: Final[float] = 0.98

# Explanation band thresholds
SUITABILITY_THRESHOLDS: Final[dict[str, float]] = {
    "very_suitable": 0.8,
    "quite_suitable": 0.6,
    "partially_suitable": 0.4,
}

INSUFFICIENT_CONTENT_EXPLANATION: Final[str] = "Could not extract content from the CV."
ANALYSIS_FAILED_EXPLANATION: Final[str] = "Could not analyze the CV."


# =============================================================================
# Queue Constants
# =============================================================================

PROCESS_CV_TASK: Final[str] = "process-cv"
REPROCESS_CV_TASK: Final[str] = "reprocess-cv"


# =============================================================================
# Enums
# =============================================================================


class SuitabilityBand(str, Enum):
    """Categorical bands used to explain a match score."""

    VERY_SUITABLE = "very_suitable"
    QUITE_SUITABLE = "quite_suitable"
    PARTIALLY_SUITABLE = "partially_suitable"
    LOW = "low"

    @classmethod
    def from_score(cls, score: float) -> "SuitabilityBand":
        """Convert a numeric score to a band."""
        if score >= SUITABILITY_THRESHOLDS["very_suitable"]:
            return cls.VERY_SUITABLE
        elif score >= SUITABILITY_THRESHOLDS["quite_suitable"]:
            return cls.QUITE_SUITABLE
        elif score >= SUITABILITY_THRESHOLDS["partially_suitable"]:
            return cls.PARTIALLY_SUITABLE
        return cls.LOW


class AuditAction(str, Enum):
    """Types of actions that are written to the audit log."""

    CV_MATCH_SCORED = "cv_match_scored"
    CV_MATCH_FAILED = "cv_match_failed"
    JOB_REPROCESS_REQUESTED = "job_reprocess_requested"
    CV_REPROCESS_REQUESTED = "cv_reprocess_requested"
