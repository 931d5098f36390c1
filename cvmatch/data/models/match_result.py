"""
CV match result data models.

Defines the persisted result of scoring one CV against one job, the
ranking view returned to HR, and per-job processing statistics.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .base import BaseDocument, EmbeddedModel, PyObjectId


class CVProcessingStatus(str, Enum):
    """Processing state of a match result."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class MatchResult(BaseDocument):
    """
    Match result for a single (CV, job) pair.

    Created PENDING when a candidate applies, then mutated only by the
    worker. Never hard-deleted by normal flows.
    """

    # References
    cv_id: PyObjectId
    user_id: PyObjectId
    job_id: PyObjectId
    application_id: Optional[PyObjectId] = None

    # Source document
    cv_url: Optional[str] = None
    cv_text: Optional[str] = None
    cv_embedding: list[float] = Field(default_factory=list)

    # Score (meaningful only when COMPLETED)
    match_score: Optional[float] = Field(0.0, ge=0, le=1)
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    explanation: Optional[str] = None

    # Processing state
    status: CVProcessingStatus = CVProcessingStatus.PENDING
    error_message: Optional[str] = None
    processed_at: Optional[datetime] = None

    is_deleted: bool = False

    @property
    def pending_cv_url(self) -> Optional[str]:
        """CV file to extract from before scoring, set while no text is cached."""
        if self.cv_text:
            return None
        return self.cv_url

    @property
    def needs_processing(self) -> bool:
        """Check if the match should be (re)queued when requested again."""
        return self.status in (CVProcessingStatus.PENDING, CVProcessingStatus.FAILED)

    class Settings:
        """MongoDB collection settings."""

        name = "cv_match_results"
        indexes = [
            [("job_id", 1), ("match_score", -1)],
            [("cv_id", 1), ("job_id", 1)],  # Compound unique index
            "application_id",
            "user_id",
            "status",
        ]


class CandidateInfo(EmbeddedModel):
    """Candidate fields shown next to a ranked match."""

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None


class CVInfo(EmbeddedModel):
    """CV fields shown next to a ranked match."""

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    url: Optional[str] = None
    title: Optional[str] = None


class ApplicationInfo(EmbeddedModel):
    """Application fields shown next to a ranked match."""

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    status: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class RankedCandidate(MatchResult):
    """A completed match with candidate, CV and application populated."""

    candidate: Optional[CandidateInfo] = None
    cv: Optional[CVInfo] = None
    application: Optional[ApplicationInfo] = None


class ProcessingStats(BaseModel):
    """Counts of non-deleted match results for a job, by status."""

    total: int = 0
    completed: int = 0
    processing: int = 0
    pending: int = 0
    failed: int = 0

    @classmethod
    def from_status_counts(cls, counts: dict[str, int]) -> "ProcessingStats":
        """Build stats from a {status: count} mapping."""
        return cls(
            total=sum(counts.values()),
            completed=counts.get(CVProcessingStatus.COMPLETED.value, 0),
            processing=counts.get(CVProcessingStatus.PROCESSING.value, 0),
            pending=counts.get(CVProcessingStatus.PENDING.value, 0),
            failed=counts.get(CVProcessingStatus.FAILED.value, 0),
        )

    @property
    def progress(self) -> float:
        """Fraction of matches that reached a terminal state."""
        if self.total == 0:
            return 0.0
        return (self.completed + self.failed) / self.total
