"""
Pydantic data models for the CV match pipeline.

This module provides all data models used throughout the application,
including database documents, embedded models, and task payloads.
"""

# Base models
from .base import BaseDocument, EmbeddedModel, PyObjectId, TimestampMixin

# Job models
from .job import JobPosting

# Match result models
from .match_result import (
    ApplicationInfo,
    CandidateInfo,
    CVInfo,
    CVProcessingStatus,
    MatchResult,
    ProcessingStats,
    RankedCandidate,
)

# Queue models
from .task import (
    ProcessCVTaskData,
    QueueTask,
    ReprocessCVTaskData,
    TaskStatus,
)

__all__ = [
    # Base
    "BaseDocument",
    "EmbeddedModel",
    "PyObjectId",
    "TimestampMixin",
    # Job
    "JobPosting",
    # Match result
    "ApplicationInfo",
    "CandidateInfo",
    "CVInfo",
    "CVProcessingStatus",
    "MatchResult",
    "ProcessingStats",
    "RankedCandidate",
    # Queue
    "ProcessCVTaskData",
    "QueueTask",
    "ReprocessCVTaskData",
    "TaskStatus",
]
