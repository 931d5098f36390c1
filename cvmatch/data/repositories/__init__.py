"""
Database repositories for pipeline data access.

This module provides repository classes for the collections the
pipeline reads and writes, implementing the repository pattern.
"""

# Base repository
from .base import BaseRepository

# Entity repositories
from .job_repository import JobRepository, get_job_repository
from .match_result_repository import MatchResultRepository, get_match_result_repository
from .task_repository import TaskRepository, get_task_repository

__all__ = [
    # Base
    "BaseRepository",
    # Job
    "JobRepository",
    "get_job_repository",
    # Match result
    "MatchResultRepository",
    "get_match_result_repository",
    # Task
    "TaskRepository",
    "get_task_repository",
]
