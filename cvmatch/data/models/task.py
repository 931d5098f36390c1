"""
Queue task data models.

Tasks are stored in MongoDB so that enqueueing survives restarts and any
number of workers can claim them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from .base import BaseDocument


class TaskStatus(str, Enum):
    """Lifecycle of a queued task."""

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class QueueTask(BaseDocument):
    """A unit of work waiting in, or claimed from, the match queue."""

    queue: str
    name: str
    data: dict[str, Any] = Field(default_factory=dict)

    status: TaskStatus = TaskStatus.WAITING
    attempts_made: int = 0
    max_attempts: int = 3
    backoff_delay: float = 5.0

    run_at: datetime = Field(default_factory=datetime.utcnow)
    locked_at: Optional[datetime] = None
    last_error: Optional[str] = None
    remove_on_complete: bool = True

    @property
    def attempts_left(self) -> int:
        """Number of further attempts allowed after the current one."""
        return max(0, self.max_attempts - self.attempts_made)

    class Settings:
        """MongoDB collection settings."""

        name = "match_tasks"
        indexes = [
            [("queue", 1), ("status", 1), ("run_at", 1)],
        ]


class ProcessCVTaskData(BaseModel):
    """Payload of a process-cv task."""

    match_result_id: str
    cv_text: str = ""
    job_id: str
    job_name: str = ""
    job_description: str = ""
    job_skills: list[str] = Field(default_factory=list)
    job_level: str = ""

    # Set when the CV file changed and the text must be re-extracted
    refresh_cv_url: Optional[str] = None


class ReprocessCVTaskData(BaseModel):
    """Payload of a reprocess-cv task."""

    match_result_id: str
