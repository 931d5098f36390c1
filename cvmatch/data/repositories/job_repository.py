"""
Job repository.

Read-only access to job postings owned by the job-board service.
"""

from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from cvmatch.data.models.job import JobPosting
from cvmatch.utils.config import get_settings
from cvmatch.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class JobRepository(BaseRepository[JobPosting]):
    """Repository for reading job postings."""

    @property
    def collection_name(self) -> str:
        return get_settings().database.jobs_collection

    @property
    def model_class(self) -> type[JobPosting]:
        return JobPosting

    async def get_job_async(self, job_id: str | ObjectId) -> Optional[JobPosting]:
        """Get a job by ID, or None when the ID is malformed or unknown."""
        try:
            return await self.get_by_id_async(job_id)
        except InvalidId:
            logger.warning(f"Invalid job id: {job_id}")
            return None


# Singleton instance
_job_repository: Optional[JobRepository] = None


def get_job_repository() -> JobRepository:
    """Get the job repository singleton instance."""
    global _job_repository
    if _job_repository is None:
        _job_repository = JobRepository()
    return _job_repository
