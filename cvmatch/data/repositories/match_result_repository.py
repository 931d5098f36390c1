"""
Match result repository.

Provides data access for CV match results: the per-pair state machine
writes used by the worker, the bulk resets used when a job or CV
changes, and the read-only ranking and statistics queries.
"""

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId

from cvmatch.data.models.match_result import (
    CVProcessingStatus,
    MatchResult,
    RankedCandidate,
)
from cvmatch.utils.config import get_settings
from cvmatch.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


# Fields cleared whenever a result goes back to PENDING
RESET_FIELDS: dict[str, Any] = {
    "status": CVProcessingStatus.PENDING.value,
    "match_score": None,
    "matched_skills": [],
    "missing_skills": [],
    "explanation": None,
    "error_message": None,
}


class MatchResultRepository(BaseRepository[MatchResult]):
    """Repository for CV match result document operations."""

    @property
    def collection_name(self) -> str:
        return "cv_match_results"

    @property
    def model_class(self) -> type[MatchResult]:
        return MatchResult

    # -------------------------------------------------------------------------
    # Query Operations
    # -------------------------------------------------------------------------

    async def get_by_cv_and_job_async(
        self,
        cv_id: str | ObjectId,
        job_id: str | ObjectId,
    ) -> Optional[MatchResult]:
        """Get the result for a (CV, job) pair, including soft-deleted ones."""
        return await self.find_one_async(
            {
                "cv_id": self._to_object_id(cv_id),
                "job_id": self._to_object_id(job_id),
            }
        )

    async def find_active_by_job_async(
        self,
        job_id: str | ObjectId,
        status: Optional[CVProcessingStatus] = None,
    ) -> list[MatchResult]:
        """Get all non-deleted results for a job, optionally by status."""
        query: dict[str, Any] = {
            "job_id": self._to_object_id(job_id),
            "is_deleted": False,
        }
        if status:
            query["status"] = CVProcessingStatus(status).value
        return await self.find_async(query, limit=None)

    async def find_active_by_cv_async(self, cv_id: str | ObjectId) -> list[MatchResult]:
        """Get all non-deleted results for a CV across every job."""
        return await self.find_async(
            {"cv_id": self._to_object_id(cv_id), "is_deleted": False},
            limit=None,
        )

    # -------------------------------------------------------------------------
    # State Transitions
    # -------------------------------------------------------------------------

    async def mark_processing_async(self, id_value: str | ObjectId) -> Optional[MatchResult]:
        """Move a result to PROCESSING."""
        return await self.update_async(
            id_value, {"status": CVProcessingStatus.PROCESSING.value}
        )

    async def mark_completed_async(
        self,
        id_value: str | ObjectId,
        cv_text: str,
        cv_embedding: list[float],
        match_score: float,
        matched_skills: list[str],
        missing_skills: list[str],
        explanation: str,
    ) -> Optional[MatchResult]:
        """Store a finished score and move the result to COMPLETED in one write."""
        return await self.update_async(
            id_value,
            {
                "cv_text": cv_text,
                "cv_embedding": cv_embedding,
                "match_score": match_score,
                "matched_skills": matched_skills,
                "missing_skills": missing_skills,
                "explanation": explanation,
                "status": CVProcessingStatus.COMPLETED.value,
                "error_message": None,
                "processed_at": datetime.utcnow(),
            },
        )

    async def mark_failed_async(
        self, id_value: str | ObjectId, error_message: str
    ) -> Optional[MatchResult]:
        """Move a result to FAILED with the reason."""
        return await self.update_async(
            id_value,
            {
                "status": CVProcessingStatus.FAILED.value,
                "error_message": error_message,
            },
        )

    async def reset_for_reprocess_async(
        self,
        id_value: str | ObjectId,
        cv_url: Optional[str] = None,
        cv_text: Optional[str] = None,
    ) -> Optional[MatchResult]:
        """Clear score fields and move the result back to PENDING."""
        update_data = dict(RESET_FIELDS)
        if cv_url is not None:
            update_data["cv_url"] = cv_url
        if cv_text is not None:
            update_data["cv_text"] = cv_text
        return await self.update_async(id_value, update_data)

    async def restore_async(
        self,
        id_value: str | ObjectId,
        application_id: Optional[str | ObjectId],
        cv_url: Optional[str],
        cv_text: Optional[str],
    ) -> Optional[MatchResult]:
        """Bring a soft-deleted result back as PENDING for a new application."""
        update_data = dict(RESET_FIELDS)
        update_data.update(
            {
                "is_deleted": False,
                "application_id": self._to_object_id(application_id) if application_id else None,
                "cv_url": cv_url,
                "cv_text": cv_text,
            }
        )
        return await self.update_async(id_value, update_data)

    async def soft_delete_by_application_async(
        self, application_id: str | ObjectId
    ) -> int:
        """Mark every result of an application as deleted."""
        count = await self.update_many_async(
            {"application_id": self._to_object_id(application_id)},
            {"is_deleted": True},
        )
        logger.debug(f"Soft-deleted {count} match results for application {application_id}")
        return count

    # -------------------------------------------------------------------------
    # Ranking Operations
    # -------------------------------------------------------------------------

    def _lookup_stage(self, from_collection: str, local_field: str, alias: str, fields: list[str]) -> list[dict]:
        """Build a $lookup + $unwind pair that populates one reference."""
        return [
            {
                "$lookup": {
                    "from": from_collection,
                    "localField": local_field,
                    "foreignField": "_id",
                    "pipeline": [{"$project": {field: 1 for field in fields}}],
                    "as": alias,
                }
            },
            {"$unwind": {"path": f"${alias}", "preserveNullAndEmptyArrays": True}},
        ]

    async def get_ranked_async(
        self, job_id: str | ObjectId, limit: int = 10
    ) -> list[RankedCandidate]:
        """
        Get the top completed results for a job, best score first.

        Candidate, CV and application fields are joined in from the
        collections owned by the job-board service.
        """
        if limit < 1:
            return []

        db_settings = get_settings().database
        collection = self._get_async_collection()

        pipeline: list[dict[str, Any]] = [
            {
                "$match": {
                    "job_id": self._to_object_id(job_id),
                    "status": CVProcessingStatus.COMPLETED.value,
                    "is_deleted": False,
                }
            },
            {"$sort": {"match_score": -1}},
            {"$limit": limit},
            {"$project": {"cv_embedding": 0}},
        ]
        pipeline += self._lookup_stage(
            db_settings.users_collection, "user_id", "candidate", ["name", "email", "avatar"]
        )
        pipeline += self._lookup_stage(
            db_settings.cvs_collection, "cv_id", "cv", ["url", "title"]
        )
        pipeline += self._lookup_stage(
            db_settings.applications_collection, "application_id", "application", ["status", "createdAt"]
        )

        documents = await collection.aggregate(pipeline).to_list(length=limit)
        return [RankedCandidate.model_validate(doc) for doc in documents]

    # -------------------------------------------------------------------------
    # Aggregation Operations
    # -------------------------------------------------------------------------

    async def get_status_counts_for_job_async(
        self, job_id: str | ObjectId
    ) -> dict[str, int]:
        """Get count of non-deleted results by status for a job."""
        collection = self._get_async_collection()
        pipeline = [
            {"$match": {"job_id": self._to_object_id(job_id), "is_deleted": False}},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ]
        results = await collection.aggregate(pipeline).to_list(length=None)
        return {r["_id"]: r["count"] for r in results}


# Singleton instance
_match_result_repository: Optional[MatchResultRepository] = None


def get_match_result_repository() -> MatchResultRepository:
    """Get the match result repository singleton instance."""
    global _match_result_repository
    if _match_result_repository is None:
        _match_result_repository = MatchResultRepository()
    return _match_result_repository
