"""
CV processing service.

Entry points called by the job-board application: queue a match when a
candidate applies, reprocess when a job or CV changes, soft-delete with
the application, and the read-only ranking and progress queries.
"""

from typing import Any, Optional

from bson import ObjectId

from cvmatch.data.models.job import JobPosting
from cvmatch.data.models.match_result import (
    CVProcessingStatus,
    MatchResult,
    ProcessingStats,
    RankedCandidate,
)
from cvmatch.data.models.task import ProcessCVTaskData, ReprocessCVTaskData
from cvmatch.data.repositories import (
    JobRepository,
    MatchResultRepository,
    get_job_repository,
    get_match_result_repository,
)
from cvmatch.utils.constants import PROCESS_CV_TASK, REPROCESS_CV_TASK, AuditAction
from cvmatch.utils.logger import LoggerMixin, audit_log

from .task_queue import TaskQueue, get_task_queue


class CVProcessingService(LoggerMixin):
    """Write entry points and read queries for CV match results."""

    def __init__(
        self,
        match_result_repository: Optional[MatchResultRepository] = None,
        job_repository: Optional[JobRepository] = None,
        task_queue: Optional[TaskQueue] = None,
    ):
        self.match_results = match_result_repository or get_match_result_repository()
        self.jobs = job_repository or get_job_repository()
        self.queue = task_queue or get_task_queue()

    # -------------------------------------------------------------------------
    # Enqueue helpers
    # -------------------------------------------------------------------------

    async def _enqueue_process(
        self,
        match_result_id: str | ObjectId,
        cv_text: str,
        job: JobPosting,
        job_id: str | ObjectId,
        refresh_cv_url: Optional[str] = None,
    ) -> None:
        data = ProcessCVTaskData(
            match_result_id=str(match_result_id),
            cv_text=cv_text,
            job_id=str(job_id),
            job_name=job.name,
            job_description=job.description or "",
            job_skills=job.skills,
            job_level=job.level or "",
            refresh_cv_url=refresh_cv_url,
        )
        await self.queue.add(PROCESS_CV_TASK, data.model_dump(), remove_on_complete=True)

    async def _enqueue_reprocess(self, match_result_id: str | ObjectId) -> None:
        data = ReprocessCVTaskData(match_result_id=str(match_result_id))
        await self.queue.add(REPROCESS_CV_TASK, data.model_dump(), remove_on_complete=False)

    @staticmethod
    def _as_job(job: JobPosting | dict[str, Any]) -> JobPosting:
        if isinstance(job, JobPosting):
            return job
        return JobPosting.model_validate(job)

    # -------------------------------------------------------------------------
    # Write path
    # -------------------------------------------------------------------------

    async def queue_cv_processing(
        self,
        cv_id: str | ObjectId,
        user_id: str | ObjectId,
        application_id: Optional[str | ObjectId],
        cv_url: str,
        cv_text: str,
        job: JobPosting | dict[str, Any],
    ) -> MatchResult:
        """
        Create (or reuse) the match result for a new application and queue it.

        Args:
            cv_id: The applicant's CV
            user_id: The applicant
            application_id: The application that triggered the match
            cv_url: Where the CV file is stored
            cv_text: Text extracted from the CV at upload time
            job: The job applied to; its skills may be strings or {name} objects

        Returns:
            The new or existing match result
        """
        job = self._as_job(job)
        if job.id is None:
            raise ValueError("Job must have an id")

        existing = await self.match_results.get_by_cv_and_job_async(cv_id, job.id)

        if existing is not None and existing.is_deleted:
            self.logger.info(
                f"Restoring deleted CV match result {existing.id} for CV {cv_id} and Job {job.id}"
            )
            restored = await self.match_results.restore_async(
                existing.id, application_id, cv_url, cv_text
            )
            await self._enqueue_process(existing.id, cv_text, job, job.id)
            return restored or existing

        if existing is not None:
            self.logger.info(f"CV match result already exists for CV {cv_id} and Job {job.id}")
            if existing.needs_processing:
                await self._enqueue_reprocess(existing.id)
            return existing

        match_result = await self.match_results.create_async(
            MatchResult(
                cv_id=cv_id,
                user_id=user_id,
                job_id=job.id,
                application_id=application_id,
                cv_url=cv_url,
                cv_text=cv_text,
                match_score=None,
                status=CVProcessingStatus.PENDING,
            )
        )
        await self._enqueue_process(match_result.id, cv_text, job, job.id)

        self.logger.info(f"Queued CV processing: CV {cv_id} for Job {job.id}")
        return match_result

    async def reprocess_all_for_job(
        self, job_id: str | ObjectId, job_data: JobPosting | dict[str, Any]
    ) -> int:
        """
        Reset and requeue every match for a job after its details changed.

        Each result is rescored with its cached CV text, or re-extracted
        from its CV file while a replacement is still pending.

        Returns:
            Number of results requeued
        """
        job = self._as_job(job_data)
        results = await self.match_results.find_active_by_job_async(job_id)

        if not results:
            self.logger.info(f"No CV match results found for Job {job_id}")
            return 0

        for result in results:
            await self.match_results.reset_for_reprocess_async(result.id)
            await self._enqueue_process(
                result.id,
                result.cv_text or "",
                job,
                job_id,
                refresh_cv_url=result.pending_cv_url,
            )

        audit_log(
            AuditAction.JOB_REPROCESS_REQUESTED.value,
            {"job_id": str(job_id), "count": len(results)},
            audit_type="REPROCESS",
        )
        self.logger.info(f"Requeued {len(results)} CV processing jobs for updated Job {job_id}")
        return len(results)

    async def reprocess_all_for_cv(
        self,
        cv_id: str | ObjectId,
        new_cv_url: str,
        cv_text: Optional[str] = None,
    ) -> int:
        """
        Reset and requeue every match for a CV after the file was replaced.

        The stale cached text is never reused. When the caller passes the
        new text it is stored and scored directly; otherwise the worker
        extracts it from new_cv_url before scoring. Results whose job no
        longer exists are skipped.

        Returns:
            Number of results requeued
        """
        results = await self.match_results.find_active_by_cv_async(cv_id)

        if not results:
            self.logger.info(f"No job applications found for CV {cv_id}")
            return 0

        requeued = 0
        for result in results:
            job = await self.jobs.get_job_async(result.job_id)
            if job is None:
                self.logger.warning(f"Skipping CV match result {result.id}: job {result.job_id} not found")
                continue

            await self.match_results.reset_for_reprocess_async(
                result.id, cv_url=new_cv_url, cv_text=cv_text or ""
            )
            await self._enqueue_process(
                result.id,
                cv_text or "",
                job,
                result.job_id,
                refresh_cv_url=None if cv_text else new_cv_url,
            )
            requeued += 1

        audit_log(
            AuditAction.CV_REPROCESS_REQUESTED.value,
            {"cv_id": str(cv_id), "cv_url": new_cv_url, "count": requeued},
            audit_type="REPROCESS",
        )
        self.logger.info(f"Requeued {requeued} CV processing jobs for updated CV {cv_id}")
        return requeued

    async def delete_by_application(self, application_id: str | ObjectId) -> int:
        """Soft-delete every match result of a removed application."""
        return await self.match_results.soft_delete_by_application_async(application_id)

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    async def get_ranked_candidates(
        self, job_id: str | ObjectId, top_n: int = 10
    ) -> list[RankedCandidate]:
        """Top completed matches for a job, best score first. Never computes."""
        return await self.match_results.get_ranked_async(job_id, limit=top_n)

    async def get_processing_status(self, job_id: str | ObjectId) -> ProcessingStats:
        """Counts of a job's match results by status."""
        counts = await self.match_results.get_status_counts_for_job_async(job_id)
        return ProcessingStats.from_status_counts(counts)

    async def reprocess_failed(self, job_id: str | ObjectId) -> int:
        """
        Requeue every failed match of a job.

        Stored fields are left as they are; the worker overwrites them.

        Returns:
            Number of results requeued
        """
        failed = await self.match_results.find_active_by_job_async(
            job_id, status=CVProcessingStatus.FAILED
        )
        for result in failed:
            await self._enqueue_reprocess(result.id)

        self.logger.info(f"Requeued {len(failed)} failed CV processing jobs for Job {job_id}")
        return len(failed)


# Singleton instance
_cv_processing_service: Optional[CVProcessingService] = None


def get_cv_processing_service() -> CVProcessingService:
    """Get the CV processing service singleton instance."""
    global _cv_processing_service
    if _cv_processing_service is None:
        _cv_processing_service = CVProcessingService()
    return _cv_processing_service
