"""
Match task handlers.

Runs inside the worker. A process-cv task scores one match result and
moves it PENDING -> PROCESSING -> COMPLETED, or to FAILED when anything
raises. A reprocess-cv task rebuilds the process-cv payload from the
stored result and its job.
"""

from typing import Any, Awaitable, Callable, Optional

from cvmatch.core.matching import MatchingEngine, build_jd_text, get_matching_engine
from cvmatch.data.models.task import ProcessCVTaskData, QueueTask, ReprocessCVTaskData
from cvmatch.data.repositories import (
    JobRepository,
    MatchResultRepository,
    get_job_repository,
    get_match_result_repository,
)
from cvmatch.ml.nlp.extractors import extract_text
from cvmatch.utils.constants import (
    MIN_CV_TEXT_LENGTH,
    PROCESS_CV_TASK,
    REPROCESS_CV_TASK,
    AuditAction,
)
from cvmatch.utils.logger import LoggerMixin, audit_log


class UnknownTaskError(ValueError):
    """Raised when a task has no registered handler."""


class CVProcessingProcessor(LoggerMixin):
    """Handlers for the tasks on the CV processing queue."""

    def __init__(
        self,
        matching_engine: Optional[MatchingEngine] = None,
        match_result_repository: Optional[MatchResultRepository] = None,
        job_repository: Optional[JobRepository] = None,
    ):
        self.matching_engine = matching_engine or get_matching_engine()
        self.match_results = match_result_repository or get_match_result_repository()
        self.jobs = job_repository or get_job_repository()

        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            PROCESS_CV_TASK: lambda data: self.handle_process_cv(
                ProcessCVTaskData.model_validate(data)
            ),
            REPROCESS_CV_TASK: lambda data: self.handle_reprocess_cv(
                ReprocessCVTaskData.model_validate(data)
            ),
        }

    @property
    def task_names(self) -> list[str]:
        return list(self._handlers)

    async def handle(self, task: QueueTask) -> Any:
        """Dispatch a claimed task to its handler."""
        handler = self._handlers.get(task.name)
        if handler is None:
            raise UnknownTaskError(f"No handler for task '{task.name}'")
        return await handler(task.data)

    async def handle_process_cv(self, data: ProcessCVTaskData) -> dict[str, Any]:
        """
        Score a CV against a job and persist the result.

        Any exception marks the result FAILED and is re-raised so the
        queue can retry the task.
        """
        result_id = data.match_result_id
        self.logger.info(f"Processing CV match: {result_id}")

        try:
            await self.match_results.mark_processing_async(result_id)

            cv_text = data.cv_text
            if data.refresh_cv_url:
                cv_text = await extract_text(data.refresh_cv_url)
                self.logger.debug(
                    f"Re-extracted {len(cv_text)} chars from {data.refresh_cv_url}"
                )

            embedder = self.matching_engine.embedding_model
            jd_text = build_jd_text(
                data.job_name, data.job_description, data.job_skills, data.job_level
            )
            jd_embedding = await embedder.embed(jd_text)

            outcome = await self.matching_engine.match_cv_to_job(
                cv_text, jd_text, jd_embedding, data.job_skills
            )

            # Cached for later reuse; scoring computed its own CV embedding
            cv_embedding = []
            if len(outcome.cv_text) >= MIN_CV_TEXT_LENGTH:
                cv_embedding = await embedder.embed(outcome.cv_text)

            await self.match_results.mark_completed_async(
                result_id,
                cv_text=outcome.cv_text,
                cv_embedding=cv_embedding,
                match_score=outcome.match_score,
                matched_skills=outcome.matched_skills,
                missing_skills=outcome.missing_skills,
                explanation=outcome.explanation,
            )

        except Exception as e:
            self.logger.error(f"CV processing failed: {result_id}: {e}")
            await self.match_results.mark_failed_async(result_id, str(e) or type(e).__name__)
            audit_log(
                AuditAction.CV_MATCH_FAILED.value,
                {"match_result_id": result_id, "job_id": data.job_id, "error": str(e)},
            )
            raise

        self.logger.info(f"CV match completed: {result_id}, score: {outcome.match_score}")
        audit_log(
            AuditAction.CV_MATCH_SCORED.value,
            {
                "match_result_id": result_id,
                "job_id": data.job_id,
                "match_score": outcome.match_score,
                "semantic_score": round(outcome.semantic_score, 4),
                "matched_skills": outcome.matched_skills,
                "missing_skills": outcome.missing_skills,
            },
        )
        return {"success": True, "match_score": outcome.match_score}

    async def handle_reprocess_cv(self, data: ReprocessCVTaskData) -> Optional[dict[str, Any]]:
        """
        Re-score a stored result with its cached CV text.

        A result whose text was cleared by a CV replacement is extracted
        again from its file first.

        Does nothing when the result or its job no longer exists.
        """
        result = await self.match_results.get_by_id_async(data.match_result_id)
        if result is None:
            self.logger.warning(f"CV match result not found: {data.match_result_id}")
            return None

        job = await self.jobs.get_job_async(result.job_id)
        if job is None:
            self.logger.warning(
                f"Job {result.job_id} not found for CV match result {data.match_result_id}"
            )
            return None

        return await self.handle_process_cv(
            ProcessCVTaskData(
                match_result_id=data.match_result_id,
                cv_text=result.cv_text or "",
                job_id=str(job.id),
                job_name=job.name,
                job_description=job.description or "",
                job_skills=job.skills,
                job_level=job.level or "",
                refresh_cv_url=result.pending_cv_url,
            )
        )
