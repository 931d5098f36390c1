"""
Queue task repository.

Stores match tasks in MongoDB and hands them to workers with an atomic
claim, so each waiting task is delivered to one worker at a time.
"""

from datetime import datetime, timedelta
from typing import Optional

from bson import ObjectId
from pymongo import ReturnDocument

from cvmatch.data.models.task import QueueTask, TaskStatus
from cvmatch.utils.config import get_settings
from cvmatch.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)

LOCK_EXPIRED_ERROR = "Lock expired on the final attempt"


class TaskRepository(BaseRepository[QueueTask]):
    """Repository for queue task document operations."""

    @property
    def collection_name(self) -> str:
        return get_settings().queue.collection_name

    @property
    def model_class(self) -> type[QueueTask]:
        return QueueTask

    async def claim_next_async(
        self, queue: str, lock_timeout: float
    ) -> Optional[QueueTask]:
        """
        Atomically claim the next due task of a queue.

        Waiting tasks whose run_at has passed are eligible, as are active
        tasks whose lock expired (the worker holding them died) and that
        still have attempts left. An expired task already on its last
        attempt is failed instead. Claiming counts as an attempt.
        """
        collection = self._get_async_collection()
        now = datetime.utcnow()
        stale_before = now - timedelta(seconds=lock_timeout)
        stale = {"status": TaskStatus.ACTIVE.value, "locked_at": {"$lte": stale_before}}

        expired = await collection.update_many(
            {
                "queue": queue,
                **stale,
                "$expr": {"$gte": ["$attempts_made", "$max_attempts"]},
            },
            {
                "$set": {
                    "status": TaskStatus.FAILED.value,
                    "locked_at": None,
                    "last_error": LOCK_EXPIRED_ERROR,
                    "updated_at": now,
                }
            },
        )
        if expired.modified_count:
            logger.warning(
                f"Failed {expired.modified_count} task(s) on {queue}: lock expired on final attempt"
            )

        document = await collection.find_one_and_update(
            {
                "queue": queue,
                "$or": [
                    {"status": TaskStatus.WAITING.value, "run_at": {"$lte": now}},
                    {**stale, "$expr": {"$lt": ["$attempts_made", "$max_attempts"]}},
                ],
            },
            {
                "$set": {
                    "status": TaskStatus.ACTIVE.value,
                    "locked_at": now,
                    "updated_at": now,
                },
                "$inc": {"attempts_made": 1},
            },
            sort=[("run_at", 1)],
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(document)

    async def reschedule_async(
        self, id_value: str | ObjectId, run_at: datetime, error: str
    ) -> Optional[QueueTask]:
        """Put a failed task back in the queue for a later attempt."""
        return await self.update_async(
            id_value,
            {
                "status": TaskStatus.WAITING.value,
                "run_at": run_at,
                "locked_at": None,
                "last_error": error,
            },
        )

    async def mark_failed_async(
        self, id_value: str | ObjectId, error: str
    ) -> Optional[QueueTask]:
        """Keep a task that exhausted its attempts, for inspection."""
        return await self.update_async(
            id_value,
            {
                "status": TaskStatus.FAILED.value,
                "locked_at": None,
                "last_error": error,
            },
        )

    async def mark_completed_async(self, id_value: str | ObjectId) -> Optional[QueueTask]:
        """Record a completed task that is kept instead of removed."""
        return await self.update_async(
            id_value, {"status": TaskStatus.COMPLETED.value, "locked_at": None}
        )


# Singleton instance
_task_repository: Optional[TaskRepository] = None


def get_task_repository() -> TaskRepository:
    """Get the task repository singleton instance."""
    global _task_repository
    if _task_repository is None:
        _task_repository = TaskRepository()
    return _task_repository
