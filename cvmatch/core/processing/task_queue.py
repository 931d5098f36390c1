"""
Durable match task queue.

Tasks are rows in MongoDB. Producers insert them, workers claim them
atomically, and failed tasks are rescheduled with exponential backoff
until their attempts run out. Delivery is at-least-once, so handlers
must tolerate running twice for the same task.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from cvmatch.data.models.task import QueueTask, TaskStatus
from cvmatch.data.repositories.task_repository import TaskRepository, get_task_repository
from cvmatch.utils.config import QueueSettings, get_settings
from cvmatch.utils.logger import get_logger

logger = get_logger(__name__)


def compute_backoff(backoff_delay: float, attempts_made: int) -> float:
    """
    Seconds to wait before the next attempt.

    The delay doubles with each failed attempt: with a 5s base the
    retries run after 5s, 10s, 20s and so on.
    """
    return backoff_delay * 2 ** max(0, attempts_made - 1)


class TaskQueue:
    """Producer and consumer API over the persisted task collection."""

    def __init__(
        self,
        name: Optional[str] = None,
        repository: Optional[TaskRepository] = None,
        settings: Optional[QueueSettings] = None,
    ):
        self.settings = settings or get_settings().queue
        self.name = name or self.settings.name
        self.repository = repository or get_task_repository()

    async def add(
        self,
        task_name: str,
        data: dict[str, Any],
        attempts: Optional[int] = None,
        backoff_delay: Optional[float] = None,
        remove_on_complete: bool = True,
        delay: float = 0.0,
    ) -> QueueTask:
        """
        Enqueue a task.

        Args:
            task_name: Handler name (e.g. "process-cv")
            data: JSON-compatible payload
            attempts: Maximum number of attempts (defaults to settings)
            backoff_delay: Base retry delay in seconds (defaults to settings)
            remove_on_complete: Delete the task once it succeeds
            delay: Seconds before the first attempt

        Returns:
            The stored task
        """
        task = QueueTask(
            queue=self.name,
            name=task_name,
            data=data,
            max_attempts=attempts or self.settings.attempts,
            backoff_delay=self.settings.backoff_delay if backoff_delay is None else backoff_delay,
            remove_on_complete=remove_on_complete,
            run_at=datetime.utcnow() + timedelta(seconds=delay),
        )
        task = await self.repository.create_async(task)
        logger.debug(f"Enqueued {task_name} task {task.id} on {self.name}")
        return task

    async def claim(self) -> Optional[QueueTask]:
        """Claim the next due task, or None when nothing is due."""
        return await self.repository.claim_next_async(self.name, self.settings.lock_timeout)

    async def complete(self, task: QueueTask) -> None:
        """Record success: remove the task or keep it as completed."""
        if task.remove_on_complete:
            await self.repository.delete_async(task.id)
        else:
            await self.repository.mark_completed_async(task.id)

    async def fail(self, task: QueueTask, error: str) -> bool:
        """
        Record a failed attempt.

        Returns:
            True if the task was rescheduled, False if it is now failed
            for good
        """
        if task.attempts_left > 0:
            wait = compute_backoff(task.backoff_delay, task.attempts_made)
            await self.repository.reschedule_async(
                task.id, datetime.utcnow() + timedelta(seconds=wait), error
            )
            logger.warning(
                f"Task {task.id} ({task.name}) failed on attempt "
                f"{task.attempts_made}/{task.max_attempts}, retrying in {wait:.0f}s: {error}"
            )
            return True

        await self.repository.mark_failed_async(task.id, error)
        logger.error(
            f"Task {task.id} ({task.name}) failed after {task.attempts_made} attempts: {error}"
        )
        return False

    async def count(self, status: Optional[TaskStatus] = None) -> int:
        """Count tasks on this queue, optionally by status."""
        query: dict[str, Any] = {"queue": self.name}
        if status:
            query["status"] = TaskStatus(status).value
        return await self.repository.count_async(query)


# Singleton instance
_task_queue: Optional[TaskQueue] = None


def get_task_queue() -> TaskQueue:
    """Get the match task queue singleton instance."""
    global _task_queue
    if _task_queue is None:
        _task_queue = TaskQueue()
    return _task_queue
