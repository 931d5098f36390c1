"""
Queue worker.

Polls the match task queue, runs claimed tasks through the processor with
bounded concurrency, and reports each outcome back to the queue so failed
tasks are retried with backoff.
"""

import asyncio
from typing import Optional

from cvmatch.data.models.task import QueueTask
from cvmatch.ml.embeddings import EmbeddingModel
from cvmatch.ml.nlp.extractors import ExtractorFactory
from cvmatch.utils.config import get_settings
from cvmatch.utils.logger import LoggerMixin

from .processor import CVProcessingProcessor
from .task_queue import TaskQueue, get_task_queue


class Worker(LoggerMixin):
    """
    Long-running consumer of the CV processing queue.

    Usage:
        worker = Worker()
        await worker.run()      # until worker.stop() is called
    """

    def __init__(
        self,
        processor: Optional[CVProcessingProcessor] = None,
        queue: Optional[TaskQueue] = None,
        concurrency: Optional[int] = None,
        poll_interval: Optional[float] = None,
    ):
        settings = get_settings()
        self.processor = processor or CVProcessingProcessor()
        self.queue = queue or get_task_queue()
        self.concurrency = concurrency or settings.queue.concurrency
        self.poll_interval = settings.queue.poll_interval if poll_interval is None else poll_interval
        self.preload_model = settings.ml.preload_model

        self._stopping: Optional[asyncio.Event] = None
        self._running: set[asyncio.Task] = set()
        self.processed = 0
        self.failed = 0

    @property
    def embedding_model(self) -> EmbeddingModel:
        return self.processor.matching_engine.embedding_model

    async def start(self) -> None:
        """Check parser libraries and warm up the embedding model."""
        availability = ExtractorFactory.check_availability()
        self.logger.info(f"Extractor availability: {availability}")

        if self.preload_model:
            try:
                await self.embedding_model.preload()
            except Exception as e:
                # The first task retries the load
                self.logger.error(f"Embedding model preload failed: {e}")

    def stop(self) -> None:
        """Ask the run loop to exit after in-flight tasks finish."""
        if self._stopping is not None:
            self._stopping.set()

    async def execute(self, task: QueueTask) -> bool:
        """
        Run one claimed task and record the outcome on the queue.

        Returns:
            True if the handler succeeded
        """
        try:
            await self.processor.handle(task)
        except Exception as e:
            self.failed += 1
            await self.queue.fail(task, str(e) or type(e).__name__)
            return False

        self.processed += 1
        await self.queue.complete(task)
        return True

    async def run_once(self) -> bool:
        """
        Claim and run a single task.

        Returns:
            False when no task was due
        """
        task = await self.queue.claim()
        if task is None:
            return False
        await self.execute(task)
        return True

    async def _wait_for_stop(self, timeout: float) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        """Poll and process tasks until stop() is called."""
        self._stopping = asyncio.Event()
        slots = asyncio.Semaphore(self.concurrency)

        await self.start()
        self.logger.info(
            f"Worker started on queue '{self.queue.name}' "
            f"(concurrency={self.concurrency}, handlers={self.processor.task_names})"
        )

        while not self._stopping.is_set():
            await slots.acquire()
            try:
                task = await self.queue.claim()
            except Exception as e:
                slots.release()
                self.logger.error(f"Failed to claim task: {e}")
                await self._wait_for_stop(self.poll_interval)
                continue

            if task is None:
                slots.release()
                await self._wait_for_stop(self.poll_interval)
                continue

            running = asyncio.create_task(self.execute(task))
            self._running.add(running)
            running.add_done_callback(self._running.discard)
            running.add_done_callback(lambda _: slots.release())

        if self._running:
            self.logger.info(f"Waiting for {len(self._running)} running tasks")
            await asyncio.gather(*self._running, return_exceptions=True)

        self.logger.info(
            f"Worker stopped: {self.processed} tasks succeeded, {self.failed} failed"
        )
