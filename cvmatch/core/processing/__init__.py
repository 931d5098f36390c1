"""
Asynchronous CV processing: task queue, worker and service entry points.
"""

from .processor import CVProcessingProcessor, UnknownTaskError
from .service import CVProcessingService, get_cv_processing_service
from .task_queue import TaskQueue, compute_backoff, get_task_queue
from .worker import Worker

__all__ = [
    "CVProcessingProcessor",
    "UnknownTaskError",
    "CVProcessingService",
    "get_cv_processing_service",
    "TaskQueue",
    "compute_backoff",
    "get_task_queue",
    "Worker",
]
