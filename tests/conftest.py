"""
Shared test fixtures for the cvmatch test suite.

Sets environment variables before any cvmatch imports to prevent config
failures, then provides in-memory stand-ins for MongoDB and the embedding
model so the pipeline runs without external services.
"""

import os

# === Set environment BEFORE any cvmatch imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("DB_NAME", "cvmatch_test")
os.environ.setdefault("LOG_CONSOLE_OUTPUT", "false")
os.environ.setdefault("ML_PRELOAD_MODEL", "false")

import copy
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence

import pytest
from bson import ObjectId
from loguru import logger
from pymongo.errors import DuplicateKeyError

from cvmatch.core.matching import MatchingEngine
from cvmatch.core.processing import CVProcessingProcessor, CVProcessingService, TaskQueue
from cvmatch.data.models import (
    JobPosting,
    MatchResult,
    QueueTask,
    RankedCandidate,
    TaskStatus,
)
from cvmatch.data.repositories import (
    JobRepository,
    MatchResultRepository,
    TaskRepository,
)
from cvmatch.data.repositories.task_repository import LOCK_EXPIRED_ERROR
from cvmatch.utils.config import QueueSettings


# ---------------------------------------------------------------------------
# In-memory collection
# ---------------------------------------------------------------------------


def _matches(document: dict[str, Any], query: dict[str, Any]) -> bool:
    """Equality-only subset of the MongoDB query language."""
    return all(document.get(key) == value for key, value in query.items())


class InMemoryCollectionMixin:
    """
    Replaces the MongoDB primitives of BaseRepository with a dict store.

    Repository methods built on top of these primitives (state
    transitions, resets, soft deletes) run unchanged against it.
    """

    def __init__(self) -> None:
        self.documents: dict[ObjectId, dict[str, Any]] = {}

    async def create_async(self, model):
        document = self._to_document(model)
        document["_id"] = document.get("_id") or ObjectId()
        document["created_at"] = document["updated_at"] = datetime.utcnow()
        self.documents[document["_id"]] = document
        model.id = document["_id"]
        return model

    async def get_by_id_async(self, id_value):
        document = self.documents.get(self._to_object_id(id_value))
        return self._to_model(copy.deepcopy(document))

    async def find_async(self, query, skip=0, limit=100, sort_by=None, sort_order=-1):
        found = [copy.deepcopy(d) for d in self.documents.values() if _matches(d, query)]
        found = found[skip:]
        if limit:
            found = found[:limit]
        return self._to_models(found)

    async def find_one_async(self, query):
        for document in self.documents.values():
            if _matches(document, query):
                return self._to_model(copy.deepcopy(document))
        return None

    async def update_async(self, id_value, update_data):
        document = self.documents.get(self._to_object_id(id_value))
        if document is None:
            return None
        document.update(copy.deepcopy(update_data))
        document["updated_at"] = datetime.utcnow()
        return await self.get_by_id_async(id_value)

    async def update_many_async(self, query, update_data):
        count = 0
        for document in self.documents.values():
            if _matches(document, query):
                document.update(copy.deepcopy(update_data))
                count += 1
        return count

    async def delete_async(self, id_value):
        return self.documents.pop(self._to_object_id(id_value), None) is not None

    async def count_async(self, query=None):
        return sum(1 for d in self.documents.values() if _matches(d, query or {}))


class InMemoryMatchResultRepository(InMemoryCollectionMixin, MatchResultRepository):
    """Match result repository with a unique (cv_id, job_id) constraint."""

    def __init__(self) -> None:
        InMemoryCollectionMixin.__init__(self)
        self.status_history: dict[ObjectId, list[str]] = {}
        self.users: dict[ObjectId, dict[str, Any]] = {}

    async def create_async(self, model):
        for document in self.documents.values():
            if document["cv_id"] == model.cv_id and document["job_id"] == model.job_id:
                raise DuplicateKeyError("E11000 duplicate key error: cv_id_1_job_id_1")
        created = await super().create_async(model)
        self.status_history[created.id] = [self.documents[created.id]["status"]]
        return created

    async def update_async(self, id_value, update_data):
        if "status" in update_data:
            self.status_history.setdefault(self._to_object_id(id_value), []).append(
                update_data["status"]
            )
        return await super().update_async(id_value, update_data)

    async def get_ranked_async(self, job_id, limit=10):
        if limit < 1:
            return []
        completed = [
            d for d in self.documents.values()
            if d["job_id"] == self._to_object_id(job_id)
            and d["status"] == "COMPLETED"
            and not d.get("is_deleted")
        ]
        completed.sort(key=lambda d: d.get("match_score") or 0.0, reverse=True)

        ranked = []
        for document in completed[:limit]:
            document = {k: v for k, v in document.items() if k != "cv_embedding"}
            document["candidate"] = self.users.get(document["user_id"])
            ranked.append(RankedCandidate.model_validate(document))
        return ranked

    async def get_status_counts_for_job_async(self, job_id):
        counts: dict[str, int] = {}
        for document in self.documents.values():
            if document["job_id"] == self._to_object_id(job_id) and not document.get("is_deleted"):
                counts[document["status"]] = counts.get(document["status"], 0) + 1
        return counts

    def insert(self, **fields) -> MatchResult:
        """Store a match result directly, bypassing the create path."""
        result = MatchResult(**fields)
        document = result.model_dump_mongo()
        document["_id"] = ObjectId()
        self.documents[document["_id"]] = document
        self.status_history[document["_id"]] = [document["status"]]
        return MatchResult.model_validate(document)


class InMemoryJobRepository(InMemoryCollectionMixin, JobRepository):
    def add(self, job: JobPosting) -> JobPosting:
        document = job.model_dump_mongo()
        document["_id"] = job.id or ObjectId()
        job.id = document["_id"]
        self.documents[document["_id"]] = document
        return job


class InMemoryTaskRepository(InMemoryCollectionMixin, TaskRepository):
    """Task repository applying the same claim rules as the Mongo query."""

    async def claim_next_async(self, queue, lock_timeout):
        now = datetime.utcnow()
        stale_before = now - timedelta(seconds=lock_timeout)

        def stale(d):
            return d["status"] == TaskStatus.ACTIVE.value and d["locked_at"] <= stale_before

        mine = [d for d in self.documents.values() if d["queue"] == queue]
        for document in mine:
            if stale(document) and document["attempts_made"] >= document["max_attempts"]:
                document.update(
                    status=TaskStatus.FAILED.value, locked_at=None, last_error=LOCK_EXPIRED_ERROR
                )

        due = [
            d for d in mine
            if (d["status"] == TaskStatus.WAITING.value and d["run_at"] <= now)
            or (stale(d) and d["attempts_made"] < d["max_attempts"])
        ]
        if not due:
            return None
        document = min(due, key=lambda d: d["run_at"])
        document.update(
            status=TaskStatus.ACTIVE.value,
            locked_at=now,
            attempts_made=document["attempts_made"] + 1,
        )
        return self._to_model(copy.deepcopy(document))


# ---------------------------------------------------------------------------
# Queue and embedding stand-ins
# ---------------------------------------------------------------------------


class RecordingQueue:
    """Task queue that only records what was enqueued."""

    name = "cv-processing-test"

    def __init__(self) -> None:
        self.added: list[dict[str, Any]] = []

    async def add(self, task_name, data, attempts=None, backoff_delay=None,
                  remove_on_complete=True, delay=0.0):
        self.added.append(
            {"name": task_name, "data": data, "remove_on_complete": remove_on_complete}
        )
        return QueueTask(queue=self.name, name=task_name, data=data)

    def names(self) -> list[str]:
        return [task["name"] for task in self.added]


class FakeEmbeddingModel:
    """
    Embedding model returning fixed vectors.

    Job description texts (they start with "Job Title:") get jd_vector,
    everything else gets cv_vector.
    """

    def __init__(
        self,
        cv_vector: Sequence[float] = (1.0, 0.0),
        jd_vector: Sequence[float] = (1.0, 0.0),
        fail_cv: bool = False,
        raise_error: Optional[Exception] = None,
    ):
        self.cv_vector = list(cv_vector)
        self.jd_vector = list(jd_vector)
        self.fail_cv = fail_cv
        self.raise_error = raise_error
        self.calls: list[str] = []
        self.preloaded = False

    async def preload(self) -> None:
        self.preloaded = True

    async def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            return []
        self.calls.append(text)
        if self.raise_error is not None:
            raise self.raise_error
        if text.startswith("Job Title:"):
            return list(self.jd_vector)
        if self.fail_cv:
            return []
        return list(self.cv_vector)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

SAMPLE_CV_TEXT = (
    "Nguyen Van A\n"
    "Frontend developer with four years of experience building web apps.\n"
    "Skills\n"
    "React, TypeScript, HTML, CSS\n"
    "Experience\n"
    "Built dashboards with React and Redux at a fintech startup.\n"
)


@pytest.fixture
def sample_cv_text() -> str:
    return SAMPLE_CV_TEXT


@pytest.fixture
def sample_job() -> JobPosting:
    return JobPosting(
        _id=ObjectId(),
        name="Frontend Developer",
        description="Build user interfaces for our job board.",
        skills=["React", "Node.js"],
        level="Junior",
    )


@pytest.fixture
def make_embedder():
    """Factory that returns a callable to build FakeEmbeddingModel instances."""
    return FakeEmbeddingModel


@pytest.fixture
def fake_embedder() -> FakeEmbeddingModel:
    # cos(cv, jd) = 0.6
    return FakeEmbeddingModel(cv_vector=(0.6, 0.8), jd_vector=(1.0, 0.0))


@pytest.fixture
def match_repo() -> InMemoryMatchResultRepository:
    return InMemoryMatchResultRepository()


@pytest.fixture
def job_repo(sample_job) -> InMemoryJobRepository:
    repo = InMemoryJobRepository()
    repo.add(sample_job)
    return repo


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def queue_settings() -> QueueSettings:
    return QueueSettings(name="cv-processing-test", attempts=3, backoff_delay=5.0, poll_interval=0.0)


@pytest.fixture
def task_queue(task_repo, queue_settings) -> TaskQueue:
    return TaskQueue(repository=task_repo, settings=queue_settings)


@pytest.fixture
def recording_queue() -> RecordingQueue:
    return RecordingQueue()


@pytest.fixture
def audit_records():
    """Collect audit log entries as (audit_type, message) pairs."""
    records: list[tuple[str, str]] = []

    def sink(message):
        record = message.record
        records.append((record["extra"]["audit_type"], record["message"]))

    handler_id = logger.add(sink, filter=lambda record: "audit_type" in record["extra"])
    yield records
    logger.remove(handler_id)


@pytest.fixture
def matching_engine(fake_embedder) -> MatchingEngine:
    return MatchingEngine(embedding_model=fake_embedder)


@pytest.fixture
def processor(matching_engine, match_repo, job_repo) -> CVProcessingProcessor:
    return CVProcessingProcessor(
        matching_engine=matching_engine,
        match_result_repository=match_repo,
        job_repository=job_repo,
    )


@pytest.fixture
def service(match_repo, job_repo, recording_queue) -> CVProcessingService:
    return CVProcessingService(
        match_result_repository=match_repo,
        job_repository=job_repo,
        task_queue=recording_queue,
    )
