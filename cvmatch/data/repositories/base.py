"""
Base repository class providing common CRUD operations.

All entity-specific repositories inherit from this base class.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.results import InsertOneResult, UpdateResult

from cvmatch.data.database import get_database_manager
from cvmatch.data.models.base import BaseDocument
from cvmatch.utils.logger import get_logger

logger = get_logger(__name__)

# Type variable for document models
T = TypeVar("T", bound=BaseDocument)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.

    Subclasses must define the collection name and model class.
    """

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Name of the MongoDB collection."""
        pass

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        """Pydantic model class for this repository."""
        pass

    def __init__(self) -> None:
        """Initialize repository with database connection."""
        self._db_manager = get_database_manager()

    # -------------------------------------------------------------------------
    # Collection Access
    # -------------------------------------------------------------------------

    def _get_async_collection(self) -> AsyncIOMotorCollection:
        """Get asynchronous collection instance."""
        return self._db_manager.get_async_collection(self.collection_name)

    # -------------------------------------------------------------------------
    # Document Conversion
    # -------------------------------------------------------------------------

    def _to_model(self, document: Optional[dict[str, Any]]) -> Optional[T]:
        """Convert MongoDB document to Pydantic model."""
        if document is None:
            return None
        return self.model_class.model_validate(document)

    def _to_models(self, documents: list[dict[str, Any]]) -> list[T]:
        """Convert list of MongoDB documents to Pydantic models."""
        return [self._to_model(doc) for doc in documents if doc is not None]

    def _to_document(self, model: T) -> dict[str, Any]:
        """Convert Pydantic model to MongoDB document."""
        return model.model_dump_mongo()

    @staticmethod
    def _to_object_id(id_value: str | ObjectId) -> ObjectId:
        """Convert string to ObjectId if needed."""
        if isinstance(id_value, ObjectId):
            return id_value
        return ObjectId(id_value)

    # -------------------------------------------------------------------------
    # Asynchronous CRUD Operations
    # -------------------------------------------------------------------------

    async def create_async(self, model: T) -> T:
        """Create a new document asynchronously."""
        collection = self._get_async_collection()
        document = self._to_document(model)
        document["created_at"] = datetime.utcnow()
        document["updated_at"] = datetime.utcnow()

        result: InsertOneResult = await collection.insert_one(document)
        model.id = result.inserted_id
        logger.debug(f"Created {self.collection_name} document: {result.inserted_id}")
        return model

    async def get_by_id_async(self, id_value: str | ObjectId) -> Optional[T]:
        """Get a document by its ID asynchronously."""
        collection = self._get_async_collection()
        document = await collection.find_one({"_id": self._to_object_id(id_value)})
        return self._to_model(document)

    async def find_async(
        self,
        query: dict[str, Any],
        skip: int = 0,
        limit: Optional[int] = 100,
        sort_by: Optional[str] = None,
        sort_order: int = -1,
    ) -> list[T]:
        """Find documents matching a query asynchronously (limit=None for all)."""
        collection = self._get_async_collection()
        cursor = collection.find(query).skip(skip)
        if limit:
            cursor = cursor.limit(limit)

        if sort_by:
            cursor = cursor.sort(sort_by, sort_order)
        else:
            cursor = cursor.sort("created_at", -1)

        documents = await cursor.to_list(length=limit)
        return self._to_models(documents)

    async def find_one_async(self, query: dict[str, Any]) -> Optional[T]:
        """Find a single document matching a query asynchronously."""
        collection = self._get_async_collection()
        document = await collection.find_one(query)
        return self._to_model(document)

    async def update_async(
        self, id_value: str | ObjectId, update_data: dict[str, Any]
    ) -> Optional[T]:
        """Update a document by ID asynchronously."""
        collection = self._get_async_collection()
        update_data["updated_at"] = datetime.utcnow()

        result: UpdateResult = await collection.update_one(
            {"_id": self._to_object_id(id_value)},
            {"$set": update_data},
        )

        if result.modified_count > 0:
            logger.debug(f"Updated {self.collection_name} document: {id_value}")
            return await self.get_by_id_async(id_value)
        return None

    async def update_many_async(
        self, query: dict[str, Any], update_data: dict[str, Any]
    ) -> int:
        """Set fields on every document matching a query asynchronously."""
        collection = self._get_async_collection()
        update_data["updated_at"] = datetime.utcnow()

        result: UpdateResult = await collection.update_many(query, {"$set": update_data})
        logger.debug(
            f"Updated {result.modified_count} {self.collection_name} documents"
        )
        return result.modified_count

    async def delete_async(self, id_value: str | ObjectId) -> bool:
        """Delete a document by ID asynchronously."""
        collection = self._get_async_collection()
        result = await collection.delete_one({"_id": self._to_object_id(id_value)})
        if result.deleted_count > 0:
            logger.debug(f"Deleted {self.collection_name} document: {id_value}")
            return True
        return False

    async def count_async(self, query: Optional[dict[str, Any]] = None) -> int:
        """Count documents matching a query asynchronously."""
        collection = self._get_async_collection()
        if query:
            return await collection.count_documents(query)
        return await collection.count_documents({})
