"""Generic repository over a single MongoDB collection."""

from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from legate.entities.base import BaseEntity
from legate.utils.datetime import utc_now

T = TypeVar("T", bound=BaseEntity)


class BaseRepository(Generic[T]):
    """CRUD helpers shared by the concrete repositories."""

    def __init__(self, db: Database, collection_name: str, model_cls: Type[T]):
        self.db = db
        self.collection: Collection = db[collection_name]
        self.model_cls = model_cls

    @staticmethod
    def _to_object_id(value: str | ObjectId) -> ObjectId:
        return value if isinstance(value, ObjectId) else ObjectId(value)

    def _to_entity(self, doc: Optional[Dict[str, Any]]) -> Optional[T]:
        return self.model_cls(**doc) if doc else None

    def find_by_id(self, entity_id: str | ObjectId) -> Optional[T]:
        return self.find_one({"_id": self._to_object_id(entity_id)})

    def find_one(self, query: Dict[str, Any], projection: Optional[Dict[str, Any]] = None) -> Optional[T]:
        return self._to_entity(self.collection.find_one(query, projection))

    def find_many(
        self,
        query: Dict[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[T]:
        cursor = self.collection.find(query)
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [self.model_cls(**doc) for doc in cursor]

    def count(self, query: Dict[str, Any]) -> int:
        return self.collection.count_documents(query)

    def insert_one(self, entity: T) -> T:
        result = self.collection.insert_one(entity.to_mongo())
        entity.id = result.inserted_id
        return entity

    def update_one(self, entity_id: str | ObjectId, updates: Dict[str, Any]) -> Optional[T]:
        updates = {**updates, "updated_at": updates.get("updated_at", utc_now())}
        doc = self.collection.find_one_and_update(
            {"_id": self._to_object_id(entity_id)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_entity(doc)
