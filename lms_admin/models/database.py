"""Document store abstraction and the MongoDB implementation behind it."""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bson import ObjectId
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from lms_admin.core.config import MONGODB_DB_NAME, MONGODB_URI
from lms_admin.core.errors import DatabaseError

Query = Dict[str, Any]
Projection = Dict[str, int]
Sort = Sequence[Tuple[str, int]]


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class DocumentStore(ABC):
    """Read/count/delete access to the platform's collections."""

    @abstractmethod
    def find_one(
        self,
        collection: str,
        query: Optional[Query] = None,
        projection: Optional[Projection] = None,
        sort: Optional[Sort] = None,
    ) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def find(
        self,
        collection: str,
        query: Optional[Query] = None,
        projection: Optional[Projection] = None,
        sort: Optional[Sort] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def count(self, collection: str, query: Optional[Query] = None) -> int:
        raise NotImplementedError

    @abstractmethod
    def delete_one(self, collection: str, query: Query) -> int:
        raise NotImplementedError

    def close(self) -> None:
        return None

    def find_by_id(
        self,
        collection: str,
        doc_id: Any,
        projection: Optional[Projection] = None,
    ) -> Optional[Dict[str, Any]]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        return self.find_one(collection, {"_id": oid}, projection)

    def find_by_ids(
        self,
        collection: str,
        doc_ids: Iterable[Any],
        projection: Optional[Projection] = None,
    ) -> List[Dict[str, Any]]:
        oids = [oid for oid in (to_object_id(d) for d in doc_ids) if oid is not None]
        if not oids:
            return []
        return self.find(collection, {"_id": {"$in": oids}}, projection)

    def delete_by_id(self, collection: str, doc_id: Any) -> bool:
        oid = to_object_id(doc_id)
        if oid is None:
            return False
        return self.delete_one(collection, {"_id": oid}) > 0


@contextmanager
def _database_errors(operation: str, collection: str):
    try:
        yield
    except PyMongoError as e:
        raise DatabaseError(
            str(e), details={"operation": operation, "collection": collection}
        ) from e


class MongoDocumentStore(DocumentStore):
    def __init__(
        self,
        uri: str = None,
        db_name: str = None,
        client: Optional[MongoClient] = None,
    ):
        self.uri = uri or MONGODB_URI
        self.db_name = db_name or MONGODB_DB_NAME
        self._client = client or MongoClient(self.uri, tz_aware=True)
        self._db = self._client[self.db_name]

    def find_one(self, collection, query=None, projection=None, sort=None):
        with _database_errors("find_one", collection):
            return self._db[collection].find_one(
                query or {}, projection=projection, sort=list(sort) if sort else None
            )

    def find(self, collection, query=None, projection=None, sort=None):
        with _database_errors("find", collection):
            cursor = self._db[collection].find(query or {}, projection=projection)
            if sort:
                cursor = cursor.sort(list(sort))
            return list(cursor)

    def count(self, collection, query=None):
        with _database_errors("count", collection):
            return self._db[collection].count_documents(query or {})

    def delete_one(self, collection, query):
        with _database_errors("delete_one", collection):
            return self._db[collection].delete_one(query).deleted_count

    def close(self):
        self._client.close()


def get_document_store() -> DocumentStore:
    return MongoDocumentStore()
