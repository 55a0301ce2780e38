"""
MongoDB access.

One process-wide client is created lazily from settings. Collections are
wrapped by :class:`DocumentCollection`, which applies per-collection read
filters, hidden fields and write hooks, the way every resource of the API
expects them.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.cursor import Cursor
from pymongo.database import Database

from config import settings
from errors import AppError

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        _client = MongoClient(settings.get_database_url())
        logger.info("DB connection established!")
    return _client


def get_db() -> Database:
    return get_client()[settings.DATABASE_NAME]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


def ensure_indexes() -> None:
    db = get_db()
    db["tours"].create_index([("name", ASCENDING)], unique=True)
    db["tours"].create_index([("slug", ASCENDING)])
    db["users"].create_index([("email", ASCENDING)], unique=True)
    db["reviews"].create_index([("tour", ASCENDING), ("user", ASCENDING)], unique=True)


def utcnow() -> datetime:
    """Current UTC time, naive, as BSON stores and returns it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value: Union[str, ObjectId]) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        raise AppError(f"Invalid id: {value}.", 400)
    return ObjectId(value)


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document and return its id as a string."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = data.copy()
    result = get_db()[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def jsonify_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [jsonify_value(v) for v in value]
    if isinstance(value, dict):
        return {k: jsonify_value(v) for k, v in value.items()}
    return value


class DocumentCollection:
    """
    Mapper over one Mongo collection.

    ``base_filter`` is merged into every read and prepended as a ``$match``
    to every aggregation. ``hidden_fields`` are projected out of reads unless
    asked for and never appear in :meth:`to_public` output.
    """

    def __init__(
        self,
        name: str,
        base_filter: Optional[Dict[str, Any]] = None,
        hidden_fields: Iterable[str] = (),
    ):
        self.name = name
        self.base_filter = dict(base_filter or {})
        self.hidden_fields = tuple(hidden_fields)

    @property
    def collection(self):
        return get_db()[self.name]

    def default_projection(self) -> Optional[Dict[str, int]]:
        if not self.hidden_fields:
            return None
        return {field: 0 for field in self.hidden_fields}

    def scoped(self, criteria: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {**(criteria or {}), **self.base_filter}

    # hooks

    def before_insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    def before_update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return changes

    def to_public(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        public = {}
        for key, value in doc.items():
            if key in self.hidden_fields:
                continue
            if key == "_id":
                public["id"] = str(value)
            else:
                public[key] = jsonify_value(value)
        return public

    # reads

    def find(
        self,
        criteria: Optional[Dict[str, Any]] = None,
        projection: Optional[Dict[str, int]] = None,
    ) -> Cursor:
        if projection is None:
            projection = self.default_projection()
        return self.collection.find(self.scoped(criteria), projection)

    def find_one(self, criteria: Dict[str, Any], include_hidden: bool = False) -> Optional[dict]:
        projection = None if include_hidden else self.default_projection()
        return self.collection.find_one(self.scoped(criteria), projection)

    def find_by_id(
        self,
        doc_id: Union[str, ObjectId],
        include_hidden: bool = False,
        criteria: Optional[Dict[str, Any]] = None,
    ) -> Optional[dict]:
        return self.find_one({**(criteria or {}), "_id": to_object_id(doc_id)}, include_hidden=include_hidden)

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[dict]:
        if self.base_filter:
            pipeline = [{"$match": self.base_filter}] + list(pipeline)
        logger.debug("Aggregating %s: %s", self.name, pipeline)
        return list(self.collection.aggregate(pipeline))

    # writes

    def create(self, data: Dict[str, Any]) -> dict:
        doc = self.before_insert(dict(data))
        doc["_id"] = ObjectId(create_document(self.name, doc))
        return doc

    def update_by_id(self, doc_id: Union[str, ObjectId], changes: Dict[str, Any]) -> Optional[dict]:
        changes = self.before_update(dict(changes))
        if not changes:
            return self.find_by_id(doc_id)
        return self.collection.find_one_and_update(
            self.scoped({"_id": to_object_id(doc_id)}),
            {"$set": changes},
            projection=self.default_projection(),
            return_document=ReturnDocument.AFTER,
        )

    def delete_by_id(self, doc_id: Union[str, ObjectId]) -> Optional[dict]:
        return self.collection.find_one_and_delete(self.scoped({"_id": to_object_id(doc_id)}))

    def set_fields(
        self,
        doc_id: Union[str, ObjectId],
        values: Optional[Dict[str, Any]] = None,
        unset: Iterable[str] = (),
    ) -> None:
        """Raw field write without hooks or validation."""
        update: Dict[str, Any] = {}
        if values:
            update["$set"] = values
        unset = list(unset)
        if unset:
            update["$unset"] = {field: "" for field in unset}
        if update:
            self.collection.update_one({"_id": to_object_id(doc_id)}, update)
