"""
MongoDB Document Store

DocumentStore backed by MongoDB through pymongo's asynchronous client.

Storage layout:
- ``_id`` holds the string document id (``str(ObjectId())`` on create)
- every write is a single ``update_one`` with an aggregation pipeline, so
  SERVER_TIMESTAMP becomes ``$$NOW`` and increments become ``$add``
  expressions evaluated by the server at commit
- reads decode BSON dates as DatetimeMS so callers decide whether to
  convert them (see converters.to_native_format)

Error Handling:
- Fail-fast: driver errors (PyMongoError) propagate unchanged
- No retries here; pymongo's retryable reads/writes apply
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.codec_options import CodecOptions, DatetimeConversion
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection

from ..documents.field_values import FieldValue, Increment, ServerTimestamp
from ..documents.filters import Direction, Filter, FilterOperator, Query
from ..exceptions import MissingDocumentError
from .base import DocumentSnapshot, DocumentStore
from .field_paths import select_fields, split_sentinels

logger = logging.getLogger(__name__)

CODEC_OPTIONS = CodecOptions(datetime_conversion=DatetimeConversion.DATETIME_MS)

_RANGE_OPERATORS = {
    FilterOperator.LESS_THAN: "$lt",
    FilterOperator.LESS_THAN_OR_EQUAL: "$lte",
    FilterOperator.GREATER_THAN_OR_EQUAL: "$gte",
    FilterOperator.GREATER_THAN: "$gt",
}

_NOT_ARRAY = {"$not": {"$type": "array"}}


def _scalar_match(field: str, operator: str, value: Any) -> Dict[str, Any]:
    return {field: {"$exists": True, operator: value, **_NOT_ARRAY}}


def _scalar_exclude(field: str, operator: str, value: Any) -> Dict[str, Any]:
    # Arrays never equal a scalar, so they always pass != and not-in
    return {
        field: {"$exists": True},
        "$or": [{field: {"$type": "array"}}, {field: {operator: value}}],
    }


def _expression_match(field: str, expression: Dict[str, Any]) -> Dict[str, Any]:
    return {field: {"$exists": True}, "$expr": expression}


def filter_to_mongo(condition: Filter) -> Dict[str, Any]:
    """
    Translate one Filter into a MongoDB query document.

    Filters compare the whole field value, the same way
    InMemoryDocumentStore does:
    - documents missing the field never match any filter, so ``== None``
      only matches a stored null
    - ==, !=, in, not-in and range filters never match single elements of
      an array field; only array-contains(-any) look inside arrays
    Array-valued operands fall back to ``$expr``, where MongoDB compares
    arrays as whole values.
    """
    field = condition.field
    operator = condition.operator
    value = condition.value
    operand = {"$literal": value}

    if operator in _RANGE_OPERATORS:
        return _scalar_match(field, _RANGE_OPERATORS[operator], value)

    if operator is FilterOperator.EQUAL:
        if isinstance(value, list):
            return _expression_match(field, {"$eq": [f"${field}", operand]})
        return _scalar_match(field, "$eq", value)

    if operator is FilterOperator.NOT_EQUAL:
        if isinstance(value, list):
            return _expression_match(field, {"$ne": [f"${field}", operand]})
        return _scalar_exclude(field, "$ne", value)

    if operator in (FilterOperator.IN, FilterOperator.NOT_IN):
        if any(isinstance(item, list) for item in value):
            expression = {"$in": [f"${field}", operand]}
            if operator is FilterOperator.NOT_IN:
                expression = {"$not": [expression]}
            return _expression_match(field, expression)
        if operator is FilterOperator.IN:
            return _scalar_match(field, "$in", value)
        return _scalar_exclude(field, "$nin", value)

    if operator is FilterOperator.ARRAY_CONTAINS:
        return {field: {"$elemMatch": {"$eq": value}}}
    if operator is FilterOperator.ARRAY_CONTAINS_ANY:
        return {field: {"$elemMatch": {"$in": value}}}
    raise ValueError(f"Unsupported filter operator: {operator!r}")


def query_to_mongo(query: Query) -> Dict[str, Any]:
    """Combine all filters of a Query with $and."""
    clauses = [filter_to_mongo(condition) for condition in query.filters]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def sentinel_expression(path: str, sentinel: FieldValue) -> Any:
    """Aggregation expression computing a sentinel's value on the server."""
    if isinstance(sentinel, ServerTimestamp):
        return "$$NOW"
    if isinstance(sentinel, Increment):
        return {"$add": [{"$ifNull": [f"${path}", 0]}, sentinel.amount]}
    raise ValueError(f"Unsupported field value: {sentinel!r}")


def _sentinel_stage(sentinels: Dict[str, FieldValue]) -> List[Dict[str, Any]]:
    if not sentinels:
        return []
    return [{"$set": {path: sentinel_expression(path, s) for path, s in sentinels.items()}}]


def _literal_stage(writes: Dict[str, Any]) -> List[Dict[str, Any]]:
    if not writes:
        return []
    return [{"$set": {path: {"$literal": value} for path, value in writes.items()}}]


def replace_pipeline(document_id: str, body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Pipeline replacing the whole document, then resolving sentinels."""
    literals, sentinels = split_sentinels(body)
    replacement = {"_id": document_id, **literals}
    return [{"$replaceWith": {"$literal": replacement}}] + _sentinel_stage(sentinels)


def merge_pipeline(body: Dict[str, Any], merge_fields: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
    """Pipeline deep-merging ``body`` (or only ``merge_fields``)."""
    literals, sentinels = split_sentinels(body)
    writes, selected = select_fields(literals, sentinels, merge_fields)
    return _literal_stage(writes) + _sentinel_stage(selected)


def update_pipeline(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Pipeline replacing the top-level keys of ``body``."""
    literals, sentinels = split_sentinels(body)
    return _literal_stage(literals) + _sentinel_stage(sentinels)


def _snapshot(document: Dict[str, Any]) -> DocumentSnapshot:
    data = dict(document)
    document_id = data.pop("_id")
    return DocumentSnapshot(str(document_id), data)


class MongoDocumentStore(DocumentStore):
    """
    DocumentStore over a MongoDB database.

    Connection Management:
    - The AsyncMongoClient is injected (or built by ``from_uri``) and owns
      the connection pool
    - Collections are resolved from the client on every call, so swapping
      the client with ``reconnect`` affects existing repositories
    """

    def __init__(self, client: AsyncMongoClient, database: str):
        """
        Args:
            client: pymongo async client
            database: Database name
        """
        self._client = client
        self._database_name = database

    @classmethod
    def from_uri(cls, uri: str, database: str, **client_options: Any) -> "MongoDocumentStore":
        """
        Build a store with its own client.

        Args:
            uri: MongoDB connection string
            database: Database name
            client_options: Extra AsyncMongoClient keyword arguments
        """
        client = AsyncMongoClient(uri, **client_options)
        logger.info(f"MongoDB document store configured: database={database}")
        return cls(client, database)

    def _collection(self, name: str) -> AsyncCollection:
        database = self._client.get_database(self._database_name, codec_options=CODEC_OPTIONS)
        return database[name]

    async def get(self, collection: str, document_id: str) -> DocumentSnapshot:
        document = await self._collection(collection).find_one({"_id": document_id})
        if document is None:
            return DocumentSnapshot(document_id, None)
        return _snapshot(document)

    async def create(self, collection: str, body: Dict[str, Any]) -> str:
        document_id = str(ObjectId())
        await self._collection(collection).update_one(
            {"_id": document_id},
            replace_pipeline(document_id, body),
            upsert=True,
        )
        return document_id

    async def set(
        self,
        collection: str,
        document_id: str,
        body: Dict[str, Any],
        merge: bool = False,
        merge_fields: Optional[Sequence[str]] = None,
    ) -> None:
        if merge or merge_fields is not None:
            pipeline = merge_pipeline(body, merge_fields)
        else:
            pipeline = replace_pipeline(document_id, body)

        if not pipeline:
            # Nothing to merge; still make sure the document exists
            pipeline = [{"$replaceWith": "$$ROOT"}]

        await self._collection(collection).update_one(
            {"_id": document_id},
            pipeline,
            upsert=True,
        )

    async def update(self, collection: str, document_id: str, body: Dict[str, Any]) -> None:
        target = self._collection(collection)
        pipeline = update_pipeline(body)

        if not pipeline:
            if await target.count_documents({"_id": document_id}, limit=1) == 0:
                raise MissingDocumentError(collection, document_id)
            return

        result = await target.update_one({"_id": document_id}, pipeline)
        if result.matched_count == 0:
            raise MissingDocumentError(collection, document_id)

    async def delete(self, collection: str, document_id: str) -> None:
        await self._collection(collection).delete_one({"_id": document_id})

    async def query(self, collection: str, query: Query) -> List[DocumentSnapshot]:
        cursor = self._collection(collection).find(query_to_mongo(query))

        if query.order_by:
            direction = DESCENDING if query.direction is Direction.DESCENDING else ASCENDING
            cursor = cursor.sort(query.order_by, direction)

        limit = query.effective_limit
        if limit is not None:
            cursor = cursor.limit(limit)

        documents = await cursor.to_list()
        return [_snapshot(document) for document in documents]

    async def reconnect(self, client: AsyncMongoClient) -> None:
        """Swap the underlying client, closing the previous one."""
        previous, self._client = self._client, client
        if previous is not client:
            await previous.close()
        logger.info("MongoDB document store reconnected")

    async def close(self) -> None:
        await self._client.close()
        logger.info("MongoDB document store closed")
