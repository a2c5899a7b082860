"""
In-Memory Document Store

Process-local implementation of the DocumentStore contract. Used by the
test suite and for running services without a database. Semantics follow
MongoDocumentStore: datetimes are stored as DatetimeMS, sentinels are
resolved at write time, queries run filter -> sort -> limit. Filters
compare whole values and sorting follows BSON type order, so fields holding
null, arrays or mixed types give the same results against both stores.
"""

import copy
import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.datetime_ms import DatetimeMS

from ..documents.field_values import FieldValue, Increment, ServerTimestamp
from ..documents.filters import Direction, Filter, FilterOperator, Query
from ..exceptions import MissingDocumentError
from .base import DocumentSnapshot, DocumentStore
from .field_paths import (
    get_path,
    select_fields,
    set_path,
    split_sentinels,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _encode(value: Any) -> Any:
    """Mimic BSON round-tripping: datetimes come back as DatetimeMS."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return DatetimeMS(value)
    if isinstance(value, date):
        return DatetimeMS(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, Mapping):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    return copy.deepcopy(value)


# BSON comparison order; an empty array sorts before null
_EMPTY_ARRAY_RANK = 0
_NULL_RANK = 1
_NUMBER_RANK = 2
_STRING_RANK = 3
_OBJECT_RANK = 4
_ARRAY_RANK = 5
_BINARY_RANK = 6
_OBJECT_ID_RANK = 7
_BOOLEAN_RANK = 8
_DATE_RANK = 9
_OTHER_RANK = 10


def _order_key(value: Any) -> tuple:
    """
    Key ordering values the way MongoDB compares them: by BSON type
    first, then by value. Keys of different types never raise on compare.
    """
    if value is None:
        return (_NULL_RANK,)
    if isinstance(value, bool):
        return (_BOOLEAN_RANK, value)
    if isinstance(value, (int, float)):
        return (_NUMBER_RANK, value)
    if isinstance(value, str):
        return (_STRING_RANK, value)
    if isinstance(value, Mapping):
        return (_OBJECT_RANK, tuple((key, _order_key(item)) for key, item in value.items()))
    if isinstance(value, (list, tuple)):
        return (_ARRAY_RANK, tuple(_order_key(item) for item in value))
    if isinstance(value, (bytes, bytearray)):
        return (_BINARY_RANK, bytes(value))
    if isinstance(value, ObjectId):
        return (_OBJECT_ID_RANK, value.binary)
    if isinstance(value, (datetime, date)):
        value = _encode(value)
    if isinstance(value, DatetimeMS):
        return (_DATE_RANK, int(value))
    return (_OTHER_RANK, repr(value))


_MISSING = object()


def _compare(operator: FilterOperator, stored: Any, expected: Any) -> bool:
    if operator is FilterOperator.ARRAY_CONTAINS:
        return isinstance(stored, list) and _order_key(expected) in [_order_key(item) for item in stored]
    if operator is FilterOperator.ARRAY_CONTAINS_ANY:
        if not isinstance(stored, list):
            return False
        elements = [_order_key(item) for item in stored]
        return any(_order_key(item) in elements for item in expected)

    stored_key = _order_key(stored)
    if operator is FilterOperator.EQUAL:
        return stored_key == _order_key(expected)
    if operator is FilterOperator.NOT_EQUAL:
        return stored_key != _order_key(expected)
    if operator is FilterOperator.IN:
        return stored_key in [_order_key(item) for item in expected]
    if operator is FilterOperator.NOT_IN:
        return stored_key not in [_order_key(item) for item in expected]

    # Range filters skip arrays and only compare values of the same BSON type
    expected_key = _order_key(expected)
    if isinstance(stored, list) or stored_key[0] != expected_key[0]:
        return False
    if operator is FilterOperator.LESS_THAN:
        return stored_key < expected_key
    if operator is FilterOperator.LESS_THAN_OR_EQUAL:
        return stored_key <= expected_key
    if operator is FilterOperator.GREATER_THAN:
        return stored_key > expected_key
    if operator is FilterOperator.GREATER_THAN_OR_EQUAL:
        return stored_key >= expected_key
    raise ValueError(f"Unsupported filter operator: {operator!r}")


def matches(document: Mapping, condition: Filter) -> bool:
    """
    Evaluate one filter against a stored document.

    Documents missing the field never match, including for != and not-in.
    Only array-contains(-any) look inside arrays; every other operator
    compares the whole value.
    """
    stored = get_path(document, condition.field, _MISSING)
    if stored is _MISSING:
        return False
    return _compare(condition.operator, stored, condition.value)


def _sort_key(field: str, descending: bool = False):
    def key(snapshot: DocumentSnapshot):
        value = get_path(snapshot.data, field)
        # Arrays sort by their smallest element ascending, largest descending
        if isinstance(value, list):
            if not value:
                return (_EMPTY_ARRAY_RANK,)
            elements = [_order_key(item) for item in value]
            return max(elements) if descending else min(elements)
        return _order_key(value)
    return key


class InMemoryDocumentStore(DocumentStore):
    """
    DocumentStore backed by nested dicts.

    Args:
        clock: Returns "now" for SERVER_TIMESTAMP; injectable so tests get
               strictly increasing timestamps
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or _utcnow
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _resolve(self, document: Dict[str, Any], sentinels: Mapping[str, FieldValue]) -> None:
        now = None
        for path, sentinel in sentinels.items():
            if isinstance(sentinel, ServerTimestamp):
                if now is None:
                    now = _encode(self._clock())
                set_path(document, path, now)
            elif isinstance(sentinel, Increment):
                current = get_path(document, path)
                base = current if isinstance(current, (int, float)) and not isinstance(current, bool) else 0
                set_path(document, path, base + sentinel.amount)
            else:
                raise ValueError(f"Unsupported field value: {sentinel!r}")

    async def get(self, collection: str, document_id: str) -> DocumentSnapshot:
        stored = self._collection(collection).get(document_id)
        return DocumentSnapshot(document_id, copy.deepcopy(stored) if stored is not None else None)

    async def create(self, collection: str, body: Dict[str, Any]) -> str:
        document_id = str(ObjectId())
        literals, sentinels = split_sentinels(body)
        document = _encode(literals)
        self._resolve(document, sentinels)
        self._collection(collection)[document_id] = document
        logger.debug(f"Created {collection}/{document_id}")
        return document_id

    async def set(
        self,
        collection: str,
        document_id: str,
        body: Dict[str, Any],
        merge: bool = False,
        merge_fields: Optional[Sequence[str]] = None,
    ) -> None:
        documents = self._collection(collection)
        literals, sentinels = split_sentinels(body)

        if not merge and merge_fields is None:
            document = _encode(literals)
            self._resolve(document, sentinels)
            documents[document_id] = document
            return

        writes, selected = select_fields(literals, sentinels, merge_fields)
        document = documents.get(document_id, {})
        for path, value in writes.items():
            set_path(document, path, _encode(value))
        self._resolve(document, selected)
        documents[document_id] = document

    async def update(self, collection: str, document_id: str, body: Dict[str, Any]) -> None:
        documents = self._collection(collection)
        if document_id not in documents:
            raise MissingDocumentError(collection, document_id)

        literals, sentinels = split_sentinels(body)
        document = documents[document_id]
        for path, value in literals.items():
            set_path(document, path, _encode(value))
        # Nested maps are replaced whole; sentinels land in the new map
        self._resolve(document, sentinels)

    async def delete(self, collection: str, document_id: str) -> None:
        self._collection(collection).pop(document_id, None)

    async def query(self, collection: str, query: Query) -> List[DocumentSnapshot]:
        snapshots = [
            DocumentSnapshot(document_id, copy.deepcopy(document))
            for document_id, document in self._collection(collection).items()
            if all(matches(document, condition) for condition in query.filters)
        ]

        if query.order_by:
            descending = query.direction is Direction.DESCENDING
            snapshots.sort(
                key=_sort_key(query.order_by, descending),
                reverse=descending,
            )

        limit = query.effective_limit
        if limit is not None:
            snapshots = snapshots[:limit]

        return snapshots
