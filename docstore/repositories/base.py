"""
Generic Repository

Typed CRUD and filtered reads over one collection of a DocumentStore.

Usage:
    class User(Model):
        name: str
        status: str

    users = Repository(store, "users", User)
    user_id = await users.add({"name": "Ada", "status": "active"})
    active = await users.get_where("status", "==", "active")

Specialized lookups are built by composition, wrapping a Repository
and calling its get_where*/query methods, rather than by subclassing.

Timestamps:
- add/set write created_at=SERVER_TIMESTAMP and updated_at=None
- update writes updated_at=SERVER_TIMESTAMP and never touches created_at
- reads convert store timestamps to datetime
Every operation accepts ``timestamps=False`` to opt out.
"""

import asyncio
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar, Union

from ..common.logger import get_logger
from ..documents.converters import ID_FIELD, of_document_snapshot, to_store_format
from ..documents.field_values import SERVER_TIMESTAMP
from ..documents.filters import Direction, FilterLike, FilterOperator, Query
from ..documents.models import (
    CREATED_AT_FIELD,
    UPDATED_AT_FIELD,
    Model,
    require_document_id,
)
from ..exceptions import DocumentNotFoundError, MissingDocumentError
from ..stores.base import DocumentSnapshot, DocumentStore

T = TypeVar("T", bound=Model)

Record = Union[T, Dict[str, Any]]


class Repository(Generic[T]):
    """
    Repository over a single collection.

    The store is injected; the collection is addressed by name on every
    call, so the repository itself holds no connection or record state.

    Error Handling:
    - DocumentNotFoundError is the only error raised here (single get,
      batch get, and filtered get with ``raise_if_empty``)
    - Store and driver errors propagate unchanged; nothing is retried
    """

    def __init__(self, store: DocumentStore, collection_name: str, model: Optional[Type[T]] = None):
        """
        Args:
            store: Document store to read from and write to
            collection_name: Collection holding the records
            model: Record class used to build results; plain dicts when omitted
        """
        self._store = store
        self._collection_name = collection_name
        self._model = model
        self._log = get_logger(__name__, collection=collection_name)

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def store(self) -> DocumentStore:
        return self._store

    # ---------- Writes ----------

    def _write_body(self, data: Any) -> Dict[str, Any]:
        body = to_store_format(data)
        if not isinstance(body, dict):
            raise TypeError(f"Payload must be a mapping or a model, got {type(data).__name__}")
        body.pop(ID_FIELD, None)
        return body

    async def add(self, data: Any, *, timestamps: bool = True) -> str:
        """
        Create a document with a store-assigned id.

        Args:
            data: Record fields; any id is ignored
            timestamps: Set created_at (server time) and clear updated_at

        Returns:
            The new document's id
        """
        body = self._write_body(data)

        if timestamps:
            body[CREATED_AT_FIELD] = SERVER_TIMESTAMP
            body[UPDATED_AT_FIELD] = None

        document_id = await self._store.create(self._collection_name, body)
        self._log.debug(f"Added document {document_id}")
        return document_id

    async def update(self, data: Any, *, timestamps: bool = True) -> None:
        """
        Partially update the document addressed by ``data["id"]``.

        Fields absent from ``data`` are left alone; fields set to None are
        cleared.

        Args:
            data: Fields to change plus the required id
            timestamps: Set updated_at (server time); created_at is never written

        Raises:
            ValueError: If data has no id
            MissingDocumentError: From the store, if the document does not exist
        """
        document_id = require_document_id(data, "update")
        body = self._write_body(data)

        if timestamps:
            body[UPDATED_AT_FIELD] = SERVER_TIMESTAMP
            body.pop(CREATED_AT_FIELD, None)

        try:
            await self._store.update(self._collection_name, document_id, body)
        except MissingDocumentError:
            self._log.warning(f"Update of missing document {document_id}")
            raise
        self._log.debug(f"Updated document {document_id}")

    async def set(
        self,
        data: Any,
        *,
        merge: bool = False,
        merge_fields: Optional[Sequence[str]] = None,
        timestamps: bool = True,
    ) -> None:
        """
        Write the document addressed by ``data["id"]``, creating it if needed.

        Replaces the whole document unless ``merge`` or ``merge_fields``
        is given, in which case the data is merged into it.

        Args:
            data: Record fields plus the required id
            merge: Deep-merge into the existing document
            merge_fields: Only write these field paths
            timestamps: Set created_at (server time) and clear updated_at

        Raises:
            ValueError: If data has no id
        """
        document_id = require_document_id(data, "set")
        body = self._write_body(data)

        if timestamps:
            body[CREATED_AT_FIELD] = SERVER_TIMESTAMP
            body[UPDATED_AT_FIELD] = None

        await self._store.set(
            self._collection_name,
            document_id,
            body,
            merge=merge,
            merge_fields=merge_fields,
        )
        self._log.debug(f"Set document {document_id} (merge={merge or merge_fields is not None})")

    async def delete(self, document_id: str) -> None:
        """Delete a document; missing documents are ignored."""
        await self._store.delete(self._collection_name, document_id)
        self._log.debug(f"Deleted document {document_id}")

    # ---------- Reads ----------

    def _to_record(self, snapshot: DocumentSnapshot, timestamps: bool) -> Record:
        data = of_document_snapshot(snapshot, timestamps)
        if self._model is None:
            return data
        return self._model.model_validate(data)

    async def get_by_id(self, document_id: str, *, timestamps: bool = True) -> Record:
        """
        Fetch one record.

        Raises:
            DocumentNotFoundError: If no document has this id
        """
        snapshot = await self._store.get(self._collection_name, document_id)

        if not snapshot.exists:
            self._log.info(f"Document {document_id} not found")
            raise DocumentNotFoundError()

        return self._to_record(snapshot, timestamps)

    async def get_by_ids(self, document_ids: Sequence[str], *, timestamps: bool = True) -> List[Record]:
        """
        Fetch several records concurrently, in the order of ``document_ids``.

        Raises:
            DocumentNotFoundError: If any id is missing; no partial result
        """
        return list(await asyncio.gather(
            *(self.get_by_id(document_id, timestamps=timestamps) for document_id in document_ids)
        ))

    async def get_all(self, *, timestamps: bool = True) -> List[Record]:
        """Fetch every record of the collection (empty list if none)."""
        return await self.query(Query(), timestamps=timestamps)

    async def query(
        self,
        query: Query,
        *,
        timestamps: bool = True,
        raise_if_empty: bool = False,
    ) -> List[Record]:
        """
        Run a prebuilt Query.

        Args:
            query: Filters, sort and limit
            timestamps: Convert store timestamps to datetime
            raise_if_empty: Raise instead of returning an empty list

        Raises:
            DocumentNotFoundError: If nothing matched and raise_if_empty is set
        """
        snapshots = await self._store.query(self._collection_name, query)

        if not snapshots and raise_if_empty:
            self._log.info(f"No documents matched {len(query.filters)} filter(s)")
            raise DocumentNotFoundError()

        return [self._to_record(snapshot, timestamps) for snapshot in snapshots]

    async def get_where(
        self,
        field: str,
        operator: Union[FilterOperator, str],
        value: Any,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        direction: Union[Direction, str, None] = None,
        *,
        timestamps: bool = True,
        raise_if_empty: bool = False,
    ) -> List[Record]:
        """
        Fetch records matching one (field, operator, value) filter.

        Args:
            field: Field path to filter on
            operator: Comparison, e.g. "==" or ">="
            value: Value to compare against
            limit: Maximum number of records (None/0 = all)
            order_by: Field to sort on
            direction: "asc" (default) or "desc"
            timestamps: Convert store timestamps to datetime
            raise_if_empty: Raise DocumentNotFoundError instead of returning []
        """
        return await self.query(
            Query.build((field, operator, value), limit, order_by, direction),
            timestamps=timestamps,
            raise_if_empty=raise_if_empty,
        )

    async def get_where_many(
        self,
        filters: Sequence[FilterLike],
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        direction: Union[Direction, str, None] = None,
        *,
        timestamps: bool = True,
        raise_if_empty: bool = False,
    ) -> List[Record]:
        """
        Fetch records matching every filter of ``filters``.

        Filters may be Filter objects, (field, operator, value) tuples or
        mappings; an empty list returns the whole collection.
        """
        return await self.query(
            Query.build(list(filters), limit, order_by, direction),
            timestamps=timestamps,
            raise_if_empty=raise_if_empty,
        )

    async def get_one_where(
        self,
        field: str,
        operator: Union[FilterOperator, str],
        value: Any,
        order_by: Optional[str] = None,
        direction: Union[Direction, str, None] = None,
        *,
        timestamps: bool = True,
    ) -> Optional[Record]:
        """First record matching one filter, or None."""
        records = await self.get_where(
            field, operator, value, 1, order_by, direction, timestamps=timestamps
        )
        return records[0] if records else None

    async def get_one_where_many(
        self,
        filters: Sequence[FilterLike],
        order_by: Optional[str] = None,
        direction: Union[Direction, str, None] = None,
        *,
        timestamps: bool = True,
    ) -> Optional[Record]:
        """First record matching every filter, or None."""
        records = await self.get_where_many(
            filters, 1, order_by, direction, timestamps=timestamps
        )
        return records[0] if records else None
