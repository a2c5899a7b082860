"""
Document Store Interface Definitions

Defines the contract a storage backend must satisfy for the repository
layer. Swapping backends (MongoDB, in-memory) does not change repository
or consumer code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..documents.filters import Query


@dataclass(frozen=True)
class DocumentSnapshot:
    """
    A document as read from the store.

    Attributes:
        id: Store identifier of the document
        data: Stored body without the identifier, None if the document
              does not exist
    """
    id: str
    data: Optional[Dict[str, Any]] = None

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        """Return a shallow copy of the body, or None if missing."""
        if self.data is None:
            return None
        return dict(self.data)


class DocumentStore(ABC):
    """
    Abstract interface for document store operations.

    Implementations:
    - MongoDocumentStore: MongoDB through pymongo's async client
    - InMemoryDocumentStore: process-local dicts, for tests and local runs

    Write bodies may contain FieldValue sentinels (server timestamp,
    increment) at any mapping depth; the store resolves them at commit.
    Collections are resolved on every call, never cached per repository.
    Errors are not retried and propagate to the caller.
    """

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> DocumentSnapshot:
        """
        Fetch one document.

        Args:
            collection: Collection name
            document_id: Document identifier

        Returns:
            DocumentSnapshot (``exists`` is False when not found)
        """
        pass

    @abstractmethod
    async def create(self, collection: str, body: Dict[str, Any]) -> str:
        """
        Create a document with a store-assigned identifier.

        Args:
            collection: Collection name
            body: Document body without identifier

        Returns:
            The new document's identifier
        """
        pass

    @abstractmethod
    async def set(
        self,
        collection: str,
        document_id: str,
        body: Dict[str, Any],
        merge: bool = False,
        merge_fields: Optional[Sequence[str]] = None,
    ) -> None:
        """
        Create or replace the document at ``document_id``.

        Args:
            collection: Collection name
            document_id: Document identifier
            body: Document body without identifier
            merge: Deep-merge into the existing document instead of replacing
            merge_fields: Only write these field paths (implies merge)
        """
        pass

    @abstractmethod
    async def update(self, collection: str, document_id: str, body: Dict[str, Any]) -> None:
        """
        Partially update an existing document.

        Top-level keys of ``body`` (or dotted paths) replace the stored
        values; other fields are left alone.

        Raises:
            MissingDocumentError: If the document does not exist
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        pass

    @abstractmethod
    async def query(self, collection: str, query: Query) -> List[DocumentSnapshot]:
        """
        Run a filtered query: filters (AND), then sort, then limit.

        Returns:
            Matching snapshots, possibly empty
        """
        pass

    async def close(self) -> None:
        """Release connections held by the store."""
        return None
