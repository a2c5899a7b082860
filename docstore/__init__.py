"""
docstore - typed repository layer over a document store.

Public API:
- Repository: generic CRUD and filtered reads over one collection
- Model: base class for stored records
- Filter / Query: conjunctive query filters
- SERVER_TIMESTAMP, increment(), decrement(), UNSET: write values
- AppError, ApiError, DocumentNotFoundError, StoreError: error taxonomy
"""

from .documents import (
    SERVER_TIMESTAMP,
    UNSET,
    Direction,
    Filter,
    FilterOperator,
    Model,
    Query,
    decrement,
    increment,
    server_timestamp,
)
from .exceptions import (
    ApiError,
    AppError,
    DocumentNotFoundError,
    MissingDocumentError,
    StoreError,
)
from .repositories import Repository, get_document_store, reset_document_store
from .stores import DocumentSnapshot, DocumentStore, InMemoryDocumentStore, MongoDocumentStore
from .version import __version__

__all__ = [
    "Repository",
    "Model",
    "Filter",
    "FilterOperator",
    "Direction",
    "Query",
    "SERVER_TIMESTAMP",
    "UNSET",
    "server_timestamp",
    "increment",
    "decrement",
    "AppError",
    "ApiError",
    "DocumentNotFoundError",
    "StoreError",
    "MissingDocumentError",
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "MongoDocumentStore",
    "get_document_store",
    "reset_document_store",
    "__version__",
]
