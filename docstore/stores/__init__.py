"""
Document store backends.

- DocumentStore: abstract contract used by repositories
- MongoDocumentStore: MongoDB via pymongo's async client
- InMemoryDocumentStore: process-local dicts
"""

from .base import DocumentSnapshot, DocumentStore
from .memory_store import InMemoryDocumentStore
from .mongo_store import MongoDocumentStore

__all__ = [
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "MongoDocumentStore",
]
