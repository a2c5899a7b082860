"""
Repository Pattern for Document Store Operations

Public API:
- Repository: generic CRUD and filtered reads over one collection
- get_document_store(): Factory returning the configured store
- StoreConfig / StoreBackend: Environment-driven store selection

Usage:
    from docstore.repositories import Repository, get_document_store

    users = Repository(get_document_store(), "users", User)
    user = await users.get_by_id(user_id)
"""

from .base import Repository
from .config import (
    StoreBackend,
    StoreConfig,
    create_document_store,
    get_document_store,
    reset_document_store,
)

__all__ = [
    "Repository",
    "StoreBackend",
    "StoreConfig",
    "create_document_store",
    "get_document_store",
    "reset_document_store",
]
