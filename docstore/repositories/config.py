"""
Store Configuration and Factory

Provides a factory function returning the document store selected by
environment configuration.
"""

import os
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..stores.base import DocumentStore

logger = logging.getLogger(__name__)


class StoreBackend(str, Enum):
    """Document store implementation to use."""
    MONGO = "mongo"
    MEMORY = "memory"


@dataclass
class StoreConfig:
    """
    Configuration for document store initialization.

    Loaded from environment variables with sensible defaults.
    """
    backend: StoreBackend = StoreBackend.MONGO

    # MongoDB (required for the mongo backend)
    mongodb_uri: Optional[str] = None
    database: str = "docstore"

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - DOCSTORE_BACKEND: mongo (default) or memory
        - MONGODB_URI: MongoDB connection string (required for mongo)
        - MONGODB_DATABASE: Database name (default: docstore)

        Returns:
            StoreConfig instance

        Raises:
            ValueError: If the mongo backend is selected and MONGODB_URI is not set
        """
        backend_str = os.getenv("DOCSTORE_BACKEND", "mongo").lower()
        try:
            backend = StoreBackend(backend_str)
        except ValueError:
            logger.warning(f"Invalid DOCSTORE_BACKEND '{backend_str}', defaulting to mongo")
            backend = StoreBackend.MONGO

        mongodb_uri = os.getenv("MONGODB_URI")
        if backend is StoreBackend.MONGO and not mongodb_uri:
            raise ValueError("MONGODB_URI environment variable is required")

        return cls(
            backend=backend,
            mongodb_uri=mongodb_uri,
            database=os.getenv("MONGODB_DATABASE", "docstore"),
        )


def create_document_store(config: StoreConfig) -> DocumentStore:
    """
    Build the store described by ``config``.

    Args:
        config: Store configuration

    Returns:
        DocumentStore implementation
    """
    if config.backend is StoreBackend.MEMORY:
        from ..stores.memory_store import InMemoryDocumentStore
        logger.info("Initialized in-memory document store")
        return InMemoryDocumentStore()

    from ..stores.mongo_store import MongoDocumentStore
    return MongoDocumentStore.from_uri(config.mongodb_uri, config.database)


# Singleton store instance
_store_instance: Optional[DocumentStore] = None


def get_document_store() -> DocumentStore:
    """
    Get the process-wide document store.

    Built lazily from the environment on first use. Repositories take the
    store as a constructor argument; this factory only decides which one
    the application wires in.

    Returns:
        DocumentStore implementation

    Raises:
        ValueError: If MongoDB URI is not configured for the mongo backend
    """
    global _store_instance

    if _store_instance is None:
        _store_instance = create_document_store(StoreConfig.from_env())

    return _store_instance


async def reset_document_store() -> None:
    """
    Close and forget the store singleton.

    Used for testing or when configuration changes.
    """
    global _store_instance

    if _store_instance is not None:
        await _store_instance.close()

    _store_instance = None
    logger.info("Document store singleton reset")
