"""Document store connection and persistence.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Local imports (core first, then alphabetical)
from ..core.constants import DEFAULT_COLLECTION_NAME
from ..core.protocols import SubmissionStore
from .connection import ConnectionManager
from .memory import MemoryBackend, MemoryDatabase, MemorySubmissionStore
from .mongo import MongoBackend, MongoConnection, MongoSubmissionStore, classify_mongo_failure

__all__ = (
    "ConnectionManager",
    "MemoryBackend",
    "MemoryDatabase",
    "MemorySubmissionStore",
    "MongoBackend",
    "MongoConnection",
    "MongoSubmissionStore",
    "classify_mongo_failure",
    "create_store",
)


def create_store(connection: ConnectionManager, *, collection_name: str = DEFAULT_COLLECTION_NAME) -> SubmissionStore:
    """Return the store implementation matching the connection's backend."""
    if isinstance(connection.backend, MemoryBackend):
        return MemorySubmissionStore(connection, collection_name=collection_name)
    return MongoSubmissionStore(connection, collection_name=collection_name)
