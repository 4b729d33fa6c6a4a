"""In-memory document store.

Backs ``memory://`` connection strings for local development and tests.
Data lives in a :class:`MemoryDatabase` owned by the backend, so it
survives reconnects the way a real server's data would.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

# Third-party (alphabetical)
from bson import ObjectId

# Local imports (core first, then alphabetical)
from ..core.constants import DEFAULT_COLLECTION_NAME
from ..core.exceptions import StoreError, classify_connection_failure
from ..core.models import SubmissionDraft, SubmissionRecord, utc_now
from ..infra.instrumentation import traced

if TYPE_CHECKING:
    from ..core.types import ConnectionFailureKind
    from .connection import ConnectionManager

__all__ = ("MemoryBackend", "MemoryDatabase", "MemorySubmissionStore")


@dataclass(slots=True)
class MemoryDatabase:
    """Named collections of plain document dicts, in insertion order."""

    name: str = "quiz"
    collections: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    def collection(self, name: str) -> list[dict[str, Any]]:
        return self.collections.setdefault(name, [])


class MemoryBackend:
    """Connection backend that always succeeds."""

    name = "memory"

    def __init__(self, database: MemoryDatabase | None = None) -> None:
        self.database = database or MemoryDatabase()

    async def open(self, uri: str) -> MemoryDatabase:
        return self.database

    async def ping(self, handle: MemoryDatabase) -> None:
        return None

    async def close(self, handle: MemoryDatabase) -> None:
        return None

    def classify(self, exc: BaseException) -> ConnectionFailureKind:
        return classify_connection_failure(exc)


class MemorySubmissionStore:
    """Submission store over a :class:`MemoryDatabase`.

    Records are copied on the way in and out so callers never share
    mutable ``answers`` lists with the store.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        *,
        collection_name: str = DEFAULT_COLLECTION_NAME,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.connection = connection
        self.collection_name = collection_name
        self._clock = clock

    def _database(self, operation: str) -> MemoryDatabase:
        database = self.connection.handle
        if database is None:
            raise StoreError(operation, "Database not connected")
        return database

    def _collection(self, operation: str) -> list[dict[str, Any]]:
        return self._database(operation).collection(self.collection_name)

    @traced("store.memory.insert")
    async def insert(self, draft: SubmissionDraft) -> SubmissionRecord:
        collection = self._collection("insert")
        document = {
            "_id": ObjectId(),
            **copy.deepcopy(draft.to_document()),
            "submittedAt": self._clock(),
        }
        collection.append(document)
        return SubmissionRecord.from_document(copy.deepcopy(document))

    @traced("store.memory.list_all")
    async def list_all(self) -> list[SubmissionRecord]:
        collection = self._collection("list")
        # Newest insert first, then a stable sort keeps that order for equal timestamps.
        newest_first = sorted(reversed(collection), key=lambda doc: doc["submittedAt"], reverse=True)
        return [SubmissionRecord.from_document(copy.deepcopy(doc)) for doc in newest_first]

    async def ping(self) -> dict[str, Any]:
        self._database("ping")
        return {"ok": 1.0}

    async def describe(self) -> list[str]:
        return sorted(self._database("describe").collections)
