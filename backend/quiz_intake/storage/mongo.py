"""MongoDB backend and submission store.

Uses the native asyncio client shipped with ``pymongo``. The connection
backend verifies every new client with a ``ping`` before handing it to the
connection manager; the store maps driver failures onto
:class:`~quiz_intake.core.exceptions.StoreError` and reports
connection-level failures back to the manager so it can reconnect.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Final

# Third-party (alphabetical)
from pymongo import DESCENDING, AsyncMongoClient
from pymongo.errors import (
    ConnectionFailure,
    ExecutionTimeout,
    NetworkTimeout,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
    WTimeoutError,
)

# Local imports (core first, then alphabetical)
from ..core.constants import (
    CONNECT_TIMEOUT_MS,
    DEFAULT_COLLECTION_NAME,
    DEFAULT_DATABASE_NAME,
    MAX_POOL_SIZE,
    MIN_POOL_SIZE,
    SERVER_SELECTION_TIMEOUT_MS,
    SOCKET_TIMEOUT_MS,
)
from ..core.exceptions import StoreError, StoreTimeoutError, classify_connection_failure
from ..core.models import SubmissionDraft, SubmissionRecord, utc_now
from ..infra.instrumentation import traced
from ..infra.logging import get_logger

if TYPE_CHECKING:
    from pymongo.asynchronous.collection import AsyncCollection
    from pymongo.asynchronous.database import AsyncDatabase

    from ..core.settings import ServiceSettings
    from ..core.types import ConnectionFailureKind
    from .connection import ConnectionManager

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("MongoBackend", "MongoConnection", "MongoSubmissionStore", "classify_mongo_failure")

# =============================================================================
# Section 3: Constants
# =============================================================================
AUTHENTICATION_ERROR_CODES: Final[frozenset[int]] = frozenset({13, 18, 8000})
TIMEOUT_ERRORS: Final[tuple[type[PyMongoError], ...]] = (
    ServerSelectionTimeoutError,
    NetworkTimeout,
    ExecutionTimeout,
    WTimeoutError,
)
SUBMISSION_PROJECTION: Final[dict[str, int]] = {
    "_id": 1,
    "name": 1,
    "email": 1,
    "phone": 1,
    "school": 1,
    "class": 1,
    "language": 1,
    "answers": 1,
    "score": 1,
    "completionTime": 1,
    "submittedAt": 1,
}

logger = get_logger("storage.mongo")


# =============================================================================
# Section 9: Dataclasses
# =============================================================================
@dataclass(frozen=True, slots=True)
class MongoConnection:
    """Open client plus the database the service works in."""

    client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]


# =============================================================================
# Section 11: Classes
# =============================================================================
class MongoBackend:
    """Connection backend for MongoDB."""

    name = "mongodb"

    def __init__(
        self,
        *,
        database_name: str = DEFAULT_DATABASE_NAME,
        server_selection_timeout_ms: int = SERVER_SELECTION_TIMEOUT_MS,
        socket_timeout_ms: int = SOCKET_TIMEOUT_MS,
        connect_timeout_ms: int = CONNECT_TIMEOUT_MS,
        max_pool_size: int = MAX_POOL_SIZE,
        min_pool_size: int = MIN_POOL_SIZE,
    ) -> None:
        self.database_name = database_name
        self.client_options: dict[str, Any] = {
            "serverSelectionTimeoutMS": server_selection_timeout_ms,
            "socketTimeoutMS": socket_timeout_ms,
            "connectTimeoutMS": connect_timeout_ms,
            "maxPoolSize": max_pool_size,
            "minPoolSize": min_pool_size,
            "retryWrites": True,
            "w": "majority",
            "tz_aware": True,
            "appname": "quiz-intake",
        }

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> MongoBackend:
        return cls(
            database_name=settings.database_name,
            server_selection_timeout_ms=settings.server_selection_timeout_ms,
            socket_timeout_ms=settings.socket_timeout_ms,
            connect_timeout_ms=settings.connect_timeout_ms,
            max_pool_size=settings.max_pool_size,
            min_pool_size=settings.min_pool_size,
        )

    async def open(self, uri: str) -> MongoConnection:
        client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(uri, **self.client_options)
        database = client.get_database(self.database_name)
        try:
            await database.command("ping")
        except BaseException:
            await client.close()
            raise
        logger.info("mongodb_connected", database=database.name)
        return MongoConnection(client=client, database=database)

    async def ping(self, handle: MongoConnection) -> None:
        await handle.database.command("ping")

    async def close(self, handle: MongoConnection) -> None:
        await handle.client.close()

    def classify(self, exc: BaseException) -> ConnectionFailureKind:
        return classify_mongo_failure(exc)


class MongoSubmissionStore:
    """Submission store over a MongoDB collection."""

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

    def _database(self, operation: str) -> AsyncDatabase[dict[str, Any]]:
        handle: MongoConnection | None = self.connection.handle
        if handle is None:
            raise StoreError(operation, "Database not connected")
        return handle.database

    def _collection(self, operation: str) -> AsyncCollection[dict[str, Any]]:
        return self._database(operation).get_collection(self.collection_name)

    def _failure(self, operation: str, exc: PyMongoError) -> StoreError:
        if isinstance(exc, TIMEOUT_ERRORS) or getattr(exc, "timeout", False):
            error: StoreError = StoreTimeoutError(operation, str(exc), cause=exc)
        else:
            error = StoreError(operation, str(exc), cause=exc)
        if isinstance(exc, ConnectionFailure):
            self.connection.report_failure(exc)
        logger.error("store_operation_failed", operation=operation, error_type=type(exc).__name__, error=str(exc))
        return error

    @traced("store.mongo.insert")
    async def insert(self, draft: SubmissionDraft) -> SubmissionRecord:
        collection = self._collection("insert")
        document: dict[str, Any] = {**draft.to_document(), "submittedAt": self._clock()}
        try:
            result = await collection.insert_one(document)
        except PyMongoError as exc:
            raise self._failure("insert", exc) from exc
        return SubmissionRecord.from_draft(draft, record_id=str(result.inserted_id), submitted_at=document["submittedAt"])

    @traced("store.mongo.list_all")
    async def list_all(self) -> list[SubmissionRecord]:
        collection = self._collection("list")
        try:
            cursor = collection.find({}, SUBMISSION_PROJECTION).sort([("submittedAt", DESCENDING), ("_id", DESCENDING)])
            documents = await cursor.to_list(None)
        except PyMongoError as exc:
            raise self._failure("list", exc) from exc
        return [SubmissionRecord.from_document(document) for document in documents]

    async def ping(self) -> dict[str, Any]:
        database = self._database("ping")
        try:
            return dict(await database.command("ping"))
        except PyMongoError as exc:
            raise self._failure("ping", exc) from exc

    async def describe(self) -> list[str]:
        database = self._database("describe")
        try:
            return sorted(await database.list_collection_names())
        except PyMongoError as exc:
            raise self._failure("describe", exc) from exc


# =============================================================================
# Section 12: Functions
# =============================================================================
def classify_mongo_failure(exc: BaseException) -> ConnectionFailureKind:
    """Classify a driver failure as authentication, network or timeout."""
    if isinstance(exc, OperationFailure) and exc.code in AUTHENTICATION_ERROR_CODES:
        return "authentication"
    if isinstance(exc, TIMEOUT_ERRORS):
        # Server selection reports refused connections as timeouts; keep those as network.
        if isinstance(exc, ServerSelectionTimeoutError) and "refused" in str(exc).lower():
            return "network"
        return "timeout"
    if isinstance(exc, ConnectionFailure):
        return "network"
    return classify_connection_failure(exc)
