"""Protocol definitions for the store seams.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import ConnectionState, SubmissionDraft, SubmissionRecord
    from .types import ConnectionFailureKind

__all__ = ("ConnectionBackend", "ReadinessProbe", "SubmissionStore")


@runtime_checkable
class ReadinessProbe(Protocol):
    """Read-only view of the store connection state.

    Request handlers depend on this protocol rather than on the connection
    manager itself, so tests can substitute a fixed state.
    """

    @abstractmethod
    def current_state(self) -> ConnectionState:
        """Return the current state without blocking."""
        ...


@runtime_checkable
class ConnectionBackend(Protocol):
    """Driver-specific half of the connection lifecycle.

    Backends open and close a handle for a connection string and know how
    to classify their own failures. Lifecycle policy (state, retries,
    heartbeats) lives in the connection manager.
    """

    name: str

    @abstractmethod
    async def open(self, uri: str) -> Any:
        """Open a connection and verify it with a round-trip.

        Raises:
            Exception: Any driver error; the manager classifies it.
        """
        ...

    @abstractmethod
    async def ping(self, handle: Any) -> None:
        """Verify an open handle is still usable."""
        ...

    @abstractmethod
    async def close(self, handle: Any) -> None:
        """Release a handle."""
        ...

    @abstractmethod
    def classify(self, exc: BaseException) -> ConnectionFailureKind:
        """Map a driver failure to authentication, network or timeout."""
        ...


@runtime_checkable
class SubmissionStore(Protocol):
    """Persistence for submission records."""

    @abstractmethod
    async def insert(self, draft: SubmissionDraft) -> SubmissionRecord:
        """Persist a draft atomically and return the stored record.

        Raises:
            StoreError: If the write fails; nothing is persisted.
        """
        ...

    @abstractmethod
    async def list_all(self) -> list[SubmissionRecord]:
        """Return every record, most recently submitted first.

        Raises:
            StoreError: If the read fails.
        """
        ...

    @abstractmethod
    async def ping(self) -> dict[str, Any]:
        """Round-trip to the store and return its reply."""
        ...

    @abstractmethod
    async def describe(self) -> list[str]:
        """Return the collection names visible to the service."""
        ...
