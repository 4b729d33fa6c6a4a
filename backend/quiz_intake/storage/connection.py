"""Connection lifecycle for the document store.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
import asyncio
import contextlib
import time
from typing import TYPE_CHECKING, Any

# Local imports (core first, then alphabetical)
from ..core.constants import (
    CONNECTION_FAILURE_HINTS,
    HEARTBEAT_INTERVAL_SECONDS,
    MAX_RETRY_DELAY_SECONDS,
    MEMORY_URI_SCHEME,
    RETRY_BACKOFF_FACTOR,
    RETRY_DELAY_SECONDS,
)
from ..core.exceptions import ConfigurationError, DatabaseConnectionError
from ..core.models import ConnectionState
from ..infra.instrumentation import Metrics
from ..infra.logging import get_logger
from .memory import MemoryBackend
from .mongo import MongoBackend

if TYPE_CHECKING:
    from ..core.protocols import ConnectionBackend
    from ..core.settings import ServiceSettings

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("ConnectionManager",)

logger = get_logger("storage.connection")


# =============================================================================
# Section 11: Classes
# =============================================================================
class ConnectionManager:
    """Owns the store connection and its readiness state.

    The manager is the only writer of :class:`ConnectionState`. Handlers read
    it through :meth:`current_state`, which never blocks.

    Lifecycle:
        ``start()`` makes a first connection attempt and then runs a
        supervised background task. While connected, the task pings the
        store every ``heartbeat_interval`` seconds and also wakes when a
        store operation reports a connection-level failure. A lost or failed
        connection is retried after a bounded backoff, forever, until
        ``stop()`` is called. A missing connection string ends supervision.

    Example:
        >>> manager = ConnectionManager(MemoryBackend(), uri='memory://quiz')
        >>> await manager.start()
        >>> manager.current_state()
        <ConnectionState.CONNECTED: 'Connected'>
    """

    def __init__(
        self,
        backend: ConnectionBackend,
        *,
        uri: str | None,
        retry_delay: float = RETRY_DELAY_SECONDS,
        max_retry_delay: float = MAX_RETRY_DELAY_SECONDS,
        backoff_factor: float = RETRY_BACKOFF_FACTOR,
        heartbeat_interval: float = HEARTBEAT_INTERVAL_SECONDS,
    ) -> None:
        self.backend = backend
        self._uri = uri
        self.retry_delay = retry_delay
        self.max_retry_delay = max(max_retry_delay, retry_delay)
        self.backoff_factor = backoff_factor
        self.heartbeat_interval = heartbeat_interval

        self._state = ConnectionState.DISCONNECTED
        self._handle: Any | None = None
        self._changed = asyncio.Event()
        self._lost = asyncio.Event()
        self._supervisor: asyncio.Task[None] | None = None

        self.attempts = 0
        self.last_failure: DatabaseConnectionError | None = None

    @classmethod
    def from_settings(cls, settings: ServiceSettings, backend: ConnectionBackend | None = None) -> ConnectionManager:
        """Build a manager, choosing the backend from the connection string."""
        if backend is None:
            backend = _default_backend(settings)
        return cls(
            backend,
            uri=settings.mongodb_uri,
            retry_delay=settings.retry_delay_seconds,
            max_retry_delay=settings.max_retry_delay_seconds,
            backoff_factor=settings.retry_backoff_factor,
            heartbeat_interval=settings.heartbeat_interval_seconds,
        )

    # -------------------------------------------------------------------------
    # Readiness
    # -------------------------------------------------------------------------
    def current_state(self) -> ConnectionState:
        return self._state

    @property
    def handle(self) -> Any | None:
        """The live backend handle, or ``None`` when not connected."""
        if self._state is not ConnectionState.CONNECTED:
            return None
        return self._handle

    @property
    def is_supervising(self) -> bool:
        return self._supervisor is not None and not self._supervisor.done()

    async def wait_for(self, state: ConnectionState, timeout: float | None = None) -> bool:
        """Wait until the manager reaches ``state``.

        Returns:
            True if the state was reached, False on timeout.
        """

        async def _wait() -> None:
            while self._state is not state:
                await self._changed.wait()

        try:
            await asyncio.wait_for(_wait(), timeout)
        except TimeoutError:
            return False
        return True

    # -------------------------------------------------------------------------
    # Connect / disconnect
    # -------------------------------------------------------------------------
    async def connect(self) -> None:
        """Open a fresh connection, dropping any existing one first.

        Raises:
            ConfigurationError: If no connection string is configured.
            DatabaseConnectionError: If the attempt fails for any other reason.
        """
        if not self._uri:
            raise ConfigurationError("MONGODB_URI")

        if self._handle is not None or self._state is not ConnectionState.DISCONNECTED:
            await self.disconnect()

        self._set_state(ConnectionState.CONNECTING)
        attempt = self.attempts + 1
        started = time.perf_counter()
        logger.info("connection_attempt_started", backend=self.backend.name, attempt=attempt)
        try:
            handle = await self.backend.open(self._uri)
        except asyncio.CancelledError:
            self._set_state(ConnectionState.DISCONNECTED)
            raise
        except Exception as exc:
            kind = self.backend.classify(exc)
            error = DatabaseConnectionError(kind, str(exc) or type(exc).__name__, cause=exc)
            self.attempts = attempt
            self.last_failure = error
            self._set_state(ConnectionState.DISCONNECTED)
            Metrics.record_connection_attempt(attempt, False, _elapsed_ms(started), kind)
            logger.error(
                "connection_failed",
                kind=kind,
                error_type=type(exc).__name__,
                error=str(exc),
                hint=CONNECTION_FAILURE_HINTS[kind],
                attempt=attempt,
            )
            raise error from exc

        self._handle = handle
        self._lost.clear()
        self.attempts = 0
        self.last_failure = None
        self._set_state(ConnectionState.CONNECTED)
        Metrics.record_connection_attempt(attempt, True, _elapsed_ms(started))

    async def disconnect(self) -> None:
        """Close the current handle, if any."""
        handle, self._handle = self._handle, None
        if handle is None:
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._set_state(ConnectionState.DISCONNECTING)
        try:
            await self.backend.close(handle)
        except Exception as exc:
            logger.warning("connection_close_failed", error_type=type(exc).__name__, error=str(exc))
        finally:
            self._set_state(ConnectionState.DISCONNECTED)

    def report_failure(self, exc: BaseException) -> None:
        """Mark an established connection as lost.

        Called by stores when an operation fails at the connection level.
        The supervisor reconnects after the usual backoff.
        """
        if self._state is not ConnectionState.CONNECTED:
            return
        logger.warning("connection_lost", error_type=type(exc).__name__, error=str(exc))
        self._set_state(ConnectionState.DISCONNECTED)
        self._lost.set()

    # -------------------------------------------------------------------------
    # Supervision
    # -------------------------------------------------------------------------
    async def start(self) -> None:
        """Make a first connection attempt, then supervise in the background."""
        if self.is_supervising:
            return
        try:
            await self.connect()
        except ConfigurationError as exc:
            logger.error("database_not_configured", error=str(exc))
            return
        except DatabaseConnectionError:
            pass
        self._supervisor = asyncio.create_task(self._supervise(), name="quiz-intake-connection")

    async def stop(self) -> None:
        """Stop supervision and close the connection."""
        supervisor, self._supervisor = self._supervisor, None
        if supervisor is not None:
            supervisor.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await supervisor
        await self.disconnect()

    def next_delay(self) -> float:
        """Delay before the next attempt, growing with consecutive failures."""
        exponent = max(self.attempts - 1, 0)
        return min(self.retry_delay * self.backoff_factor**exponent, self.max_retry_delay)

    async def _supervise(self) -> None:
        while True:
            if self._state is ConnectionState.CONNECTED:
                await self._watch()

            delay = self.next_delay()
            logger.info("reconnect_scheduled", delay_seconds=delay, attempt=self.attempts + 1)
            await asyncio.sleep(delay)
            try:
                await self.connect()
            except ConfigurationError as exc:
                logger.error("database_not_configured", error=str(exc))
                return
            except DatabaseConnectionError:
                continue

    async def _watch(self) -> None:
        """Return once the current connection is considered lost."""
        while self._state is ConnectionState.CONNECTED:
            try:
                await asyncio.wait_for(self._lost.wait(), timeout=self.heartbeat_interval)
            except TimeoutError:
                handle = self._handle
                try:
                    await self.backend.ping(handle)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    self.report_failure(exc)
            else:
                break
        self._lost.clear()

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        logger.info("connection_state_changed", previous=previous.value, state=state.value)
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()


# =============================================================================
# Section 12: Functions
# =============================================================================
def _default_backend(settings: ServiceSettings) -> ConnectionBackend:
    uri = settings.mongodb_uri or ""
    if uri.startswith(MEMORY_URI_SCHEME):
        return MemoryBackend()
    return MongoBackend.from_settings(settings)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
