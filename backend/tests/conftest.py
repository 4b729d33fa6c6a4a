"""Shared test fixtures and helpers for quiz-intake tests.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, TypeVar

import logfire
import pytest
from bson import ObjectId

from quiz_intake.core.exceptions import StoreError, classify_connection_failure
from quiz_intake.core.models import ConnectionState, SubmissionDraft, SubmissionRecord
from quiz_intake.core.settings import ServiceSettings
from quiz_intake.storage import MemoryDatabase

# Re-export dirty_equals for convenience
if TYPE_CHECKING:
    from collections.abc import Iterator

    T = TypeVar("T")

    def IsInstance(arg: type[T]) -> T: ...
    def IsDatetime(*args: Any, **kwargs: Any) -> datetime: ...
    def IsInt(*args: Any, **kwargs: Any) -> int: ...
    def IsNow(*args: Any, **kwargs: Any) -> datetime: ...
    def IsStr(*args: Any, **kwargs: Any) -> str: ...
else:
    from dirty_equals import IsDatetime, IsInstance, IsInt, IsStr
    from dirty_equals import IsNow as _IsNow

    def IsNow(*args: Any, **kwargs: Any):
        """IsNow with increased delta for test stability."""
        if "delta" not in kwargs:
            kwargs["delta"] = 10
        return _IsNow(*args, **kwargs)


__all__ = (
    "IsDatetime",
    "IsNow",
    "IsStr",
    "IsInt",
    "IsInstance",
    "TestEnv",
    "FakeReadiness",
    "RecordingStore",
    "FlakyBackend",
    "StepClock",
)


class TestEnv:
    """Helper for managing environment variables in tests."""

    __test__ = False  # Prevent pytest from collecting this class

    def __init__(self) -> None:
        self.envars: dict[str, str | None] = {}

    def set(self, name: str, value: str) -> None:
        """Set an environment variable, saving the original value."""
        self.envars.setdefault(name, os.getenv(name))
        os.environ[name] = value

    def remove(self, name: str) -> None:
        """Remove an environment variable, saving the original value."""
        self.envars.setdefault(name, os.getenv(name))
        os.environ.pop(name, None)

    def reset(self) -> None:
        """Reset all modified environment variables to original values."""
        for name, value in self.envars.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value


class FakeReadiness:
    """Connection stand-in with a fixed, settable state."""

    def __init__(self, state: ConnectionState = ConnectionState.CONNECTED) -> None:
        self.state = state
        self.started = False
        self.stopped = False

    def current_state(self) -> ConnectionState:
        return self.state

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True


class StepClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self._next = start or datetime(2025, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self._next
        self._next = current + timedelta(seconds=1)
        return current


class RecordingStore:
    """Submission store that records every call it receives."""

    def __init__(self, *, fail_with: StoreError | None = None, clock: Callable[[], datetime] | None = None) -> None:
        self.calls: list[str] = []
        self.records: list[SubmissionRecord] = []
        self.fail_with = fail_with
        self._clock = clock or StepClock()

    async def insert(self, draft: SubmissionDraft) -> SubmissionRecord:
        self.calls.append("insert")
        if self.fail_with is not None:
            raise self.fail_with
        record = SubmissionRecord.from_draft(draft, record_id=str(ObjectId()), submitted_at=self._clock())
        self.records.append(record)
        return record

    async def list_all(self) -> list[SubmissionRecord]:
        self.calls.append("list_all")
        if self.fail_with is not None:
            raise self.fail_with
        return sorted(reversed(self.records), key=lambda record: record.submitted_at, reverse=True)

    async def ping(self) -> dict[str, Any]:
        self.calls.append("ping")
        if self.fail_with is not None:
            raise self.fail_with
        return {"ok": 1.0}

    async def describe(self) -> list[str]:
        self.calls.append("describe")
        return ["users"]


class FlakyBackend:
    """Connection backend that fails a scripted number of times."""

    name = "flaky"

    def __init__(self, failures: list[BaseException] | None = None) -> None:
        self.failures = list(failures or [])
        self.database = MemoryDatabase()
        self.ping_error: BaseException | None = None
        self.opens = 0
        self.closes = 0
        self.pings = 0

    async def open(self, uri: str) -> MemoryDatabase:
        self.opens += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.database

    async def ping(self, handle: MemoryDatabase) -> None:
        self.pings += 1
        if self.ping_error is not None:
            raise self.ping_error

    async def close(self, handle: MemoryDatabase) -> None:
        self.closes += 1

    def classify(self, exc: BaseException) -> str:
        return classify_connection_failure(exc)


@pytest.fixture(scope="session", autouse=True)
def _configure_logfire() -> None:
    """Keep logfire local and quiet during tests."""
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def env() -> Iterator[TestEnv]:
    """Fixture for managing environment variables in tests."""
    test_env = TestEnv()
    yield test_env
    test_env.reset()


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def make_settings() -> Callable[..., ServiceSettings]:
    """Factory for settings isolated from the process environment's ``.env``."""

    def factory(**overrides: Any) -> ServiceSettings:
        values: dict[str, Any] = {
            "mongodb_uri": "memory://quiz",
            "submission_profile": "B",
            "admin_token": "admin-secret",
            "retry_delay_seconds": 0.01,
            "heartbeat_interval_seconds": 0.05,
            "environment": "test",
            "port": 5000,
        }
        values.update(overrides)
        return ServiceSettings(_env_file=None, **values)

    return factory


@pytest.fixture
def step_clock() -> StepClock:
    return StepClock()



@pytest.fixture
def readiness() -> FakeReadiness:
    return FakeReadiness()


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def flaky_backend() -> FlakyBackend:
    return FlakyBackend()
