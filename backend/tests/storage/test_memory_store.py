"""Tests for the in-memory submission store.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from quiz_intake.core.exceptions import StoreError
from quiz_intake.core.models import SubmissionDraft
from quiz_intake.storage import ConnectionManager, MemoryBackend, MemorySubmissionStore, create_store

if TYPE_CHECKING:
    from tests.conftest import StepClock

__all__ = ()

pytestmark = pytest.mark.anyio


def _draft(name: str = "Ana", **overrides: object) -> SubmissionDraft:
    return SubmissionDraft(name=name, phone="555", language="en", **overrides)


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
async def connection(backend: MemoryBackend) -> ConnectionManager:
    manager = ConnectionManager(backend, uri="memory://quiz")
    await manager.connect()
    return manager


class TestInsert:
    """Tests for inserting submissions."""

    async def test_assigns_id_and_timestamp(self, connection: ConnectionManager, step_clock: StepClock) -> None:
        store = MemorySubmissionStore(connection, clock=step_clock)

        record = await store.insert(_draft(answers=["A"], metric_value=9))

        assert len(record.id) == 24
        assert record.submitted_at == datetime(2025, 1, 1, tzinfo=UTC)
        assert record.answers == ["A"]
        assert record.metric_value == 9

    async def test_ids_are_unique(self, connection: ConnectionManager) -> None:
        store = MemorySubmissionStore(connection)

        records = [await store.insert(_draft()) for _ in range(5)]

        assert len({record.id for record in records}) == 5

    async def test_identical_payloads_stored_twice(self, connection: ConnectionManager) -> None:
        store = MemorySubmissionStore(connection)

        await store.insert(_draft())
        await store.insert(_draft())

        assert len(await store.list_all()) == 2

    async def test_records_are_copies(self, connection: ConnectionManager) -> None:
        store = MemorySubmissionStore(connection)
        record = await store.insert(_draft(answers=["A"]))

        record.answers.append("tampered")

        assert (await store.list_all())[0].answers == ["A"]

    async def test_not_connected(self, backend: MemoryBackend) -> None:
        store = MemorySubmissionStore(ConnectionManager(backend, uri="memory://quiz"))

        with pytest.raises(StoreError, match="Database not connected"):
            await store.insert(_draft())


class TestListAll:
    """Tests for listing submissions."""

    async def test_empty(self, connection: ConnectionManager) -> None:
        assert await MemorySubmissionStore(connection).list_all() == []

    async def test_newest_first(self, connection: ConnectionManager, step_clock: StepClock) -> None:
        store = MemorySubmissionStore(connection, clock=step_clock)
        for name in ("first", "second", "third"):
            await store.insert(_draft(name))

        records = await store.list_all()

        assert [record.name for record in records] == ["third", "second", "first"]
        assert records[0].submitted_at > records[1].submitted_at > records[2].submitted_at

    async def test_equal_timestamps_latest_insert_first(self, connection: ConnectionManager) -> None:
        fixed = datetime(2025, 1, 1, tzinfo=UTC)
        store = MemorySubmissionStore(connection, clock=lambda: fixed)
        for name in ("first", "second"):
            await store.insert(_draft(name))

        assert [record.name for record in await store.list_all()] == ["second", "first"]

    async def test_repeated_listing_is_stable(self, connection: ConnectionManager) -> None:
        fixed = datetime(2025, 1, 1, tzinfo=UTC)
        store = MemorySubmissionStore(connection, clock=lambda: fixed)
        for name in ("first", "second", "third"):
            await store.insert(_draft(name))

        first = await store.list_all()
        second = await store.list_all()

        assert first == second
        assert [record.id for record in first] == [record.id for record in second]

    async def test_survives_reconnect(self, connection: ConnectionManager) -> None:
        store = MemorySubmissionStore(connection)
        await store.insert(_draft())

        await connection.disconnect()
        with pytest.raises(StoreError):
            await store.list_all()
        await connection.connect()

        assert len(await store.list_all()) == 1

    async def test_custom_collection(self, connection: ConnectionManager) -> None:
        users = MemorySubmissionStore(connection)
        archive = MemorySubmissionStore(connection, collection_name="archive")
        await archive.insert(_draft())

        assert await users.list_all() == []
        assert len(await archive.list_all()) == 1


class TestDiagnostics:
    """Tests for ping and describe."""

    async def test_ping(self, connection: ConnectionManager) -> None:
        assert await MemorySubmissionStore(connection).ping() == {"ok": 1.0}

    async def test_describe(self, connection: ConnectionManager) -> None:
        store = MemorySubmissionStore(connection)
        await store.insert(_draft())

        assert await store.describe() == ["users"]


class TestCreateStore:
    """Tests for store selection."""

    def test_memory_backend(self, backend: MemoryBackend) -> None:
        store = create_store(ConnectionManager(backend, uri="memory://quiz"), collection_name="subs")

        assert isinstance(store, MemorySubmissionStore)
        assert store.collection_name == "subs"
