"""
Yellow Book API: Gateway Tests
===============================

What:  Tests for YellowBookGateway against a real (temporary) SQLite file.
How:   The `gateway` fixture creates tables in a per-test database. Time is
       pinned by patching the gateway's clock where ordering matters.

What we test:
    ✅ create() assigns id and equal UTC timestamps
    ✅ Tri-state optional fields survive a round trip through storage
    ✅ list_all() is newest first, ties broken by id ascending
    ✅ get_by_id() exact match, missing and out-of-range ids
    ✅ Driver failures become StorageError with an operation message
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from yellowbook.exceptions import StorageError
from yellowbook.gateway import MAX_ENTRY_ID, YellowBookGateway
from yellowbook.schemas.yellow_book import validate_new_entry

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _entry(name: str, **extra):
    return validate_new_entry(
        {
            "businessName": name,
            "category": "Retail",
            "phoneNumber": "+976-7000-0000",
            "address": "UB",
            **extra,
        }
    )


def _pinned_clock(*instants):
    """Patch the gateway's datetime so successive now() calls return `instants`."""
    mock_datetime = patch("yellowbook.gateway.datetime").start()
    mock_datetime.now.side_effect = list(instants)
    return mock_datetime


@pytest.fixture(autouse=True)
def _stop_patches():
    yield
    patch.stopall()


class TestCreate:

    @pytest.mark.asyncio
    async def test_assigns_id_and_timestamps(self, gateway):
        record = await gateway.create(_entry("Acme"))

        assert record["id"] >= 1
        assert record["createdAt"] == record["updatedAt"]
        assert record["createdAt"].tzinfo is not None
        assert record["businessName"] == "Acme"

    @pytest.mark.asyncio
    async def test_ids_are_distinct(self, gateway):
        first = await gateway.create(_entry("First"))
        second = await gateway.create(_entry("Second"))
        assert first["id"] != second["id"]

    @pytest.mark.asyncio
    async def test_absent_and_empty_optionals_are_kept_apart(self, gateway):
        created = await gateway.create(_entry("Acme", description="", website=None))
        stored = await gateway.get_by_id(created["id"])

        assert stored["description"] == ""
        assert stored["website"] is None

    @pytest.mark.asyncio
    async def test_timestamps_round_trip_as_utc(self, gateway):
        _pinned_clock(T0)
        created = await gateway.create(_entry("Acme"))
        stored = await gateway.get_by_id(created["id"])

        assert stored["createdAt"] == T0
        assert stored["createdAt"].utcoffset() == timedelta(0)


class TestListAll:

    @pytest.mark.asyncio
    async def test_empty_table(self, gateway):
        assert await gateway.list_all() == []

    @pytest.mark.asyncio
    async def test_newest_first(self, gateway):
        _pinned_clock(T0, T0 + timedelta(minutes=1), T0 + timedelta(minutes=2))
        for name in ("A", "B", "C"):
            await gateway.create(_entry(name))

        names = [r["businessName"] for r in await gateway.list_all()]
        assert names == ["C", "B", "A"]

    @pytest.mark.asyncio
    async def test_equal_timestamps_keep_insertion_order(self, gateway):
        _pinned_clock(T0, T0, T0 + timedelta(minutes=1))
        a = await gateway.create(_entry("A"))
        b = await gateway.create(_entry("B"))
        c = await gateway.create(_entry("C"))

        ids = [r["id"] for r in await gateway.list_all()]
        assert ids == [c["id"], a["id"], b["id"]]


class TestGetById:

    @pytest.mark.asyncio
    async def test_exact_match(self, gateway):
        await gateway.create(_entry("Other"))
        created = await gateway.create(_entry("Acme"))

        record = await gateway.get_by_id(created["id"])
        assert record["businessName"] == "Acme"

    @pytest.mark.asyncio
    async def test_missing_returns_none(self, gateway):
        assert await gateway.get_by_id(999999) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("entry_id", [0, -1, MAX_ENTRY_ID + 1])
    async def test_out_of_range_skips_the_query(self, entry_id):
        database = MagicMock()
        gw = YellowBookGateway(database)

        assert await gw.get_by_id(entry_id) is None
        database.session.assert_not_called()


class TestClear:

    @pytest.mark.asyncio
    async def test_removes_every_row(self, gateway):
        await gateway.create(_entry("A"))
        await gateway.create(_entry("B"))

        assert await gateway.clear() == 2
        assert await gateway.list_all() == []


class TestStorageFailures:
    """The driver raising must surface as StorageError, never a raw SQLAlchemy error."""

    def setup_method(self):
        database = MagicMock()
        database.session.side_effect = OperationalError(
            "SELECT 1", {}, Exception("database is locked")
        )
        self.gateway = YellowBookGateway(database)

    @pytest.mark.asyncio
    async def test_list_failure(self):
        with pytest.raises(StorageError) as exc_info:
            await self.gateway.list_all()

        assert exc_info.value.message == "Failed to fetch yellow books"
        assert exc_info.value.context["error_type"] == "OperationalError"

    @pytest.mark.asyncio
    async def test_get_failure(self):
        with pytest.raises(StorageError) as exc_info:
            await self.gateway.get_by_id(1)
        assert exc_info.value.message == "Failed to fetch yellow book"

    @pytest.mark.asyncio
    async def test_create_failure(self):
        with pytest.raises(StorageError) as exc_info:
            await self.gateway.create(_entry("Acme"))
        assert exc_info.value.message == "Failed to create yellow book entry"

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        database = MagicMock()
        database.session.side_effect = ConnectionRefusedError("connection refused")

        with pytest.raises(StorageError):
            await YellowBookGateway(database).list_all()
