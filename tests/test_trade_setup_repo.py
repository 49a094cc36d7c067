"""Tests for trade-setup storage — SQLite repository and in-memory store."""

import sqlite3

import pytest

from pipdesk.errors import PersistenceError
from pipdesk.repos.db import get_connection, init_db
from pipdesk.repos.memory import InMemoryTradeSetupStore
from pipdesk.repos.ports import TradeSetupStore
from pipdesk.repos.trade_setup_repo import TradeSetupRepo
from pipdesk.trading.models import TradeCalculation, TradeParameters


def _params(symbol: str = "EURUSD", direction: str = "buy", notes=None) -> TradeParameters:
    return TradeParameters(
        symbol=symbol,
        account_balance=10_000.0,
        account_currency="USD",
        risk_percentage=1.0,
        stop_loss_pips=20.0,
        take_profit_pips=40.0,
        leverage=100.0,
        direction=direction,
        notes=notes,
    )


def _calc(lot_size: float = 0.5) -> TradeCalculation:
    return TradeCalculation(
        lot_size=lot_size,
        position_size=lot_size * 100_000,
        margin_required=515.0,
        pip_value=5.0,
        risk_amount=100.0,
        potential_profit=200.0,
        potential_loss=100.0,
        risk_reward_ratio=2.0,
    )


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path) -> TradeSetupStore:
    if request.param == "sqlite":
        db_path = str(tmp_path / "nested" / "pipdesk.db")
        init_db(db_path)
        return TradeSetupRepo(db_path)
    return InMemoryTradeSetupStore()


class TestTradeSetupStore:
    def test_satisfies_protocol(self, store):
        assert isinstance(store, TradeSetupStore)

    @pytest.mark.asyncio
    async def test_save_returns_record(self, store):
        setup = await store.save("user-1", _params(notes="london open"), _calc(),
                                 created_at="2026-10-14T09:00:00+00:00")
        assert setup.id
        assert setup.user_id == "user-1"
        assert setup.parameters.notes == "london open"
        assert setup.calculation.lot_size == 0.5
        assert setup.created_at == "2026-10-14T09:00:00+00:00"

    @pytest.mark.asyncio
    async def test_save_defaults_created_at(self, store):
        setup = await store.save("user-1", _params(), _calc())
        assert setup.created_at.endswith("+00:00")

    @pytest.mark.asyncio
    async def test_list_newest_first_per_user(self, store):
        await store.save("user-1", _params("EURUSD"), _calc(), created_at="2026-10-12T09:00:00+00:00")
        await store.save("user-1", _params("GBPUSD"), _calc(), created_at="2026-10-14T09:00:00+00:00")
        await store.save("user-1", _params("USDJPY"), _calc(), created_at="2026-10-13T09:00:00+00:00")
        await store.save("user-2", _params("XAUUSD"), _calc(), created_at="2026-10-15T09:00:00+00:00")

        setups = await store.list_for_user("user-1")
        assert [s.parameters.symbol for s in setups] == ["GBPUSD", "USDJPY", "EURUSD"]
        assert await store.list_for_user("nobody") == []

    @pytest.mark.asyncio
    async def test_round_trip_preserves_calculation(self, store):
        saved = await store.save("user-1", _params(direction="sell"), _calc(1.25))
        [loaded] = await store.list_for_user("user-1")
        assert loaded == saved

    @pytest.mark.asyncio
    async def test_delete_removes_only_that_record(self, store):
        a = await store.save("user-1", _params("EURUSD"), _calc(), created_at="2026-10-12T09:00:00+00:00")
        b = await store.save("user-1", _params("GBPUSD"), _calc(), created_at="2026-10-13T09:00:00+00:00")
        c = await store.save("user-1", _params("USDJPY"), _calc(), created_at="2026-10-14T09:00:00+00:00")
        other = await store.save("user-2", _params("EURUSD"), _calc())

        assert await store.delete("user-2", b.id) is False
        assert await store.delete("user-1", b.id) is True

        remaining = await store.list_for_user("user-1")
        assert [s.id for s in remaining] == [c.id, a.id]
        assert [s.id for s in await store.list_for_user("user-2")] == [other.id]

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, store):
        assert await store.delete("user-1", "does-not-exist") is False

    @pytest.mark.asyncio
    async def test_same_timestamp_keeps_insertion_order_after_delete(self, store):
        stamp = "2026-10-14T09:00:00+00:00"
        a = await store.save("user-1", _params("EURUSD"), _calc(), created_at=stamp)
        b = await store.save("user-1", _params("GBPUSD"), _calc(), created_at=stamp)
        assert await store.delete("user-1", a.id) is True
        c = await store.save("user-1", _params("USDJPY"), _calc(), created_at=stamp)

        setups = await store.list_for_user("user-1")
        assert [s.id for s in setups] == [c.id, b.id]


class TestSqliteSpecifics:
    def test_init_db_is_idempotent(self, tmp_path):
        db_path = str(tmp_path / "pipdesk.db")
        init_db(db_path)
        init_db(db_path)
        conn = get_connection(db_path)
        try:
            tables = [
                r["name"]
                for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            ]
        finally:
            conn.close()
        assert "trade_setups" in tables

    @pytest.mark.asyncio
    async def test_missing_schema_raises_persistence_error(self, tmp_path):
        db_path = str(tmp_path / "empty.db")
        sqlite3.connect(db_path).close()
        repo = TradeSetupRepo(db_path)
        with pytest.raises(PersistenceError, match="trade_setups"):
            await repo.list_for_user("user-1")
