"""Tests for handing imported trades to storage."""

from datetime import datetime

import pytest

from tradelog.schemas.trade import NormalizedTrade
from tradelog.services.trade_persistence import (
    InMemoryTradeStore,
    assign_account,
    persist_import,
)


def _trade(ticket: str) -> NormalizedTrade:
    return NormalizedTrade(
        ticket=ticket,
        symbol="EURUSD",
        direction="buy",
        open_time=datetime(2024, 1, 15, 10, 30),
        close_time=datetime(2024, 1, 15, 14, 45),
        volume=1.0,
        pnl=500.0,
    )


class TestAssignAccount:
    def test_copies_keep_ids(self):
        trades = [_trade("1"), _trade("2")]

        assigned = assign_account(trades, "acc-1")

        assert [t.account_id for t in assigned] == ["acc-1", "acc-1"]
        assert [t.id for t in assigned] == [t.id for t in trades]
        assert trades[0].account_id == ""


class TestPersistImport:
    """Test persist_import."""

    def test_stores_under_account(self):
        store = InMemoryTradeStore()

        stored = persist_import(store, "acc-1", [_trade("1")])

        assert store.get_trades("acc-1") == stored
        assert store.get_trades("acc-2") == []

    def test_empty_account_rejected(self):
        with pytest.raises(ValueError, match="account_id"):
            persist_import(InMemoryTradeStore(), "", [_trade("1")])

    def test_repeated_imports_accumulate(self):
        store = InMemoryTradeStore()

        persist_import(store, "acc-1", [_trade("1")])
        persist_import(store, "acc-1", [_trade("2")])

        assert [t.ticket for t in store.get_trades("acc-1")] == ["1", "2"]
