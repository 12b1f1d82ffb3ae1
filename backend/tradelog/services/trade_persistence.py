"""Hand-off of imported trades to the storage layer.

Storage is an opaque collaborator: anything with a save_trades method. The
import pipeline leaves account_id empty; it is stamped here once the owning
account is known.
"""

import logging
from collections import defaultdict
from typing import Protocol

from tradelog.schemas.trade import NormalizedTrade

logger = logging.getLogger(__name__)


class TradeStore(Protocol):
    """Storage collaborator for imported trades."""

    def save_trades(self, account_id: str, trades: list[NormalizedTrade]) -> None: ...


class InMemoryTradeStore:
    """Dictionary-backed TradeStore keyed by account id."""

    def __init__(self):
        self._trades: dict[str, list[NormalizedTrade]] = defaultdict(list)

    def save_trades(self, account_id: str, trades: list[NormalizedTrade]) -> None:
        self._trades[account_id].extend(trades)

    def get_trades(self, account_id: str) -> list[NormalizedTrade]:
        return list(self._trades.get(account_id, []))


def assign_account(trades: list[NormalizedTrade], account_id: str) -> list[NormalizedTrade]:
    """Return copies of the trades with account_id set."""
    return [trade.model_copy(update={"account_id": account_id}) for trade in trades]


def persist_import(
    store: TradeStore, account_id: str, trades: list[NormalizedTrade]
) -> list[NormalizedTrade]:
    """Attach the account to imported trades and hand them to the store.

    Args:
        store: Storage collaborator
        account_id: Owning account identifier
        trades: Trades returned by the import pipeline

    Returns:
        The stored trades (with account_id set)

    Raises:
        ValueError: If account_id is empty
    """
    if not account_id:
        raise ValueError("account_id is required to store imported trades")

    stored = assign_account(trades, account_id)
    store.save_trades(account_id, stored)
    logger.info(f"Stored {len(stored)} trades for account {account_id}")
    return stored
