"""MetaTrader 5 history parser for CSV/Excel/HTML exports.

MT5 reports deals rather than orders: opening a position produces an "in"
deal and closing it an "out" deal, both carrying the position id. Partial
closes add more "out" deals to the same position. Deals are grouped by
position id and reconciled into one trade per position.

Deal types are matched by substring ("buy", "sell", "in", "out"), so a
non-trade type that happens to contain "in" is also treated as a trade.
"""

import logging
from typing import TYPE_CHECKING

from tradelog.schemas.trade import NormalizedTrade
from tradelog.services.brokers.base_trade_parser import (
    BaseTradeParser,
    ImportContext,
    MappedRow,
    ReconciliationGroup,
)
from tradelog.services.trade_reconciler import TradeReconciler

if TYPE_CHECKING:
    from tradelog.services.brokers.broker_profile_registry import BrokerProfile

logger = logging.getLogger(__name__)


class MetaTrader5Parser(BaseTradeParser):
    """Parser for MetaTrader 5 deal history exports."""

    def __init__(self, profile: "BrokerProfile"):
        super().__init__(profile)
        self.reconciler = TradeReconciler(strategy=profile.strategy, key_field="position")

    def group_rows(self, rows: list[MappedRow]) -> list[ReconciliationGroup]:
        groups = self.reconciler.group(rows)
        multi_leg = sum(1 for group in groups if len(group.rows) > 2)
        if multi_leg:
            logger.info(f"{multi_leg} positions have more than two deals; close price set to 0")
        return groups

    def build_trade(self, group: ReconciliationGroup, context: ImportContext) -> NormalizedTrade:
        return self.reconciler.merge(group, context)
