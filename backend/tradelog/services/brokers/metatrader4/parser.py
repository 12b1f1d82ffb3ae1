"""MetaTrader 4 account history parser for CSV/HTML exports.

MT4 "Account History" reports list one row per closed order, with both the
open and close side on the same row. Balance, deposit and credit lines share
the table and are filtered out by their type.
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


class MetaTrader4Parser(BaseTradeParser):
    """Parser for MetaTrader 4 account history exports."""

    def __init__(self, profile: "BrokerProfile"):
        super().__init__(profile)
        self.reconciler = TradeReconciler(strategy=profile.strategy, key_field="ticket")

    def group_rows(self, rows: list[MappedRow]) -> list[ReconciliationGroup]:
        return self.reconciler.group(rows)

    def build_trade(self, group: ReconciliationGroup, context: ImportContext) -> NormalizedTrade:
        return self.reconciler.merge(group, context)
