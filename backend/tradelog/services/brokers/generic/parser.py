"""Generic trade parser driven entirely by a field alias table.

Used for brokers without a dedicated parser and for caller-supplied column
mappings. Every trade row becomes one trade; there is no multi-row
reconciliation.
"""

import logging

from tradelog.schemas.trade import NormalizedTrade, TradeDirection
from tradelog.services.brokers.base_trade_parser import (
    BaseTradeParser,
    ImportContext,
    MappedRow,
    ReconciliationGroup,
)

logger = logging.getLogger(__name__)


def classify_generic_direction(type_text: str) -> TradeDirection:
    """'buy' for buy/long type text, otherwise 'sell'."""
    text = type_text.strip().lower()
    return "buy" if "buy" in text or text == "long" else "sell"


class GenericTradeParser(BaseTradeParser):
    """One NormalizedTrade per trade row, using the profile's alias table."""

    def group_rows(self, rows: list[MappedRow]) -> list[ReconciliationGroup]:
        return [ReconciliationGroup(key=row.text("ticket"), rows=[row]) for row in rows]

    def build_trade(self, group: ReconciliationGroup, context: ImportContext) -> NormalizedTrade:
        row = group.rows[0]
        open_time = context.timestamp(row, "open_time")
        # Single-execution exports (e.g. IBKR) have no close column
        close_time = context.timestamp(row, "close_time") if "close_time" in row.fields else open_time

        return NormalizedTrade(
            ticket=row.text("ticket"),
            symbol=row.text("symbol"),
            direction=classify_generic_direction(row.text("type")),
            open_time=open_time,
            close_time=close_time,
            volume=context.number(row, "volume"),
            open_price=context.number(row, "open_price"),
            close_price=context.number(row, "close_price"),
            pnl=context.number(row, "pnl"),
            commission=context.number(row, "commission"),
            swap=context.number(row, "swap"),
            comment=row.text("comment"),
        )
