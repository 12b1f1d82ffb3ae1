"""Reconciliation of multi-row trade records into single logical trades.

MT4 history lists one row per closed trade. MT5 lists deals, so one position
shows up as an entry leg and an exit leg (or more, for partial closes)
sharing the same position id. The reconciler groups legs by that id and
merges each group into one NormalizedTrade.
"""

import logging
from enum import Enum

from tradelog.schemas.trade import NormalizedTrade, TradeDirection
from tradelog.services.brokers.base_trade_parser import (
    ImportContext,
    MappedRow,
    ReconciliationGroup,
)
from tradelog.services.brokers.constants import ENTRY_KEYWORDS

logger = logging.getLogger(__name__)


class ReconciliationStrategy(str, Enum):
    """How trade rows map onto logical trades."""

    SINGLE_ROW = "single_row"
    TICKET_GROUPED = "ticket_grouped"


def classify_direction(type_text: str) -> TradeDirection:
    """'buy' if the type text mentions buy, otherwise 'sell'."""
    return "buy" if "buy" in type_text.lower() else "sell"


class TradeReconciler:
    """Groups trade legs and merges each group into a NormalizedTrade.

    Merge rules:
        - one row: fields are taken as-is
        - two rows: open side from the entry leg, close side and P&L from
          the exit leg, commission and swap summed
        - more rows: open side from the first entry-like leg, P&L,
          commission and swap summed, latest timestamp as close time,
          close price unknown (0.0)

    The many-leg merge cannot reconstruct partial-fill economics; it is an
    approximation.
    """

    def __init__(
        self,
        strategy: ReconciliationStrategy = ReconciliationStrategy.TICKET_GROUPED,
        key_field: str = "position",
        entry_keywords: tuple[str, ...] = ENTRY_KEYWORDS,
    ):
        self.strategy = ReconciliationStrategy(strategy)
        self.key_field = key_field
        self.entry_keywords = entry_keywords

    def is_entry(self, row: MappedRow) -> bool:
        """Entry leg test: the deal entry column if present, else the type text."""
        deal_entry = row.text("deal_entry").lower()
        if "in" in deal_entry:
            return True
        if "out" in deal_entry:
            return False
        type_text = row.text("type").lower()
        return any(keyword in type_text for keyword in self.entry_keywords)

    def group(self, rows: list[MappedRow]) -> list[ReconciliationGroup]:
        """Group rows by trade key, keeping first-appearance order.

        Rows without a key each form their own group.
        """
        if self.strategy == ReconciliationStrategy.SINGLE_ROW:
            return [ReconciliationGroup(key=row.text("ticket"), rows=[row]) for row in rows]

        groups: list[ReconciliationGroup] = []
        by_key: dict[str, ReconciliationGroup] = {}
        for row in rows:
            key = row.text(self.key_field) or row.text("ticket")
            if not key:
                groups.append(ReconciliationGroup(key="", rows=[row]))
                continue
            if key not in by_key:
                by_key[key] = ReconciliationGroup(key=key, rows=[])
                groups.append(by_key[key])
            by_key[key].rows.append(row)

        logger.debug(f"Grouped {len(rows)} rows into {len(groups)} positions")
        return groups

    def merge(self, group: ReconciliationGroup, context: ImportContext) -> NormalizedTrade:
        """Merge one group of legs into a normalized trade."""
        if len(group.rows) == 1:
            return self._merge_single(group.key, group.rows[0], context)
        if len(group.rows) == 2:
            return self._merge_pair(group, context)
        return self._merge_many(group, context)

    def _merge_single(self, ticket: str, row: MappedRow, context: ImportContext) -> NormalizedTrade:
        return NormalizedTrade(
            ticket=ticket or row.text("ticket"),
            symbol=row.text("symbol"),
            direction=classify_direction(row.text("type")),
            open_time=context.timestamp(row, "open_time"),
            close_time=context.timestamp(row, "close_time"),
            volume=context.number(row, "volume"),
            open_price=context.number(row, "open_price"),
            close_price=context.number(row, "close_price"),
            pnl=context.number(row, "pnl"),
            commission=context.number(row, "commission"),
            swap=context.number(row, "swap"),
            comment=row.text("comment"),
        )

    def _merge_pair(self, group: ReconciliationGroup, context: ImportContext) -> NormalizedTrade:
        first, second = group.rows
        entry, exit_ = (first, second) if self.is_entry(first) else (second, first)

        return NormalizedTrade(
            ticket=group.key,
            symbol=entry.text("symbol"),
            direction=classify_direction(entry.text("type")),
            open_time=context.timestamp(entry, "open_time"),
            close_time=context.timestamp(exit_, "close_time"),
            volume=context.number(entry, "volume"),
            open_price=context.number(entry, "open_price"),
            close_price=context.number(exit_, "close_price"),
            pnl=context.number(exit_, "pnl"),
            commission=context.number(entry, "commission") + context.number(exit_, "commission"),
            swap=context.number(entry, "swap") + context.number(exit_, "swap"),
            comment=f"{entry.text('comment')} {exit_.text('comment')}".strip(),
        )

    def _merge_many(self, group: ReconciliationGroup, context: ImportContext) -> NormalizedTrade:
        anchor = next((row for row in group.rows if self.is_entry(row)), group.rows[0])

        parsed = [
            context.optional_timestamp(row, "close_time")
            for row in group.rows
            if row.has("close_time")
        ]
        valid = [value for value in parsed if value is not None]
        if valid:
            close_time = max(valid)
        elif parsed:
            close_time = context.date_parser.fallback_value()
        else:
            close_time = context.timestamp(anchor, "close_time")

        return NormalizedTrade(
            ticket=group.key,
            symbol=anchor.text("symbol"),
            direction=classify_direction(anchor.text("type")),
            open_time=context.timestamp(anchor, "open_time"),
            close_time=close_time,
            volume=context.number(anchor, "volume"),
            open_price=context.number(anchor, "open_price"),
            close_price=0.0,
            pnl=sum(context.number(row, "pnl") for row in group.rows),
            commission=sum(context.number(row, "commission") for row in group.rows),
            swap=sum(context.number(row, "swap") for row in group.rows),
            comment=f"Aggregated from {len(group.rows)} rows",
        )
