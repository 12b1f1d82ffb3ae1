"""Base class for broker trade-history parsers.

Parsers receive rows already extracted from the uploaded file, map them onto
canonical trade fields using their broker profile, keep the rows that are
actual trades and turn each group of legs into one NormalizedTrade.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from tradelog.schemas.trade import NormalizedTrade
from tradelog.services.brokers.exceptions import RowProcessingError
from tradelog.services.date_parser import DateFallbackPolicy, DateFormat, DateParser
from tradelog.services.field_mapper import map_trade_fields
from tradelog.services.shared.coercion import parse_float

if TYPE_CHECKING:
    from tradelog.services.brokers.broker_profile_registry import BrokerProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportWarning:
    """A field that degraded to a default value during import."""

    row_index: int  # 1-based index in the extracted rows
    field: str
    value: str
    message: str


@dataclass
class MappedRow:
    """One extracted row with its canonical field values."""

    row_index: int
    fields: dict[str, Any]

    def text(self, name: str) -> str:
        """Field value as stripped text ('' when absent)."""
        value = self.fields.get(name)
        return "" if value is None else str(value).strip()

    def has(self, name: str) -> bool:
        return self.text(name) != ""


@dataclass(frozen=True)
class ReconciliationGroup:
    """Rows believed to belong to one logical trade."""

    key: str
    rows: list[MappedRow]

    @property
    def first_row_index(self) -> int:
        return self.rows[0].row_index


@dataclass
class ImportContext:
    """Per-import settings and the warnings collected while converting values."""

    date_parser: DateParser
    date_format: DateFormat | str | None = None
    warnings: list[ImportWarning] = field(default_factory=list)

    def optional_timestamp(self, row: MappedRow, name: str) -> datetime | None:
        """Parse a timestamp field, returning None (and recording a warning) when unparseable.

        Raises:
            ValueError: If the fallback policy is 'fail' and the text is unparseable
        """
        raw = row.text(name)
        outcome = self.date_parser.parse_detailed(raw, self.date_format)
        if outcome.ok:
            return outcome.value

        if self.date_parser.fallback_policy == DateFallbackPolicy.FAIL:
            raise ValueError(f"Unrecognized date in '{name}': {raw!r}")
        self.warnings.append(
            ImportWarning(
                row_index=row.row_index,
                field=name,
                value=raw,
                message=f"Unrecognized date, used {self.date_parser.fallback_policy.value} fallback",
            )
        )
        return None

    def timestamp(self, row: MappedRow, name: str) -> datetime:
        """Parse a timestamp field, substituting the fallback timestamp when unparseable."""
        value = self.optional_timestamp(row, name)
        return self.date_parser.fallback_value() if value is None else value

    def number(self, row: MappedRow, name: str) -> float:
        """Coerce a numeric field to float; non-numeric text degrades to 0.0."""
        value = row.fields.get(name)
        result = parse_float(value)
        if result is None:
            if row.has(name):
                self.warnings.append(
                    ImportWarning(
                        row_index=row.row_index,
                        field=name,
                        value=row.text(name),
                        message="Not a number, used 0.0",
                    )
                )
            return 0.0
        return result


@dataclass
class TradeParseResult:
    """Trades produced by a parser and the number of non-trade rows skipped."""

    trades: list[NormalizedTrade]
    rows_skipped: int = 0


class BaseTradeParser(ABC):
    """Abstract base class for broker trade-history parsers.

    Subclasses decide how trade rows are grouped into logical trades and
    how a group becomes a NormalizedTrade. Field mapping and trade-row
    filtering are driven by the broker profile.

    Example usage:
        parser = MetaTrader4Parser(profile)
        result = parser.parse(rows, ImportContext(DateParser(), "DD/MM/YYYY"))
    """

    def __init__(self, profile: "BrokerProfile"):
        self.profile = profile

    def map_rows(self, rows: list[Mapping[str, Any]]) -> list[MappedRow]:
        """Map raw rows onto canonical fields, keeping 1-based row indices.

        Raises:
            RowProcessingError: If a derived field fails for a row
        """
        mapped = []
        for index, row in enumerate(rows, start=1):
            try:
                fields = map_trade_fields(row, self.profile.field_aliases)
            except Exception as e:
                logger.error(f"Error mapping row {index}: {e}")
                raise RowProcessingError(index, e) from e
            mapped.append(MappedRow(row_index=index, fields=fields))
        return mapped

    def is_trade_row(self, row: MappedRow) -> bool:
        """Return True if the row describes a position action.

        Deposits, withdrawals, balance and credit lines lack one of the
        required fields or have a type with no trade keyword.
        """
        if not all(row.has(name) for name in self.profile.required_fields):
            return False
        type_text = row.text("type").lower()
        return any(keyword in type_text for keyword in self.profile.trade_keywords)

    def filter_trade_rows(self, rows: list[MappedRow]) -> list[MappedRow]:
        return [row for row in rows if self.is_trade_row(row)]

    @abstractmethod
    def group_rows(self, rows: list[MappedRow]) -> list[ReconciliationGroup]:
        """Group trade rows into the legs of each logical trade."""
        pass

    @abstractmethod
    def build_trade(self, group: ReconciliationGroup, context: ImportContext) -> NormalizedTrade:
        """Turn one group of legs into a normalized trade."""
        pass

    def parse(self, rows: list[Mapping[str, Any]], context: ImportContext) -> TradeParseResult:
        """Parse extracted rows into normalized trades.

        Any failure aborts the import with the 1-based index of the first
        row of the offending group.

        Raises:
            RowProcessingError: If a row cannot be mapped or converted
        """
        mapped = self.map_rows(rows)
        trade_rows = self.filter_trade_rows(mapped)
        logger.info(
            f"Found {len(trade_rows)} trade rows out of {len(mapped)} for {self.profile.name}"
        )

        groups = self.group_rows(trade_rows)
        logger.info(f"Grouped {len(trade_rows)} trade rows into {len(groups)} trades")

        trades = []
        for group in groups:
            try:
                trades.append(self.build_trade(group, context))
            except Exception as e:
                logger.error(f"Error processing row {group.first_row_index}: {e}")
                raise RowProcessingError(group.first_row_index, e) from e

        return TradeParseResult(trades=trades, rows_skipped=len(mapped) - len(trade_rows))
