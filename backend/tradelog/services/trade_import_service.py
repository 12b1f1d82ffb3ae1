"""Trade-history import pipeline.

Sequences extraction -> broker profile resolution -> trade-row filtering ->
mapping/reconciliation -> numeric coercion, and returns normalized trades
ready to be stored for an account.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from tradelog.config import settings
from tradelog.schemas.trade import NormalizedTrade
from tradelog.services.brokers.base_trade_parser import ImportContext, ImportWarning
from tradelog.services.brokers.broker_profile_registry import BrokerProfile, BrokerProfileRegistry
from tradelog.services.brokers.exceptions import (
    NoTradesFoundError,
    UnsupportedBrokerError,
    UnsupportedFormatError,
)
from tradelog.services.date_parser import DateFallbackPolicy, DateFormat, DateParser
from tradelog.services.field_mapper import FieldMapping
from tradelog.services.tabular_extractor import (
    FileType,
    TabularExtractor,
    coerce_file_type,
    detect_file_type,
)

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Normalized trades plus what degraded along the way."""

    trades: list[NormalizedTrade]
    broker_key: str
    rows_read: int
    rows_skipped: int = 0
    warnings: list[ImportWarning] = field(default_factory=list)

    @property
    def degraded_rows(self) -> int:
        """Number of distinct rows with at least one defaulted field."""
        return len({warning.row_index for warning in self.warnings})

    @property
    def start_date(self) -> date | None:
        if not self.trades:
            return None
        return min(trade.open_time for trade in self.trades).date()

    @property
    def end_date(self) -> date | None:
        if not self.trades:
            return None
        return max(trade.close_time for trade in self.trades).date()


class ImportPipeline:
    """Imports broker trade-history files into normalized trades.

    Holds no state between calls; concurrent imports may share one instance.

    Example usage:
        pipeline = ImportPipeline()
        trades = pipeline.run(file_content, "csv", "metatrader4", "DD/MM/YYYY")
    """

    def __init__(
        self,
        extractor: TabularExtractor | None = None,
        date_parser: DateParser | None = None,
    ):
        self.extractor = extractor or TabularExtractor()
        self.date_parser = date_parser or DateParser(
            fallback_policy=DateFallbackPolicy(settings.date_fallback_policy)
        )

    def resolve_profile(
        self, broker_key: str, field_mapping: FieldMapping | None = None
    ) -> BrokerProfile:
        """Resolve the broker profile, falling back to a caller-supplied mapping.

        A registered broker keeps its own profile. An unknown key is accepted
        only when a field mapping is supplied, and is then parsed generically.

        Raises:
            UnsupportedBrokerError: If the key is unknown and no mapping is given
        """
        if BrokerProfileRegistry.is_supported(broker_key):
            profile = BrokerProfileRegistry.lookup(broker_key)
            if field_mapping is not None and not profile.has_dedicated_parser:
                # Keep the broker's own file-type restriction
                return BrokerProfileRegistry.generic_profile(
                    field_mapping, broker_key, file_types=profile.file_types
                )
            return profile

        if field_mapping is None:
            raise UnsupportedBrokerError(
                broker_key, BrokerProfileRegistry.get_supported_broker_keys()
            )
        logger.info(f"Using custom field mapping for unregistered broker '{broker_key}'")
        return BrokerProfileRegistry.generic_profile(field_mapping, broker_key)

    def import_trades(
        self,
        file_content: bytes,
        file_type: FileType | str,
        broker_key: str,
        date_format: DateFormat | str | None = None,
        field_mapping: FieldMapping | None = None,
    ) -> ImportResult:
        """Import a broker export and report degraded fields.

        Args:
            file_content: Raw file content as bytes
            file_type: csv, excel or html
            broker_key: Broker identifier, case-insensitive
            date_format: Date layout hint (defaults to settings.default_date_format)
            field_mapping: Custom alias table for brokers parsed generically

        Returns:
            ImportResult with one trade per logical trade, each with a fresh id

        Raises:
            UnsupportedFormatError: Unknown file type, or one the broker does not export
            UnsupportedBrokerError: Unknown broker without a field mapping
            NoTableFoundError: HTML file without a table
            EmptyFileError: No data rows in the file
            NoTradesFoundError: No trade rows in the file
            RowProcessingError: A row failed mapping or conversion
        """
        file_type = coerce_file_type(file_type)
        profile = self.resolve_profile(broker_key, field_mapping)
        if not profile.supports(file_type):
            raise UnsupportedFormatError(
                file_type.value, [supported.value for supported in profile.file_types]
            )

        logger.info(f"Importing {file_type.value} file for broker {profile.name}")
        rows = self.extractor.extract(file_content, file_type)

        context = ImportContext(
            date_parser=self.date_parser,
            date_format=date_format or settings.default_date_format,
        )
        parsed = profile.create_parser().parse(rows, context)
        if not parsed.trades:
            raise NoTradesFoundError(broker_key)

        if context.warnings:
            logger.warning(
                f"{len(context.warnings)} fields defaulted during import "
                f"({len({w.row_index for w in context.warnings})} rows affected)"
            )
        logger.info(f"Import finished: {len(parsed.trades)} trades from {len(rows)} rows")

        return ImportResult(
            trades=parsed.trades,
            broker_key=profile.key,
            rows_read=len(rows),
            rows_skipped=parsed.rows_skipped,
            warnings=context.warnings,
        )

    def run(
        self,
        file_content: bytes,
        file_type: FileType | str,
        broker_key: str,
        date_format: DateFormat | str | None = None,
        field_mapping: FieldMapping | None = None,
    ) -> list[NormalizedTrade]:
        """Import a broker export and return only the normalized trades."""
        return self.import_trades(
            file_content, file_type, broker_key, date_format, field_mapping
        ).trades

    def import_file(
        self,
        file_content: bytes,
        filename: str,
        broker_key: str,
        date_format: DateFormat | str | None = None,
        field_mapping: FieldMapping | None = None,
    ) -> ImportResult:
        """Import an uploaded file, inferring its type from the filename."""
        return self.import_trades(
            file_content, detect_file_type(filename), broker_key, date_format, field_mapping
        )
