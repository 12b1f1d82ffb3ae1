"""Preview a broker trade-history import without storing anything.

Usage:
    python scripts/preview_import.py history.csv --broker metatrader4 --date-format DD/MM/YYYY
"""

import argparse
import logging
import sys
from pathlib import Path

from tradelog.config import settings
from tradelog.services.brokers.broker_profile_registry import BrokerProfileRegistry
from tradelog.services.brokers.exceptions import TradeImportError
from tradelog.services.date_parser import DateFormat
from tradelog.services.trade_import_service import ImportPipeline
from tradelog.services.trade_persistence import InMemoryTradeStore, persist_import

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Preview a broker trade-history import")

    parser.add_argument("file", type=Path, help="Exported history file (csv, xls, xlsx, html)")
    parser.add_argument(
        "--broker",
        required=True,
        help=f"Broker key ({', '.join(BrokerProfileRegistry.get_supported_broker_keys())})",
    )
    parser.add_argument(
        "--date-format",
        default=settings.default_date_format,
        choices=[fmt.value for fmt in DateFormat],
        help="Date layout used in the file",
    )
    parser.add_argument("--account-id", default="preview", help="Account id to attach")
    parser.add_argument(
        "--show-warnings", action="store_true", help="List every defaulted field"
    )

    args = parser.parse_args()

    pipeline = ImportPipeline()
    try:
        result = pipeline.import_file(
            args.file.read_bytes(), args.file.name, args.broker, args.date_format
        )
    except TradeImportError as e:
        print(f"Import failed: {e}")
        sys.exit(1)

    store = InMemoryTradeStore()
    trades = persist_import(store, args.account_id, result.trades)

    print(f"\nBroker: {result.broker_key}")
    print(f"  Rows read: {result.rows_read}")
    print(f"  Non-trade rows skipped: {result.rows_skipped}")
    print(f"  Trades: {len(trades)}")
    print(f"  Date range: {result.start_date} to {result.end_date}")
    print(f"  Rows with defaulted fields: {result.degraded_rows}")

    if args.show_warnings:
        for warning in result.warnings:
            print(f"    row {warning.row_index} {warning.field}={warning.value!r}: {warning.message}")

    net_pnl = sum(trade.pnl + trade.commission + trade.swap for trade in trades)
    print(f"  Net P&L: {net_pnl:.2f}")


if __name__ == "__main__":
    main()
