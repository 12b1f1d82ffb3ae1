"""Tests for the MetaTrader 4 account history parser."""

from datetime import datetime
from pathlib import Path

import pytest

from tradelog.services.brokers.base_trade_parser import ImportContext
from tradelog.services.brokers.broker_profile_registry import BrokerProfileRegistry
from tradelog.services.brokers.exceptions import RowProcessingError
from tradelog.services.brokers.metatrader4 import MetaTrader4Parser
from tradelog.services.tabular_extractor import FileType, TabularExtractor

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def parser() -> MetaTrader4Parser:
    return BrokerProfileRegistry.lookup("metatrader4").create_parser()


def _rows(filename: str, file_type: FileType) -> list[dict]:
    return TabularExtractor().extract((FIXTURES_DIR / filename).read_bytes(), file_type)


class TestMetaTrader4Csv:
    """Test parsing of the MT4 CSV history export."""

    def test_parser_class(self, parser):
        assert isinstance(parser, MetaTrader4Parser)

    def test_balance_rows_are_skipped(self, parser, import_context: ImportContext):
        result = parser.parse(_rows("mt4_history_sample.csv", FileType.CSV), import_context)

        assert [trade.ticket for trade in result.trades] == ["1001", "1002", "1004"]
        assert result.rows_skipped == 1

    def test_buy_trade_fields(self, parser, import_context: ImportContext):
        trade = parser.parse(_rows("mt4_history_sample.csv", FileType.CSV), import_context).trades[0]

        assert trade.symbol == "EURUSD"
        assert trade.direction == "buy"
        assert trade.open_time == datetime(2024, 1, 15, 10, 30)
        assert trade.close_time == datetime(2024, 1, 15, 14, 45)
        assert trade.volume == 1.0
        assert trade.open_price == 1.1
        assert trade.close_price == 1.105
        assert trade.pnl == 500.0
        assert trade.commission == -7.0
        assert trade.comment == ""

    def test_sell_trade_fields(self, parser, import_context: ImportContext):
        trade = parser.parse(_rows("mt4_history_sample.csv", FileType.CSV), import_context).trades[1]

        assert trade.direction == "sell"
        assert trade.pnl == -200.0
        assert trade.swap == -1.2
        assert trade.comment == "sl hit"

    def test_pending_order_type_counts_as_trade(self, parser, import_context: ImportContext):
        """Test that 'buy limit' is a buy trade."""
        trade = parser.parse(_rows("mt4_history_sample.csv", FileType.CSV), import_context).trades[2]

        assert trade.direction == "buy"
        assert trade.pnl == 80.47

    def test_no_warnings_for_clean_file(self, parser, import_context: ImportContext):
        parser.parse(_rows("mt4_history_sample.csv", FileType.CSV), import_context)

        assert import_context.warnings == []


class TestMetaTrader4Html:
    """Test parsing of the MT4 HTML statement."""

    def test_size_and_item_columns(self, parser, import_context: ImportContext):
        result = parser.parse(_rows("mt4_history_sample.html", FileType.HTML), import_context)

        assert len(result.trades) == 2
        gold = result.trades[0]
        assert gold.ticket == "2001"
        assert gold.symbol == "xauusd"
        assert gold.direction == "sell"
        assert gold.volume == 0.3

    def test_space_grouped_prices(self, parser, import_context: ImportContext):
        gold = parser.parse(_rows("mt4_history_sample.html", FileType.HTML), import_context).trades[0]

        assert gold.open_price == pytest.approx(2050.10)
        assert gold.close_price == pytest.approx(2045.60)
        assert gold.pnl == 135.0

    def test_losing_buy(self, parser, import_context: ImportContext):
        trade = parser.parse(_rows("mt4_history_sample.html", FileType.HTML), import_context).trades[1]

        assert trade.direction == "buy"
        assert trade.pnl == -150.0
        assert trade.swap == -0.45


class TestMetaTrader4Errors:
    """Test row-level failures."""

    def test_negative_volume_reports_row(self, parser, import_context: ImportContext):
        rows = [
            {"Ticket": "1", "Type": "buy", "Symbol": "EURUSD", "Volume": "1.0"},
            {"Ticket": "2", "Type": "sell", "Symbol": "EURUSD", "Volume": "-1.0"},
        ]

        with pytest.raises(RowProcessingError) as exc_info:
            parser.parse(rows, import_context)

        assert exc_info.value.row_index == 2
        assert "row 2" in str(exc_info.value)

    def test_non_numeric_values_degrade_with_warning(self, parser, import_context):
        rows = [{"Ticket": "1", "Type": "buy", "Symbol": "EURUSD", "Profit": "n/a"}]

        trade = parser.parse(rows, import_context).trades[0]

        assert trade.pnl == 0.0
        assert [(w.row_index, w.field) for w in import_context.warnings if w.field == "pnl"] == [
            (1, "pnl")
        ]
