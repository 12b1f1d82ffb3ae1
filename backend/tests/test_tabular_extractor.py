"""Tests for tabular extraction of uploaded files."""

from io import BytesIO

import polars as pl
import pytest

from tradelog.services.brokers.exceptions import (
    EmptyFileError,
    NoTableFoundError,
    UnsupportedFormatError,
)
from tradelog.services.tabular_extractor import (
    FileType,
    TabularExtractor,
    coerce_file_type,
    detect_file_type,
)


def _excel_bytes(data: dict) -> bytes:
    buffer = BytesIO()
    pl.DataFrame(data).write_excel(buffer)
    return buffer.getvalue()


SIMPLE_CSV = b"Ticket,Type,Symbol\n1001,buy,EURUSD\n"
SIMPLE_HTML = b"""
<html><body><table>
<tr><th>Ticket</th><th>Type</th><th>Symbol</th></tr>
<tr><td>1001</td><td>buy</td><td>EURUSD</td></tr>
</table></body></html>
"""


@pytest.fixture
def extractor() -> TabularExtractor:
    return TabularExtractor()


class TestExtractSupportedTypes:
    """Test that every supported file type yields the same rows."""

    @pytest.mark.parametrize(
        "file_type,content",
        [
            (FileType.CSV, SIMPLE_CSV),
            (FileType.HTML, SIMPLE_HTML),
            (
                FileType.EXCEL,
                _excel_bytes({"Ticket": ["1001"], "Type": ["buy"], "Symbol": ["EURUSD"]}),
            ),
        ],
    )
    def test_single_row(self, extractor: TabularExtractor, file_type, content):
        """Test header Ticket/Type/Symbol with one data row."""
        rows = extractor.extract(content, file_type)

        assert rows == [{"Ticket": "1001", "Type": "buy", "Symbol": "EURUSD"}]


class TestCsv:
    """Test CSV extraction."""

    def test_header_only_raises_empty_file(self, extractor: TabularExtractor):
        with pytest.raises(EmptyFileError):
            extractor.extract(b"Ticket,Type,Symbol\n", FileType.CSV)

    def test_blank_lines_are_skipped(self, extractor: TabularExtractor):
        rows = extractor.extract(b"Ticket,Type\n1,buy\n,\n2,sell\n", "csv")

        assert [row["Ticket"] for row in rows] == ["1", "2"]

    def test_utf8_bom_is_stripped(self, extractor: TabularExtractor):
        rows = extractor.extract("\ufeffTicket,Type\n1,buy\n".encode(), "csv")

        assert "Ticket" in rows[0]

    def test_latin1_fallback(self, extractor: TabularExtractor):
        rows = extractor.extract("Ticket,Comment\n1,café\n".encode("latin-1"), "csv")

        assert rows[0]["Comment"] == "café"

    def test_short_rows_fill_empty_values(self, extractor: TabularExtractor):
        rows = extractor.extract(b"Ticket,Type,Symbol\n1,buy\n", "csv")

        assert rows[0] == {"Ticket": "1", "Type": "buy", "Symbol": ""}

    @pytest.mark.parametrize(
        "content",
        [
            b"Ticket;Type;Symbol;Volume\n1001;buy;EURUSD;1,0\n",
            b"Ticket\tType\tSymbol\tVolume\n1001\tbuy\tEURUSD\t1,0\n",
            b"Ticket|Type|Symbol|Volume\n1001|buy|EURUSD|1,0\n",
        ],
        ids=["semicolon", "tab", "pipe"],
    )
    def test_delimiter_is_detected(self, extractor: TabularExtractor, content):
        """Test European and spreadsheet exports that do not use commas."""
        rows = extractor.extract(content, FileType.CSV)

        assert rows == [{"Ticket": "1001", "Type": "buy", "Symbol": "EURUSD", "Volume": "1,0"}]

    def test_quoted_commas_keep_comma_delimiter(self, extractor: TabularExtractor):
        content = b'Ticket,Type,Profit\n1,buy,"1,250.00"\n2,sell,"-80.00"\n'

        rows = extractor.extract(content, FileType.CSV)

        assert [row["Profit"] for row in rows] == ["1,250.00", "-80.00"]

    def test_utf16_with_bom(self, extractor: TabularExtractor):
        rows = extractor.extract("Ticket,Type\n1,buy\n".encode("utf-16"), FileType.CSV)

        assert rows == [{"Ticket": "1", "Type": "buy"}]


class TestHtml:
    """Test HTML table extraction."""

    def test_no_table_raises(self, extractor: TabularExtractor):
        with pytest.raises(NoTableFoundError):
            extractor.extract(b"<html><body><p>No trades</p></body></html>", FileType.HTML)

    def test_first_row_cells_used_without_th(self, extractor: TabularExtractor):
        content = b"""<table>
        <tr><td>Ticket</td><td>Profit</td></tr>
        <tr><td>7</td><td>1&nbsp;250.00</td></tr>
        </table>"""

        rows = extractor.extract(content, FileType.HTML)

        assert rows == [{"Ticket": "7", "Profit": "1 250.00"}]

    def test_only_first_table_is_read(self, extractor: TabularExtractor):
        content = b"""
        <table><tr><th>A</th></tr><tr><td>1</td></tr></table>
        <table><tr><th>B</th></tr><tr><td>2</td></tr></table>
        """

        assert extractor.extract(content, "html") == [{"A": "1"}]

    def test_nested_table_keeps_outer_row(self, extractor: TabularExtractor):
        """Test that a table inside a cell does not cut the enclosing row short."""
        content = b"""<table>
        <tr><th>Ticket</th><th>Detail</th><th>Type</th><th>Profit</th></tr>
        <tr>
          <td>7</td>
          <td><table><tr><td>partial</td><td>fill</td></tr></table></td>
          <td>buy</td>
          <td>12.50</td>
        </tr>
        </table>"""

        rows = extractor.extract(content, FileType.HTML)

        assert len(rows) == 1
        assert rows[0]["Ticket"] == "7"
        assert rows[0]["Type"] == "buy"
        assert rows[0]["Profit"] == "12.50"

    def test_utf16_report(self, extractor: TabularExtractor):
        """Test UTF-16 HTML reports as saved by MetaTrader terminals."""
        content = SIMPLE_HTML.decode().encode("utf-16")

        rows = extractor.extract(content, FileType.HTML)

        assert rows == [{"Ticket": "1001", "Type": "buy", "Symbol": "EURUSD"}]

    def test_header_only_table_raises_empty_file(self, extractor: TabularExtractor):
        with pytest.raises(EmptyFileError):
            extractor.extract(b"<table><tr><th>Ticket</th></tr></table>", "htm")


class TestExcel:
    """Test Excel extraction."""

    def test_numbers_become_text(self, extractor: TabularExtractor):
        content = _excel_bytes({"Ticket": [1001], "Profit": [50.5]})

        rows = extractor.extract(content, "xlsx")

        assert rows[0]["Ticket"] == "1001"
        assert rows[0]["Profit"] == "50.5"

    def test_invalid_workbook_raises_empty_file(self, extractor: TabularExtractor):
        with pytest.raises(EmptyFileError, match="Failed to read Excel file"):
            extractor.extract(b"not a workbook", FileType.EXCEL)


class TestFileTypeDetection:
    """Test file type inference from filenames and tags."""

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("history.csv", FileType.CSV),
            ("History.XLSX", FileType.EXCEL),
            ("report.xls", FileType.EXCEL),
            ("Statement.htm", FileType.HTML),
            ("statement.html", FileType.HTML),
        ],
    )
    def test_detect_file_type(self, filename, expected):
        assert detect_file_type(filename) == expected

    @pytest.mark.parametrize("filename", ["report.pdf", "history", "trades.json"])
    def test_unsupported_extension(self, filename):
        with pytest.raises(UnsupportedFormatError):
            detect_file_type(filename)

    def test_unknown_tag_raises(self, extractor: TabularExtractor):
        with pytest.raises(UnsupportedFormatError, match="pdf"):
            extractor.extract(b"%PDF", "pdf")

    def test_coerce_aliases(self):
        assert coerce_file_type("XLS") == FileType.EXCEL
        assert coerce_file_type(".csv") == FileType.CSV
