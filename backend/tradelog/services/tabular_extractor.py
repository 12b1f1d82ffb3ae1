"""Tabular extraction for uploaded broker exports.

Turns raw file bytes into loosely-typed rows (column name -> string value)
for CSV, Excel (first worksheet) and HTML (first table) files.
"""

import codecs
import csv
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from html.parser import HTMLParser
from io import BytesIO, StringIO

import polars as pl

from tradelog.config import settings
from tradelog.services.brokers.exceptions import (
    EmptyFileError,
    NoTableFoundError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

RawRow = dict[str, str]

CSV_DELIMITERS = ",;\t|"
_SNIFF_SAMPLE_SIZE = 8192


class FileType(str, Enum):
    """File type tags understood by the extractor."""

    CSV = "csv"
    EXCEL = "excel"
    HTML = "html"


EXTENSION_FILE_TYPES = {
    ".csv": FileType.CSV,
    ".xls": FileType.EXCEL,
    ".xlsx": FileType.EXCEL,
    ".html": FileType.HTML,
    ".htm": FileType.HTML,
}


def detect_file_type(filename: str) -> FileType:
    """Infer the file type from a filename extension.

    Raises:
        UnsupportedFormatError: If the extension is not csv, xls, xlsx, html or htm
    """
    extension = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    file_type = EXTENSION_FILE_TYPES.get(extension)
    if file_type is None:
        raise UnsupportedFormatError(extension or filename, sorted(EXTENSION_FILE_TYPES))
    return file_type


def coerce_file_type(file_type: FileType | str) -> FileType:
    """Normalize a file type tag, accepting 'xls'/'xlsx'/'htm' aliases."""
    if isinstance(file_type, FileType):
        return file_type
    tag = str(file_type).strip().lower().lstrip(".")
    if tag in ("xls", "xlsx"):
        return FileType.EXCEL
    if tag == "htm":
        return FileType.HTML
    try:
        return FileType(tag)
    except ValueError:
        raise UnsupportedFormatError(str(file_type), [t.value for t in FileType]) from None


def decode_text(file_content: bytes) -> str:
    """Decode text file bytes.

    A UTF-16 byte order mark wins (MetaTrader saves HTML reports as UTF-16);
    otherwise UTF-8 (with or without BOM) is tried before the fallback
    encoding.
    """
    if file_content.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return file_content.decode("utf-16")
    try:
        return file_content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_content.decode(settings.csv_fallback_encoding)


def sniff_delimiter(content: str) -> str:
    """Guess the CSV delimiter among comma, semicolon, tab and pipe, defaulting to comma."""
    sample = content[:_SNIFF_SAMPLE_SIZE]
    if len(content) > _SNIFF_SAMPLE_SIZE and "\n" in sample:
        # Drop the partial last line so it cannot skew the column counts
        sample = sample[: sample.rfind("\n")]
    try:
        return csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS).delimiter
    except csv.Error:
        return ","


def _cell_to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


@dataclass
class _TableState:
    """Rows of one <table> plus the row and cell currently open in it."""

    rows: list[list[tuple[bool, str]]] = field(default_factory=list)
    row: list[tuple[bool, str]] | None = None
    cell: list[str] | None = None
    cell_is_header: bool = False

    def close_cell(self) -> None:
        if self.cell is not None and self.row is not None:
            text = " ".join("".join(self.cell).split())
            self.row.append((self.cell_is_header, text))
        self.cell = None


class _TableCollector(HTMLParser):
    """Collects the rows of every <table> in a document.

    Each row is a list of (is_header, text) cells. A table nested inside a
    cell is collected as a separate table; the enclosing cell and row stay
    open until the nested table ends.
    """

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.tables: list[list[list[tuple[bool, str]]]] = []
        self._stack: list[_TableState] = []

    def handle_starttag(self, tag, attrs):
        if tag == "table":
            state = _TableState()
            self.tables.append(state.rows)
            self._stack.append(state)
            return
        if not self._stack:
            return

        state = self._stack[-1]
        if tag == "tr":
            state.close_cell()
            state.row = []
            state.rows.append(state.row)
        elif tag in ("td", "th") and state.row is not None:
            state.close_cell()
            state.cell = []
            state.cell_is_header = tag == "th"
        elif tag == "br" and state.cell is not None:
            state.cell.append(" ")

    def handle_endtag(self, tag):
        if not self._stack:
            return

        state = self._stack[-1]
        if tag in ("td", "th"):
            state.close_cell()
        elif tag == "tr":
            state.close_cell()
            state.row = None
        elif tag == "table":
            state.close_cell()
            self._stack.pop()

    def handle_data(self, data):
        if self._stack and self._stack[-1].cell is not None:
            self._stack[-1].cell.append(data)


class TabularExtractor:
    """Converts uploaded file bytes into a list of raw rows.

    Example usage:
        extractor = TabularExtractor()
        rows = extractor.extract(file_content, FileType.CSV)
    """

    def extract(self, file_content: bytes, file_type: FileType | str) -> list[RawRow]:
        """Extract rows from file content.

        Args:
            file_content: Raw file content as bytes
            file_type: One of csv, excel, html

        Returns:
            One RawRow per data row, keyed by header

        Raises:
            UnsupportedFormatError: If the file type is unknown
            NoTableFoundError: If an HTML file has no table
            EmptyFileError: If no data rows are found
        """
        file_type = coerce_file_type(file_type)

        if file_type == FileType.CSV:
            rows = self._read_csv(file_content)
        elif file_type == FileType.EXCEL:
            rows = self._read_excel(file_content)
        else:
            rows = self._read_html(file_content)

        if not rows:
            raise EmptyFileError()

        logger.info(f"Extracted {len(rows)} rows from {file_type.value} file")
        return rows

    def _read_csv(self, file_content: bytes) -> list[RawRow]:
        """Read CSV content using the first row as header."""
        content = decode_text(file_content)
        try:
            delimiter = sniff_delimiter(content)
            if delimiter != ",":
                logger.info(f"Detected CSV delimiter {delimiter!r}")
            reader = csv.DictReader(StringIO(content), delimiter=delimiter)
            rows = []
            for record in reader:
                row = {
                    key.strip(): _cell_to_text(value)
                    for key, value in record.items()
                    if key is not None
                }
                if any(row.values()):
                    rows.append(row)
            return rows
        except csv.Error as e:
            raise EmptyFileError(f"Failed to parse CSV: {e}") from e

    def _read_excel(self, file_content: bytes) -> list[RawRow]:
        """Read the first worksheet, using its first row as header."""
        try:
            df = pl.read_excel(BytesIO(file_content), sheet_id=1)
        except Exception as e:
            raise EmptyFileError(f"Failed to read Excel file: {e}") from e

        rows = []
        for record in df.iter_rows(named=True):
            row = {str(key).strip(): _cell_to_text(value) for key, value in record.items()}
            if any(row.values()):
                rows.append(row)
        return rows

    def _read_html(self, file_content: bytes) -> list[RawRow]:
        """Read the first table of an HTML document."""
        collector = _TableCollector()
        collector.feed(decode_text(file_content))
        collector.close()

        if not collector.tables:
            raise NoTableFoundError()

        table = [row for row in collector.tables[0] if row]
        if not table:
            return []

        header_row = table[0]
        header_cells = [text for is_header, text in header_row if is_header]
        headers = header_cells or [text for _, text in header_row]

        rows = []
        for cells in table[1:]:
            row = {
                header: cells[index][1]
                for index, header in enumerate(headers)
                if header and index < len(cells)
            }
            if any(row.values()):
                rows.append(row)
        return rows
