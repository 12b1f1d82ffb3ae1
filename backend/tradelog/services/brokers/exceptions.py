"""Trade import exceptions.

All import failures derive from TradeImportError, which is a ValueError so
callers that treat parser failures as ValueError keep working. Messages are
meant to be shown to the user verbatim.
"""


class TradeImportError(ValueError):
    """Base exception for trade import failures."""


class UnsupportedFormatError(TradeImportError):
    """File type cannot be processed at all."""

    def __init__(self, file_type: str, supported: list[str] | None = None):
        self.file_type = file_type
        self.supported = supported
        message = f"Unsupported file format '{file_type}'"
        if supported:
            message += f". Supported: {supported}"
        super().__init__(message)


class UnsupportedBrokerError(TradeImportError):
    """Broker key has no registered profile and no custom field mapping."""

    def __init__(self, broker_key: str, supported: list[str] | None = None):
        self.broker_key = broker_key
        message = f"Unsupported broker '{broker_key}'"
        if supported:
            message += f". Supported: {supported}"
        super().__init__(message)


class NoTableFoundError(TradeImportError):
    """HTML document contains no table element."""

    def __init__(self):
        super().__init__("No table found in the HTML file")


class EmptyFileError(TradeImportError):
    """File was readable but produced no data rows."""

    def __init__(self, detail: str = "The file contains no data rows"):
        super().__init__(detail)


class NoTradesFoundError(TradeImportError):
    """No row in the file describes a trade."""

    def __init__(self, broker_key: str):
        self.broker_key = broker_key
        super().__init__(
            f"No trades found in the file for broker '{broker_key}'. "
            "Check that the export includes the account trade history."
        )


class RowProcessingError(TradeImportError):
    """A specific row failed mapping or coercion; the whole import is aborted."""

    def __init__(self, row_index: int, cause: Exception):
        self.row_index = row_index
        self.cause = cause
        super().__init__(f"Error processing row {row_index}: {cause}")
