"""Broker trade-history parsers.

- BaseTradeParser: Abstract base for all broker parsers
- BrokerProfileRegistry (broker_profile_registry): profile lookup by broker key
- exceptions: import error taxonomy

Brokers with a dedicated parser (MetaTrader 4/5) have their own subpackage;
all others go through the generic alias-table parser.
"""

from .base_trade_parser import BaseTradeParser, ImportContext, ImportWarning
from .exceptions import (
    EmptyFileError,
    NoTableFoundError,
    NoTradesFoundError,
    RowProcessingError,
    TradeImportError,
    UnsupportedBrokerError,
    UnsupportedFormatError,
)

__all__ = [
    "BaseTradeParser",
    "EmptyFileError",
    "ImportContext",
    "ImportWarning",
    "NoTableFoundError",
    "NoTradesFoundError",
    "RowProcessingError",
    "TradeImportError",
    "UnsupportedBrokerError",
    "UnsupportedFormatError",
]
