"""MetaTrader 4 account history parser."""

from .parser import MetaTrader4Parser

__all__ = ["MetaTrader4Parser"]
