"""MetaTrader 5 deal history parser."""

from .parser import MetaTrader5Parser

__all__ = ["MetaTrader5Parser"]
