"""Alias-table parser for brokers without a dedicated parser."""

from .parser import GenericTradeParser

__all__ = ["GenericTradeParser"]
