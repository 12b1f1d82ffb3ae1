"""Pydantic schemas."""

from .trade import NormalizedTrade, TradeDirection

__all__ = ["NormalizedTrade", "TradeDirection"]
