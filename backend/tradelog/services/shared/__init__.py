"""Shared helpers for trade import services."""

from .coercion import parse_float, to_float

__all__ = ["parse_float", "to_float"]
