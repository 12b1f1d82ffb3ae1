"""Shared test fixtures for trade import tests."""

from datetime import datetime

import pytest

from tradelog.services.brokers.base_trade_parser import ImportContext
from tradelog.services.date_parser import DateFallbackPolicy, DateParser

# Fixed "now" so fallback timestamps are deterministic
FROZEN_NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture
def frozen_now() -> datetime:
    return FROZEN_NOW


@pytest.fixture
def date_parser() -> DateParser:
    """DateParser whose 'now' fallback is frozen."""
    return DateParser(fallback_policy=DateFallbackPolicy.NOW, clock=lambda: FROZEN_NOW)


@pytest.fixture
def import_context(date_parser: DateParser) -> ImportContext:
    """Import context with MM/DD/YYYY hint and an empty warning list."""
    return ImportContext(date_parser=date_parser, date_format="MM/DD/YYYY")
