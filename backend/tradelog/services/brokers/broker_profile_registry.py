"""Registry of supported broker/platform profiles.

Maps broker keys to profiles describing how each platform's export is read:
supported file types, column alias table, reconciliation strategy and the
parser class that handles it.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from tradelog.services.brokers.base_trade_parser import BaseTradeParser
from tradelog.services.brokers.constants import (
    BROKER_INSTRUCTIONS,
    FTMO_ALIASES,
    GENERIC_ALIASES,
    INTERACTIVE_BROKERS_ALIASES,
    METATRADER4_ALIASES,
    METATRADER4_TRADE_KEYWORDS,
    METATRADER5_ALIASES,
    METATRADER5_TRADE_KEYWORDS,
    NINJATRADER_ALIASES,
    REQUIRED_TRADE_FIELDS,
    TRADE_FIELDS,
    TRADINGVIEW_ALIASES,
)
from tradelog.services.brokers.exceptions import UnsupportedBrokerError
from tradelog.services.brokers.generic import GenericTradeParser
from tradelog.services.brokers.metatrader4 import MetaTrader4Parser
from tradelog.services.brokers.metatrader5 import MetaTrader5Parser
from tradelog.services.date_parser import DATE_FORMAT_LABELS
from tradelog.services.field_mapper import FieldMapping
from tradelog.services.tabular_extractor import FileType
from tradelog.services.trade_reconciler import ReconciliationStrategy

logger = logging.getLogger(__name__)

GENERIC_BROKER_KEY = "generic"

# Generic rows need a symbol and a direction; a ticket is optional
GENERIC_REQUIRED_FIELDS = ("type", "symbol")
GENERIC_TRADE_KEYWORDS = ("buy", "sell", "long", "short")

ALL_FILE_TYPES = (FileType.CSV, FileType.EXCEL, FileType.HTML)


@dataclass(frozen=True)
class BrokerProfile:
    """How to interpret one platform's trade-history export."""

    key: str
    name: str
    file_types: tuple[FileType, ...]
    field_aliases: FieldMapping
    parser_class: type[BaseTradeParser] = GenericTradeParser
    strategy: ReconciliationStrategy = ReconciliationStrategy.SINGLE_ROW
    required_fields: tuple[str, ...] = GENERIC_REQUIRED_FIELDS
    trade_keywords: tuple[str, ...] = GENERIC_TRADE_KEYWORDS
    instructions: str = field(default="", repr=False)

    @property
    def has_dedicated_parser(self) -> bool:
        return self.parser_class is not GenericTradeParser

    def supports(self, file_type: FileType) -> bool:
        return file_type in self.file_types

    def create_parser(self) -> BaseTradeParser:
        return self.parser_class(self)


@dataclass(frozen=True)
class BrokerInfo:
    """Key/name pair for broker pickers."""

    key: str
    name: str
    file_types: list[str]


def _alias_profile(
    key: str, name: str, aliases: FieldMapping, file_types: tuple[FileType, ...]
) -> BrokerProfile:
    return BrokerProfile(
        key=key,
        name=name,
        file_types=file_types,
        field_aliases=MappingProxyType(dict(aliases)),
        instructions=BROKER_INSTRUCTIONS.get(key, ""),
    )


def _build_profiles() -> dict[str, BrokerProfile]:
    profiles = [
        BrokerProfile(
            key="metatrader4",
            name="MetaTrader 4",
            file_types=(FileType.CSV, FileType.HTML),
            field_aliases=MappingProxyType(dict(METATRADER4_ALIASES)),
            parser_class=MetaTrader4Parser,
            strategy=ReconciliationStrategy.SINGLE_ROW,
            required_fields=REQUIRED_TRADE_FIELDS,
            trade_keywords=METATRADER4_TRADE_KEYWORDS,
            instructions=BROKER_INSTRUCTIONS["metatrader4"],
        ),
        BrokerProfile(
            key="metatrader5",
            name="MetaTrader 5",
            file_types=ALL_FILE_TYPES,
            field_aliases=MappingProxyType(dict(METATRADER5_ALIASES)),
            parser_class=MetaTrader5Parser,
            strategy=ReconciliationStrategy.TICKET_GROUPED,
            required_fields=REQUIRED_TRADE_FIELDS,
            trade_keywords=METATRADER5_TRADE_KEYWORDS,
            instructions=BROKER_INSTRUCTIONS["metatrader5"],
        ),
        _alias_profile("tradingview", "TradingView", TRADINGVIEW_ALIASES, (FileType.CSV,)),
        _alias_profile("ftmo", "FTMO", FTMO_ALIASES, (FileType.CSV, FileType.EXCEL)),
        _alias_profile("ninjatrader", "NinjaTrader", NINJATRADER_ALIASES, (FileType.CSV,)),
        _alias_profile(
            "ib", "Interactive Brokers", INTERACTIVE_BROKERS_ALIASES, (FileType.CSV, FileType.EXCEL)
        ),
        _alias_profile(GENERIC_BROKER_KEY, "Generic", GENERIC_ALIASES, ALL_FILE_TYPES),
    ]
    return {profile.key: profile for profile in profiles}


class BrokerProfileRegistry:
    """Read-only catalog of broker profiles.

    Keys are matched case-insensitively. The catalog is built once on first
    use and never modified afterwards, so lookups are safe from concurrent
    imports.

    Example usage:
        profile = BrokerProfileRegistry.lookup("MetaTrader5")
        parser = profile.create_parser()
    """

    _profiles: Mapping[str, BrokerProfile] = MappingProxyType({})
    _initialized: bool = False

    @classmethod
    def _ensure_initialized(cls) -> None:
        """Lazily build the profile catalog."""
        if cls._initialized:
            return

        cls._profiles = MappingProxyType(_build_profiles())
        cls._initialized = True
        logger.info(f"Broker profile registry initialized with {len(cls._profiles)} profiles")

    @staticmethod
    def _normalize_key(broker_key: str) -> str:
        return (broker_key or "").strip().lower()

    @classmethod
    def lookup(cls, broker_key: str) -> BrokerProfile:
        """Get the profile for a broker key.

        Raises:
            UnsupportedBrokerError: If no profile is registered for the key
        """
        cls._ensure_initialized()
        profile = cls._profiles.get(cls._normalize_key(broker_key))
        if profile is None:
            raise UnsupportedBrokerError(broker_key, list(cls._profiles))
        return profile

    @classmethod
    def is_supported(cls, broker_key: str) -> bool:
        cls._ensure_initialized()
        return cls._normalize_key(broker_key) in cls._profiles

    @classmethod
    def generic_profile(
        cls,
        field_mapping: FieldMapping | None = None,
        broker_key: str = GENERIC_BROKER_KEY,
        file_types: tuple[FileType, ...] | None = None,
    ) -> BrokerProfile:
        """Build a generic profile around a caller-supplied alias table.

        Args:
            field_mapping: Canonical field -> alias; defaults to the generic table
            broker_key: Key recorded on the profile (the caller's broker name)
            file_types: Accepted file types; defaults to every type the generic
                profile reads

        Returns:
            A new BrokerProfile; the registry itself is not modified

        Raises:
            ValueError: If the mapping names fields that are not trade fields
        """
        base = cls.lookup(GENERIC_BROKER_KEY)
        if field_mapping is None:
            return base

        unknown = sorted(set(field_mapping) - set(TRADE_FIELDS))
        if unknown:
            raise ValueError(
                f"Unknown trade fields in mapping: {unknown}. Expected: {list(TRADE_FIELDS)}"
            )

        return BrokerProfile(
            key=cls._normalize_key(broker_key) or GENERIC_BROKER_KEY,
            name=base.name if broker_key == GENERIC_BROKER_KEY else broker_key,
            file_types=file_types or base.file_types,
            field_aliases=MappingProxyType(dict(field_mapping)),
            instructions=base.instructions,
        )

    @classmethod
    def get_instructions(cls, broker_key: str) -> str:
        """Human-readable export steps for a broker."""
        return cls.lookup(broker_key).instructions

    @classmethod
    def get_supported_brokers(cls) -> list[BrokerInfo]:
        cls._ensure_initialized()
        return [
            BrokerInfo(
                key=profile.key,
                name=profile.name,
                file_types=[file_type.value for file_type in profile.file_types],
            )
            for profile in cls._profiles.values()
        ]

    @classmethod
    def get_supported_broker_keys(cls) -> list[str]:
        cls._ensure_initialized()
        return list(cls._profiles)

    @staticmethod
    def get_date_formats() -> list[dict[str, str]]:
        """Date format choices as value/label pairs."""
        return [{"value": fmt.value, "label": label} for fmt, label in DATE_FORMAT_LABELS.items()]
