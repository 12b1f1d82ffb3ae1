"""Date parsing for broker export timestamps.

Broker exports use inconsistent date layouts (MT4 "2024.01.15 10:30",
US "01/15/2024", European "15/01/2024", ISO). Parsing is total: every input
yields a datetime, and inputs that cannot be interpreted fall back to a
policy-defined timestamp so one bad cell never aborts a batch import.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1)

# "2024.01.15", "2024-01-15", "2024/01/15": year first whatever the hint
_YEAR_FIRST = re.compile(r"^\d{4}[-./]")


class DateFormat(str, Enum):
    """Date layouts a user can pick for an import."""

    DD_MM_YYYY = "DD/MM/YYYY"
    MM_DD_YYYY = "MM/DD/YYYY"
    YYYY_MM_DD = "YYYY-MM-DD"


class DateFallbackPolicy(str, Enum):
    """What to substitute when a timestamp cannot be parsed."""

    NOW = "now"
    EPOCH = "epoch"
    FAIL = "fail"


DATE_FORMAT_LABELS = {
    DateFormat.MM_DD_YYYY: "MM/DD/YYYY (e.g. 01/31/2023)",
    DateFormat.DD_MM_YYYY: "DD/MM/YYYY (e.g. 31/01/2023)",
    DateFormat.YYYY_MM_DD: "YYYY-MM-DD (e.g. 2023-01-31)",
}


@dataclass(frozen=True)
class DateParseOutcome:
    """Parsed timestamp plus whether it came from the text or the fallback."""

    value: datetime
    ok: bool


def _to_naive(value: datetime) -> datetime:
    """Drop timezone info, converting aware datetimes to UTC first."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _parse_time(text: str) -> tuple[int, int, int]:
    parts = text.split(":")
    hours = int(parts[0])
    minutes = int(parts[1])
    seconds = int(float(parts[2])) if len(parts) > 2 else 0
    return hours, minutes, seconds


def _normalize_year(year: int) -> int:
    # Two-digit years are read as 20xx
    return year + 2000 if year < 100 else year


class DateParser:
    """Parses broker timestamps with a format hint and fallback heuristics.

    Resolution order:
        1. Unconstrained parsing of the text (the hint only breaks
           day/month ambiguity).
        2. Explicit split on the separator of the hinted format.
        3. Slash heuristic: MM/DD/YYYY date part, optional H:M[:S] time part.
        4. Fallback timestamp according to the configured policy.

    Example usage:
        parser = DateParser()
        opened = parser.parse("15/01/2024 10:30", DateFormat.DD_MM_YYYY)
    """

    def __init__(
        self,
        fallback_policy: DateFallbackPolicy | str = DateFallbackPolicy.NOW,
        clock: Callable[[], datetime] | None = None,
    ):
        self.fallback_policy = DateFallbackPolicy(fallback_policy)
        self._clock = clock or (lambda: _to_naive(datetime.now(UTC)))

    def fallback_value(self) -> datetime:
        """Timestamp substituted for unparseable text."""
        if self.fallback_policy == DateFallbackPolicy.EPOCH:
            return EPOCH
        return self._clock()

    def parse(self, text: str | None, format_hint: DateFormat | str | None = None) -> datetime:
        """Parse text into a datetime. Never raises."""
        return self.parse_detailed(text, format_hint).value

    def parse_detailed(
        self, text: str | None, format_hint: DateFormat | str | None = None
    ) -> DateParseOutcome:
        """Parse text and report whether the fallback was used. Never raises."""
        raw = "" if text is None else str(text).strip()
        hint = self._coerce_hint(format_hint)

        if raw:
            for attempt in (self._parse_native, self._parse_with_hint, self._parse_slash_heuristic):
                try:
                    value = attempt(raw, hint)
                except (ValueError, OverflowError, TypeError, IndexError):
                    continue
                if value is not None:
                    return DateParseOutcome(_to_naive(value), True)

        logger.warning(f"Unrecognized date format: {raw!r} (hint {hint.value if hint else None})")
        return DateParseOutcome(self.fallback_value(), False)

    @staticmethod
    def _coerce_hint(format_hint: DateFormat | str | None) -> DateFormat | None:
        if format_hint is None:
            return None
        try:
            return DateFormat(format_hint)
        except ValueError:
            return None

    def _parse_native(self, raw: str, hint: DateFormat | None) -> datetime | None:
        if _YEAR_FIRST.match(raw):
            return dateutil_parser.parse(raw, dayfirst=False, yearfirst=True)
        return dateutil_parser.parse(
            raw,
            dayfirst=hint == DateFormat.DD_MM_YYYY,
            yearfirst=hint == DateFormat.YYYY_MM_DD,
        )

    def _parse_with_hint(self, raw: str, hint: DateFormat | None) -> datetime | None:
        if hint is None:
            return None

        date_part, _, time_part = raw.partition(" ")
        separator = "-" if hint == DateFormat.YYYY_MM_DD else "/"
        parts = [int(p) for p in date_part.split(separator)]
        if len(parts) != 3:
            return None

        if hint == DateFormat.DD_MM_YYYY:
            day, month, year = parts
        elif hint == DateFormat.MM_DD_YYYY:
            month, day, year = parts
        else:
            year, month, day = parts

        value = datetime(_normalize_year(year), month, day)
        if ":" in time_part:
            hours, minutes, seconds = _parse_time(time_part.strip())
            value = value.replace(hour=hours, minute=minutes, second=seconds)
        return value

    def _parse_slash_heuristic(self, raw: str, hint: DateFormat | None) -> datetime | None:
        if "/" not in raw:
            return None

        parts = raw.split()
        date_parts = parts[0].split("/")
        if len(date_parts) != 3:
            return None

        month, day, year = (int(p) for p in date_parts)
        value = datetime(_normalize_year(year), month, day)

        if len(parts) > 1 and ":" in parts[1]:
            hours, minutes, seconds = _parse_time(parts[1])
            value = value.replace(hour=hours, minute=minutes, second=seconds)
        return value
