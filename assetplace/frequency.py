"""Conversion of cash amounts between payment frequencies."""

from __future__ import annotations

from enum import StrEnum
import logging
from typing import Final

logger = logging.getLogger(__name__)


class Frequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    ANNUALLY = "annually"


FREQUENCY_MULTIPLIERS: Final[dict[str, int]] = {
    Frequency.DAILY: 365,
    Frequency.WEEKLY: 52,
    Frequency.FORTNIGHTLY: 26,
    Frequency.MONTHLY: 12,
    Frequency.QUARTERLY: 4,
    Frequency.SEMI_ANNUAL: 2,
    Frequency.ANNUALLY: 1,
}

# Spellings found in stored expense and loan records.
FREQUENCY_ALIASES: Final[dict[str, str]] = {
    "annual": Frequency.ANNUALLY,
    "yearly": Frequency.ANNUALLY,
    "semi-annual": Frequency.SEMI_ANNUAL,
    "semiannual": Frequency.SEMI_ANNUAL,
    "biweekly": Frequency.FORTNIGHTLY,
    "bi-weekly": Frequency.FORTNIGHTLY,
}

# Absent or unrecognized frequencies are read as monthly amounts everywhere.
DEFAULT_FREQUENCY: Final[Frequency] = Frequency.MONTHLY


def is_known_frequency(frequency: str | None) -> bool:
    if frequency is None:
        return False
    token = frequency.strip().lower()
    return token in FREQUENCY_MULTIPLIERS or token in FREQUENCY_ALIASES


def normalize_frequency(frequency: str | None, default: str = DEFAULT_FREQUENCY) -> Frequency:
    """Return the canonical frequency tag, falling back to ``default``."""
    if frequency is None or not str(frequency).strip():
        return Frequency(default)
    token = str(frequency).strip().lower()
    token = FREQUENCY_ALIASES.get(token, token)
    if token in FREQUENCY_MULTIPLIERS:
        return Frequency(token)
    logger.warning("unknown frequency %r; treating amount as %s", frequency, Frequency(default).value)
    return Frequency(default)


def periods_per_year(frequency: str | None, default: str = DEFAULT_FREQUENCY) -> int:
    return FREQUENCY_MULTIPLIERS[normalize_frequency(frequency, default)]


def to_annual(amount: float, frequency: str | None, default: str = DEFAULT_FREQUENCY) -> float:
    return amount * periods_per_year(frequency, default)


def to_monthly(amount: float, frequency: str | None, default: str = DEFAULT_FREQUENCY) -> float:
    return to_annual(amount, frequency, default) / 12.0


def from_annual(annual_amount: float, frequency: str | None, default: str = DEFAULT_FREQUENCY) -> float:
    return annual_amount / periods_per_year(frequency, default)


def convert(amount: float, from_frequency: str | None, to_frequency: str | None, default: str = DEFAULT_FREQUENCY) -> float:
    return from_annual(to_annual(amount, from_frequency, default), to_frequency, default)
