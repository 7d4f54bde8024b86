"""Engine-wide default assumptions used when records leave a value unset."""

from __future__ import annotations

from typing import Final

from .frequency import DEFAULT_FREQUENCY, Frequency

# Fallback loan interest rate (percent) used only to keep interest reporting populated.
DEFAULT_INTEREST_RATE: Final[float] = 5.0
DEFAULT_COMPOUNDING_FREQUENCY: Final[Frequency] = Frequency.MONTHLY
DEFAULT_PAYMENT_FREQUENCY: Final[Frequency] = DEFAULT_FREQUENCY
DEFAULT_HOLDING_TYPE: Final[str] = "personal"
DEFAULT_COUNTRY: Final[str] = "AU"
DEFAULT_INFLATION_RATE: Final[float] = 2.5
DEFAULT_PROJECTION_YEARS: Final[int] = 10

# Growth rates are (low, medium, high) percentages; yield is a percentage of value.
ASSET_CLASS_GROWTH_DEFAULTS: Final[dict[str, tuple[float, float, float]]] = {
    "property": (2.0, 5.0, 8.0),
    "shares": (3.0, 7.0, 10.0),
    "cash": (1.0, 2.5, 4.0),
    "loan": (0.0, 0.0, 0.0),
    "retirement": (3.0, 6.0, 8.0),
    "stock_option": (0.0, 5.0, 12.0),
    "employment_income": (2.0, 3.0, 4.0),
}

ASSET_CLASS_YIELD_DEFAULTS: Final[dict[str, float]] = {
    "property": 3.0,
    "shares": 4.0,
    "cash": 0.0,
    "loan": 0.0,
    "retirement": 0.0,
    "stock_option": 0.0,
    "employment_income": 0.0,
}

# Used when an asset class has no configured defaults at all.
FALLBACK_GROWTH_RATE: Final[float] = 5.0

PERIOD_YEARS: Final[dict[str, int]] = {
    "annually": 1,
    "5-years": 5,
    "10-years": 10,
    "20-years": 20,
    "30-years": 30,
}
RETIREMENT_FALLBACK_YEARS: Final[int] = 30


def map_period_to_years(period: str, retirement_age: int | None = None, current_age: int | None = None) -> int:
    """Translate a projection period token into a number of years."""
    if period == "retirement":
        if retirement_age and current_age and retirement_age > current_age:
            return retirement_age - current_age
        return RETIREMENT_FALLBACK_YEARS
    return PERIOD_YEARS.get(period, DEFAULT_PROJECTION_YEARS)
