"""Loan amortization and interest compounding helpers.

Rates passed to these helpers are decimal annual rates (``0.05`` for 5%).
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math

from .errors import InvalidInputError
from .frequency import DEFAULT_FREQUENCY, Frequency, periods_per_year

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScheduleRow:
    period: int
    payment: float
    interest: float
    principal: float
    balance: float


@dataclass(slots=True)
class PeriodTotals:
    interest: float
    principal: float
    payments: float
    balance: float


def _check_finite(**values: float | None) -> None:
    bad = [name for name, value in values.items() if value is not None and not math.isfinite(value)]
    if bad:
        raise InvalidInputError([f"{name}: must be a finite number" for name in bad])


def _check_loan(principal: float, annual_rate: float, term_months: int) -> None:
    _check_finite(principal=principal, annual_rate=annual_rate)
    errors = []
    if principal < 0:
        errors.append("principal: must be >= 0")
    if annual_rate < 0:
        errors.append("annual_rate: must be >= 0")
    if term_months is None or term_months <= 0:
        errors.append("term_months: must be > 0")
    if errors:
        raise InvalidInputError(errors)


def periodic_rate(annual_rate: float, payment_frequency: str | None = DEFAULT_FREQUENCY) -> float:
    return annual_rate / periods_per_year(payment_frequency)


def number_of_periods(term_months: int, payment_frequency: str | None = DEFAULT_FREQUENCY) -> int:
    return max(1, round(term_months * periods_per_year(payment_frequency) / 12.0))


def schedule(principal: float, annual_rate: float, term_months: int, payment_frequency: str | None = DEFAULT_FREQUENCY) -> float:
    """Return the level periodic payment that amortizes ``principal`` over the term."""
    _check_loan(principal, annual_rate, term_months)
    n = number_of_periods(term_months, payment_frequency)
    rate = periodic_rate(annual_rate, payment_frequency)
    if rate == 0:
        return principal / n
    return principal * rate / (1.0 - (1.0 + rate) ** -n)


def interest_for_period(balance: float, annual_rate: float, periods: int = 12) -> float:
    if periods <= 0:
        raise InvalidInputError("periods_per_year: must be > 0")
    return balance * annual_rate / periods


def principal_for_period(payment: float, interest: float) -> float:
    return payment - interest


def effective_balance(loan_balance: float, offset_balance: float = 0.0) -> float:
    return max(0.0, loan_balance - max(0.0, offset_balance))


def resolve_rate(rate: float | None, default_rate: float) -> float:
    """Return ``rate`` or the configured fallback when the record has none."""
    if rate is None:
        logger.debug("no interest rate on record; using default %.4f", default_rate)
        return default_rate
    return rate


def amortization_schedule(
    principal: float,
    annual_rate: float,
    term_months: int,
    payment_frequency: str | None = DEFAULT_FREQUENCY,
    payment_amount: float | None = None,
    offset_balance: float = 0.0,
) -> list[ScheduleRow]:
    """Full period-by-period schedule.

    Interest accrues on the offset-reduced balance. When ``payment_amount`` is
    given it replaces the level payment; the schedule stops once the balance is
    cleared or the term runs out. The last scheduled period always settles the
    outstanding balance.
    """
    payment = schedule(principal, annual_rate, term_months, payment_frequency) if payment_amount is None else payment_amount
    if payment < 0:
        raise InvalidInputError("payment_amount: must be >= 0")
    n = number_of_periods(term_months, payment_frequency)
    ppy = periods_per_year(payment_frequency)
    balance = principal
    rows: list[ScheduleRow] = []
    for period in range(1, n + 1):
        if balance <= 0:
            break
        interest = interest_for_period(effective_balance(balance, offset_balance), annual_rate, ppy)
        principal_paid = min(balance, max(0.0, principal_for_period(payment, interest)))
        if period == n:
            principal_paid = balance
        balance -= principal_paid
        rows.append(ScheduleRow(period, interest + principal_paid, interest, principal_paid, 0.0 if period == n else balance))
    return rows


def run_periods(
    balance: float,
    annual_rate: float,
    payment: float,
    periods: int,
    ppy: int,
    offset_balance: float = 0.0,
    settle_final: bool = False,
) -> PeriodTotals:
    """Advance ``balance`` by ``periods`` payments; optionally settle the remainder on the last one."""
    interest_total = 0.0
    principal_total = 0.0
    for index in range(periods):
        if balance <= 0:
            break
        interest = interest_for_period(effective_balance(balance, offset_balance), annual_rate, ppy)
        principal_paid = min(balance, max(0.0, principal_for_period(payment, interest)))
        if settle_final and index == periods - 1:
            principal_paid = balance
        interest_total += interest
        principal_total += principal_paid
        balance -= principal_paid
    return PeriodTotals(interest_total, principal_total, interest_total + principal_total, max(0.0, balance))


def balance_after(
    principal: float,
    annual_rate: float,
    term_months: int,
    periods_elapsed: int,
    payment_frequency: str | None = DEFAULT_FREQUENCY,
) -> float:
    n = number_of_periods(term_months, payment_frequency)
    if periods_elapsed >= n:
        return 0.0
    payment = schedule(principal, annual_rate, term_months, payment_frequency)
    ppy = periods_per_year(payment_frequency)
    return run_periods(principal, annual_rate, payment, periods_elapsed, ppy).balance


def interest_saving(loan_balance: float, offset_balance: float, annual_rate: float) -> float:
    """Annual interest avoided by holding ``offset_balance`` against the loan."""
    shielded = min(max(0.0, offset_balance), max(0.0, loan_balance))
    return shielded * annual_rate


def effective_annual_rate(annual_rate: float, compounding_frequency: str | None = DEFAULT_FREQUENCY) -> float:
    m = periods_per_year(compounding_frequency)
    return (1.0 + annual_rate / m) ** m - 1.0


def compound_balance(
    balance: float,
    annual_rate: float,
    months: int,
    compounding_frequency: str | None = DEFAULT_FREQUENCY,
    monthly_deposit: float = 0.0,
) -> float:
    _check_finite(balance=balance, annual_rate=annual_rate, monthly_deposit=monthly_deposit)
    if months < 0:
        raise InvalidInputError("months: must be >= 0")
    m = periods_per_year(compounding_frequency)
    monthly_growth = (1.0 + annual_rate / m) ** (m / 12.0)
    for _ in range(months):
        balance = balance * monthly_growth + monthly_deposit
    return balance


def future_value(
    present: float,
    annual_rate: float,
    years: float,
    compounding_frequency: str = Frequency.ANNUALLY,
) -> float:
    m = periods_per_year(compounding_frequency)
    return present * (1.0 + annual_rate / m) ** (m * years)


def present_value(future: float, annual_rate: float, years: float) -> float:
    if annual_rate <= -1.0:
        raise InvalidInputError("annual_rate: must be greater than -100%")
    return future / (1.0 + annual_rate) ** years


def cagr(start_value: float, end_value: float, years: float) -> float:
    if start_value <= 0 or years <= 0:
        return 0.0
    if end_value <= 0:
        return -1.0
    return (end_value / start_value) ** (1.0 / years) - 1.0


def required_savings(target: float, current: float, annual_rate: float, years: int) -> float:
    """Monthly contribution needed to grow ``current`` into ``target``."""
    months = years * 12
    if months <= 0:
        return max(0.0, target - current)
    monthly_rate = annual_rate / 12.0
    shortfall = target - current * (1.0 + monthly_rate) ** months
    if shortfall <= 0:
        return 0.0
    if monthly_rate == 0:
        return shortfall / months
    return shortfall * monthly_rate / ((1.0 + monthly_rate) ** months - 1.0)
