"""Year-by-year projection of individual assets and liabilities."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging

from .amortization import (
    PeriodTotals,
    effective_annual_rate,
    effective_balance,
    interest_for_period,
    number_of_periods,
    resolve_rate,
    run_periods,
    schedule,
)
from .defaults import FALLBACK_GROWTH_RATE
from .frequency import normalize_frequency, periods_per_year, to_annual
from .schema import AssetClass, AssetRecord, EngineDefaults, HoldingType, LoanTerms, ProjectionConfig, Scenario

logger = logging.getLogger(__name__)

SCENARIO_INDEX = {Scenario.LOW: 0, Scenario.MEDIUM: 1, Scenario.HIGH: 2}


@dataclass(slots=True)
class AssetSeries:
    """Annual series for one holding; index 0 is the current state."""

    asset_id: str
    asset_class: AssetClass
    holding_type: HoldingType
    is_liability: bool
    values: list[float] = field(default_factory=list)
    income: list[float] = field(default_factory=list)
    expenses: list[float] = field(default_factory=list)
    reinvested: list[float] = field(default_factory=list)
    interest: list[float] = field(default_factory=list)
    principal_paid: list[float] = field(default_factory=list)
    assessable_income: list[float] = field(default_factory=list)
    franked_dividends: list[float] = field(default_factory=list)
    deductions: list[float] = field(default_factory=list)

    @classmethod
    def empty(cls, asset: AssetRecord, periods: int) -> "AssetSeries":
        size = periods + 1
        series = cls(asset.id, asset.asset_class, asset.holding_type, asset.is_liability)
        for name in (
            "values",
            "income",
            "expenses",
            "reinvested",
            "interest",
            "principal_paid",
            "assessable_income",
            "franked_dividends",
            "deductions",
        ):
            setattr(series, name, [0.0] * size)
        return series


def resolve_growth_rate(
    asset: AssetRecord,
    scenario: Scenario,
    config: ProjectionConfig,
    defaults: EngineDefaults,
) -> float:
    """Annual growth percentage for ``asset`` under ``scenario``."""
    override = asset.growth_rates.for_scenario(scenario)
    if override is not None:
        return override
    if scenario == Scenario.CUSTOM:
        custom = config.custom_growth_rates.get(str(asset.asset_class))
        if custom is not None:
            return custom
        if asset.growth_rates.medium is not None:
            return asset.growth_rates.medium
    class_rates = defaults.asset_class_growth.get(str(asset.asset_class))
    if class_rates is None:
        logger.warning("no growth defaults for asset class %s; using %.1f%%", asset.asset_class, FALLBACK_GROWTH_RATE)
        return FALLBACK_GROWTH_RATE
    return class_rates[SCENARIO_INDEX.get(scenario, 1)]


def resolve_income_yield(asset: AssetRecord, defaults: EngineDefaults) -> float:
    if asset.asset_class == AssetClass.SHARES and asset.dividend_yield is not None:
        return asset.dividend_yield
    if asset.income_yield is not None:
        return asset.income_yield
    return defaults.asset_class_yield.get(str(asset.asset_class), 0.0)


def _escalation(rate: float, period: int) -> float:
    # Period 0 and period 1 both use today's amounts.
    return (1.0 + rate) ** max(0, period - 1)


def annual_income(
    asset: AssetRecord,
    opening_value: float,
    period: int,
    growth_rate: float,
    defaults: EngineDefaults,
) -> tuple[float, float]:
    """Return (income, franked dividends) earned in ``period``.

    Cash interest is not included; it accrues inside the account.
    """
    if asset.asset_class == AssetClass.CASH:
        return 0.0, 0.0
    if asset.asset_class == AssetClass.EMPLOYMENT_INCOME:
        job = asset.employment
        if job is None:
            return 0.0, 0.0
        salary = to_annual(job.base_salary, job.frequency, defaults.default_frequency)
        bonus = (job.bonus_fixed + salary * job.bonus_percent / 100.0) * job.bonus_likelihood / 100.0
        return (salary + bonus) * _escalation(growth_rate, period), 0.0
    if asset.asset_class == AssetClass.PROPERTY and asset.rental is not None:
        rent = to_annual(asset.rental.amount, asset.rental.frequency, defaults.default_frequency)
        occupied = 1.0 - asset.rental.vacancy_rate / 100.0
        return rent * occupied * _escalation(growth_rate, period), 0.0

    income = max(0.0, opening_value) * resolve_income_yield(asset, defaults) / 100.0
    franked = 0.0
    if asset.asset_class == AssetClass.SHARES:
        franked = income * asset.franking_percent / 100.0
    return income, franked


def annual_expenses(asset: AssetRecord, period: int, inflation_rate: float, defaults: EngineDefaults) -> float:
    base = sum(to_annual(item.amount, item.frequency, defaults.default_frequency) for item in asset.expenses)
    return base * _escalation(inflation_rate, period)


def _cash_interest(asset: AssetRecord, opening: float, growth_rate: float, defaults: EngineDefaults) -> float:
    if asset.interest_rate is None:
        return opening * growth_rate
    frequency = asset.compounding_frequency or defaults.default_compounding_frequency
    return opening * effective_annual_rate(asset.interest_rate / 100.0, frequency)


def project(
    asset: AssetRecord,
    scenario: Scenario,
    periods: int,
    config: ProjectionConfig,
    defaults: EngineDefaults | None = None,
    offset_balances: list[float] | None = None,
) -> AssetSeries:
    """Project one holding over ``periods`` annual periods."""
    defaults = defaults or EngineDefaults()
    if asset.is_liability:
        return project_liability(asset, periods, config, defaults, offset_balances)

    growth = resolve_growth_rate(asset, scenario, config, defaults) / 100.0
    inflation = config.inflation_rate / 100.0
    reinvest = config.reinvest_income and asset.asset_class != AssetClass.EMPLOYMENT_INCOME
    deductible = asset.asset_class != AssetClass.EMPLOYMENT_INCOME
    series = AssetSeries.empty(asset, periods)
    series.values[0] = asset.balance
    logger.debug("projecting %s (%s) at %.2f%% growth", asset.id, asset.asset_class, growth * 100.0)

    for t in range(periods + 1):
        opening = series.values[t - 1] if t else asset.balance
        income, franked = (0.0, 0.0)
        accrued = _cash_interest(asset, opening, growth, defaults) if asset.asset_class == AssetClass.CASH else 0.0
        interest = 0.0
        if config.include_income:
            income, franked = annual_income(asset, opening, t, growth, defaults)
            interest = accrued
        expenses = annual_expenses(asset, t, inflation, defaults) if config.include_expenses else 0.0

        series.interest[t] = interest
        series.assessable_income[t] = income + interest
        series.franked_dividends[t] = franked
        series.deductions[t] = expenses if deductible else 0.0

        reinvested = 0.0
        if reinvest:
            reinvested = income - expenses
        else:
            series.income[t] = income
            series.expenses[t] = expenses

        if t == 0:
            continue
        series.reinvested[t] = reinvested
        if asset.asset_class == AssetClass.CASH:
            series.values[t] = opening + accrued + reinvested
        else:
            series.values[t] = opening * (1.0 + growth) + reinvested
    return series


def _loan_rate(asset: AssetRecord, loan: LoanTerms, defaults: EngineDefaults) -> float:
    explicit = loan.interest_rate if loan.interest_rate is not None else asset.interest_rate
    return resolve_rate(explicit, defaults.default_interest_rate) / 100.0


def project_liability(
    asset: AssetRecord,
    periods: int,
    config: ProjectionConfig,
    defaults: EngineDefaults | None = None,
    offset_balances: list[float] | None = None,
) -> AssetSeries:
    """Amortize a liability; interest accrues on the balance net of its offset account."""
    defaults = defaults or EngineDefaults()
    loan = asset.loan or LoanTerms()
    rate = _loan_rate(asset, loan, defaults)
    frequency = normalize_frequency(loan.payment_frequency, defaults.default_frequency)
    ppy = periods_per_year(frequency)
    inflation = config.inflation_rate / 100.0

    balance = asset.balance
    series = AssetSeries.empty(asset, periods)
    series.values[0] = balance

    remaining = 0
    payment = 0.0
    if loan.term_months:
        remaining = number_of_periods(loan.term_months, frequency)
        if loan.payment_amount is not None:
            payment = loan.payment_amount
        elif balance > 0:
            payment = schedule(balance, rate, loan.term_months, frequency)

    def year_totals(opening: float, offset: float, periods_left: int) -> PeriodTotals:
        if periods_left > 0:
            count = min(ppy, periods_left)
            return run_periods(opening, rate, payment, count, ppy, offset, settle_final=periods_left <= ppy)
        if opening <= 0:
            return PeriodTotals(0.0, 0.0, 0.0, 0.0)
        # Interest-only: the balance is carried unchanged.
        interest = interest_for_period(effective_balance(opening, offset), rate, 1)
        return PeriodTotals(interest, 0.0, interest, opening)

    for t in range(periods + 1):
        offset = offset_balances[max(0, t - 1)] if offset_balances else 0.0
        opening = series.values[t - 1] if t else balance
        totals = year_totals(opening, offset, remaining)
        if t > 0:
            series.values[t] = totals.balance
            remaining = max(0, remaining - ppy)

        other = annual_expenses(asset, t, inflation, defaults)
        series.interest[t] = totals.interest
        series.principal_paid[t] = totals.principal
        if config.include_expenses:
            series.expenses[t] = totals.payments + other
        if loan.tax_deductible:
            series.deductions[t] = totals.interest + other
    return series


def deflate(values: list[float], inflation_rate: float) -> list[float]:
    """Convert nominal values to today's money; ``inflation_rate`` is a percentage."""
    factor = 1.0 + inflation_rate / 100.0
    if factor <= 0:
        return list(values)
    return [value / factor**t for t, value in enumerate(values)]
