import pytest

from assetplace.amortization import balance_after
from assetplace.growth import deflate, project, resolve_growth_rate
from assetplace.schema import EngineDefaults, Scenario
from tests.helpers import make_asset, make_config


def test_cash_compounds_monthly_for_one_year():
    asset = make_asset("savings", "cash", 10_000, interest_rate=2.0, compounding_frequency="monthly")
    series = project(asset, Scenario.MEDIUM, 1, make_config(years=1))

    assert series.values[1] == pytest.approx(10_201.84, abs=0.01)
    assert series.interest[1] == pytest.approx(201.84, abs=0.01)
    assert series.assessable_income[1] == pytest.approx(series.interest[1])
    assert series.income[1] == 0.0


def test_value_compounds_and_yield_is_earned_on_opening_value():
    asset = make_asset("etf", "shares", 100_000, growth_rates={"medium": 7.0}, dividend_yield=4.0)
    series = project(asset, Scenario.MEDIUM, 3, make_config(years=3))

    assert len(series.values) == 4
    assert series.values[0] == 100_000
    assert series.values[3] == pytest.approx(100_000 * 1.07**3)
    assert series.income[1] == pytest.approx(4_000)
    assert series.income[2] == pytest.approx(4_280)


def test_franked_share_of_dividends():
    asset = make_asset("etf", "shares", 100_000, dividend_yield=4.0, franking_percent=50)
    series = project(asset, Scenario.MEDIUM, 1, make_config(years=1))
    assert series.franked_dividends[1] == pytest.approx(series.income[1] / 2)


def test_reinvested_income_is_added_to_value_not_cashflow():
    asset = make_asset("etf", "shares", 100_000, growth_rates={"medium": 7.0}, dividend_yield=4.0)
    series = project(asset, Scenario.MEDIUM, 1, make_config(years=1, reinvest_income=True))

    assert series.values[1] == pytest.approx(111_000)
    assert series.reinvested[1] == pytest.approx(4_000)
    assert series.income[1] == 0.0
    assert series.assessable_income[1] == pytest.approx(4_000)


def test_expenses_grow_with_inflation():
    asset = make_asset(
        "unit",
        "property",
        500_000,
        income_yield=0.0,
        expenses=[{"category": "strata", "amount": 1_000, "frequency": "annually"}],
    )
    series = project(asset, Scenario.MEDIUM, 2, make_config(years=2, inflation_rate=2.5))

    assert series.expenses[0] == pytest.approx(1_000)
    assert series.expenses[1] == pytest.approx(1_000)
    assert series.expenses[2] == pytest.approx(1_025)
    assert series.deductions[2] == pytest.approx(1_025)


def test_expenses_excluded_when_disabled():
    asset = make_asset("unit", "property", 500_000, expenses=[{"category": "strata", "amount": 100}])
    series = project(asset, Scenario.MEDIUM, 2, make_config(years=2, include_expenses=False))
    assert series.expenses == [0.0, 0.0, 0.0]


def test_rent_uses_frequency_vacancy_and_growth():
    asset = make_asset(
        "house",
        "property",
        600_000,
        growth_rates={"medium": 5.0},
        rental={"amount": 500, "frequency": "weekly", "vacancy_rate": 0},
    )
    series = project(asset, Scenario.MEDIUM, 2, make_config(years=2))
    assert series.income[1] == pytest.approx(26_000)
    assert series.income[2] == pytest.approx(27_300)

    vacant = make_asset("house", "property", 600_000, rental={"amount": 500, "frequency": "weekly", "vacancy_rate": 10})
    assert project(vacant, Scenario.MEDIUM, 1, make_config(years=1)).income[1] == pytest.approx(23_400)


def test_salary_includes_expected_bonus():
    asset = make_asset(
        "job",
        "employment_income",
        0,
        employment={"base_salary": 100_000, "frequency": "annually", "bonus_percent": 10, "bonus_likelihood": 50},
    )
    series = project(asset, Scenario.MEDIUM, 2, make_config(years=2))
    assert series.income[1] == pytest.approx(105_000)
    assert series.income[2] == pytest.approx(105_000 * 1.03)
    assert series.deductions[1] == 0.0


def test_growth_rate_resolution_order():
    defaults = EngineDefaults()
    plain = make_asset("etf", "shares", 1_000)
    override = make_asset("etf", "shares", 1_000, growth_rates={"high": 12.0})

    assert resolve_growth_rate(plain, Scenario.LOW, make_config(), defaults) == 3.0
    assert resolve_growth_rate(plain, Scenario.HIGH, make_config(), defaults) == 10.0
    assert resolve_growth_rate(override, Scenario.HIGH, make_config(), defaults) == 12.0
    assert resolve_growth_rate(override, Scenario.LOW, make_config(), defaults) == 3.0

    custom = make_config(scenario="custom", custom_growth_rates={"shares": 8.5})
    assert resolve_growth_rate(plain, Scenario.CUSTOM, custom, defaults) == 8.5
    assert resolve_growth_rate(plain, Scenario.CUSTOM, make_config(scenario="custom"), defaults) == 7.0


def test_loan_amortizes_to_zero_over_term():
    loan = make_asset(
        "mortgage",
        "loan",
        -300_000,
        loan={"interest_rate": 6.0, "term_months": 360, "payment_frequency": "monthly"},
    )
    series = project(loan, Scenario.MEDIUM, 30, make_config(years=30))

    assert series.values[0] == 300_000
    assert series.values[1] == pytest.approx(balance_after(300_000, 0.06, 360, 12))
    assert series.values[30] == 0.0
    assert all(later <= earlier for earlier, later in zip(series.values, series.values[1:]))
    assert sum(series.principal_paid[1:]) == pytest.approx(300_000, abs=0.01)
    assert series.expenses[1] == pytest.approx(12 * 1_798.65, abs=0.5)


def test_offset_balance_reduces_loan_interest():
    loan = make_asset("mortgage", "loan", -300_000, loan={"interest_rate": 6.0, "term_months": 360})
    config = make_config(years=2)
    plain = project(loan, Scenario.MEDIUM, 2, config)
    offset = project(loan, Scenario.MEDIUM, 2, config, offset_balances=[50_000.0, 50_000.0, 50_000.0])

    assert offset.interest[1] < plain.interest[1]
    assert offset.values[1] < plain.values[1]


def test_loan_without_term_is_interest_only_at_default_rate():
    loan = make_asset("line", "loan", -100_000)
    series = project(loan, Scenario.MEDIUM, 3, make_config(years=3), EngineDefaults(default_interest_rate=5.0))

    assert series.values == [100_000] * 4
    assert series.interest[1] == pytest.approx(5_000)


def test_deductible_loan_interest():
    loan = make_asset("ip-loan", "loan", -100_000, loan={"interest_rate": 6.0, "tax_deductible": True})
    series = project(loan, Scenario.MEDIUM, 1, make_config(years=1))
    assert series.deductions[1] == pytest.approx(6_000)


def test_deflate_converts_to_todays_dollars():
    assert deflate([100.0, 102.5, 105.0625], 2.5) == pytest.approx([100.0, 100.0, 100.0])
