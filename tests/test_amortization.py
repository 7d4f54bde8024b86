import math

import pytest

from assetplace.amortization import (
    amortization_schedule,
    balance_after,
    cagr,
    compound_balance,
    effective_annual_rate,
    effective_balance,
    future_value,
    interest_for_period,
    interest_saving,
    number_of_periods,
    present_value,
    principal_for_period,
    required_savings,
    resolve_rate,
    run_periods,
    schedule,
)
from assetplace.errors import InvalidInputError


def test_standard_mortgage_payment():
    payment = schedule(300_000, 0.06, 360, "monthly")
    assert payment == pytest.approx(1798.65, abs=0.01)


def test_full_schedule_ends_at_zero_and_repays_principal():
    rows = amortization_schedule(300_000, 0.06, 360, "monthly")
    assert len(rows) == 360
    assert rows[-1].balance == 0.0
    assert sum(row.principal for row in rows) == pytest.approx(300_000, abs=0.01)


def test_zero_rate_divides_principal_evenly():
    assert schedule(12_000, 0.0, 12, "monthly") == pytest.approx(1000)
    rows = amortization_schedule(12_000, 0.0, 12, "monthly")
    assert all(row.interest == 0 for row in rows)
    assert rows[-1].balance == 0.0


def test_fortnightly_periods_follow_term():
    assert number_of_periods(300, "fortnightly") == 650
    assert number_of_periods(1, "annually") == 1


@pytest.mark.parametrize(
    ("principal", "rate", "term"),
    [
        (-1.0, 0.05, 360),
        (100_000, 0.05, 0),
        (100_000, 0.05, -12),
        (math.nan, 0.05, 360),
        (100_000, math.inf, 360),
    ],
)
def test_invalid_loan_inputs_raise(principal, rate, term):
    with pytest.raises(InvalidInputError):
        schedule(principal, rate, term)


def test_interest_and_principal_split():
    interest = interest_for_period(300_000, 0.06, 12)
    assert interest == pytest.approx(1500)
    assert principal_for_period(1798.65, interest) == pytest.approx(298.65)


def test_offset_reduces_interest_but_not_below_zero():
    assert effective_balance(400_000, 50_000) == 350_000
    assert effective_balance(40_000, 50_000) == 0.0
    with_offset = amortization_schedule(300_000, 0.06, 360, offset_balance=50_000)
    without = amortization_schedule(300_000, 0.06, 360)
    assert sum(r.interest for r in with_offset) < sum(r.interest for r in without)
    assert with_offset[-1].balance == 0.0


def test_fixed_payment_amount_clears_loan_early():
    rows = amortization_schedule(10_000, 0.05, 60, payment_amount=1_000)
    assert len(rows) < 60
    assert rows[-1].balance == pytest.approx(0.0)


def test_resolve_rate_falls_back_to_configured_default():
    assert resolve_rate(None, 0.05) == 0.05
    assert resolve_rate(0.0, 0.05) == 0.0


def test_balance_after_matches_run_periods():
    payment = schedule(200_000, 0.05, 240)
    totals = run_periods(200_000, 0.05, payment, 12, 12)
    assert balance_after(200_000, 0.05, 240, 12) == pytest.approx(totals.balance)
    assert totals.principal == pytest.approx(200_000 - totals.balance)
    assert balance_after(200_000, 0.05, 240, 240) == 0.0


def test_interest_saving_capped_by_loan_balance():
    assert interest_saving(300_000, 20_000, 0.06) == pytest.approx(1200)
    assert interest_saving(10_000, 20_000, 0.06) == pytest.approx(600)


def test_cash_monthly_compounding_example():
    assert compound_balance(10_000, 0.02, 12, "monthly") == pytest.approx(10_201.84, abs=0.01)


def test_compound_balance_with_deposits():
    assert compound_balance(0, 0.0, 12, monthly_deposit=100) == pytest.approx(1200)


def test_effective_annual_rate():
    assert effective_annual_rate(0.02, "annually") == pytest.approx(0.02)
    assert effective_annual_rate(0.02, "monthly") == pytest.approx(0.0201844, abs=1e-6)


def test_growth_helpers():
    assert future_value(1000, 0.1, 2) == pytest.approx(1210)
    assert present_value(1210, 0.1, 2) == pytest.approx(1000)
    assert cagr(1000, 1210, 2) == pytest.approx(0.1)
    assert cagr(0, 1210, 2) == 0.0


def test_future_value_compounds_per_period():
    assert future_value(10_000, 0.02, 1, "monthly") == pytest.approx(10_201.84, abs=0.01)
    assert future_value(10_000, 0.02, 1, "annually") == pytest.approx(10_200)
    assert future_value(10_000, 0.04, 2, "quarterly") == pytest.approx(10_000 * 1.01**8)


def test_required_savings():
    assert required_savings(12_000, 0, 0.0, 1) == pytest.approx(1000)
    assert required_savings(1_000, 5_000, 0.05, 5) == 0.0
    monthly = required_savings(100_000, 10_000, 0.06, 10)
    assert compound_balance(10_000, 0.06, 120, "monthly", monthly_deposit=monthly) == pytest.approx(100_000, rel=1e-6)
