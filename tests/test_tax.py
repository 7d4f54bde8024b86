import pytest

from assetplace.errors import ConfigurationError, MissingTaxRuleError
from assetplace.schema import (
    CapitalGainsRule,
    HoldingType,
    LevyRule,
    OffsetPhase,
    OffsetRule,
    TaxBracket,
    TaxRuleSet,
    bracket_ladder,
)
from assetplace.tax import (
    CapitalGainEvent,
    TaxRuleBook,
    bracket_breakdown,
    bracket_tax,
    brackets_from_rates,
    compute_tax,
    levy_amount,
    net_capital_gain,
    offset_amount,
    validate_brackets,
)
from assetplace.tax_data import AU_RESIDENT_RATES, DEFAULT_TAX_RULE_SETS


@pytest.fixture
def rule_book() -> TaxRuleBook:
    return TaxRuleBook.default()


def test_personal_tax_at_100k(rule_book):
    result = compute_tax(100_000, rule_book.get("AU", "personal"))
    assert result.gross_tax == pytest.approx(20_788)
    assert result.levies["medicare"] == pytest.approx(2_000)
    assert result.offsets["low_income"] == 0.0
    assert result.tax_payable == pytest.approx(22_788)


def test_low_income_offset_and_medicare_shade_in(rule_book):
    result = compute_tax(30_000, rule_book.get("AU", "personal"))
    assert result.gross_tax == pytest.approx(1_888)
    assert result.offsets["low_income"] == pytest.approx(700)
    assert result.levies["medicare"] == pytest.approx(277.8)
    assert result.tax_payable == pytest.approx(1_465.8)


@pytest.mark.parametrize("holding_type", list(HoldingType))
def test_zero_income_pays_zero_tax(rule_book, holding_type):
    assert compute_tax(0, rule_book.get("AU", holding_type)).tax_payable == 0.0


@pytest.mark.parametrize("holding_type", list(HoldingType))
def test_tax_is_non_decreasing_in_income(rule_book, holding_type):
    rule_set = rule_book.get("AU", holding_type)
    previous = 0.0
    for income in range(0, 300_001, 250):
        tax = compute_tax(float(income), rule_set).tax_payable
        assert tax >= previous - 1e-9
        assert tax >= 0.0
        previous = tax


def test_brackets_are_continuous_at_each_boundary():
    brackets = brackets_from_rates(AU_RESIDENT_RATES)
    assert validate_brackets(brackets) == []
    for current, nxt in zip(brackets, brackets[1:]):
        from_below = current.base_tax + (current.upper - current.lower) * current.marginal_rate
        assert bracket_tax(nxt.lower, brackets) == pytest.approx(from_below)


def test_validate_brackets_reports_gaps_and_open_end():
    brackets = [
        TaxBracket(0, 10_000, 0, 0.0),
        TaxBracket(12_000, 50_000, 0, 0.2),
        TaxBracket(50_000, 80_000, 7_600, 0.3),
    ]
    errors = validate_brackets(brackets)
    assert "brackets[0]: gap between 10000 and 12000" in errors
    assert "brackets: last bracket must be open-ended" in errors


def test_breakdown_sums_to_bracket_tax():
    brackets = brackets_from_rates(AU_RESIDENT_RATES)
    slices = bracket_breakdown(150_000, brackets)
    assert sum(s.tax for s in slices) == pytest.approx(bracket_tax(150_000, brackets))
    assert sum(s.taxable for s in slices) == pytest.approx(150_000)


def test_flat_rate_holding_types(rule_book):
    assert compute_tax(100_000, rule_book.get("AU", "superannuation")).tax_payable == pytest.approx(15_000)
    assert compute_tax(100_000, rule_book.get("AU", "trust")).tax_payable == pytest.approx(47_000)


def test_flat_rate_holding_type_without_rate_is_configuration_error():
    rule_set = TaxRuleSet(country="AU", holding_type=HoldingType.TRUST)
    with pytest.raises(ConfigurationError):
        compute_tax(1_000, rule_set)


def test_missing_rule_set_raises(rule_book):
    with pytest.raises(MissingTaxRuleError) as excinfo:
        rule_book.get("NZ", "personal")
    assert "NZ" in str(excinfo.value)
    assert ("au", "trust") in rule_book


def test_losses_net_against_short_term_gains_first():
    events = [
        CapitalGainEvent(proceeds=30_000, cost_basis=20_000, held_months=24),
        CapitalGainEvent(proceeds=5_000, cost_basis=3_000, held_months=6),
    ]
    result = net_capital_gain(events, CapitalGainsRule(discount_percent=50, holding_period_months=12), carried_losses=3_000)
    assert result.gross_gains == pytest.approx(12_000)
    assert result.losses_applied == pytest.approx(3_000)
    assert result.discount == pytest.approx(4_500)
    assert result.net_gain == pytest.approx(4_500)
    assert result.carried_forward_losses == 0.0


def test_unused_losses_carry_forward():
    events = [
        CapitalGainEvent(proceeds=2_000, cost_basis=1_000, held_months=18),
        CapitalGainEvent(proceeds=5_000, cost_basis=8_000, held_months=3),
    ]
    result = net_capital_gain(events, CapitalGainsRule(discount_percent=50))
    assert result.net_gain == 0.0
    assert result.carried_forward_losses == pytest.approx(2_000)


def test_capital_gain_added_to_assessable_income(rule_book):
    rule_set = rule_book.get("AU", "personal")
    with_gain = compute_tax(
        80_000,
        rule_set,
        capital_gains=[CapitalGainEvent(proceeds=50_000, cost_basis=30_000, held_months=36)],
    )
    assert with_gain.taxable_income == pytest.approx(90_000)
    assert with_gain.tax_payable > compute_tax(80_000, rule_set).tax_payable


def test_franking_credit_grossed_up_and_non_refundable(rule_book):
    # the 700 cash dividend is already part of assessable income
    result = compute_tax(700, rule_book.get("AU", "personal"), franked_dividends=700)
    assert result.imputation_credit == pytest.approx(300)
    assert result.taxable_income == pytest.approx(1_000)
    assert result.tax_payable == 0.0
    assert result.unused_imputation_credit == pytest.approx(300)


def test_franking_credit_without_dividend_income_only_adds_credit(rule_book):
    result = compute_tax(0, rule_book.get("AU", "personal"), franked_dividends=700)
    assert result.taxable_income == pytest.approx(300)
    assert result.tax_payable == 0.0


def test_franking_credit_reduces_tax(rule_book):
    rule_set = rule_book.get("AU", "personal")
    result = compute_tax(100_000, rule_set, franked_dividends=7_000)
    assert result.taxable_income == pytest.approx(103_000)
    assert result.imputation_credit_used == pytest.approx(3_000)
    expected = compute_tax(103_000, rule_set).tax_payable - 3_000
    assert result.tax_payable == pytest.approx(expected)


def test_offset_reduces_levy_when_larger_than_income_tax():
    rule_set = TaxRuleSet(
        country="XX",
        holding_type=HoldingType.PERSONAL,
        brackets=bracket_ladder([(0, 0.0), (10_000, 0.10)]),
        levies=[LevyRule(name="levy", rate=0.05, threshold=0)],
        offsets=[OffsetRule(name="flat", max_amount=1_000)],
    )
    result = compute_tax(15_000, rule_set)
    assert result.gross_tax == pytest.approx(500)
    assert result.levies["levy"] == pytest.approx(750)
    assert result.tax_payable == pytest.approx(250)


def test_offset_cannot_make_tax_negative():
    rule_set = TaxRuleSet(
        country="XX",
        holding_type=HoldingType.PERSONAL,
        brackets=bracket_ladder([(0, 0.0), (10_000, 0.10)]),
        offsets=[OffsetRule(name="flat", max_amount=5_000)],
    )
    assert compute_tax(15_000, rule_set).tax_payable == 0.0


def test_deductions_reduce_taxable_income(rule_book):
    result = compute_tax(60_000, rule_book.get("AU", "personal"), deductions=10_000)
    assert result.taxable_income == pytest.approx(50_000)


def test_offset_phase_in_and_out():
    offset = OffsetRule(
        name="shaped",
        max_amount=1_000,
        base_amount=0,
        phases=[OffsetPhase(10_000, -0.1), OffsetPhase(20_000, 0.05)],
    )
    assert offset_amount(5_000, offset) == 0.0
    assert offset_amount(15_000, offset) == pytest.approx(500)
    assert offset_amount(20_000, offset) == pytest.approx(1_000)
    assert offset_amount(30_000, offset) == pytest.approx(500)
    assert offset_amount(60_000, offset) == 0.0


def test_levy_threshold_and_shade_in():
    levy = LevyRule(name="levy", rate=0.02, threshold=20_000, shade_in_upper=25_000, shade_in_rate=0.1)
    assert levy_amount(20_000, levy) == 0.0
    assert levy_amount(21_000, levy) == pytest.approx(100)
    assert levy_amount(40_000, levy) == pytest.approx(800)


def test_reference_rule_sets_cover_all_holding_types():
    book = TaxRuleBook(DEFAULT_TAX_RULE_SETS)
    assert len(book) == len(HoldingType)
