"""Tax computation for bracketed and flat-rate holding types."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Iterable

from .errors import ConfigurationError, InvalidInputError, MissingTaxRuleError
from .schema import (
    CapitalGainsRule,
    HoldingType,
    ImputationRule,
    LevyRule,
    OffsetRule,
    TaxBracket,
    TaxRuleSet,
    bracket_ladder,
)
from .tax_data import australian_rule_sets

logger = logging.getLogger(__name__)

# Largest base-tax mismatch between adjacent brackets accepted as rounding.
CONTINUITY_TOLERANCE = 1.0


@dataclass(slots=True)
class BracketSlice:
    lower: float
    upper: float | None
    marginal_rate: float
    taxable: float
    tax: float


@dataclass(slots=True)
class CapitalGainEvent:
    proceeds: float
    cost_basis: float
    held_months: int = 0

    @property
    def gain(self) -> float:
        return self.proceeds - self.cost_basis


@dataclass(slots=True)
class CapitalGainsResult:
    gross_gains: float = 0.0
    losses_applied: float = 0.0
    discount: float = 0.0
    net_gain: float = 0.0
    carried_forward_losses: float = 0.0


@dataclass(slots=True)
class TaxResult:
    holding_type: HoldingType
    assessable_income: float
    taxable_income: float
    gross_tax: float
    levies: dict[str, float] = field(default_factory=dict)
    offsets: dict[str, float] = field(default_factory=dict)
    imputation_credit: float = 0.0
    imputation_credit_used: float = 0.0
    unused_imputation_credit: float = 0.0
    capital_gains: CapitalGainsResult = field(default_factory=CapitalGainsResult)
    bracket_breakdown: list[BracketSlice] = field(default_factory=list)
    tax_payable: float = 0.0

    @property
    def effective_rate(self) -> float:
        if self.taxable_income <= 0:
            return 0.0
        return self.tax_payable / self.taxable_income


class TaxRuleBook:
    """Rule sets indexed by (country, holding type)."""

    def __init__(self, rule_sets: Iterable[TaxRuleSet]):
        self._rules: dict[tuple[str, HoldingType], TaxRuleSet] = {}
        for rule_set in rule_sets:
            self._rules[(rule_set.country.upper(), HoldingType(rule_set.holding_type))] = rule_set

    @classmethod
    def default(cls) -> "TaxRuleBook":
        return cls(australian_rule_sets())

    def __contains__(self, key: tuple[str, str]) -> bool:
        country, holding_type = key
        return (country.upper(), HoldingType(holding_type)) in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, country: str, holding_type: str) -> TaxRuleSet:
        try:
            return self._rules[(country.upper(), HoldingType(holding_type))]
        except KeyError:
            raise MissingTaxRuleError(country, str(holding_type)) from None

    def rule_sets(self) -> list[TaxRuleSet]:
        return list(self._rules.values())


def brackets_from_rates(thresholds: list[tuple[float, float]]) -> list[TaxBracket]:
    return bracket_ladder(thresholds)


def validate_brackets(brackets: list[TaxBracket]) -> list[str]:
    """Return problems with coverage, ordering or continuity of a bracket table."""
    if not brackets:
        return ["brackets: at least one bracket is required"]
    errors: list[str] = []
    if brackets[0].lower != 0:
        errors.append(f"brackets[0].lower: expected 0, got {brackets[0].lower}")
    for idx, bracket in enumerate(brackets):
        if bracket.marginal_rate < 0:
            errors.append(f"brackets[{idx}].marginal_rate: must be >= 0")
        if bracket.upper is not None and bracket.upper <= bracket.lower:
            errors.append(f"brackets[{idx}]: upper must be greater than lower")
        if idx + 1 < len(brackets):
            nxt = brackets[idx + 1]
            if bracket.upper is None:
                errors.append(f"brackets[{idx}]: only the last bracket may be open-ended")
                continue
            if bracket.upper != nxt.lower:
                kind = "gap" if bracket.upper < nxt.lower else "overlap"
                errors.append(f"brackets[{idx}]: {kind} between {bracket.upper} and {nxt.lower}")
            expected = bracket.base_tax + (bracket.upper - bracket.lower) * bracket.marginal_rate
            if abs(expected - nxt.base_tax) > CONTINUITY_TOLERANCE:
                errors.append(
                    f"brackets[{idx + 1}].base_tax: {nxt.base_tax:.2f} does not continue from previous bracket ({expected:.2f})"
                )
    if brackets[-1].upper is not None:
        errors.append("brackets: last bracket must be open-ended")
    return errors


def find_bracket(income: float, brackets: list[TaxBracket]) -> TaxBracket:
    for bracket in brackets:
        if bracket.contains(income):
            return bracket
    raise ConfigurationError(f"no tax bracket covers income {income:.2f}")


def bracket_tax(income: float, brackets: list[TaxBracket]) -> float:
    if income <= 0:
        return 0.0
    bracket = find_bracket(income, brackets)
    return max(0.0, bracket.base_tax + (income - bracket.lower) * bracket.marginal_rate)


def bracket_breakdown(income: float, brackets: list[TaxBracket]) -> list[BracketSlice]:
    slices: list[BracketSlice] = []
    if income <= 0:
        return slices
    for bracket in brackets:
        if income <= bracket.lower:
            break
        top = income if bracket.upper is None else min(income, bracket.upper)
        taxable = max(0.0, top - bracket.lower)
        slices.append(BracketSlice(bracket.lower, bracket.upper, bracket.marginal_rate, taxable, taxable * bracket.marginal_rate))
    return slices


def levy_amount(income: float, levy: LevyRule) -> float:
    if income <= levy.threshold:
        return 0.0
    full = income * levy.rate
    if levy.shade_in_upper is not None and levy.shade_in_rate is not None and income <= levy.shade_in_upper:
        return min(full, (income - levy.threshold) * levy.shade_in_rate)
    return full


def compute_levies(income: float, levies: list[LevyRule]) -> dict[str, float]:
    return {levy.name: levy_amount(income, levy) for levy in levies}


def offset_amount(income: float, offset: OffsetRule) -> float:
    """Apply each phase between its threshold and the next one.

    A positive phase rate withdraws the offset as income rises, a negative
    rate builds it up. The result stays within [0, max_amount].
    """
    amount = offset.max_amount if offset.base_amount is None else offset.base_amount
    phases = sorted(offset.phases, key=lambda phase: phase.threshold)
    for idx, phase in enumerate(phases):
        if income <= phase.threshold:
            break
        ceiling = phases[idx + 1].threshold if idx + 1 < len(phases) else None
        top = income if ceiling is None else min(income, ceiling)
        amount -= (top - phase.threshold) * phase.rate
    return min(offset.max_amount, max(0.0, amount))


def compute_offsets(income: float, offsets: list[OffsetRule]) -> dict[str, float]:
    return {offset.name: offset_amount(income, offset) for offset in offsets}


def net_capital_gain(
    events: Iterable[CapitalGainEvent],
    rule: CapitalGainsRule,
    carried_losses: float = 0.0,
) -> CapitalGainsResult:
    """Net realised gains against current and carried losses, then discount long holdings.

    Losses are applied to gains that do not qualify for the discount first.
    """
    discountable = 0.0
    non_discountable = 0.0
    losses = max(0.0, carried_losses)
    for event in events:
        gain = event.gain
        if gain < 0:
            losses += -gain
        elif event.held_months >= rule.holding_period_months:
            discountable += gain
        else:
            non_discountable += gain

    gross = discountable + non_discountable
    applied_short = min(losses, non_discountable)
    non_discountable -= applied_short
    remaining_losses = losses - applied_short
    applied_long = min(remaining_losses, discountable)
    discountable -= applied_long
    remaining_losses -= applied_long

    discount = discountable * rule.discount_percent / 100.0
    return CapitalGainsResult(
        gross_gains=gross,
        losses_applied=applied_short + applied_long,
        discount=discount,
        net_gain=non_discountable + discountable - discount,
        carried_forward_losses=remaining_losses,
    )


def imputation_credit(franked_dividends: float, rule: ImputationRule) -> float:
    if not rule.enabled or franked_dividends <= 0:
        return 0.0
    if rule.corporate_tax_rate >= 1.0:
        raise ConfigurationError("imputation.corporate_tax_rate: must be below 1.0")
    return franked_dividends * rule.corporate_tax_rate / (1.0 - rule.corporate_tax_rate)


def income_tax(taxable_income: float, rule_set: TaxRuleSet) -> float:
    """Primary income tax before levies and offsets, selected by holding type."""
    holding_type = HoldingType(rule_set.holding_type)
    if holding_type == HoldingType.PERSONAL:
        return bracket_tax(taxable_income, rule_set.brackets)
    if holding_type in (HoldingType.SUPERANNUATION, HoldingType.TRUST):
        if rule_set.flat_rate is None:
            raise ConfigurationError(f"{rule_set.country}/{holding_type}: flat_rate is required")
        return max(0.0, taxable_income) * rule_set.flat_rate
    raise ConfigurationError(f"unsupported holding type '{holding_type}'")


def compute_tax(
    assessable_income: float,
    rule_set: TaxRuleSet,
    *,
    capital_gains: Iterable[CapitalGainEvent] = (),
    carried_losses: float = 0.0,
    franked_dividends: float = 0.0,
    deductions: float = 0.0,
) -> TaxResult:
    """Tax payable on one holding type's income for a year.

    ``franked_dividends`` is the cash dividend already counted in
    ``assessable_income``; only its imputation credit is grossed up here.
    Offsets reduce income tax plus levies, floored at zero, and the
    imputation credit is then applied without refund.
    """
    if not (math.isfinite(assessable_income) and math.isfinite(deductions)):
        raise InvalidInputError("assessable_income: must be a finite number")

    gains = net_capital_gain(capital_gains, rule_set.capital_gains, carried_losses)
    credit = imputation_credit(franked_dividends, rule_set.imputation)
    taxable = max(0.0, assessable_income + gains.net_gain + credit - max(0.0, deductions))

    gross = income_tax(taxable, rule_set)
    levies = compute_levies(taxable, rule_set.levies)
    offsets = compute_offsets(taxable, rule_set.offsets)
    after_offsets = max(0.0, gross + sum(levies.values()) - sum(offsets.values()))
    credit_used = min(credit, after_offsets)
    payable = after_offsets - credit_used

    breakdown = []
    if HoldingType(rule_set.holding_type) == HoldingType.PERSONAL:
        breakdown = bracket_breakdown(taxable, rule_set.brackets)

    logger.debug("tax for %s/%s on %.2f: %.2f", rule_set.country, rule_set.holding_type, taxable, payable)
    return TaxResult(
        holding_type=HoldingType(rule_set.holding_type),
        assessable_income=assessable_income,
        taxable_income=taxable,
        gross_tax=gross,
        levies=levies,
        offsets=offsets,
        imputation_credit=credit,
        imputation_credit_used=credit_used,
        unused_imputation_credit=credit - credit_used,
        capital_gains=gains,
        bracket_breakdown=breakdown,
        tax_payable=payable,
    )
