"""Reference tax rule sets used when a request does not supply its own."""

from __future__ import annotations

from typing import Final

from .schema import (
    CapitalGainsRule,
    HoldingType,
    ImputationRule,
    LevyRule,
    OffsetPhase,
    OffsetRule,
    TaxRuleSet,
    bracket_ladder,
)

BASE_TAX_YEAR: Final[int] = 2025

# (lower_bound, marginal_rate); the last bracket is open-ended.
AU_RESIDENT_RATES: Final[list[tuple[float, float]]] = [
    (0.0, 0.0),
    (18_200.0, 0.16),
    (45_000.0, 0.30),
    (135_000.0, 0.37),
    (190_000.0, 0.45),
]

AU_MEDICARE_LEVY_RATE: Final[float] = 0.02
AU_MEDICARE_LOW_INCOME_THRESHOLD: Final[float] = 27_222.0
AU_MEDICARE_SHADE_IN_UPPER: Final[float] = 34_027.0
AU_MEDICARE_SHADE_IN_RATE: Final[float] = 0.10

AU_LITO_MAX: Final[float] = 700.0
AU_LITO_PHASES: Final[list[tuple[float, float]]] = [
    (37_500.0, 0.05),
    (45_000.0, 0.015),
    (66_667.0, 0.0),
]

AU_CGT_DISCOUNT_PERSONAL: Final[float] = 50.0
AU_CGT_DISCOUNT_SUPER: Final[float] = 100.0 / 3.0
AU_CGT_HOLDING_MONTHS: Final[int] = 12

AU_CORPORATE_TAX_RATE: Final[float] = 0.30
AU_SUPER_EARNINGS_RATE: Final[float] = 0.15
AU_TRUST_UNDISTRIBUTED_RATE: Final[float] = 0.47


def australian_rule_sets() -> list[TaxRuleSet]:
    """Fresh copies of the Australian personal, superannuation and trust rule sets."""
    imputation = ImputationRule(enabled=True, corporate_tax_rate=AU_CORPORATE_TAX_RATE)
    personal = TaxRuleSet(
        country="AU",
        holding_type=HoldingType.PERSONAL,
        brackets=bracket_ladder(AU_RESIDENT_RATES),
        levies=[
            LevyRule(
                name="medicare",
                rate=AU_MEDICARE_LEVY_RATE,
                threshold=AU_MEDICARE_LOW_INCOME_THRESHOLD,
                shade_in_upper=AU_MEDICARE_SHADE_IN_UPPER,
                shade_in_rate=AU_MEDICARE_SHADE_IN_RATE,
            )
        ],
        offsets=[
            OffsetRule(
                name="low_income",
                max_amount=AU_LITO_MAX,
                phases=[OffsetPhase(threshold, rate) for threshold, rate in AU_LITO_PHASES],
            )
        ],
        capital_gains=CapitalGainsRule(AU_CGT_DISCOUNT_PERSONAL, AU_CGT_HOLDING_MONTHS),
        imputation=imputation,
    )
    superannuation = TaxRuleSet(
        country="AU",
        holding_type=HoldingType.SUPERANNUATION,
        capital_gains=CapitalGainsRule(AU_CGT_DISCOUNT_SUPER, AU_CGT_HOLDING_MONTHS),
        imputation=ImputationRule(enabled=True, corporate_tax_rate=AU_CORPORATE_TAX_RATE),
        flat_rate=AU_SUPER_EARNINGS_RATE,
    )
    trust = TaxRuleSet(
        country="AU",
        holding_type=HoldingType.TRUST,
        capital_gains=CapitalGainsRule(AU_CGT_DISCOUNT_PERSONAL, AU_CGT_HOLDING_MONTHS),
        imputation=ImputationRule(enabled=True, corporate_tax_rate=AU_CORPORATE_TAX_RATE),
        flat_rate=AU_TRUST_UNDISTRIBUTED_RATE,
    )
    return [personal, superannuation, trust]


DEFAULT_TAX_RULE_SETS: Final[list[TaxRuleSet]] = australian_rule_sets()
