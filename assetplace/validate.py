"""Semantic and cross-reference validation for projection inputs."""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Iterable

from .errors import InvalidInputError
from .frequency import is_known_frequency
from .schema import (
    AssetClass,
    AssetRecord,
    EngineDefaults,
    HoldingType,
    ProjectionConfig,
    ProjectionRequest,
    TaxRuleSet,
)
from .tax import validate_brackets

# Sanity ceiling for percentage inputs; above this a value is almost certainly a typo.
MAX_RATE_PERCENT = 100.0


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_number(result: ValidationResult, path: str, value: float | None, minimum: float | None = 0.0) -> None:
    if value is None:
        return
    if not math.isfinite(value):
        result.errors.append(f"{path}: must be a finite number")
    elif minimum is not None and value < minimum:
        result.errors.append(f"{path}: must be >= {minimum:g}")


def _check_rate(result: ValidationResult, path: str, value: float | None, allow_negative: bool = False) -> None:
    _check_number(result, path, value, None if allow_negative else 0.0)
    if value is not None and math.isfinite(value) and abs(value) > MAX_RATE_PERCENT:
        result.warnings.append(f"{path}: {value:g}% looks unusually large; rates are percentages")


def _check_frequency(result: ValidationResult, path: str, value: str | None) -> None:
    if value is not None and not is_known_frequency(value):
        result.warnings.append(f"{path}: unknown frequency '{value}'; amount will be read with the default frequency")


def _validate_asset(result: ValidationResult, base: str, asset: AssetRecord) -> None:
    if not math.isfinite(asset.value):
        result.errors.append(f"{base}.value: must be a finite number")
    elif asset.value < 0 and not asset.is_liability:
        result.errors.append(f"{base}.value: negative value requires is_liability")
    _check_number(result, f"{base}.purchase_price", asset.purchase_price)
    for scenario in ("low", "medium", "high", "custom"):
        _check_rate(result, f"{base}.growth_rates.{scenario}", getattr(asset.growth_rates, scenario), allow_negative=True)
    _check_rate(result, f"{base}.income_yield", asset.income_yield)
    _check_rate(result, f"{base}.interest_rate", asset.interest_rate)
    _check_rate(result, f"{base}.dividend_yield", asset.dividend_yield)
    _check_rate(result, f"{base}.franking_percent", asset.franking_percent)
    _check_frequency(result, f"{base}.compounding_frequency", asset.compounding_frequency)

    for idx, item in enumerate(asset.expenses):
        _check_number(result, f"{base}.expenses[{idx}].amount", item.amount)
        _check_frequency(result, f"{base}.expenses[{idx}].frequency", item.frequency)

    if asset.loan is not None:
        loan = asset.loan
        _check_number(result, f"{base}.loan.principal", loan.principal)
        _check_rate(result, f"{base}.loan.interest_rate", loan.interest_rate)
        _check_number(result, f"{base}.loan.payment_amount", loan.payment_amount)
        _check_frequency(result, f"{base}.loan.payment_frequency", loan.payment_frequency)
        if loan.term_months is not None and loan.term_months <= 0:
            result.errors.append(f"{base}.loan.term_months: must be > 0")
        if not asset.is_liability:
            result.warnings.append(f"{base}.loan: loan terms on a non-liability are ignored")
    elif asset.is_liability:
        result.warnings.append(f"{base}.loan: no loan terms; balance is treated as interest-only")

    if asset.rental is not None:
        _check_number(result, f"{base}.rental.amount", asset.rental.amount)
        _check_frequency(result, f"{base}.rental.frequency", asset.rental.frequency)
        if not 0 <= asset.rental.vacancy_rate <= 100:
            result.errors.append(f"{base}.rental.vacancy_rate: must be between 0 and 100")

    if asset.employment is not None:
        job = asset.employment
        _check_number(result, f"{base}.employment.base_salary", job.base_salary)
        _check_number(result, f"{base}.employment.bonus_fixed", job.bonus_fixed)
        _check_rate(result, f"{base}.employment.bonus_percent", job.bonus_percent)
        _check_frequency(result, f"{base}.employment.frequency", job.frequency)
        if not 0 <= job.bonus_likelihood <= 100:
            result.errors.append(f"{base}.employment.bonus_likelihood: must be between 0 and 100")
    elif asset.asset_class == AssetClass.EMPLOYMENT_INCOME:
        result.warnings.append(f"{base}.employment: employment income asset has no salary details")


def validate_config(result: ValidationResult, config: ProjectionConfig) -> None:
    horizon = config.horizon_years()
    if horizon <= 0:
        result.errors.append(f"config.years: horizon must be > 0, got {horizon}")
    _check_rate(result, "config.inflation_rate", config.inflation_rate, allow_negative=True)
    if math.isfinite(config.inflation_rate) and config.inflation_rate <= -100:
        result.errors.append("config.inflation_rate: must be greater than -100")
    for key, value in config.custom_growth_rates.items():
        _check_rate(result, f"config.custom_growth_rates.{key}", value, allow_negative=True)
    if config.enabled_asset_classes is not None and not config.enabled_asset_classes:
        result.warnings.append("config.enabled_asset_classes: empty; projection will be zero")
    if config.enabled_holding_types is not None and not config.enabled_holding_types:
        result.warnings.append("config.enabled_holding_types: empty; projection will be zero")


def _validate_defaults(result: ValidationResult, defaults: EngineDefaults) -> None:
    _check_rate(result, "defaults.default_interest_rate", defaults.default_interest_rate)
    for name in ("default_frequency", "default_compounding_frequency"):
        value = getattr(defaults, name)
        if not is_known_frequency(value):
            result.errors.append(f"defaults.{name}: '{value}' is not a known frequency")
    for asset_class, rates in defaults.asset_class_growth.items():
        for idx, rate in enumerate(rates):
            _check_rate(result, f"defaults.asset_class_growth.{asset_class}[{idx}]", rate, allow_negative=True)
    for asset_class, rate in defaults.asset_class_yield.items():
        _check_rate(result, f"defaults.asset_class_yield.{asset_class}", rate)


def validate_tax_rules(result: ValidationResult, rule_sets: Iterable[TaxRuleSet]) -> None:
    seen: set[tuple[str, str]] = set()
    for idx, rule_set in enumerate(rule_sets):
        base = f"tax_rules[{idx}]"
        key = (rule_set.country.upper(), str(rule_set.holding_type))
        if key in seen:
            result.errors.append(f"{base}: duplicate rule set for {key[0]}/{key[1]}")
        seen.add(key)
        holding_type = HoldingType(rule_set.holding_type)
        if holding_type == HoldingType.PERSONAL:
            result.errors.extend(f"{base}.{message}" for message in validate_brackets(rule_set.brackets))
            if rule_set.flat_rate is not None:
                result.warnings.append(f"{base}.flat_rate: ignored for {holding_type} holdings; brackets apply")
        elif rule_set.flat_rate is None:
            result.errors.append(f"{base}.flat_rate: required for {holding_type} holdings")
        else:
            _check_number(result, f"{base}.flat_rate", rule_set.flat_rate)
            if rule_set.brackets:
                result.warnings.append(f"{base}.brackets: ignored for {holding_type} holdings; flat_rate applies")
        for jdx, levy in enumerate(rule_set.levies):
            _check_number(result, f"{base}.levies[{jdx}].rate", levy.rate)
            _check_number(result, f"{base}.levies[{jdx}].threshold", levy.threshold)
        for jdx, offset in enumerate(rule_set.offsets):
            _check_number(result, f"{base}.offsets[{jdx}].max_amount", offset.max_amount)
        _check_rate(result, f"{base}.capital_gains.discount_percent", rule_set.capital_gains.discount_percent)
        if not 0 <= rule_set.imputation.corporate_tax_rate < 1:
            result.errors.append(f"{base}.imputation.corporate_tax_rate: must be in [0, 1)")
        if not 0 <= rule_set.expense_deduction_rate <= 1:
            result.errors.append(f"{base}.expense_deduction_rate: must be in [0, 1]")


def validate_projection(
    assets: list[AssetRecord],
    config: ProjectionConfig,
    defaults: EngineDefaults | None = None,
    tax_rules: list[TaxRuleSet] | None = None,
) -> ValidationResult:
    result = ValidationResult()
    defaults = defaults or EngineDefaults()

    validate_config(result, config)
    _validate_defaults(result, defaults)

    ids: set[str] = set()
    for idx, asset in enumerate(assets):
        base = f"assets[{idx}]"
        if asset.id in ids:
            result.errors.append(f"{base}.id: duplicate asset id '{asset.id}'")
        ids.add(asset.id)
        _validate_asset(result, base, asset)

    by_id = {asset.id: asset for asset in assets}
    for idx, asset in enumerate(assets):
        if asset.loan is None or asset.loan.offset_account_id is None:
            continue
        path = f"assets[{idx}].loan.offset_account_id"
        target = by_id.get(asset.loan.offset_account_id)
        if target is None:
            result.warnings.append(f"{path}: '{asset.loan.offset_account_id}' does not match any asset id")
        elif target.is_liability:
            result.errors.append(f"{path}: '{target.id}' is a liability and cannot offset a loan")
        elif target.asset_class != AssetClass.CASH:
            result.warnings.append(f"{path}: '{target.id}' is not a cash account")

    if tax_rules is not None:
        validate_tax_rules(result, tax_rules)
    return result


def validate_request(request: ProjectionRequest) -> ValidationResult:
    return validate_projection(request.assets, request.config, request.defaults, request.tax_rules)


def check_inputs(
    assets: list[AssetRecord],
    config: ProjectionConfig,
    defaults: EngineDefaults | None = None,
    tax_rules: list[TaxRuleSet] | None = None,
) -> ValidationResult:
    """Validate and raise ``InvalidInputError`` on any error; returns the warnings otherwise."""
    result = validate_projection(assets, config, defaults, tax_rules)
    if not result.is_valid:
        raise InvalidInputError(result.errors)
    return result
