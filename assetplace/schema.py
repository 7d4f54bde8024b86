"""Request schema dataclasses and JSON loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import json
from pathlib import Path
from typing import Any

from .defaults import (
    ASSET_CLASS_GROWTH_DEFAULTS,
    ASSET_CLASS_YIELD_DEFAULTS,
    DEFAULT_COMPOUNDING_FREQUENCY,
    DEFAULT_COUNTRY,
    DEFAULT_HOLDING_TYPE,
    DEFAULT_INFLATION_RATE,
    DEFAULT_INTEREST_RATE,
    DEFAULT_PROJECTION_YEARS,
    map_period_to_years,
)
from .frequency import DEFAULT_FREQUENCY


class SchemaError(ValueError):
    """Raised when raw JSON cannot be parsed into schema objects."""


class AssetClass(StrEnum):
    PROPERTY = "property"
    SHARES = "shares"
    CASH = "cash"
    LOAN = "loan"
    RETIREMENT = "retirement"
    STOCK_OPTION = "stock_option"
    EMPLOYMENT_INCOME = "employment_income"


class HoldingType(StrEnum):
    PERSONAL = "personal"
    SUPERANNUATION = "superannuation"
    TRUST = "trust"


class Scenario(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CUSTOM = "custom"


class RateType(StrEnum):
    FIXED = "fixed"
    VARIABLE = "variable"


def _expect_dict(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(f"{path}: expected object")
    return value


def _expect_list(value: Any, path: str) -> list[Any]:
    if not isinstance(value, list):
        raise SchemaError(f"{path}: expected array")
    return value


def _require(data: dict[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise SchemaError(f"{path}.{key}: missing required field")
    return data[key]


def _optional(data: dict[str, Any], key: str, default: Any = None) -> Any:
    return data.get(key, default)


def _number(value: Any, path: str) -> float:
    if isinstance(value, bool):
        raise SchemaError(f"{path}: expected number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise SchemaError(f"{path}: expected number") from None


def _optional_number(data: dict[str, Any], key: str, path: str) -> float | None:
    value = _optional(data, key)
    if value is None:
        return None
    return _number(value, f"{path}.{key}")


def _enum(enum_cls: type[StrEnum], value: Any, path: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        expected = ", ".join(member.value for member in enum_cls)
        raise SchemaError(f"{path}: '{value}' is not valid; expected one of [{expected}]") from None


def _enum_list(enum_cls: type[StrEnum], value: Any, path: str) -> list[Any] | None:
    if value is None:
        return None
    return [_enum(enum_cls, item, f"{path}[{idx}]") for idx, item in enumerate(_expect_list(value, path))]


@dataclass(slots=True)
class GrowthRates:
    low: float | None = None
    medium: float | None = None
    high: float | None = None
    custom: float | None = None

    def for_scenario(self, scenario: Scenario) -> float | None:
        return {
            Scenario.LOW: self.low,
            Scenario.MEDIUM: self.medium,
            Scenario.HIGH: self.high,
            Scenario.CUSTOM: self.custom,
        }[scenario]

    @classmethod
    def from_value(cls, value: Any, path: str) -> "GrowthRates":
        # A bare number overrides every scenario.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            rate = float(value)
            return cls(low=rate, medium=rate, high=rate, custom=rate)
        data = _expect_dict(value, path)
        return cls(
            low=_optional_number(data, "low", path),
            medium=_optional_number(data, "medium", path),
            high=_optional_number(data, "high", path),
            custom=_optional_number(data, "custom", path),
        )


@dataclass(slots=True)
class ExpenseItem:
    category: str
    amount: float
    frequency: str | None = None
    name: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "ExpenseItem":
        return cls(
            category=_optional(data, "category", "uncategorized"),
            amount=_number(_require(data, "amount", path), f"{path}.amount"),
            frequency=_optional(data, "frequency"),
            name=_optional(data, "name"),
        )


@dataclass(slots=True)
class LoanTerms:
    principal: float | None = None
    interest_rate: float | None = None
    rate_type: RateType = RateType.VARIABLE
    term_months: int | None = None
    payment_frequency: str | None = None
    payment_amount: float | None = None
    offset_account_id: str | None = None
    tax_deductible: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "LoanTerms":
        term = _optional(data, "term_months")
        offset = _optional(data, "offset_account_id")
        return cls(
            principal=_optional_number(data, "principal", path),
            interest_rate=_optional_number(data, "interest_rate", path),
            rate_type=_enum(RateType, _optional(data, "rate_type", "variable"), f"{path}.rate_type"),
            term_months=int(_number(term, f"{path}.term_months")) if term is not None else None,
            payment_frequency=_optional(data, "payment_frequency"),
            payment_amount=_optional_number(data, "payment_amount", path),
            offset_account_id=str(offset) if offset is not None else None,
            tax_deductible=bool(_optional(data, "tax_deductible", False)),
        )


@dataclass(slots=True)
class RentalIncome:
    amount: float
    frequency: str | None = None
    vacancy_rate: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "RentalIncome":
        return cls(
            amount=_number(_require(data, "amount", path), f"{path}.amount"),
            frequency=_optional(data, "frequency"),
            vacancy_rate=_number(_optional(data, "vacancy_rate", 0.0), f"{path}.vacancy_rate"),
        )


@dataclass(slots=True)
class EmploymentIncome:
    base_salary: float
    frequency: str | None = "annually"
    bonus_fixed: float = 0.0
    bonus_percent: float = 0.0
    bonus_likelihood: float = 100.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "EmploymentIncome":
        return cls(
            base_salary=_number(_require(data, "base_salary", path), f"{path}.base_salary"),
            frequency=_optional(data, "frequency", "annually"),
            bonus_fixed=_number(_optional(data, "bonus_fixed", 0.0), f"{path}.bonus_fixed"),
            bonus_percent=_number(_optional(data, "bonus_percent", 0.0), f"{path}.bonus_percent"),
            bonus_likelihood=_number(_optional(data, "bonus_likelihood", 100.0), f"{path}.bonus_likelihood"),
        )


@dataclass(slots=True)
class AssetRecord:
    id: str
    name: str
    asset_class: AssetClass
    value: float
    holding_type: HoldingType = HoldingType.PERSONAL
    is_liability: bool = False
    is_hidden: bool = False
    purchase_price: float | None = None
    purchase_date: str | None = None
    growth_rates: GrowthRates = field(default_factory=GrowthRates)
    income_yield: float | None = None
    expenses: list[ExpenseItem] = field(default_factory=list)
    loan: LoanTerms | None = None
    interest_rate: float | None = None
    compounding_frequency: str | None = None
    dividend_yield: float | None = None
    franking_percent: float = 0.0
    rental: RentalIncome | None = None
    employment: EmploymentIncome | None = None

    @property
    def balance(self) -> float:
        """Magnitude of the holding; liabilities may be stored negative."""
        return abs(self.value) if self.is_liability else self.value

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str, default_holding_type: str = DEFAULT_HOLDING_TYPE) -> "AssetRecord":
        asset_class = _enum(AssetClass, _require(data, "asset_class", path), f"{path}.asset_class")
        loan_raw = _optional(data, "loan")
        rental_raw = _optional(data, "rental")
        employment_raw = _optional(data, "employment")
        growth_raw = _optional(data, "growth_rates")
        is_liability = _optional(data, "is_liability")
        if is_liability is None:
            is_liability = asset_class == AssetClass.LOAN
        return cls(
            id=str(_require(data, "id", path)),
            name=_optional(data, "name", str(data.get("id", ""))),
            asset_class=asset_class,
            value=_number(_require(data, "value", path), f"{path}.value"),
            holding_type=_enum(HoldingType, _optional(data, "holding_type", default_holding_type), f"{path}.holding_type"),
            is_liability=bool(is_liability),
            is_hidden=bool(_optional(data, "is_hidden", False)),
            purchase_price=_optional_number(data, "purchase_price", path),
            purchase_date=_optional(data, "purchase_date"),
            growth_rates=GrowthRates.from_value(growth_raw, f"{path}.growth_rates") if growth_raw is not None else GrowthRates(),
            income_yield=_optional_number(data, "income_yield", path),
            expenses=[
                ExpenseItem.from_dict(_expect_dict(item, f"{path}.expenses[{idx}]"), f"{path}.expenses[{idx}]")
                for idx, item in enumerate(_expect_list(_optional(data, "expenses", []), f"{path}.expenses"))
            ],
            loan=LoanTerms.from_dict(_expect_dict(loan_raw, f"{path}.loan"), f"{path}.loan") if loan_raw is not None else None,
            interest_rate=_optional_number(data, "interest_rate", path),
            compounding_frequency=_optional(data, "compounding_frequency"),
            dividend_yield=_optional_number(data, "dividend_yield", path),
            franking_percent=_number(_optional(data, "franking_percent", 0.0), f"{path}.franking_percent"),
            rental=RentalIncome.from_dict(_expect_dict(rental_raw, f"{path}.rental"), f"{path}.rental") if rental_raw is not None else None,
            employment=(
                EmploymentIncome.from_dict(_expect_dict(employment_raw, f"{path}.employment"), f"{path}.employment")
                if employment_raw is not None
                else None
            ),
        )


@dataclass(slots=True)
class ProjectionConfig:
    years: int | None = None
    period: str | None = None
    current_age: int | None = None
    retirement_age: int | None = None
    scenario: Scenario = Scenario.MEDIUM
    custom_growth_rates: dict[str, float] = field(default_factory=dict)
    inflation_rate: float = DEFAULT_INFLATION_RATE
    include_income: bool = True
    include_expenses: bool = True
    reinvest_income: bool = False
    include_hidden_assets: bool = False
    exclude_liabilities: bool = False
    calculate_after_tax: bool = False
    inflation_adjusted: bool = False
    enabled_asset_classes: list[AssetClass] | None = None
    enabled_holding_types: list[HoldingType] | None = None
    country: str = DEFAULT_COUNTRY
    start_year: int | None = None

    def horizon_years(self) -> int:
        if self.years is not None:
            return self.years
        if self.period is not None:
            return map_period_to_years(self.period, self.retirement_age, self.current_age)
        return DEFAULT_PROJECTION_YEARS

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "config") -> "ProjectionConfig":
        years = _optional(data, "years")
        custom_raw = _expect_dict(_optional(data, "custom_growth_rates", {}), f"{path}.custom_growth_rates")
        current_age = _optional(data, "current_age")
        retirement_age = _optional(data, "retirement_age")
        start_year = _optional(data, "start_year")
        return cls(
            years=int(_number(years, f"{path}.years")) if years is not None else None,
            period=_optional(data, "period"),
            current_age=int(current_age) if current_age is not None else None,
            retirement_age=int(retirement_age) if retirement_age is not None else None,
            scenario=_enum(Scenario, _optional(data, "scenario", "medium"), f"{path}.scenario"),
            custom_growth_rates={
                str(_enum(AssetClass, key, f"{path}.custom_growth_rates")): _number(value, f"{path}.custom_growth_rates.{key}")
                for key, value in custom_raw.items()
            },
            inflation_rate=_number(_optional(data, "inflation_rate", DEFAULT_INFLATION_RATE), f"{path}.inflation_rate"),
            include_income=bool(_optional(data, "include_income", True)),
            include_expenses=bool(_optional(data, "include_expenses", True)),
            reinvest_income=bool(_optional(data, "reinvest_income", False)),
            include_hidden_assets=bool(_optional(data, "include_hidden_assets", False)),
            exclude_liabilities=bool(_optional(data, "exclude_liabilities", False)),
            calculate_after_tax=bool(_optional(data, "calculate_after_tax", False)),
            inflation_adjusted=bool(_optional(data, "inflation_adjusted", False)),
            enabled_asset_classes=_enum_list(AssetClass, _optional(data, "enabled_asset_classes"), f"{path}.enabled_asset_classes"),
            enabled_holding_types=_enum_list(HoldingType, _optional(data, "enabled_holding_types"), f"{path}.enabled_holding_types"),
            country=str(_optional(data, "country", DEFAULT_COUNTRY)),
            start_year=int(start_year) if start_year is not None else None,
        )


@dataclass(slots=True)
class EngineDefaults:
    default_interest_rate: float = DEFAULT_INTEREST_RATE
    default_frequency: str = DEFAULT_FREQUENCY
    default_compounding_frequency: str = DEFAULT_COMPOUNDING_FREQUENCY
    default_holding_type: HoldingType = HoldingType(DEFAULT_HOLDING_TYPE)
    asset_class_growth: dict[str, tuple[float, float, float]] = field(
        default_factory=lambda: dict(ASSET_CLASS_GROWTH_DEFAULTS)
    )
    asset_class_yield: dict[str, float] = field(default_factory=lambda: dict(ASSET_CLASS_YIELD_DEFAULTS))

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "defaults") -> "EngineDefaults":
        growth = dict(ASSET_CLASS_GROWTH_DEFAULTS)
        for key, value in _expect_dict(_optional(data, "asset_class_growth", {}), f"{path}.asset_class_growth").items():
            item_path = f"{path}.asset_class_growth.{key}"
            rates = _expect_list(value, item_path)
            if len(rates) != 3:
                raise SchemaError(f"{item_path}: expected [low, medium, high]")
            growth[str(_enum(AssetClass, key, item_path))] = tuple(_number(r, item_path) for r in rates)
        yields = dict(ASSET_CLASS_YIELD_DEFAULTS)
        for key, value in _expect_dict(_optional(data, "asset_class_yield", {}), f"{path}.asset_class_yield").items():
            yields[str(_enum(AssetClass, key, f"{path}.asset_class_yield"))] = _number(value, f"{path}.asset_class_yield.{key}")
        return cls(
            default_interest_rate=_number(_optional(data, "default_interest_rate", DEFAULT_INTEREST_RATE), f"{path}.default_interest_rate"),
            default_frequency=_optional(data, "default_frequency", DEFAULT_FREQUENCY),
            default_compounding_frequency=_optional(data, "default_compounding_frequency", DEFAULT_COMPOUNDING_FREQUENCY),
            default_holding_type=_enum(HoldingType, _optional(data, "default_holding_type", DEFAULT_HOLDING_TYPE), f"{path}.default_holding_type"),
            asset_class_growth=growth,
            asset_class_yield=yields,
        )


@dataclass(slots=True)
class TaxBracket:
    lower: float
    upper: float | None
    base_tax: float
    marginal_rate: float

    def contains(self, income: float) -> bool:
        return income >= self.lower and (self.upper is None or income < self.upper)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "TaxBracket":
        return cls(
            lower=_number(_require(data, "lower", path), f"{path}.lower"),
            upper=_optional_number(data, "upper", path),
            base_tax=_number(_optional(data, "base_tax", 0.0), f"{path}.base_tax"),
            marginal_rate=_number(_require(data, "marginal_rate", path), f"{path}.marginal_rate"),
        )


def bracket_ladder(thresholds: list[tuple[float, float]]) -> list[TaxBracket]:
    """Build contiguous brackets from (lower, marginal_rate) pairs, deriving base tax."""
    ordered = sorted(thresholds)
    brackets: list[TaxBracket] = []
    base_tax = 0.0
    for idx, (lower, rate) in enumerate(ordered):
        upper = ordered[idx + 1][0] if idx + 1 < len(ordered) else None
        brackets.append(TaxBracket(lower=float(lower), upper=None if upper is None else float(upper), base_tax=base_tax, marginal_rate=rate))
        if upper is not None:
            base_tax += (upper - lower) * rate
    return brackets


@dataclass(slots=True)
class LevyRule:
    name: str
    rate: float
    threshold: float
    shade_in_upper: float | None = None
    shade_in_rate: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "LevyRule":
        return cls(
            name=_require(data, "name", path),
            rate=_number(_require(data, "rate", path), f"{path}.rate"),
            threshold=_number(_optional(data, "threshold", 0.0), f"{path}.threshold"),
            shade_in_upper=_optional_number(data, "shade_in_upper", path),
            shade_in_rate=_optional_number(data, "shade_in_rate", path),
        )


@dataclass(slots=True)
class OffsetPhase:
    threshold: float
    rate: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "OffsetPhase":
        return cls(
            threshold=_number(_require(data, "threshold", path), f"{path}.threshold"),
            rate=_number(_require(data, "rate", path), f"{path}.rate"),
        )


@dataclass(slots=True)
class OffsetRule:
    name: str
    max_amount: float
    base_amount: float | None = None
    phases: list[OffsetPhase] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "OffsetRule":
        return cls(
            name=_require(data, "name", path),
            max_amount=_number(_require(data, "max_amount", path), f"{path}.max_amount"),
            base_amount=_optional_number(data, "base_amount", path),
            phases=[
                OffsetPhase.from_dict(_expect_dict(item, f"{path}.phases[{idx}]"), f"{path}.phases[{idx}]")
                for idx, item in enumerate(_expect_list(_optional(data, "phases", []), f"{path}.phases"))
            ],
        )


@dataclass(slots=True)
class CapitalGainsRule:
    discount_percent: float = 0.0
    holding_period_months: int = 12

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "CapitalGainsRule":
        return cls(
            discount_percent=_number(_optional(data, "discount_percent", 0.0), f"{path}.discount_percent"),
            holding_period_months=int(_number(_optional(data, "holding_period_months", 12), f"{path}.holding_period_months")),
        )


@dataclass(slots=True)
class ImputationRule:
    enabled: bool = False
    corporate_tax_rate: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "ImputationRule":
        return cls(
            enabled=bool(_optional(data, "enabled", False)),
            corporate_tax_rate=_number(_optional(data, "corporate_tax_rate", 0.0), f"{path}.corporate_tax_rate"),
        )


@dataclass(slots=True)
class TaxRuleSet:
    country: str
    holding_type: HoldingType
    brackets: list[TaxBracket] = field(default_factory=list)
    levies: list[LevyRule] = field(default_factory=list)
    offsets: list[OffsetRule] = field(default_factory=list)
    capital_gains: CapitalGainsRule = field(default_factory=CapitalGainsRule)
    imputation: ImputationRule = field(default_factory=ImputationRule)
    flat_rate: float | None = None
    expense_deduction_rate: float = 1.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "TaxRuleSet":
        if "brackets" in data:
            brackets = [
                TaxBracket.from_dict(_expect_dict(item, f"{path}.brackets[{idx}]"), f"{path}.brackets[{idx}]")
                for idx, item in enumerate(_expect_list(data["brackets"], f"{path}.brackets"))
            ]
        else:
            pairs = []
            for idx, item in enumerate(_expect_list(_optional(data, "bracket_rates", []), f"{path}.bracket_rates")):
                pair = _expect_list(item, f"{path}.bracket_rates[{idx}]")
                if len(pair) != 2:
                    raise SchemaError(f"{path}.bracket_rates[{idx}]: expected [lower, marginal_rate]")
                pairs.append((_number(pair[0], f"{path}.bracket_rates[{idx}]"), _number(pair[1], f"{path}.bracket_rates[{idx}]")))
            brackets = bracket_ladder(pairs)
        return cls(
            country=str(_require(data, "country", path)),
            holding_type=_enum(HoldingType, _require(data, "holding_type", path), f"{path}.holding_type"),
            brackets=brackets,
            levies=[
                LevyRule.from_dict(_expect_dict(item, f"{path}.levies[{idx}]"), f"{path}.levies[{idx}]")
                for idx, item in enumerate(_expect_list(_optional(data, "levies", []), f"{path}.levies"))
            ],
            offsets=[
                OffsetRule.from_dict(_expect_dict(item, f"{path}.offsets[{idx}]"), f"{path}.offsets[{idx}]")
                for idx, item in enumerate(_expect_list(_optional(data, "offsets", []), f"{path}.offsets"))
            ],
            capital_gains=CapitalGainsRule.from_dict(
                _expect_dict(_optional(data, "capital_gains", {}), f"{path}.capital_gains"), f"{path}.capital_gains"
            ),
            imputation=ImputationRule.from_dict(
                _expect_dict(_optional(data, "imputation", {}), f"{path}.imputation"), f"{path}.imputation"
            ),
            flat_rate=_optional_number(data, "flat_rate", path),
            expense_deduction_rate=_number(_optional(data, "expense_deduction_rate", 1.0), f"{path}.expense_deduction_rate"),
        )


@dataclass(slots=True)
class ProjectionRequest:
    assets: list[AssetRecord]
    config: ProjectionConfig
    tax_rules: list[TaxRuleSet] | None = None
    defaults: EngineDefaults = field(default_factory=EngineDefaults)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectionRequest":
        defaults = EngineDefaults.from_dict(_expect_dict(_optional(data, "defaults", {}), "defaults"))
        tax_raw = _optional(data, "tax_rules")
        tax_rules = None
        if tax_raw is not None:
            tax_rules = [
                TaxRuleSet.from_dict(_expect_dict(item, f"tax_rules[{idx}]"), f"tax_rules[{idx}]")
                for idx, item in enumerate(_expect_list(tax_raw, "tax_rules"))
            ]
        return cls(
            assets=[
                AssetRecord.from_dict(_expect_dict(item, f"assets[{idx}]"), f"assets[{idx}]", defaults.default_holding_type)
                for idx, item in enumerate(_expect_list(_require(data, "assets", "request"), "assets"))
            ],
            config=ProjectionConfig.from_dict(_expect_dict(_optional(data, "config", {}), "config")),
            tax_rules=tax_rules,
            defaults=defaults,
        )


def load_request(path: str | Path) -> ProjectionRequest:
    """Load a projection request JSON file into strongly-typed dataclasses."""
    source = Path(path)
    raw = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise SchemaError("request: root must be a JSON object")
    return ProjectionRequest.from_dict(raw)
