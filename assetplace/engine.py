"""Projection orchestrator: filters holdings, projects them and aggregates the results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging

from .growth import AssetSeries, deflate, project
from .schema import AssetRecord, EngineDefaults, HoldingType, ProjectionConfig, ProjectionRequest, Scenario, TaxRuleSet
from .tax import TaxRuleBook, compute_tax
from .validate import check_inputs

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CashflowSeries:
    income: list[float]
    expenses: list[float]
    tax: list[float]
    net: list[float]


@dataclass(slots=True)
class ProjectionResult:
    scenario: Scenario
    years: int
    dates: list[int]
    net_worth: list[float]
    total_assets: list[float]
    total_liabilities: list[float]
    cashflow: CashflowSeries
    by_asset_class: dict[str, list[float]] = field(default_factory=dict)
    by_holding_type: dict[str, list[float]] = field(default_factory=dict)
    assets: dict[str, list[float]] = field(default_factory=dict)
    tax_by_holding_type: dict[str, list[float]] = field(default_factory=dict)
    inflation_adjusted: bool = False
    warnings: list[str] = field(default_factory=list)


def _zeros(size: int) -> list[float]:
    return [0.0] * size


def _add_into(target: list[float], values: list[float], sign: float = 1.0) -> None:
    for idx, value in enumerate(values):
        target[idx] += sign * value


def select_assets(assets: list[AssetRecord], config: ProjectionConfig) -> tuple[list[AssetRecord], list[str]]:
    """Apply visibility, liability and enabled-set filters; returns (selected, warnings)."""
    warnings: list[str] = []
    selected: list[AssetRecord] = []
    classes = None if config.enabled_asset_classes is None else set(config.enabled_asset_classes)
    holdings = None if config.enabled_holding_types is None else set(config.enabled_holding_types)
    for asset in assets:
        if asset.is_hidden and not config.include_hidden_assets:
            logger.debug("skipping hidden asset %s", asset.id)
            continue
        if asset.is_liability and config.exclude_liabilities:
            continue
        if classes is not None and asset.asset_class not in classes:
            continue
        if holdings is not None and asset.holding_type not in holdings:
            continue
        selected.append(asset)
    if assets and not selected and (classes is not None or holdings is not None):
        warnings.append("no assets match the enabled asset classes and holding types; projection is zero")
    return selected, warnings


def _apply_tax(
    series: list[AssetSeries],
    config: ProjectionConfig,
    rule_book: TaxRuleBook,
    size: int,
) -> dict[str, list[float]]:
    by_holding: dict[HoldingType, list[AssetSeries]] = {}
    for item in series:
        by_holding.setdefault(item.holding_type, []).append(item)

    rule_sets: dict[HoldingType, TaxRuleSet] = {
        holding_type: rule_book.get(config.country, holding_type) for holding_type in by_holding
    }
    tax_by_holding: dict[str, list[float]] = {}
    for holding_type, members in by_holding.items():
        rule_set = rule_sets[holding_type]
        taxes = _zeros(size)
        for t in range(size):
            assessable = sum(item.assessable_income[t] for item in members)
            deductions = sum(item.deductions[t] for item in members) * rule_set.expense_deduction_rate
            franked = sum(item.franked_dividends[t] for item in members)
            taxes[t] = compute_tax(
                assessable,
                rule_set,
                franked_dividends=franked,
                deductions=deductions,
            ).tax_payable
        tax_by_holding[str(holding_type)] = taxes
    return tax_by_holding


def generate(
    assets: list[AssetRecord],
    config: ProjectionConfig,
    tax_rules: list[TaxRuleSet] | None = None,
    defaults: EngineDefaults | None = None,
) -> ProjectionResult:
    """Run a full projection over the snapshot without modifying it."""
    defaults = defaults or EngineDefaults()
    checked = check_inputs(assets, config, defaults, tax_rules)
    years = config.horizon_years()
    size = years + 1
    start_year = config.start_year if config.start_year is not None else datetime.now().year

    selected, warnings = select_assets(assets, config)
    warnings = checked.warnings + warnings
    logger.debug("projecting %d of %d assets over %d years", len(selected), len(assets), years)

    rule_book = None
    if config.calculate_after_tax:
        rule_book = TaxRuleBook(tax_rules) if tax_rules is not None else TaxRuleBook.default()
        for holding_type in {asset.holding_type for asset in selected}:
            rule_book.get(config.country, holding_type)

    projected: dict[str, AssetSeries] = {}
    for asset in selected:
        if not asset.is_liability:
            projected[asset.id] = project(asset, config.scenario, years, config, defaults)
    for asset in selected:
        if not asset.is_liability:
            continue
        offsets = None
        offset_id = asset.loan.offset_account_id if asset.loan else None
        if offset_id is not None and offset_id in projected:
            offsets = projected[offset_id].values
        elif offset_id is not None:
            logger.debug("offset account %s for %s is not in the projection", offset_id, asset.id)
        projected[asset.id] = project(asset, config.scenario, years, config, defaults, offset_balances=offsets)

    total_assets = _zeros(size)
    total_liabilities = _zeros(size)
    income = _zeros(size)
    expenses = _zeros(size)
    by_asset_class: dict[str, list[float]] = {}
    by_holding_type: dict[str, list[float]] = {}
    per_asset: dict[str, list[float]] = {}
    for asset_id, item in projected.items():
        sign = -1.0 if item.is_liability else 1.0
        _add_into(total_liabilities if item.is_liability else total_assets, item.values)
        _add_into(by_asset_class.setdefault(str(item.asset_class), _zeros(size)), item.values, sign)
        _add_into(by_holding_type.setdefault(str(item.holding_type), _zeros(size)), item.values, sign)
        per_asset[asset_id] = [sign * value for value in item.values]
        if config.include_income:
            _add_into(income, item.income)
        if config.include_expenses:
            _add_into(expenses, item.expenses)

    tax = _zeros(size)
    tax_by_holding: dict[str, list[float]] = {}
    if rule_book is not None:
        tax_by_holding = _apply_tax(list(projected.values()), config, rule_book, size)
        for values in tax_by_holding.values():
            _add_into(tax, values)

    net_worth = [a - l for a, l in zip(total_assets, total_liabilities)]
    net_cashflow = [i - e - t for i, e, t in zip(income, expenses, tax)]
    result = ProjectionResult(
        scenario=config.scenario,
        years=years,
        dates=[start_year + t for t in range(size)],
        net_worth=net_worth,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        cashflow=CashflowSeries(income, expenses, tax, net_cashflow),
        by_asset_class=by_asset_class,
        by_holding_type=by_holding_type,
        assets=per_asset,
        tax_by_holding_type=tax_by_holding,
        warnings=warnings,
    )
    if config.inflation_adjusted:
        result = to_real(result, config.inflation_rate)
    return result


def to_real(result: ProjectionResult, inflation_rate: float) -> ProjectionResult:
    """Deflate every money series of a nominal result into period-0 dollars."""
    if result.inflation_adjusted:
        return result

    def real(mapping: dict[str, list[float]]) -> dict[str, list[float]]:
        return {key: deflate(values, inflation_rate) for key, values in mapping.items()}

    cashflow = result.cashflow
    return ProjectionResult(
        scenario=result.scenario,
        years=result.years,
        dates=list(result.dates),
        net_worth=deflate(result.net_worth, inflation_rate),
        total_assets=deflate(result.total_assets, inflation_rate),
        total_liabilities=deflate(result.total_liabilities, inflation_rate),
        cashflow=CashflowSeries(
            income=deflate(cashflow.income, inflation_rate),
            expenses=deflate(cashflow.expenses, inflation_rate),
            tax=deflate(cashflow.tax, inflation_rate),
            net=deflate(cashflow.net, inflation_rate),
        ),
        by_asset_class=real(result.by_asset_class),
        by_holding_type=real(result.by_holding_type),
        assets=real(result.assets),
        tax_by_holding_type=real(result.tax_by_holding_type),
        inflation_adjusted=True,
        warnings=list(result.warnings),
    )


def run_request(request: ProjectionRequest) -> ProjectionResult:
    return generate(request.assets, request.config, request.tax_rules, request.defaults)
