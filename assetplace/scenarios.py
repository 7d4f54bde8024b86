"""Side-by-side comparison of growth scenarios."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from .engine import ProjectionResult, generate
from .schema import ProjectionRequest, Scenario

DEFAULT_SCENARIOS: tuple[Scenario, ...] = (Scenario.LOW, Scenario.MEDIUM, Scenario.HIGH)


@dataclass(slots=True)
class ScenarioRow:
    year: int
    net_worth: dict[str, float]
    net_cashflow: dict[str, float]


@dataclass(slots=True)
class ScenarioComparison:
    scenarios: list[Scenario]
    rows: list[ScenarioRow]
    results: dict[str, ProjectionResult]

    def final_net_worth(self) -> dict[str, float]:
        return {str(scenario): self.results[str(scenario)].net_worth[-1] for scenario in self.scenarios}


def run_scenarios(request: ProjectionRequest, scenarios: Iterable[Scenario] = DEFAULT_SCENARIOS) -> dict[str, ProjectionResult]:
    results: dict[str, ProjectionResult] = {}
    for scenario in scenarios:
        config = replace(request.config, scenario=Scenario(scenario))
        results[str(scenario)] = generate(request.assets, config, request.tax_rules, request.defaults)
    return results


def compare_scenarios(request: ProjectionRequest, scenarios: Iterable[Scenario] = DEFAULT_SCENARIOS) -> ScenarioComparison:
    ordered = [Scenario(scenario) for scenario in scenarios]
    if not ordered:
        raise ValueError("at least one scenario is required")
    results = run_scenarios(request, ordered)
    first = results[str(ordered[0])]
    rows = [
        ScenarioRow(
            year=year,
            net_worth={str(s): results[str(s)].net_worth[idx] for s in ordered},
            net_cashflow={str(s): results[str(s)].cashflow.net[idx] for s in ordered},
        )
        for idx, year in enumerate(first.dates)
    ]
    return ScenarioComparison(scenarios=ordered, rows=rows, results=results)
