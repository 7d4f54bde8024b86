"""JSON and plain-text rendering of projection results."""

from __future__ import annotations

from dataclasses import asdict
from datetime import UTC, datetime
import hashlib
import json
from pathlib import Path

from .engine import ProjectionResult
from .scenarios import ScenarioComparison


def _money(value: float) -> str:
    return f"${value:,.0f}"


def request_fingerprint(path: str | Path) -> str:
    """Short content hash of a request file, stable across runs."""
    return hashlib.sha256(Path(path).read_bytes()).hexdigest()[:12]


def result_to_dict(result: ProjectionResult, request_hash: str | None = None) -> dict[str, object]:
    payload = asdict(result)
    payload["scenario"] = str(result.scenario)
    payload["generated_at"] = datetime.now(UTC).isoformat(timespec="seconds")
    if request_hash is not None:
        payload["request_hash"] = request_hash
    return payload


def comparison_to_dict(comparison: ScenarioComparison, request_hash: str | None = None) -> dict[str, object]:
    payload: dict[str, object] = {
        "scenarios": [str(s) for s in comparison.scenarios],
        "rows": [asdict(row) for row in comparison.rows],
        "final_net_worth": comparison.final_net_worth(),
        "generated_at": datetime.now(UTC).isoformat(timespec="seconds"),
    }
    if request_hash is not None:
        payload["request_hash"] = request_hash
    return payload


def write_result(path: str | Path, payload: dict[str, object]) -> None:
    Path(path).write_text(json.dumps(payload, indent=2), encoding="utf-8")


def render_summary(result: ProjectionResult) -> str:
    basis = "real" if result.inflation_adjusted else "nominal"
    lines = [
        f"Scenario: {result.scenario} ({basis})",
        f"Years: {result.dates[0]}-{result.dates[-1]}",
        f"{'Year':>6} {'Net worth':>14} {'Income':>12} {'Expenses':>12} {'Tax':>10} {'Net flow':>12}",
    ]
    cashflow = result.cashflow
    for idx, year in enumerate(result.dates):
        lines.append(
            f"{year:>6} {_money(result.net_worth[idx]):>14} {_money(cashflow.income[idx]):>12} "
            f"{_money(cashflow.expenses[idx]):>12} {_money(cashflow.tax[idx]):>10} {_money(cashflow.net[idx]):>12}"
        )
    lines.append(f"Ending net worth: {_money(result.net_worth[-1])}")
    for warning in result.warnings:
        lines.append(f"WARNING: {warning}")
    return "\n".join(lines)


def render_comparison(comparison: ScenarioComparison) -> str:
    names = [str(s) for s in comparison.scenarios]
    lines = [f"{'Year':>6} " + " ".join(f"{name:>14}" for name in names)]
    for row in comparison.rows:
        lines.append(f"{row.year:>6} " + " ".join(f"{_money(row.net_worth[name]):>14}" for name in names))
    return "\n".join(lines)
