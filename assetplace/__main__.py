"""CLI entry point for assetplace projections."""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
from pathlib import Path
import sys

from .engine import run_request
from .errors import ProjectionError
from .report import (
    comparison_to_dict,
    render_comparison,
    render_summary,
    request_fingerprint,
    result_to_dict,
    write_result,
)
from .scenarios import compare_scenarios
from .schema import Scenario, SchemaError, load_request
from .validate import validate_request


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Asset projection and tax calculator")
    parser.add_argument("request", help="Path to projection request JSON file")
    parser.add_argument("-o", "--output", default="projection.json", help="Output JSON path")
    parser.add_argument("--scenario", choices=[s.value for s in Scenario], help="Override growth scenario")
    parser.add_argument("--years", type=int, help="Override projection horizon in years")
    parser.add_argument("--real", action="store_true", help="Report values in today's dollars")
    parser.add_argument("--after-tax", action="store_true", help="Deduct tax from cashflow")
    parser.add_argument("--compare", action="store_true", help="Compare low, medium and high scenarios")
    parser.add_argument("--validate", action="store_true", help="Validate JSON only")
    parser.add_argument("--summary", action="store_true", help="Print text summary to stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _print_validation(errors: list[str], warnings: list[str]) -> None:
    for warning in warnings:
        print(f"WARNING: {warning}")
    for error in errors:
        print(f"ERROR: {error}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        request = load_request(args.request)
    except (SchemaError, OSError, ValueError) as exc:
        print(f"Failed to load request: {exc}", file=sys.stderr)
        return 2

    overrides: dict[str, object] = {}
    if args.scenario:
        overrides["scenario"] = Scenario(args.scenario)
    if args.years is not None:
        overrides["years"] = args.years
    if args.real:
        overrides["inflation_adjusted"] = True
    if args.after_tax:
        overrides["calculate_after_tax"] = True
    if overrides:
        request = replace(request, config=replace(request.config, **overrides))

    validation = validate_request(request)
    _print_validation(validation.errors, validation.warnings)
    if not validation.is_valid:
        return 1

    if args.validate:
        print("Request is valid.")
        return 0

    request_hash = request_fingerprint(args.request)
    try:
        if args.compare:
            comparison = compare_scenarios(request)
            payload = comparison_to_dict(comparison, request_hash)
            if args.summary:
                print(render_comparison(comparison))
        else:
            result = run_request(request)
            payload = result_to_dict(result, request_hash)
            if args.summary:
                print(render_summary(result))
    except ProjectionError as exc:
        print(f"Projection failed: {exc}", file=sys.stderr)
        return 2

    write_result(args.output, payload)
    print(f"Wrote projection to {Path(args.output)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
