import json

from assetplace.engine import run_request
from assetplace.report import (
    comparison_to_dict,
    render_comparison,
    render_summary,
    request_fingerprint,
    result_to_dict,
    write_result,
)
from assetplace.scenarios import compare_scenarios
from assetplace.schema import ProjectionRequest
from tests.helpers import clone_request, write_request


def test_result_round_trips_through_json(tmp_path, sample_request_dict):
    result = run_request(ProjectionRequest.from_dict(sample_request_dict))
    output_path = tmp_path / "out.json"
    write_result(output_path, result_to_dict(result, "abc123"))

    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["scenario"] == "medium"
    assert payload["request_hash"] == "abc123"
    assert payload["dates"][0] == 2025
    assert len(payload["net_worth"]) == 11
    assert set(payload["cashflow"]) == {"income", "expenses", "tax", "net"}
    assert "home" in payload["assets"]


def test_summary_lists_every_year(sample_request_dict):
    result = run_request(ProjectionRequest.from_dict(sample_request_dict))
    text = render_summary(result)

    assert "Scenario: medium (nominal)" in text
    assert "Years: 2025-2035" in text
    assert "Ending net worth:" in text
    assert len(text.splitlines()) == 3 + 11 + 1


def test_summary_includes_warnings(sample_request_dict):
    data = clone_request(sample_request_dict)
    data["config"]["enabled_holding_types"] = []
    text = render_summary(run_request(ProjectionRequest.from_dict(data)))
    assert "WARNING: " in text


def test_fingerprint_changes_with_content(tmp_path, sample_request_dict):
    first = write_request(tmp_path, sample_request_dict, "a.json")
    data = clone_request(sample_request_dict)
    data["config"]["years"] = 5
    second = write_request(tmp_path, data, "b.json")

    assert request_fingerprint(first) == request_fingerprint(first)
    assert request_fingerprint(first) != request_fingerprint(second)
    assert len(request_fingerprint(first)) == 12


def test_comparison_payload(sample_request_dict):
    comparison = compare_scenarios(ProjectionRequest.from_dict(sample_request_dict))
    payload = comparison_to_dict(comparison)

    assert payload["scenarios"] == ["low", "medium", "high"]
    assert len(payload["rows"]) == 11
    assert "2035" in render_comparison(comparison)
    json.dumps(payload)
