import json

import pytest
from click.testing import CliRunner

from cli.cli_coverage_command import cli, load_recorded_requests
from cli.cli_exit_codes import EXIT_BELOW_THRESHOLD, EXIT_LOAD_ERROR, EXIT_OK, exit_code_for
from core.exceptions import CoverageError

SPEC = {
    "openapi": "3.0.0",
    "paths": {
        "/widgets": {"get": {"tags": ["Widgets"], "responses": {"200": {}, "404": {}}}},
        "/widgets/{id}": {"delete": {"tags": ["Widgets"], "responses": {"204": {}}}},
        "/health": {"get": {"responses": {"200": {}}}},
    },
}

REQUESTS = [
    {"method": "GET", "path": "/widgets", "statusCode": 200},
    {"method": "GET", "path": "/widgets/", "status": 404},
    {"method": "DELETE", "url": "http://localhost/widgets/17?force=1", "status_code": 204},
]


@pytest.fixture
def files(tmp_path):
    spec_path = tmp_path / "openapi.json"
    spec_path.write_text(json.dumps(SPEC), encoding="utf-8")
    requests_path = tmp_path / "requests.json"
    requests_path.write_text(json.dumps(REQUESTS), encoding="utf-8")
    return spec_path, requests_path


def test_report_terminal(files):
    spec_path, requests_path = files

    result = CliRunner().invoke(cli, ["report", str(spec_path), str(requests_path), "--no-color"])

    assert result.exit_code == 0, result.output
    assert "API COVERAGE REPORT" in result.output
    assert "66.7%" in result.output
    assert "widgets" in result.output


def test_report_json(files):
    spec_path, requests_path = files

    result = CliRunner().invoke(cli, ["report", str(spec_path), str(requests_path), "--format", "json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["summary"]["total"] == 3
    assert data["summary"]["covered"] == 2
    assert data["summary"]["uncovered"] == ["GET /health"]


def test_report_markdown_and_csv(files):
    spec_path, requests_path = files
    runner = CliRunner()

    markdown = runner.invoke(cli, ["report", str(spec_path), str(requests_path), "--format", "markdown"])
    csv_output = runner.invoke(cli, ["report", str(spec_path), str(requests_path), "--format", "csv"])

    assert "### widgets (100.0%)" in markdown.output
    assert csv_output.output.startswith("Service,Method,Path,Status")


def test_report_writes_output_dir(files, tmp_path):
    spec_path, requests_path = files
    output_dir = tmp_path / "out"

    result = CliRunner().invoke(
        cli, ["report", str(spec_path), str(requests_path), "--output-dir", str(output_dir), "--no-color"]
    )

    assert result.exit_code == 0, result.output
    assert (output_dir / "coverage.html").exists()
    assert (output_dir / "coverage.json").exists()


def test_report_without_template_matching(files):
    spec_path, requests_path = files

    result = CliRunner().invoke(
        cli, ["report", str(spec_path), str(requests_path), "--format", "json", "--no-templates"]
    )

    data = json.loads(result.output)
    assert data["summary"]["unmatched_requests"] == 1


def test_check_passes_and_fails(files):
    spec_path, requests_path = files
    runner = CliRunner()

    passing = runner.invoke(cli, ["check", str(spec_path), str(requests_path), "--min-coverage", "60"])
    failing = runner.invoke(cli, ["check", str(spec_path), str(requests_path), "--min-coverage", "90"])

    assert passing.exit_code == EXIT_OK
    assert "66.7%" in passing.output
    assert failing.exit_code == EXIT_BELOW_THRESHOLD


def test_invalid_spec_exits_with_load_error(tmp_path):
    spec_path = tmp_path / "bad.json"
    spec_path.write_text(json.dumps({"openapi": "3.0.0"}), encoding="utf-8")
    requests_path = tmp_path / "requests.json"
    requests_path.write_text("[]", encoding="utf-8")

    result = CliRunner().invoke(cli, ["check", str(spec_path), str(requests_path)])

    assert result.exit_code == EXIT_LOAD_ERROR
    assert "missing paths" in result.output


def test_load_recorded_requests_accepts_wrapper(tmp_path):
    path = tmp_path / "wrapped.json"
    path.write_text(json.dumps({"requests": REQUESTS + ["junk"]}), encoding="utf-8")

    assert load_recorded_requests(str(path)) == REQUESTS


def test_load_recorded_requests_rejects_bad_shape(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"items": []}), encoding="utf-8")

    with pytest.raises(CoverageError):
        load_recorded_requests(str(path))


def test_exit_code_for():
    assert exit_code_for(80.0, 80.0) == EXIT_OK
    assert exit_code_for(79.9, 80.0) == EXIT_BELOW_THRESHOLD
