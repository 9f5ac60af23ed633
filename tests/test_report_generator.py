import json
import tempfile
import unittest
from pathlib import Path

from core.coverage_tracker import CoverageTracker
from report.endpoint_coverage_section import EndpointCoverageSection, status_code_class
from report.report_generator import ReportGenerator
from templates.template_registry import TemplateRegistry, progress_bar_color


def build_tracker():
    spec = {
        "paths": {
            "/users": {
                "get": {"tags": ["Users"], "summary": "List <all> users",
                        "responses": {"200": {"description": "OK"}, "404": {"description": "Missing"}}},
                "post": {"tags": ["Users"], "responses": {"201": {"description": "Created"}}},
            },
            "/orders": {"get": {"responses": {"200": {"description": "OK"}}}},
        }
    }
    tracker = CoverageTracker.from_spec(spec)
    tracker.record("GET", "/users", 200)
    tracker.record("GET", "/users", 500)
    tracker.record("POST", "/users", 201, request_body={"name": "Ada"})
    tracker.record("DELETE", "/nowhere", 204)
    return tracker


class TestEndpointCoverageSection(unittest.TestCase):
    def setUp(self):
        self.snapshot = build_tracker().summarize()
        self.section = EndpointCoverageSection(self.snapshot)

    def test_markdown_lists_services_and_uncovered(self):
        md = self.section.to_markdown()

        self.assertIn("## API Coverage Analysis", md)
        self.assertIn("### users (75.0%)", md)
        self.assertIn("### ⚠️ Uncovered Endpoints", md)
        self.assertIn("- `GET /orders`", md)
        self.assertIn("1 request(s) matched no endpoint", md)

    def test_html_escapes_and_marks_status_codes(self):
        html = self.section.to_html()

        self.assertIn("List &lt;all&gt; users", html)
        self.assertIn("status-2xx'>200</span>", html)
        self.assertIn("status-undeclared'>500</span>", html)
        self.assertIn("<tr class='endpoint partially_covered'>", html)

    def test_json_summary(self):
        data = self.section.to_json()

        self.assertEqual(data["summary"]["total"], 3)
        self.assertEqual(data["summary"]["partial"], ["GET /users"])
        self.assertEqual(data["summary"]["uncovered"], ["GET /orders"])
        self.assertEqual(data["summary"]["unmatched_requests"], 1)

    def test_csv_rows(self):
        lines = self.section.to_csv().splitlines()

        self.assertEqual(lines[0], "Service,Method,Path,Status,Expected,Observed,Missing,Requests")
        self.assertIn("users,GET,/users,Partial,200 404,200 500,404,2", lines)
        self.assertIn("orders,GET,/orders,Not covered,200,,200,0", lines)

    def test_render_dispatches_by_format(self):
        self.assertEqual(json.loads(self.section.render("json"))["summary"], self.section.to_json()["summary"])
        self.assertEqual(self.section.render("csv"), self.section.to_csv())
        self.assertIs(self.section.snapshot, self.snapshot)

    def test_render_rejects_unknown_format(self):
        with self.assertRaises(ValueError):
            self.section.render("pdf")


class TestStatusHelpers(unittest.TestCase):
    def test_status_code_class(self):
        self.assertEqual(status_code_class(201, [200, 201]), "status-2xx")
        self.assertEqual(status_code_class(404, [404]), "status-4xx")
        self.assertEqual(status_code_class(500, [200]), "status-undeclared")
        self.assertEqual(status_code_class(None, [200]), "status-undeclared")

    def test_progress_bar_color(self):
        self.assertEqual(progress_bar_color(80), "#28a745")
        self.assertEqual(progress_bar_color(50), "#ffc107")
        self.assertEqual(progress_bar_color(49.9), "#dc3545")


class TestReportGenerator(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.output_dir = Path(self.temp_dir.name) / "coverage"
        self.tracker = build_tracker()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_generate_writes_all_files(self):
        generator = ReportGenerator(self.output_dir, title="Users API")
        paths = generator.generate(self.tracker.summarize(), self.tracker.get_requests())

        for path in paths.values():
            self.assertTrue(path.exists(), f"{path} was not written")

        coverage = json.loads(paths["json"].read_text(encoding="utf-8"))
        self.assertEqual(coverage["total_endpoints"], 3)
        self.assertEqual(coverage["unmatched_requests"], 1)

        requests = json.loads(paths["requests"].read_text(encoding="utf-8"))
        self.assertEqual(len(requests), 4)
        self.assertEqual(requests[2]["request_body"], {"name": "Ada"})
        self.assertEqual(requests[2]["endpoint"], "POST /users")
        self.assertIsNone(requests[3]["endpoint"])

        html = paths["html"].read_text(encoding="utf-8")
        self.assertIn("<title>Users API</title>", html)
        self.assertIn("<section class='coverage-section'>", html)

    def test_unknown_template_name(self):
        with self.assertRaises(ValueError):
            TemplateRegistry().get_template("missing")


if __name__ == "__main__":
    unittest.main()
