import csv
import io
from html import escape
from typing import Dict, Iterable, Optional

from catalog.endpoint import CoverageStatus
from core.coverage_snapshot import CoverageSnapshot, EndpointCoverage
from report.report_section import ReportSection

STATUS_LABELS = {
    CoverageStatus.COVERED: "✅ Covered",
    CoverageStatus.PARTIALLY_COVERED: "🟡 Partial",
    CoverageStatus.NOT_COVERED: "⛔ Not covered",
}

PLAIN_STATUS_LABELS = {
    CoverageStatus.COVERED: "Covered",
    CoverageStatus.PARTIALLY_COVERED: "Partial",
    CoverageStatus.NOT_COVERED: "Not covered",
}


def status_code_class(status_code: Optional[int], declared_codes: Iterable[int]) -> str:
    """CSS class for an observed status code: ``status-2xx`` when declared, else ``status-undeclared``."""
    if not status_code:
        return "status-undeclared"
    if int(status_code) in set(declared_codes):
        return f"status-{str(status_code)[0]}xx"
    return "status-undeclared"


def _codes(codes: Iterable[int]) -> str:
    return ", ".join(str(code) for code in codes) or "-"


class EndpointCoverageSection(ReportSection):
    def __init__(self, snapshot: CoverageSnapshot):
        super().__init__(
            title="API Coverage Analysis",
            description="Specification endpoints and the status codes observed for them during the test run",
            snapshot=snapshot,
        )
        self.uncovered_endpoints = [
            e for e in snapshot.endpoints if e.status == CoverageStatus.NOT_COVERED
        ]
        self.partially_covered = [
            e for e in snapshot.endpoints if e.status == CoverageStatus.PARTIALLY_COVERED
        ]

    def _summary_line(self) -> str:
        snapshot = self.data
        return (
            f"{snapshot.percentage:.1f}% ({snapshot.covered_endpoints} covered, "
            f"{snapshot.partially_covered_endpoints} partial, "
            f"{snapshot.not_covered_endpoints} not covered of {snapshot.total_endpoints} endpoints)"
        )

    def to_markdown(self) -> str:
        snapshot = self.data
        md = f"## {self.title}\n\n{self.description}\n\n"
        md += f"**Overall Coverage: {self._summary_line()}**\n\n"

        if snapshot.unmatched_requests:
            md += f"_{snapshot.unmatched_requests} request(s) matched no endpoint._\n\n"

        if self.uncovered_endpoints:
            md += "### ⚠️ Uncovered Endpoints\n\n"
            for endpoint in self.uncovered_endpoints:
                md += f"- `{endpoint.key}`\n"
            md += "\n"

        for service in snapshot.services:
            md += f"### {service.name} ({service.percentage:.1f}%)\n\n"
            md += "| Endpoint | Status | Expected | Observed | Missing | Requests |\n"
            md += "|----------|--------|----------|----------|---------|----------|\n"
            for endpoint in service.endpoints:
                md += (
                    f"| `{endpoint.key}` | {STATUS_LABELS[endpoint.status]} | "
                    f"{_codes(endpoint.expected_status_codes)} | {_codes(endpoint.observed_status_codes)} | "
                    f"{_codes(endpoint.missing_status_codes)} | {endpoint.request_count} |\n"
                )
            md += "\n"

        return md

    def _html_row(self, endpoint: EndpointCoverage) -> str:
        observed = " ".join(
            f"<span class='status-code {status_code_class(code, endpoint.expected_status_codes)}'>{code}</span>"
            for code in endpoint.observed_status_codes
        ) or "-"
        return (
            f"<tr class='endpoint {endpoint.status.value}'>"
            f"<td><span class='method method-{endpoint.method.lower()}'>{endpoint.method}</span> "
            f"<code>{escape(endpoint.normalized_path)}</code></td>"
            f"<td>{escape(endpoint.summary)}</td>"
            f"<td>{STATUS_LABELS[endpoint.status]}</td>"
            f"<td>{_codes(endpoint.expected_status_codes)}</td>"
            f"<td>{observed}</td>"
            f"<td>{_codes(endpoint.missing_status_codes)}</td>"
            f"<td>{endpoint.request_count}</td></tr>"
        )

    def to_html(self) -> str:
        snapshot = self.data
        html = f"<section class='coverage-section'><h2>{escape(self.title)}</h2><p>{escape(self.description)}</p>"
        html += f"<p><strong>Overall Coverage:</strong> {self._summary_line()}</p>"

        for service in snapshot.services:
            html += (
                f"<div class='service'><h3>{escape(service.name)} "
                f"<small>{service.percentage:.1f}% ({service.covered_endpoints}/{service.total_endpoints})</small></h3>"
            )
            html += (
                "<table><thead><tr><th>Endpoint</th><th>Summary</th><th>Status</th><th>Expected</th>"
                "<th>Observed</th><th>Missing</th><th>Requests</th></tr></thead><tbody>"
            )
            for endpoint in service.endpoints:
                html += self._html_row(endpoint)
            html += "</tbody></table></div>"

        html += "</section>"
        return html

    def to_json(self) -> Dict:
        return {
            "title": self.title,
            "description": self.description,
            "summary": {
                "total": self.data.total_endpoints,
                "covered": self.data.covered_endpoints,
                "partial": [e.key for e in self.partially_covered],
                "uncovered": [e.key for e in self.uncovered_endpoints],
                "percentage": self.data.percentage,
                "unmatched_requests": self.data.unmatched_requests,
            },
            "details": self.data.to_dict(),
        }

    def to_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Service", "Method", "Path", "Status", "Expected", "Observed", "Missing", "Requests"])
        for endpoint in self.data.endpoints:
            writer.writerow([
                endpoint.service,
                endpoint.method,
                endpoint.normalized_path,
                PLAIN_STATUS_LABELS[endpoint.status],
                " ".join(str(c) for c in endpoint.expected_status_codes),
                " ".join(str(c) for c in endpoint.observed_status_codes),
                " ".join(str(c) for c in endpoint.missing_status_codes),
                endpoint.request_count,
            ])
        return buffer.getvalue()
