import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from catalog.endpoint import ObservedRequest
from core.coverage_snapshot import CoverageSnapshot
from report.endpoint_coverage_section import EndpointCoverageSection
from templates.template_registry import TemplateRegistry

logger = logging.getLogger(__name__)

COVERAGE_FILE = "coverage.json"
REQUESTS_FILE = "requests.json"
HTML_FILE = "coverage.html"


class ReportGenerator:
    """Writes coverage.json, requests.json and coverage.html for a snapshot."""

    def __init__(
        self,
        output_dir: Union[str, Path] = "coverage",
        title: str = "API Coverage Report",
        template_registry: Optional[TemplateRegistry] = None,
    ):
        self.output_dir = Path(output_dir)
        self.title = title
        self.template_registry = template_registry or TemplateRegistry()

    def generate(self, snapshot: CoverageSnapshot, requests: Iterable[ObservedRequest] = ()) -> Dict[str, Path]:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        coverage_path = self.output_dir / COVERAGE_FILE
        self._write_json(coverage_path, snapshot.to_dict())

        requests_path = self.output_dir / REQUESTS_FILE
        self._write_json(requests_path, [request.to_dict() for request in requests])

        html_path = self.output_dir / HTML_FILE
        with html_path.open("w", encoding="utf-8") as f:
            f.write(self.render_html(snapshot))

        logger.info(f"Coverage report written to {self.output_dir}")
        return {"json": coverage_path, "requests": requests_path, "html": html_path}

    def render_html(self, snapshot: CoverageSnapshot) -> str:
        section = EndpointCoverageSection(snapshot)
        return self.template_registry.render_template("coverage_layout", {
            "title": self.title,
            "generated_at": snapshot.generated_at,
            "snapshot": snapshot,
            "section_html": section.render("html"),
        })

    @staticmethod
    def _write_json(path: Path, data) -> None:
        with path.open("w", encoding="utf-8") as f:
            # bodies are opaque and may not be JSON-native
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)
