import json
from abc import ABC, abstractmethod
from typing import Any, Dict

from core.coverage_snapshot import CoverageSnapshot

SECTION_FORMATS = ("json", "markdown", "html", "csv")


class ReportSection(ABC):
    """
    A block of coverage output built from one snapshot.

    Subclasses provide one renderer per format; ``render`` picks the renderer
    by format name so callers (the CLI, the report generator) never branch on it.
    """

    def __init__(self, title: str, description: str, snapshot: CoverageSnapshot):
        self.title = title
        self.description = description
        self.data = snapshot

    @property
    def snapshot(self) -> CoverageSnapshot:
        return self.data

    def render(self, output_format: str) -> str:
        if output_format not in SECTION_FORMATS:
            raise ValueError(f"Unsupported section format '{output_format}'")
        if output_format == "json":
            return json.dumps(self.to_json(), indent=2, ensure_ascii=False)
        return getattr(self, f"to_{output_format}")()

    @abstractmethod
    def to_markdown(self) -> str:
        ...

    @abstractmethod
    def to_json(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def to_html(self) -> str:
        """HTML fragment, embedded by the page layout template."""

    @abstractmethod
    def to_csv(self) -> str:
        ...
