import logging
from typing import Any, Dict, List, Optional, Union

from catalog.endpoint import ObservedRequest
from catalog.spec_loader import SpecLoader
from core.coverage_config import CoverageOptions, build_options, configure_logging
from core.coverage_snapshot import CoverageSnapshot
from core.coverage_tracker import CoverageTracker
from core.exceptions import CoverageError
from core.request_collector import RequestCollector
from report.report_generator import ReportGenerator

logger = logging.getLogger(__name__)


class ApiCoverage:
    """
    Start/stop wrapper around a coverage tracker for one test session.

    ``start`` loads the specification document and builds the catalog,
    ``stop`` summarizes the run and writes the reports.
    """

    def __init__(self, options: Union[CoverageOptions, Dict[str, Any], None] = None):
        self.options = build_options(options)
        self.tracker: Optional[CoverageTracker] = None
        self.collector: Optional[RequestCollector] = None
        self.is_initialized = False
        configure_logging(self.options.log_level, self.options.log_file, self.options.debug)

    def start(self, spec_document: Optional[Dict[str, Any]] = None) -> None:
        if self.is_initialized:
            return

        try:
            if spec_document is None:
                spec_document = SpecLoader.load(self.options.swagger_path or "")
            self.tracker = CoverageTracker.from_spec(
                spec_document,
                base_path=self.options.base_path,
                observer=self.options.observer,
                match_path_templates=self.options.match_path_templates,
            )
        except CoverageError as e:
            logger.error(f"Failed to start API coverage: {e}")
            raise

        self.collector = RequestCollector(self.tracker)
        self.is_initialized = True
        logger.info(f"API coverage started with {len(self.tracker.endpoints)} endpoints")

    def record_request(self, request: Dict[str, Any]) -> Optional[ObservedRequest]:
        if not self.is_initialized:
            logger.warning("API coverage is not initialized")
            return None
        return self.collector.record_request(request)

    def summarize(self) -> Optional[CoverageSnapshot]:
        return self.tracker.summarize() if self.tracker else None

    def get_unmatched(self) -> List[ObservedRequest]:
        return self.tracker.get_unmatched() if self.tracker else []

    def stop(self) -> Optional[CoverageSnapshot]:
        if not self.is_initialized:
            return None

        snapshot = self.tracker.summarize()
        if self.options.generate_report:
            generator = ReportGenerator(self.options.output_dir, title=self.options.title)
            generator.generate(snapshot, self.tracker.get_requests())

        self.is_initialized = False
        logger.info(f"API coverage stopped: {snapshot.percentage:.1f}% of {snapshot.total_endpoints} endpoints")
        return snapshot
