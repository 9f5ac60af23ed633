from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Sequence

from catalog.endpoint import CoverageStatus, Endpoint
from core.coverage_snapshot import CoverageSnapshot, EndpointCoverage, ServiceCoverage
from router.path_normalizer import first_segment

DEFAULT_SERVICE = "default"


def service_name(endpoint: Endpoint) -> str:
    """First declared tag, else the first segment of the declared path."""
    for tag in endpoint.tags:
        if tag:
            return tag.lower()
    return first_segment(endpoint.path) or DEFAULT_SERVICE


def coverage_percentage(covered: int, partially_covered: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return (covered + 0.5 * partially_covered) / total * 100


def _tally(views: Sequence[EndpointCoverage]) -> Dict[CoverageStatus, int]:
    counts = {status: 0 for status in CoverageStatus}
    for view in views:
        counts[view.status] += 1
    return counts


def _endpoint_view(endpoint: Endpoint) -> EndpointCoverage:
    return EndpointCoverage(
        method=endpoint.method,
        path=endpoint.path,
        normalized_path=endpoint.normalized_path,
        service=service_name(endpoint),
        status=endpoint.coverage_status,
        summary=endpoint.summary,
        tags=tuple(endpoint.tags),
        expected_status_codes=tuple(endpoint.expected_status_codes),
        observed_status_codes=tuple(endpoint.observed_status_codes),
        missing_status_codes=tuple(endpoint.missing_status_codes),
        request_count=len(endpoint.requests),
        pending_count=sum(1 for r in endpoint.requests if r.is_pending),
        responses=tuple(sorted(endpoint.responses.items())),
    )


class Aggregator:
    """Derives totals, percentages and service groupings from catalog state."""

    @staticmethod
    def summarize(catalog: Iterable[Endpoint], unmatched_count: int = 0) -> CoverageSnapshot:
        views = [_endpoint_view(endpoint) for endpoint in catalog]
        counts = _tally(views)

        grouped: "OrderedDict[str, List[EndpointCoverage]]" = OrderedDict()
        for view in views:
            grouped.setdefault(view.service, []).append(view)

        services = []
        for name, members in grouped.items():
            service_counts = _tally(members)
            services.append(ServiceCoverage(
                name=name,
                endpoints=tuple(members),
                covered_endpoints=service_counts[CoverageStatus.COVERED],
                partially_covered_endpoints=service_counts[CoverageStatus.PARTIALLY_COVERED],
                not_covered_endpoints=service_counts[CoverageStatus.NOT_COVERED],
                percentage=coverage_percentage(
                    service_counts[CoverageStatus.COVERED],
                    service_counts[CoverageStatus.PARTIALLY_COVERED],
                    len(members),
                ),
            ))

        return CoverageSnapshot(
            total_endpoints=len(views),
            covered_endpoints=counts[CoverageStatus.COVERED],
            partially_covered_endpoints=counts[CoverageStatus.PARTIALLY_COVERED],
            not_covered_endpoints=counts[CoverageStatus.NOT_COVERED],
            percentage=coverage_percentage(
                counts[CoverageStatus.COVERED],
                counts[CoverageStatus.PARTIALLY_COVERED],
                len(views),
            ),
            endpoints=tuple(views),
            services=tuple(services),
            unmatched_requests=unmatched_count,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )


def summarize(catalog: Iterable[Endpoint], unmatched_count: int = 0) -> CoverageSnapshot:
    return Aggregator.summarize(catalog, unmatched_count)
