from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from catalog.endpoint import CoverageStatus


@dataclass(frozen=True)
class EndpointCoverage:
    """Read-only view of one endpoint at snapshot time"""
    method: str
    path: str
    normalized_path: str
    service: str
    status: CoverageStatus
    summary: str = ""
    tags: Tuple[str, ...] = ()
    expected_status_codes: Tuple[int, ...] = ()
    observed_status_codes: Tuple[int, ...] = ()
    missing_status_codes: Tuple[int, ...] = ()
    request_count: int = 0
    pending_count: int = 0
    responses: Tuple[Tuple[int, str], ...] = ()

    @property
    def key(self) -> str:
        return f"{self.method} {self.normalized_path}"

    @property
    def is_covered(self) -> bool:
        return self.status == CoverageStatus.COVERED

    @property
    def is_partially_covered(self) -> bool:
        return self.status == CoverageStatus.PARTIALLY_COVERED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "normalized_path": self.normalized_path,
            "service": self.service,
            "status": self.status.value,
            "summary": self.summary,
            "tags": list(self.tags),
            "expected_status_codes": list(self.expected_status_codes),
            "observed_status_codes": list(self.observed_status_codes),
            "missing_status_codes": list(self.missing_status_codes),
            "request_count": self.request_count,
            "pending_count": self.pending_count,
            "responses": {str(code): description for code, description in self.responses},
        }


@dataclass(frozen=True)
class ServiceCoverage:
    name: str
    endpoints: Tuple[EndpointCoverage, ...] = ()
    covered_endpoints: int = 0
    partially_covered_endpoints: int = 0
    not_covered_endpoints: int = 0
    percentage: float = 0.0

    @property
    def total_endpoints(self) -> int:
        return len(self.endpoints)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "total_endpoints": self.total_endpoints,
            "covered_endpoints": self.covered_endpoints,
            "partially_covered_endpoints": self.partially_covered_endpoints,
            "not_covered_endpoints": self.not_covered_endpoints,
            "percentage": self.percentage,
            "endpoints": [endpoint.to_dict() for endpoint in self.endpoints],
        }


@dataclass(frozen=True)
class CoverageSnapshot:
    """Immutable coverage figures computed from tracker state at one point in time."""
    total_endpoints: int = 0
    covered_endpoints: int = 0
    partially_covered_endpoints: int = 0
    not_covered_endpoints: int = 0
    percentage: float = 0.0
    endpoints: Tuple[EndpointCoverage, ...] = ()
    services: Tuple[ServiceCoverage, ...] = ()
    unmatched_requests: int = 0
    generated_at: str = field(default="", compare=False)

    def service(self, name: str) -> Optional[ServiceCoverage]:
        for service in self.services:
            if service.name == name:
                return service
        return None

    def endpoint(self, method: str, normalized_path: str) -> Optional[EndpointCoverage]:
        for endpoint in self.endpoints:
            if endpoint.method == method.upper() and endpoint.normalized_path == normalized_path:
                return endpoint
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_endpoints": self.total_endpoints,
            "covered_endpoints": self.covered_endpoints,
            "partially_covered_endpoints": self.partially_covered_endpoints,
            "not_covered_endpoints": self.not_covered_endpoints,
            "percentage": self.percentage,
            "unmatched_requests": self.unmatched_requests,
            "generated_at": self.generated_at,
            "services": {service.name: service.to_dict() for service in self.services},
        }
