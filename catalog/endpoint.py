from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @classmethod
    def is_method(cls, value: str) -> bool:
        return isinstance(value, str) and value.upper() in cls.__members__


class CoverageStatus(str, Enum):
    NOT_COVERED = "not_covered"
    PARTIALLY_COVERED = "partially_covered"
    COVERED = "covered"


EndpointKey = Tuple[str, str]


@dataclass
class ObservedRequest:
    """A single request seen during the test run.

    The status code stays ``None`` until the response is observed. Request and
    response bodies are kept for reporting only.
    """
    method: str
    path: str
    normalized_path: str
    status_code: Optional[int] = None
    timestamp: str = ""
    request_body: Any = None
    response_body: Any = None
    headers: Dict[str, Any] = field(default_factory=dict)
    correlation_id: Optional[str] = None
    endpoint_key: Optional[EndpointKey] = None
    matched_by: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status_code is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "normalized_path": self.normalized_path,
            "status_code": self.status_code,
            "timestamp": self.timestamp,
            "request_body": self.request_body,
            "response_body": self.response_body,
            "headers": dict(self.headers),
            "correlation_id": self.correlation_id,
            "endpoint": f"{self.endpoint_key[0]} {self.endpoint_key[1]}" if self.endpoint_key else None,
            "matched_by": self.matched_by,
        }


@dataclass
class Endpoint:
    """One operation of the specification document and its observed requests."""
    method: str
    path: str
    normalized_path: str
    summary: str = ""
    description: str = ""
    operation_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    expected_status_codes: List[int] = field(default_factory=list)
    responses: Dict[int, str] = field(default_factory=dict)
    requests: List[ObservedRequest] = field(default_factory=list)
    coverage_status: CoverageStatus = CoverageStatus.NOT_COVERED

    @property
    def key(self) -> EndpointKey:
        return self.method, self.normalized_path

    @property
    def observed_status_codes(self) -> List[int]:
        return sorted({r.status_code for r in self.requests if r.status_code is not None})

    @property
    def missing_status_codes(self) -> List[int]:
        observed = set(self.observed_status_codes)
        return [code for code in self.expected_status_codes if code not in observed]

    def compute_status(self) -> CoverageStatus:
        """Derive the coverage status from the whole request history."""
        if not self.requests:
            return CoverageStatus.NOT_COVERED
        if not self.expected_status_codes:
            # any resolved response covers an operation that declares no codes
            if self.observed_status_codes:
                return CoverageStatus.COVERED
            return CoverageStatus.NOT_COVERED

        expected = set(self.expected_status_codes)
        hits = expected.intersection(self.observed_status_codes)
        if hits == expected:
            return CoverageStatus.COVERED
        if hits:
            return CoverageStatus.PARTIALLY_COVERED
        return CoverageStatus.NOT_COVERED

    def refresh_status(self) -> CoverageStatus:
        # Covered is terminal for the run
        if self.coverage_status != CoverageStatus.COVERED:
            self.coverage_status = self.compute_status()
        return self.coverage_status

    def __str__(self) -> str:
        return f"{self.method} {self.normalized_path}"
