import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlsplit

from catalog.endpoint import ObservedRequest

logger = logging.getLogger(__name__)


def extract_path(url: str) -> str:
    """Path component of a full or relative URL, without query string or fragment."""
    if not url:
        return ""
    return urlsplit(url).path or "/"


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


class RequestCollector:
    """
    Feeds requests from test code into a coverage tracker.

    Test code either reports finished requests (``collect`` with a URL,
    ``record_request`` with already extracted data) or brackets an in-flight
    request with ``begin`` / ``complete`` so the status code lands on the
    request that was recorded first.
    """

    def __init__(self, tracker):
        if tracker is None:
            raise ValueError("A coverage tracker instance is required")
        self.tracker = tracker
        self._requests: List[Dict[str, Any]] = []
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            self._requests = []

    def get_requests(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._requests)

    def record_request(self, request: Mapping[str, Any]) -> ObservedRequest:
        """Record a request given as a loose mapping (``status``/``statusCode``, camelCase bodies)."""
        path = request.get("path")
        if not path and request.get("url"):
            path = request["url"]
        if isinstance(path, str):
            path = extract_path(path)

        normalized = {
            "method": request.get("method"),
            "path": path,
            "status_code": _first_present(request, "status_code", "statusCode", "status"),
            "correlation_id": _first_present(request, "correlation_id", "correlationId"),
            "timestamp": request.get("timestamp") or datetime.now(timezone.utc).isoformat(),
            "request_body": _first_present(request, "request_body", "requestBody", "postData", "body"),
            "response_body": _first_present(request, "response_body", "responseBody"),
            "headers": request.get("headers") or {},
        }
        with self._lock:
            self._requests.append(normalized)
        return self.tracker.record(**normalized)

    def collect(
        self,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        headers: Optional[Mapping[str, Any]] = None,
        request_body: Any = None,
        response_body: Any = None,
    ) -> ObservedRequest:
        return self.record_request({
            "method": method.upper() if method else method,
            "path": extract_path(url),
            "status_code": status_code,
            "headers": headers,
            "request_body": request_body,
            "response_body": response_body,
        })

    def begin(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, Any]] = None,
        request_body: Any = None,
    ) -> str:
        """Record a request whose response is still outstanding; returns its correlation id."""
        path = extract_path(url)
        correlation_id = f"{(method or '').upper()} {path} #{next(self._sequence)}"
        self.record_request({
            "method": method,
            "path": path,
            "correlation_id": correlation_id,
            "headers": headers,
            "request_body": request_body,
        })
        return correlation_id

    def complete(self, correlation_id: str, status_code: int, response_body: Any = None) -> ObservedRequest:
        with self._lock:
            for entry in self._requests:
                if entry["correlation_id"] == correlation_id:
                    entry["status_code"] = status_code
                    if response_body is not None:
                        entry["response_body"] = response_body
                    break
            else:
                logger.warning(f"Completing unknown request {correlation_id}")

        return self.tracker.record(
            method=None,
            path=None,
            status_code=status_code,
            correlation_id=correlation_id,
            response_body=response_body,
        )
