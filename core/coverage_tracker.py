import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from catalog.catalog_builder import SpecCatalogBuilder
from catalog.endpoint import Endpoint, ObservedRequest
from core.aggregator import Aggregator
from core.coverage_snapshot import CoverageSnapshot
from router.event_matcher import EventMatcher
from router.path_normalizer import normalize_path

logger = logging.getLogger(__name__)

Observer = Callable[[str, Dict[str, Any]], None]


class CoverageTracker:
    """
    Owns the endpoint catalog for one test run and records observed requests.

    Every ``record`` call is synchronous bookkeeping under a tracker-wide lock:
    the request is matched, appended to its endpoint (or to the unmatched log)
    and the endpoint status is recomputed from its full request history.
    Requests carrying a correlation id can be recorded before their response
    is known and completed later with a second ``record`` call.
    """

    def __init__(
        self,
        endpoints: Iterable[Endpoint],
        base_path: Optional[str] = None,
        observer: Optional[Observer] = None,
        match_path_templates: bool = True,
    ):
        self._endpoints: List[Endpoint] = list(endpoints)
        self.base_path = base_path
        self.observer = observer
        self._matcher = EventMatcher(self._endpoints, match_path_templates=match_path_templates)
        self._lock = threading.RLock()
        self._requests: List[ObservedRequest] = []
        self._unmatched: List[ObservedRequest] = []
        self._in_flight: Dict[str, Tuple[ObservedRequest, Optional[Endpoint]]] = {}

        for endpoint in self._endpoints:
            endpoint.refresh_status()

    @classmethod
    def from_spec(
        cls,
        spec_document: Mapping[str, Any],
        base_path: Optional[str] = None,
        observer: Optional[Observer] = None,
        match_path_templates: bool = True,
    ) -> "CoverageTracker":
        endpoints = SpecCatalogBuilder.build(spec_document, base_path)
        effective_base = SpecCatalogBuilder.resolve_base_path(spec_document, base_path)
        tracker = cls(
            endpoints,
            base_path=effective_base,
            observer=observer,
            match_path_templates=match_path_templates,
        )
        tracker._notify("catalog_built", endpoints=len(endpoints), base_path=effective_base)
        return tracker

    @property
    def endpoints(self) -> List[Endpoint]:
        return list(self._endpoints)

    def get_endpoint(self, method: str, path: str) -> Optional[Endpoint]:
        return self._matcher.lookup(method.upper(), normalize_path(path, self.base_path))

    def record(
        self,
        method: Optional[str],
        path: Optional[str],
        status_code: Optional[Any] = None,
        correlation_id: Optional[str] = None,
        timestamp: Optional[str] = None,
        request_body: Any = None,
        response_body: Any = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> ObservedRequest:
        status = self._coerce_status(status_code)

        with self._lock:
            if correlation_id is not None and correlation_id in self._in_flight:
                return self._complete(correlation_id, status, response_body)

            method_text = str(method).upper() if method else ""
            path_text = path if isinstance(path, str) else ("" if path is None else str(path))
            request = ObservedRequest(
                method=method_text,
                path=path_text,
                normalized_path=normalize_path(path_text, self.base_path),
                status_code=status,
                timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
                request_body=request_body,
                response_body=response_body,
                headers=dict(headers) if isinstance(headers, Mapping) else {},
                correlation_id=correlation_id,
            )

            endpoint = None
            match = self._matcher.match(method_text, request.normalized_path) if method_text and path_text else None
            if match is None:
                self._unmatched.append(request)
                logger.info(f"No endpoint matches {method_text or '?'} {request.normalized_path}")
                self._notify("request_unmatched", method=method_text, path=request.normalized_path)
            else:
                endpoint = match.endpoint
                request.endpoint_key = endpoint.key
                request.matched_by = match.match_type
                endpoint.requests.append(request)
                endpoint.refresh_status()
                logger.debug(
                    f"Recorded {method_text} {request.normalized_path} ({status}) -> "
                    f"{endpoint} [{match.match_type}]"
                )
                self._notify(
                    "endpoint_matched",
                    endpoint=str(endpoint),
                    match_type=match.match_type,
                    status_code=status,
                    coverage_status=endpoint.coverage_status.value,
                )

            self._requests.append(request)
            if correlation_id is not None:
                self._in_flight[correlation_id] = (request, endpoint)
            return request

    def _complete(self, correlation_id: str, status: Optional[int], response_body: Any) -> ObservedRequest:
        request, endpoint = self._in_flight[correlation_id]
        if status is None:
            return request

        if request.status_code is None:
            request.status_code = status
            if response_body is not None:
                request.response_body = response_body
            if endpoint is not None:
                endpoint.refresh_status()
            self._notify("status_updated", correlation_id=correlation_id, status_code=status)
        elif request.status_code != status:
            logger.warning(
                f"Ignoring status {status} for request {correlation_id}: "
                f"already resolved as {request.status_code}"
            )
            self._notify(
                "status_conflict",
                correlation_id=correlation_id,
                status_code=status,
                recorded_status_code=request.status_code,
            )
        return request

    def summarize(self) -> CoverageSnapshot:
        with self._lock:
            return Aggregator.summarize(self._endpoints, len(self._unmatched))

    def get_unmatched(self) -> List[ObservedRequest]:
        with self._lock:
            return list(self._unmatched)

    def get_requests(self) -> List[ObservedRequest]:
        with self._lock:
            return list(self._requests)

    @staticmethod
    def _coerce_status(value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring unparseable status code: {value!r}")
            return None

    def _notify(self, event: str, **details: Any) -> None:
        if self.observer is None:
            return
        try:
            self.observer(event, details)
        except Exception:
            logger.exception(f"Coverage observer failed while handling '{event}'")
