import re
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from catalog.endpoint import Endpoint, EndpointKey
from router.path_normalizer import is_template, path_segments

logger = logging.getLogger(__name__)

MATCH_EXACT = "exact"
MATCH_TEMPLATE = "template"
MATCH_FALLBACK = "fallback"


@dataclass
class EndpointMatch:
    """An observed request bound to a catalog endpoint"""
    endpoint: Endpoint
    match_type: str = MATCH_EXACT  # "exact", "template" or "fallback"
    match_score: int = 100


class EventMatcher:
    """
    Maps (method, normalized path) pairs onto catalog endpoints.

    Exact (method + path) lookups hit an index built once from the catalog.
    When that fails, the matcher falls back to the path alone and only binds
    when exactly one endpoint is a candidate.
    """

    def __init__(self, endpoints: Iterable[Endpoint], match_path_templates: bool = True):
        self.match_path_templates = match_path_templates
        self._index: Dict[EndpointKey, Endpoint] = {}
        self._by_path: Dict[str, List[Endpoint]] = defaultdict(list)
        self._templates: List[Tuple[Endpoint, re.Pattern, int]] = []

        for endpoint in endpoints:
            self._index.setdefault(endpoint.key, endpoint)
            self._by_path[endpoint.normalized_path].append(endpoint)
            if is_template(endpoint.normalized_path):
                self._templates.append((
                    endpoint,
                    self._compile_path_pattern(endpoint.normalized_path),
                    self._score_template(endpoint.normalized_path),
                ))

        logger.debug(f"Indexed {len(self._index)} endpoints ({len(self._templates)} templated)")

    @staticmethod
    def _compile_path_pattern(path: str) -> re.Pattern:
        pattern_str = ""
        last = 0
        for m in re.finditer(r"{([^{}]+)}", path):
            pattern_str += re.escape(path[last:m.start()]) + "[^/]+"
            last = m.end()
        pattern_str += re.escape(path[last:])
        return re.compile("^" + pattern_str + "$")

    @staticmethod
    def _score_template(path: str) -> int:
        segments = path_segments(path)
        param_count = len(re.findall(r"{([^{}]+)}", path))
        static_count = len(segments) - param_count
        return 50 + static_count * 10 - param_count

    def lookup(self, method: str, normalized_path: str) -> Optional[Endpoint]:
        return self._index.get((method, normalized_path))

    def match(self, method: str, normalized_path: str) -> Optional[EndpointMatch]:
        endpoint = self._index.get((method, normalized_path))
        if endpoint is not None:
            return EndpointMatch(endpoint=endpoint, match_type=MATCH_EXACT, match_score=100)

        if self.match_path_templates:
            candidates = self._template_candidates(normalized_path, method)
            best = self._best_unique(candidates)
            if best is not None:
                return EndpointMatch(endpoint=best[0], match_type=MATCH_TEMPLATE, match_score=best[1])

        return self._fallback(normalized_path)

    def _fallback(self, normalized_path: str) -> Optional[EndpointMatch]:
        candidates = self._by_path.get(normalized_path, [])
        if not candidates and self.match_path_templates:
            candidates = [endpoint for endpoint, _ in self._template_candidates(normalized_path)]

        if len(candidates) == 1:
            return EndpointMatch(endpoint=candidates[0], match_type=MATCH_FALLBACK, match_score=10)

        if len(candidates) > 1:
            logger.debug(
                f"Ambiguous fallback for {normalized_path}: "
                f"{', '.join(str(c) for c in candidates)}"
            )
        return None

    def _template_candidates(self, normalized_path: str, method: Optional[str] = None) -> List[Tuple[Endpoint, int]]:
        return [
            (endpoint, score)
            for endpoint, pattern, score in self._templates
            if (method is None or endpoint.method == method) and pattern.match(normalized_path)
        ]

    @staticmethod
    def _best_unique(candidates: List[Tuple[Endpoint, int]]) -> Optional[Tuple[Endpoint, int]]:
        if not candidates:
            return None
        top_score = max(score for _, score in candidates)
        best = [c for c in candidates if c[1] == top_score]
        return best[0] if len(best) == 1 else None
