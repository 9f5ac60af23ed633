import logging
from typing import Any, Dict, List, Mapping, Optional

from catalog.endpoint import Endpoint, EndpointKey, HttpMethod
from core.exceptions import SpecFormatError
from router.path_normalizer import normalize_path

logger = logging.getLogger(__name__)

DEFAULT_RESPONSE_KEY = "default"


class SpecCatalogBuilder:
    """Turns a decoded OpenAPI/Swagger document into an ordered endpoint catalog."""

    @staticmethod
    def build(spec: Mapping[str, Any], base_path: Optional[str] = None) -> List[Endpoint]:
        if not isinstance(spec, Mapping):
            raise SpecFormatError("Specification document must be a mapping")

        paths = spec.get("paths")
        if not isinstance(paths, Mapping):
            raise SpecFormatError("Invalid specification: missing paths collection", "paths")

        effective_base = SpecCatalogBuilder.resolve_base_path(spec, base_path)
        endpoints: List[Endpoint] = []
        seen: Dict[EndpointKey, Endpoint] = {}

        for path, path_item in paths.items():
            if not isinstance(path_item, Mapping):
                raise SpecFormatError("Path item must be a mapping", f"paths.{path}")

            for method_key, operation in path_item.items():
                if not HttpMethod.is_method(method_key):
                    # shared "parameters", "summary", "servers", "$ref"...
                    continue

                operation = operation or {}
                if not isinstance(operation, Mapping):
                    raise SpecFormatError("Operation must be a mapping", f"paths.{path}.{method_key}")

                location = f"paths.{path}.{method_key}"
                responses = SpecCatalogBuilder._parse_responses(operation.get("responses") or {}, location)
                endpoint = Endpoint(
                    method=method_key.upper(),
                    path=str(path),
                    normalized_path=normalize_path(str(path), effective_base),
                    summary=operation.get("summary") or "",
                    description=operation.get("description") or "",
                    operation_id=operation.get("operationId"),
                    tags=SpecCatalogBuilder._parse_tags(operation.get("tags"), location),
                    expected_status_codes=sorted(responses),
                    responses=responses,
                )

                if endpoint.key in seen:
                    logger.warning(
                        f"Duplicate operation {endpoint} (declared as {path}); keeping the first declaration"
                    )
                    continue

                seen[endpoint.key] = endpoint
                endpoints.append(endpoint)

        logger.debug(f"Built catalog with {len(endpoints)} endpoints (base path: {effective_base or 'none'})")
        return endpoints

    @staticmethod
    def resolve_base_path(spec: Mapping[str, Any], base_path: Optional[str] = None) -> Optional[str]:
        """The document's own ``basePath`` wins over the caller supplied one."""
        spec_base = spec.get("basePath") if isinstance(spec, Mapping) else None
        if isinstance(spec_base, str) and spec_base:
            return spec_base
        return base_path or None

    @staticmethod
    def _parse_tags(tags: Any, location: str) -> List[str]:
        if tags is None:
            return []
        if isinstance(tags, str):
            return [tags]
        if not isinstance(tags, (list, tuple)):
            raise SpecFormatError("Tags must be a list of strings", f"{location}.tags")
        return [str(tag) for tag in tags]

    @staticmethod
    def _parse_responses(responses: Any, location: str) -> Dict[int, str]:
        if not isinstance(responses, Mapping):
            raise SpecFormatError("Responses must be a mapping", f"{location}.responses")

        parsed: Dict[int, str] = {}
        for code, response in responses.items():
            if str(code).strip().lower() == DEFAULT_RESPONSE_KEY:
                continue
            try:
                status_code = int(str(code).strip())
            except ValueError:
                raise SpecFormatError(
                    f"Response code '{code}' is not an integer", f"{location}.responses"
                ) from None

            description = ""
            if isinstance(response, Mapping):
                description = response.get("description") or ""
            parsed[status_code] = description

        return parsed


def build_catalog(spec_document: Mapping[str, Any], base_path: Optional[str] = None) -> List[Endpoint]:
    return SpecCatalogBuilder.build(spec_document, base_path)
