import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import requests
import yaml

from core.exceptions import SpecLoadError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class SpecLoader:
    """Loads a specification document from a local file or an HTTP(S) URL."""

    @staticmethod
    def load(source: Union[str, Path], timeout: float = 30.0) -> Dict[str, Any]:
        source_str = str(source)
        if not source_str:
            raise SpecLoadError("Swagger path is not specified")

        if source_str.startswith(("http://", "https://")):
            content = SpecLoader._fetch(source_str, timeout)
        else:
            content = SpecLoader._read(Path(source_str))

        document = SpecLoader.parse(content, source_str)
        logger.info(f"Loaded specification document from {source_str}")
        return document

    @staticmethod
    def parse(content: str, source: str = "document") -> Dict[str, Any]:
        try:
            if source.lower().endswith(YAML_SUFFIXES):
                document = yaml.safe_load(content)
            else:
                document = json.loads(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise SpecLoadError("Failed to parse specification document", source, e)

        if not isinstance(document, dict):
            raise SpecLoadError("Specification document must be a mapping", source)
        return document

    @staticmethod
    def _read(file_path: Path) -> str:
        if not file_path.exists():
            raise SpecLoadError("Specification file not found", str(file_path))
        try:
            with file_path.open("r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise SpecLoadError("Failed to read specification file", str(file_path), e)

    @staticmethod
    def _fetch(url: str, timeout: float) -> str:
        try:
            response = requests.get(url, timeout=timeout)
        except requests.RequestException as e:
            raise SpecLoadError("Failed to fetch specification document", url, e)

        if not response.ok:
            raise SpecLoadError(f"Failed to load Swagger spec: {response.status_code} {response.reason}", url)
        return response.text


def load_spec_document(source: Union[str, Path], timeout: float = 30.0) -> Dict[str, Any]:
    return SpecLoader.load(source, timeout)
