import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.exceptions import CoverageConfigError

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Packages whose loggers are configured for a coverage run
PROJECT_LOGGERS = ("catalog", "core", "router", "report", "cli")

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


class CoverageOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    swagger_path: Optional[str] = Field(None, description="Path or URL of the OpenAPI/Swagger document")
    base_url: Optional[str] = Field(None, description="Base URL of the API under test")
    base_path: Optional[str] = Field(None, description="Prefix applied to catalog and request paths")
    output_dir: str = Field("coverage", description="Directory for coverage reports")
    title: str = Field("API Coverage Report", description="Report title")
    debug: bool = False
    log_level: str = "info"
    log_file: Optional[str] = None
    generate_report: bool = True
    match_path_templates: bool = True
    observer: Optional[Callable[[str, Dict[str, Any]], None]] = Field(
        None, exclude=True, description="Callback receiving diagnostic events"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = str(v).lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {v}")
        return level

    @field_validator("base_path")
    @classmethod
    def validate_base_path(cls, v):
        if v is None or v.strip() in ("", "/"):
            return None
        return "/" + v.strip().strip("/")


def load_options(file_path: Union[str, Path], **overrides: Any) -> CoverageOptions:
    file_path = Path(file_path)
    if not file_path.exists():
        raise CoverageConfigError(f"Options file not found: {file_path}")

    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise CoverageConfigError(f"Failed to parse options file {file_path}: {e}")

    if not isinstance(data, dict):
        raise CoverageConfigError(f"Options file {file_path} must contain a mapping")

    return build_options({**data, **overrides})


def build_options(options: Union[CoverageOptions, Dict[str, Any], None] = None) -> CoverageOptions:
    if isinstance(options, CoverageOptions):
        return options
    try:
        return CoverageOptions.model_validate(options or {})
    except ValidationError as e:
        raise CoverageConfigError(f"Invalid coverage options:\n{e}")


def configure_logging(level: str = "info", log_file: Optional[str] = None, debug: bool = False) -> None:
    """Attach console (debug only) and file handlers to the project loggers."""
    numeric_level = logging.DEBUG if debug else LOG_LEVELS.get(str(level).lower(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers = []
    if debug:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        handlers.append(console)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in PROJECT_LOGGERS:
        project_logger = logging.getLogger(name)
        project_logger.setLevel(numeric_level)
        for handler in list(project_logger.handlers):
            if getattr(handler, "_coverage_handler", False):
                project_logger.removeHandler(handler)
                handler.close()
        for handler in handlers:
            handler._coverage_handler = True
            project_logger.addHandler(handler)
