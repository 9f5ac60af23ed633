from typing import Any, Optional


class CoverageError(Exception):
    """Base class for errors raised by the coverage tracker."""
    pass


class SpecFormatError(CoverageError):
    """Raised when a specification document cannot be turned into an endpoint catalog."""

    def __init__(self, message: str, location: Optional[str] = None):
        self.message = message
        self.location = location
        full_message = message
        if location:
            full_message += f" [at: {location}]"
        super().__init__(full_message)


class SpecLoadError(CoverageError):
    """Raised when a specification document fails to load."""

    def __init__(self, message: str, file_path: Optional[str] = None, details: Optional[Any] = None):
        self.message = message
        self.file_path = file_path
        self.details = details
        full_message = f"{message}"
        if file_path:
            full_message += f" [File: {file_path}]"
        if details:
            full_message += f"\nDetails:\n{details}"
        super().__init__(full_message)


class CoverageConfigError(CoverageError):
    """Raised when coverage options are missing or invalid."""
    pass
