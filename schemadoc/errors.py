"""Error types for schemadoc."""

from typing import Optional, Dict, Any


class SchemaDocError(Exception):
    """Base exception for schemadoc errors."""

    def __init__(self, message: str, code: str = "SCHEMADOC_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a dictionary for structured output."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class SchemaSourceError(SchemaDocError):
    """A schema source file is missing, unreadable, or not valid Python.

    Raised by the parsers; never recovered locally, since a broken file
    means the caller pointed the run at the wrong input.
    """

    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
        details: Dict[str, Any] = {}
        if path is not None:
            details["path"] = path
        if line is not None:
            details["line"] = line
        super().__init__(message, code="SCHEMA_SOURCE_ERROR", details=details)
        self.path = path
        self.line = line

    def get_formatted_location(self) -> str:
        """Return a location string like 'schema.py, line 12'."""
        if not self.path:
            return ""
        if self.line is None:
            return self.path
        return f"{self.path}, line {self.line}"


class SchemaLoadError(SchemaDocError):
    """Executing a schema module failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="SCHEMA_LOAD_ERROR", details=details)


class OutputError(SchemaDocError):
    """Writing generated output failed or was refused."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="OUTPUT_ERROR", details=details)
