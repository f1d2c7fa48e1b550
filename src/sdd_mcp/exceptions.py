"""
SDD MCP Server - Custom Exceptions.

Centralized exception handling with standardized error categories.
Every exception carries the category string surfaced to callers.
"""

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories surfaced to callers (strings, not exception types)."""

    INVALID_INPUT = "InvalidInput"
    NOT_FOUND = "NotFound"
    VERSION_NOT_FOUND = "VersionNotFound"
    DEPENDENCY_UNAVAILABLE = "DependencyUnavailable"
    VALIDATION_ERROR = "ValidationError"
    PROCESSING_ERROR = "ProcessingError"
    DUPLICATE_REGISTRATION = "DuplicateRegistration"
    TIMEOUT = "Timeout"


class SDDException(Exception):
    """Base exception for the SDD MCP server."""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.category = category
        self.code = category.value
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class InvalidInputException(SDDException):
    """Raised when a request is structurally malformed before any lookup."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            category=ErrorCategory.INVALID_INPUT,
            message=message,
            status_code=400,
            details=details,
        )


class ToolNotFoundException(SDDException):
    """Raised when no tool is registered under a name."""

    def __init__(self, tool_name: str):
        super().__init__(
            category=ErrorCategory.NOT_FOUND,
            message=f"Tool '{tool_name}' not found.",
            status_code=404,
            details={"tool_name": tool_name},
        )


class VersionNotFoundException(SDDException):
    """Raised when a tool exists but the requested version does not."""

    def __init__(self, tool_name: str, version: str, available: list[str] | None = None):
        super().__init__(
            category=ErrorCategory.VERSION_NOT_FOUND,
            message=f"Tool '{tool_name}' version '{version}' not found.",
            status_code=404,
            details={
                "tool_name": tool_name,
                "version": version,
                "available_versions": available or [],
            },
        )


class DuplicateRegistrationException(SDDException):
    """Raised when a (name, version) pair is registered twice."""

    def __init__(self, tool_name: str, version: str):
        super().__init__(
            category=ErrorCategory.DUPLICATE_REGISTRATION,
            message=f"Tool '{tool_name}' version '{version}' is already registered.",
            status_code=409,
            details={"tool_name": tool_name, "version": version},
        )


class DependencyUnavailableException(SDDException):
    """Raised when a tool exists but is marked non-operational."""

    def __init__(self, tool_name: str, version: str, status: str, reason: str | None = None):
        details = {"tool_name": tool_name, "version": version, "status": status}
        if reason:
            details["reason"] = reason
        super().__init__(
            category=ErrorCategory.DEPENDENCY_UNAVAILABLE,
            message=f"Tool '{tool_name}' is not active (status: {status}).",
            status_code=503,
            details=details,
        )


class ValidationException(SDDException):
    """Raised for argument validation errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(
            category=ErrorCategory.VALIDATION_ERROR,
            message=message,
            status_code=400,
            details={"errors": errors or []},
        )


class ProcessingException(SDDException):
    """Raised when a tool handler fails."""

    def __init__(self, tool_name: str, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            category=ErrorCategory.PROCESSING_ERROR,
            message=f"Error executing tool '{tool_name}': {reason}",
            status_code=500,
            details=details,
        )


class ToolTimeoutException(SDDException):
    """Raised when a handler exceeds its timeout."""

    def __init__(self, tool_name: str, timeout_ms: int):
        super().__init__(
            category=ErrorCategory.TIMEOUT,
            message=f"Tool '{tool_name}' exceeded timeout of {timeout_ms}ms.",
            status_code=504,
            details={"tool_name": tool_name, "timeout_ms": timeout_ms},
        )
