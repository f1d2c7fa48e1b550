"""
SDD MCP Server - Common Schemas.

Shared Pydantic models used by the core and by both outer adapters.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sdd_mcp.exceptions import ErrorCategory, SDDException


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Execution Envelope
# =============================================================================


class ErrorDetail(BaseModel):
    """Error detail carried by a failed ExecutionResult."""

    category: ErrorCategory = Field(..., description="Machine-checkable error category")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional context")
    operation: str | None = Field(default=None, description="Operation that failed")
    tool_name: str | None = Field(default=None, description="Tool involved, if any")
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_exception(
        cls,
        exc: SDDException,
        operation: str | None = None,
        tool_name: str | None = None,
    ) -> "ErrorDetail":
        return cls(
            category=exc.category,
            message=exc.message,
            details=exc.details,
            operation=operation,
            tool_name=tool_name,
        )


class ExecutionMetadata(BaseModel):
    """Diagnostic context attached to every result."""

    model_config = ConfigDict(extra="allow")

    operation: str | None = None
    tool_name: str | None = None
    version: str | None = None
    router_id: str | None = None
    request_id: str | None = None
    processing_time_ms: float | None = None
    warnings: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class ExecutionResult(BaseModel):
    """
    Uniform success/data/error envelope (the ContractResult pattern).

    data and error are mutually exclusive: exactly one side is populated
    according to success.
    """

    success: bool
    data: Any = None
    error: ErrorDetail | None = None
    metadata: ExecutionMetadata = Field(default_factory=ExecutionMetadata)

    @model_validator(mode="after")
    def _check_exclusive(self) -> "ExecutionResult":
        if self.success and self.error is not None:
            raise ValueError("successful result must not carry an error")
        if not self.success:
            if self.error is None:
                raise ValueError("failed result must carry an error")
            if self.data is not None:
                raise ValueError("failed result must not carry data")
        return self

    @classmethod
    def ok(cls, data: Any = None, **metadata: Any) -> "ExecutionResult":
        return cls(success=True, data=data, metadata=ExecutionMetadata(**metadata))

    @classmethod
    def fail(
        cls,
        exc: SDDException,
        operation: str | None = None,
        tool_name: str | None = None,
        **metadata: Any,
    ) -> "ExecutionResult":
        return cls(
            success=False,
            error=ErrorDetail.from_exception(exc, operation=operation, tool_name=tool_name),
            metadata=ExecutionMetadata(operation=operation, tool_name=tool_name, **metadata),
        )


# =============================================================================
# Seam Models
# =============================================================================


class ComponentDefinition(BaseModel):
    """A component detected in requirements text."""

    name: str
    responsibility: str = ""
    kind: str = "agent"


class SeamDefinition(BaseModel):
    """A boundary between components where a contract should be defined."""

    name: str = Field(..., min_length=1)
    participants: list[str] = Field(default_factory=list)
    data_flow: Literal["IN", "OUT", "BOTH"] = "BOTH"
    purpose: str = ""
    contract_name: str | None = None


# =============================================================================
# Error Responses
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard HTTP error response."""

    error: ErrorDetail


# =============================================================================
# HTTP Adapter
# =============================================================================


class ToolCallRequest(BaseModel):
    """Body of POST /tools/{name}/call."""

    arguments: Any = Field(default_factory=dict)
    version: str | None = None
    timeout_ms: int | None = Field(default=None, ge=0)


class ToolSummary(BaseModel):
    """Tool listing entry."""

    name: str
    version: str
    description: str
    status: str
    input_schema: dict[str, Any]
    output_schema: dict[str, Any]
    tags: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., pattern="^(healthy|degraded)$")
    version: str
    features: dict[str, bool]
    tools_registered: int
    tools_active: int
    app_env: str | None = None
