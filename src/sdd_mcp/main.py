"""
SDD MCP Server - HTTP Application.

FastAPI adapter over the same registry and router the MCP adapter uses.
Tool calls always answer with the ExecutionResult envelope; the HTTP
status code mirrors the error category.
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from sdd_mcp import __version__
from sdd_mcp.config import Settings, get_settings
from sdd_mcp.core.request_router import ExecutionConfig, RequestRouter
from sdd_mcp.core.tool_registry import ToolStatus
from sdd_mcp.exceptions import ErrorCategory, SDDException, ToolNotFoundException
from sdd_mcp.observability import get_metrics_store
from sdd_mcp.schemas import (
    ErrorDetail,
    ErrorResponse,
    ExecutionResult,
    HealthResponse,
    ToolCallRequest,
    ToolSummary,
)
from sdd_mcp.tools import build_router

logger = logging.getLogger("sdd_mcp")

CATEGORY_STATUS = {
    ErrorCategory.INVALID_INPUT: 400,
    ErrorCategory.VALIDATION_ERROR: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.VERSION_NOT_FOUND: 404,
    ErrorCategory.DUPLICATE_REGISTRATION: 409,
    ErrorCategory.PROCESSING_ERROR: 500,
    ErrorCategory.DEPENDENCY_UNAVAILABLE: 503,
    ErrorCategory.TIMEOUT: 504,
}


def result_response(result: ExecutionResult) -> JSONResponse:
    status_code = 200 if result.success else CATEGORY_STATUS.get(result.error.category, 500)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the HTTP application. The registry is created on startup."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.router = build_router(settings)
        logger.info(
            f"Starting SDD MCP HTTP API v{__version__} "
            f"[env={settings.app_env}] "
            f"[features={settings.features.to_dict()}]"
        )
        yield
        logger.info("Shutting down SDD MCP HTTP API")

    app = FastAPI(
        title="SDD MCP Server",
        description="Seam-Driven Development tools over HTTP.",
        version=__version__,
        lifespan=lifespan,
    )

    # =========================================================================
    # Middleware
    # =========================================================================

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID to all requests."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    @app.exception_handler(SDDException)
    async def sdd_exception_handler(request: Request, exc: SDDException):
        """Handle SDD exceptions raised outside the router."""
        logger.warning(f"SDDException: {exc.category.value} - {exc.message}")
        body = ErrorResponse(error=ErrorDetail.from_exception(exc, operation=request.url.path))
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unhandled exception on {request.url.path}")
        logger.error(f"Traceback:\n{traceback.format_exc()}")
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "category": ErrorCategory.PROCESSING_ERROR.value,
                    "message": str(exc) if settings.app_debug else "An unexpected error occurred",
                    "request_id": getattr(request.state, "request_id", None),
                }
            },
        )

    # =========================================================================
    # Endpoints
    # =========================================================================

    def get_router(request: Request) -> RequestRouter:
        return request.app.state.router

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check(request: Request):
        """Health check endpoint. Degraded while any tool is in ERROR."""
        registry = get_router(request).registry
        report = registry.get_status_report()
        degraded = any(e["status"] == ToolStatus.ERROR.value for e in report.values())
        return HealthResponse(
            status="degraded" if degraded else "healthy",
            version=__version__,
            features=settings.features.to_dict(),
            tools_registered=registry.get_tool_count(),
            tools_active=registry.get_active_tool_count(),
            app_env=settings.app_env,
        )

    @app.get("/tools", response_model=list[ToolSummary], tags=["tools"])
    async def list_tools(request: Request, all_versions: bool = False):
        """Registered tools (latest version of each unless all_versions)."""
        return [
            ToolSummary(**tool)
            for tool in get_router(request).list_tools(latest_only=not all_versions)
        ]

    @app.get("/tools/{name}", response_model=ToolSummary, tags=["tools"])
    async def get_tool(request: Request, name: str, version: Optional[str] = None):
        router = get_router(request)
        record = router.registry.lookup(name, version)
        status = router.registry.get_status(record.name, record.version)
        return ToolSummary(
            **record.definition.to_dict(),
            version=record.version,
            status=status.status.value,
            tags=list(record.metadata.tags),
        )

    @app.post("/tools/refresh", tags=["tools"])
    async def refresh_tools(request: Request, force: bool = False):
        """Re-probe tools in ERROR status (force resets them without probing)."""
        return result_response(await get_router(request).refresh(force=force))

    @app.post("/tools/{name}/call", tags=["tools"])
    async def call_tool(request: Request, name: str, body: ToolCallRequest):
        result = await get_router(request).execute(
            name,
            body.arguments,
            ExecutionConfig(version=body.version, timeout_ms=body.timeout_ms),
        )
        return result_response(result)

    @app.get("/metrics", tags=["observability"])
    async def metrics(request: Request):
        router = get_router(request)
        summary = get_metrics_store().get_summary()
        summary["tool_status"] = router.registry.get_status_report()
        summary["abandoned_calls"] = router.abandoned_count
        return summary

    @app.get("/executions", tags=["observability"])
    async def executions(
        request: Request,
        tool: Optional[str] = None,
        limit: int = Query(default=50, ge=1, le=1000),
    ):
        """Most recent routed calls, optionally for one tool."""
        log = get_router(request).execution_log
        if tool:
            if not get_router(request).registry.is_tool_registered(tool):
                raise ToolNotFoundException(tool)
            entries = log.get_by_tool(tool)[-limit:]
        else:
            entries = log.recent(limit)
        return jsonable_encoder([asdict(e) for e in entries])

    @app.get("/", include_in_schema=False)
    async def root():
        return {"message": "SDD MCP Server", "docs": "/docs"}

    return app


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.app_log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def run() -> None:
    """Serve the HTTP application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)


configure_logging(get_settings())
app = create_app()
