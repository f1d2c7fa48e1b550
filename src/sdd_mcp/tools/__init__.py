"""
Set de tools SDD y su cableado.

build_router() es la raíz de composición que comparten ambos adapters:
crea el registry y su router, y luego registra cada tool. El estado
inicial refleja los feature flags y la disponibilidad de templates.
"""

import logging
from typing import Optional

from sdd_mcp.config import Settings, get_settings
from sdd_mcp.core.request_router import RequestRouter
from sdd_mcp.core.template_processor import TemplateProcessor
from sdd_mcp.core.tool_registry import ToolRegistry, ToolStatus
from sdd_mcp.schemas import ExecutionResult
from sdd_mcp.tools.analyze_data_flows import AnalyzeDataFlowsTool
from sdd_mcp.tools.base import BaseTool
from sdd_mcp.tools.enhanced_seam_analysis import EnhancedSeamAnalysisTool
from sdd_mcp.tools.generate_interaction_matrix import GenerateInteractionMatrixTool
from sdd_mcp.tools.sdd_analyze_requirements import AnalyzeRequirementsTool
from sdd_mcp.tools.sdd_create_stub import CreateStubTool
from sdd_mcp.tools.sdd_generate_contract import GenerateContractTool
from sdd_mcp.tools.sdd_orchestrate_full_workflow import OrchestrateWorkflowTool
from sdd_mcp.tools.sdd_validate_compliance import ValidateComplianceTool
from sdd_mcp.tools.sdd_visualize_architecture import VisualizeArchitectureTool
from sdd_mcp.tools.validate_seam_readiness import ValidateSeamReadinessTool

logger = logging.getLogger(__name__)


def default_tools(router: RequestRouter, processor: TemplateProcessor) -> list[BaseTool]:
    return [
        AnalyzeRequirementsTool(),
        GenerateContractTool(processor),
        CreateStubTool(processor),
        OrchestrateWorkflowTool(router),
        VisualizeArchitectureTool(),
        ValidateComplianceTool(),
        EnhancedSeamAnalysisTool(),
        GenerateInteractionMatrixTool(),
        AnalyzeDataFlowsTool(),
        ValidateSeamReadinessTool(),
    ]


def initial_status(
    tool: BaseTool,
    settings: Settings,
    missing_templates: list[str],
) -> tuple[ToolStatus, Optional[str]]:
    """
    Estado inicial de una tool.

    Family deshabilitada -> INACTIVE
    Tool de generación sin templates -> ERROR
    """
    if not settings.is_feature_enabled(tool.family):
        return ToolStatus.INACTIVE, f"Feature '{tool.family}' is disabled"
    if tool.family == "generation" and missing_templates:
        return ToolStatus.ERROR, f"Missing templates: {', '.join(missing_templates)}"
    return ToolStatus.ACTIVE, None


def register_default_tools(
    router: RequestRouter,
    settings: Optional[Settings] = None,
    processor: Optional[TemplateProcessor] = None,
) -> list[ExecutionResult]:
    settings = settings or get_settings()
    processor = processor or TemplateProcessor(settings)
    missing = processor.missing_templates()
    if missing:
        logger.warning("Templates missing from %s: %s", settings.templates.directory, missing)

    registry = router.registry
    results = []
    for tool in default_tools(router, processor):
        status, reason = initial_status(tool, settings, missing)
        results.append(registry.register_tool(tool.to_record(), status=status, reason=reason))
    return results


def build_router(
    settings: Optional[Settings] = None,
    registry: Optional[ToolRegistry] = None,
    **router_kwargs,
) -> RequestRouter:
    """
    Router nuevo sobre un registry con todas las tools SDD.

    Las tools que llaman a otras tools (el workflow) quedan ligadas a este
    router: sus sub-llamadas comparten timeout, métricas y execution log.
    """
    settings = settings or get_settings()
    registry = registry if registry is not None else ToolRegistry()
    router_kwargs.setdefault("default_timeout_ms", settings.default_timeout_ms)
    router = RequestRouter(registry, **router_kwargs)
    register_default_tools(router, settings)
    logger.info(
        "Tool registry ready: %d registered, %d active",
        registry.get_tool_count(),
        registry.get_active_tool_count(),
    )
    return router


__all__ = [
    "BaseTool",
    "build_router",
    "default_tools",
    "initial_status",
    "register_default_tools",
]
