"""
sdd_orchestrate_full_workflow@1.0.0 - Del PRD a scaffolding listo para implementar

Etapas:
1. analyze_requirements   (sdd_analyze_requirements)
2. contract_generation:*  (sdd_generate_contract, una vez por seam)

Las sub-tools se ejecutan a través del router al que está ligada esta
tool, así que estado, validación, métricas y log aplican igual que en una
llamada directa. Si falla el análisis, falla todo el workflow; las etapas
de generación fallidas se reportan y bajan el readiness score.
"""

import logging
import time
from pathlib import Path
from typing import Any

from sdd_mcp.core.request_router import RequestRouter
from sdd_mcp.exceptions import ProcessingException
from sdd_mcp.schemas import ExecutionResult
from sdd_mcp.tools.base import BaseTool

logger = logging.getLogger(__name__)

TOOL_NAME = "sdd_orchestrate_full_workflow"


class OrchestrateWorkflowTool(BaseTool):
    """Corre las tools de análisis y generación de punta a punta."""

    schema_path = Path(__file__).parent / "schema.json"
    family = "workflow"

    def __init__(self, router: RequestRouter):
        self._router = router

    async def _run(self, name: str, args: dict[str, Any]) -> tuple[ExecutionResult, float]:
        start = time.perf_counter()
        result = await self._router.execute(name, args)
        return result, round((time.perf_counter() - start) * 1000, 2)

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any] | ExecutionResult:
        start = time.perf_counter()
        project_name = input_data["project_name"]
        stages: list[dict[str, Any]] = []

        analysis, duration = await self._run("sdd_analyze_requirements", {
            "prd_text": input_data["prd_text"],
            "project_name": project_name,
            "design_notes": input_data.get("design_notes", ""),
        })
        stages.append({
            "stage": "analyze_requirements",
            "success": analysis.success,
            "error": None if analysis.success else analysis.error.message,
            "duration_ms": duration,
        })
        if not analysis.success:
            return ExecutionResult.fail(
                ProcessingException(
                    TOOL_NAME,
                    f"Requirement analysis failed: {analysis.error.message}",
                    details={"stage": "analyze_requirements", "workflow_stages": stages},
                ),
                operation="execute",
                tool_name=TOOL_NAME,
            )

        seam_definitions = analysis.data.get("seam_definitions", [])
        structure: dict[str, list[str]] = {"contracts": [], "stubs": [], "tests": [], "documentation": []}
        files: dict[str, str] = {}
        generated = 0

        for seam in seam_definitions:
            result, duration = await self._run("sdd_generate_contract", {
                "seam_definition": seam,
                "project_name": project_name,
            })
            stages.append({
                "stage": f"contract_generation:{seam['name']}",
                "success": result.success,
                "error": None if result.success else result.error.message,
                "duration_ms": duration,
            })
            if not result.success:
                continue
            generated += 1
            stem = result.data["file_name"].removesuffix(".contract.ts")
            paths = {
                "contracts": f"src/contracts/{stem}.contract.ts",
                "stubs": f"src/agents/{stem}.agent.ts",
                "tests": f"tests/{stem}.integration.test.ts",
                "documentation": f"docs/{stem}.checklist.md",
            }
            sources = {
                "contracts": result.data["contract_code"],
                "stubs": result.data["stub_code"],
                "tests": result.data["test_code"],
                "documentation": result.data.get("checklist_markdown", ""),
            }
            for kind, path in paths.items():
                structure[kind].append(path)
                files[path] = sources[kind]

        score = round(generated / len(seam_definitions) * 100, 1) if seam_definitions else 0.0
        ready = bool(seam_definitions) and generated == len(seam_definitions)
        logger.info(
            "[%s] %s: %d/%d seams generated",
            TOOL_NAME, project_name, generated, len(seam_definitions),
        )

        return {
            "project_name": project_name,
            "project_structure": structure,
            "workflow_stages": stages,
            "seam_definitions": seam_definitions,
            "files": files,
            "total_duration_ms": round((time.perf_counter() - start) * 1000, 2),
            "readiness_score": score,
            "ready_for_implementation": ready,
        }


__all__ = ["OrchestrateWorkflowTool"]
