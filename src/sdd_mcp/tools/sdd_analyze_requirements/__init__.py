"""
sdd_analyze_requirements@1.0.0 - Componentes y seams a partir del PRD

Responsabilidad:
- Extraer componentes por menciones de keywords
- Identificar seams entre pares de componentes
- Mapear flujos de datos y un orden de implementación por fases
- NO llamar a un LLM (solo heurísticas)

Input: prd_text + project_name + design_notes
Output: components + seams + seam_definitions + data_flows + recommendations
"""

import logging
from pathlib import Path
from typing import Any

from sdd_mcp.analysis.requirements import (
    analyze_requirements,
    extract_components,
    identify_seams,
)
from sdd_mcp.tools.base import BaseTool

logger = logging.getLogger(__name__)


class AnalyzeRequirementsTool(BaseTool):
    """Analizador heurístico de requerimientos."""

    schema_path = Path(__file__).parent / "schema.json"
    family = "analysis"

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        text = input_data["prd_text"]
        if input_data.get("design_notes"):
            text = f"{text}\n{input_data['design_notes']}"

        analysis = analyze_requirements(text)
        seams = identify_seams(extract_components(text), text)
        analysis["seam_definitions"] = [
            s.to_seam_definition().model_dump() for s in seams
        ]
        analysis["project_name"] = input_data.get("project_name")

        logger.info(
            "[sdd_analyze_requirements] %d components, %d seams",
            len(analysis["components"]),
            len(analysis["seams"]),
        )
        return analysis


__all__ = ["AnalyzeRequirementsTool"]
