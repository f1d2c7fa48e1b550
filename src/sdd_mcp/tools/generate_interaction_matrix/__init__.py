"""
generate_interaction_matrix@2.0.0 - Matriz de interacción entre componentes

Input: components + seam_definitions + analysis_scope + include_metrics
Output: matrix + interactions + critical_paths + circular_dependencies
"""

from pathlib import Path
from typing import Any

from sdd_mcp.analysis.matrix import generate_interaction_matrix
from sdd_mcp.exceptions import InvalidInputException
from sdd_mcp.tools.base import BaseTool


class GenerateInteractionMatrixTool(BaseTool):
    schema_path = Path(__file__).parent / "schema.json"
    family = "analysis"

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        components = input_data["components"]
        names = [c["name"] for c in components]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise InvalidInputException(
                "Component names must be unique.",
                details={"duplicates": duplicates},
            )
        return generate_interaction_matrix(
            components,
            seam_definitions=input_data.get("seam_definitions"),
            analysis_scope=input_data.get("analysis_scope", "full"),
            include_metrics=input_data.get("include_metrics", False),
        )


__all__ = ["GenerateInteractionMatrixTool"]
