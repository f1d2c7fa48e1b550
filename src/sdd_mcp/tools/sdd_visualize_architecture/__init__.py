"""
sdd_visualize_architecture@1.0.0 - Diagramas de seams con estado de implementación

Input: seams + project_name + diagram_type + include_metrics + output_format
Output: diagrams + status_summary + metrics + recommendations
"""

from pathlib import Path
from typing import Any

from sdd_mcp.analysis.visualize import visualize_architecture
from sdd_mcp.tools.base import BaseTool


class VisualizeArchitectureTool(BaseTool):
    schema_path = Path(__file__).parent / "schema.json"
    family = "visualization"

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        return visualize_architecture(
            seams=input_data["seams"],
            project_name=input_data["project_name"],
            diagram_type=input_data.get("diagram_type", "flowchart"),
            include_metrics=input_data.get("include_metrics", False),
            output_format=input_data.get("output_format", "mermaid"),
        )


__all__ = ["VisualizeArchitectureTool"]
