"""
analyze_data_flows@2.0.0 - Análisis de flujos, cuellos de botella y optimizaciones

Input: seam_definitions + performance_requirements
       + include_optimizations + analyze_bottlenecks
Output: flows + transformations + bottlenecks + optimizations + metadata
"""

from pathlib import Path
from typing import Any

from sdd_mcp.analysis.flows import analyze_data_flows
from sdd_mcp.tools.base import BaseTool


class AnalyzeDataFlowsTool(BaseTool):
    schema_path = Path(__file__).parent / "schema.json"
    family = "analysis"

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        return analyze_data_flows(
            input_data["seam_definitions"],
            performance_requirements=input_data.get("performance_requirements"),
            include_optimizations=input_data.get("include_optimizations", True),
            analyze_bottlenecks=input_data.get("analyze_bottlenecks", True),
        )


__all__ = ["AnalyzeDataFlowsTool"]
