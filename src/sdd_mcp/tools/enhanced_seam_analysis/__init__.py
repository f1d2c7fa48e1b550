"""
enhanced_seam_analysis@2.0.0 - Seams con confianza y concerns transversales

Input: requirements_text + design_notes + analysis_depth + focus_areas
Output: identified_seams + pattern_matches + component_interactions
        + cross_cutting_concerns + data_flows + analysis_metadata
"""

from pathlib import Path
from typing import Any

from sdd_mcp.analysis.enhanced import enhanced_seam_analysis
from sdd_mcp.tools.base import BaseTool


class EnhancedSeamAnalysisTool(BaseTool):
    schema_path = Path(__file__).parent / "schema.json"
    family = "analysis"

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        return enhanced_seam_analysis(
            input_data["requirements_text"],
            design_notes=input_data.get("design_notes"),
            analysis_depth=input_data.get("analysis_depth", "detailed"),
            focus_areas=input_data.get("focus_areas"),
        )


__all__ = ["EnhancedSeamAnalysisTool"]
