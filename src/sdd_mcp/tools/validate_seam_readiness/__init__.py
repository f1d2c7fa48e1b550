"""
validate_seam_readiness@2.0.0 - Chequeo de readiness antes de generar contratos

Input: seam_definitions + validation_level + strict_mode + check_dependencies
Output: score e issues por seam + overall_score + recommendations
"""

from pathlib import Path
from typing import Any

from sdd_mcp.analysis.readiness import validate_seam_readiness
from sdd_mcp.tools.base import BaseTool


class ValidateSeamReadinessTool(BaseTool):
    schema_path = Path(__file__).parent / "schema.json"
    family = "analysis"

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        return validate_seam_readiness(
            input_data["seam_definitions"],
            validation_level=input_data.get("validation_level", "comprehensive"),
            strict_mode=input_data.get("strict_mode", False),
            check_dependencies=input_data.get("check_dependencies", True),
        )


__all__ = ["ValidateSeamReadinessTool"]
