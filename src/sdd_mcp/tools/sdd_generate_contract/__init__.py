"""
sdd_generate_contract@1.0.0 - Scaffolding de contrato para un seam

Input: seam_definition (+ project_name opcional)
Output: contract_code + stub_code + test_code + checklist_markdown

El render lo hace el TemplateProcessor; un template ausente o roto hace
fallar la llamada.
"""

from pathlib import Path
from typing import Any, Optional

from sdd_mcp.core.template_processor import TemplateProcessor
from sdd_mcp.schemas import SeamDefinition
from sdd_mcp.tools.base import BaseTool


class GenerateContractTool(BaseTool):
    """Renderiza los cuatro templates SDD de un seam."""

    schema_path = Path(__file__).parent / "schema.json"
    family = "generation"

    def __init__(self, processor: Optional[TemplateProcessor] = None):
        self._processor = processor or TemplateProcessor()

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        seam = SeamDefinition(**input_data["seam_definition"])
        output = self._processor.generate_from_seam(seam)
        result = output.to_dict()
        result.update({
            "component_name": output.context["component_name"],
            "priority": output.context["priority"],
            "estimated_effort": output.context["estimated_effort"],
            "project_name": input_data.get("project_name"),
        })
        return result


__all__ = ["GenerateContractTool"]
