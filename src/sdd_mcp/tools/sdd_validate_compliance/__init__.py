"""
sdd_validate_compliance@1.0.0 - Reglas SDD sobre artefactos TypeScript

Input: project_path y/o files inline + strict_mode
Output: compliant + score + violations + recommendations

Los files inline tienen prioridad sobre los escaneados con la misma ruta.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from sdd_mcp.analysis.compliance import collect_files, validate_compliance
from sdd_mcp.exceptions import InvalidInputException
from sdd_mcp.tools.base import BaseTool

logger = logging.getLogger(__name__)


class ValidateComplianceTool(BaseTool):
    schema_path = Path(__file__).parent / "schema.json"
    family = "compliance"

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        files: dict[str, str] = {}
        project_path = input_data.get("project_path")
        if project_path:
            try:
                files = await asyncio.to_thread(collect_files, project_path)
            except FileNotFoundError as exc:
                raise InvalidInputException(str(exc), details={"project_path": project_path}) from exc
            logger.info("[sdd_validate_compliance] Scanned %d files under %s", len(files), project_path)
        files.update(input_data.get("files") or {})

        result = validate_compliance(files, strict_mode=input_data.get("strict_mode", False))
        if project_path:
            result["project_path"] = project_path
        return result


__all__ = ["ValidateComplianceTool"]
