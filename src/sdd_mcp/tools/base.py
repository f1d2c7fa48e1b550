"""
SDD Tools - Handlers deterministas registrados en el ToolRegistry

Las tools:
- Son la ÚNICA forma de ejecutar lógica de análisis y generación
- Son deterministas para un input dado
- Declaran schemas estrictos (input/output) en un schema.json junto a ellas
- Son versionadas
- Son testeables en aislamiento

El router valida el input antes de correr la tool, así que execute()
puede asumir que el input cumple su input_schema.
"""

import json
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import Any

from sdd_mcp.core.tool_registry import ToolDefinition, ToolMetadata, ToolRecord


@lru_cache(maxsize=None)
def load_schema(path: str) -> dict[str, Any]:
    """Parsed schema.json (name, version, description, input_schema, output_schema, metadata)."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class BaseTool(ABC):
    """
    Clase base para todas las tools.

    Cada tool debe:
    - Declarar schema_path (su schema.json)
    - Implementar execute()
    - Declarar su family (decide si se habilita al arrancar)
    """

    schema_path: Path
    family: str = "analysis"

    @property
    def schema(self) -> dict[str, Any]:
        return load_schema(str(self.schema_path))

    @property
    def definition(self) -> ToolDefinition:
        schema = self.schema
        return ToolDefinition(
            name=schema["name"],
            description=schema["description"],
            input_schema=schema["input_schema"],
            output_schema=schema["output_schema"],
        )

    @property
    def metadata(self) -> ToolMetadata:
        schema = self.schema
        meta = schema.get("metadata", {})
        return ToolMetadata(
            name=schema["name"],
            version=schema["version"],
            dependencies=tuple(meta.get("dependencies", ())),
            author=meta.get("author"),
            tags=tuple(meta.get("tags", ())),
            probe_args=schema.get("probe_args"),
        )

    @abstractmethod
    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        """
        Ejecuta la tool.

        Args:
            input_data: Input ya validado contra input_schema

        Returns:
            Output que cumple output_schema
        """

    def to_record(self) -> ToolRecord:
        return ToolRecord(definition=self.definition, metadata=self.metadata, handler=self.execute)


__all__ = ["BaseTool", "ToolDefinition", "load_schema"]
