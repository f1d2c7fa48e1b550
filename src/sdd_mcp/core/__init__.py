"""
SDD Core - Registro, validación y enrutamiento de tools

El core no sabe nada de seams, templates ni diagramas; eso lo hacen las tools.

Componentes:
- tool_registry: Registro central de tools con nombre, versión y estado
- schema_validator: Validación de argumentos contra JSON Schemas
- request_router: Punto único de entrada para llamadas (lookup, validar, invocar)
- execution_log: Registro de cada llamada enrutada
- template_processor: Render Jinja2 usado por las tools de generación
"""

from sdd_mcp.core.request_router import ExecutionConfig, RequestRouter
from sdd_mcp.core.schema_validator import SchemaValidator, ValidationResult
from sdd_mcp.core.tool_registry import ToolRegistry, ToolStatus

__all__ = [
    "ExecutionConfig",
    "RequestRouter",
    "SchemaValidator",
    "ToolRegistry",
    "ToolStatus",
    "ValidationResult",
]
