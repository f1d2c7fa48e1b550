"""
sdd_create_stub@1.0.0 - Clase stub a partir de una interfaz

Input: interface_name + methods (+ data_structures, namespace)
Output: stub_code + file_path_suggestion + contract_compliance

Cada método generado lanza NotImplementedError y lleva un comentario
Blueprint; el código se revisa contra las reglas de compliance de stubs
antes de retornarlo.
"""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sdd_mcp.analysis.compliance import PENALTY, stub_must_throw, stub_requires_blueprint
from sdd_mcp.core.template_processor import TemplateProcessor
from sdd_mcp.tools.base import BaseTool

TEMPLATE_FILE = "interface-stub.ts.j2"


def implementation_class_name(interface_name: str) -> str:
    """'IUserService' -> 'UserService', 'UserService' -> 'UserServiceImpl'."""
    if len(interface_name) > 1 and interface_name[0] == "I" and interface_name[1].isupper():
        return interface_name[1:]
    return f"{interface_name}Impl"


def kebab_case(name: str) -> str:
    return re.sub(r"([A-Z])", r"-\1", name).lower().lstrip("-")


def implementation_effort(methods: list[dict], data_structures: list[dict]) -> str:
    complex_methods = sum(1 for m in methods if len(m.get("params", [])) > 3)
    if len(methods) <= 3 and not data_structures and complex_methods == 0:
        return "low"
    if len(methods) <= 8 and complex_methods <= 2:
        return "medium"
    return "high"


class CreateStubTool(BaseTool):
    """Renderiza una clase stub que implementa la interfaz dada."""

    schema_path = Path(__file__).parent / "schema.json"
    family = "generation"

    def __init__(self, processor: Optional[TemplateProcessor] = None):
        self._processor = processor or TemplateProcessor()

    async def execute(self, input_data: dict[str, Any]) -> dict[str, Any]:
        interface_name = input_data["interface_name"]
        class_name = implementation_class_name(interface_name)
        data_structures = input_data.get("data_structures", [])
        namespace = input_data.get("namespace")

        methods = [
            {
                "name": m["name"],
                "signature": ", ".join(f"{p['name']}: {p['type']}" for p in m.get("params", [])),
                "return_type": m.get("return_type") or "void",
                "blueprint": m.get("description") or f"Implement {m['name']}",
            }
            for m in input_data["methods"]
        ]

        code = self._processor.render(TEMPLATE_FILE, {
            "interface_name": interface_name,
            "class_name": class_name,
            "namespace": namespace,
            "contract_import": "../contracts",
            "data_structures": data_structures,
            "methods": methods,
        })

        file_path = f"src/{namespace + '/' if namespace else ''}{kebab_case(interface_name)}.stub.ts"
        lines = code.splitlines()
        violations = stub_must_throw(file_path, lines) + stub_requires_blueprint(file_path, lines)

        return {
            "stub_code": code,
            "file_path_suggestion": file_path,
            "blueprint_comments_count": sum(1 for line in lines if "// Blueprint:" in line),
            "contract_compliance": {
                "has_contract_result_pattern": "ContractResult<" in code,
                "has_not_implemented_errors": not any(
                    v.rule_id == "stub-must-throw-notimplementederror" for v in violations
                ),
                "has_blueprint_comments": not any(
                    v.rule_id == "stub-requires-blueprint-comment" for v in violations
                ),
                "compliance_score": max(100 - sum(PENALTY[v.severity] for v in violations), 0),
            },
            "generation_metadata": {
                "template_used": TEMPLATE_FILE,
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "code_lines": len(lines),
                "estimated_implementation_effort": implementation_effort(
                    input_data["methods"], data_structures
                ),
            },
        }


__all__ = ["CreateStubTool", "implementation_class_name", "kebab_case"]
