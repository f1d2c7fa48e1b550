"""
Template Processor - Render Jinja2 del scaffolding SDD

Responsabilidad:
- Construir el contexto de template a partir de un SeamDefinition
- Renderizar templates de contrato, stub, test de integración y checklist
- Renderizar templates ad-hoc (por nombre de archivo o string)
- NO escribir archivos
- NO garantizar que el output sea sintácticamente válido

Los templates se buscan vía Settings.get_template_path(), así que el
directorio y los nombres de archivo son configurables.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jinja2

from sdd_mcp.config import Settings, get_settings
from sdd_mcp.schemas import SeamDefinition

logger = logging.getLogger(__name__)

ORCHESTRATOR = "OrchestratorAgent"

TEMPLATE_TYPES = ("contract", "stub", "test", "checklist")


# =============================================================================
# Helpers de nombres
# =============================================================================


def to_pascal_case(value: str) -> str:
    words = re.findall(r"[A-Za-z0-9]+", value)
    return "".join(w[:1].upper() + w[1:] for w in words)


def to_camel_case(value: str) -> str:
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def component_base_name(seam_name: str) -> str:
    """'User-Auth Seam' -> 'UserAuth'."""
    name = re.sub(r"[-\s]", "", seam_name).replace("Seam", "", 1)
    return name[:1].upper() + name[1:]


def method_name_from_purpose(purpose: str) -> str:
    cleaned = re.sub(r"[^a-z0-9\s]", "", purpose.lower())
    words = cleaned.split()
    if not words:
        return "execute"
    return words[0] + "".join(w[:1].upper() + w[1:] for w in words[1:])


# =============================================================================
# Heurísticas de propósito
# =============================================================================


def fields_from_purpose(purpose: str) -> tuple[list[dict], list[dict]]:
    """Input and output fields suggested by keywords in the purpose."""
    text = purpose.lower()
    inputs = [{"name": "data", "type": "Record<string, any>", "description": "Input data for processing"}]
    outputs = [
        {"name": "result", "type": "any", "description": "Processing result"},
        {"name": "processedAt", "type": "Date", "description": "Processing timestamp"},
    ]

    if "user" in text or "profile" in text:
        inputs.append({"name": "userId", "type": "string", "description": "User identifier"})
        outputs.append({"name": "userProfile", "type": "UserProfile", "description": "User profile data"})

    if "data" in text or "store" in text or "save" in text:
        inputs.append({"name": "payload", "type": "T", "description": "Data payload to store"})
        outputs.append({"name": "id", "type": "string", "description": "Generated ID"})

    if "notification" in text or "message" in text:
        inputs.append({"name": "message", "type": "string", "description": "Message content"})
        outputs.append({"name": "messageId", "type": "string", "description": "Unique message identifier"})

    return inputs, outputs


def estimate_effort(seam: SeamDefinition) -> str:
    hours = 4
    purpose = seam.purpose.lower()
    if len(seam.participants) > 2:
        hours += 2
    if "complex" in purpose or "advanced" in purpose:
        hours += 3
    if seam.data_flow == "BOTH":
        hours += 1
    return f"{hours}-{hours + 2} hours"


def determine_priority(seam: SeamDefinition) -> str:
    purpose = seam.purpose.lower()
    if ORCHESTRATOR in seam.participants:
        return "CRITICAL"
    if "auth" in purpose or "security" in purpose:
        return "CRITICAL"
    if len(seam.participants) == 2:
        return "QUICK_WIN"
    return "HARD_WORK"


def extract_dependencies(seam: SeamDefinition) -> list[str]:
    purpose = seam.purpose.lower()
    deps = ["vitest"]
    if "database" in purpose or "data" in purpose:
        deps.append("@types/node")
    if "http" in purpose or "api" in purpose:
        deps.extend(["axios", "@types/axios"])
    return deps


def validation_rules(seam: SeamDefinition) -> list[str]:
    purpose = seam.purpose.lower()
    rules = ["Required fields present", "Data types correct"]
    if "user" in purpose:
        rules.extend(["Valid user ID format", "User exists in system"])
    if "email" in purpose or "notification" in purpose:
        rules.extend(["Valid email format", "Message content not empty"])
    return rules


_SAMPLE_VALUES = {
    "string": '"test-value"',
    "number": "123",
    "boolean": "true",
    "Date": "new Date()",
    "Record<string, any>": "{ key: 'value' }",
}


def sample_value(type_name: str) -> str:
    return _SAMPLE_VALUES.get(type_name, '"sample-data"')


def suggest_next_component(seam: SeamDefinition) -> str:
    others = [p for p in seam.participants if p != ORCHESTRATOR]
    return f"{others[0]}Seam" if others else "CoreLogicSeam"


def implementation_steps(seam: SeamDefinition) -> list[dict[str, Any]]:
    return [
        {
            "title": "Business Logic Implementation",
            "estimate": "120 min",
            "tasks": [
                {"title": "Implement core business logic", "time": "60 min",
                 "description": f"Core implementation for {seam.purpose}"},
                {"title": "Add data transformation logic", "time": "30 min",
                 "code": "const transformedData = await this.transformInput(request.data);",
                 "language": "typescript"},
                {"title": "Implement response formatting", "time": "30 min",
                 "description": "Format response according to ContractResult pattern"},
            ],
        },
        {
            "title": "External Integration",
            "estimate": "60 min",
            "tasks": [
                {"title": "Setup external service connections", "time": "30 min",
                 "description": f"Connect to required external services for {seam.purpose}"},
                {"title": "Implement retry logic", "time": "30 min",
                 "code": "const result = await this.retryService.execute(() => externalCall(), 3);",
                 "language": "typescript"},
            ],
        },
    ]


# =============================================================================
# Procesador
# =============================================================================


@dataclass
class GeneratedOutput:
    """Scaffolding renderizado de un seam."""

    contract_code: str
    stub_code: str
    test_code: str
    checklist_markdown: str
    file_name: str
    context: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "contract_code": self.contract_code,
            "stub_code": self.stub_code,
            "test_code": self.test_code,
            "checklist_markdown": self.checklist_markdown,
            "file_name": self.file_name,
        }


class TemplateProcessor:
    """Renderer Jinja2 del scaffolding SDD."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        directory = Path(self._settings.templates.directory)
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader([str(directory)]),
            autoescape=False,  # Generated source code, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=jinja2.StrictUndefined,
        )
        self.env.filters["pascal"] = to_pascal_case
        self.env.filters["camel"] = to_camel_case

    def create_context(self, seam: SeamDefinition) -> dict[str, Any]:
        """Contexto de template para un seam."""
        pascal = component_base_name(seam.name)
        camel = pascal[:1].lower() + pascal[1:]
        method_name = method_name_from_purpose(seam.purpose)
        inputs, outputs = fields_from_purpose(seam.purpose)
        contract_name = seam.contract_name or f"{pascal}Contract"

        return {
            "seam_name": seam.name,
            "component_name": f"{pascal}Agent",
            "contract_name": contract_name,
            "pascal_name": pascal,
            "camel_name": camel,
            "contract_file_name": f"{camel}.contract.ts",
            "stub_file_name": f"{camel}.agent.ts",
            "test_file_name": f"{camel}.integration.test.ts",
            "purpose": seam.purpose,
            "data_flow": seam.data_flow,
            "participants": list(seam.participants),
            "method_name": method_name,
            "method_description": f"Execute {seam.purpose}",
            "agent_id": f"{camel}-agent",
            "input_fields": inputs,
            "output_fields": outputs,
            "blueprint": f"Implement {seam.purpose} with ContractResult pattern",
            "estimated_effort": estimate_effort(seam),
            "priority": determine_priority(seam),
            "rationale": (
                f"This seam enables {seam.purpose} by connecting "
                f"{' and '.join(seam.participants)}"
            ),
            "example": f"{method_name}(request) -> ContractResult<{pascal}Output>",
            "sample_inputs": [
                {"name": f["name"], "value": sample_value(f["type"])} for f in inputs
            ],
            "dependencies": extract_dependencies(seam),
            "seam_dependencies": ", ".join(p for p in seam.participants if p != ORCHESTRATOR),
            "has_seam_dependencies": len(seam.participants) > 2,
            "implementation_steps": implementation_steps(seam),
            "estimates": {
                "foundation": "50 min",
                "stub": "90 min",
                "core": "180 min",
                "integration": "130 min",
                "production": "110 min",
                "total": "560 min (9.3 hours)",
            },
            "validation_rules": validation_rules(seam),
            "max_response_time": "500ms",
            "max_error_rate": "1%",
            "min_availability": "99.9%",
            "next_component": suggest_next_component(seam),
        }

    def render(self, template: str, context: dict[str, Any]) -> str:
        """
        Renderiza un template.

        Args:
            template: Un tipo de template (contract, stub, test, checklist)
                o un nombre de archivo dentro del directorio de templates
            context: Variables que recibe el template

        Raises:
            jinja2.TemplateNotFound: Si falta el archivo del template
            jinja2.TemplateError: Si el template está mal formado o una
                variable no está definida
        """
        if template in TEMPLATE_TYPES:
            template = self._settings.templates.file_for(template)
        return self.env.get_template(template).render(**context)

    def render_string(self, source: str, context: dict[str, Any]) -> str:
        return self.env.from_string(source).render(**context)

    def generate_from_seam(self, seam: SeamDefinition) -> GeneratedOutput:
        """Renderiza el scaffolding completo de un seam."""
        context = self.create_context(seam)
        output = GeneratedOutput(
            contract_code=self.render("contract", context),
            stub_code=self.render("stub", context),
            test_code=self.render("test", context),
            checklist_markdown=self.render("checklist", context),
            file_name=context["contract_file_name"],
            context=context,
        )
        logger.debug("Generated scaffolding for seam %s", seam.name)
        return output

    def missing_templates(self) -> list[str]:
        """Tipos de template cuyo archivo no existe."""
        return [
            t for t in TEMPLATE_TYPES
            if not self._settings.get_template_path(t).is_file()
        ]


__all__ = [
    "GeneratedOutput",
    "TemplateProcessor",
    "component_base_name",
    "determine_priority",
    "estimate_effort",
    "fields_from_purpose",
    "method_name_from_purpose",
    "sample_value",
    "suggest_next_component",
    "to_camel_case",
    "to_pascal_case",
]
