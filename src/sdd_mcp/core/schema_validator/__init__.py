"""
Schema Validator - Validación estructural de argumentos contra JSON Schemas

Responsabilidad:
- Validar argumentos contra el input schema de la tool (JSON Schema Draft 7)
- Reportar errores por campo (ruta, mensaje, tipo esperado, valor recibido)
- Reportar warnings no fatales (propiedades desconocidas, schema ausente)
- NO ejecutar nada
- NO revisar reglas de negocio (eso es del handler)

Los errores de validación se reportan, nunca se lanzan. Solo un schema
mal formado lanza (jsonschema.SchemaError); el router lo convierte.
"""

from dataclasses import dataclass, field
from typing import Any

from jsonschema import Draft7Validator


@dataclass(frozen=True)
class FieldError:
    """Error de validación de un campo."""

    field: str
    message: str
    expected_type: Any = None
    actual_value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "expected_type": self.expected_type,
            "actual_value": self.actual_value,
        }


@dataclass
class ValidationResult:
    """Resultado de validar un payload de argumentos."""

    is_valid: bool
    errors: list[FieldError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    processed_args: Any = None


def _requires_object(schema: dict) -> bool:
    schema_type = schema.get("type")
    if schema_type is not None:
        return schema_type == "object" or (
            isinstance(schema_type, list) and schema_type == ["object"]
        )
    return "properties" in schema or "required" in schema


def _field_path(error) -> str:
    path = ".".join(str(p) for p in error.absolute_path)
    if error.validator == "required" and isinstance(error.instance, dict):
        missing = [p for p in error.validator_value if p not in error.instance]
        name = next((p for p in missing if repr(p) in error.message), None)
        if name is None and missing:
            name = missing[0]
        if name is not None:
            return f"{path}.{name}" if path else str(name)
    return path


def _expected_type(error, field_name: str) -> Any:
    if error.validator == "type":
        return error.validator_value
    if not isinstance(error.schema, dict):
        return None
    if error.validator == "required":
        leaf = field_name.rsplit(".", 1)[-1]
        prop = error.schema.get("properties", {}).get(leaf, {})
        return prop.get("type") if isinstance(prop, dict) else None
    return error.schema.get("type")


class SchemaValidator:
    """
    Validador de argumentos de tools.

    Usa jsonschema Draft 7 para validación estructural y de tipos.
    """

    @staticmethod
    def validate(schema: dict | None, args: Any) -> ValidationResult:
        """
        Valida argumentos contra un schema.

        Args:
            schema: JSON Schema (Draft 7)
            args: Argumentos a validar

        Returns:
            ValidationResult. Nunca lanza por datos inválidos.

        Raises:
            jsonschema.SchemaError: Si el schema está mal formado
        """
        warnings: list[str] = []

        if not schema:
            warnings.append("No schema provided for validation")
            return ValidationResult(is_valid=True, warnings=warnings, processed_args=args)

        Draft7Validator.check_schema(schema)

        if args is None and _requires_object(schema):
            return ValidationResult(
                is_valid=False,
                errors=[
                    FieldError(
                        field="",
                        message="Arguments are required",
                        expected_type="object",
                        actual_value=None,
                    )
                ],
            )

        validator = Draft7Validator(schema)
        errors: list[FieldError] = []
        ordered = sorted(validator.iter_errors(args), key=lambda e: [str(p) for p in e.absolute_path])
        for error in ordered:
            field_name = _field_path(error)
            errors.append(
                FieldError(
                    field=field_name,
                    message=error.message,
                    expected_type=_expected_type(error, field_name),
                    actual_value=None if error.validator == "required" else error.instance,
                )
            )

        # Propiedades desconocidas se toleran salvo que el schema diga lo contrario
        properties = schema.get("properties")
        if isinstance(args, dict) and isinstance(properties, dict):
            if "additionalProperties" not in schema:
                for key in args:
                    if key not in properties:
                        warnings.append(f"Unknown property '{key}' is not declared in the schema")

        if errors:
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        processed = dict(args) if isinstance(args, dict) else args
        return ValidationResult(is_valid=True, warnings=warnings, processed_args=processed)


__all__ = ["FieldError", "SchemaValidator", "ValidationResult"]
