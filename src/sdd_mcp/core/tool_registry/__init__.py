"""
Tool Registry - Registro central de tools con nombre y versión

Responsabilidad:
- Registrar tools (definición + metadata + handler) por (nombre, versión)
- Resolver una versión exacta, o la última vía una estrategia intercambiable
- Mantener un estado por entrada (ACTIVE / INACTIVE / ERROR)
- Recuperar entradas en ERROR solo tras un probe exitoso
- NO ejecutar tools (eso es request_router)
- NO validar argumentos (eso es schema_validator)

Cada tool declara:
- name
- version
- description
- input_schema (JSON Schema)
- output_schema (JSON Schema)
- dependencies, author, tags
- probe_args (opcional, para verificar la recuperación)

Las entradas nunca se mutan: re-registrar el mismo (nombre, versión) se
rechaza. Para corregir hay que hacer unregister + register.
"""

import copy
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

from sdd_mcp.exceptions import (
    DuplicateRegistrationException,
    InvalidInputException,
    SDDException,
    ToolNotFoundException,
    VersionNotFoundException,
)
from sdd_mcp.schemas import ExecutionResult

logger = logging.getLogger(__name__)


class ToolStatus(str, Enum):
    """Estado operativo de una entrada (nombre, versión)."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ToolDefinition:
    """Contrato público de una tool."""
    name: str
    description: str
    input_schema: dict          # JSON Schema
    output_schema: dict         # JSON Schema

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": copy.deepcopy(self.input_schema),
            "output_schema": copy.deepcopy(self.output_schema),
        }


@dataclass(frozen=True)
class ToolMetadata:
    """Metadata de registro de una tool."""
    name: str
    version: str
    dependencies: tuple[str, ...] = ()
    author: Optional[str] = None
    tags: tuple[str, ...] = ()
    probe_args: Optional[dict] = None   # No-op arguments for health probes


@dataclass(frozen=True)
class ToolRecord:
    """Definición, metadata y handler, inmutables."""
    definition: ToolDefinition
    metadata: ToolMetadata
    handler: Callable[[Any], Any]

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def version(self) -> str:
        return self.metadata.version

    @property
    def key(self) -> str:
        return f"{self.metadata.name}@{self.metadata.version}"

    def snapshot(self) -> "ToolRecord":
        """Copia con schemas separados; el caller no puede tocar el estado del registry."""
        return replace(
            self,
            definition=replace(
                self.definition,
                input_schema=copy.deepcopy(self.definition.input_schema),
                output_schema=copy.deepcopy(self.definition.output_schema),
            ),
            metadata=replace(
                self.metadata,
                probe_args=copy.deepcopy(self.metadata.probe_args),
            ),
        )


@dataclass(frozen=True)
class StatusEntry:
    """Estado de una entrada registrada."""
    status: ToolStatus
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "last_updated": self.last_updated.isoformat(),
            "reason": self.reason,
        }


# =============================================================================
# Estrategias de última versión
# =============================================================================

VersionStrategy = Callable[[Iterable[str]], str]


def lexicographic_latest(versions: Iterable[str]) -> str:
    """
    Elige la versión que queda última al ordenar como string.

    Es la estrategia por defecto. Ojo: "10.0.0" queda antes que "2.0.0".
    """
    return sorted(versions)[-1]


def _semver_key(version: str):
    core, _, prerelease = version.partition("-")
    parts = []
    for piece in core.split("."):
        if piece.isdigit():
            parts.append((0, int(piece), ""))
        else:
            parts.append((1, 0, piece))
    # Un release queda después de sus pre-releases
    return (parts, 0 if prerelease else 1, prerelease)


def semantic_latest(versions: Iterable[str]) -> str:
    """Elige la versión más alta comparando componentes numéricos."""
    return max(versions, key=_semver_key)


# =============================================================================
# Registro
# =============================================================================

Prober = Callable[[ToolRecord], Awaitable[ExecutionResult]]


class ToolRegistry:
    """
    Registro central de tools.

    El registry NO sabe cómo se ejecutan las tools.
    Solo conoce sus contratos (schemas), versiones y estado.

    Un solo lock serializa mutaciones y snapshots de lookup: un lookup ve
    el estado anterior o posterior a un cambio, nunca uno parcial.
    """

    def __init__(self, latest_strategy: VersionStrategy = lexicographic_latest):
        self._lock = threading.RLock()
        self._tools: dict[str, dict[str, ToolRecord]] = {}
        self._status: dict[tuple[str, str], StatusEntry] = {}
        self._latest = latest_strategy

    # -------------------------------------------------------------------------
    # Registro de tools
    # -------------------------------------------------------------------------

    def register_tool(
        self,
        record: ToolRecord,
        status: ToolStatus = ToolStatus.ACTIVE,
        reason: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Registra una tool.

        Args:
            record: ToolRecord (definición + metadata + handler)
            status: Estado inicial
            reason: Motivo opcional para un estado no activo

        Returns:
            Resultado exitoso sin data, o fallo InvalidInput /
            DuplicateRegistration failure
        """
        tool_name = getattr(getattr(record, "metadata", None), "name", None)
        try:
            stored = self._validate_record(record)
            name, version = stored.name, stored.version
            with self._lock:
                if version in self._tools.get(name, {}):
                    raise DuplicateRegistrationException(name, version)
                self._tools.setdefault(name, {})[version] = stored
                self._status[(name, version)] = StatusEntry(status=status, reason=reason)
        except SDDException as exc:
            logger.warning("Tool registration rejected: %s", exc.message)
            return ExecutionResult.fail(exc, operation="register_tool", tool_name=tool_name)

        logger.info("Tool registered: %s (version: %s, status: %s)", name, version, status.value)
        return ExecutionResult.ok(operation="register_tool", tool_name=name, version=version)

    @staticmethod
    def _validate_record(record: Any) -> ToolRecord:
        if record is None or not isinstance(record, ToolRecord):
            raise InvalidInputException("Invalid tool record provided for registration.")
        if record.definition is None or record.metadata is None or record.handler is None:
            raise InvalidInputException(
                "Tool record requires definition, metadata and handler.",
            )
        if not callable(record.handler):
            raise InvalidInputException(
                "Tool handler must be callable.",
                details={"tool_name": record.metadata.name},
            )
        if not record.metadata.name or not record.metadata.version:
            raise InvalidInputException("Tool metadata missing name or version.")
        if not isinstance(record.definition.input_schema, dict) or not isinstance(
            record.definition.output_schema, dict
        ):
            raise InvalidInputException(
                "Tool definition requires input and output schemas.",
                details={"tool_name": record.metadata.name},
            )
        if record.definition.name != record.metadata.name:
            raise InvalidInputException(
                "Tool definition name must match metadata name.",
                details={
                    "definition_name": record.definition.name,
                    "metadata_name": record.metadata.name,
                },
            )
        return record.snapshot()

    def unregister_tool(self, name: str, version: Optional[str] = None) -> ExecutionResult:
        """
        Elimina una versión de una tool, o todas si no se indica versión.

        No es idempotente: eliminar una tool ausente falla con NotFound.
        """
        try:
            if not name:
                raise InvalidInputException("Tool name is required.")
            if version is not None and not version:
                raise InvalidInputException(
                    "Version must be omitted or non-empty.",
                    details={"tool_name": name},
                )
            with self._lock:
                versions = self._tools.get(name)
                if versions is None:
                    raise ToolNotFoundException(name)
                if version is not None:
                    if version not in versions:
                        raise VersionNotFoundException(name, version, sorted(versions))
                    del versions[version]
                    self._status.pop((name, version), None)
                    if not versions:
                        del self._tools[name]
                    removed = [version]
                else:
                    removed = sorted(versions)
                    for v in removed:
                        self._status.pop((name, v), None)
                    del self._tools[name]
        except SDDException as exc:
            return ExecutionResult.fail(exc, operation="unregister_tool", tool_name=name)

        logger.info("Tool unregistered: %s (versions: %s)", name, ", ".join(removed))
        return ExecutionResult.ok(operation="unregister_tool", tool_name=name, version=version)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def lookup(self, name: str, version: Optional[str] = None) -> ToolRecord:
        """
        Resuelve un ToolRecord.

        Args:
            name: Nombre de la tool
            version: Versión exacta, o None para la última

        Returns:
            El ToolRecord almacenado

        Raises:
            InvalidInputException: Si el nombre está vacío
            ToolNotFoundException: Si el nombre no existe
            VersionNotFoundException: Si la versión no existe
        """
        if not name:
            raise InvalidInputException("Tool name is required.")
        with self._lock:
            versions = self._tools.get(name)
            if not versions:
                raise ToolNotFoundException(name)
            target = version or self._latest(versions.keys())
            record = versions.get(target)
            if record is None:
                raise VersionNotFoundException(name, target, sorted(versions))
            return record

    def get_tool(self, name: str, version: Optional[str] = None) -> ExecutionResult:
        """Resuelve un ToolRecord envuelto en un ExecutionResult."""
        try:
            record = self.lookup(name, version)
        except SDDException as exc:
            return ExecutionResult.fail(exc, operation="get_tool", tool_name=name, version=version)
        return ExecutionResult.ok(
            data=record.snapshot(),
            operation="get_tool",
            tool_name=record.name,
            version=record.version,
        )

    def get_tools(self) -> ExecutionResult:
        """Definiciones de todas las tools en todas sus versiones (aplanado)."""
        with self._lock:
            definitions = [
                record.snapshot().definition
                for versions in self._tools.values()
                for record in versions.values()
            ]
        return ExecutionResult.ok(data=definitions, operation="get_tools")

    def list_records(self, latest_only: bool = False) -> list[ToolRecord]:
        """Snapshot de los records, ordenado por nombre y versión."""
        with self._lock:
            records = []
            for name in sorted(self._tools):
                versions = self._tools[name]
                if latest_only:
                    records.append(versions[self._latest(versions.keys())].snapshot())
                else:
                    records.extend(versions[v].snapshot() for v in sorted(versions))
            return records

    def get_versions(self, name: str) -> list[str]:
        with self._lock:
            versions = self._tools.get(name)
            if versions is None:
                raise ToolNotFoundException(name)
            return sorted(versions)

    def latest_version(self, name: str) -> str:
        with self._lock:
            versions = self._tools.get(name)
            if not versions:
                raise ToolNotFoundException(name)
            return self._latest(versions.keys())

    def is_tool_registered(self, name: str) -> bool:
        with self._lock:
            return name in self._tools

    def get_tool_count(self) -> int:
        """Cantidad de entradas (nombre, versión) registradas."""
        with self._lock:
            return len(self._status)

    def get_active_tool_count(self) -> int:
        with self._lock:
            return sum(1 for entry in self._status.values() if entry.status is ToolStatus.ACTIVE)

    # -------------------------------------------------------------------------
    # Estado
    # -------------------------------------------------------------------------

    def get_status(self, name: str, version: Optional[str] = None) -> StatusEntry:
        """Estado de una entrada (última versión si no se indica)."""
        with self._lock:
            record = self.lookup(name, version)
            return self._status[(record.name, record.version)]

    def set_status(
        self,
        name: str,
        version: str,
        status: ToolStatus,
        reason: Optional[str] = None,
    ) -> StatusEntry:
        """Cambia el estado de una entrada existente."""
        with self._lock:
            record = self.lookup(name, version)
            entry = StatusEntry(status=status, reason=reason)
            self._status[(record.name, record.version)] = entry
        logger.info("Tool status changed: %s -> %s", record.key, status.value)
        return entry

    def get_status_report(self) -> dict[str, dict[str, Any]]:
        """Estado de cada entrada, con clave 'name@version'."""
        with self._lock:
            return {
                f"{name}@{version}": entry.to_dict()
                for (name, version), entry in sorted(self._status.items())
            }

    async def refresh(self, prober: Optional[Prober] = None, force: bool = False) -> ExecutionResult:
        """
        Re-check entries in ERROR status.

        An entry flips back to ACTIVE only when its probe succeeds. Entries
        without probe_args (or when no prober is given) stay in ERROR,
        unless force=True, which resets every ERROR entry unconditionally.

        Returns:
            Success result whose data holds 'recovered' and 'still_failing'
            lists of 'name@version' keys
        """
        with self._lock:
            failing = [
                self._tools[name][version]
                for (name, version), entry in self._status.items()
                if entry.status is ToolStatus.ERROR
            ]

        recovered: list[str] = []
        still_failing: list[str] = []

        for record in failing:
            if force:
                outcome, reason = True, None
            elif prober is None or record.metadata.probe_args is None:
                outcome, reason = False, "No health probe available"
            else:
                result = await prober(record)
                outcome = result.success
                reason = None if outcome else result.error.message

            with self._lock:
                current = self._status.get((record.name, record.version))
                if current is None:
                    # Eliminada durante el probe
                    continue
                if outcome:
                    self._status[(record.name, record.version)] = StatusEntry(ToolStatus.ACTIVE)
                    recovered.append(record.key)
                else:
                    self._status[(record.name, record.version)] = StatusEntry(
                        ToolStatus.ERROR, reason=reason or current.reason
                    )
                    still_failing.append(record.key)

        if recovered:
            logger.info("Registry refresh recovered: %s", ", ".join(recovered))
        if still_failing:
            logger.warning("Registry refresh left in ERROR: %s", ", ".join(still_failing))

        return ExecutionResult.ok(
            data={"recovered": recovered, "still_failing": still_failing, "forced": force},
            operation="refresh",
        )


__all__ = [
    "Prober",
    "StatusEntry",
    "ToolDefinition",
    "ToolMetadata",
    "ToolRecord",
    "ToolRegistry",
    "ToolStatus",
    "VersionStrategy",
    "lexicographic_latest",
    "semantic_latest",
]
