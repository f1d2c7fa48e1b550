"""
Request Router - Punto único de entrada para llamadas a tools

Responsabilidad:
- Resolver la tool vía tool_registry (nombre + versión opcional)
- Bloquear según el estado de la tool
- Validar argumentos vía schema_validator
- Invocar el handler exactamente una vez (corutina, o sync en un thread)
- Aplicar el timeout del caller abandonando la tarea del handler
- Normalizar todo resultado a un ExecutionResult
- Registrar métricas y una entrada de execution_log por llamada
- NO reintentar
- NO serializar llamadas concurrentes a la misma tool

Ninguna excepción cruza este límite: todo camino retorna un ExecutionResult.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Union
from uuid import uuid4

from jsonschema import SchemaError

from sdd_mcp.config import get_settings
from sdd_mcp.core.execution_log import ExecutionLog
from sdd_mcp.core.schema_validator import SchemaValidator
from sdd_mcp.core.tool_registry import ToolRecord, ToolRegistry, ToolStatus
from sdd_mcp.exceptions import (
    DependencyUnavailableException,
    ErrorCategory,
    InvalidInputException,
    ProcessingException,
    SDDException,
    ToolTimeoutException,
    ValidationException,
)
from sdd_mcp.observability import MetricsStore, get_metrics_store
from sdd_mcp.schemas import ExecutionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionConfig:
    """Opciones por llamada."""
    version: Optional[str] = None
    timeout_ms: Optional[int] = None    # None = default del router, 0 = sin timeout

    @classmethod
    def from_value(cls, value: Union["ExecutionConfig", dict, None]) -> "ExecutionConfig":
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls(
                version=value.get("version"),
                timeout_ms=value.get("timeout_ms", value.get("timeoutMs")),
            )
        raise InvalidInputException(
            "Execution config must be a mapping.",
            details={"config_type": type(value).__name__},
        )


class RequestRouter:
    """
    Router que une lookup, validación e invocación en una sola llamada.

    Recibe el registry por referencia; no guarda estado de tools propio
    salvo el set de tareas abandonadas (por timeout).
    """

    def __init__(
        self,
        registry: ToolRegistry,
        validator: Optional[SchemaValidator] = None,
        metrics: Optional[MetricsStore] = None,
        execution_log: Optional[ExecutionLog] = None,
        default_timeout_ms: Optional[int] = None,
        router_id: Optional[str] = None,
    ):
        self._registry = registry
        self._validator = validator if validator is not None else SchemaValidator()
        self._metrics = metrics if metrics is not None else get_metrics_store()
        self._execution_log = execution_log if execution_log is not None else ExecutionLog()
        if default_timeout_ms is None:
            default_timeout_ms = get_settings().default_timeout_ms
        self._default_timeout_ms = default_timeout_ms
        self.router_id = router_id or f"router-{uuid4().hex[:8]}"
        self._abandoned: set[asyncio.Future] = set()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def execution_log(self) -> ExecutionLog:
        return self._execution_log

    @property
    def abandoned_count(self) -> int:
        """Tareas abandonadas por timeout que siguen corriendo."""
        return len(self._abandoned)

    # -------------------------------------------------------------------------
    # Ejecución
    # -------------------------------------------------------------------------

    async def execute(
        self,
        name: str,
        args: Any = None,
        config: Union[ExecutionConfig, dict, None] = None,
    ) -> ExecutionResult:
        """
        Ejecuta una llamada a una tool.

        Process:
        1. Rechazar nombre vacío (InvalidInput)
        2. Resolver el record (NotFound / VersionNotFound)
        3. Bloquear según estado (DependencyUnavailable)
        4. Validar argumentos (ValidationError)
        5. Invocar el handler una vez (ProcessingError / Timeout)
        6. Adjuntar metadata, registrar métricas y entrada de log

        Returns:
            ExecutionResult. Nunca lanza.
        """
        request_id = str(uuid4())
        start = time.perf_counter()
        record: Optional[ToolRecord] = None
        version: Optional[str] = None
        tool_name = name if isinstance(name, str) and name else None

        try:
            call_config = ExecutionConfig.from_value(config)
            version = call_config.version
            if not name or not isinstance(name, str):
                raise InvalidInputException("Tool name is required.")

            record = self._registry.lookup(name, call_config.version)
            version = record.version

            status = self._registry.get_status(record.name, record.version)
            if status.status is not ToolStatus.ACTIVE:
                raise DependencyUnavailableException(
                    record.name, record.version, status.status.value, status.reason
                )

            result = await self._validate_and_invoke(
                record, args, self._resolve_timeout(call_config)
            )
        except SDDException as exc:
            result = ExecutionResult.fail(exc, operation="execute", tool_name=tool_name)
        except Exception as exc:
            logger.exception("Unexpected router failure for tool %s", name)
            result = ExecutionResult.fail(
                ProcessingException(
                    str(name),
                    str(exc),
                    details={"exception_type": type(exc).__name__, "stage": "router"},
                ),
                operation="execute",
                tool_name=tool_name,
            )

        elapsed_ms = (time.perf_counter() - start) * 1000
        result = self._finalize(result, request_id, name, version, elapsed_ms)
        self._record(result, request_id, name, record, args, elapsed_ms)
        return result

    async def probe(self, record: ToolRecord) -> ExecutionResult:
        """
        Corre un health probe: invoca el handler con sus probe_args.

        Se salta el bloqueo por estado (así se recuperan las entradas en ERROR).
        """
        probe_args = record.metadata.probe_args
        if probe_args is None:
            return ExecutionResult.fail(
                InvalidInputException(
                    f"Tool '{record.name}' declares no probe arguments.",
                    details={"tool_name": record.name, "version": record.version},
                ),
                operation="probe",
                tool_name=record.name,
                version=record.version,
            )
        try:
            result = await self._validate_and_invoke(
                record, probe_args, self._default_timeout_ms
            )
        except SDDException as exc:
            result = ExecutionResult.fail(exc, operation="probe", tool_name=record.name)
        except Exception as exc:
            result = ExecutionResult.fail(
                ProcessingException(record.name, str(exc)),
                operation="probe",
                tool_name=record.name,
            )
        logger.info("Probe %s: success=%s", record.key, result.success)
        return result

    async def refresh(self, force: bool = False) -> ExecutionResult:
        """Refresca el registry verificando con probes las entradas en ERROR."""
        return await self._registry.refresh(self.probe, force=force)

    def list_tools(self, latest_only: bool = True) -> list[dict[str, Any]]:
        """Listado de tools registradas con su estado."""
        tools = []
        for record in self._registry.list_records(latest_only=latest_only):
            try:
                status = self._registry.get_status(record.name, record.version)
            except SDDException:
                # Eliminada después del snapshot
                continue
            tools.append({
                **record.definition.to_dict(),
                "version": record.version,
                "status": status.status.value,
                "tags": list(record.metadata.tags),
            })
        return tools

    # -------------------------------------------------------------------------
    # Internos
    # -------------------------------------------------------------------------

    def _resolve_timeout(self, config: ExecutionConfig) -> int:
        timeout_ms = config.timeout_ms
        if timeout_ms is None:
            return self._default_timeout_ms
        if not isinstance(timeout_ms, int) or isinstance(timeout_ms, bool) or timeout_ms < 0:
            raise InvalidInputException(
                "timeout_ms must be a non-negative integer.",
                details={"timeout_ms": timeout_ms},
            )
        return timeout_ms

    async def _validate_and_invoke(
        self, record: ToolRecord, args: Any, timeout_ms: int
    ) -> ExecutionResult:
        try:
            validation = self._validator.validate(record.definition.input_schema, args)
        except SchemaError as exc:
            raise ProcessingException(
                record.name,
                f"Invalid input schema: {exc.message}",
                details={"exception_type": "SchemaError"},
            ) from exc

        if not validation.is_valid:
            raise ValidationException(
                f"Arguments for tool '{record.name}' failed validation.",
                errors=[e.to_dict() for e in validation.errors],
            )

        output = await self._invoke(record, validation.processed_args, timeout_ms)

        if isinstance(output, ExecutionResult):
            # El handler puede retornar una instancia compartida: la metadata va en una copia
            result = output.model_copy(deep=True)
        else:
            result = ExecutionResult.ok(data=output)

        if validation.warnings:
            result.metadata = result.metadata.model_copy(
                update={"warnings": list(validation.warnings)}
            )
        return result

    async def _invoke(self, record: ToolRecord, args: Any, timeout_ms: int) -> Any:
        """
        Invoca el handler con timeout. Las tareas vencidas se abandonan, no se cancelan.

        Raises:
            ToolTimeoutException: solo cuando vence el timeout de este router
            ProcessingException: por cualquier cosa que lance el handler
        """
        task = asyncio.ensure_future(self._call_handler(record.handler, args))
        timeout = timeout_ms / 1000.0 if timeout_ms else None

        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            # Se canceló el caller, no el handler
            task.cancel()
            raise

        if not done:
            self._abandoned.add(task)
            task.add_done_callback(self._forget_abandoned)
            logger.warning("Tool %s abandoned after %dms", record.key, timeout_ms)
            raise ToolTimeoutException(record.name, timeout_ms)

        if task.cancelled():
            # El handler mismo lanzó CancelledError
            raise self._handler_failure(record, asyncio.CancelledError())
        exc = task.exception()
        if exc is not None:
            raise self._handler_failure(record, exc) from exc
        return task.result()

    @staticmethod
    async def _call_handler(handler: Any, args: Any) -> Any:
        if inspect.iscoroutinefunction(handler):
            output = await handler(args)
        else:
            # Handler sync: ejecutarlo en thread
            output = await asyncio.to_thread(handler, args)
        if inspect.isawaitable(output):
            output = await output
        return output

    @staticmethod
    def _handler_failure(record: ToolRecord, exc: BaseException) -> ProcessingException:
        logger.warning("Tool %s failed: %s: %s", record.key, type(exc).__name__, exc)
        details = {
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "version": record.version,
        }
        if isinstance(exc, SDDException):
            details["cause_category"] = exc.category.value
        return ProcessingException(
            record.name,
            str(exc) or type(exc).__name__,
            details=details,
        )

    def _forget_abandoned(self, task: asyncio.Future) -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Abandoned tool call finished with error: %s", exc)

    def _finalize(
        self,
        result: ExecutionResult,
        request_id: str,
        name: Any,
        version: Optional[str],
        elapsed_ms: float,
    ) -> ExecutionResult:
        tool_name = name if isinstance(name, str) and name else None
        result.metadata = result.metadata.model_copy(
            update={
                "operation": "execute",
                "tool_name": tool_name,
                "version": version,
                "router_id": self.router_id,
                "request_id": request_id,
                "processing_time_ms": round(elapsed_ms, 3),
                "timestamp": datetime.now(timezone.utc),
            }
        )
        if result.error is not None and (result.error.tool_name is None or result.error.operation is None):
            result.error = result.error.model_copy(
                update={
                    "tool_name": result.error.tool_name or tool_name,
                    "operation": result.error.operation or "execute",
                }
            )
        return result

    def _record(
        self,
        result: ExecutionResult,
        request_id: str,
        name: Any,
        record: Optional[ToolRecord],
        args: Any,
        elapsed_ms: float,
    ) -> None:
        tool = record.name if record else str(name)
        category = result.error.category.value if result.error else None

        if record is not None:
            self._metrics.record_tool_call(tool, elapsed_ms, result.success)
            if category:
                self._metrics.record_tool_error(tool, category)
        elif category:
            self._metrics.record_error(category)

        if result.success:
            status, output = "ok", result.data
        else:
            status = "timeout" if result.error.category is ErrorCategory.TIMEOUT else "error"
            output = result.error.model_dump(mode="json")

        self._execution_log.log(
            request_id=request_id,
            tool=tool,
            version=record.version if record else None,
            input_data=args,
            output_data=output,
            status=status,
            execution_time_ms=elapsed_ms,
            category=category,
        )

        logger.info(
            "Tool call %s: tool=%s version=%s success=%s category=%s time_ms=%.1f",
            request_id,
            tool,
            record.version if record else None,
            result.success,
            category,
            elapsed_ms,
        )


__all__ = ["ExecutionConfig", "RequestRouter"]
