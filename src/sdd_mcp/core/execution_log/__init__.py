"""
Execution Log - Log inmutable de llamadas enrutadas

Responsabilidad:
- Crear una entrada por cada llamada enrutada (éxito o fallo)
- Almacenar de forma inmutable
- Proveer query por request_id o por tool
- Storage pluggable (en memoria por defecto)

Usos:
- Debug
- Auditoría
- Complemento de /metrics (llamadas recientes)
"""

import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional
from uuid import uuid4

EntryStatus = Literal["ok", "error", "timeout"]


@dataclass(frozen=True)
class ExecutionLogEntry:
    """Registro inmutable de una llamada enrutada."""
    entry_id: str
    request_id: str
    tool: str
    version: Optional[str]
    input: Any
    output: Any
    status: EntryStatus
    timestamp: str  # ISO-8601
    execution_time_ms: float = 0.0
    category: Optional[str] = None


class ExecutionLogStorage(ABC):
    """Interfaz de storage para entradas del log."""

    @abstractmethod
    def save(self, entry: ExecutionLogEntry) -> None:
        """Persiste una entrada."""
        pass

    @abstractmethod
    def query(
        self,
        request_id: Optional[str] = None,
        tool: Optional[str] = None,
    ) -> list[ExecutionLogEntry]:
        """Entradas que cumplen los filtros, las más viejas primero."""
        pass


class InMemoryStorage(ExecutionLogStorage):
    """Storage en memoria acotado. Descarta primero las entradas más viejas."""

    def __init__(self, max_entries: int = 1000):
        self._lock = threading.Lock()
        self._entries: deque[ExecutionLogEntry] = deque(maxlen=max_entries)

    def save(self, entry: ExecutionLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def query(
        self,
        request_id: Optional[str] = None,
        tool: Optional[str] = None,
    ) -> list[ExecutionLogEntry]:
        with self._lock:
            return [
                e
                for e in self._entries
                if (request_id is None or e.request_id == request_id)
                and (tool is None or e.tool == tool)
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ExecutionLog:
    """
    Logger de ejecuciones con storage pluggable.
    """

    def __init__(self, storage: Optional[ExecutionLogStorage] = None):
        self._storage = storage if storage is not None else InMemoryStorage()

    def log(
        self,
        request_id: str,
        tool: str,
        input_data: Any,
        output_data: Any,
        status: EntryStatus,
        version: Optional[str] = None,
        execution_time_ms: float = 0.0,
        category: Optional[str] = None,
    ) -> str:
        """
        Crea y almacena una entrada.

        Returns:
            El entry_id generado
        """
        entry = ExecutionLogEntry(
            entry_id=str(uuid4()),
            request_id=request_id,
            tool=tool,
            version=version,
            input=input_data,
            output=output_data,
            status=status,
            timestamp=datetime.now(timezone.utc).isoformat(),
            execution_time_ms=execution_time_ms,
            category=category,
        )
        self._storage.save(entry)
        return entry.entry_id

    def get_by_request(self, request_id: str) -> list[ExecutionLogEntry]:
        return self._storage.query(request_id=request_id)

    def get_by_tool(self, tool: str) -> list[ExecutionLogEntry]:
        return self._storage.query(tool=tool)

    def recent(self, limit: int = 50) -> list[ExecutionLogEntry]:
        entries = self._storage.query()
        return entries[-limit:] if limit > 0 else []


__all__ = [
    "EntryStatus",
    "ExecutionLog",
    "ExecutionLogEntry",
    "ExecutionLogStorage",
    "InMemoryStorage",
]
