"""Execution context handed to a node for one invocation."""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from logging import getLogger

from ..nodes.base import NodeConfig
from .errors import ExecutionCancelledError
from .memory import MemoryStore

node_logger = getLogger("nodeflow.nodes")


class CancellationToken:
    """Cooperative cancellation flag shared by every node of a run."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ExecutionCancelledError("Execution was stopped")


class NodeLogger:
    """Collects a node's log lines for its ExecutionState and mirrors them to logging."""

    def __init__(self, node_id: str, node_type: str = ""):
        self.node_id = node_id
        self.node_type = node_type
        self.entries: list[str] = []

    def _log(self, level: int, message: str) -> None:
        timestamp = datetime.now(timezone.utc).isoformat()
        self.entries.append(f"[{timestamp}] {logging.getLevelName(level)}: {message}")
        node_logger.log(level, "[%s] %s", self.node_id, message)

    def info(self, message: str) -> None:
        self._log(logging.INFO, message)

    def warning(self, message: str) -> None:
        self._log(logging.WARNING, message)

    def error(self, message: str) -> None:
        self._log(logging.ERROR, message)


@dataclass
class ExecutionContext:
    node_id: str
    config: NodeConfig
    memory: MemoryStore
    logger: NodeLogger
    cancellation: CancellationToken = field(default_factory=CancellationToken)
