"""Per-node execution state for a single run."""
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterator

from .errors import InvalidTransitionError


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


# Allowed transitions; a node enters RUNNING at most once per run
_TRANSITIONS: dict[ExecutionStatus, set[ExecutionStatus]] = {
    ExecutionStatus.PENDING: {ExecutionStatus.RUNNING, ExecutionStatus.SKIPPED},
    ExecutionStatus.RUNNING: {ExecutionStatus.SUCCESS, ExecutionStatus.ERROR},
    ExecutionStatus.SUCCESS: set(),
    ExecutionStatus.ERROR: set(),
    ExecutionStatus.SKIPPED: set(),
}


@dataclass(frozen=True)
class ExecutionState:
    status: ExecutionStatus = ExecutionStatus.PENDING
    start_time: float | None = None  # time.monotonic()
    end_time: float | None = None
    inputs: dict[str, Any] = field(default_factory=dict)
    outputs: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    logs: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return self.status is ExecutionStatus.SUCCESS

    @property
    def duration(self) -> float | None:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "inputs": self.inputs,
            "outputs": self.outputs,
            "error": self.error,
            "logs": list(self.logs),
        }


class ExecutionStateStore:
    """Map of node id to its current ExecutionState.

    Records are immutable; every transition stores and returns a new one.
    """

    def __init__(self):
        self._states: dict[str, ExecutionState] = {}

    def reset(self, node_ids: list[str]) -> None:
        self._states = {nid: ExecutionState() for nid in node_ids}

    def get(self, node_id: str) -> ExecutionState | None:
        return self._states.get(node_id)

    def snapshot(self) -> dict[str, ExecutionState]:
        return dict(self._states)

    def items(self) -> Iterator[tuple[str, ExecutionState]]:
        return iter(list(self._states.items()))

    def discard(self, node_id: str) -> None:
        self._states.pop(node_id, None)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def transition(
        self, node_id: str, status: ExecutionStatus, **fields: Any
    ) -> ExecutionState:
        current = self._states.get(node_id)
        if current is None:
            raise InvalidTransitionError(f"No execution state for node '{node_id}'")
        if status not in _TRANSITIONS[current.status]:
            raise InvalidTransitionError(
                f"Node '{node_id}' cannot go from {current.status.value} to {status.value}"
            )
        if status is ExecutionStatus.RUNNING:
            fields.setdefault("start_time", time.monotonic())
        elif status in (ExecutionStatus.SUCCESS, ExecutionStatus.ERROR):
            fields.setdefault("end_time", time.monotonic())
        if "logs" in fields:
            fields["logs"] = tuple(fields["logs"])
        new_state = replace(current, status=status, **fields)
        self._states[node_id] = new_state
        return new_state
