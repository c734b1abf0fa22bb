"""Execution engine: run every node of a workflow once, in scheduler order."""
from dataclasses import dataclass, field
from enum import Enum
from logging import getLogger
from typing import Any, Callable

from ..nodes.base import BaseNode, NodeConfig
from .context import CancellationToken, ExecutionContext, NodeLogger
from .errors import AlreadyRunningError, CycleDetectedError
from .graph import EdgeKind, Graph
from .memory import InMemoryStore, MemoryStore
from .scheduler import execution_order
from .state import ExecutionState, ExecutionStateStore, ExecutionStatus

logger = getLogger(__name__)

StateCallback = Callable[[str, ExecutionState], None]
CompleteCallback = Callable[[], None]


class RunPhase(str, Enum):
    IDLE = "idle"
    COMPUTING_ORDER = "computing-order"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class RunResult:
    phase: RunPhase
    order: list[str] = field(default_factory=list)
    states: dict[str, ExecutionState] = field(default_factory=dict)
    error: str | None = None
    failed_node: str | None = None

    @property
    def succeeded(self) -> bool:
        return (
            self.phase is RunPhase.COMPLETED
            and self.failed_node is None
            and self.error is None
        )


class FlowRunner:
    """Runs a Graph serially and fail-fast, one run at a time.

    Nodes execute strictly one after another in the order computed by the
    scheduler. A node's inputs are read from the outputs of upstream nodes that
    already succeeded in this run. The first node error halts the run; nodes
    after it stay ``pending``. A cycle completes the run without executing any
    node. ``run()`` never raises for node errors or cycles: inspect the
    returned RunResult or the per-node states. Only ``stop()`` ends a run
    ``aborted``.

    Observers:
        on_node_state_change(node_id, state) after every state transition.
        on_execution_complete() once per run, however it ended.
    """

    def __init__(
        self,
        graph: Graph,
        memory: MemoryStore | None = None,
        on_node_state_change: StateCallback | None = None,
        on_execution_complete: CompleteCallback | None = None,
    ):
        self.graph = graph
        self.memory = memory if memory is not None else InMemoryStore()
        self._on_node_state_change = on_node_state_change
        self._on_execution_complete = on_execution_complete
        self._store = ExecutionStateStore()
        self._order: list[str] = []
        self._phase = RunPhase.IDLE
        self._running = False
        self._token: CancellationToken | None = None
        # Removed nodes must not linger in the state map
        graph.add_removal_listener(self._store.discard)

    # ── Queries ──

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def phase(self) -> RunPhase:
        return self._phase

    @property
    def states(self) -> dict[str, ExecutionState]:
        return self._store.snapshot()

    def get_node_state(self, node_id: str) -> ExecutionState | None:
        return self._store.get(node_id)

    def get_execution_order(self) -> list[str]:
        return list(self._order)

    def is_execution_complete(self) -> bool:
        return not self._running and self._phase in (RunPhase.COMPLETED, RunPhase.ABORTED)

    # ── Control ──

    async def run(self) -> RunResult:
        if self._running:
            raise AlreadyRunningError()
        self._running = True
        self._token = CancellationToken()
        try:
            return await self._run(self._token)
        finally:
            self._running = False
            self._notify_complete()

    def stop(self) -> None:
        """Ask the current run to halt before its next node.

        The node currently executing is not interrupted; it can watch
        ``context.cancellation`` to give up early.
        """
        if self._running and self._token is not None:
            logger.info("Stop requested")
            self._token.cancel()

    def detach(self) -> None:
        self.graph.remove_removal_listener(self._store.discard)

    # ── Internals ──

    async def _run(self, token: CancellationToken) -> RunResult:
        node_ids = self.graph.node_ids()
        self._store.reset(node_ids)
        self._order = []
        configs = {nid: self.graph.get_node(nid).config for nid in node_ids}

        self._phase = RunPhase.COMPUTING_ORDER
        try:
            order = execution_order(self.graph)
        except CycleDetectedError as e:
            logger.error("Workflow not executed: %s", e)
            # The run still completes, with zero nodes executed and the cycle reported
            self._phase = RunPhase.COMPLETED
            return self._result(error=str(e))
        self._order = order

        self._phase = RunPhase.EXECUTING
        logger.info("Running workflow: %d nodes", len(order))
        for node_id in order:
            if token.cancelled:
                logger.info("Execution stopped before node '%s'", node_id)
                self._phase = RunPhase.ABORTED
                return self._result(error="Execution was stopped")

            state = await self._execute_node(self.graph.get_node(node_id), configs[node_id], token)
            if state.status is ExecutionStatus.ERROR:
                if token.cancelled:
                    logger.info("Execution stopped during node '%s'", node_id)
                    self._phase = RunPhase.ABORTED
                    return self._result(error="Execution was stopped", failed_node=node_id)
                logger.error("Node '%s' failed: %s", node_id, state.error)
                self._phase = RunPhase.COMPLETED
                return self._result(failed_node=node_id)

        self._phase = RunPhase.COMPLETED
        logger.info("Workflow completed: %d nodes succeeded", len(order))
        return self._result()

    async def _execute_node(
        self, node: BaseNode, config: NodeConfig, token: CancellationToken
    ) -> ExecutionState:
        inputs = self._resolve_inputs(node)
        self._transition(node.id, ExecutionStatus.RUNNING, inputs=inputs)

        node_log = NodeLogger(node.id, node.node_type)
        context = ExecutionContext(
            node_id=node.id,
            config=config,
            memory=self.memory,
            logger=node_log,
            cancellation=token,
        )
        node_log.info("Node execution started")
        try:
            outputs = await node.execute(dict(inputs), context)
            if outputs is None:
                outputs = {}
            if not isinstance(outputs, dict):
                raise TypeError(
                    f"{type(node).__name__}.execute returned "
                    f"{type(outputs).__name__}, expected dict"
                )
        except Exception as e:
            message = str(e) or type(e).__name__
            node_log.error(f"Error: {message}")
            return self._transition(
                node.id, ExecutionStatus.ERROR, error=message, logs=node_log.entries,
            )

        node_log.info("Node execution completed successfully")
        return self._transition(
            node.id, ExecutionStatus.SUCCESS, outputs=dict(outputs), logs=node_log.entries,
        )

    def _resolve_inputs(self, node: BaseNode) -> dict[str, Any]:
        """Collect values from data edges whose source succeeded in this run.

        Sources that did not succeed, or did not produce the wired output,
        contribute nothing. Inputs that accept multiple connections receive a
        list in edge order.
        """
        inputs: dict[str, Any] = {}
        for edge in self.graph.incoming_edges(node.id):
            if edge.kind is not EdgeKind.DATA:
                continue
            source_state = self._store.get(edge.source_node)
            if source_state is None or not source_state.success:
                continue
            if edge.source_output not in source_state.outputs:
                continue
            value = source_state.outputs[edge.source_output]
            spec = node.input_spec(edge.target_input)
            if spec is not None and spec.multiple:
                inputs.setdefault(edge.target_input, []).append(value)
            else:
                inputs[edge.target_input] = value
        return inputs

    def _transition(self, node_id: str, status: ExecutionStatus, **fields: Any) -> ExecutionState:
        state = self._store.transition(node_id, status, **fields)
        if self._on_node_state_change is not None:
            try:
                self._on_node_state_change(node_id, state)
            except Exception:
                logger.exception("State observer failed for node '%s'", node_id)
        return state

    def _notify_complete(self) -> None:
        if self._on_execution_complete is None:
            return
        try:
            self._on_execution_complete()
        except Exception:
            logger.exception("Completion observer failed")

    def _result(self, error: str | None = None, failed_node: str | None = None) -> RunResult:
        return RunResult(
            phase=self._phase,
            order=list(self._order),
            states=self._store.snapshot(),
            error=error,
            failed_node=failed_node,
        )
