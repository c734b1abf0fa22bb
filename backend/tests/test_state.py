"""Tests for the execution state store's per-node state machine."""
import pytest

from nodeflow.engine.errors import InvalidTransitionError
from nodeflow.engine.state import ExecutionState, ExecutionStateStore, ExecutionStatus


@pytest.fixture
def store():
    s = ExecutionStateStore()
    s.reset(["a", "b"])
    return s


class TestTransitions:
    def test_reset_to_pending(self, store):
        assert all(state.status is ExecutionStatus.PENDING for _, state in store.items())
        assert len(store) == 2

    def test_happy_path(self, store):
        running = store.transition("a", ExecutionStatus.RUNNING, inputs={"x": 1})
        assert running.start_time is not None
        assert running.inputs == {"x": 1}
        done = store.transition("a", ExecutionStatus.SUCCESS, outputs={"y": 2}, logs=["ok"])
        assert done.success
        assert done.end_time >= done.start_time
        assert done.logs == ("ok",)
        assert done.inputs == {"x": 1}

    def test_records_are_immutable(self, store):
        before = store.get("a")
        store.transition("a", ExecutionStatus.RUNNING)
        assert before.status is ExecutionStatus.PENDING
        with pytest.raises(Exception):
            before.status = ExecutionStatus.RUNNING

    def test_never_running_twice(self, store):
        store.transition("a", ExecutionStatus.RUNNING)
        store.transition("a", ExecutionStatus.ERROR, error="boom")
        with pytest.raises(InvalidTransitionError):
            store.transition("a", ExecutionStatus.RUNNING)

    def test_cannot_finish_without_running(self, store):
        with pytest.raises(InvalidTransitionError):
            store.transition("a", ExecutionStatus.SUCCESS)

    def test_skip_from_pending_only(self, store):
        assert store.transition("b", ExecutionStatus.SKIPPED).status is ExecutionStatus.SKIPPED
        store.transition("a", ExecutionStatus.RUNNING)
        with pytest.raises(InvalidTransitionError):
            store.transition("a", ExecutionStatus.SKIPPED)

    def test_unknown_node(self, store):
        with pytest.raises(InvalidTransitionError):
            store.transition("ghost", ExecutionStatus.RUNNING)

    def test_discard(self, store):
        store.discard("a")
        store.discard("missing")
        assert "a" not in store
        assert list(store.snapshot()) == ["b"]


class TestExecutionState:
    def test_defaults(self):
        state = ExecutionState()
        assert state.status is ExecutionStatus.PENDING
        assert state.duration is None
        assert not state.success

    def test_to_dict(self):
        state = ExecutionState(
            status=ExecutionStatus.ERROR, start_time=1.0, end_time=1.5,
            error="network error", logs=("line",),
        )
        assert state.to_dict() == {
            "status": "error",
            "start_time": 1.0,
            "end_time": 1.5,
            "duration": 0.5,
            "inputs": {},
            "outputs": {},
            "error": "network error",
            "logs": ["line"],
        }
