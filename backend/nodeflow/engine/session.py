"""Execution session manager: tracks in-flight workflow runs and their runners."""
from .executor import FlowRunner


class ExecutionSession:
    def __init__(self, execution_id: str, session_id: str, runner: FlowRunner):
        self.execution_id = execution_id
        self.session_id = session_id
        self.runner = runner


_sessions: dict[str, ExecutionSession] = {}


def create_session(execution_id: str, session_id: str, runner: FlowRunner) -> ExecutionSession:
    session = ExecutionSession(execution_id, session_id, runner)
    _sessions[execution_id] = session
    return session


def get_session(execution_id: str) -> ExecutionSession | None:
    return _sessions.get(execution_id)


def remove_session(execution_id: str) -> None:
    _sessions.pop(execution_id, None)
