"""WebSocket connection manager for real-time execution state updates."""
import asyncio
import json
from typing import Any, Callable

from fastapi import WebSocket

from ..engine.state import ExecutionState


class ConnectionManager:
    """Manages active WebSocket connections per session."""

    def __init__(self):
        self._connections: dict[str, list[WebSocket]] = {}
        self._pending: set[asyncio.Task] = set()

    async def connect(self, session_id: str, websocket: WebSocket):
        await websocket.accept()
        if session_id not in self._connections:
            self._connections[session_id] = []
        self._connections[session_id].append(websocket)

    def disconnect(self, session_id: str, websocket: WebSocket):
        if session_id in self._connections:
            self._connections[session_id] = [
                ws for ws in self._connections[session_id] if ws is not websocket
            ]
            if not self._connections[session_id]:
                del self._connections[session_id]

    async def send_to_session(self, session_id: str, data: dict[str, Any]):
        if session_id not in self._connections:
            return
        message = json.dumps(data, default=str)
        dead: list[WebSocket] = []
        for ws in self._connections[session_id]:
            try:
                await ws.send_text(message)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.disconnect(session_id, ws)

    def _schedule(self, session_id: str, data: dict[str, Any]) -> None:
        task = asyncio.get_running_loop().create_task(self.send_to_session(session_id, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def make_state_callback(
        self, session_id: str, execution_id: str
    ) -> Callable[[str, ExecutionState], None]:
        """Create a sync runner observer that pushes each state change to the session."""
        def callback(node_id: str, state: ExecutionState):
            self._schedule(session_id, {
                "type": "node_state",
                "execution_id": execution_id,
                "node_id": node_id,
                "state": state.to_dict(),
            })
        return callback

    def make_complete_callback(self, session_id: str, execution_id: str) -> Callable[[], None]:
        def callback():
            self._schedule(session_id, {
                "type": "execution_complete",
                "execution_id": execution_id,
            })
        return callback


manager = ConnectionManager()
