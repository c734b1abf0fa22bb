"""REST API routes."""
import json
import uuid
from logging import getLogger
from typing import Any

from fastapi import APIRouter, HTTPException

from ..config import settings
from ..engine.executor import FlowRunner
from ..engine.graph import Graph
from ..engine.memory import MemoryStore, make_memory_store
from ..engine.session import create_session, get_session, remove_session
from ..engine.validator import ValidationError, ensure_valid, validate_graph
from ..engine.workflow import build_graph
from ..models.schemas import (
    ExecuteRequest, ExecuteResponse, SavedWorkflow,
    ValidateResponse, WorkflowSchema,
)
from ..nodes.registry import NodeRegistry
from .websocket import manager

logger = getLogger(__name__)

router = APIRouter(prefix="/api")

_memory: MemoryStore | None = None


def get_memory() -> MemoryStore:
    global _memory
    if _memory is None:
        _memory = make_memory_store(settings)
    return _memory


def _schema_to_graph(schema: WorkflowSchema) -> Graph:
    """Build the graph or fail with 400. GraphError reaches the app-level handler."""
    try:
        return build_graph(schema)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e).strip("'\""))
    except ValueError as e:
        # pydantic ValidationError for a node's configuration
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/nodes")
async def list_nodes():
    """Return all registered node definitions."""
    defs = NodeRegistry.all_definitions()
    result = {}
    for name, defn in defs.items():
        result[name] = {
            "node_type": defn.node_type,
            "display_name": defn.display_name,
            "category": defn.category,
            "description": defn.description,
            "inputs": {
                k: {
                    "port_type": v.port_type.value,
                    "required": v.required,
                    "multiple": v.multiple,
                    "description": v.description,
                }
                for k, v in defn.inputs.items()
            },
            "outputs": [
                {"port_type": o.port_type.value, "name": o.name, "description": o.description}
                for o in defn.outputs
            ],
            "config_schema": defn.config_schema,
        }
    return result


@router.post("/workflows/validate", response_model=ValidateResponse)
async def validate(workflow: WorkflowSchema):
    graph = _schema_to_graph(workflow)
    errors = validate_graph(graph)
    return ValidateResponse(valid=not errors, errors=errors)


@router.post("/workflows/execute", response_model=ExecuteResponse)
async def execute(request: ExecuteRequest):
    """Run a workflow to completion and return every node's final state.

    With a session_id, state changes are also streamed to /ws/runs/{session_id}.
    """
    graph = _schema_to_graph(request.workflow)
    execution_id = str(uuid.uuid4())

    on_state = on_complete = None
    if request.session_id:
        on_state = manager.make_state_callback(request.session_id, execution_id)
        on_complete = manager.make_complete_callback(request.session_id, execution_id)

    runner = FlowRunner(
        graph,
        memory=get_memory(),
        on_node_state_change=on_state,
        on_execution_complete=on_complete,
    )
    create_session(execution_id, request.session_id or "", runner)
    try:
        result = await runner.run()
    finally:
        remove_session(execution_id)
        runner.detach()

    return ExecuteResponse(
        execution_id=execution_id,
        status=result.phase.value,
        order=result.order,
        states={nid: _jsonable(state.to_dict()) for nid, state in result.states.items()},
        error=result.error,
        failed_node=result.failed_node,
    )


def _jsonable(value: Any) -> Any:
    """Node outputs are arbitrary; fall back to str() for anything JSON can't hold."""
    return json.loads(json.dumps(value, default=str))


@router.post("/executions/{execution_id}/stop")
async def stop_execution(execution_id: str):
    session = get_session(execution_id)
    if not session:
        raise HTTPException(status_code=404, detail="Execution not found or already completed")
    session.runner.stop()
    if session.session_id:
        await manager.send_to_session(session.session_id, {
            "type": "execution_stopped", "execution_id": execution_id,
        })
    return {"status": "stopping"}


@router.delete("/memory")
async def clear_memory():
    await get_memory().clear()
    return {"status": "cleared"}


@router.post("/workflows")
async def save_workflow(saved: SavedWorkflow):
    """Save a named workflow to disk; only workflows that pass validation are stored."""
    try:
        ensure_valid(_schema_to_graph(saved.workflow))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
    if not saved.id:
        saved.id = str(uuid.uuid4())
    path = settings.workflows_dir / f"{saved.id}.json"
    path.write_text(saved.model_dump_json(indent=2, by_alias=True))
    return {"id": saved.id}


@router.get("/workflows")
async def list_workflows():
    result = {}
    for path in settings.workflows_dir.glob("*.json"):
        try:
            data = json.loads(path.read_text())
            wid = data["id"]
        except (OSError, ValueError, KeyError) as e:
            logger.warning("Skipping unreadable workflow file %s: %s", path.name, e)
            continue
        result[wid] = {"id": wid, "name": data.get("name", ""), "description": data.get("description", "")}
    return result


@router.get("/workflows/{workflow_id}")
async def get_workflow(workflow_id: str):
    path = settings.workflows_dir / f"{workflow_id}.json"
    if not path.exists():
        raise HTTPException(status_code=404, detail="Workflow not found")
    return json.loads(path.read_text())


@router.delete("/workflows/{workflow_id}")
async def delete_workflow(workflow_id: str):
    path = settings.workflows_dir / f"{workflow_id}.json"
    if not path.exists():
        raise HTTPException(status_code=404, detail="Workflow not found")
    path.unlink()
    return {"status": "deleted"}
