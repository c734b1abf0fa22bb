"""Pydantic schemas for the persisted workflow format and API request/response models."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NodeSchema(BaseModel):
    id: str
    type: str
    position: dict[str, float] = {}
    data: dict[str, Any] = {}


class ConnectionSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    source: str
    source_output: str = Field(alias="sourceOutput")
    target: str
    target_input: str = Field(alias="targetInput")


class WorkflowSchema(BaseModel):
    nodes: list[NodeSchema] = []
    connections: list[ConnectionSchema] = []
    name: str = ""
    description: str = ""


class ExecuteRequest(BaseModel):
    workflow: WorkflowSchema
    session_id: str | None = None


class ExecuteResponse(BaseModel):
    execution_id: str
    status: str
    order: list[str] = []
    states: dict[str, Any] = {}
    error: str | None = None
    failed_node: str | None = None


class ValidateResponse(BaseModel):
    valid: bool
    errors: list[str] = []


class SavedWorkflow(BaseModel):
    id: str = ""
    name: str
    description: str = ""
    workflow: WorkflowSchema
