"""Base node abstraction and port type definitions."""
from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext


class PortType(str, Enum):
    EXEC = "exec"
    DATA = "data"
    ANY = "any"


# Which port types can connect to which
TYPE_COMPATIBILITY: dict[PortType, set[PortType]] = {
    PortType.EXEC: {PortType.EXEC, PortType.ANY},
    PortType.DATA: {PortType.DATA, PortType.ANY},
    PortType.ANY: set(PortType),
}


def ports_compatible(source: PortType, target: PortType) -> bool:
    return target in TYPE_COMPATIBILITY[source]


@dataclass(frozen=True)
class InputSpec:
    port_type: PortType
    required: bool = False
    multiple: bool = False  # accepts more than one incoming connection
    description: str = ""


@dataclass(frozen=True)
class OutputSpec:
    port_type: PortType
    name: str
    description: str = ""


@dataclass
class NodeDefinition:
    """Serializable node definition sent to the frontend."""
    node_type: str
    display_name: str
    category: str
    description: str
    inputs: dict[str, InputSpec]
    outputs: list[OutputSpec]
    config_schema: dict[str, Any]


class NodeConfig(BaseModel):
    """Immutable configuration snapshot. Subclass per node type."""

    model_config = ConfigDict(frozen=True, extra="ignore")


class BaseNode(ABC):
    """Abstract base class for all workflow nodes.

    A node owns a stable ``id`` and a frozen ``config``. The engine only ever
    calls :meth:`execute`; everything a node needs at run time (memory,
    logging, cancellation, its config snapshot) arrives in the context.
    """

    CATEGORY: str = "Uncategorized"
    DISPLAY_NAME: str = ""
    DESCRIPTION: str = ""

    Config: type[NodeConfig] = NodeConfig

    def __init__(
        self,
        node_id: str | None = None,
        config: NodeConfig | dict[str, Any] | None = None,
        node_type: str | None = None,
    ):
        self.id = node_id or uuid.uuid4().hex
        self.node_type = node_type or type(self).__name__
        if isinstance(config, NodeConfig):
            self.config = config
        else:
            self.config = self.Config(**(config or {}))

    @classmethod
    @abstractmethod
    def INPUT_TYPES(cls) -> dict[str, InputSpec]:
        ...

    @classmethod
    @abstractmethod
    def RETURN_TYPES(cls) -> list[OutputSpec]:
        ...

    @abstractmethod
    async def execute(
        self, inputs: dict[str, Any], context: ExecutionContext
    ) -> dict[str, Any]:
        ...

    def configure(self, **values: Any) -> NodeConfig:
        """Validate ``values`` on top of the current config and swap it in."""
        merged = {**self.config.model_dump(), **values}
        self.config = self.Config(**merged)
        return self.config

    def input_spec(self, name: str) -> InputSpec | None:
        return self.INPUT_TYPES().get(name)

    def output_spec(self, name: str) -> OutputSpec | None:
        for spec in self.RETURN_TYPES():
            if spec.name == name:
                return spec
        return None

    @classmethod
    def get_definition(cls, node_type: str) -> NodeDefinition:
        return NodeDefinition(
            node_type=node_type,
            display_name=cls.DISPLAY_NAME or cls.__name__,
            category=cls.CATEGORY,
            description=cls.DESCRIPTION or cls.__doc__ or "",
            inputs=cls.INPUT_TYPES(),
            outputs=cls.RETURN_TYPES(),
            config_schema=cls.Config.model_json_schema(),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
