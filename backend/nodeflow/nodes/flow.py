"""Flow nodes: workflow entry point and console logging."""
import json
from datetime import datetime, timezone
from typing import Any

from .base import BaseNode, InputSpec, NodeConfig, OutputSpec, PortType
from .registry import NodeRegistry


@NodeRegistry.register("start")
class StartNode(BaseNode):
    CATEGORY = "Flow"
    DISPLAY_NAME = "Start"
    DESCRIPTION = "Entry point that triggers the rest of the workflow"

    @classmethod
    def INPUT_TYPES(cls):
        return {}

    @classmethod
    def RETURN_TYPES(cls):
        return [
            OutputSpec(PortType.EXEC, "exec", "Trigger signal"),
            OutputSpec(PortType.DATA, "timestamp", "ISO time the run started"),
        ]

    async def execute(self, inputs, context):
        context.logger.info("Workflow started")
        return {"timestamp": datetime.now(timezone.utc).isoformat()}


class ConsoleLogConfig(NodeConfig):
    label: str = ""
    max_length: int = 2000


def _preview(value: Any, max_length: int) -> str:
    if isinstance(value, str):
        text = value
    else:
        try:
            text = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            text = repr(value)
    if len(text) > max_length:
        return text[:max_length] + "…"
    return text


@NodeRegistry.register("console-log")
class ConsoleLogNode(BaseNode):
    CATEGORY = "Output"
    DISPLAY_NAME = "Console Log"
    DESCRIPTION = "Write the incoming value to the node log and pass it through"

    Config = ConsoleLogConfig

    @classmethod
    def INPUT_TYPES(cls):
        return {
            "exec": InputSpec(PortType.EXEC, multiple=True),
            "input": InputSpec(PortType.ANY, required=True, description="Data to log"),
        }

    @classmethod
    def RETURN_TYPES(cls):
        return [
            OutputSpec(PortType.EXEC, "exec"),
            OutputSpec(PortType.DATA, "output", "The logged value, unchanged"),
        ]

    async def execute(self, inputs, context):
        config: ConsoleLogConfig = context.config
        value = inputs.get("input")
        prefix = f"{config.label}: " if config.label else ""
        context.logger.info(prefix + _preview(value, config.max_length))
        return {"output": value}
