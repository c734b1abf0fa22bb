"""Memory nodes: read and write the workflow's key-value memory."""
import time
from typing import Any

from .base import BaseNode, InputSpec, NodeConfig, OutputSpec, PortType
from .registry import NodeRegistry


class MemoryWriteConfig(NodeConfig):
    memory_key: str = ""
    ttl: float = 0  # seconds; 0 = never expires


class MemoryReadConfig(NodeConfig):
    memory_key: str = ""
    default_value: Any = None
    use_default: bool = False


def _expired(item: Any) -> bool:
    if not isinstance(item, dict) or "expires" not in item:
        return False
    expires = item["expires"]
    return expires is not None and expires <= time.time()


@NodeRegistry.register("memory-write")
class MemoryWriteNode(BaseNode):
    CATEGORY = "Memory"
    DISPLAY_NAME = "Write Memory"
    DESCRIPTION = "Store a value in workflow memory, optionally with an expiry"

    Config = MemoryWriteConfig

    @classmethod
    def INPUT_TYPES(cls):
        return {
            "exec": InputSpec(PortType.EXEC, multiple=True),
            "key": InputSpec(PortType.DATA, description="Overrides the configured key"),
            "value": InputSpec(PortType.ANY, required=True),
        }

    @classmethod
    def RETURN_TYPES(cls):
        return [
            OutputSpec(PortType.EXEC, "exec"),
            OutputSpec(PortType.DATA, "success"),
        ]

    async def execute(self, inputs, context):
        config: MemoryWriteConfig = context.config
        key = inputs.get("key") or config.memory_key
        if not key:
            raise ValueError("Memory key is required")
        if "value" not in inputs:
            raise ValueError("No value provided to write")

        item = {
            "value": inputs["value"],
            "expires": time.time() + config.ttl if config.ttl > 0 else None,
        }
        await context.memory.set(key, item)
        suffix = f" (expires in {config.ttl}s)" if config.ttl > 0 else ""
        context.logger.info(f"Wrote value to memory key '{key}'{suffix}")
        return {"success": True}


@NodeRegistry.register("memory-read")
class MemoryReadNode(BaseNode):
    CATEGORY = "Memory"
    DISPLAY_NAME = "Read Memory"
    DESCRIPTION = "Read a value from workflow memory"

    Config = MemoryReadConfig

    @classmethod
    def INPUT_TYPES(cls):
        return {
            "exec": InputSpec(PortType.EXEC, multiple=True),
            "key": InputSpec(PortType.DATA, description="Overrides the configured key"),
            "default": InputSpec(PortType.ANY, description="Overrides the configured default"),
        }

    @classmethod
    def RETURN_TYPES(cls):
        return [
            OutputSpec(PortType.EXEC, "exec"),
            OutputSpec(PortType.DATA, "value"),
            OutputSpec(PortType.DATA, "exists"),
        ]

    async def execute(self, inputs, context):
        config: MemoryReadConfig = context.config
        key = inputs.get("key") or config.memory_key
        if not key:
            raise ValueError("Memory key is required")

        item = await context.memory.get(key)
        if item is not None and _expired(item):
            context.logger.info(f"Memory key '{key}' expired")
            await context.memory.delete(key)
            item = None

        if item is None:
            if config.use_default:
                context.logger.info("Key not found, using default value")
                return {"value": inputs.get("default", config.default_value), "exists": False}
            context.logger.info(f"Key '{key}' not found in memory")
            return {"value": None, "exists": False}

        value = item["value"] if isinstance(item, dict) and "expires" in item else item
        return {"value": value, "exists": True}
