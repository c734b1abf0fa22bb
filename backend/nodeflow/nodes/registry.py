"""Node type registry, filled by ``@NodeRegistry.register`` as node modules import."""
import importlib
import pkgutil
from logging import getLogger
from typing import Any

from .base import BaseNode, NodeConfig, NodeDefinition

logger = getLogger(__name__)

_INFRASTRUCTURE_MODULES = ("base", "registry")


class NodeRegistry:
    """Process-wide map from node type string to BaseNode subclass."""

    _nodes: dict[str, type[BaseNode]] = {}

    @classmethod
    def register(cls, node_type: str | None = None):
        """Class decorator; the type string defaults to the class name.

        Usage:
            @NodeRegistry.register("keyword-filter")
            class KeywordFilterNode(BaseNode):
                ...
        """
        def decorator(node_cls: type[BaseNode]) -> type[BaseNode]:
            name = node_type or node_cls.__name__
            existing = cls._nodes.get(name)
            if existing is not None and existing is not node_cls:
                raise ValueError(
                    f"Node type '{name}' is already registered by {existing.__qualname__}"
                )
            cls._nodes[name] = node_cls
            logger.debug("Registered node type '%s'", name)
            return node_cls
        return decorator

    @classmethod
    def get(cls, node_type: str) -> type[BaseNode]:
        try:
            return cls._nodes[node_type]
        except KeyError:
            raise KeyError(f"Unknown node type: {node_type}") from None

    @classmethod
    def node_types(cls) -> list[str]:
        return sorted(cls._nodes)

    @classmethod
    def create(
        cls,
        node_type: str,
        node_id: str | None = None,
        config: NodeConfig | dict[str, Any] | None = None,
    ) -> BaseNode:
        """Instantiate a registered node type; a fresh id is generated if none given."""
        node_cls = cls.get(node_type)
        return node_cls(node_id=node_id, config=config, node_type=node_type)

    @classmethod
    def all_definitions(cls) -> dict[str, NodeDefinition]:
        return {name: node_cls.get_definition(name) for name, node_cls in cls._nodes.items()}

    @classmethod
    def discover(cls, package_name: str) -> None:
        """Import every public module of ``package_name`` so its nodes register."""
        package = importlib.import_module(package_name)
        for info in pkgutil.iter_modules(getattr(package, "__path__", [])):
            if info.name.startswith("_") or info.name in _INFRASTRUCTURE_MODULES:
                continue
            importlib.import_module(f"{package_name}.{info.name}")
        logger.info("Node types available: %s", ", ".join(cls.node_types()))

    @classmethod
    def clear(cls) -> None:
        cls._nodes.clear()
